"""Lesson activity restore from backup documents."""
from .mapping import IdMapping
from .lesson_step import (
    LessonRestoreStep,
    PageArena,
    PathElement,
    RestoreSettings,
    restore_lesson_activity,
)

__all__ = [
    "IdMapping",
    "LessonRestoreStep", "PageArena", "PathElement", "RestoreSettings",
    "restore_lesson_activity",
]
