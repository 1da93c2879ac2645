"""coursekit - Glossary export and lesson restore for a learning management system."""
__version__ = "1.0.0"
__author__ = "coursekit Team"

from coursekit.core.models import ExportFormat, ExpectedTime, TextFormat
from coursekit.export import (
    DirectoryExporter,
    ExportRequest,
    GlossaryEntryCaller,
    GlossaryFullCaller,
)
from coursekit.formatters import get_format_registry
from coursekit.restore import IdMapping, LessonRestoreStep, RestoreSettings, restore_lesson_activity

__all__ = [
    "ExportFormat",
    "ExpectedTime",
    "TextFormat",
    "DirectoryExporter",
    "ExportRequest",
    "GlossaryEntryCaller",
    "GlossaryFullCaller",
    "get_format_registry",
    "IdMapping",
    "LessonRestoreStep",
    "RestoreSettings",
    "restore_lesson_activity",
]
