"""Glossary export callers, entry rendering and the directory export target."""
from .callers import (
    ExportRequest,
    PortfolioCallerBase,
    GlossaryFullCaller,
    GlossaryEntryCaller,
    expected_time_file,
    expected_time_db,
)
from .exporter import DirectoryExporter
from .rendering import entry_content, resolve_file_contextid

__all__ = [
    "ExportRequest", "PortfolioCallerBase", "GlossaryFullCaller", "GlossaryEntryCaller",
    "expected_time_file", "expected_time_db",
    "DirectoryExporter",
    "entry_content", "resolve_file_contextid",
]
