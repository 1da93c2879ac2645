"""Core records, interfaces and exceptions."""
from .exceptions import (
    CourseKitError,
    ExportError,
    InvalidReferenceError,
    UnsupportedFormatError,
    UnresolvedSourceContextError,
    OutputError,
    RestoreError,
    MissingMappingError,
    DuplicateMappingError,
    BackupFormatError,
    StorageError,
    ConfigurationError,
)
from .interfaces import (
    IRecordStore,
    IFileStorage,
    ICapabilityChecker,
    IExportFormat,
    IPortfolioExporter,
)
from .models import (
    CourseModule,
    Glossary,
    GlossaryEntry,
    GlossaryAlias,
    GlossaryCategoryLink,
    UserRecord,
    StoredFile,
    BackupFile,
    TextFormat,
    ExportFormat,
    ExpectedTime,
)

__all__ = [
    "CourseKitError", "ExportError", "InvalidReferenceError",
    "UnsupportedFormatError", "UnresolvedSourceContextError", "OutputError",
    "RestoreError", "MissingMappingError", "DuplicateMappingError",
    "BackupFormatError", "StorageError", "ConfigurationError",
    "IRecordStore", "IFileStorage", "ICapabilityChecker",
    "IExportFormat", "IPortfolioExporter",
    "CourseModule", "Glossary", "GlossaryEntry", "GlossaryAlias",
    "GlossaryCategoryLink", "UserRecord", "StoredFile", "BackupFile",
    "TextFormat", "ExportFormat", "ExpectedTime",
]
