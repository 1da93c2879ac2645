"""
Custom exceptions for glossary export and lesson restore.
Provides a clear error hierarchy with meaningful error messages.

Every exception carries an optional context mapping (ids, table names,
format names) that is rendered into ``str(error)`` and ``to_dict()``.
"""

from contextlib import contextmanager
from typing import Optional, Dict, Any, Type
import logging

__all__ = [
    # Base
    'CourseKitError',
    # Export
    'ExportError', 'InvalidReferenceError', 'UnsupportedFormatError',
    'UnresolvedSourceContextError', 'OutputError',
    # Restore
    'RestoreError', 'MissingMappingError', 'DuplicateMappingError',
    'BackupFormatError',
    # Storage
    'StorageError',
    # Configuration
    'ConfigurationError',
    # Utilities
    'error_context', 'wrap_error',
]


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class CourseKitError(Exception):
    """
    Base exception for all coursekit errors.

    All custom exceptions inherit from this class for unified error handling.
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize exception with message and optional context.

        Args:
            message: Error message
            **context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context."""
        shown = {k: v for k, v in self.context.items() if v is not None}
        if not shown:
            return self.message

        context_str = ', '.join(f"{k}={v}" for k, v in shown.items())
        return f"{self.message} ({context_str})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context
        }


# ============================================================================
# EXPORT EXCEPTIONS
# ============================================================================

class ExportError(CourseKitError):
    """Base exception for glossary export errors."""
    pass


class InvalidReferenceError(ExportError):
    """Raised when a course module, glossary or entry cannot be found."""

    def __init__(self, message: str, error_code: str = "invalidid", **context: Any) -> None:
        super().__init__(message, error_code=error_code, **context)
        self.error_code = error_code


class UnsupportedFormatError(ExportError):
    """Raised when the selected export format is not supported by the caller."""

    def __init__(self, message: str, format_class: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, format_class=format_class, **context)
        self.format_class = format_class


class UnresolvedSourceContextError(ExportError):
    """Raised when the module of an entry's source glossary no longer exists."""

    def __init__(self, message: str, glossary_id: Optional[int] = None, **context: Any) -> None:
        super().__init__(message, glossary_id=glossary_id, **context)
        self.glossary_id = glossary_id


class OutputError(ExportError):
    """Raised when a package file cannot be created or written."""

    def __init__(self, message: str, output_path: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, output_path=output_path, **context)
        self.output_path = output_path


# ============================================================================
# RESTORE EXCEPTIONS
# ============================================================================

class RestoreError(CourseKitError):
    """Base exception for backup restore errors."""
    pass


class MissingMappingError(RestoreError):
    """Raised when an old id has no new id in the mapping table."""

    def __init__(
        self,
        message: str,
        item_type: Optional[str] = None,
        old_id: Optional[int] = None,
        **context: Any
    ) -> None:
        super().__init__(message, item_type=item_type, old_id=old_id, **context)
        self.item_type = item_type
        self.old_id = old_id


class DuplicateMappingError(RestoreError):
    """Raised when an old id is mapped twice within one restore run."""

    def __init__(
        self,
        message: str,
        item_type: Optional[str] = None,
        old_id: Optional[int] = None,
        **context: Any
    ) -> None:
        super().__init__(message, item_type=item_type, old_id=old_id, **context)
        self.item_type = item_type
        self.old_id = old_id


class BackupFormatError(RestoreError):
    """Raised when the backup document is unreadable or malformed."""

    def __init__(self, message: str, source: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, source=source, **context)
        self.source = source


# ============================================================================
# STORAGE EXCEPTIONS
# ============================================================================

class StorageError(CourseKitError):
    """Raised for SQLite or file storage failures."""

    def __init__(self, message: str, table: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, table=table, **context)
        self.table = table


# ============================================================================
# CONFIGURATION EXCEPTIONS
# ============================================================================

class ConfigurationError(CourseKitError):
    """Raised when configuration values are invalid."""

    def __init__(self, message: str, component: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, component=component, **context)
        self.component = component


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def wrap_error(
    error: Exception,
    error_class: Type[CourseKitError],
    message: Optional[str] = None
) -> CourseKitError:
    """
    Wrap an exception in a custom exception type.

    Args:
        error: Original exception
        error_class: Exception class to wrap with
        message: Optional custom message

    Returns:
        Wrapped exception with ``__cause__`` set to the original

    Raises:
        TypeError: If error_class is not a CourseKitError subclass

    Example:
        >>> try:
        ...     raise sqlite3.OperationalError("no such table")
        ... except sqlite3.Error as e:
        ...     raise wrap_error(e, StorageError, "Insert failed")
    """
    if not issubclass(error_class, CourseKitError):
        raise TypeError(
            f"error_class must be subclass of CourseKitError, "
            f"got {error_class.__name__}"
        )

    error_msg = f"{message}: {error}" if message else str(error)
    wrapped = error_class(error_msg)
    wrapped.__cause__ = error
    return wrapped


@contextmanager
def error_context(
    operation: str,
    error_class: Type[CourseKitError] = CourseKitError,
    logger: Optional[logging.Logger] = None
):
    """
    Context manager for consistent error handling and wrapping.

    Errors that already belong to the coursekit hierarchy pass through
    unchanged; anything else is wrapped in ``error_class``.

    Args:
        operation: Name of operation being performed
        error_class: Exception class to wrap errors with
        logger: Optional logger for error logging

    Example:
        >>> with error_context("writing leap2a manifest", OutputError):
        ...     path.write_bytes(data)
    """
    try:
        yield
    except CourseKitError:
        raise
    except KeyboardInterrupt:
        raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)

        raise wrap_error(e, error_class, f"Error during {operation}")
