"""Reference SQLite implementations of the host collaborators."""
from .sqlite_store import SQLiteRecordStore
from .file_storage import SQLiteFileStorage
from .capabilities import SQLiteCapabilityChecker

__all__ = ["SQLiteRecordStore", "SQLiteFileStorage", "SQLiteCapabilityChecker"]
