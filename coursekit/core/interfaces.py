"""
Core interfaces for the export and restore flows.

The host application owns persistence, file storage, authorization and the
portfolio export engine. The flows talk to them only through these narrow
interfaces; ``coursekit.storage`` and ``coursekit.export.exporter`` provide
reference implementations.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Union

from .models import ExportFormat, StoredFile, UserRecord, package_file_path


Conditions = Dict[str, Any]


# ============================================================================
# RECORD STORE INTERFACE
# ============================================================================

class IRecordStore(ABC):
    """Flat-record persistence keyed by table name."""

    @abstractmethod
    def get_record(self, table: str, **conditions: Any) -> Optional[Dict[str, Any]]:
        """
        Fetch a single record.

        Args:
            table: Table name
            **conditions: Field equality conditions; a list value means IN

        Returns:
            Record as a dict, or None when nothing matches
        """
        pass

    @abstractmethod
    def get_records(
        self,
        table: str,
        sort: Optional[str] = None,
        **conditions: Any
    ) -> List[Dict[str, Any]]:
        """Fetch all matching records, ordered by ``sort`` (default: id)."""
        pass

    @abstractmethod
    def insert_record(self, table: str, data: Dict[str, Any]) -> int:
        """Insert a record and return its new id. Any ``id`` in data is ignored."""
        pass

    @abstractmethod
    def update_record(self, table: str, data: Dict[str, Any]) -> None:
        """Update the record identified by ``data['id']``."""
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """All-or-nothing unit of work. Stores without transactions just yield."""
        yield


# ============================================================================
# FILE STORAGE INTERFACE
# ============================================================================

class IFileStorage(ABC):
    """Files bound to (context, component, filearea, itemid)."""

    @abstractmethod
    def get_area_files(
        self,
        contextid: int,
        component: str,
        filearea: str,
        itemid: Optional[int] = None,
        sort: str = "itemid, filepath, filename",
        include_dirs: bool = True
    ) -> List[StoredFile]:
        """List the files of one area, optionally restricted to one item."""
        pass

    @abstractmethod
    def create_file(self, record: Dict[str, Any], content: bytes) -> StoredFile:
        """Store ``content`` under the binding described by ``record``."""
        pass


# ============================================================================
# AUTHORIZATION INTERFACE
# ============================================================================

class ICapabilityChecker(ABC):

    @abstractmethod
    def has_capability(self, capability: str, contextid: int, userid: int) -> bool:
        pass


# ============================================================================
# EXPORT FORMAT INTERFACE
# ============================================================================

class IExportFormat(ABC):
    """
    One portfolio output format.

    A format decides where bundled files live inside the package and how a
    file is referenced from rendered HTML.
    """

    @property
    @abstractmethod
    def format_class(self) -> ExportFormat:
        pass

    @property
    def file_directory(self) -> str:
        """Package subdirectory that copied files are written into."""
        return ""

    def item_directory(self, itemid: int) -> str:
        """Package directory holding the files of one item; empty when files are not bundled."""
        if not self.file_directory:
            return ""
        return f"{self.file_directory}{itemid}"

    def package_path(self, file: StoredFile) -> str:
        """Path of ``file`` inside the package, as written and as referenced."""
        return package_file_path(self.file_directory, file)

    def file_output(self, file: StoredFile) -> str:
        """HTML snippet referencing ``file`` from inside the package."""
        return ""

    def manifest_name(self) -> str:
        raise NotImplementedError(f"{self.format_class.value} has no manifest")

    def leap2a_writer(self, user: Optional[UserRecord] = None) -> Any:
        raise NotImplementedError(f"{self.format_class.value} has no leap2a writer")


# ============================================================================
# EXPORT TARGET INTERFACE
# ============================================================================

class IPortfolioExporter(ABC):
    """The package being assembled for one export run."""

    @property
    @abstractmethod
    def format(self) -> IExportFormat:
        pass

    @property
    def format_class(self) -> ExportFormat:
        return self.format.format_class

    @abstractmethod
    def write_new_file(
        self,
        content: Union[str, bytes],
        filename: str,
        binary: bool = True
    ) -> Any:
        """Write generated content as a new file in the package."""
        pass

    @abstractmethod
    def copy_existing_file(self, file: StoredFile) -> Any:
        """Copy a stored file into the format's file directory."""
        pass
