"""
Glossary export callers.

A caller gathers the data for one export request and writes it into the
package in whichever format the exporter was configured with:

* ``GlossaryFullCaller``: every entry of a glossary (spreadsheet or Leap2A)
* ``GlossaryEntryCaller``: a single entry (rich HTML, plain HTML or Leap2A)

Request-scoped state (requesting user, callback arguments) arrives as an
``ExportRequest``; nothing is read from ambient globals.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import hashlib
import json
import logging

from ..core.exceptions import ExportError, InvalidReferenceError, UnsupportedFormatError
from ..core.interfaces import ICapabilityChecker, IFileStorage, IPortfolioExporter, IRecordStore
from ..core.models import (
    CAP_GLOSSARY_EXPORT,
    CAP_GLOSSARY_EXPORT_ENTRY,
    CAP_GLOSSARY_EXPORT_OWN_ENTRY,
    GLOSSARY_COMPONENT,
    CourseModule,
    ExpectedTime,
    ExportFormat,
    Glossary,
    GlossaryAlias,
    GlossaryCategoryLink,
    GlossaryEntry,
    StoredFile,
    UserRecord,
)
from ..formatters.leap2a import Leap2AEntry
from ..formatters.spreadsheet import generate_export_spreadsheet
from ..utils.config_manager import ExportConfig, get_config
from ..utils.strings import get_string
from ..utils.text import clean_filename
from .rendering import (
    entry_content,
    get_coursemodule_from_id,
    get_coursemodule_from_instance,
)


logger = logging.getLogger(__name__)


@dataclass
class ExportRequest:
    """Who asked for the export and with which callback arguments."""
    user: UserRecord
    callbackargs: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# COST ESTIMATES
# ============================================================================

def expected_time_file(files: Sequence[StoredFile], config: ExportConfig) -> ExpectedTime:
    """Estimate export time from the total size of the bundled files."""
    total = sum(file.filesize for file in files)
    if total < config.file_size_low:
        return ExpectedTime.LOW
    if total < config.file_size_moderate:
        return ExpectedTime.MODERATE
    return ExpectedTime.HIGH


def expected_time_db(record_count: int, config: ExportConfig) -> ExpectedTime:
    """Estimate export time from the number of records written."""
    if record_count < config.db_records_low:
        return ExpectedTime.LOW
    if record_count < config.db_records_moderate:
        return ExpectedTime.MODERATE
    return ExpectedTime.HIGH


# ============================================================================
# BASE CALLER
# ============================================================================

class PortfolioCallerBase(ABC):
    """Shared loading, permission and fingerprint logic for glossary exports."""

    def __init__(
        self,
        request: ExportRequest,
        store: IRecordStore,
        files: IFileStorage,
        capabilities: ICapabilityChecker,
        config: Optional[ExportConfig] = None
    ):
        self.request = request
        self.store = store
        self.files = files
        self.capabilities = capabilities
        self.config = config or get_config().export

        self._check_callbackargs(request.callbackargs)
        self.id = self._int_callbackarg('id')

        self.cm: Optional[CourseModule] = None
        self.glossary: Optional[Glossary] = None
        self.multifiles: List[StoredFile] = []

    @property
    def user(self) -> UserRecord:
        return self.request.user

    @classmethod
    @abstractmethod
    def expected_callbackargs(cls) -> Dict[str, bool]:
        """Callback argument names mapped to whether they are required."""
        pass

    @classmethod
    @abstractmethod
    def base_supported_formats(cls) -> List[ExportFormat]:
        pass

    @classmethod
    def display_name(cls) -> str:
        return get_string('modulename')

    @abstractmethod
    def load_data(self) -> None:
        pass

    @abstractmethod
    def expected_time(self) -> ExpectedTime:
        pass

    @abstractmethod
    def get_sha1(self) -> str:
        pass

    @abstractmethod
    def check_permissions(self) -> bool:
        pass

    @abstractmethod
    def prepare_package(self, exporter: IPortfolioExporter) -> None:
        pass

    def _check_callbackargs(self, callbackargs: Dict[str, Any]) -> None:
        missing = [
            name for name, required in self.expected_callbackargs().items()
            if required and callbackargs.get(name) in (None, "")
        ]
        if missing:
            raise ExportError(
                f"Missing callback arguments: {', '.join(missing)}",
                caller=self.__class__.__name__
            )

    def _int_callbackarg(self, name: str) -> int:
        value = self.request.callbackargs[name]
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ExportError(
                f"Invalid callback argument {name}: {value!r}",
                caller=self.__class__.__name__
            ) from e

    def _check_format(self, exporter: IPortfolioExporter) -> ExportFormat:
        format_class = exporter.format_class
        if format_class not in self.base_supported_formats():
            raise UnsupportedFormatError(
                get_string('unexpected_format_class'),
                format_class=format_class.value,
                caller=self.__class__.__name__
            )
        return format_class

    def _load_module(self) -> None:
        """Resolve ``self.cm`` and ``self.glossary`` or raise ``invalidid``."""
        self.cm = get_coursemodule_from_id(self.store, self.id)
        if self.cm is None:
            raise InvalidReferenceError(get_string('invalidid'), error_code='invalidid', cmid=self.id)

        row = self.store.get_record('glossary', id=self.cm.instance)
        if row is None:
            raise InvalidReferenceError(
                get_string('invalidid'), error_code='invalidid', glossary_id=self.cm.instance
            )
        self.glossary = Glossary.from_row(row)

    def _load_alias_rows(self, entry_ids: List[int]) -> List[GlossaryAlias]:
        rows = self.store.get_records('glossary_alias', entryid=entry_ids)
        return [GlossaryAlias.from_row(row) for row in rows]

    def _load_category_links(self, entry_ids: List[int]) -> List[GlossaryCategoryLink]:
        links = self.store.get_records('glossary_entries_categories', entryid=entry_ids)
        category_ids = sorted({link['categoryid'] for link in links})
        names = {
            row['id']: row['name']
            for row in self.store.get_records('glossary_categories', id=category_ids)
        }
        return [
            GlossaryCategoryLink(entryid=link['entryid'], name=names[link['categoryid']])
            for link in links if link['categoryid'] in names
        ]

    def _entry_files(self, contextid: int, entryid: int) -> List[StoredFile]:
        """Attachment and inline files of one entry, oldest first."""
        files = []
        for area in ('attachment', 'entry'):
            files.extend(self.files.get_area_files(
                contextid, GLOSSARY_COMPONENT, area, entryid,
                sort="timemodified", include_dirs=False
            ))
        return files

    def _load_author(self, userid: int) -> Optional[UserRecord]:
        row = self.store.get_record('user', id=userid)
        return UserRecord.from_row(row) if row else None

    def get_sha1_file(self) -> str:
        """Fingerprint of the content of every bundled file."""
        hashes = "".join(file.contenthash for file in self.multifiles)
        return hashlib.sha1(hashes.encode('utf-8')).hexdigest()

    @staticmethod
    def _serialize(data: Any) -> str:
        return json.dumps(data, sort_keys=True, ensure_ascii=False)

    def _leap2a_entry(self, entry: GlossaryEntry, content: str) -> Leap2AEntry:
        leap_entry = Leap2AEntry(
            id=f"glossaryentry{entry.id}",
            title=entry.concept,
            type='entry',
            content=content,
        )
        leap_entry.author = self._load_author(entry.userid)
        leap_entry.published = entry.timecreated or None
        leap_entry.updated = entry.timemodified or None
        return leap_entry


# ============================================================================
# WHOLE GLOSSARY
# ============================================================================

class GlossaryFullCaller(PortfolioCallerBase):
    """Exports every entry of one glossary."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entries: List[GlossaryEntry] = []
        self.aliases: List[GlossaryAlias] = []
        self.categoryentries: List[GlossaryCategoryLink] = []
        self.keyedfiles: Dict[int, List[StoredFile]] = {}

    @classmethod
    def expected_callbackargs(cls) -> Dict[str, bool]:
        return {'id': True}

    @classmethod
    def base_supported_formats(cls) -> List[ExportFormat]:
        return [ExportFormat.SPREADSHEET, ExportFormat.LEAP2A]

    def load_data(self) -> None:
        self._load_module()

        rows = self.store.get_records('glossary_entries', glossaryid=self.glossary.id)
        self.entries = [GlossaryEntry.from_row(row) for row in rows]
        entry_ids = [entry.id for entry in self.entries]

        self.aliases = self._load_alias_rows(entry_ids)
        self.categoryentries = self._load_category_links(entry_ids)

        self.keyedfiles = {}
        self.multifiles = []
        for entry_id in entry_ids:
            self.keyedfiles[entry_id] = self._entry_files(self.cm.contextid, entry_id)
            self.multifiles.extend(self.keyedfiles[entry_id])

        logger.info(
            f"Loaded glossary {self.glossary.id}: {len(self.entries)} entries, "
            f"{len(self.multifiles)} files"
        )

    def expected_time(self) -> ExpectedTime:
        filetime = expected_time_file(self.multifiles, self.config)
        dbtime = expected_time_db(len(self.entries), self.config)
        return max(filetime, dbtime)

    def exportdata(self) -> Dict[str, Any]:
        return {
            'entries': [entry.to_dict() for entry in self.entries],
            'aliases': [
                {'id': alias.id, 'entryid': alias.entryid, 'alias': alias.alias}
                for alias in self.aliases
            ],
            'categoryentries': [
                {'entryid': link.entryid, 'name': link.name} for link in self.categoryentries
            ],
        }

    def get_sha1(self) -> str:
        file_hash = self.get_sha1_file() if self.multifiles else ""
        payload = self._serialize(self.exportdata()) + file_hash
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()

    def check_permissions(self) -> bool:
        return self.capabilities.has_capability(CAP_GLOSSARY_EXPORT, self.cm.contextid, self.user.id)

    def _keyed_aliases(self) -> Dict[int, List[str]]:
        keyed: Dict[int, List[str]] = {}
        for alias in self.aliases:
            keyed.setdefault(alias.entryid, []).extend(alias.terms)
        return keyed

    def _keyed_categories(self) -> Dict[int, List[str]]:
        keyed: Dict[int, List[str]] = {}
        for link in self.categoryentries:
            keyed.setdefault(link.entryid, []).append(link.name)
        return keyed

    def prepare_package(self, exporter: IPortfolioExporter) -> None:
        format_class = self._check_format(exporter)
        aliases = self._keyed_aliases()
        categories = self._keyed_categories()

        if format_class == ExportFormat.SPREADSHEET:
            content = generate_export_spreadsheet(self.entries, aliases, categories)
            filename = clean_filename(self.cm.name or self.glossary.name) + ".xlsx"
            exporter.write_new_file(content, filename, binary=True)
            logger.info(f"Glossary {self.glossary.id} exported as spreadsheet {filename}")
            return

        fmt = exporter.format
        writer = fmt.leap2a_writer(self.user)
        ids = []
        for entry in self.entries:
            content = entry_content(
                self.store, self.files, self.cm, self.glossary, entry,
                aliases.get(entry.id, []), fmt
            )
            leap_entry = self._leap2a_entry(entry, content)
            entry_files = self.keyedfiles.get(entry.id, [])
            if entry_files:
                writer.link_files(
                    leap_entry, entry_files,
                    id_prefix=f"glossaryentry{entry.id}file",
                    file_directory=fmt.file_directory
                )
                for file in entry_files:
                    exporter.copy_existing_file(file)
            # Categories become plain tags; no category scheme.
            for name in categories.get(entry.id, []):
                leap_entry.add_category(name)
            writer.add_entry(leap_entry)
            ids.append(leap_entry.id)

        selection = Leap2AEntry(
            id=f"wholeglossary{self.glossary.id}",
            title=get_string('modulename'),
            type='selection',
        )
        writer.add_entry(selection)
        writer.make_selection(selection, ids, 'Grouping')

        exporter.write_new_file(writer.to_xml(), fmt.manifest_name(), binary=True)
        logger.info(f"Glossary {self.glossary.id} exported as leap2a: {len(ids)} entries")


# ============================================================================
# SINGLE ENTRY
# ============================================================================

class GlossaryEntryCaller(PortfolioCallerBase):
    """Exports one glossary entry."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entryid = self._int_callbackarg('entryid')
        self.entry: Optional[GlossaryEntry] = None
        self.aliases: List[GlossaryAlias] = []
        self.categories: List[GlossaryCategoryLink] = []

    @classmethod
    def expected_callbackargs(cls) -> Dict[str, bool]:
        return {'id': True, 'entryid': True}

    @classmethod
    def base_supported_formats(cls) -> List[ExportFormat]:
        return [ExportFormat.RICHHTML, ExportFormat.PLAINHTML, ExportFormat.LEAP2A]

    def load_data(self) -> None:
        self._load_module()

        row = self.store.get_record('glossary_entries', id=self.entryid)
        if row is None:
            raise InvalidReferenceError(get_string('noentry'), error_code='noentry', entry_id=self.entryid)
        self.entry = GlossaryEntry.from_row(row)
        # Unapproved entries are still printed in their own export.
        self.entry.approved = True

        self.categories = self._load_category_links([self.entry.id])
        self.aliases = self._load_alias_rows([self.entry.id])

        contextid = self.cm.contextid
        if self.entry.sourceglossaryid == self.cm.instance:
            source_cm = get_coursemodule_from_instance(self.store, self.entry.glossaryid)
            if source_cm is not None:
                contextid = source_cm.contextid

        self.multifiles = self._entry_files(contextid, self.entry.id)
        logger.info(f"Loaded glossary entry {self.entry.id}: {len(self.multifiles)} files")

    def expected_time(self) -> ExpectedTime:
        return ExpectedTime.LOW

    def get_sha1(self) -> str:
        payload = self._serialize(self.entry.to_dict())
        if self.multifiles:
            payload += self.get_sha1_file()
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()

    def check_permissions(self) -> bool:
        contextid = self.cm.contextid
        if self.capabilities.has_capability(CAP_GLOSSARY_EXPORT_ENTRY, contextid, self.user.id):
            return True
        return (
            self.entry.userid == self.user.id
            and self.capabilities.has_capability(CAP_GLOSSARY_EXPORT_OWN_ENTRY, contextid, self.user.id)
        )

    @property
    def alias_terms(self) -> List[str]:
        terms: List[str] = []
        for alias in self.aliases:
            terms.extend(alias.terms)
        return terms

    def prepare_package(self, exporter: IPortfolioExporter) -> None:
        format_class = self._check_format(exporter)
        fmt = exporter.format
        content = entry_content(
            self.store, self.files, self.cm, self.glossary, self.entry, self.alias_terms, fmt
        )
        filename = clean_filename(self.entry.concept) + ".html"

        if format_class == ExportFormat.PLAINHTML:
            exporter.write_new_file(content, filename, binary=False)

        elif format_class == ExportFormat.RICHHTML:
            for file in self.multifiles:
                exporter.copy_existing_file(file)
            exporter.write_new_file(content, filename, binary=False)

        else:
            writer = fmt.leap2a_writer(self.user)
            leap_entry = self._leap2a_entry(self.entry, content)
            if self.multifiles:
                writer.link_files(
                    leap_entry, self.multifiles,
                    id_prefix=f"glossaryentry{self.entry.id}file",
                    file_directory=fmt.file_directory
                )
                for file in self.multifiles:
                    exporter.copy_existing_file(file)
            for link in self.categories:
                leap_entry.add_category(link.name)
            writer.add_entry(leap_entry)
            filename = fmt.manifest_name()
            exporter.write_new_file(writer.to_xml(), filename, binary=True)

        logger.info(f"Glossary entry {self.entry.id} exported as {format_class.value}: {filename}")
