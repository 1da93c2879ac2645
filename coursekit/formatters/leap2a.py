"""
Leap2A portable-record export format.

Leap2A is an Atom feed profile: every exported item is an ``<entry>`` typed
with ``rdf:type``, related items are joined with ``<link>`` elements and
plain tags are ``<category>`` elements. Entry ids are written with the
``portfolio:`` prefix, a namespace declared on the feed root.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from xml.etree import ElementTree as ET
import logging

from ..core.exceptions import ExportError
from ..core.interfaces import IExportFormat
from ..core.models import ExportFormat, StoredFile, UserRecord, package_file_path, timestamp_to_iso
from ..utils.text import s


logger = logging.getLogger(__name__)


ATOM_NS = "http://www.w3.org/2005/Atom"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
LEAP2_NS = "http://terms.leapspecs.org/"
CATEGORIES_NS = "http://wiki.leapspecs.org/2A/categories"
LEAP2A_VERSION = "http://www.leapspecs.org/2010-07/2A/"

ET.register_namespace('', ATOM_NS)
ET.register_namespace('rdf', RDF_NS)
ET.register_namespace('leap2', LEAP2_NS)

ENTRY_TYPES = frozenset({
    'entry', 'resource', 'selection', 'activity', 'ability', 'achievement',
    'affiliation', 'meeting', 'plan', 'person', 'organization', 'publication',
})

FILE_ID_PREFIX = "file"


def _atom(tag: str) -> str:
    return f"{{{ATOM_NS}}}{tag}"


@dataclass
class Leap2AEntry:
    """One Leap2A entry before serialization."""
    id: str
    title: str
    type: str
    content: str = ""
    content_type: str = "html"
    author: Optional[UserRecord] = None
    published: Optional[int] = None
    updated: Optional[int] = None
    summary: str = ""
    categories: List[Tuple[str, str, str]] = field(default_factory=list)
    links: List[Tuple[str, str, Optional[int]]] = field(default_factory=list)
    enclosure: Optional[str] = None

    def __post_init__(self):
        if self.type not in ENTRY_TYPES:
            raise ExportError(f"Invalid leap2a entry type: {self.type}", entry_id=self.id)

    def add_category(self, term: str, scheme: str = "", label: str = "") -> None:
        """Attach a category; without a scheme it is a plain tag."""
        term = term.strip()
        if term:
            self.categories.append((term, scheme, label))

    def add_link(self, target: str, rel: str, display_order: Optional[int] = None) -> None:
        target_id = target.id if isinstance(target, Leap2AEntry) else target
        self.links.append((target_id, rel, display_order))

    def to_element(self, now: str) -> ET.Element:
        entry = ET.Element(_atom('entry'))
        ET.SubElement(entry, _atom('title')).text = self.title
        ET.SubElement(entry, _atom('id')).text = f"portfolio:{self.id}"
        ET.SubElement(entry, _atom('updated')).text = (
            timestamp_to_iso(self.updated) if self.updated else now
        )
        if self.published:
            ET.SubElement(entry, _atom('published')).text = timestamp_to_iso(self.published)

        content = ET.SubElement(entry, _atom('content'), {'type': self.content_type})
        content.text = self.content
        if self.summary:
            ET.SubElement(entry, _atom('summary')).text = self.summary

        if self.author is not None:
            _author_element(entry, self.author)

        ET.SubElement(entry, f"{{{RDF_NS}}}type", {f"{{{RDF_NS}}}resource": f"leap2:{self.type}"})

        for term, scheme, label in self.categories:
            attrs = {'term': term}
            if scheme:
                attrs['scheme'] = f"categories:{scheme}#"
            if label:
                attrs['label'] = label
            ET.SubElement(entry, _atom('category'), attrs)

        if self.enclosure:
            ET.SubElement(entry, _atom('link'), {'rel': 'enclosure', 'href': self.enclosure})

        for target_id, rel, display_order in self.links:
            attrs = {'rel': rel, 'href': f"portfolio:{target_id}"}
            if display_order is not None:
                attrs[f"{{{LEAP2_NS}}}display_order"] = str(display_order)
            ET.SubElement(entry, _atom('link'), attrs)

        return entry


def _author_element(parent: ET.Element, user: UserRecord) -> ET.Element:
    author = ET.SubElement(parent, _atom('author'))
    ET.SubElement(author, _atom('name')).text = user.fullname
    if user.email:
        ET.SubElement(author, _atom('email')).text = user.email
    ET.SubElement(author, _atom('uri')).text = f"portfolio:user{user.id}"
    return author


class Leap2AWriter:
    """Collects entries for one export and serializes them as a feed."""

    def __init__(self, wwwroot: str, user: Optional[UserRecord] = None, export_id: str = ""):
        self.wwwroot = wwwroot.rstrip('/')
        self.user = user
        self.export_id = export_id
        self.entries: Dict[str, Leap2AEntry] = {}

    def add_entry(self, entry: Leap2AEntry) -> Leap2AEntry:
        if entry.id in self.entries:
            raise ExportError(f"Duplicate leap2a entry id: {entry.id}", entry_id=entry.id)
        self.entries[entry.id] = entry
        return entry

    def link_files(
        self,
        entry: Leap2AEntry,
        files: Sequence[StoredFile],
        id_prefix: str = FILE_ID_PREFIX,
        file_directory: str = "files/"
    ) -> List[Leap2AEntry]:
        """
        Add a resource entry per file and link it to ``entry`` both ways.

        Returns:
            The created file entries
        """
        created = []
        for file in files:
            file_entry = Leap2AEntry(
                id=f"{id_prefix}{file.id}",
                title=file.filename,
                type='resource',
                author=self.user,
                published=file.timecreated or None,
                updated=file.timemodified or None,
                enclosure=package_file_path(file_directory, file),
            )
            file_entry.add_category('Offline', 'resource_type')
            self.add_entry(file_entry)
            entry.add_link(file_entry, 'related')
            file_entry.add_link(entry, 'related')
            created.append(file_entry)
        return created

    def make_selection(self, selection: Leap2AEntry, ids: Sequence[str], selection_type: str) -> None:
        """
        Group existing entries under a selection entry.

        Raises:
            ExportError: If ``selection`` is not a selection entry or an id is unknown
        """
        if selection.type != 'selection':
            raise ExportError(
                f"Cannot make a selection from a {selection.type} entry",
                entry_id=selection.id
            )
        for order, entry_id in enumerate(ids, start=1):
            if entry_id not in self.entries:
                raise ExportError(f"Selection refers to unknown entry {entry_id}", entry_id=entry_id)
            selection.add_link(entry_id, 'leap2:has_part', order)
            self.entries[entry_id].add_link(selection, 'leap2:is_part_of', order)
        selection.add_category(selection_type, 'selection_type')

    def to_xml(self) -> str:
        now = datetime.now(timezone.utc).isoformat()
        feed = ET.Element(_atom('feed'))
        feed.set('xmlns:categories', CATEGORIES_NS)
        feed.set('xmlns:portfolio', f"{self.wwwroot}/export/{self.export_id}/")

        ET.SubElement(feed, f"{{{LEAP2_NS}}}version").text = LEAP2A_VERSION
        ET.SubElement(feed, _atom('id')).text = f"{self.wwwroot}/portfolio/export/leap2a/{self.export_id}/"
        title = "Leap2A export"
        if self.user is not None:
            title = f"Leap2A export of data for {self.user.fullname}"
            _author_element(feed, self.user)
        ET.SubElement(feed, _atom('title')).text = title
        ET.SubElement(feed, _atom('updated')).text = now
        ET.SubElement(feed, _atom('generator'), {'uri': 'https://pypi.org/project/coursekit/'}).text = "coursekit"

        for entry in self.entries.values():
            feed.append(entry.to_element(now))

        logger.debug(f"Serialized leap2a feed with {len(self.entries)} entries")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(feed, encoding='unicode')


class Leap2AFormat(IExportFormat):
    """Leap2A feed with files bundled under ``files/``."""

    def __init__(self, wwwroot: str = "http://localhost", manifest: str = "leap2a.xml", export_id: str = ""):
        self.wwwroot = wwwroot
        self.manifest = manifest
        self.export_id = export_id

    @property
    def format_class(self) -> ExportFormat:
        return ExportFormat.LEAP2A

    @property
    def file_directory(self) -> str:
        return "files/"

    def file_output(self, file: StoredFile) -> str:
        path = self.package_path(file)
        if file.is_image:
            return f'<img src="{s(path)}" alt="{s(file.filename)}" />'
        return f'<a rel="enclosure" href="{s(path)}">{s(file.filename)}</a>'

    def manifest_name(self) -> str:
        return self.manifest

    def leap2a_writer(self, user: Optional[UserRecord] = None) -> Leap2AWriter:
        return Leap2AWriter(self.wwwroot, user, self.export_id)
