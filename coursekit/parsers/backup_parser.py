"""
Backup document parser.

An activity backup is one XML document rooted at ``<activity>``. Each record
is an element carrying its old id as an ``id`` attribute and its columns as
leaf child elements; child records sit inside plural container elements::

    <activity id="3" moduleid="12" modulename="lesson" contextid="40">
      <lesson id="3">
        <name>Intro</name>
        <pages>
          <page id="7"><prevpageid>0</prevpageid>...</page>
        </pages>
      </lesson>
    </activity>

SECURITY: documents come from uploaded archives, so they are parsed with
defusedxml to refuse entity expansion and external references.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Set, Union
from xml.etree import ElementTree as ET
import logging

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from ..core.exceptions import BackupFormatError


logger = logging.getLogger(__name__)

ROOT_PATH = "/activity"


@dataclass
class BackupNode:
    """A registered element reached during the walk."""
    path: str
    name: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def old_id(self) -> int:
        try:
            return int(self.data.get('id') or 0)
        except (TypeError, ValueError):
            return 0


def _container_paths(paths: Mapping[str, str]) -> Set[str]:
    """Every strict ancestor path of a registered path."""
    containers = set()
    for path in paths:
        parts = path.strip('/').split('/')
        for depth in range(1, len(parts)):
            containers.add('/' + '/'.join(parts[:depth]))
    return containers


class BackupDocument:
    """A parsed activity backup."""

    def __init__(self, root: ET.Element, source: str = "<bytes>"):
        if root.tag != ROOT_PATH.strip('/'):
            raise BackupFormatError(
                f"Expected <activity> root element, found <{root.tag}>", source=source
            )
        self.root = root
        self.source = source

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'BackupDocument':
        path = Path(path)
        if not path.is_file():
            raise BackupFormatError(f"Backup document not found: {path}", source=str(path))

        try:
            tree = DefusedET.parse(path)
        except (ET.ParseError, DefusedXmlException) as e:
            raise BackupFormatError(f"Failed to parse backup document: {e}", source=str(path)) from e

        logger.info(f"Parsed backup document {path.name}")
        return cls(tree.getroot(), source=str(path))

    @classmethod
    def from_bytes(cls, data: Union[bytes, str], source: str = "<bytes>") -> 'BackupDocument':
        try:
            root = DefusedET.fromstring(data)
        except (ET.ParseError, DefusedXmlException) as e:
            raise BackupFormatError(f"Failed to parse backup document: {e}", source=source) from e
        return cls(root, source=source)

    @property
    def activity(self) -> Dict[str, Any]:
        """Attributes of the ``<activity>`` root (old activity, module and context ids)."""
        info: Dict[str, Any] = dict(self.root.attrib)
        for key in ('id', 'moduleid', 'contextid'):
            if key in info:
                try:
                    info[key] = int(info[key])
                except ValueError:
                    raise BackupFormatError(
                        f"Non-numeric activity attribute {key}={info[key]!r}", source=self.source
                    )
        return info

    def walk(self, paths: Mapping[str, str]) -> Iterator[BackupNode]:
        """
        Yield registered elements in document order.

        Args:
            paths: Element path -> element name, e.g.
                   ``{'/activity/lesson': 'lesson'}``

        Yields:
            BackupNode with the element's attributes plus the text of its
            leaf children. Container elements are never part of the data.
        """
        containers = _container_paths(paths)
        yield from self._walk(self.root, ROOT_PATH, paths, containers)

    def _walk(
        self,
        element: ET.Element,
        path: str,
        paths: Mapping[str, str],
        containers: Set[str]
    ) -> Iterator[BackupNode]:
        name: Optional[str] = paths.get(path)
        if name is not None:
            yield BackupNode(path=path, name=name, data=self._element_data(element, path, containers))

        for child in element:
            child_path = f"{path}/{child.tag}"
            if child_path in paths or child_path in containers:
                yield from self._walk(child, child_path, paths, containers)

    @staticmethod
    def _element_data(element: ET.Element, path: str, containers: Set[str]) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(element.attrib)
        for child in element:
            if len(child) or f"{path}/{child.tag}" in containers:
                continue
            data[child.tag] = child.text if child.text is not None else ""
        return data
