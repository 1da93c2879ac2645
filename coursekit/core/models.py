"""
Core Data Models
================

Typed records for the glossary and lesson tables of the host schema.

Rows travel through the record store as flat ``Dict[str, Any]`` mappings;
the flows convert them into these dataclasses at the boundary so field
access is explicit. Lesson records keep any column they do not name in
``extra`` so a restore carries every backup field through to the insert.
"""
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar


# ============================================================================
# CONSTANTS
# ============================================================================

GLOSSARY_COMPONENT = "mod_glossary"
LESSON_COMPONENT = "mod_lesson"

# Pseudo-URL prefix stored in rich text fields for embedded files.
PLUGINFILE_PLACEHOLDER = "@@PLUGINFILE@@"

CAP_GLOSSARY_EXPORT = "mod/glossary:export"
CAP_GLOSSARY_EXPORT_ENTRY = "mod/glossary:exportentry"
CAP_GLOSSARY_EXPORT_OWN_ENTRY = "mod/glossary:exportownentry"


# ============================================================================
# ENUMS
# ============================================================================

class TextFormat(IntEnum):
    """Storage format of a rich text field."""
    MOODLE = 0
    HTML = 1
    PLAIN = 2
    MARKDOWN = 4

    @classmethod
    def coerce(cls, value: Any) -> 'TextFormat':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.MOODLE


class ExportFormat(Enum):
    """Portfolio format classes an exporter can be configured with."""
    SPREADSHEET = "spreadsheet"
    LEAP2A = "leap2a"
    RICHHTML = "richhtml"
    PLAINHTML = "plainhtml"


class ExpectedTime(IntEnum):
    """Coarse export cost estimate shown to the user before exporting."""
    LOW = 1
    MODERATE = 2
    HIGH = 3


# ============================================================================
# HELPERS
# ============================================================================

T = TypeVar('T')


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _field_names(cls: type) -> List[str]:
    return [f.name for f in fields(cls)]


def timestamp_to_iso(timestamp: int) -> str:
    """Convert a unix timestamp to an ISO 8601 UTC string."""
    return datetime.fromtimestamp(int(timestamp or 0), tz=timezone.utc).isoformat()


# ============================================================================
# GLOSSARY RECORDS
# ============================================================================

@dataclass
class CourseModule:
    """An activity instance placed in a course."""
    id: int
    course: int
    modulename: str
    instance: int
    contextid: int
    name: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'CourseModule':
        return cls(
            id=_to_int(row.get('id')),
            course=_to_int(row.get('course')),
            modulename=row.get('modulename') or "",
            instance=_to_int(row.get('instance')),
            contextid=_to_int(row.get('contextid')),
            name=row.get('name') or "",
        )


@dataclass
class Glossary:
    id: int
    course: int
    name: str
    intro: str = ""
    mainglossary: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Glossary':
        return cls(
            id=_to_int(row.get('id')),
            course=_to_int(row.get('course')),
            name=row.get('name') or "",
            intro=row.get('intro') or "",
            mainglossary=bool(_to_int(row.get('mainglossary'))),
        )


@dataclass
class GlossaryEntry:
    """A single glossary headword with its definition."""
    id: int
    glossaryid: int
    userid: int
    concept: str
    definition: str = ""
    definitionformat: TextFormat = TextFormat.MOODLE
    definitiontrust: bool = False
    sourceglossaryid: int = 0
    approved: bool = True
    timecreated: int = 0
    timemodified: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'GlossaryEntry':
        return cls(
            id=_to_int(row.get('id')),
            glossaryid=_to_int(row.get('glossaryid')),
            userid=_to_int(row.get('userid')),
            concept=row.get('concept') or "",
            definition=row.get('definition') or "",
            definitionformat=TextFormat.coerce(row.get('definitionformat')),
            definitiontrust=bool(_to_int(row.get('definitiontrust'))),
            sourceglossaryid=_to_int(row.get('sourceglossaryid')),
            approved=bool(_to_int(row.get('approved'), 1)),
            timecreated=_to_int(row.get('timecreated')),
            timemodified=_to_int(row.get('timemodified')),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['definitionformat'] = int(self.definitionformat)
        return data


@dataclass
class GlossaryAlias:
    id: int
    entryid: int
    alias: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'GlossaryAlias':
        return cls(
            id=_to_int(row.get('id')),
            entryid=_to_int(row.get('entryid')),
            alias=row.get('alias') or "",
        )

    @property
    def terms(self) -> List[str]:
        """The alias value split on commas; one row may hold several."""
        return [part.strip() for part in self.alias.split(',') if part.strip()]


@dataclass
class GlossaryCategoryLink:
    entryid: int
    name: str


@dataclass
class UserRecord:
    id: int
    firstname: str = ""
    lastname: str = ""
    email: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'UserRecord':
        return cls(
            id=_to_int(row.get('id')),
            firstname=row.get('firstname') or "",
            lastname=row.get('lastname') or "",
            email=row.get('email') or "",
        )

    @property
    def fullname(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


@dataclass
class StoredFile:
    """
    A file bound to (context, component, filearea, itemid).

    Content is fetched lazily through ``content_loader`` so listing an area
    never reads file bodies.
    """
    id: int
    contextid: int
    component: str
    filearea: str
    itemid: int
    filename: str
    filepath: str = "/"
    mimetype: str = "application/octet-stream"
    filesize: int = 0
    contenthash: str = ""
    userid: int = 0
    timecreated: int = 0
    timemodified: int = 0
    content_loader: Optional[Callable[[], bytes]] = field(default=None, repr=False, compare=False)

    @property
    def is_directory(self) -> bool:
        return self.filename == "."

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith("image/")

    def get_content(self) -> bytes:
        if self.content_loader is None:
            return b""
        return self.content_loader()


def package_file_path(file_directory: str, file: StoredFile) -> str:
    """
    Path of a bundled file inside an export package.

    Files are grouped per item id so equally named files of different
    entries never share a path. Without a file directory the bare filename
    is used.
    """
    if not file_directory:
        return file.filename
    return f"{file_directory}{file.itemid}/{file.filename}"


# ============================================================================
# LESSON RECORDS
# ============================================================================

LR = TypeVar('LR', bound='LessonRecord')


@dataclass
class LessonRecord:
    """
    Base for lesson table records.

    Subclasses declare the id and foreign-key fields; every other backup
    column lands in ``extra`` and is written back by ``to_row``.
    """
    id: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_backup(cls: Type[LR], data: Dict[str, Any]) -> LR:
        known = {name for name in _field_names(cls) if name != 'extra'}
        kwargs = {name: _to_int(data.get(name)) for name in known if name in data}
        extra = {key: value for key, value in data.items() if key not in known}
        return cls(extra=extra, **kwargs)

    def to_row(self) -> Dict[str, Any]:
        row = dict(self.extra)
        for name in _field_names(self.__class__):
            if name in ('id', 'extra'):
                continue
            row[name] = getattr(self, name)
        return row


@dataclass
class Lesson(LessonRecord):
    course: int = 0
    available: int = 0
    deadline: int = 0


@dataclass
class LessonPage(LessonRecord):
    lessonid: int = 0
    prevpageid: int = 0
    nextpageid: int = 0


@dataclass
class LessonAnswer(LessonRecord):
    lessonid: int = 0
    pageid: int = 0

    @classmethod
    def from_backup(cls, data: Dict[str, Any]) -> 'LessonAnswer':
        data = dict(data)
        # The backup names the column answer_text; the table calls it answer.
        if 'answer_text' in data:
            data['answer'] = data.pop('answer_text')
        return super().from_backup(data)


@dataclass
class LessonAttempt(LessonRecord):
    lessonid: int = 0
    pageid: int = 0
    answerid: int = 0
    userid: int = 0


@dataclass
class LessonGrade(LessonRecord):
    lessonid: int = 0
    userid: int = 0


@dataclass
class LessonBranch(LessonRecord):
    lessonid: int = 0
    pageid: int = 0
    userid: int = 0


@dataclass
class LessonHighscore(LessonRecord):
    lessonid: int = 0
    userid: int = 0
    gradeid: int = 0


@dataclass
class LessonTimer(LessonRecord):
    lessonid: int = 0
    userid: int = 0


@dataclass
class BackupFile:
    """A file shipped inside a backup, still keyed by old ids."""
    contextid: int
    component: str
    filearea: str
    itemid: int
    filename: str
    content: bytes = b""
    filepath: str = "/"
    mimetype: str = "application/octet-stream"
    userid: int = 0
    timecreated: int = 0
    timemodified: int = 0
