"""
Lesson restore step.

Walks a lesson activity backup in document order and inserts the lesson,
its pages, answers and (with user data) attempts, grades, branches, high
scores and timers, translating every foreign key through the run's
``IdMapping``. Parents always precede their children in the document, so a
child's parent is mapped by the time the child is processed.

Pages form a doubly-linked list through ``prevpageid``/``nextpageid``. A
page's next page has no id yet when the page is inserted, so each insert
also patches the ``nextpageid`` of the page before it.
"""
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
import logging

from ..core.interfaces import IFileStorage, IRecordStore
from ..core.models import (
    LESSON_COMPONENT,
    BackupFile,
    Lesson,
    LessonAnswer,
    LessonAttempt,
    LessonBranch,
    LessonGrade,
    LessonHighscore,
    LessonPage,
    LessonTimer,
)
from ..parsers.backup_parser import BackupDocument
from ..utils.config_manager import get_config
from .mapping import USER_ITEM_TYPE, IdMapping


logger = logging.getLogger(__name__)


def _default_userinfo() -> bool:
    return get_config().restore.include_userinfo


@dataclass
class RestoreSettings:
    """Target of one activity restore."""
    course_id: int
    module_id: int
    context_id: int
    date_offset: int = 0
    userinfo: bool = field(default_factory=_default_userinfo)


@dataclass
class PathElement:
    """A backup element path handled by ``process_<name>``."""
    name: str
    path: str


@dataclass
class _PageNode:
    id: int
    prevpageid: int = 0
    nextpageid: int = 0


class PageArena:
    """Pages inserted during the run, per lesson, in document order."""

    def __init__(self):
        self._nodes: Dict[int, _PageNode] = {}
        self._order: Dict[int, List[int]] = {}

    def add(self, lessonid: int, page_id: int, prevpageid: int) -> Optional[_PageNode]:
        """
        Register a new page and link it after ``prevpageid``.

        Returns:
            The previous page node when it belongs to the same lesson and
            now points at the new page, else None
        """
        self._nodes[page_id] = _PageNode(id=page_id, prevpageid=prevpageid)
        self._order.setdefault(lessonid, []).append(page_id)

        previous = self._nodes.get(prevpageid) if prevpageid else None
        if previous is None or prevpageid not in self._order[lessonid]:
            return None
        previous.nextpageid = page_id
        return previous

    def pages(self, lessonid: int) -> List[int]:
        return list(self._order.get(lessonid, []))


# Backup area -> item type whose mapping translates the file item id
FILE_AREAS = {
    'mediafile': 'lesson',
    'page_contents': 'lesson_page',
}


class LessonRestoreStep:
    """Restores one lesson activity from its backup document."""

    def __init__(self, store: IRecordStore, files: IFileStorage, settings: RestoreSettings):
        self.store = store
        self.files = files
        self.settings = settings
        self.pages = PageArena()
        self.lessonid: Optional[int] = None
        self.counts: Counter = Counter()

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def define_structure(self) -> List[PathElement]:
        paths = [
            PathElement('lesson', '/activity/lesson'),
            PathElement('lesson_page', '/activity/lesson/pages/page'),
            PathElement('lesson_answer', '/activity/lesson/pages/page/answers/answer'),
        ]
        if self.settings.userinfo:
            paths += [
                PathElement('lesson_attempt', '/activity/lesson/pages/page/answers/answer/attempts/attempt'),
                PathElement('lesson_grade', '/activity/lesson/grades/grade'),
                PathElement('lesson_branch', '/activity/lesson/pages/page/branches/branch'),
                PathElement('lesson_highscore', '/activity/lesson/highscores/highscore'),
                PathElement('lesson_timer', '/activity/lesson/timers/timer'),
            ]
        return paths

    def _processor(self, name: str) -> Callable[[Dict[str, Any], IdMapping], None]:
        return getattr(self, f"process_{name}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def apply_date_offset(self, value: Any) -> Any:
        """Shift a timestamp by the course date offset; 0 and empty mean "not set"."""
        if not value or str(value) == "0":
            return value
        return int(value) + self.settings.date_offset

    def apply_activity_instance(self, new_id: int) -> None:
        """Point the restored course module at the new lesson."""
        self.store.update_record('course_modules', {'id': self.settings.module_id, 'instance': new_id})
        logger.debug(f"Course module {self.settings.module_id} bound to lesson {new_id}")

    def _insert(self, table: str, row: Dict[str, Any]) -> int:
        new_id = self.store.insert_record(table, row)
        self.counts[table] += 1
        return new_id

    # ------------------------------------------------------------------
    # Node processing
    # ------------------------------------------------------------------

    def process_lesson(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        lesson = Lesson.from_backup(data)
        old_id = lesson.id
        lesson.course = self.settings.course_id
        lesson.available = self.apply_date_offset(lesson.available)
        lesson.deadline = self.apply_date_offset(lesson.deadline)

        new_id = self._insert('lesson', lesson.to_row())
        mapping.set_mapping('lesson', old_id, new_id)
        self.lessonid = new_id
        self.apply_activity_instance(new_id)

    def process_lesson_page(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        page = LessonPage.from_backup(data)
        old_id = page.id
        page.lessonid = mapping.get_new_parent_id('lesson')

        old_prev = page.prevpageid
        page.prevpageid = mapping.get_mapping('lesson_page', old_prev, 0) if old_prev else 0
        if old_prev and not page.prevpageid:
            logger.warning(f"Page {old_id} follows unknown page {old_prev}; restoring it as a first page")
        # The next page has no id yet; it is patched in when that page arrives.
        page.nextpageid = 0

        new_id = self._insert('lesson_pages', page.to_row())
        mapping.set_mapping('lesson_page', old_id, new_id)

        previous = self.pages.add(page.lessonid, new_id, page.prevpageid)
        if previous is not None:
            self.store.update_record('lesson_pages', {'id': previous.id, 'nextpageid': new_id})

    def process_lesson_answer(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        answer = LessonAnswer.from_backup(data)
        old_id = answer.id
        answer.lessonid = mapping.get_new_parent_id('lesson')
        answer.pageid = mapping.get_new_parent_id('lesson_page')

        new_id = self._insert('lesson_answers', answer.to_row())
        mapping.set_mapping('lesson_answer', old_id, new_id)

    def process_lesson_attempt(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        attempt = LessonAttempt.from_backup(data)
        attempt.lessonid = mapping.get_new_parent_id('lesson')
        attempt.pageid = mapping.get_new_parent_id('lesson_page')
        attempt.answerid = mapping.get_new_parent_id('lesson_answer')
        attempt.userid = mapping.get_mapping_id(USER_ITEM_TYPE, attempt.userid)

        self._insert('lesson_attempts', attempt.to_row())

    def process_lesson_grade(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        grade = LessonGrade.from_backup(data)
        old_id = grade.id
        grade.lessonid = mapping.get_new_parent_id('lesson')
        grade.userid = mapping.get_mapping_id(USER_ITEM_TYPE, grade.userid)

        new_id = self._insert('lesson_grades', grade.to_row())
        mapping.set_mapping('lesson_grade', old_id, new_id)

    def process_lesson_branch(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        branch = LessonBranch.from_backup(data)
        old_id = branch.id
        branch.lessonid = mapping.get_new_parent_id('lesson')
        branch.pageid = mapping.get_new_parent_id('lesson_page')
        branch.userid = mapping.get_mapping_id(USER_ITEM_TYPE, branch.userid)

        new_id = self._insert('lesson_branch', branch.to_row())
        mapping.set_mapping('lesson_branch', old_id, new_id)

    def process_lesson_highscore(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        highscore = LessonHighscore.from_backup(data)
        highscore.lessonid = mapping.get_new_parent_id('lesson')
        highscore.userid = mapping.get_mapping_id(USER_ITEM_TYPE, highscore.userid)
        highscore.gradeid = mapping.get_mapping_id('lesson_grade', highscore.gradeid)

        self._insert('lesson_high_scores', highscore.to_row())

    def process_lesson_timer(self, data: Dict[str, Any], mapping: IdMapping) -> None:
        timer = LessonTimer.from_backup(data)
        timer.lessonid = mapping.get_new_parent_id('lesson')
        timer.userid = mapping.get_mapping_id(USER_ITEM_TYPE, timer.userid)

        self._insert('lesson_timer', timer.to_row())

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def after_execute(self, backup_files: Sequence[BackupFile], mapping: IdMapping) -> int:
        """
        Restore the lesson's files into the new module context.

        ``mediafile`` files are keyed by lesson id and ``page_contents`` files
        by page id; item id 0 is not a record key and is kept. Files whose
        item was not restored are skipped.

        Returns:
            Number of files restored
        """
        restored = 0
        for backup_file in backup_files:
            item_type = FILE_AREAS.get(backup_file.filearea)
            if backup_file.component != LESSON_COMPONENT or item_type is None:
                continue

            if backup_file.itemid:
                new_itemid = mapping.get_mapping(item_type, backup_file.itemid)
                if new_itemid is None:
                    logger.debug(
                        f"Skipping file {backup_file.filename}: {item_type} "
                        f"{backup_file.itemid} was not restored"
                    )
                    continue
            else:
                new_itemid = 0

            self.files.create_file({
                'contextid': self.settings.context_id,
                'component': LESSON_COMPONENT,
                'filearea': backup_file.filearea,
                'itemid': new_itemid,
                'filepath': backup_file.filepath,
                'filename': backup_file.filename,
                'mimetype': backup_file.mimetype,
                'userid': mapping.get_mapping(USER_ITEM_TYPE, backup_file.userid, 0),
                'timecreated': backup_file.timecreated,
                'timemodified': backup_file.timemodified,
            }, backup_file.content)
            restored += 1

        self.counts['files'] += restored
        return restored

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(
        self,
        document: BackupDocument,
        mapping: Optional[IdMapping] = None,
        backup_files: Sequence[BackupFile] = ()
    ) -> IdMapping:
        """
        Restore the lesson in ``document`` as one unit of work.

        Args:
            document: Parsed activity backup
            mapping: Id mapping to extend; a new one is created when omitted
            backup_files: Files shipped with the backup, still keyed by old ids

        Returns:
            The id mapping of the run

        Raises:
            RestoreError: Missing or duplicate mapping; nothing is kept
            StorageError: An insert failed; nothing is kept
        """
        mapping = mapping if mapping is not None else IdMapping()
        paths = {element.path: element.name for element in self.define_structure()}

        logger.info(
            f"Restoring lesson from {document.source} into course {self.settings.course_id} "
            f"(userinfo={self.settings.userinfo})"
        )

        with self.store.transaction():
            for node in document.walk(paths):
                mapping.enter_node(node.path)
                self._processor(node.name)(node.data, mapping)
                mapping.push_parent(node.path, node.name, node.old_id)

            self.after_execute(backup_files, mapping)

        summary = ", ".join(f"{table}={count}" for table, count in sorted(self.counts.items()))
        logger.info(f"Lesson restore complete: {summary}")
        if self.lessonid is not None:
            logger.debug(f"Lesson {self.lessonid} page order: {self.pages.pages(self.lessonid)}")
        return mapping


def restore_lesson_activity(
    source: Union[bytes, str, Path],
    store: IRecordStore,
    files: IFileStorage,
    settings: RestoreSettings,
    users: Optional[Mapping[int, int]] = None,
    backup_files: Sequence[BackupFile] = ()
) -> IdMapping:
    """
    Parse a lesson backup document and restore it.

    Args:
        source: Backup XML as bytes, or a path to the XML file
        store: Target record store
        files: Target file storage
        settings: Target course, module and context
        users: Old user id -> new user id
        backup_files: Files shipped with the backup

    Returns:
        The id mapping of the run
    """
    if isinstance(source, bytes):
        document = BackupDocument.from_bytes(source)
    else:
        document = BackupDocument.from_file(source)

    step = LessonRestoreStep(store, files, settings)
    return step.execute(document, IdMapping(users), backup_files)
