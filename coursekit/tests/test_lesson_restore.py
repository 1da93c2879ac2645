"""
Tests for restoring a lesson activity from its backup document.
"""
import logging

import pytest

from coursekit.core.exceptions import DuplicateMappingError, MissingMappingError
from coursekit.core.models import LESSON_COMPONENT, BackupFile
from coursekit.parsers import BackupDocument
from coursekit.restore import (
    IdMapping,
    LessonRestoreStep,
    PageArena,
    RestoreSettings,
    restore_lesson_activity,
)


USER_TABLES = ['lesson_attempts', 'lesson_grades', 'lesson_branch', 'lesson_high_scores', 'lesson_timer']


def settings_for(target, userinfo=True, date_offset=0):
    return RestoreSettings(
        course_id=target.course_id,
        module_id=target.cm_id,
        context_id=target.contextid,
        date_offset=date_offset,
        userinfo=userinfo,
    )


def restore(store, file_storage, target, backup, **kwargs):
    backup_files = kwargs.pop('backup_files', ())
    return restore_lesson_activity(
        backup, store, file_storage, settings_for(target, **kwargs),
        users=target.users, backup_files=backup_files
    )


# ============================================================================
# ID MAPPING
# ============================================================================

class TestIdMapping:

    def test_set_and_get(self):
        mapping = IdMapping()
        mapping.set_mapping('lesson', 11, 1)

        assert mapping.get_mapping('lesson', 11) == 1
        assert mapping.get_mapping_id('lesson', 11) == 1
        assert mapping.get_mapping('lesson', 12) is None
        assert mapping.get_mapping('lesson', 12, 0) == 0
        assert mapping.mapped_ids('lesson') == {11: 1}

    def test_missing_mapping(self):
        with pytest.raises(MissingMappingError) as exc_info:
            IdMapping().get_mapping_id('lesson_grade', 5)
        assert exc_info.value.item_type == 'lesson_grade'
        assert exc_info.value.old_id == 5

    def test_mapping_is_write_once(self):
        mapping = IdMapping()
        mapping.set_mapping('lesson_page', 1, 10)
        with pytest.raises(DuplicateMappingError):
            mapping.set_mapping('lesson_page', 1, 11)

    def test_users_are_preloaded(self):
        mapping = IdMapping({901: 3})
        assert mapping.get_mapping_id('user', 901) == 3

    def test_new_parent_id_follows_current_path(self):
        mapping = IdMapping()
        mapping.set_mapping('lesson', 1, 100)
        mapping.set_mapping('lesson_page', 7, 700)
        mapping.set_mapping('lesson_page', 8, 800)

        mapping.enter_node('/activity/lesson')
        mapping.push_parent('/activity/lesson', 'lesson', 1)
        mapping.enter_node('/activity/lesson/pages/page')
        mapping.push_parent('/activity/lesson/pages/page', 'lesson_page', 7)
        mapping.enter_node('/activity/lesson/pages/page/answers/answer')
        assert mapping.get_new_parent_id('lesson_page') == 700

        mapping.enter_node('/activity/lesson/pages/page')
        mapping.push_parent('/activity/lesson/pages/page', 'lesson_page', 8)
        mapping.enter_node('/activity/lesson/pages/page/answers/answer')
        assert mapping.get_new_parent_id('lesson_page') == 800
        assert mapping.get_new_parent_id('lesson') == 100

        mapping.enter_node('/activity/lesson/grades/grade')
        with pytest.raises(MissingMappingError):
            mapping.get_new_parent_id('lesson_page')


class TestPageArena:

    def test_links_pages_in_order(self):
        arena = PageArena()

        assert arena.add(1, 10, 0) is None
        previous = arena.add(1, 11, 10)
        assert previous.id == 10
        assert previous.nextpageid == 11
        assert arena.pages(1) == [10, 11]

    def test_does_not_link_across_lessons(self):
        arena = PageArena()
        arena.add(1, 10, 0)

        assert arena.add(2, 11, 10) is None


# ============================================================================
# RESTORE
# ============================================================================

class TestLessonRestore:

    def test_define_structure_with_userinfo(self, store, file_storage, lesson_target):
        step = LessonRestoreStep(store, file_storage, settings_for(lesson_target))
        names = [p.name for p in step.define_structure()]

        assert names == [
            'lesson', 'lesson_page', 'lesson_answer', 'lesson_attempt',
            'lesson_grade', 'lesson_branch', 'lesson_highscore', 'lesson_timer',
        ]

    def test_define_structure_without_userinfo(self, store, file_storage, lesson_target):
        step = LessonRestoreStep(store, file_storage, settings_for(lesson_target, userinfo=False))
        assert [p.name for p in step.define_structure()] == ['lesson', 'lesson_page', 'lesson_answer']

    def test_userinfo_defaults_to_config(self):
        settings = RestoreSettings(course_id=1, module_id=1, context_id=1)
        assert settings.userinfo is True

    def test_lesson_row(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup)

        lesson_id = mapping.get_mapping_id('lesson', 11)
        lesson = store.get_record('lesson', id=lesson_id)
        assert lesson['course'] == lesson_target.course_id
        assert lesson['name'] == 'Cells 101'
        assert lesson['mediafile'] == 'intro.mp4'
        assert lesson['timemodified'] == 1600000000

        cm = store.get_record('course_modules', id=lesson_target.cm_id)
        assert cm['instance'] == lesson_id

    def test_page_links(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup)

        p1, p2, p3 = (mapping.get_mapping_id('lesson_page', old) for old in (101, 102, 103))
        pages = {row['id']: row for row in store.get_records('lesson_pages')}

        assert (pages[p1]['prevpageid'], pages[p1]['nextpageid']) == (0, p2)
        assert (pages[p2]['prevpageid'], pages[p2]['nextpageid']) == (p1, p3)
        assert (pages[p3]['prevpageid'], pages[p3]['nextpageid']) == (p2, 0)
        assert {row['lessonid'] for row in pages.values()} == {mapping.get_mapping_id('lesson', 11)}
        assert pages[p1]['title'] == 'Welcome'
        assert pages[p1]['contents'] == '<p>Hello</p>'

    def test_answers(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup)

        answers = store.get_records('lesson_answers')
        assert [a['answer'] for a in answers] == ['Next', 'A unit of life', 'A prison room']
        assert answers[0]['pageid'] == mapping.get_mapping_id('lesson_page', 101)
        assert answers[1]['pageid'] == mapping.get_mapping_id('lesson_page', 102)
        assert answers[2]['pageid'] == mapping.get_mapping_id('lesson_page', 102)
        assert answers[0]['jumpto'] == -1
        assert mapping.mapped_ids('lesson_answer') == {
            201: answers[0]['id'], 202: answers[1]['id'], 203: answers[2]['id'],
        }

    def test_user_data(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup)
        lesson_id = mapping.get_mapping_id('lesson', 11)
        learner = lesson_target.learner

        attempt = store.get_record('lesson_attempts')
        assert attempt['lessonid'] == lesson_id
        assert attempt['pageid'] == mapping.get_mapping_id('lesson_page', 101)
        assert attempt['answerid'] == mapping.get_mapping_id('lesson_answer', 201)
        assert attempt['userid'] == learner

        grade = store.get_record('lesson_grades')
        assert (grade['lessonid'], grade['userid'], grade['grade']) == (lesson_id, learner, 87.5)

        branch = store.get_record('lesson_branch')
        assert branch['pageid'] == mapping.get_mapping_id('lesson_page', 101)
        assert branch['userid'] == learner

        highscore = store.get_record('lesson_high_scores')
        assert highscore['gradeid'] == grade['id']
        assert highscore['nickname'] == 'ada'

        timer = store.get_record('lesson_timer')
        assert (timer['lessonid'], timer['userid'], timer['lessontime']) == (lesson_id, learner, 1600000700)

    def test_without_userinfo(self, store, file_storage, lesson_target, lesson_backup):
        restore(store, file_storage, lesson_target, lesson_backup, userinfo=False)

        for table in USER_TABLES:
            assert store.count_records(table) == 0, table
        assert store.count_records('lesson') == 1
        assert store.count_records('lesson_pages') == 3
        assert store.count_records('lesson_answers') == 3

    def test_date_offset(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup, date_offset=500)

        lesson = store.get_record('lesson', id=mapping.get_mapping_id('lesson', 11))
        assert lesson['available'] == 1500
        # Unset dates stay unset.
        assert lesson['deadline'] == 0

    def test_apply_date_offset(self, store, file_storage, lesson_target):
        step = LessonRestoreStep(store, file_storage, settings_for(lesson_target, date_offset=10))

        assert step.apply_date_offset(0) == 0
        assert step.apply_date_offset('') == ''
        assert step.apply_date_offset(None) is None
        assert step.apply_date_offset('100') == 110

    def test_missing_user_mapping_rolls_back(self, store, file_storage, lesson_target, lesson_backup):
        lesson_target.users = {}

        with pytest.raises(MissingMappingError) as exc_info:
            restore(store, file_storage, lesson_target, lesson_backup)

        assert exc_info.value.item_type == 'user'
        for table in ['lesson', 'lesson_pages', 'lesson_answers'] + USER_TABLES:
            assert store.count_records(table) == 0, table
        assert store.get_record('course_modules', id=lesson_target.cm_id)['instance'] == 0

    def test_counts(self, store, file_storage, lesson_target, lesson_backup):
        step = LessonRestoreStep(store, file_storage, settings_for(lesson_target))
        step.execute(BackupDocument.from_bytes(lesson_backup), IdMapping(lesson_target.users))

        assert step.counts['lesson_pages'] == 3
        assert step.counts['lesson_answers'] == 3
        assert step.counts['lesson_attempts'] == 1

    def test_page_order_logged(self, store, file_storage, lesson_target, lesson_backup, caplog):
        step = LessonRestoreStep(store, file_storage, settings_for(lesson_target))

        with caplog.at_level(logging.DEBUG, logger="coursekit.restore"):
            mapping = step.execute(BackupDocument.from_bytes(lesson_backup), IdMapping(lesson_target.users))

        lesson_id = mapping.get_mapping_id('lesson', 11)
        page_ids = [mapping.get_mapping_id('lesson_page', old) for old in (101, 102, 103)]
        assert step.lessonid == lesson_id
        assert step.pages.pages(lesson_id) == page_ids
        assert f"Lesson {lesson_id} page order: {page_ids}" in caplog.text


class TestRestoreFiles:

    def backup_files(self):
        return [
            BackupFile(contextid=31, component=LESSON_COMPONENT, filearea='mediafile',
                       itemid=0, filename='intro.mp4', content=b"video"),
            BackupFile(contextid=31, component=LESSON_COMPONENT, filearea='page_contents',
                       itemid=102, filename='cell.png', content=b"png", userid=901),
            BackupFile(contextid=31, component=LESSON_COMPONENT, filearea='page_contents',
                       itemid=999, filename='orphan.png', content=b"lost"),
            BackupFile(contextid=31, component='mod_quiz', filearea='intro',
                       itemid=0, filename='other.txt', content=b"skip"),
        ]

    def test_files_bound_to_new_ids(self, store, file_storage, lesson_target, lesson_backup):
        mapping = restore(store, file_storage, lesson_target, lesson_backup, backup_files=self.backup_files())

        media = file_storage.get_area_files(lesson_target.contextid, LESSON_COMPONENT, 'mediafile')
        assert [(f.filename, f.itemid) for f in media] == [('intro.mp4', 0)]
        assert media[0].get_content() == b"video"

        page_files = file_storage.get_area_files(lesson_target.contextid, LESSON_COMPONENT, 'page_contents')
        assert [(f.filename, f.itemid) for f in page_files] == [
            ('cell.png', mapping.get_mapping_id('lesson_page', 102)),
        ]
        assert page_files[0].userid == lesson_target.learner

    def test_unrestored_items_and_other_components_are_skipped(self, store, file_storage, lesson_target,
                                                               lesson_backup):
        restore(store, file_storage, lesson_target, lesson_backup, backup_files=self.backup_files())

        assert store.count_records('files') == 2
