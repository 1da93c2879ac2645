"""
Tests for the SQLite record store, file storage and capability table.
"""
import pytest

from coursekit.core.exceptions import StorageError
from coursekit.storage.file_storage import content_hash


class TestRecordStore:

    def test_insert_and_get(self, store):
        new_id = store.insert_record('glossary', {'id': 99, 'course': 1, 'name': 'G'})

        assert new_id != 99
        assert store.get_record('glossary', id=new_id)['name'] == 'G'
        assert store.get_record('glossary', id=12345) is None

    def test_unknown_fields_are_dropped(self, store):
        new_id = store.insert_record('glossary', {'course': 1, 'name': 'G', 'colour': 'blue'})
        assert 'colour' not in store.get_record('glossary', id=new_id)

    def test_unknown_table(self, store):
        with pytest.raises(StorageError):
            store.get_record('nope', id=1)

    def test_unknown_condition_column(self, store):
        with pytest.raises(StorageError):
            store.get_records('glossary', colour='blue')

    def test_in_conditions_and_sort(self, store):
        ids = [store.insert_record('glossary', {'course': 1, 'name': name}) for name in 'cab']

        rows = store.get_records('glossary', sort='name DESC', id=ids[:2])
        assert [r['name'] for r in rows] == ['c', 'a']
        assert store.get_records('glossary', id=[]) == []

    def test_invalid_sort_direction(self, store):
        with pytest.raises(StorageError):
            store.get_records('glossary', sort='name SIDEWAYS')

    def test_update_record(self, store):
        new_id = store.insert_record('glossary', {'course': 1, 'name': 'old'})
        store.update_record('glossary', {'id': new_id, 'name': 'new'})
        assert store.get_record('glossary', id=new_id)['name'] == 'new'

        with pytest.raises(StorageError):
            store.update_record('glossary', {'name': 'no id'})

    def test_transaction_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert_record('glossary', {'course': 1, 'name': 'lost'})
                raise RuntimeError("abort")
        assert store.count_records('glossary') == 0

    def test_nested_transactions_commit_once(self, store):
        with store.transaction():
            with store.transaction():
                store.insert_record('glossary', {'course': 1, 'name': 'kept'})
        assert store.count_records('glossary', name='kept') == 1


class TestFileStorage:

    def test_create_and_list(self, file_storage):
        stored = file_storage.create_file({
            'contextid': 1, 'component': 'mod_glossary', 'filearea': 'attachment',
            'itemid': 4, 'filename': 'notes.txt',
        }, b"hello")

        assert stored.filesize == 5
        assert stored.contenthash == content_hash(b"hello")
        assert stored.mimetype == "text/plain"

        files = file_storage.get_area_files(1, 'mod_glossary', 'attachment', 4)
        assert [f.filename for f in files] == ['notes.txt']
        assert files[0].get_content() == b"hello"
        assert file_storage.get_area_files(1, 'mod_glossary', 'attachment', 5) == []

    def test_directories_filtered(self, file_storage):
        for name in ('.', 'a.txt'):
            file_storage.create_file({
                'contextid': 1, 'component': 'mod_glossary', 'filearea': 'entry',
                'itemid': 1, 'filename': name,
            }, b"")

        assert len(file_storage.get_area_files(1, 'mod_glossary', 'entry', 1)) == 2
        files = file_storage.get_area_files(1, 'mod_glossary', 'entry', 1, include_dirs=False)
        assert [f.filename for f in files] == ['a.txt']

    def test_missing_binding(self, file_storage):
        with pytest.raises(StorageError, match="filearea"):
            file_storage.create_file({'contextid': 1, 'component': 'c', 'itemid': 0, 'filename': 'x'}, b"")


class TestCapabilities:

    def test_grant_and_check(self, capabilities):
        assert capabilities.has_capability('mod/glossary:export', 5, 1) is False

        capabilities.grant('mod/glossary:export', 5, 1)
        capabilities.grant('mod/glossary:export', 5, 1)

        assert capabilities.has_capability('mod/glossary:export', 5, 1) is True
        assert capabilities.has_capability('mod/glossary:export', 6, 1) is False
