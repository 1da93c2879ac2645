"""
File storage over the ``files`` table of the SQLite record store.

File bodies live in the same database as BLOBs and are addressed by the
sha1 of their content, which is what export fingerprints are built from.
"""
import hashlib
import mimetypes
import time
from typing import Any, Dict, List, Optional
import logging

from ..core.exceptions import StorageError
from ..core.interfaces import IFileStorage
from ..core.models import StoredFile
from .sqlite_store import SQLiteRecordStore


logger = logging.getLogger(__name__)


def content_hash(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


class SQLiteFileStorage(IFileStorage):
    """File areas backed by ``SQLiteRecordStore``."""

    def __init__(self, store: SQLiteRecordStore):
        self.store = store

    def _row_to_file(self, row: Dict[str, Any]) -> StoredFile:
        file_id = row['id']
        return StoredFile(
            id=file_id,
            contextid=row['contextid'],
            component=row['component'],
            filearea=row['filearea'],
            itemid=row['itemid'],
            filename=row['filename'],
            filepath=row['filepath'],
            mimetype=row['mimetype'],
            filesize=row['filesize'],
            contenthash=row['contenthash'],
            userid=row['userid'],
            timecreated=row['timecreated'],
            timemodified=row['timemodified'],
            content_loader=lambda: self._load_content(file_id),
        )

    def _load_content(self, file_id: int) -> bytes:
        row = self.store.get_record('files', id=file_id)
        if row is None:
            raise StorageError(f"File {file_id} vanished from storage", table='files')
        return bytes(row['content'] or b"")

    def get_area_files(
        self,
        contextid: int,
        component: str,
        filearea: str,
        itemid: Optional[int] = None,
        sort: str = "itemid, filepath, filename",
        include_dirs: bool = True
    ) -> List[StoredFile]:
        conditions: Dict[str, Any] = {
            'contextid': contextid,
            'component': component,
            'filearea': filearea,
        }
        if itemid is not None:
            conditions['itemid'] = itemid

        rows = self.store.get_records('files', sort=sort, **conditions)
        files = [self._row_to_file(row) for row in rows]
        if not include_dirs:
            files = [f for f in files if not f.is_directory]
        return files

    def create_file(self, record: Dict[str, Any], content: bytes) -> StoredFile:
        """
        Store a file.

        Args:
            record: Binding and metadata; requires contextid, component,
                    filearea, itemid and filename
            content: File body

        Returns:
            The stored file
        """
        missing = [k for k in ('contextid', 'component', 'filearea', 'itemid', 'filename')
                   if record.get(k) is None]
        if missing:
            raise StorageError(f"File record missing fields: {', '.join(missing)}", table='files')

        now = int(time.time())
        filename = record['filename']
        mimetype = record.get('mimetype') or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        data = {
            'contextid': record['contextid'],
            'component': record['component'],
            'filearea': record['filearea'],
            'itemid': record['itemid'],
            'filepath': record.get('filepath') or "/",
            'filename': filename,
            'mimetype': mimetype,
            'filesize': len(content),
            'contenthash': content_hash(content),
            'content': content,
            'userid': record.get('userid') or 0,
            'timecreated': record.get('timecreated') or now,
            'timemodified': record.get('timemodified') or now,
        }
        file_id = self.store.insert_record('files', data)
        logger.debug(
            f"Stored file {filename} in {data['component']}/{data['filearea']}/{data['itemid']} "
            f"(context {data['contextid']})"
        )
        return self._row_to_file({**data, 'id': file_id})
