"""
SQLite record store.

Reference implementation of ``IRecordStore`` over the host schema subset in
``schema.py``. Tables and columns are checked against the live schema before
any SQL is built, so field names coming from backup documents can never be
interpolated unchecked.
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import logging

from ..core.exceptions import StorageError, error_context
from ..core.interfaces import IRecordStore
from .schema import SCHEMA_STATEMENTS, INDEX_STATEMENTS


class SQLiteRecordStore(IRecordStore):
    """Thread-local SQLite connections with explicit transactions."""

    def __init__(self, db_path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.db_path = Path(db_path)
        self.logger = logger or logging.getLogger(__name__)
        self._local = threading.local()
        self._columns_cache: Dict[str, List[str]] = {}

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema(self._get_connection())

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                self.db_path,
                isolation_level=None,
                timeout=30.0
            )
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn.row_factory = sqlite3.Row
            self._local.depth = 0

        return self._local.conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Explicit transaction context.

        Nested use joins the outermost transaction; only the outermost level
        commits or rolls back.
        """
        conn = self._get_connection()
        if self._local.depth > 0:
            self._local.depth += 1
            try:
                yield conn
            finally:
                self._local.depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._local.depth = 1
        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        finally:
            self._local.depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._transaction():
            yield

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        """Initialize database schema."""
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)
        for statement in INDEX_STATEMENTS:
            conn.execute(statement)

        self.logger.info(f"Schema initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # SQL building
    # ------------------------------------------------------------------

    def columns(self, table: str) -> List[str]:
        """Column names of ``table``; raises StorageError for unknown tables."""
        if table not in self._columns_cache:
            conn = self._get_connection()
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table,)
            ).fetchall()
            if not rows:
                raise StorageError(f"Unknown table: {table}", table=table)
            info = conn.execute(f'PRAGMA table_info("{table}")').fetchall()
            self._columns_cache[table] = [row['name'] for row in info]

        return self._columns_cache[table]

    def _check_column(self, table: str, column: str) -> str:
        if column not in self.columns(table):
            raise StorageError(f"Unknown column: {table}.{column}", table=table)
        return column

    def _where(self, table: str, conditions: Dict[str, Any]) -> Tuple[str, List[Any]]:
        if not conditions:
            return "", []

        clauses = []
        params: List[Any] = []
        for column, value in conditions.items():
            self._check_column(table, column)
            if isinstance(value, (list, tuple, set)):
                values = list(value)
                if not values:
                    clauses.append("0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f'"{column}" IN ({placeholders})')
                params.extend(values)
            elif value is None:
                clauses.append(f'"{column}" IS NULL')
            else:
                clauses.append(f'"{column}" = ?')
                params.append(value)

        return " WHERE " + " AND ".join(clauses), params

    def _order_by(self, table: str, sort: Optional[str]) -> str:
        if not sort:
            return ' ORDER BY "id"'

        parts = []
        for item in sort.split(','):
            tokens = item.split()
            if not tokens:
                continue
            column = self._check_column(table, tokens[0])
            direction = tokens[1].upper() if len(tokens) > 1 else "ASC"
            if direction not in ("ASC", "DESC"):
                raise StorageError(f"Invalid sort direction: {direction}", table=table)
            parts.append(f'"{column}" {direction}')

        return " ORDER BY " + ", ".join(parts) if parts else ""

    # ------------------------------------------------------------------
    # IRecordStore
    # ------------------------------------------------------------------

    def get_record(self, table: str, **conditions: Any) -> Optional[Dict[str, Any]]:
        with error_context(f"reading {table}", StorageError):
            where, params = self._where(table, conditions)
            cur = self._get_connection().execute(
                f'SELECT * FROM "{table}"{where}{self._order_by(table, None)} LIMIT 1',
                params
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def get_records(
        self,
        table: str,
        sort: Optional[str] = None,
        **conditions: Any
    ) -> List[Dict[str, Any]]:
        with error_context(f"reading {table}", StorageError):
            where, params = self._where(table, conditions)
            cur = self._get_connection().execute(
                f'SELECT * FROM "{table}"{where}{self._order_by(table, sort)}',
                params
            )
            return [dict(row) for row in cur.fetchall()]

    def count_records(self, table: str, **conditions: Any) -> int:
        with error_context(f"counting {table}", StorageError):
            where, params = self._where(table, conditions)
            cur = self._get_connection().execute(
                f'SELECT COUNT(*) FROM "{table}"{where}', params
            )
            return cur.fetchone()[0]

    def insert_record(self, table: str, data: Dict[str, Any]) -> int:
        columns = self.columns(table)
        values = {k: v for k, v in data.items() if k in columns and k != 'id'}
        dropped = sorted(set(data) - set(values) - {'id'})
        if dropped:
            self.logger.debug(f"Ignoring fields not in {table}: {', '.join(dropped)}")

        with error_context(f"inserting into {table}", StorageError):
            with self._transaction() as conn:
                if values:
                    names = ", ".join(f'"{name}"' for name in values)
                    placeholders = ", ".join("?" for _ in values)
                    cur = conn.execute(
                        f'INSERT INTO "{table}" ({names}) VALUES ({placeholders})',
                        list(values.values())
                    )
                else:
                    cur = conn.execute(f'INSERT INTO "{table}" DEFAULT VALUES')
                new_id = cur.lastrowid

        self.logger.debug(f"Inserted {table} id={new_id}")
        return new_id

    def update_record(self, table: str, data: Dict[str, Any]) -> None:
        if not data.get('id'):
            raise StorageError(f"Cannot update {table} without id", table=table)

        columns = self.columns(table)
        values = {k: v for k, v in data.items() if k in columns and k != 'id'}
        if not values:
            return

        with error_context(f"updating {table}", StorageError):
            with self._transaction() as conn:
                assignments = ", ".join(f'"{name}" = ?' for name in values)
                conn.execute(
                    f'UPDATE "{table}" SET {assignments} WHERE "id" = ?',
                    list(values.values()) + [data['id']]
                )

    def close(self) -> None:
        """Close connection."""
        if hasattr(self._local, 'conn') and self._local.conn:
            self._local.conn.close()
            self._local.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
