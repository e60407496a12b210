import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import aiosqlite

from dal.backends import Backend
from dal.dialect import is_insert
from dal.errors import BackendUnavailableError, StatementExecutionError
from dal.query_result import Row, RunResult

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


def adapt_params(params: Sequence[Any]) -> tuple:
    """Store dates and datetimes as ISO-8601 text; SQLite has no temporal type."""
    adapted = []
    for value in params:
        if isinstance(value, datetime):
            value = value.isoformat(sep=" ")
        elif isinstance(value, date):
            value = value.isoformat()
        adapted.append(value)
    return tuple(adapted)


class SqliteExecutor:
    """Statement executor over a single long-lived aiosqlite connection.

    The connection runs in autocommit mode; aiosqlite serializes statements on
    its worker thread, which matches SQLite's whole-database write lock.
    """

    backend = Backend.SQLITE

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path or MEMORY_PATH
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """Open the SQLite file, creating its parent directory when needed."""
        if self._conn is not None:
            return
        try:
            if self._db_path != MEMORY_PATH and not self._db_path.startswith("file:"):
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(
                self._db_path,
                isolation_level=None,
                uri=self._db_path.startswith("file:"),
            )
        except Exception as e:
            raise BackendUnavailableError(self.backend.value, str(e)) from e
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.info("SQLite database opened: %s", self._db_path)

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise BackendUnavailableError(self.backend.value, "database not opened")
        return self._conn

    async def run(self, sql: str, params: Sequence[Any]) -> RunResult:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, adapt_params(params)) as cursor:
                changes = max(cursor.rowcount, 0)
                generated = cursor.lastrowid if is_insert(sql) and changes else None
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e
        return RunResult(id=generated, changes=changes)

    async def get(self, sql: str, params: Sequence[Any]) -> Optional[Row]:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, adapt_params(params)) as cursor:
                row = await cursor.fetchone()
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e
        return dict(row) if row is not None else None

    async def all(self, sql: str, params: Sequence[Any]) -> list[Row]:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, adapt_params(params)) as cursor:
                rows = await cursor.fetchall()
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e
        return [dict(row) for row in rows]

    async def execute_atomic(self, statements: Sequence[tuple[str, Sequence[Any]]]) -> None:
        conn = self._require_conn()
        current = ""
        try:
            await conn.execute("BEGIN")
            try:
                for current, params in statements:
                    await conn.execute(current, adapt_params(params))
            except Exception:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")
        except Exception as e:
            raise StatementExecutionError(self.backend.value, current or "BEGIN", e) from e
