import logging
from typing import Any, Optional, Sequence

import asyncpg

from dal.backends import Backend
from dal.config import HybridDatabaseConfig
from dal.dialect import has_returning
from dal.errors import BackendUnavailableError, StatementExecutionError
from dal.query_result import Row, RunResult

logger = logging.getLogger(__name__)


def parse_command_status(status: str) -> int:
    """Return the affected row count from an asyncpg command tag.

    ``INSERT 0 3`` -> 3, ``UPDATE 2`` -> 2, ``CREATE TABLE`` -> 0.
    """
    if not status:
        return 0
    last = status.strip().rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0


class PostgresExecutor:
    """Statement executor backed by an asyncpg connection pool."""

    backend = Backend.POSTGRES

    def __init__(self, config: HybridDatabaseConfig, pool: Optional[asyncpg.Pool] = None) -> None:
        self._config = config
        self._pool = pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return
        if not self._config.postgres_configured:
            raise BackendUnavailableError(self.backend.value, "DATABASE_URL is not set")
        try:
            self._pool = await asyncpg.create_pool(
                self._config.postgres_dsn,
                min_size=self._config.pg_pool_min_size,
                max_size=self._config.pg_pool_max_size,
                command_timeout=self._config.pg_command_timeout_seconds,
                ssl="require" if self._config.pg_ssl else None,
                server_settings={"application_name": self._config.application_name},
            )
        except Exception as e:
            self._pool = None
            raise BackendUnavailableError(self.backend.value, str(e)) from e
        logger.info("Postgres connection pool established: %s", self._config.redacted_dsn())

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Postgres connection pool closed")

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise BackendUnavailableError(self.backend.value, "connection pool not initialized")
        return self._pool

    async def run(self, sql: str, params: Sequence[Any]) -> RunResult:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                if has_returning(sql):
                    rows = await conn.fetch(sql, *params)
                    generated = rows[0].get("id") if rows else None
                    return RunResult(id=generated, changes=len(rows))
                status = await conn.execute(sql, *params)
                return RunResult(id=None, changes=parse_command_status(status))
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e

    async def get(self, sql: str, params: Sequence[Any]) -> Optional[Row]:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(sql, *params)
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e
        return dict(row) if row is not None else None

    async def all(self, sql: str, params: Sequence[Any]) -> list[Row]:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *params)
        except Exception as e:
            raise StatementExecutionError(self.backend.value, sql, e) from e
        return [dict(row) for row in rows]

    async def execute_atomic(self, statements: Sequence[tuple[str, Sequence[Any]]]) -> None:
        pool = self._require_pool()
        current = ""
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    for current, params in statements:
                        await conn.execute(current, *params)
        except Exception as e:
            raise StatementExecutionError(self.backend.value, current, e) from e
