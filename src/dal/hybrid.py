"""Hybrid Postgres + SQLite database facade.

``HybridDatabase`` owns one executor per backend, brings both up
independently and exposes the ``run``/``get``/``all`` call verbs. Statements
are authored once with ``?`` placeholders; routing picks the backend and the
dialect layer rewrites them for Postgres.

Postgres-owned tables also exist in SQLite so reads and writes keep working
while Postgres is absent or failed to start.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from common.observability.metrics import dal_metrics
from dal.async_query_executor import StatementExecutor
from dal.backends import Backend, BackendState, Verb, coerce_backend
from dal.config import HybridDatabaseConfig
from dal.dialect import translate
from dal.errors import BackendUnavailableError, HybridDatabaseError, StatementExecutionError
from dal.ownership import TableOwnershipMap
from dal.postgres.executor import PostgresExecutor
from dal.query_result import Row, RunResult
from dal.routing import QueryRouter, RoutingDecision, Target
from dal.schema_initializer import SchemaInitializer
from dal.sqlite.executor import SqliteExecutor
from dal.tracing import hash_sql, trace_query_operation

logger = logging.getLogger(__name__)

REASON_NOT_CONFIGURED = "not_configured"


class HybridDatabase:
    """Route statements between Postgres and SQLite behind one interface."""

    def __init__(
        self,
        config: Optional[HybridDatabaseConfig] = None,
        *,
        ownership: Optional[TableOwnershipMap] = None,
        postgres: Optional[StatementExecutor] = None,
        sqlite: Optional[StatementExecutor] = None,
        initializer: Optional[SchemaInitializer] = None,
    ) -> None:
        self.config = config or HybridDatabaseConfig.from_env()
        self.ownership = ownership or TableOwnershipMap()
        self._executors: Dict[Backend, StatementExecutor] = {
            Backend.POSTGRES: postgres or PostgresExecutor(self.config),
            Backend.SQLITE: sqlite or SqliteExecutor(self.config.sqlite_path),
        }
        self._initializer = initializer or SchemaInitializer()
        self._states: Dict[Backend, BackendState] = {b: BackendState.UNINITIALIZED for b in Backend}
        self._reasons: Dict[Backend, Optional[str]] = {b: None for b in Backend}
        self._start_lock = asyncio.Lock()
        self.router = QueryRouter(
            self.ownership, self.is_available, strict=self.config.strict_routing
        )

    async def __aenter__(self) -> "HybridDatabase":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Lifecycle

    def state(self, backend) -> BackendState:
        return self._states[coerce_backend(backend)]

    def is_available(self, backend: Backend) -> bool:
        """Return True when ``backend`` finished schema initialization."""
        return self._states[backend] is BackendState.SCHEMA_READY

    def hosted_tables(self, backend: Backend) -> list[str]:
        """Tables whose schema ``backend`` maintains.

        SQLite is the fallback for every mapped table, so it hosts all of them.
        """
        if backend is self.ownership.default_backend:
            return [table for table, _ in self.ownership.items()]
        return self.ownership.tables_for(backend)

    async def start(self) -> None:
        """Connect and migrate both backends concurrently.

        A backend that cannot connect or migrate is marked unavailable and the
        other one keeps running. Postgres tables fall back to SQLite; while
        SQLite is unavailable, statements it would serve raise
        ``BackendUnavailableError`` and Postgres-owned tables stay on Postgres.
        """
        async with self._start_lock:
            pending = [b for b in Backend if self._states[b] is BackendState.UNINITIALIZED]
            await asyncio.gather(*(self._bring_up(b) for b in pending))

    async def _bring_up(self, backend: Backend) -> None:
        if backend is Backend.POSTGRES and not self.config.postgres_configured:
            self._mark_unavailable(backend, REASON_NOT_CONFIGURED)
            logger.warning(
                "DATABASE_URL not set; Postgres tables will be served by %s",
                self.ownership.default_backend.value,
            )
            return

        executor = self._executors[backend]
        self._states[backend] = BackendState.CONNECTING
        try:
            await executor.connect()
            await self._initializer.initialize(executor, self.hosted_tables(backend))
        except HybridDatabaseError as e:
            logger.error("Failed to initialize %s backend: %s", backend.value, e)
            await executor.close()
            self._mark_unavailable(backend, getattr(e, "reason", None) or str(e))
            return

        self._states[backend] = BackendState.SCHEMA_READY
        self._reasons[backend] = None
        logger.info("%s backend ready", backend.value)

    def _mark_unavailable(self, backend: Backend, reason: str) -> None:
        self._states[backend] = BackendState.UNAVAILABLE
        self._reasons[backend] = reason
        dal_metrics.add_counter("dal.backend.unavailable", backend=backend.value)

    async def initialize_schema(self) -> Dict[str, list]:
        """Re-apply pending migrations on every ready backend."""
        applied: Dict[str, list] = {}
        for backend in Backend:
            if self.is_available(backend):
                applied[backend.value] = await self._initializer.initialize(
                    self._executors[backend], self.hosted_tables(backend)
                )
        return applied

    async def schema_versions(self) -> Dict[str, int]:
        """Highest migration version recorded by each ready backend."""
        versions = {}
        for backend in Backend:
            if self.is_available(backend):
                applied = await self._initializer.applied(self._executors[backend])
                versions[backend.value] = max((version for version, _ in applied), default=0)
        return versions

    def status(self) -> Dict[str, Dict[str, Any]]:
        """Return per-backend state, failure reason and effective table placement."""
        tables: Dict[str, list[str]] = {b.value: [] for b in Backend}
        for table, _ in self.ownership.items():
            tables[self.router.effective_backend(table).value].append(table)
        return {
            backend.value: {
                "state": self._states[backend].value,
                "reason": self._reasons[backend],
                "tables": tables[backend.value],
            }
            for backend in Backend
        }

    def effective_backend(self, table: str) -> Backend:
        return self.router.effective_backend(table)

    def route(self, sql: str, verb=Verb.ALL, target: Target = None) -> RoutingDecision:
        return self.router.route(sql, verb, target)

    async def close(self) -> None:
        """Close both backends. Safe to call more than once."""
        for backend, executor in self._executors.items():
            await executor.close()
            if self._states[backend] is not BackendState.UNAVAILABLE:
                self._states[backend] = BackendState.UNINITIALIZED

    # Call verbs

    async def run(
        self, sql: str, params: Sequence[Any] = (), *, target: Target = None
    ) -> RunResult:
        """Execute a mutating statement and return its generated id and change count."""
        return await self._dispatch(Verb.RUN, sql, params, target)

    async def get(
        self, sql: str, params: Sequence[Any] = (), *, target: Target = None
    ) -> Optional[Row]:
        """Return the first row of a query as a dict, or None."""
        return await self._dispatch(Verb.GET, sql, params, target)

    async def all(
        self, sql: str, params: Sequence[Any] = (), *, target: Target = None
    ) -> list[Row]:
        """Return every row of a query as a list of dicts."""
        return await self._dispatch(Verb.ALL, sql, params, target)

    async def _dispatch(self, verb: Verb, sql: str, params: Sequence[Any], target: Target):
        decision = self.router.route(sql, verb, target)
        backend = decision.backend
        if not self.is_available(backend):
            raise BackendUnavailableError(
                backend.value, self._reasons[backend] or self._states[backend].value
            )

        executor = self._executors[backend]
        statement = translate(sql, backend)
        operation = getattr(executor, verb.value)
        try:
            return await trace_query_operation(
                backend.value, verb.value, statement, operation(statement, list(params))
            )
        except StatementExecutionError as e:
            logger.error(
                "%s %s failed on %s (sql=%s, category=%s): %s",
                verb.value,
                decision.table or "statement",
                backend.value,
                hash_sql(statement),
                e.category,
                e.driver_message,
            )
            raise
