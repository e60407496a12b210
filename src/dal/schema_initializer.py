"""Apply versioned migrations to one backend and keep its ledger."""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from common.observability.metrics import dal_metrics
from dal.async_query_executor import StatementExecutor
from dal.backends import Backend
from dal.migrations import LEDGER_TABLE, MIGRATIONS, Migration
from dal.ownership import normalize_table_name
from dal.postgres.param_translation import translate_qmark_params_to_postgres

logger = logging.getLogger(__name__)

LEDGER_DDL = f"""
    CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
    version INTEGER NOT NULL,
    table_name TEXT NOT NULL,
    description TEXT NOT NULL,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (version, table_name)
    )
"""

_RECORD_SQL = f"INSERT INTO {LEDGER_TABLE} (version, table_name, description) VALUES (?, ?, ?)"


@dataclass(frozen=True)
class AppliedChange:
    """One ledger entry written during initialization."""

    version: int
    table: str
    description: str


class SchemaInitializer:
    """Bring a backend's hosted tables up to the latest migration.

    Every table change runs at most once per backend; re-running against an
    initialized backend is a no-op. Each migration's pending changes and their
    ledger rows commit in a single transaction.
    """

    def __init__(self, migrations: Sequence[Migration] = MIGRATIONS) -> None:
        versions = [m.version for m in migrations]
        if versions != sorted(set(versions)):
            raise ValueError(f"Migration versions must be unique and ascending: {versions}")
        self._migrations = tuple(migrations)

    @property
    def latest_version(self) -> int:
        return self._migrations[-1].version if self._migrations else 0

    async def applied(self, executor: StatementExecutor) -> set[tuple[int, str]]:
        """Return ``(version, table)`` pairs recorded in the backend's ledger."""
        rows = await executor.all(f"SELECT version, table_name FROM {LEDGER_TABLE}", [])
        return {(int(row["version"]), row["table_name"]) for row in rows}

    async def initialize(
        self, executor: StatementExecutor, tables: Iterable[str]
    ) -> list[AppliedChange]:
        """Create the ledger, then apply pending changes for ``tables`` in version order."""
        backend = executor.backend
        hosted = {normalize_table_name(t) for t in tables}
        record_sql = (
            translate_qmark_params_to_postgres(_RECORD_SQL)
            if backend is Backend.POSTGRES
            else _RECORD_SQL
        )

        await executor.execute_atomic([(LEDGER_DDL, ())])
        done = await self.applied(executor)

        written: list[AppliedChange] = []
        for migration in self._migrations:
            statements = []
            pending = []
            for change in migration.changes:
                table = normalize_table_name(change.table)
                ddl = change.statements_for(backend)
                if table not in hosted or not ddl or (migration.version, table) in done:
                    continue
                statements.extend((sql, ()) for sql in ddl)
                statements.append((record_sql, (migration.version, table, migration.description)))
                pending.append(AppliedChange(migration.version, table, migration.description))

            if not pending:
                continue

            await executor.execute_atomic(statements)
            done.update((c.version, c.table) for c in pending)
            written.extend(pending)
            logger.info(
                "Applied migration %s (%s) on %s: %s",
                migration.version,
                migration.description,
                backend.value,
                ", ".join(c.table for c in pending),
            )

        if written:
            dal_metrics.add_counter(
                "dal.schema.migrations_applied", len(written), backend=backend.value
            )
        else:
            logger.info("Schema for %s already at version %s", backend.value, self.latest_version)
        return written
