"""Error taxonomy for the hybrid DAL.

Statement failures are wrapped in ``StatementExecutionError`` with a
provider-agnostic category; the original driver exception is chained as
``__cause__``. Routing fallbacks are never errors.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

CATEGORY_SYNTAX = "syntax"
CATEGORY_CONSTRAINT = "constraint"
CATEGORY_SCHEMA_DRIFT = "schema_drift"
CATEGORY_CONNECTIVITY = "connectivity"
CATEGORY_TIMEOUT = "timeout"
CATEGORY_LOCKED = "locked"
CATEGORY_UNKNOWN = "unknown"


class HybridDatabaseError(Exception):
    """Base class for hybrid database failures."""


class BackendUnavailableError(HybridDatabaseError):
    """Raised when a backend has no usable handle."""

    def __init__(self, backend: str, reason: str):
        self.backend = backend
        self.reason = reason
        super().__init__(f"Backend '{backend}' is unavailable: {reason}")


class CrossBackendQueryError(HybridDatabaseError):
    """Raised when one statement references tables owned by different backends."""

    def __init__(self, tables_by_backend: dict[str, list[str]]):
        self.tables_by_backend = tables_by_backend
        detail = "; ".join(
            f"{backend}: {', '.join(sorted(tables))}"
            for backend, tables in sorted(tables_by_backend.items())
        )
        super().__init__(f"Cross-backend statements are not supported ({detail})")


class UnroutableStatementError(HybridDatabaseError):
    """Raised under strict routing when a statement names no known table."""

    def __init__(self, sql_preview: str, table: Optional[str]):
        self.table = table
        target = f"unknown table '{table}'" if table else "no table reference"
        super().__init__(f"Cannot route statement ({target}): {sql_preview}")


class StatementExecutionError(HybridDatabaseError):
    """A statement failed inside the backend driver."""

    def __init__(self, backend: str, sql: str, cause: BaseException):
        self.backend = backend
        self.sql = sql
        self.category = classify_error(backend, cause)
        self.driver_message = str(cause) or cause.__class__.__name__
        super().__init__(f"Database error: {self.driver_message}")


def _matches_any(message: str, needles: Iterable[str]) -> bool:
    return any(needle in message for needle in needles)


def classify_error(backend: str, exc: BaseException) -> str:
    """Classify a driver exception into a provider-agnostic category."""
    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()
    module_name = exc.__class__.__module__.lower()

    timed_out = isinstance(exc, (TimeoutError, asyncio.TimeoutError))
    if timed_out or _matches_any(message, ("timeout", "timed out")):
        return CATEGORY_TIMEOUT
    if isinstance(exc, OSError) or _matches_any(
        message,
        ("could not connect", "connection refused", "connection reset", "connection was closed"),
    ):
        return CATEGORY_CONNECTIVITY

    if module_name.startswith("asyncpg"):
        if "violation" in class_name:
            return CATEGORY_CONSTRAINT
        if class_name.endswith(("undefinedtableerror", "undefinedcolumnerror")):
            return CATEGORY_SCHEMA_DRIFT
        if "syntax" in class_name:
            return CATEGORY_SYNTAX

    if backend == "sqlite" or module_name.startswith("sqlite3"):
        if class_name == "integrityerror":
            return CATEGORY_CONSTRAINT
        if _matches_any(message, ("no such table", "no such column", "has no column named")):
            return CATEGORY_SCHEMA_DRIFT
        if _matches_any(message, ("database is locked", "database table is locked")):
            return CATEGORY_LOCKED

    if _matches_any(message, ("syntax error", "parse error")):
        return CATEGORY_SYNTAX
    if _matches_any(
        message,
        ("unique constraint", "violates", "not null constraint", "foreign key constraint"),
    ):
        return CATEGORY_CONSTRAINT
    if _matches_any(message, ("does not exist", "no such table", "no such column")):
        return CATEGORY_SCHEMA_DRIFT

    return CATEGORY_UNKNOWN


def describe_error(exc: Optional[BaseException]) -> str:
    """Return a short one-line description suitable for log records."""
    if exc is None:
        return "unknown error"
    message = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    return f"{exc.__class__.__name__}: {message}" if message else exc.__class__.__name__

