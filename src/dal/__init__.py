"""Data Abstraction Layer (DAL) for the ATR portal.

This package exposes the hybrid Postgres + SQLite database and the record
stores built on top of it.
"""

from dal.backends import Backend, BackendState
from dal.config import HybridDatabaseConfig
from dal.errors import (
    BackendUnavailableError,
    CrossBackendQueryError,
    HybridDatabaseError,
    StatementExecutionError,
    UnroutableStatementError,
)
from dal.hybrid import HybridDatabase
from dal.query_result import RunResult

__all__ = [
    "Backend",
    "BackendState",
    "BackendUnavailableError",
    "CrossBackendQueryError",
    "HybridDatabase",
    "HybridDatabaseConfig",
    "HybridDatabaseError",
    "RunResult",
    "StatementExecutionError",
    "UnroutableStatementError",
]
