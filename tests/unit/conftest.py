"""Unit test environment helpers."""

import pytest

_DAL_ENV = (
    "DATABASE_URL",
    "SQLITE_DB_PATH",
    "PG_POOL_MIN_SIZE",
    "PG_POOL_MAX_SIZE",
    "PG_COMMAND_TIMEOUT_SECS",
    "PG_SSL",
    "APP_ENV",
    "NODE_ENV",
    "DAL_STRICT_ROUTING",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Unit tests never reach a real Postgres and start from default config."""
    for name in _DAL_ENV:
        monkeypatch.delenv(name, raising=False)
    yield
