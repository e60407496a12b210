from unittest.mock import AsyncMock, patch

import pytest

from dal.config import HybridDatabaseConfig
from dal.errors import BackendUnavailableError, StatementExecutionError
from dal.postgres.executor import PostgresExecutor, parse_command_status
from dal.query_result import RunResult


class _UniqueViolationError(Exception):
    __module__ = "asyncpg.exceptions"


class _FakeTransaction:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        self.conn.events.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.conn.events.append("rollback" if exc_type else "commit")
        return False


class _FakeConn:
    def __init__(self, fetch_rows=None, status="UPDATE 0", error=None):
        self.fetch_rows = fetch_rows or []
        self.status = status
        self.error = error
        self.calls = []
        self.events = []

    async def fetch(self, sql, *params):
        self.calls.append(("fetch", sql, params))
        if self.error:
            raise self.error
        return self.fetch_rows

    async def fetchrow(self, sql, *params):
        self.calls.append(("fetchrow", sql, params))
        return self.fetch_rows[0] if self.fetch_rows else None

    async def execute(self, sql, *params):
        self.calls.append(("execute", sql, params))
        if self.error:
            raise self.error
        return self.status

    def transaction(self):
        return _FakeTransaction(self)


class _Acquire:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        return False


class _FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False

    def acquire(self):
        return _Acquire(self.conn)

    async def close(self):
        self.closed = True


_CONFIG = HybridDatabaseConfig(postgres_dsn="postgresql://atr:secret@db:5432/atr")


@pytest.mark.parametrize(
    "status, expected",
    [("INSERT 0 3", 3), ("UPDATE 2", 2), ("DELETE 0", 0), ("CREATE TABLE", 0), ("", 0)],
)
def test_parse_command_status(status, expected):
    assert parse_command_status(status) == expected


@pytest.mark.asyncio
async def test_run_with_returning_reports_generated_id():
    conn = _FakeConn(fetch_rows=[{"id": 41}])
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    result = await executor.run(
        "INSERT INTO atr_documents (filename) VALUES ($1) RETURNING id", ["a.pdf"]
    )

    assert result == RunResult(id=41, changes=1)
    assert conn.calls == [
        ("fetch", "INSERT INTO atr_documents (filename) VALUES ($1) RETURNING id", ("a.pdf",))
    ]


@pytest.mark.asyncio
async def test_run_without_returning_parses_status():
    conn = _FakeConn(status="UPDATE 3")
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    result = await executor.run("UPDATE atr_documents SET comment = $1", ["ok"])

    assert result == RunResult(id=None, changes=3)


@pytest.mark.asyncio
async def test_get_and_all_return_dicts():
    conn = _FakeConn(fetch_rows=[{"id": 1, "username": "ops"}, {"id": 2, "username": "qa"}])
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    assert await executor.get('SELECT * FROM "user" WHERE id = $1', [1]) == {
        "id": 1,
        "username": "ops",
    }
    rows = await executor.all('SELECT * FROM "user"', [])
    assert rows == [{"id": 1, "username": "ops"}, {"id": 2, "username": "qa"}]
    assert all(isinstance(row, dict) for row in rows)


@pytest.mark.asyncio
async def test_get_returns_none_without_rows():
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(_FakeConn()))
    assert await executor.get("SELECT * FROM admin WHERE id = $1", [5]) is None


@pytest.mark.asyncio
async def test_driver_errors_are_wrapped():
    conn = _FakeConn(error=_UniqueViolationError("duplicate key value violates unique constraint"))
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    with pytest.raises(StatementExecutionError) as excinfo:
        await executor.run("INSERT INTO admin (email) VALUES ($1) RETURNING id", ["a@b.c"])

    assert excinfo.value.category == "constraint"
    assert excinfo.value.backend == "postgres"
    assert isinstance(excinfo.value.__cause__, _UniqueViolationError)


@pytest.mark.asyncio
async def test_execute_atomic_uses_a_transaction():
    conn = _FakeConn(status="CREATE TABLE")
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    await executor.execute_atomic([("CREATE TABLE a (id INT)", ()), ("CREATE TABLE b (id INT)", ())])

    assert conn.events == ["begin", "commit"]
    assert [call[1] for call in conn.calls] == ["CREATE TABLE a (id INT)", "CREATE TABLE b (id INT)"]


@pytest.mark.asyncio
async def test_execute_atomic_rolls_back_on_error():
    conn = _FakeConn(error=RuntimeError("boom"))
    executor = PostgresExecutor(_CONFIG, pool=_FakePool(conn))

    with pytest.raises(StatementExecutionError, match="boom"):
        await executor.execute_atomic([("CREATE TABLE a (id INT)", ())])
    assert conn.events == ["begin", "rollback"]


@pytest.mark.asyncio
async def test_connect_requires_dsn():
    executor = PostgresExecutor(HybridDatabaseConfig())
    with pytest.raises(BackendUnavailableError, match="DATABASE_URL"):
        await executor.connect()


@pytest.mark.asyncio
async def test_connect_builds_pool_from_config():
    pool = _FakePool(_FakeConn())
    config = HybridDatabaseConfig(
        postgres_dsn="postgresql://atr@db/atr", pg_pool_max_size=4, pg_ssl=True
    )
    with patch("asyncpg.create_pool", AsyncMock(return_value=pool)) as create_pool:
        executor = PostgresExecutor(config)
        await executor.connect()

    create_pool.assert_awaited_once()
    kwargs = create_pool.await_args.kwargs
    assert create_pool.await_args.args == ("postgresql://atr@db/atr",)
    assert kwargs["max_size"] == 4
    assert kwargs["ssl"] == "require"
    assert kwargs["server_settings"] == {"application_name": "atr_portal_dal"}

    await executor.close()
    assert pool.closed
    assert not executor.is_connected


@pytest.mark.asyncio
async def test_connect_failure_is_unavailable():
    with patch("asyncpg.create_pool", AsyncMock(side_effect=OSError("connection refused"))):
        executor = PostgresExecutor(_CONFIG)
        with pytest.raises(BackendUnavailableError, match="connection refused"):
            await executor.connect()
    assert not executor.is_connected


@pytest.mark.asyncio
async def test_statements_require_pool():
    with pytest.raises(BackendUnavailableError):
        await PostgresExecutor(_CONFIG).all("SELECT 1", [])
