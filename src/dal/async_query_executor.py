from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

from dal.backends import Backend
from dal.query_result import Row, RunResult

Statement = Tuple[str, Sequence[Any]]


@runtime_checkable
class StatementExecutor(Protocol):
    """Protocol implemented by each backend's statement executor.

    Executors receive SQL already translated into their own dialect and wrap
    driver failures in ``StatementExecutionError``.
    """

    backend: Backend

    async def connect(self) -> None:
        """Open the backend handle. Raise ``BackendUnavailableError`` on failure."""
        ...

    async def close(self) -> None:
        """Release the backend handle."""
        ...

    async def run(self, sql: str, params: Sequence[Any]) -> RunResult:
        """Execute a mutating statement."""
        ...

    async def get(self, sql: str, params: Sequence[Any]) -> Optional[Row]:
        """Return the first row of a query, or None."""
        ...

    async def all(self, sql: str, params: Sequence[Any]) -> list[Row]:
        """Return every row of a query."""
        ...

    async def execute_atomic(self, statements: Sequence[Statement]) -> None:
        """Execute statements in one transaction; used by schema migrations."""
        ...
