from datetime import date, datetime, time, timezone
from typing import Any, Optional, Sequence

from dal.hybrid import HybridDatabase
from dal.query_result import Row, RunResult


def as_timestamp(value: Any) -> Optional[datetime]:
    """Coerce an ISO-8601 string or date into a naive ``datetime``.

    Postgres timestamp parameters must be ``datetime`` objects; the SQLite
    executor stores them back as ISO-8601 text.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class RecordStore:
    """Base for stores bound to a single routing table."""

    table: str = ""

    def __init__(self, db: HybridDatabase):
        self.db = db

    async def _run(self, sql: str, params: Sequence[Any] = ()) -> RunResult:
        return await self.db.run(sql, params, target=self.table)

    async def _get(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        return await self.db.get(sql, params, target=self.table)

    async def _all(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        return await self.db.all(sql, params, target=self.table)
