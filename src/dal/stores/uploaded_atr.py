from typing import Any, Dict, Mapping, Optional

from dal.query_result import Row
from dal.stores.base import RecordStore, as_timestamp

_SELECT = """
    SELECT ua.id, ua.serial_no, ua.site_name, ua.date_time, ua.video_link,
    ua.atr_link, ua.file_name, ua.department, ua.uploaded_by,
    ua.upload_date, ua.file_size, ua.comment,
    u.username AS uploaded_by_name
    FROM uploaded_atr ua
    LEFT JOIN "user" u ON ua.uploaded_by = u.id
"""

_ORDER = " ORDER BY ua.date_time DESC"

_CREATE_COLUMNS = (
    "serial_no",
    "site_name",
    "date_time",
    "video_link",
    "atr_link",
    "file_name",
    "department",
    "uploaded_by",
    "file_size",
    "comment",
)


class UploadedAtrStore(RecordStore):
    """Site-level ATR entries with running serial numbers."""

    table = "uploaded_atr"

    async def next_serial_number(self) -> int:
        row = await self._get("SELECT MAX(serial_no) AS max_serial FROM uploaded_atr")
        return ((row or {}).get("max_serial") or 0) + 1

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert an entry; a missing ``serial_no`` takes the next free number."""
        record = {column: data.get(column) for column in _CREATE_COLUMNS}
        if record["serial_no"] is None:
            record["serial_no"] = await self.next_serial_number()
        record["date_time"] = as_timestamp(record["date_time"])
        placeholders = ", ".join("?" for _ in _CREATE_COLUMNS)
        result = await self._run(
            f"INSERT INTO uploaded_atr ({', '.join(_CREATE_COLUMNS)}) VALUES ({placeholders})",
            [record[column] for column in _CREATE_COLUMNS],
        )
        return {"id": result.id, **record}

    async def list_all(self) -> list[Row]:
        return await self._all(_SELECT + _ORDER)

    async def list_by_site(self, site_name: str) -> list[Row]:
        return await self._all(_SELECT + " WHERE ua.site_name = ?" + _ORDER, [site_name])

    async def list_by_date_range(self, start, end) -> list[Row]:
        """Entries whose ``date_time`` falls within ``[start, end]``."""
        return await self._all(
            _SELECT + " WHERE ua.date_time BETWEEN ? AND ?" + _ORDER,
            [as_timestamp(start), as_timestamp(end)],
        )

    async def search(self, term: str) -> list[Row]:
        """Substring match on site name, file name and comment."""
        pattern = f"%{term}%"
        return await self._all(
            _SELECT
            + " WHERE ua.site_name LIKE ? OR ua.file_name LIKE ? OR ua.comment LIKE ?"
            + _ORDER,
            [pattern, pattern, pattern],
        )

    async def get(self, entry_id: int) -> Optional[Row]:
        return await self._get(_SELECT + " WHERE ua.id = ?", [entry_id])

    async def update(self, entry_id: int, data: Mapping[str, Any]) -> bool:
        result = await self._run(
            """
            UPDATE uploaded_atr
            SET site_name = ?, date_time = ?, video_link = ?, atr_link = ?,
            file_name = ?, comment = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [
                data.get("site_name"),
                as_timestamp(data.get("date_time")),
                data.get("video_link"),
                data.get("atr_link"),
                data.get("file_name"),
                data.get("comment"),
                entry_id,
            ],
        )
        return result.changes > 0

    async def delete(self, entry_id: int) -> bool:
        result = await self._run("DELETE FROM uploaded_atr WHERE id = ?", [entry_id])
        return result.changes > 0

    async def delete_by_user(self, entry_id: int, user_id: int) -> bool:
        result = await self._run(
            "DELETE FROM uploaded_atr WHERE id = ? AND uploaded_by = ?", [entry_id, user_id]
        )
        return result.changes > 0
