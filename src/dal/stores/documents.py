"""Stores for uploaded ATR documents and inferred (AI) reports.

Both tables share a layout; listing joins ``"user"`` for the uploader's name,
which always lives on the same backend as the documents.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from dal.query_result import Row
from dal.stores.base import RecordStore


class _DocumentStore(RecordStore):
    extra_columns: tuple = ()

    def _select(self, where: str = "", order: bool = True) -> str:
        columns = [
            "id",
            "filename",
            "cloudinary_url",
            "cloudinary_public_id",
            "department",
            "uploaded_by",
            "file_size",
            "upload_date",
            *self.extra_columns,
            "comment",
            "ai_report_url",
            "ai_report_public_id",
            "hyperlink",
        ]
        select = ", ".join(f"d.{column}" for column in columns)
        sql = (
            f"SELECT {select}, u.username AS uploaded_by_name "
            f'FROM {self.table} d LEFT JOIN "user" u ON d.uploaded_by = u.id'
        )
        if where:
            sql += f" WHERE {where}"
        if order:
            sql += " ORDER BY d.upload_date DESC"
        return sql

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a document and return it with its generated id."""
        columns = [
            "filename",
            "cloudinary_url",
            "cloudinary_public_id",
            "department",
            "uploaded_by",
            "file_size",
            *self.extra_columns,
            "upload_date",
            "comment",
            "hyperlink",
        ]
        record = {column: data.get(column) for column in columns}
        record["upload_date"] = datetime.now(timezone.utc).replace(tzinfo=None)
        placeholders = ", ".join("?" for _ in columns)
        result = await self._run(
            f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})",
            [record[column] for column in columns],
        )
        return {"id": result.id, **record}

    async def list_by_department(self, department: str) -> list[Row]:
        return await self._all(self._select("d.department = ?"), [department])

    async def list_all(self) -> list[Row]:
        return await self._all(self._select())

    async def get(self, document_id: int) -> Optional[Row]:
        return await self._get(self._select("d.id = ?", order=False), [document_id])

    async def delete(self, document_id: int) -> bool:
        result = await self._run(f"DELETE FROM {self.table} WHERE id = ?", [document_id])
        return result.changes > 0

    async def delete_by_user(self, document_id: int, user_id: int) -> bool:
        """Delete a document only when ``user_id`` uploaded it."""
        result = await self._run(
            f"DELETE FROM {self.table} WHERE id = ? AND uploaded_by = ?", [document_id, user_id]
        )
        return result.changes > 0

    async def update_comment(self, document_id: int, comment: Optional[str]) -> bool:
        result = await self._run(
            f"UPDATE {self.table} SET comment = ? WHERE id = ?", [comment, document_id]
        )
        return result.changes > 0

    async def update_hyperlink(self, document_id: int, hyperlink: Optional[str]) -> bool:
        result = await self._run(
            f"UPDATE {self.table} SET hyperlink = ? WHERE id = ?", [hyperlink, document_id]
        )
        return result.changes > 0

    async def update_ai_report(
        self, document_id: int, ai_report_url: Optional[str], ai_report_public_id: Optional[str]
    ) -> bool:
        """Attach the generated AI report to a document."""
        result = await self._run(
            f"UPDATE {self.table} SET ai_report_url = ?, ai_report_public_id = ? WHERE id = ?",
            [ai_report_url, ai_report_public_id, document_id],
        )
        return result.changes > 0


class AtrDocumentStore(_DocumentStore):
    """Action Taken Report documents uploaded by department users."""

    table = "atr_documents"


class InferredReportStore(_DocumentStore):
    """AI-inferred reports, tagged with the site they cover."""

    table = "inferred_reports"
    extra_columns = ("site_name",)
