"""Drone telemetry reports and their detected violations (SQLite-owned)."""

import logging
from typing import Any, Dict, Mapping, Optional

from dal.errors import StatementExecutionError
from dal.query_result import Row
from dal.stores.base import RecordStore

logger = logging.getLogger(__name__)

_REQUIRED_REPORT_FIELDS = ("report_id", "drone_id", "date", "location")
_REQUIRED_VIOLATION_FIELDS = ("type", "timestamp", "latitude", "longitude", "image_url")


class ViolationStore(RecordStore):
    """Ingest and query drone violation reports."""

    table = "violations"

    async def ingest_report(self, report: Mapping[str, Any]) -> Dict[str, Any]:
        """Store a report and its violations, report first.

        Violations without an ``id`` get ``<report_id>_<n>``. Raises
        ``ValueError`` when required fields are missing. If a violation cannot
        be written, the report and any violations already stored are removed
        before the error propagates.
        """
        missing = [field for field in _REQUIRED_REPORT_FIELDS if not report.get(field)]
        if missing:
            raise ValueError(f"Report is missing required fields: {', '.join(missing)}")

        violations = list(report.get("violations") or [])
        for index, violation in enumerate(violations, start=1):
            absent = [f for f in _REQUIRED_VIOLATION_FIELDS if violation.get(f) is None]
            if absent:
                raise ValueError(f"Violation {index} is missing fields: {', '.join(absent)}")

        report_id = report["report_id"]
        await self.db.run(
            "INSERT INTO reports (report_id, drone_id, date, location, total_violations) "
            "VALUES (?, ?, ?, ?, ?)",
            [report_id, report["drone_id"], report["date"], report["location"], len(violations)],
            target="reports",
        )

        try:
            await self._insert_violations(report, violations)
        except StatementExecutionError:
            logger.warning("Rolling back report %s after a failed violation insert", report_id)
            await self.delete_report(report_id)
            raise

        logger.info("Stored report %s with %d violations", report_id, len(violations))
        return {
            "report_id": report_id,
            "drone_id": report["drone_id"],
            "date": report["date"],
            "location": report["location"],
            "violations_count": len(violations),
        }

    async def _insert_violations(self, report: Mapping[str, Any], violations: list) -> None:
        report_id = report["report_id"]
        for index, violation in enumerate(violations, start=1):
            await self._run(
                """
                INSERT INTO violations (
                id, report_id, drone_id, date, location, type, timestamp,
                latitude, longitude, image_url, confidence, frame_number
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    violation.get("id") or f"{report_id}_{index}",
                    report_id,
                    report["drone_id"],
                    report["date"],
                    report["location"],
                    violation["type"],
                    violation["timestamp"],
                    violation["latitude"],
                    violation["longitude"],
                    violation["image_url"],
                    violation.get("confidence"),
                    violation.get("frame_number"),
                ],
            )

    async def list_violations(
        self,
        *,
        location: Optional[str] = None,
        drone_id: Optional[str] = None,
        violation_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[Row]:
        clauses = []
        params: list[Any] = []
        for clause, value in (
            ("location = ?", location),
            ("drone_id = ?", drone_id),
            ("type = ?", violation_type),
            ("date >= ?", date_from),
            ("date <= ?", date_to),
        ):
            if value is not None:
                clauses.append(clause)
                params.append(value)

        sql = "SELECT * FROM violations"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date DESC, timestamp ASC"
        return await self._all(sql, params)

    async def list_reports(self) -> list[Row]:
        return await self.db.all(
            "SELECT * FROM reports ORDER BY date DESC, uploaded_at DESC", target="reports"
        )

    async def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        """Return a report with its violations attached, or None."""
        report = await self.db.get(
            "SELECT * FROM reports WHERE report_id = ?", [report_id], target="reports"
        )
        if report is None:
            return None
        report["violations"] = await self._all(
            "SELECT * FROM violations WHERE report_id = ? ORDER BY timestamp ASC", [report_id]
        )
        return report

    async def delete_report(self, report_id: str) -> bool:
        """Delete a report and its violations; returns False when it did not exist."""
        await self._run("DELETE FROM violations WHERE report_id = ?", [report_id])
        result = await self.db.run(
            "DELETE FROM reports WHERE report_id = ?", [report_id], target="reports"
        )
        return result.changes > 0
