from typing import Any, Dict, Optional

from dal.query_result import Row
from dal.stores.base import RecordStore


class SiteStore(RecordStore):
    """Mining sites that drones survey."""

    table = "sites"

    async def list_sites(self) -> list[Row]:
        return await self._all("SELECT * FROM sites ORDER BY name ASC")

    async def create_site(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        result = await self._run(
            "INSERT INTO sites (name, description) VALUES (?, ?)", [name, description]
        )
        return {"id": result.id, "name": name, "description": description}

    async def delete_site(self, site_id: int) -> bool:
        result = await self._run("DELETE FROM sites WHERE id = ?", [site_id])
        return result.changes > 0


class FeatureStore(RecordStore):
    """Violation types surfaced as filterable features."""

    table = "features"

    async def list_features(self, active_only: bool = True) -> list[Row]:
        sql = "SELECT * FROM features"
        if active_only:
            sql += " WHERE is_active = 1"
        return await self._all(sql + " ORDER BY display_name ASC")

    async def create_feature(
        self, name: str, display_name: Optional[str] = None, description: Optional[str] = None
    ) -> Dict[str, Any]:
        display_name = display_name or name.replace("_", " ").title()
        result = await self._run(
            "INSERT INTO features (name, display_name, description) VALUES (?, ?, ?)",
            [name, display_name, description],
        )
        return {"id": result.id, "name": name, "display_name": display_name}

    async def delete_feature(self, feature_id: int) -> bool:
        result = await self._run("DELETE FROM features WHERE id = ?", [feature_id])
        return result.changes > 0

    async def sync_from_violations(self) -> int:
        """Add a feature for every violation type not yet known; returns how many."""
        result = await self._run(
            """
            INSERT OR IGNORE INTO features (name, display_name)
            SELECT DISTINCT type, type FROM violations
            """
        )
        return result.changes


class VideoLinkStore(RecordStore):
    """Survey videos linked to a feature and site."""

    table = "videos_links"

    async def list_links(
        self, feature_id: Optional[str] = None, site_id: Optional[str] = None
    ) -> list[Row]:
        clauses = []
        params = []
        if feature_id is not None:
            clauses.append("feature_id = ?")
            params.append(feature_id)
        if site_id is not None:
            clauses.append("site_id = ?")
            params.append(site_id)
        sql = "SELECT * FROM videos_links"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        return await self._all(sql + " ORDER BY create_date DESC", params)

    async def create_link(
        self,
        title: str,
        video_url: str,
        feature_id: Optional[str] = None,
        site_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await self._run(
            "INSERT INTO videos_links (feature_id, site_id, title, description, video_url) "
            "VALUES (?, ?, ?, ?, ?)",
            [feature_id, site_id, title, description, video_url],
        )
        return {"id": result.id, "title": title, "video_url": video_url}

    async def delete_link(self, link_id: int) -> bool:
        result = await self._run("DELETE FROM videos_links WHERE id = ?", [link_id])
        return result.changes > 0
