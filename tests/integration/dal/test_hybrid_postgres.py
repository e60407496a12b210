"""Live Postgres checks for the hybrid database.

Requires RUN_INTEGRATION_TESTS=1 and DATABASE_URL pointing at a disposable
database.
"""

import os
import uuid

import pytest

from dal import Backend, BackendState, HybridDatabase, HybridDatabaseConfig
from dal.stores import AtrDocumentStore, UploadedAtrStore

pytestmark = pytest.mark.skipif(
    not os.getenv("DATABASE_URL"), reason="DATABASE_URL not set for Postgres integration tests"
)


async def _db(tmp_path) -> HybridDatabase:
    config = HybridDatabaseConfig.from_env()
    db = HybridDatabase(
        HybridDatabaseConfig(
            sqlite_path=str(tmp_path / "violations.db"),
            postgres_dsn=config.postgres_dsn,
            pg_ssl=config.pg_ssl,
        )
    )
    await db.start()
    return db


@pytest.mark.asyncio
async def test_postgres_comes_up_and_owns_its_tables(tmp_path):
    db = await _db(tmp_path)
    try:
        assert db.state(Backend.POSTGRES) is BackendState.SCHEMA_READY
        assert db.effective_backend("atr_documents") is Backend.POSTGRES
        assert (await db.schema_versions())["postgres"] >= 3
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_insert_returns_generated_id_and_round_trips(tmp_path):
    db = await _db(tmp_path)
    marker = uuid.uuid4().hex
    try:
        documents = AtrDocumentStore(db)
        created = await documents.create(
            {
                "filename": f"{marker}.pdf",
                "cloudinary_url": "https://cdn.example/x.pdf",
                "cloudinary_public_id": marker,
                "department": "Integration",
                "uploaded_by": 0,
                "file_size": 1,
            }
        )
        assert isinstance(created["id"], int)
        fetched = await documents.get(created["id"])
        assert fetched["cloudinary_public_id"] == marker
        assert await documents.delete(created["id"])
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_insert_or_ignore_is_stripped_for_postgres(tmp_path):
    db = await _db(tmp_path)
    marker = uuid.uuid4().hex
    try:
        result = await db.run(
            "INSERT OR IGNORE INTO admin (username, email, password_hash) VALUES (?, ?, ?)",
            [marker, f"{marker}@example.com", "hash"],
        )
        assert result.changes == 1
        assert isinstance(result.id, int)
        await db.run("DELETE FROM admin WHERE id = ?", [result.id])
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_timestamp_filters(tmp_path):
    db = await _db(tmp_path)
    marker = uuid.uuid4().hex
    try:
        store = UploadedAtrStore(db)
        created = await store.create(
            {"site_name": marker, "date_time": "2001-02-03T04:05:06", "uploaded_by": 0}
        )
        found = await store.list_by_date_range("2001-02-03", "2001-02-04")
        assert created["id"] in [row["id"] for row in found]
        assert await store.delete(created["id"])
    finally:
        await db.close()
