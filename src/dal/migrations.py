"""Versioned schema migrations for both backends.

Each migration is a list of per-table changes carrying DDL for every dialect
that may host the table. Postgres-owned tables ship SQLite DDL as well so the
default backend can serve them when Postgres is not available. SQLite-owned
tables never move and only ship SQLite DDL.

Applied changes are recorded per ``(version, table_name)`` in the
``schema_migrations`` ledger of the backend that ran them.
"""

from dataclasses import dataclass
from typing import Tuple

from dal.backends import Backend

LEDGER_TABLE = "schema_migrations"

DEFAULT_SITES = ("Bukaro", "BNK Mines", "Dhori", "Kathara")


@dataclass(frozen=True)
class TableChange:
    """DDL for one table, per dialect."""

    table: str
    postgres: Tuple[str, ...] = ()
    sqlite: Tuple[str, ...] = ()

    def statements_for(self, backend: Backend) -> Tuple[str, ...]:
        return self.postgres if backend is Backend.POSTGRES else self.sqlite


@dataclass(frozen=True)
class Migration:
    """An ordered, versioned group of table changes."""

    version: int
    description: str
    changes: Tuple[TableChange, ...]


def _account_table(name: str, extra_columns: str) -> TableChange:
    columns = f"""
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            {extra_columns}"""
    return TableChange(
        table=name,
        postgres=(
            f"""
            CREATE TABLE IF NOT EXISTS "{name}" (
            id SERIAL PRIMARY KEY,{columns},
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
        ),
        sqlite=(
            f"""
            CREATE TABLE IF NOT EXISTS "{name}" (
            id INTEGER PRIMARY KEY AUTOINCREMENT,{columns},
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
            """,
        ),
    )


_DOCUMENT_COLUMNS = """
            filename TEXT NOT NULL,
            cloudinary_url TEXT NOT NULL,
            cloudinary_public_id TEXT NOT NULL,
            department TEXT NOT NULL,
            uploaded_by INTEGER NOT NULL,
            file_size INTEGER"""

BASELINE = Migration(
    version=1,
    description="baseline tables",
    changes=(
        TableChange(
            table="reports",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS reports (
                report_id TEXT PRIMARY KEY,
                drone_id TEXT NOT NULL,
                date TEXT NOT NULL,
                location TEXT NOT NULL,
                total_violations INTEGER,
                uploaded_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(drone_id, date)
                )
                """,
            ),
        ),
        TableChange(
            table="violations",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS violations (
                id TEXT PRIMARY KEY,
                report_id TEXT NOT NULL,
                drone_id TEXT NOT NULL,
                date TEXT NOT NULL,
                location TEXT NOT NULL,
                type TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                latitude REAL NOT NULL,
                longitude REAL NOT NULL,
                image_url TEXT NOT NULL,
                confidence REAL,
                frame_number INTEGER,
                uploaded_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (report_id) REFERENCES reports (report_id)
                )
                """,
            ),
        ),
        TableChange(
            table="features",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS features (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                display_name TEXT NOT NULL,
                description TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                is_active BOOLEAN DEFAULT 1
                )
                """,
            ),
        ),
        TableChange(
            table="sites",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS sites (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                description TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """,
            ),
        ),
        TableChange(
            table="videos_links",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS videos_links (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                feature_id TEXT,
                site_id TEXT,
                title TEXT NOT NULL,
                description TEXT,
                video_url TEXT NOT NULL,
                create_date DATETIME DEFAULT CURRENT_TIMESTAMP,
                update_date DATETIME DEFAULT NULL
                )
                """,
            ),
        ),
        TableChange(
            table="users",
            sqlite=(
                """
                CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                role TEXT DEFAULT 'user',
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """,
            ),
        ),
        _account_table("admin", "permissions TEXT DEFAULT 'all'"),
        _account_table("user", "department TEXT,\n            access_level TEXT DEFAULT 'basic'"),
        TableChange(
            table="atr_documents",
            postgres=(
                f"""
                CREATE TABLE IF NOT EXISTS atr_documents (
                id SERIAL PRIMARY KEY,{_DOCUMENT_COLUMNS},
                upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """,
            ),
            sqlite=(
                f"""
                CREATE TABLE IF NOT EXISTS atr_documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,{_DOCUMENT_COLUMNS},
                upload_date DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """,
            ),
        ),
    ),
)

DOCUMENT_ANNOTATIONS = Migration(
    version=2,
    description="document annotation columns",
    changes=(
        TableChange(
            table="atr_documents",
            postgres=tuple(
                f"ALTER TABLE atr_documents ADD COLUMN IF NOT EXISTS {column} TEXT"
                for column in ("comment", "ai_report_url", "ai_report_public_id", "hyperlink")
            ),
            sqlite=tuple(
                f"ALTER TABLE atr_documents ADD COLUMN {column} TEXT"
                for column in ("comment", "ai_report_url", "ai_report_public_id", "hyperlink")
            ),
        ),
    ),
)

_INFERRED_REPORT_COLUMNS = f"""{_DOCUMENT_COLUMNS},
            site_name TEXT,
            comment TEXT,
            ai_report_url TEXT,
            ai_report_public_id TEXT,
            hyperlink TEXT"""

_UPLOADED_ATR_COLUMNS = """
            serial_no INTEGER,
            site_name TEXT NOT NULL,
            video_link TEXT,
            atr_link TEXT,
            file_name TEXT,
            department TEXT,
            uploaded_by INTEGER NOT NULL,
            file_size INTEGER,
            comment TEXT"""

REPORT_TABLES = Migration(
    version=3,
    description="inferred and uploaded report tables",
    changes=(
        TableChange(
            table="inferred_reports",
            postgres=(
                f"""
                CREATE TABLE IF NOT EXISTS inferred_reports (
                id SERIAL PRIMARY KEY,{_INFERRED_REPORT_COLUMNS},
                upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """,
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_department "
                "ON inferred_reports(department)",
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_site ON inferred_reports(site_name)",
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_uploaded_by "
                "ON inferred_reports(uploaded_by)",
            ),
            sqlite=(
                f"""
                CREATE TABLE IF NOT EXISTS inferred_reports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,{_INFERRED_REPORT_COLUMNS},
                upload_date DATETIME DEFAULT CURRENT_TIMESTAMP,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """,
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_department "
                "ON inferred_reports(department)",
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_site ON inferred_reports(site_name)",
                "CREATE INDEX IF NOT EXISTS idx_inferred_reports_uploaded_by "
                "ON inferred_reports(uploaded_by)",
            ),
        ),
        TableChange(
            table="uploaded_atr",
            postgres=(
                f"""
                CREATE TABLE IF NOT EXISTS uploaded_atr (
                id SERIAL PRIMARY KEY,{_UPLOADED_ATR_COLUMNS},
                date_time TIMESTAMP NOT NULL,
                upload_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """,
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_site_name ON uploaded_atr(site_name)",
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_date_time ON uploaded_atr(date_time)",
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_uploaded_by "
                "ON uploaded_atr(uploaded_by)",
            ),
            sqlite=(
                f"""
                CREATE TABLE IF NOT EXISTS uploaded_atr (
                id INTEGER PRIMARY KEY AUTOINCREMENT,{_UPLOADED_ATR_COLUMNS},
                date_time DATETIME NOT NULL,
                upload_date DATETIME DEFAULT CURRENT_TIMESTAMP,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """,
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_site_name ON uploaded_atr(site_name)",
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_date_time ON uploaded_atr(date_time)",
                "CREATE INDEX IF NOT EXISTS idx_uploaded_atr_uploaded_by "
                "ON uploaded_atr(uploaded_by)",
            ),
        ),
        TableChange(
            table="atr_documents",
            postgres=("ALTER TABLE atr_documents ADD COLUMN IF NOT EXISTS site_name TEXT",),
            sqlite=("ALTER TABLE atr_documents ADD COLUMN site_name TEXT",),
        ),
    ),
)

DEFAULT_SITE_SEED = Migration(
    version=4,
    description="default sites",
    changes=(
        TableChange(
            table="sites",
            sqlite=tuple(
                f"INSERT OR IGNORE INTO sites (name) VALUES ('{name}')" for name in DEFAULT_SITES
            ),
        ),
    ),
)

MIGRATIONS: Tuple[Migration, ...] = (
    BASELINE,
    DOCUMENT_ANNOTATIONS,
    REPORT_TABLES,
    DEFAULT_SITE_SEED,
)
