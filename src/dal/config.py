from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_bool, get_env_float, get_env_int, get_env_str

DEFAULT_SQLITE_PATH = "data/violations.db"


@dataclass(frozen=True)
class HybridDatabaseConfig:
    """Configuration for the Postgres + SQLite hybrid database.

    Built once at process start and passed to ``HybridDatabase``. A missing
    ``postgres_dsn`` disables Postgres; its tables are then served by SQLite.
    """

    sqlite_path: str = DEFAULT_SQLITE_PATH
    postgres_dsn: Optional[str] = None
    pg_pool_min_size: int = 1
    pg_pool_max_size: int = 10
    pg_command_timeout_seconds: float = 60.0
    pg_ssl: bool = False
    strict_routing: bool = False
    application_name: str = "atr_portal_dal"

    @property
    def postgres_configured(self) -> bool:
        """Return True when a Postgres DSN is present."""
        return bool(self.postgres_dsn)

    @classmethod
    def from_env(cls) -> "HybridDatabaseConfig":
        """Load hybrid database config from environment variables."""
        app_env = (get_env_str("APP_ENV") or get_env_str("NODE_ENV") or "").lower()
        return cls(
            sqlite_path=get_env_str("SQLITE_DB_PATH", DEFAULT_SQLITE_PATH),
            postgres_dsn=get_env_str("DATABASE_URL"),
            pg_pool_min_size=get_env_int("PG_POOL_MIN_SIZE", 1),
            pg_pool_max_size=get_env_int("PG_POOL_MAX_SIZE", 10),
            pg_command_timeout_seconds=get_env_float("PG_COMMAND_TIMEOUT_SECS", 60.0),
            pg_ssl=get_env_bool("PG_SSL", app_env == "production"),
            strict_routing=get_env_bool("DAL_STRICT_ROUTING", False),
        )

    def redacted_dsn(self) -> Optional[str]:
        """Return the Postgres DSN with any password masked, for logging."""
        if not self.postgres_dsn:
            return None
        scheme, sep, rest = self.postgres_dsn.partition("://")
        if not sep or "@" not in rest:
            return self.postgres_dsn
        credentials, _, host = rest.rpartition("@")
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"
