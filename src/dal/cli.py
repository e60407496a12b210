import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from dotenv import load_dotenv

from dal.backends import Backend
from dal.config import HybridDatabaseConfig
from dal.errors import BackendUnavailableError, HybridDatabaseError
from dal.hybrid import HybridDatabase

logger = logging.getLogger(__name__)


def _require_sqlite(db: HybridDatabase) -> None:
    """Raise when SQLite did not reach schema-ready."""
    if not db.is_available(Backend.SQLITE):
        raise BackendUnavailableError(
            Backend.SQLITE.value, db.status()[Backend.SQLITE.value]["reason"] or "unknown"
        )


async def _migrate(db: HybridDatabase) -> dict:
    async with db:
        _require_sqlite(db)
        return {"backends": db.status(), "schema_versions": await db.schema_versions()}


async def _status(db: HybridDatabase) -> dict:
    async with db:
        _require_sqlite(db)
        return {
            "backends": db.status(),
            "routing": {
                table: {"owner": owner.value, "effective": db.effective_backend(table).value}
                for table, owner in db.ownership.items()
            },
        }


def main(argv=None) -> int:
    """Run the hybrid database management CLI."""
    parser = argparse.ArgumentParser(description="ATR portal hybrid database CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("migrate", help="Connect both backends and apply pending migrations")
    subparsers.add_parser("status", help="Show backend state and effective table routing")
    parser.add_argument(
        "--sqlite-path", help="SQLite database file (default: SQLITE_DB_PATH or data/violations.db)"
    )

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 2

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = HybridDatabaseConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    if args.sqlite_path:
        config = replace(config, sqlite_path=args.sqlite_path)

    command = _migrate if args.command == "migrate" else _status
    try:
        report = asyncio.run(command(HybridDatabase(config)))
    except HybridDatabaseError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(json.dumps(report, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
