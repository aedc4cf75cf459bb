"""Create the gateway's tables in the configured database.

Reads ``DATABASE_URL`` through the application settings. Existing tables are
left untouched; only missing ones are created.

Usage::

    python -m scripts.init_database
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from app.clients.database import Database
from app.core.config import DatabaseSettings
from app.core.logging import configure_logging

logger = logging.getLogger("scripts.init_database")


async def init_database(database: Database) -> list[str]:
    """Create missing tables and return every table name now present."""
    if not await database.ping():
        raise ConnectionError("Database is not reachable")
    await database.create_tables()
    async with database.engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: sorted(inspect(sync_conn).get_table_names()))


async def _run() -> int:
    database = Database.from_settings(DatabaseSettings())
    try:
        tables = await init_database(database)
    except (ConnectionError, SQLAlchemyError, OSError) as exc:
        logger.error("Database initialisation failed: %s", exc)
        return 1
    finally:
        await database.aclose()
    logger.info("Tables present: %s", ", ".join(tables))
    return 0


def main() -> int:
    configure_logging("INFO")
    return asyncio.run(_run())


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
