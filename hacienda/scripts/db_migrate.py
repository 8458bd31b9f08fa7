"""Bring the database schema to the latest alembic revision.

Databases created by the app's own ``create_all`` have the tables but no
``alembic_version`` row; those are stamped first so the upgrade is a no-op.
"""

import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from hacienda.core.database import DATABASE_URL

logger = logging.getLogger("hacienda-files.migrate")

CORE_TABLES = ("users", "file_items", "notifications", "file_alerts", "quick_links")
ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def needs_stamp(url: str) -> bool:
    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    return "alembic_version" not in tables and bool(tables.intersection(CORE_TABLES))


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = Config(str(ALEMBIC_INI))

    if needs_stamp(DATABASE_URL.replace("+aiosqlite", "")):
        logger.info("Unversioned schema found, stamping head")
        command.stamp(config, "head")

    try:
        command.upgrade(config, "head")
    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)
    logger.info("Schema is at head")


if __name__ == "__main__":
    main()
