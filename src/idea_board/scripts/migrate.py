# src/idea_board/scripts/migrate.py
"""Apply Alembic migrations up to the latest revision."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from idea_board.core.logging_config import configure_logging
from idea_board.core.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"

# Configure logger for this module
logger = logging.getLogger(__name__)


def alembic_config(database_url: str | None = None) -> Config:
    """Build an Alembic config pointing at the bundled migrations."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade(revision: str = "head", database_url: str | None = None) -> None:
    """Upgrade the database schema to ``revision``."""
    logger.info("Upgrading database schema to %s", revision)
    command.upgrade(alembic_config(database_url), revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Apply idea board database migrations.")
    parser.add_argument("revision", nargs="?", default="head", help="Target revision")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    args = parser.parse_args(argv)

    configure_logging()
    run_upgrade(args.revision, args.database_url)


if __name__ == "__main__":
    main()
