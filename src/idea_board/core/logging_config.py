"""Process-wide logging setup."""

import logging

from idea_board.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger from ``LOG_LEVEL`` unless a level is given."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    if not settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
