"""Helpers for running a unit of work against the database."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from idea_board.core.errors import StorageUnavailable

# Configure logger for this module
logger = logging.getLogger(__name__)


@contextmanager
def storage_guard(db: Session) -> Iterator[None]:
    """Roll back and raise ``StorageUnavailable`` on connectivity failures.

    Any other exception also rolls the session back before propagating, so
    a failed unit never leaves half-applied ledger or counter changes in the
    session.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        logger.error("Database unavailable: %s", exc)
        raise StorageUnavailable("The database is temporarily unavailable") from exc
    except Exception:
        db.rollback()
        raise
