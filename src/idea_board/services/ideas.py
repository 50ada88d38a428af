"""Service-level helpers for submitting and reading ideas."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from idea_board.core.errors import SessionNotFound, TargetNotFound
from idea_board.db.transaction import storage_guard
from idea_board.models import Comment, Idea, TargetKind, VisitorSession
from idea_board.services.counters import COUNTER_BASELINE
from idea_board.services.reputation import mark_submitted
from idea_board.services.session_cache import SessionCache, get_session_cache

# Configure logger for this module
logger = logging.getLogger(__name__)

_IDEA_FIELDS = ("title", "description", "use_case", "category", "tools", "link_url")


def submit_idea(
    db: Session,
    session_id: str,
    payload: Mapping[str, Any],
    *,
    cache: SessionCache | None = None,
) -> Idea:
    """Persist an idea for a session and mark the session as a submitter.

    Payload fields are expected to be validated by the caller.

    Args:
        db: Database session.
        session_id: Submitting session.
        payload: Idea fields (title, description, use_case, category, tools, link_url).
        cache: Session cache to invalidate once ``has_submitted`` flips.

    Returns:
        The persisted idea with its counter at the baseline.

    Raises:
        SessionNotFound: If the session was never issued.
        StorageUnavailable: If the database cannot be reached.
    """
    fields = {name: payload[name] for name in _IDEA_FIELDS if payload.get(name) is not None}
    with storage_guard(db):
        if db.get(VisitorSession, session_id) is None:
            raise SessionNotFound(f"Session {session_id!r} not found")
        idea = Idea(session_id=session_id, votes=COUNTER_BASELINE, **fields)
        db.add(idea)
        db.flush()
        mark_submitted(db, session_id)
        db.commit()
        db.refresh(idea)

    (cache or get_session_cache()).invalidate(session_id)
    logger.info("Idea %d submitted", idea.id)
    return idea


def get_idea(db: Session, idea_id: int) -> Idea:
    """Return an idea or raise ``TargetNotFound``."""
    with storage_guard(db):
        idea = db.get(Idea, idea_id, populate_existing=True)
    if idea is None:
        raise TargetNotFound(TargetKind.IDEA.value, idea_id)
    return idea


def list_ideas(
    db: Session,
    *,
    sort: Literal["votes", "recent"] = "votes",
    category: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Idea]:
    """Return ideas ordered by their vote counter or by submission time."""
    stmt = select(Idea)
    if category:
        stmt = stmt.where(Idea.category == category)
    if sort == "recent":
        stmt = stmt.order_by(Idea.submitted_at.desc(), Idea.id.desc())
    else:
        stmt = stmt.order_by(Idea.votes.desc(), Idea.submitted_at.asc(), Idea.id.asc())
    with storage_guard(db):
        return list(db.scalars(stmt.offset(offset).limit(limit)))


def list_session_ideas(db: Session, session_id: str) -> list[Idea]:
    """Return the ideas a session has submitted."""
    with storage_guard(db):
        return list(
            db.scalars(
                select(Idea).where(Idea.session_id == session_id).order_by(Idea.id)
            )
        )


def delete_idea(db: Session, idea_id: int) -> None:
    """Remove an idea together with its comments.

    Vote ledger rows on the idea and its comments are left in place as
    orphans; counter rebuilds and reads skip them.

    Raises:
        TargetNotFound: If the idea does not exist.
    """
    with storage_guard(db):
        idea = db.get(Idea, idea_id)
        if idea is None:
            raise TargetNotFound(TargetKind.IDEA.value, idea_id)
        db.execute(delete(Comment).where(Comment.idea_id == idea_id))
        db.delete(idea)
        db.commit()
    logger.info("Idea %d deleted; its ledger rows are now orphaned", idea_id)
