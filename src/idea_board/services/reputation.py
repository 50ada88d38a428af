"""Session reputation: submission status, upvotes given and reward upvotes."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from idea_board.core.errors import SessionNotFound
from idea_board.core.settings import settings
from idea_board.db.transaction import storage_guard
from idea_board.models import RewardCredit, TargetKind, VisitorSession
from idea_board.services.session_cache import SessionCache, get_session_cache

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReputationSnapshot:
    """Reputation fields of a session plus progress toward the next reward."""

    has_submitted: bool
    upvotes_given: int
    reward_upvotes_earned: int
    upvotes_until_next_reward: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def upvotes_until_next_reward(upvotes_given: int, threshold: int | None = None) -> int:
    """Return how many more credited up-votes earn the next reward."""
    threshold = threshold or settings.reward_upvote_threshold
    return threshold - (upvotes_given % threshold)


def reputation_snapshot(session: VisitorSession) -> ReputationSnapshot:
    """Build a snapshot from a loaded session row."""
    return ReputationSnapshot(
        has_submitted=bool(session.has_submitted),
        upvotes_given=session.upvotes_given,
        reward_upvotes_earned=session.reward_upvotes_earned,
        upvotes_until_next_reward=upvotes_until_next_reward(session.upvotes_given),
    )


def record_upvote(db: Session, session_id: str, target_id: int, target_kind: TargetKind) -> bool:
    """Credit an accepted up-vote to the voter's reputation.

    Runs inside the caller's vote transaction. Each (session, target) pair
    is credited at most once. This deliberately narrows the rule that every
    accepted or changed up-vote earns credit: up, unvote, up again on the
    same target is ``ACCEPTED`` by the ledger but not credited a second
    time, and neither is a retried or replayed vote. Every
    ``REWARD_UPVOTE_THRESHOLD``-th credit also earns one reward upvote; both
    counters move in a single ``UPDATE``.

    Returns:
        True if the session's reputation changed.
    """
    key = (session_id, target_id, target_kind.value)
    if db.get(RewardCredit, key) is not None:
        return False

    db.add(RewardCredit(session_id=session_id, target_id=target_id, target_kind=target_kind.value))
    db.flush()

    threshold = settings.reward_upvote_threshold
    row = db.execute(
        update(VisitorSession)
        .where(VisitorSession.session_id == session_id)
        .values(
            upvotes_given=VisitorSession.upvotes_given + 1,
            reward_upvotes_earned=VisitorSession.reward_upvotes_earned
            + case(((VisitorSession.upvotes_given + 1) % threshold == 0, 1), else_=0),
        )
        .returning(VisitorSession.upvotes_given, VisitorSession.reward_upvotes_earned)
    ).first()
    if row is None:
        raise SessionNotFound(f"Session {session_id!r} not found")

    upvotes_given, rewards = row
    if upvotes_given % threshold == 0:
        logger.info("Session earned reward upvote #%d after %d upvotes", rewards, upvotes_given)
    return True


def mark_submitted(db: Session, session_id: str) -> None:
    """Flag the session as having submitted an idea, within the caller's transaction."""
    result = db.execute(
        update(VisitorSession)
        .where(VisitorSession.session_id == session_id)
        .values(has_submitted=True)
    )
    if result.rowcount == 0:
        raise SessionNotFound(f"Session {session_id!r} not found")


def session_summary(
    db: Session,
    session_id: str,
    cache: SessionCache | None = None,
) -> ReputationSnapshot | None:
    """Return a session's reputation, reading through the session cache."""
    cache = cache or get_session_cache()
    cached = cache.get(session_id)
    if cached is not None:
        return ReputationSnapshot(**cached)

    with storage_guard(db):
        session = db.get(VisitorSession, session_id, populate_existing=True)
    if session is None:
        return None
    snapshot = reputation_snapshot(session)
    cache.set(session_id, snapshot.to_dict())
    return snapshot
