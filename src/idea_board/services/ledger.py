"""Vote ledger: one vote per session per target, kept in step with counters.

Each vote request runs as a single transaction:

1. lock the target row (concurrent votes on one target serialize here);
2. look up the voter's existing ledger row and decide the outcome;
3. write the ledger change and flush it;
4. apply the counter delta;
5. credit reputation for up-votes;
6. commit.

The ledger's unique constraint on (voter, target, kind) is the final
arbiter. If it fires, the whole unit is rolled back and retried a bounded
number of times; a retry sees the winning row and resolves as
``UNCHANGED`` or ``CHANGED``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from idea_board.core.errors import (
    InvalidVote,
    RateLimited,
    SessionNotFound,
    SubmissionRequired,
    TargetNotFound,
    VoteConflict,
)
from idea_board.core.settings import settings
from idea_board.db.time import utcnow
from idea_board.db.transaction import storage_guard
from idea_board.models import TargetKind, VisitorSession, Vote, VoteAuditFlag, VoteType
from idea_board.services.counters import apply_delta, lock_target
from idea_board.services.identity import UNKNOWN_ADDRESS
from idea_board.services.reputation import record_upvote
from idea_board.services.session_cache import SessionCache, get_session_cache

# Configure logger for this module
logger = logging.getLogger(__name__)


class VoteStatus(str, Enum):
    """How a vote request changed the ledger."""

    ACCEPTED = "accepted"
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a vote or unvote request.

    Attributes:
        status: What happened to the ledger row.
        target_kind: Kind of the voted target.
        target_id: Identifier of the voted target.
        delta: Change applied to the target's counter.
        votes: The target's counter after the request.
        vote_type: The voter's standing vote, or None after a withdrawal.
        flagged: True if the vote was accepted but recorded for abuse review.
        reputation_changed: True if the voter's reputation fields moved.
    """

    status: VoteStatus
    target_kind: TargetKind
    target_id: int
    delta: int
    votes: int
    vote_type: VoteType | None
    flagged: bool = False
    reputation_changed: bool = False


def parse_vote_type(value: Any) -> VoteType:
    """Return ``value`` as a ``VoteType`` or raise ``InvalidVote``."""
    try:
        return VoteType(value)
    except ValueError as exc:
        raise InvalidVote(f"Invalid vote type: {value!r}") from exc


def parse_target_kind(value: Any) -> TargetKind:
    """Return ``value`` as a ``TargetKind`` or raise ``InvalidVote``."""
    try:
        return TargetKind(value)
    except ValueError as exc:
        raise InvalidVote(f"Invalid target kind: {value!r}") from exc


def _validate_target_id(target_id: Any) -> int:
    if isinstance(target_id, bool) or not isinstance(target_id, int) or target_id < 1:
        raise InvalidVote(f"Invalid target id: {target_id!r}")
    return target_id


def _run_unit(db: Session, unit: Callable[[], VoteOutcome]) -> VoteOutcome:
    """Run ``unit`` and commit, retrying when the ledger's unique constraint fires."""
    attempts = settings.vote_conflict_retries
    last_error: IntegrityError | None = None
    for attempt in range(1, attempts + 1):
        try:
            with storage_guard(db):
                outcome = unit()
                db.commit()
                return outcome
        except IntegrityError as exc:
            last_error = exc
            logger.warning("Vote ledger conflict (attempt %d/%d): %s", attempt, attempts, exc.orig)
    raise VoteConflict("Vote could not be recorded due to concurrent updates") from last_error


def _recent_targets_from_address(
    db: Session,
    voter_session_id: str,
    voter_address: str,
    now: datetime,
) -> int:
    """Count distinct targets voted on from an address by other sessions recently."""
    cutoff = now - timedelta(seconds=settings.abuse_window_seconds)
    rows = db.execute(
        select(Vote.target_kind, Vote.target_id)
        .where(
            Vote.voter_address == voter_address,
            Vote.voter_session_id != voter_session_id,
            Vote.created_at >= cutoff,
        )
        .distinct()
        .limit(settings.abuse_vote_threshold)
    ).all()
    return len(rows)


def _target_voted_from_address(
    db: Session,
    voter_session_id: str,
    voter_address: str,
    target_id: int,
    target_kind: TargetKind,
    now: datetime,
) -> bool:
    """Return True if another session voted on this target from the address recently."""
    cutoff = now - timedelta(seconds=settings.abuse_window_seconds)
    return (
        db.scalar(
            select(Vote.id)
            .where(
                Vote.voter_address == voter_address,
                Vote.target_id == target_id,
                Vote.target_kind == target_kind.value,
                Vote.voter_session_id != voter_session_id,
                Vote.created_at >= cutoff,
            )
            .limit(1)
        )
        is not None
    )


def _screen_address(
    db: Session,
    *,
    voter_session_id: str,
    voter_address: str,
    address_forwarded: bool,
    target_id: int,
    target_kind: TargetKind,
    now: datetime,
) -> bool:
    """Apply the address abuse policy to a new vote.

    A vote is suspect when another session already voted on the same target
    from the same address within the window, or when other sessions from the
    address voted on ``abuse_vote_threshold`` distinct targets. The exemption
    list only applies to addresses observed on the connection itself, never
    to one read from ``X-Forwarded-For``.

    Returns:
        True if the vote was flagged for audit.

    Raises:
        RateLimited: Under the ``reject`` policy when the address is suspect.
    """
    if not address_forwarded and (
        voter_address == UNKNOWN_ADDRESS or voter_address in settings.trusted_addresses
    ):
        return False

    if _target_voted_from_address(
        db, voter_session_id, voter_address, target_id, target_kind, now
    ):
        reason = (
            f"{target_kind.value} {target_id} already voted on from {voter_address} "
            f"by another session within {settings.abuse_window_seconds}s"
        )
    else:
        recent = _recent_targets_from_address(db, voter_session_id, voter_address, now)
        if recent < settings.abuse_vote_threshold:
            return False
        reason = (
            f"{recent} votes on distinct targets from {voter_address} by other sessions "
            f"within {settings.abuse_window_seconds}s"
        )

    if settings.abuse_policy == "reject":
        logger.warning("Rejected suspected vote stuffing: %s", reason)
        raise RateLimited("Too many votes from this network address; try again later")

    logger.warning("Flagged suspected vote stuffing: %s", reason)
    db.add(
        VoteAuditFlag(
            voter_session_id=voter_session_id,
            voter_address=voter_address,
            target_id=target_id,
            target_kind=target_kind.value,
            reason=reason,
            created_at=now,
        )
    )
    return True


def _find_vote(
    db: Session,
    session_id: str,
    target_id: int,
    target_kind: TargetKind,
) -> Vote | None:
    return db.scalars(
        select(Vote)
        .where(
            Vote.voter_session_id == session_id,
            Vote.target_id == target_id,
            Vote.target_kind == target_kind.value,
        )
        .execution_options(populate_existing=True)
    ).first()


def cast_vote(
    db: Session,
    voter_session_id: str,
    target_id: int,
    target_kind: TargetKind | str,
    vote_type: VoteType | str,
    voter_address: str,
    *,
    address_forwarded: bool = False,
    cache: SessionCache | None = None,
    now: datetime | None = None,
) -> VoteOutcome:
    """Record a session's vote on an idea or comment.

    - No prior vote: insert it, counter moves by +1/-1 (``ACCEPTED``).
    - Same vote again: no-op (``UNCHANGED``).
    - Opposite vote: flip it, counter swings by +2/-2 (``CHANGED``).

    Args:
        db: Database session.
        voter_session_id: Session casting the vote.
        target_id: Idea or comment identifier.
        target_kind: ``"idea"`` or ``"comment"``.
        vote_type: ``"up"`` or ``"down"``.
        voter_address: Network address the request came from.
        address_forwarded: True when the address was read from
            ``X-Forwarded-For``; such addresses are never exempt from screening.
        cache: Session cache to invalidate on reputation changes.
        now: Clock override for tests.

    Returns:
        The outcome with the target's new counter.

    Raises:
        InvalidVote: Malformed vote type, target kind or id.
        SessionNotFound: The voter session was never issued.
        SubmissionRequired: Voting is gated and the session has not submitted.
        TargetNotFound: The target does not exist.
        RateLimited: The address looks like it is stuffing votes.
        VoteConflict: Concurrent writers won every retry.
        StorageUnavailable: The database cannot be reached.
    """
    kind = parse_target_kind(target_kind)
    direction = parse_vote_type(vote_type)
    target_id = _validate_target_id(target_id)

    def _unit() -> VoteOutcome:
        moment = now or utcnow()
        voter = db.get(VisitorSession, voter_session_id, populate_existing=True)
        if voter is None:
            raise SessionNotFound(f"Session {voter_session_id!r} not found")
        if settings.vote_requires_submission and not voter.has_submitted:
            raise SubmissionRequired("Submit an idea before voting")

        target = lock_target(db, target_id, kind)
        if target is None:
            raise TargetNotFound(kind.value, target_id)

        existing = _find_vote(db, voter_session_id, target_id, kind)
        if existing is not None and existing.vote_type == direction.value:
            return VoteOutcome(
                status=VoteStatus.UNCHANGED,
                target_kind=kind,
                target_id=target_id,
                delta=0,
                votes=target.votes,
                vote_type=direction,
            )

        flagged = False
        if existing is None:
            flagged = _screen_address(
                db,
                voter_session_id=voter_session_id,
                voter_address=voter_address,
                address_forwarded=address_forwarded,
                target_id=target_id,
                target_kind=kind,
                now=moment,
            )
            db.add(
                Vote(
                    voter_session_id=voter_session_id,
                    target_id=target_id,
                    target_kind=kind.value,
                    vote_type=direction.value,
                    voter_address=voter_address,
                    created_at=moment,
                    updated_at=moment,
                )
            )
            status = VoteStatus.ACCEPTED
            delta = direction.direction
        else:
            existing.vote_type = direction.value
            existing.voter_address = voter_address
            status = VoteStatus.CHANGED
            delta = 2 * direction.direction

        # Ledger first: the counter never moves without a flushed ledger change.
        db.flush()
        votes = apply_delta(db, target_id, kind, delta)

        reputation_changed = False
        if direction is VoteType.UP:
            reputation_changed = record_upvote(db, voter_session_id, target_id, kind)

        return VoteOutcome(
            status=status,
            target_kind=kind,
            target_id=target_id,
            delta=delta,
            votes=votes,
            vote_type=direction,
            flagged=flagged,
            reputation_changed=reputation_changed,
        )

    outcome = _run_unit(db, _unit)
    if outcome.reputation_changed:
        (cache or get_session_cache()).invalidate(voter_session_id)
    return outcome


def unvote(
    db: Session,
    voter_session_id: str,
    target_id: int,
    target_kind: TargetKind | str,
) -> VoteOutcome:
    """Withdraw a session's vote on a target.

    Removing a vote that does not exist is not an error and reports
    ``UNCHANGED``. Reputation already credited is kept.

    Raises:
        InvalidVote: Malformed target kind or id.
        TargetNotFound: The target does not exist.
        StorageUnavailable: The database cannot be reached.
    """
    kind = parse_target_kind(target_kind)
    target_id = _validate_target_id(target_id)

    def _unit() -> VoteOutcome:
        target = lock_target(db, target_id, kind)
        if target is None:
            raise TargetNotFound(kind.value, target_id)

        existing = _find_vote(db, voter_session_id, target_id, kind)
        if existing is None:
            return VoteOutcome(
                status=VoteStatus.UNCHANGED,
                target_kind=kind,
                target_id=target_id,
                delta=0,
                votes=target.votes,
                vote_type=None,
            )

        delta = -existing.direction
        db.delete(existing)
        db.flush()
        votes = apply_delta(db, target_id, kind, delta)
        return VoteOutcome(
            status=VoteStatus.WITHDRAWN,
            target_kind=kind,
            target_id=target_id,
            delta=delta,
            votes=votes,
            vote_type=None,
        )

    return _run_unit(db, _unit)


def get_vote(
    db: Session,
    session_id: str,
    target_id: int,
    target_kind: TargetKind | str,
) -> Vote | None:
    """Return the session's standing vote on a target, if any."""
    kind = parse_target_kind(target_kind)
    with storage_guard(db):
        return _find_vote(db, session_id, target_id, kind)


def list_session_votes(db: Session, session_id: str) -> list[Vote]:
    """Return every standing vote of a session, newest first."""
    with storage_guard(db):
        return list(
            db.scalars(
                select(Vote)
                .where(Vote.voter_session_id == session_id)
                .order_by(Vote.created_at.desc(), Vote.id.desc())
            )
        )
