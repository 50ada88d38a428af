"""Denormalized vote counters on ideas and comments.

Counters are a cache of the vote ledger: for every target,
``votes == COUNTER_BASELINE + sum(ledger directions)``. ``apply_delta`` keeps
them in step inside the ledger's transaction and ``rebuild_counters``
restores them by replaying the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from idea_board.core.errors import TargetNotFound
from idea_board.db.transaction import storage_guard
from idea_board.models import Comment, Idea, TargetKind, Vote, VoteType

# Configure logger for this module
logger = logging.getLogger(__name__)

# Every idea and comment starts with its author's implicit upvote.
COUNTER_BASELINE = 1

_DIRECTION = case((Vote.vote_type == VoteType.UP.value, 1), else_=-1)


@dataclass(frozen=True)
class CounterDrift:
    """A counter whose cached value disagreed with the ledger."""

    target_kind: TargetKind
    target_id: int
    cached: int
    expected: int


def target_model(target_kind: TargetKind) -> type[Idea] | type[Comment]:
    """Return the ORM class that holds counters for ``target_kind``."""
    return Idea if target_kind is TargetKind.IDEA else Comment


def lock_target(db: Session, target_id: int, target_kind: TargetKind) -> Idea | Comment | None:
    """Load a target row and hold its lock until the transaction ends.

    Concurrent votes on the same target serialize here; votes on different
    targets never wait on each other.
    """
    model = target_model(target_kind)
    return db.scalars(
        select(model)
        .where(model.id == target_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()


def apply_delta(db: Session, target_id: int, target_kind: TargetKind, delta: int) -> int:
    """Add ``delta`` to a target's counter and return the new value.

    Runs as one ``UPDATE ... SET votes = votes + :delta`` so concurrent
    deltas never overwrite each other. Callers must have flushed the
    matching ledger change first.

    Raises:
        TargetNotFound: If the target row does not exist.
    """
    model = target_model(target_kind)
    new_votes = db.execute(
        update(model)
        .where(model.id == target_id)
        .values(votes=model.votes + delta)
        .returning(model.votes)
    ).scalar_one_or_none()
    if new_votes is None:
        raise TargetNotFound(target_kind.value, target_id)
    return int(new_votes)


def ledger_total(db: Session, target_id: int, target_kind: TargetKind) -> int:
    """Return the sum of ledger directions for one target."""
    total = db.scalar(
        select(func.coalesce(func.sum(_DIRECTION), 0)).where(
            Vote.target_kind == target_kind.value,
            Vote.target_id == target_id,
        )
    )
    return int(total or 0)


def rebuild_counters(
    db: Session,
    target_kind: TargetKind | None = None,
    *,
    dry_run: bool = False,
) -> list[CounterDrift]:
    """Recompute counters from the ledger and repair any drift.

    Ledger rows whose target no longer exists are ignored.

    Args:
        db: Database session.
        target_kind: Restrict the rebuild to one kind; both when None.
        dry_run: Report drift without writing.

    Returns:
        Every counter that disagreed with the ledger.
    """
    kinds = [target_kind] if target_kind is not None else list(TargetKind)
    drifts: list[CounterDrift] = []

    with storage_guard(db):
        for kind in kinds:
            model = target_model(kind)
            # Lock before summing so no vote can commit between the two reads.
            targets = db.scalars(
                select(model)
                .order_by(model.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).all()
            totals = dict(
                db.execute(
                    select(Vote.target_id, func.sum(_DIRECTION))
                    .where(Vote.target_kind == kind.value)
                    .group_by(Vote.target_id)
                ).all()
            )
            orphaned = set(totals) - {target.id for target in targets}
            if orphaned:
                logger.info("Skipping %d orphaned %s ledger targets", len(orphaned), kind.value)

            for target in targets:
                expected = COUNTER_BASELINE + int(totals.get(target.id, 0))
                if target.votes == expected:
                    continue
                drifts.append(CounterDrift(kind, target.id, target.votes, expected))
                if not dry_run:
                    target.votes = expected

        if dry_run:
            db.rollback()
        else:
            db.commit()

    for drift in drifts:
        logger.warning(
            "Counter drift on %s %d: cached=%d ledger=%d%s",
            drift.target_kind.value,
            drift.target_id,
            drift.cached,
            drift.expected,
            " (dry run)" if dry_run else "",
        )
    return drifts
