"""Models capturing votes on ideas and comments."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from idea_board.db.session import Base
from idea_board.db.time import utcnow


class VoteType(str, Enum):
    """Direction of a vote."""

    UP = "up"
    DOWN = "down"

    @property
    def direction(self) -> int:
        """Return +1 for an up-vote and -1 for a down-vote."""
        return 1 if self is VoteType.UP else -1


class TargetKind(str, Enum):
    """Kind of entity a vote is cast on."""

    IDEA = "idea"
    COMMENT = "comment"


class Vote(Base):
    """Ledger row recording one session's vote on one target.

    Idea votes and comment votes share this table and are told apart by
    ``target_kind``. The ledger is the source of truth for the ``votes``
    counters on ideas and comments.

    Targets are referenced by identifier only: deleting an idea or comment
    leaves its rows behind as orphans, which readers skip.
    """

    __tablename__ = "vote_ledger"
    __table_args__ = (
        # At most one row per voter per target; the final arbiter under races.
        UniqueConstraint(
            "voter_session_id",
            "target_id",
            "target_kind",
            name="uq_vote_ledger_voter_target",
        ),
        CheckConstraint("vote_type IN ('up', 'down')", name="ck_vote_ledger_vote_type"),
        CheckConstraint(
            "target_kind IN ('idea', 'comment')",
            name="ck_vote_ledger_target_kind",
        ),
        Index("ix_vote_ledger_target", "target_kind", "target_id"),
        Index("ix_vote_ledger_address_created", "voter_address", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_session_id: Mapped[str] = mapped_column(Text, nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_kind: Mapped[str] = mapped_column(Text, nullable=False)
    vote_type: Mapped[str] = mapped_column(Text, nullable=False)
    voter_address: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def direction(self) -> int:
        """Return the signed contribution of this row to the target's counter."""
        return VoteType(self.vote_type).direction


class RewardCredit(Base):
    """Marks that a session's up-vote on a target has counted toward reputation.

    Present at most once per (session, target) so that retried or replayed
    vote events never credit twice.
    """

    __tablename__ = "reward_credits"

    session_id: Mapped[str] = mapped_column(Text, primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    target_kind: Mapped[str] = mapped_column(Text, primary_key=True)
    credited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class VoteAuditFlag(Base):
    """Audit record for a vote accepted while looking like address-based stuffing."""

    __tablename__ = "vote_audit_flags"
    __table_args__ = (Index("ix_vote_audit_flags_address", "voter_address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_session_id: Mapped[str] = mapped_column(Text, nullable=False)
    voter_address: Mapped[str] = mapped_column(Text, nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_kind: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
