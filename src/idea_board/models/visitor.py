"""SQLAlchemy model for anonymous visitor sessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from idea_board.db.session import Base
from idea_board.db.time import utcnow


class VisitorSession(Base):
    """Anonymous identity held by a visitor as an opaque client-side token.

    Rows are created on first visit and never deleted by this service.
    ``upvotes_given`` and ``reward_upvotes_earned`` only ever grow.
    """

    __tablename__ = "user_sessions"

    session_id: Mapped[str] = mapped_column(Text, primary_key=True)
    has_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upvotes_given: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reward_upvotes_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Sum of gaps between requests that were shorter than the idle threshold.
    active_duration_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
