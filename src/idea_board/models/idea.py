"""SQLAlchemy model for submitted ideas."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from idea_board.db.session import Base
from idea_board.db.time import utcnow


class Idea(Base):
    """An idea submitted by an anonymous session.

    ``votes`` is a cache of the vote ledger and is written only by the
    counter service.
    """

    __tablename__ = "ideas"
    __table_args__ = (
        Index("ix_ideas_votes", "votes"),
        Index("ix_ideas_session_id", "session_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    use_case: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="other")
    tools: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Starts at 1: the submitter's implicit upvote.
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
