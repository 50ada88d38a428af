"""SQLAlchemy model for comments and their authorship variants."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from idea_board.db.session import Base
from idea_board.db.time import utcnow


@dataclass(frozen=True)
class AnonymousAuthor:
    """Comment written from an anonymous session under a chosen display name."""

    session_id: str
    display_name: str

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ValueError("Anonymous authors need a session id")
        if not self.display_name or not self.display_name.strip():
            raise ValueError("Anonymous authors need a display name")


@dataclass(frozen=True)
class RegisteredAuthor:
    """Comment written by a registered account."""

    user_id: str

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("Registered authors need a user id")


CommentAuthor = AnonymousAuthor | RegisteredAuthor


class Comment(Base):
    """A comment on an idea, optionally replying to another comment.

    The author is stored as exactly one of two column groups; the check
    constraint rejects rows with both or neither.
    """

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NOT NULL AND session_id IS NULL AND anonymous_name IS NULL)"
            " OR (user_id IS NULL AND session_id IS NOT NULL AND anonymous_name IS NOT NULL)",
            name="ck_comments_single_author",
        ),
        Index("ix_comments_idea_id", "idea_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idea_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ideas.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Weak reference: replies outlive a deleted parent and are promoted to the root.
    parent_comment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    session_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    anonymous_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @classmethod
    def for_author(
        cls,
        *,
        idea_id: int,
        author: CommentAuthor,
        content: str,
        parent_comment_id: int | None = None,
    ) -> Comment:
        """Build a comment whose author columns come from a single variant."""
        comment = cls(idea_id=idea_id, content=content, parent_comment_id=parent_comment_id)
        match author:
            case RegisteredAuthor(user_id=user_id):
                comment.user_id = user_id
            case AnonymousAuthor(session_id=session_id, display_name=display_name):
                comment.session_id = session_id
                comment.anonymous_name = display_name.strip()
            case _:
                raise TypeError(f"Unsupported comment author: {author!r}")
        return comment

    @property
    def author(self) -> CommentAuthor:
        """Return the stored author as its variant."""
        if self.user_id is not None:
            return RegisteredAuthor(user_id=self.user_id)
        return AnonymousAuthor(
            session_id=self.session_id or "",
            display_name=self.anonymous_name or "",
        )
