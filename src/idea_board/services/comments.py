"""Service-level helpers for writing and removing comments."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from idea_board.core.errors import InvalidParent, NotAuthor, TargetNotFound
from idea_board.db.transaction import storage_guard
from idea_board.models import (
    AnonymousAuthor,
    Comment,
    CommentAuthor,
    Idea,
    RegisteredAuthor,
    TargetKind,
)
from idea_board.services.counters import COUNTER_BASELINE

# Configure logger for this module
logger = logging.getLogger(__name__)


def _is_author(comment: Comment, author: CommentAuthor) -> bool:
    match author:
        case RegisteredAuthor(user_id=user_id):
            return comment.user_id == user_id
        case AnonymousAuthor(session_id=session_id):
            return comment.user_id is None and comment.session_id == session_id
    return False


def create_comment(
    db: Session,
    idea_id: int,
    author: CommentAuthor,
    content: str,
    parent_comment_id: int | None = None,
) -> Comment:
    """Attach a comment to an idea, optionally as a reply.

    Args:
        db: Database session.
        idea_id: Idea being discussed.
        author: Either an ``AnonymousAuthor`` or a ``RegisteredAuthor``.
        content: Comment body, already validated by the caller.
        parent_comment_id: Comment being replied to, on the same idea.

    Raises:
        TargetNotFound: If the idea or the parent comment does not exist.
        InvalidParent: If the parent comment belongs to another idea.
    """
    with storage_guard(db):
        if db.get(Idea, idea_id) is None:
            raise TargetNotFound(TargetKind.IDEA.value, idea_id)
        if parent_comment_id is not None:
            parent = db.get(Comment, parent_comment_id)
            if parent is None:
                raise TargetNotFound(TargetKind.COMMENT.value, parent_comment_id)
            if parent.idea_id != idea_id:
                raise InvalidParent("Replies must stay on the parent comment's idea")

        comment = Comment.for_author(
            idea_id=idea_id,
            author=author,
            content=content,
            parent_comment_id=parent_comment_id,
        )
        comment.votes = COUNTER_BASELINE
        db.add(comment)
        db.commit()
        db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: int, author: CommentAuthor) -> None:
    """Delete a comment written by ``author``.

    Replies are kept; thread reads promote them to the idea root. Ledger
    rows on the comment are orphaned.

    Raises:
        TargetNotFound: If the comment does not exist.
        NotAuthor: If ``author`` did not write it.
    """
    with storage_guard(db):
        comment = db.get(Comment, comment_id)
        if comment is None:
            raise TargetNotFound(TargetKind.COMMENT.value, comment_id)
        if not _is_author(comment, author):
            raise NotAuthor("Only the author may delete this comment")
        db.delete(comment)
        db.commit()
    logger.info("Comment %d deleted", comment_id)
