"""Ordered comment threads annotated with vote counters.

Siblings are ordered by descending vote counter, then earliest creation
time, then id. Replies follow their parent depth-first. Traversal uses an
explicit stack, so nesting depth is bounded only by the data.

A reply whose parent is gone (or lives on another idea, or only reaches
the root through a cycle) is promoted to the top level and marked
``orphaned`` instead of being dropped.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from idea_board.core.errors import TargetNotFound
from idea_board.db.time import as_utc
from idea_board.db.transaction import storage_guard
from idea_board.models import Comment, Idea, TargetKind


@dataclass(frozen=True)
class ThreadEntry:
    """One comment in thread order."""

    comment: Comment
    depth: int
    parent_id: int | None
    votes: int
    orphaned: bool = False


def _sibling_order(comment: Comment) -> tuple[int, datetime, int]:
    return (-comment.votes, as_utc(comment.created_at), comment.id)


def walk_thread(comments: Iterable[Comment]) -> Iterator[ThreadEntry]:
    """Yield ``comments`` of a single idea in thread order."""
    comments = list(comments)
    by_id = {comment.id: comment for comment in comments}

    children: dict[int | None, list[Comment]] = defaultdict(list)
    orphaned: set[int] = set()
    for comment in comments:
        parent_id = comment.parent_comment_id
        if parent_id is not None and (parent_id not in by_id or parent_id == comment.id):
            orphaned.add(comment.id)
            parent_id = None
        children[parent_id].append(comment)
    for siblings in children.values():
        siblings.sort(key=_sibling_order)

    visited: set[int] = set()
    roots = list(children[None])
    while True:
        stack = [(root, 0) for root in reversed(roots)]
        while stack:
            comment, depth = stack.pop()
            if comment.id in visited:
                continue
            visited.add(comment.id)
            yield ThreadEntry(
                comment=comment,
                depth=depth,
                parent_id=None if depth == 0 else comment.parent_comment_id,
                votes=comment.votes,
                orphaned=comment.id in orphaned,
            )
            replies = children.get(comment.id, ())
            stack.extend((reply, depth + 1) for reply in reversed(replies))

        # Comments caught in a parent cycle never hang off the root; promote the best one.
        stranded = [comment for comment in comments if comment.id not in visited]
        if not stranded:
            break
        root = min(stranded, key=_sibling_order)
        orphaned.add(root.id)
        roots = [root]


class CommentThread:
    """Lazy, restartable view of an idea's comments in thread order.

    Each iteration reads the comments afresh, so counters reflect the
    latest committed votes.
    """

    def __init__(self, db: Session, idea_id: int) -> None:
        self.db = db
        self.idea_id = idea_id

    def _load(self) -> list[Comment]:
        with storage_guard(self.db):
            return list(
                self.db.scalars(
                    select(Comment)
                    .where(Comment.idea_id == self.idea_id)
                    .execution_options(populate_existing=True)
                )
            )

    def __iter__(self) -> Iterator[ThreadEntry]:
        return walk_thread(self._load())


def get_thread(db: Session, idea_id: int) -> CommentThread:
    """Return the comment thread of an idea.

    Raises:
        TargetNotFound: If the idea does not exist.
    """
    with storage_guard(db):
        if db.get(Idea, idea_id) is None:
            raise TargetNotFound(TargetKind.IDEA.value, idea_id)
    return CommentThread(db, idea_id)
