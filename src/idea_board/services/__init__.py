"""Business logic services for the Idea Board application."""

from .ledger import VoteOutcome, VoteStatus, cast_vote, unvote
from .session_cache import SessionCache, get_session_cache
from .threads import CommentThread, ThreadEntry, get_thread

__all__ = [
    "CommentThread",
    "SessionCache",
    "ThreadEntry",
    "VoteOutcome",
    "VoteStatus",
    "cast_vote",
    "get_session_cache",
    "get_thread",
    "unvote",
]
