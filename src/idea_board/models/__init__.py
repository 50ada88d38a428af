"""SQLAlchemy models for the Idea Board service."""

from .comment import AnonymousAuthor, Comment, CommentAuthor, RegisteredAuthor
from .idea import Idea
from .visitor import VisitorSession
from .vote import RewardCredit, TargetKind, Vote, VoteAuditFlag, VoteType

__all__ = [
    "AnonymousAuthor", "Comment", "CommentAuthor", "RegisteredAuthor",
    "Idea",
    "VisitorSession",
    "RewardCredit", "TargetKind", "Vote", "VoteAuditFlag", "VoteType",
]
