"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, ThreadEntryResponse
from .idea import IdeaCreate, IdeaResponse
from .session import SessionResponse
from .vote import LedgerEntryResponse, MyVoteResponse, VoteCreate, VoteResponse

__all__ = [
    "CommentCreate", "CommentResponse", "ThreadEntryResponse",
    "IdeaCreate", "IdeaResponse",
    "SessionResponse",
    "LedgerEntryResponse", "MyVoteResponse", "VoteCreate", "VoteResponse",
]
