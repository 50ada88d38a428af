"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from idea_board.models import Comment
from idea_board.services.threads import ThreadEntry


class CommentCreate(BaseModel):
    """Schema for posting a comment.

    Anonymous commenters must pick a display name; registered accounts are
    identified by their bearer token instead.
    """

    content: str = Field(..., min_length=1, max_length=2000)
    display_name: str | None = Field(None, min_length=1, max_length=50)
    parent_comment_id: int | None = Field(None, description="Comment being replied to")


class CommentResponse(BaseModel):
    """Schema for a comment returned by the API."""

    id: int
    idea_id: int
    parent_comment_id: int | None
    author_name: str | None
    author_user_id: str | None
    registered: bool
    content: str
    votes: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> CommentResponse:
        return cls(
            id=comment.id,
            idea_id=comment.idea_id,
            parent_comment_id=comment.parent_comment_id,
            author_name=comment.anonymous_name,
            author_user_id=comment.user_id,
            registered=comment.user_id is not None,
            content=comment.content,
            votes=comment.votes,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class ThreadEntryResponse(CommentResponse):
    """A comment positioned within its thread."""

    depth: int
    orphaned: bool

    @classmethod
    def from_entry(cls, entry: ThreadEntry) -> ThreadEntryResponse:
        base = CommentResponse.from_comment(entry.comment).model_dump()
        base.update(
            parent_comment_id=entry.parent_id,
            votes=entry.votes,
            depth=entry.depth,
            orphaned=entry.orphaned,
        )
        return cls(**base)
