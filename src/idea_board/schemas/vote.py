"""Vote-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    target_id: int = Field(..., ge=1)
    target_kind: Literal["idea", "comment"] = Field("idea", description="What is being voted on")
    vote_type: Literal["up", "down"] = Field(..., description="up or down")


class VoteResponse(BaseModel):
    """Outcome of a vote request with the target's new counter."""

    status: Literal["accepted", "unchanged", "changed", "withdrawn"]
    target_id: int
    target_kind: Literal["idea", "comment"]
    vote_type: Literal["up", "down"] | None
    delta: int
    votes: int
    flagged: bool = False


class MyVoteResponse(BaseModel):
    """The caller's standing vote on a target."""

    vote_type: Literal["up", "down"] | None


class LedgerEntryResponse(BaseModel):
    """A standing vote of the caller."""

    target_id: int
    target_kind: Literal["idea", "comment"]
    vote_type: Literal["up", "down"]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
