"""Session-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class SessionResponse(BaseModel):
    """Anonymous session state returned to the client."""

    session_id: str = Field(..., description="Opaque token to present on later requests")
    issued: bool = Field(False, description="True when this request minted the session")
    has_submitted: bool
    upvotes_given: int
    reward_upvotes_earned: int
    upvotes_until_next_reward: int
    created_at: datetime
    last_active_at: datetime
    active_duration_ms: int
