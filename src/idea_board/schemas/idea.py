"""Idea-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IdeaCreate(BaseModel):
    """Schema for submitting a new idea."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    use_case: str | None = Field(None, max_length=5000)
    category: str = Field("other", min_length=1, max_length=50)
    tools: str | None = Field(None, max_length=500)
    link_url: str | None = Field(None, max_length=2000)

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("link_url")
    @classmethod
    def _looks_like_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if "." not in value or " " in value:
            raise ValueError("must be a URL such as https://example.com")
        return value


class IdeaResponse(BaseModel):
    """Schema for idea information returned by the API."""

    id: int
    title: str
    description: str
    use_case: str | None
    category: str
    tools: str | None
    link_url: str | None
    votes: int
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)
