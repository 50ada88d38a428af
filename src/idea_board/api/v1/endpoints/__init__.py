# src/idea_board/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .ideas import router as ideas_router
from .session import router as session_router
from .votes import router as votes_router

__all__ = [
    "comments_router",
    "ideas_router",
    "session_router",
    "votes_router",
]
