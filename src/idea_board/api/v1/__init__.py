# src/idea_board/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import comments_router, ideas_router, session_router, votes_router

__all__ = [
    "comments_router",
    "ideas_router",
    "session_router",
    "votes_router",
]
