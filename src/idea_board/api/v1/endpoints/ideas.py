# src/idea_board/api/v1/endpoints/ideas.py
"""Idea and discussion-thread endpoints."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from idea_board.core.errors import VoteError
from idea_board.models import AnonymousAuthor, CommentAuthor, Idea, RegisteredAuthor
from idea_board.schemas.comment import CommentCreate, CommentResponse, ThreadEntryResponse
from idea_board.schemas.idea import IdeaCreate, IdeaResponse
from idea_board.services.comments import create_comment
from idea_board.services.ideas import get_idea, list_ideas, submit_idea
from idea_board.services.threads import get_thread

from ..dependencies import AccountDep, IdentityDep, SessionCacheDep, SessionDep, http_error

router = APIRouter(prefix="/ideas", tags=["ideas"])


def comment_author(
    session_id: str,
    account: str | None,
    display_name: str | None,
) -> CommentAuthor:
    """Pick the author a new comment is attributed to.

    A verified account wins over a display name; anonymous commenters
    must supply a name.
    """
    if account is not None:
        return RegisteredAuthor(user_id=account)
    if not display_name or not display_name.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Anonymous comments need a display name",
        )
    return AnonymousAuthor(session_id=session_id, display_name=display_name.strip())


@router.post("", response_model=IdeaResponse, status_code=status.HTTP_201_CREATED)
def create_idea(
    idea_data: IdeaCreate,
    db: SessionDep,
    identity: IdentityDep,
    cache: SessionCacheDep,
) -> Idea:
    """Submit a new idea from the caller's session."""
    try:
        return submit_idea(db, identity.session_id, idea_data.model_dump(), cache=cache)
    except VoteError as exc:
        raise http_error(exc) from exc


@router.get("", response_model=list[IdeaResponse])
def read_ideas(
    db: SessionDep,
    sort: Literal["votes", "recent"] = "votes",
    category: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> list[Idea]:
    """List ideas, highest voted first by default."""
    try:
        return list_ideas(db, sort=sort, category=category, limit=limit, offset=offset)
    except VoteError as exc:
        raise http_error(exc) from exc


@router.get("/{idea_id}", response_model=IdeaResponse)
def read_idea(idea_id: int, db: SessionDep) -> Idea:
    """Get a single idea."""
    try:
        return get_idea(db, idea_id)
    except VoteError as exc:
        raise http_error(exc) from exc


@router.get("/{idea_id}/comments", response_model=list[ThreadEntryResponse])
def read_thread(idea_id: int, db: SessionDep) -> list[ThreadEntryResponse]:
    """Return an idea's comments in display order with nesting depth."""
    try:
        thread = get_thread(db, idea_id)
        return [ThreadEntryResponse.from_entry(entry) for entry in thread]
    except VoteError as exc:
        raise http_error(exc) from exc


@router.post(
    "/{idea_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_comment(
    idea_id: int,
    comment_data: CommentCreate,
    db: SessionDep,
    identity: IdentityDep,
    account: AccountDep,
) -> CommentResponse:
    """Comment on an idea, or reply to one of its comments."""
    author = comment_author(identity.session_id, account, comment_data.display_name)
    try:
        comment = create_comment(
            db,
            idea_id,
            author,
            comment_data.content,
            parent_comment_id=comment_data.parent_comment_id,
        )
    except VoteError as exc:
        raise http_error(exc) from exc
    return CommentResponse.from_comment(comment)
