# src/idea_board/api/v1/endpoints/comments.py
"""Comment management endpoints."""

from fastapi import APIRouter, status

from idea_board.core.errors import VoteError
from idea_board.models import AnonymousAuthor, CommentAuthor, RegisteredAuthor
from idea_board.services.comments import delete_comment

from ..dependencies import AccountDep, IdentityDep, SessionDep, http_error

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_comment(
    comment_id: int,
    db: SessionDep,
    identity: IdentityDep,
    account: AccountDep,
) -> None:
    """Delete a comment the caller wrote. Replies stay on the idea."""
    author: CommentAuthor
    if account is not None:
        author = RegisteredAuthor(user_id=account)
    else:
        # Authorship of anonymous comments is decided by session alone.
        author = AnonymousAuthor(session_id=identity.session_id, display_name="anonymous")
    try:
        delete_comment(db, comment_id, author)
    except VoteError as exc:
        raise http_error(exc) from exc
