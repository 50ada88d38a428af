# src/idea_board/api/v1/endpoints/session.py
"""Anonymous session endpoints."""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.orm import Session

from idea_board.core.errors import VoteError
from idea_board.schemas.session import SessionResponse
from idea_board.services.identity import ResolvedIdentity, get_session
from idea_board.services.reputation import session_summary
from idea_board.services.session_cache import SessionCache

from ..dependencies import AccountDep, IdentityDep, SessionCacheDep, SessionDep, http_error

router = APIRouter(prefix="/session", tags=["session"])


def _session_response(
    db: Session,
    identity: ResolvedIdentity,
    cache: SessionCache,
) -> SessionResponse:
    try:
        row = get_session(db, identity.session_id)
        summary = session_summary(db, identity.session_id, cache)
    except VoteError as exc:
        raise http_error(exc) from exc
    if row is None or summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return SessionResponse(
        session_id=identity.session_id,
        issued=identity.issued,
        has_submitted=summary.has_submitted,
        upvotes_given=summary.upvotes_given,
        reward_upvotes_earned=summary.reward_upvotes_earned,
        upvotes_until_next_reward=summary.upvotes_until_next_reward,
        created_at=row.created_at,
        last_active_at=row.last_active_at,
        active_duration_ms=row.active_duration_ms,
    )


@router.get("", response_model=SessionResponse)
def read_session(
    db: SessionDep,
    identity: IdentityDep,
    cache: SessionCacheDep,
) -> SessionResponse:
    """Return the caller's session, issuing one on first contact."""
    return _session_response(db, identity, cache)


@router.post("/login", response_model=SessionResponse)
def session_login(
    db: SessionDep,
    identity: IdentityDep,
    account: AccountDep,
    cache: SessionCacheDep,
) -> SessionResponse:
    """Notify the board that the session's visitor signed in to an account."""
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    cache.on_login(identity.session_id)
    return _session_response(db, identity, cache)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def session_logout(identity: IdentityDep, cache: SessionCacheDep) -> None:
    """Notify the board that the session's visitor signed out."""
    cache.on_logout(identity.session_id)
