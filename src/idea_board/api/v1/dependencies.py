"""Shared API dependencies for identity, accounts and error translation."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from idea_board.core.errors import (
    InvalidParent,
    InvalidVote,
    NotAuthor,
    RateLimited,
    SessionNotFound,
    StorageUnavailable,
    SubmissionRequired,
    TargetNotFound,
    VoteConflict,
    VoteError,
)
from idea_board.core.security import decode_account_token
from idea_board.core.settings import settings
from idea_board.db.session import get_db
from idea_board.services.identity import RequestContext, ResolvedIdentity, resolve_identity
from idea_board.services.session_cache import SessionCache, get_session_cache

# Bearer tokens are optional: anonymous visitors carry only a session.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

_STATUS_BY_ERROR: dict[type[VoteError], int] = {
    InvalidVote: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidParent: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TargetNotFound: status.HTTP_404_NOT_FOUND,
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    NotAuthor: status.HTTP_403_FORBIDDEN,
    SubmissionRequired: status.HTTP_403_FORBIDDEN,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    VoteConflict: status.HTTP_409_CONFLICT,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: VoteError) -> HTTPException:
    """Translate a service error into the matching HTTP error."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def request_context(request: Request) -> RequestContext:
    """Collect the fields identity resolution needs from a request.

    An explicit session header wins over the session cookie.
    """
    token = request.headers.get(settings.session_header_name) or request.cookies.get(
        settings.session_cookie_name
    )
    return RequestContext(
        session_token=token,
        forwarded_for=request.headers.get("x-forwarded-for"),
        remote_host=request.client.host if request.client else None,
    )


def get_identity(request: Request, response: Response, db: SessionDep) -> ResolvedIdentity:
    """Attribute the request to a visitor session.

    A newly minted session token is handed back as a cookie and a header.
    """
    try:
        identity = resolve_identity(db, request_context(request))
    except VoteError as exc:
        raise http_error(exc) from exc

    if identity.issued:
        response.set_cookie(
            key=settings.session_cookie_name,
            value=identity.session_id,
            max_age=settings.session_cookie_max_age_seconds,
            httponly=True,
            samesite="lax",
        )
    response.headers[settings.session_header_name] = identity.session_id
    return identity


def get_optional_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the registered account id behind a bearer token, if one was sent.

    Raises:
        HTTPException: If a token was sent but does not verify.
    """
    if credentials is None:
        return None
    try:
        return decode_account_token(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from err


def get_session_cache_dep() -> SessionCache:
    """Return the shared session cache."""
    return get_session_cache()


IdentityDep = Annotated[ResolvedIdentity, Depends(get_identity)]
AccountDep = Annotated[str | None, Depends(get_optional_account)]
SessionCacheDep = Annotated[SessionCache, Depends(get_session_cache_dep)]
