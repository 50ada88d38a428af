"""Anonymous identity resolution for inbound requests."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from idea_board.core.settings import settings
from idea_board.db.time import as_utc, utcnow
from idea_board.db.transaction import storage_guard
from idea_board.models import VisitorSession

# Configure logger for this module
logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 24
UNKNOWN_ADDRESS = "unknown"


@dataclass(frozen=True)
class RequestContext:
    """Transport-neutral view of the request fields identity depends on."""

    session_token: str | None = None
    forwarded_for: str | None = None
    remote_host: str | None = None


@dataclass(frozen=True)
class ResolvedIdentity:
    """Session and network address attributed to a request.

    ``issued`` is True when a new session was minted and the transport must
    hand the token back to the client. ``address_forwarded`` is True when
    ``network_address`` came from ``X-Forwarded-For`` rather than the peer.
    """

    session_id: str
    network_address: str
    issued: bool
    address_forwarded: bool = False


def new_session_token() -> str:
    """Return a fresh URL-safe session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def client_address(forwarded_for: str | None, remote_host: str | None) -> tuple[str, bool]:
    """Return the caller's network address and whether it was forwarded.

    The first ``X-Forwarded-For`` hop wins only when forwarding is trusted
    and the direct peer is listed in ``forwarded_allow_ips``; otherwise the
    peer address is used.
    """
    if (
        settings.trust_forwarded_for
        and forwarded_for
        and remote_host in settings.forwarded_allow_ips
    ):
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop, True
    return remote_host or UNKNOWN_ADDRESS, False


def get_session(db: Session, session_id: str | None) -> VisitorSession | None:
    """Return the session row for ``session_id`` if it was ever issued."""
    if not session_id:
        return None
    with storage_guard(db):
        return db.get(VisitorSession, session_id, populate_existing=True)


def _accumulate_activity(session: VisitorSession, now: datetime) -> None:
    elapsed_ms = int((now - as_utc(session.last_active_at)).total_seconds() * 1000)
    # Gaps longer than the idle threshold start a new active period instead of counting.
    if 0 < elapsed_ms <= settings.session_idle_threshold_seconds * 1000:
        session.active_duration_ms += elapsed_ms
    session.last_active_at = now


def resolve_identity(
    db: Session,
    context: RequestContext,
    *,
    now: datetime | None = None,
) -> ResolvedIdentity:
    """Attribute a request to a session, minting one when needed.

    A presented token that names an existing session is reused and its
    activity refreshed. A missing or unknown token gets a new random
    session.

    Args:
        db: Database session.
        context: Token and address fields taken from the request.
        now: Clock override for tests.

    Returns:
        The resolved session id and network address.

    Raises:
        StorageUnavailable: If the database cannot be reached.
    """
    now = now or utcnow()
    address, forwarded = client_address(context.forwarded_for, context.remote_host)

    with storage_guard(db):
        session = None
        if context.session_token:
            session = db.scalars(
                select(VisitorSession)
                .where(VisitorSession.session_id == context.session_token)
                .with_for_update()
            ).first()

        if session is not None:
            session_id = session.session_id
            _accumulate_activity(session, now)
            db.commit()
            return ResolvedIdentity(session_id, address, issued=False, address_forwarded=forwarded)

        session_id = new_session_token()
        session = VisitorSession(
            session_id=session_id,
            has_submitted=False,
            upvotes_given=0,
            reward_upvotes_earned=0,
            created_at=now,
            last_active_at=now,
            active_duration_ms=0,
        )
        db.add(session)
        db.commit()

    logger.info("Issued new visitor session from %s", address)
    return ResolvedIdentity(session_id, address, issued=True, address_forwarded=forwarded)


def ensure_session(db: Session, context: RequestContext) -> str:
    """Return the session id for ``context``, issuing one if necessary."""
    return resolve_identity(db, context).session_id
