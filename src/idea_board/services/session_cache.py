"""Cache of per-session reputation summaries.

Entries hold the fields privilege checks read (``has_submitted``,
``upvotes_given``, ``reward_upvotes_earned``). An entry is invalidated
exactly when one of those fields can change or the session's login state
changes:

- successful login or logout (``on_login`` / ``on_logout``, called by the
  account service);
- idea submission;
- a vote outcome that changed reputation fields.

Nothing else touches the cache; last-activity bookkeeping does not.
"""

from __future__ import annotations

import json
import logging
import time
from threading import Lock
from typing import Any, Final

import redis

from idea_board.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)

_KEY_PREFIX: Final[str] = "session-summary:"


class SessionCache:
    """Read-through cache for session summaries.

    Backed by Redis when ``REDIS_URL`` is set; otherwise, or once Redis
    errors, entries live in an in-process dictionary.
    """

    def __init__(self, redis_url: str | None = None, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is None:
            ttl_seconds = settings.session_cache_ttl_seconds
        self.ttl_seconds = int(ttl_seconds)
        self._redis: Any = None
        self._local: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = Lock()
        url = redis_url if redis_url is not None else settings.redis_url
        if url:
            self._redis = redis.from_url(url)

    def get(self, session_id: str) -> dict[str, Any] | None:
        """Return the cached summary for ``session_id`` if one is fresh."""
        if self._redis is not None:
            try:
                raw = self._redis.get(_KEY_PREFIX + session_id)
                return json.loads(raw) if raw is not None else None
            except redis.RedisError as exc:
                self._drop_redis(exc)

        with self._lock:
            entry = self._local.get(session_id)
            if entry is None:
                return None
            expiry, summary = entry
            if expiry < time.monotonic():
                self._local.pop(session_id, None)
                return None
            return dict(summary)

    def set(self, session_id: str, summary: dict[str, Any]) -> None:
        """Store ``summary`` for ``session_id``."""
        if self._redis is not None:
            try:
                self._redis.set(_KEY_PREFIX + session_id, json.dumps(summary), ex=self.ttl_seconds)
                return
            except redis.RedisError as exc:
                self._drop_redis(exc)

        with self._lock:
            self._local[session_id] = (time.monotonic() + self.ttl_seconds, dict(summary))

    def invalidate(self, session_id: str) -> None:
        """Drop any cached summary for ``session_id``."""
        if self._redis is not None:
            try:
                self._redis.delete(_KEY_PREFIX + session_id)
            except redis.RedisError as exc:
                self._drop_redis(exc)

        with self._lock:
            self._local.pop(session_id, None)

    # --- Invalidation hooks for the account service ------------------------------
    def on_login(self, session_id: str) -> None:
        """Invalidate after a successful login bound to ``session_id``."""
        self.invalidate(session_id)

    def on_logout(self, session_id: str) -> None:
        """Invalidate after a logout from ``session_id``."""
        self.invalidate(session_id)

    def clear(self) -> None:
        """Forget every in-process entry."""
        with self._lock:
            self._local.clear()

    def _drop_redis(self, exc: Exception) -> None:
        logger.warning("Session cache falling back to in-process store: %s", exc)
        self._redis = None


_SESSION_CACHE: SessionCache | None = None
_SESSION_CACHE_LOCK = Lock()


def get_session_cache() -> SessionCache:
    """Return the process-wide session cache."""
    global _SESSION_CACHE
    with _SESSION_CACHE_LOCK:
        if _SESSION_CACHE is None:
            _SESSION_CACHE = SessionCache()
        return _SESSION_CACHE
