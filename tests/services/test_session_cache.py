# tests/services/test_session_cache.py
"""Tests for the session summary cache."""

from __future__ import annotations

import redis

from idea_board.services.session_cache import SessionCache, get_session_cache

SUMMARY = {
    "has_submitted": True,
    "upvotes_given": 3,
    "reward_upvotes_earned": 0,
    "upvotes_until_next_reward": 2,
}


def test_in_process_round_trip() -> None:
    cache = SessionCache(redis_url="")

    assert cache.get("abc") is None
    cache.set("abc", SUMMARY)

    assert cache.get("abc") == SUMMARY


def test_cached_summary_is_a_copy() -> None:
    cache = SessionCache(redis_url="")
    cache.set("abc", SUMMARY)

    cache.get("abc")["upvotes_given"] = 99

    assert cache.get("abc")["upvotes_given"] == 3


def test_entries_expire(mocker) -> None:
    cache = SessionCache(redis_url="", ttl_seconds=10)
    clock = mocker.patch("idea_board.services.session_cache.time.monotonic", return_value=100.0)
    cache.set("abc", SUMMARY)

    clock.return_value = 111.0

    assert cache.get("abc") is None


def test_login_and_logout_hooks_invalidate() -> None:
    cache = SessionCache(redis_url="")
    cache.set("abc", SUMMARY)
    cache.on_login("abc")
    assert cache.get("abc") is None

    cache.set("abc", SUMMARY)
    cache.on_logout("abc")
    assert cache.get("abc") is None


def test_invalidate_only_touches_one_session() -> None:
    cache = SessionCache(redis_url="")
    cache.set("abc", SUMMARY)
    cache.set("def", SUMMARY)

    cache.invalidate("abc")

    assert cache.get("abc") is None
    assert cache.get("def") == SUMMARY


def test_redis_backend_is_used_when_configured(mocker) -> None:
    client = mocker.MagicMock()
    client.get.return_value = b'{"upvotes_given": 3}'
    mocker.patch("idea_board.services.session_cache.redis.from_url", return_value=client)

    cache = SessionCache(redis_url="redis://cache:6379/0", ttl_seconds=30)
    cache.set("abc", {"upvotes_given": 3})

    client.set.assert_called_once_with(
        "session-summary:abc", '{"upvotes_given": 3}', ex=30
    )
    assert cache.get("abc") == {"upvotes_given": 3}


def test_redis_errors_fall_back_to_memory(mocker) -> None:
    client = mocker.MagicMock()
    client.set.side_effect = redis.ConnectionError("connection refused")
    mocker.patch("idea_board.services.session_cache.redis.from_url", return_value=client)

    cache = SessionCache(redis_url="redis://cache:6379/0")
    cache.set("abc", SUMMARY)

    assert cache.get("abc") == SUMMARY
    client.get.assert_not_called()


def test_shared_cache_is_a_singleton() -> None:
    assert get_session_cache() is get_session_cache()
