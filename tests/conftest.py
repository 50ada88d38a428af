# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from idea_board.core.settings import settings
from idea_board.db.session import Base, build_engine
from idea_board.db.session import get_db as app_get_session
from idea_board.db.time import utcnow
from idea_board.main import app as fastapi_app
from idea_board.models import AnonymousAuthor, Comment, Idea, VisitorSession
from idea_board.services.identity import new_session_token
from idea_board.services.session_cache import SessionCache, get_session_cache

TEST_DB_URL = "sqlite://"
# Peer host Starlette's TestClient reports for every request
TEST_CLIENT_HOST = "testclient"

_ADDRESS_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session bound to an outer transaction that is rolled back after the test.

    Commits and rollbacks issued by the code under test act on savepoints,
    so a service rollback never discards fixture rows.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits escaped.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def reset_session_cache() -> Iterator[None]:
    get_session_cache().clear()
    yield
    get_session_cache().clear()


@pytest.fixture(autouse=True)
def trust_test_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Treat the TestClient peer as a reverse proxy so visitors get distinct addresses."""
    monkeypatch.setattr(settings, "trust_forwarded_for", True)
    monkeypatch.setattr(settings, "forwarded_allow_ips", [TEST_CLIENT_HOST])


@pytest.fixture()
def cache() -> SessionCache:
    """A private in-process session cache."""
    return SessionCache(redis_url="")


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_visitor(db_session: Session) -> Callable[..., VisitorSession]:
    """Return a factory for persisted visitor sessions."""

    def _make(**overrides: Any) -> VisitorSession:
        now = utcnow()
        fields: dict[str, Any] = {
            "session_id": new_session_token(),
            "has_submitted": False,
            "upvotes_given": 0,
            "reward_upvotes_earned": 0,
            "created_at": now,
            "last_active_at": now,
            "active_duration_ms": 0,
        }
        fields.update(overrides)
        visitor = VisitorSession(**fields)
        db_session.add(visitor)
        db_session.commit()
        return visitor

    return _make


@pytest.fixture()
def visitor(make_visitor: Callable[..., VisitorSession]) -> VisitorSession:
    return make_visitor()


@pytest.fixture()
def make_idea(db_session: Session, visitor: VisitorSession) -> Callable[..., Idea]:
    """Return a factory for persisted ideas."""

    def _make(title: str = "Standup summarizer", **overrides: Any) -> Idea:
        fields: dict[str, Any] = {
            "title": title,
            "description": "Summarize the daily standup thread",
            "category": "productivity",
            "votes": 1,
            "session_id": visitor.session_id,
        }
        fields.update(overrides)
        idea = Idea(**fields)
        db_session.add(idea)
        db_session.commit()
        return idea

    return _make


@pytest.fixture()
def idea(make_idea: Callable[..., Idea]) -> Idea:
    return make_idea()


@pytest.fixture()
def make_comment(db_session: Session, visitor: VisitorSession) -> Callable[..., Comment]:
    """Return a factory for persisted anonymous comments."""

    def _make(
        idea: Idea,
        content: str = "Nice idea",
        *,
        parent: Comment | int | None = None,
        votes: int = 1,
        created_at: datetime | None = None,
        display_name: str = "Ada",
    ) -> Comment:
        parent_id = parent.id if isinstance(parent, Comment) else parent
        comment = Comment.for_author(
            idea_id=idea.id,
            author=AnonymousAuthor(session_id=visitor.session_id, display_name=display_name),
            content=content,
            parent_comment_id=parent_id,
        )
        comment.votes = votes
        if created_at is not None:
            comment.created_at = created_at
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make


@pytest.fixture()
def account_headers() -> Callable[[str], dict[str, str]]:
    """Return a factory for bearer headers of externally issued account tokens."""

    def _headers(user_id: str) -> dict[str, str]:
        token = jwt.encode({"sub": user_id}, settings.secret_key, algorithm=settings.jwt_algorithm)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def visitor_headers() -> Callable[..., dict[str, str]]:
    """Return a factory for request headers of one visitor.

    Every call without an address gets a distinct forwarded address, so
    separate visitors never trip the shared-address screening.
    """

    def _headers(session_id: str | None = None, address: str | None = None) -> dict[str, str]:
        headers = {"X-Forwarded-For": address or f"198.51.100.{next(_ADDRESS_COUNTER) % 250 + 1}"}
        if session_id:
            headers[settings.session_header_name] = session_id
        return headers

    return _headers
