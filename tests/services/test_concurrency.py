# tests/services/test_concurrency.py
"""Concurrent vote requests against a file-backed database."""

from __future__ import annotations

from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from idea_board.db.session import Base, build_engine
from idea_board.db.time import utcnow
from idea_board.models import Idea, TargetKind, VisitorSession, Vote
from idea_board.services.counters import ledger_total
from idea_board.services.identity import new_session_token
from idea_board.services.ledger import VoteStatus, cast_vote
from idea_board.services.session_cache import SessionCache

WORKERS = 8


@pytest.fixture()
def file_sessions(tmp_path) -> Iterator[sessionmaker[Session]]:
    engine = build_engine(f"sqlite:///{tmp_path / 'votes.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    finally:
        engine.dispose()


def _seed(factory: sessionmaker[Session], voters: int) -> tuple[int, list[str]]:
    now = utcnow()
    with factory() as db:
        session_ids = [new_session_token() for _ in range(voters)]
        db.add_all(
            VisitorSession(session_id=session_id, created_at=now, last_active_at=now)
            for session_id in session_ids
        )
        idea = Idea(title="Race me", description="Concurrent votes", votes=1, session_id=session_ids[0])
        db.add(idea)
        db.commit()
        return idea.id, session_ids


def _run_concurrently(factory, calls):
    barrier = Barrier(len(calls))
    cache = SessionCache(redis_url="")

    def _call(args):
        session_id, idea_id, vote_type, address = args
        barrier.wait()
        with factory() as db:
            return cast_vote(db, session_id, idea_id, "idea", vote_type, address, cache=cache)

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(_call, calls))


def test_distinct_voters_all_count(file_sessions) -> None:
    idea_id, session_ids = _seed(file_sessions, WORKERS)

    outcomes = _run_concurrently(
        file_sessions,
        [(sid, idea_id, "up", f"10.50.0.{index}") for index, sid in enumerate(session_ids)],
    )

    assert all(outcome.status is VoteStatus.ACCEPTED for outcome in outcomes)
    assert sorted(outcome.votes for outcome in outcomes) == list(range(2, WORKERS + 2))
    with file_sessions() as db:
        assert db.get(Idea, idea_id).votes == 1 + WORKERS
        assert ledger_total(db, idea_id, TargetKind.IDEA) == WORKERS


def test_same_voter_racing_itself_counts_once(file_sessions) -> None:
    idea_id, session_ids = _seed(file_sessions, 1)
    voter = session_ids[0]

    outcomes = _run_concurrently(
        file_sessions,
        [(voter, idea_id, "up", "10.60.0.1") for _ in range(WORKERS)],
    )

    statuses = [outcome.status for outcome in outcomes]
    assert statuses.count(VoteStatus.ACCEPTED) == 1
    assert statuses.count(VoteStatus.UNCHANGED) == WORKERS - 1
    with file_sessions() as db:
        rows = db.scalar(select(func.count()).select_from(Vote).where(Vote.target_id == idea_id))
        assert rows == 1
        assert db.get(Idea, idea_id).votes == 2
        assert db.get(VisitorSession, voter).upvotes_given == 1


def test_mixed_directions_keep_counter_equal_to_ledger(file_sessions) -> None:
    idea_id, session_ids = _seed(file_sessions, WORKERS)
    calls = [
        (sid, idea_id, "up" if index % 3 else "down", f"10.70.0.{index}")
        for index, sid in enumerate(session_ids)
    ]

    _run_concurrently(file_sessions, calls)

    with file_sessions() as db:
        assert db.get(Idea, idea_id).votes == 1 + ledger_total(db, idea_id, TargetKind.IDEA)
