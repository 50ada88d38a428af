"""Unit tests for the ORM models defined in idea_board.models.

These tests verify mapping details the services rely on: table names, the
ledger's uniqueness constraint, and that ledger rows carry no foreign keys
so deleted targets leave orphans behind instead of cascading.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from idea_board.db.time import utcnow
from idea_board.models import (
    Comment,
    Idea,
    RewardCredit,
    VisitorSession,
    Vote,
    VoteAuditFlag,
    VoteType,
)


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert VisitorSession.__tablename__ == "user_sessions"
    assert Idea.__tablename__ == "ideas"
    assert Comment.__tablename__ == "comments"
    assert Vote.__tablename__ == "vote_ledger"
    assert RewardCredit.__tablename__ == "reward_credits"
    assert VoteAuditFlag.__tablename__ == "vote_audit_flags"


def test_ledger_unique_per_voter_and_target():
    constraints = {
        constraint.name: {column.name for column in constraint.columns}
        for constraint in Vote.__table__.constraints
        if constraint.name == "uq_vote_ledger_voter_target"
    }
    assert constraints == {
        "uq_vote_ledger_voter_target": {"voter_session_id", "target_id", "target_kind"}
    }


def test_ledger_has_no_foreign_keys():
    assert Vote.__table__.foreign_keys == set()
    assert RewardCredit.__table__.foreign_keys == set()


def test_comment_parent_is_a_weak_reference():
    parent = Comment.__table__.c.parent_comment_id
    assert parent.foreign_keys == set()
    assert {fk.column.table.name for fk in Comment.__table__.c.idea_id.foreign_keys} == {"ideas"}


def test_vote_type_directions():
    assert VoteType.UP.direction == 1
    assert VoteType.DOWN.direction == -1


def test_duplicate_ledger_row_is_rejected(db_session, visitor, idea):
    now = utcnow()
    for _ in range(2):
        db_session.add(
            Vote(
                voter_session_id=visitor.session_id,
                target_id=idea.id,
                target_kind="idea",
                vote_type="up",
                voter_address="192.0.2.1",
                created_at=now,
                updated_at=now,
            )
        )
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()


def test_vote_type_check_constraint(db_session, visitor, idea):
    db_session.add(
        Vote(
            voter_session_id=visitor.session_id,
            target_id=idea.id,
            target_kind="idea",
            vote_type="sideways",
            voter_address="192.0.2.1",
        )
    )
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()
