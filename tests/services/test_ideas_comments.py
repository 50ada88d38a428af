# tests/services/test_ideas_comments.py
"""Tests for idea submission and comment authorship."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from idea_board.core.errors import InvalidParent, NotAuthor, SessionNotFound, TargetNotFound
from idea_board.models import AnonymousAuthor, Comment, RegisteredAuthor
from idea_board.services.comments import create_comment, delete_comment
from idea_board.services.ideas import (
    delete_idea,
    get_idea,
    list_ideas,
    list_session_ideas,
    submit_idea,
)

PAYLOAD = {
    "title": "Invoice chaser",
    "description": "Reminds clients about unpaid invoices",
    "use_case": "Freelancers",
    "category": "finance",
    "tools": "Python, IMAP",
    "link_url": None,
}


def test_submit_idea_starts_at_baseline(db_session, visitor, cache) -> None:
    idea = submit_idea(db_session, visitor.session_id, PAYLOAD, cache=cache)

    assert idea.id is not None
    assert idea.votes == 1
    assert idea.category == "finance"
    assert idea.link_url is None
    assert list_session_ideas(db_session, visitor.session_id) == [idea]


def test_submit_idea_unknown_session(db_session, cache) -> None:
    with pytest.raises(SessionNotFound):
        submit_idea(db_session, "ghost", PAYLOAD, cache=cache)


def test_list_ideas_sorting_and_filtering(db_session, make_idea) -> None:
    low = make_idea("Low", votes=0, category="ops")
    high = make_idea("High", votes=10, category="dev")
    mid = make_idea("Mid", votes=4, category="dev")

    assert list_ideas(db_session) == [high, mid, low]
    assert list_ideas(db_session, sort="recent") == [mid, high, low]
    assert list_ideas(db_session, category="dev") == [high, mid]
    assert list_ideas(db_session, limit=1, offset=1) == [mid]


def test_get_idea_missing(db_session) -> None:
    with pytest.raises(TargetNotFound):
        get_idea(db_session, 777)


def test_delete_idea_removes_its_comments(db_session, idea, make_comment) -> None:
    make_comment(idea)
    make_comment(idea)

    delete_idea(db_session, idea.id)

    assert db_session.scalars(select(Comment)).all() == []


def test_anonymous_comment_records_display_name(db_session, visitor, idea) -> None:
    author = AnonymousAuthor(session_id=visitor.session_id, display_name="  Grace ")

    comment = create_comment(db_session, idea.id, author, "Ship it")

    assert comment.anonymous_name == "Grace"
    assert comment.user_id is None
    assert comment.votes == 1
    assert comment.author == AnonymousAuthor(session_id=visitor.session_id, display_name="Grace")


def test_registered_comment_records_account(db_session, idea) -> None:
    comment = create_comment(db_session, idea.id, RegisteredAuthor(user_id="acct-42"), "Love it")

    assert comment.user_id == "acct-42"
    assert comment.session_id is None
    assert comment.anonymous_name is None
    assert comment.author == RegisteredAuthor(user_id="acct-42")


def test_author_variants_validate_their_fields() -> None:
    with pytest.raises(ValueError):
        AnonymousAuthor(session_id="abc", display_name="   ")
    with pytest.raises(ValueError):
        RegisteredAuthor(user_id="")


def test_database_rejects_mixed_authorship(db_session, visitor, idea) -> None:
    db_session.add(
        Comment(
            idea_id=idea.id,
            content="both",
            user_id="acct-1",
            session_id=visitor.session_id,
            anonymous_name="Mixed",
        )
    )
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()


def test_reply_must_stay_on_the_same_idea(db_session, visitor, make_idea, make_comment) -> None:
    first = make_idea("First")
    second = make_idea("Second")
    parent = make_comment(first)
    author = AnonymousAuthor(session_id=visitor.session_id, display_name="Ada")

    with pytest.raises(InvalidParent):
        create_comment(db_session, second.id, author, "Wrong idea", parent_comment_id=parent.id)


def test_reply_to_missing_parent(db_session, visitor, idea) -> None:
    author = AnonymousAuthor(session_id=visitor.session_id, display_name="Ada")

    with pytest.raises(TargetNotFound):
        create_comment(db_session, idea.id, author, "Hello?", parent_comment_id=5050)


def test_comment_on_missing_idea(db_session, visitor) -> None:
    author = AnonymousAuthor(session_id=visitor.session_id, display_name="Ada")

    with pytest.raises(TargetNotFound):
        create_comment(db_session, 6060, author, "Hello?")


def test_only_the_author_may_delete(db_session, make_visitor, idea, make_comment) -> None:
    comment = make_comment(idea)
    stranger = make_visitor()

    with pytest.raises(NotAuthor):
        delete_comment(
            db_session,
            comment.id,
            AnonymousAuthor(session_id=stranger.session_id, display_name="Ada"),
        )
    with pytest.raises(NotAuthor):
        delete_comment(db_session, comment.id, RegisteredAuthor(user_id="acct-1"))

    delete_comment(db_session, comment.id, comment.author)
    assert db_session.get(Comment, comment.id) is None
