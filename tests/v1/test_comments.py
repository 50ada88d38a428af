# tests/v1/test_comments.py
"""Tests for comment and thread endpoints."""

from datetime import timedelta

from fastapi import status

from idea_board.db.time import utcnow


def _post_comment(client, idea_id, headers, content="Great idea", **extra):
    return client.post(
        f"/api/v1/ideas/{idea_id}/comments",
        json={"content": content, **extra},
        headers=headers,
    )


def test_anonymous_comment(client, visitor, idea, visitor_headers) -> None:
    response = _post_comment(
        client, idea.id, visitor_headers(visitor.session_id), display_name="Ada"
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["author_name"] == "Ada"
    assert body["registered"] is False
    assert body["votes"] == 1


def test_anonymous_comment_needs_display_name(client, visitor, idea, visitor_headers) -> None:
    response = _post_comment(client, idea.id, visitor_headers(visitor.session_id))

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_registered_comment(client, visitor, idea, visitor_headers, account_headers) -> None:
    headers = {**visitor_headers(visitor.session_id), **account_headers("acct-9")}

    response = _post_comment(client, idea.id, headers, display_name="ignored")

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["registered"] is True
    assert body["author_user_id"] == "acct-9"
    assert body["author_name"] is None


def test_comment_on_missing_idea(client, visitor, visitor_headers) -> None:
    response = _post_comment(
        client, 5150, visitor_headers(visitor.session_id), display_name="Ada"
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_reply_across_ideas_is_rejected(
    client, visitor, make_idea, make_comment, visitor_headers
) -> None:
    first = make_idea("First")
    second = make_idea("Second")
    parent = make_comment(first)

    response = _post_comment(
        client,
        second.id,
        visitor_headers(visitor.session_id),
        display_name="Ada",
        parent_comment_id=parent.id,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_thread_order(client, idea, make_comment) -> None:
    start = utcnow()
    a = make_comment(idea, "A", votes=3, created_at=start)
    make_comment(idea, "B", votes=5, created_at=start + timedelta(seconds=1))
    make_comment(idea, "A1", parent=a, created_at=start + timedelta(seconds=2))

    response = client.get(f"/api/v1/ideas/{idea.id}/comments")

    assert response.status_code == status.HTTP_200_OK
    assert [(c["content"], c["depth"]) for c in response.json()] == [
        ("B", 0),
        ("A", 0),
        ("A1", 1),
    ]


def test_thread_for_missing_idea(client) -> None:
    response = client.get("/api/v1/ideas/9191/comments")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_author_deletes_comment_and_replies_are_promoted(
    client, visitor, idea, make_comment, visitor_headers
) -> None:
    parent = make_comment(idea, "parent")
    make_comment(idea, "reply", parent=parent)

    response = client.delete(
        f"/api/v1/comments/{parent.id}",
        headers=visitor_headers(visitor.session_id),
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    thread = client.get(f"/api/v1/ideas/{idea.id}/comments").json()
    assert [(c["content"], c["depth"], c["orphaned"]) for c in thread] == [("reply", 0, True)]


def test_stranger_cannot_delete_comment(
    client, make_visitor, idea, make_comment, visitor_headers
) -> None:
    comment = make_comment(idea)
    stranger = make_visitor()

    response = client.delete(
        f"/api/v1/comments/{comment.id}",
        headers=visitor_headers(stranger.session_id),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_registered_author_deletes_own_comment(
    client, visitor, idea, visitor_headers, account_headers
) -> None:
    headers = {**visitor_headers(visitor.session_id), **account_headers("acct-3")}
    created = _post_comment(client, idea.id, headers).json()

    response = client.delete(f"/api/v1/comments/{created['id']}", headers=headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
