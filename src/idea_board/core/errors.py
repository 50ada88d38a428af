"""Exceptions raised by the voting and reputation services.

``VoteError`` is the base class for every failure the core can report.
The API layer maps each subclass to an HTTP status; nothing below it
knows about HTTP.
"""

from __future__ import annotations


class VoteError(RuntimeError):
    """Base exception for voting, identity and thread failures."""


class InvalidVote(VoteError):
    """Raised when a vote type or target kind is malformed.

    Always raised before the ledger is touched.
    """


class TargetNotFound(VoteError):
    """Raised when the idea or comment being addressed does not exist."""

    def __init__(self, target_kind: str, target_id: int) -> None:
        super().__init__(f"{target_kind.capitalize()} {target_id} not found")
        self.target_kind = target_kind
        self.target_id = target_id


class SessionNotFound(VoteError):
    """Raised when an operation names a session that was never issued."""


class VoteConflict(VoteError):
    """Raised when a uniqueness race on the ledger outlives the retry limit.

    A single conflict is benign and retried internally; callers only see
    this once every attempt has lost the race.
    """


class RateLimited(VoteError):
    """Raised when an address looks like it is stuffing votes."""


class SubmissionRequired(VoteError):
    """Raised when voting is gated on having submitted an idea first."""


class NotAuthor(VoteError):
    """Raised when someone other than the author tries to delete a comment."""


class StorageUnavailable(VoteError):
    """Raised when the database cannot be reached.

    The request fails; the unit of work has already been rolled back.
    """


class InvalidParent(VoteError):
    """Raised when a reply names a parent comment on a different idea."""
