# src/idea_board/api/v1/endpoints/votes.py
"""Vote-related endpoints for the idea board API."""

from fastapi import APIRouter

from idea_board.core.errors import VoteError
from idea_board.schemas.vote import LedgerEntryResponse, MyVoteResponse, VoteCreate, VoteResponse
from idea_board.services.ledger import VoteOutcome, cast_vote, get_vote, list_session_votes, unvote

from ..dependencies import IdentityDep, SessionCacheDep, SessionDep, http_error

router = APIRouter(prefix="/votes", tags=["votes"])


def _vote_response(outcome: VoteOutcome) -> VoteResponse:
    return VoteResponse(
        status=outcome.status.value,
        target_id=outcome.target_id,
        target_kind=outcome.target_kind.value,
        vote_type=outcome.vote_type.value if outcome.vote_type else None,
        delta=outcome.delta,
        votes=outcome.votes,
        flagged=outcome.flagged,
    )


@router.post("/", response_model=VoteResponse)
def vote_on_target(
    vote_data: VoteCreate,
    db: SessionDep,
    identity: IdentityDep,
    cache: SessionCacheDep,
) -> VoteResponse:
    """Cast, repeat or flip the caller's vote on an idea or comment."""
    try:
        outcome = cast_vote(
            db,
            identity.session_id,
            vote_data.target_id,
            vote_data.target_kind,
            vote_data.vote_type,
            identity.network_address,
            address_forwarded=identity.address_forwarded,
            cache=cache,
        )
    except VoteError as exc:
        raise http_error(exc) from exc
    return _vote_response(outcome)


@router.delete("/{target_kind}/{target_id}", response_model=VoteResponse)
def withdraw_vote(
    target_kind: str,
    target_id: int,
    db: SessionDep,
    identity: IdentityDep,
) -> VoteResponse:
    """Withdraw the caller's vote on a target."""
    try:
        outcome = unvote(db, identity.session_id, target_id, target_kind)
    except VoteError as exc:
        raise http_error(exc) from exc
    return _vote_response(outcome)


@router.get("/mine", response_model=list[LedgerEntryResponse])
def read_my_votes(db: SessionDep, identity: IdentityDep) -> list[LedgerEntryResponse]:
    """List the caller's standing votes, newest first."""
    try:
        votes = list_session_votes(db, identity.session_id)
    except VoteError as exc:
        raise http_error(exc) from exc
    return [LedgerEntryResponse.model_validate(vote) for vote in votes]


@router.get("/{target_kind}/{target_id}/my-vote", response_model=MyVoteResponse)
def read_my_vote(
    target_kind: str,
    target_id: int,
    db: SessionDep,
    identity: IdentityDep,
) -> MyVoteResponse:
    """Return the caller's vote on a target, if any."""
    try:
        vote = get_vote(db, identity.session_id, target_id, target_kind)
    except VoteError as exc:
        raise http_error(exc) from exc
    return MyVoteResponse(vote_type=vote.vote_type if vote else None)
