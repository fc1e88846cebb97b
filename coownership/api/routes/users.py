"""User-scoped read routes."""

from uuid import UUID

from fastapi import APIRouter, Depends

from coownership.api.dependencies.consensus import get_consensus_service
from coownership.api.models.proposal import VotingHistoryItem, VotingHistoryResponse
from coownership.application.services.consensus_service import ConsensusService

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get(
    "/{user_id}/votes",
    response_model=VotingHistoryResponse,
    summary="Voting history of a user",
    description="Every vote the user cast, newest first, with the proposal's current status.",
)
async def get_voting_history(
    user_id: UUID,
    service: ConsensusService = Depends(get_consensus_service),
) -> VotingHistoryResponse:
    entries = await service.get_voting_history(user_id)
    return VotingHistoryResponse(
        user_id=user_id,
        votes=[VotingHistoryItem.from_domain(e) for e in entries],
        total=len(entries),
    )
