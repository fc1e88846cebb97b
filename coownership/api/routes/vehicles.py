"""Vehicle-scoped read routes: proposal lists, statistics, ownership history.

All endpoints require the requester to be an active co-owner of the
vehicle or an administrator.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from coownership.api.dependencies.consensus import get_consensus_service
from coownership.api.models.proposal import (
    OwnershipHistoryItem,
    OwnershipHistoryResponse,
    ProblemDetailResponse,
    ProposalListResponse,
    ProposalStatusResponse,
    VehicleStatisticsResponse,
)
from coownership.api.routes.proposals import problem_exception
from coownership.application.services.consensus_service import ConsensusService
from coownership.domain.errors import ProblemDetailError

router = APIRouter(prefix="/v1/vehicles", tags=["vehicles"])

_FORBIDDEN = {
    403: {
        "model": ProblemDetailResponse,
        "description": "Requester is not a co-owner or administrator",
    }
}


@router.get(
    "/{vehicle_id}/proposals",
    response_model=ProposalListResponse,
    responses=_FORBIDDEN,
    summary="List a vehicle's proposals",
    description="Pending proposals by default, newest first.",
)
async def list_vehicle_proposals(
    vehicle_id: UUID,
    request: Request,
    requester_id: UUID = Query(...),
    include_finalized: bool = Query(
        default=False, description="Also list proposals that left Pending"
    ),
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalListResponse:
    try:
        views = await service.list_vehicle_proposals(
            vehicle_id, requester_id, include_finalized=include_finalized
        )
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalListResponse(
        proposals=[ProposalStatusResponse.from_view(v) for v in views],
        total=len(views),
    )


@router.get(
    "/{vehicle_id}/proposal-statistics",
    response_model=VehicleStatisticsResponse,
    responses=_FORBIDDEN,
    summary="Proposal statistics of a vehicle",
)
async def get_vehicle_statistics(
    vehicle_id: UUID,
    request: Request,
    requester_id: UUID = Query(...),
    service: ConsensusService = Depends(get_consensus_service),
) -> VehicleStatisticsResponse:
    try:
        stats = await service.get_vehicle_statistics(vehicle_id, requester_id)
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return VehicleStatisticsResponse.from_domain(stats)


@router.get(
    "/{vehicle_id}/ownership-history",
    response_model=OwnershipHistoryResponse,
    responses=_FORBIDDEN,
    summary="Ownership audit trail of a vehicle",
    description="One entry per co-owner per executed reallocation, oldest first.",
)
async def get_ownership_history(
    vehicle_id: UUID,
    request: Request,
    requester_id: UUID = Query(...),
    service: ConsensusService = Depends(get_consensus_service),
) -> OwnershipHistoryResponse:
    try:
        entries = await service.get_ownership_history(vehicle_id, requester_id)
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return OwnershipHistoryResponse(
        vehicle_id=vehicle_id,
        entries=[OwnershipHistoryItem.from_domain(e) for e in entries],
        total=len(entries),
    )
