"""Proposal API routes.

FastAPI router for creating, voting on, cancelling, inspecting and
confirming proposals.

Failure semantics:
- 4xx: the call failed and nothing was persisted (RFC 7807 body under
  "detail").
- 2xx with an ExecutionFailed* status: the call succeeded but the
  proposal's effect could not be applied; see failure_reason.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from coownership.api.dependencies.consensus import get_consensus_service
from coownership.api.models.proposal import (
    CancelRequest,
    ConfirmExecutionRequest,
    ProblemDetailResponse,
    ProposalResponse,
    ProposalStatusResponse,
    ProposeRequest,
    VoteRequest,
)
from coownership.application.services.consensus_service import ConsensusService
from coownership.domain.errors import ProblemDetailError

router = APIRouter(prefix="/v1/proposals", tags=["proposals"])


def problem_exception(error: ProblemDetailError, request: Request) -> HTTPException:
    """Convert a domain error to an HTTPException with an RFC 7807 body."""
    detail = error.to_rfc7807_dict()
    detail["instance"] = str(request.url)
    return HTTPException(status_code=error.http_status, detail=detail)


@router.post(
    "",
    response_model=ProposalResponse,
    status_code=201,
    responses={
        400: {"model": ProblemDetailResponse, "description": "Invalid payload"},
        403: {"model": ProblemDetailResponse, "description": "Not an active co-owner"},
        404: {"model": ProblemDetailResponse, "description": "Target ledger not found"},
        409: {
            "model": ProblemDetailResponse,
            "description": "Vehicle already has a pending ownership reallocation",
        },
    },
    summary="Create a proposal",
    description=(
        "Create a fund expenditure, ownership reallocation or vehicle upgrade "
        "proposal. The proposer's approval is recorded automatically; a sole "
        "owner's proposal is decided immediately."
    ),
)
async def create_proposal(
    request_data: ProposeRequest,
    request: Request,
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalResponse:
    """Create a proposal.

    Args:
        request_data: Vehicle, proposer and kind-tagged payload.
        request: FastAPI request for error context.
        service: Injected consensus service.

    Returns:
        ProposalResponse with the frozen approval threshold.

    Raises:
        HTTPException 400: Payload violates its invariants
        HTTPException 403: Proposer is not an active co-owner
        HTTPException 404: Target ledger doesn't exist
        HTTPException 409: Another reallocation is pending
    """
    try:
        proposal = await service.propose(
            vehicle_id=request_data.vehicle_id,
            proposer_id=request_data.proposer_id,
            kind=request_data.kind,
            payload=request_data.domain_payload(),
        )
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.post(
    "/{proposal_id}/votes",
    response_model=ProposalStatusResponse,
    responses={
        403: {"model": ProblemDetailResponse, "description": "Voter is not eligible"},
        404: {"model": ProblemDetailResponse, "description": "Proposal not found"},
        409: {
            "model": ProblemDetailResponse,
            "description": "Already voted, or proposal no longer pending",
        },
    },
    summary="Vote on a proposal",
    description=(
        "Record an Approve or Reject vote. Each co-owner votes at most once; "
        "any rejection vetoes the proposal."
    ),
)
async def cast_vote(
    proposal_id: UUID,
    request_data: VoteRequest,
    request: Request,
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalStatusResponse:
    """Cast a vote and return the proposal with its current tallies."""
    try:
        view = await service.vote(
            proposal_id=proposal_id,
            voter_id=request_data.voter_id,
            decision=request_data.decision,
            comment=request_data.comment,
        )
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalStatusResponse.from_view(view)


@router.post(
    "/{proposal_id}/cancel",
    response_model=ProposalResponse,
    responses={
        403: {
            "model": ProblemDetailResponse,
            "description": "Only the proposer or an administrator may cancel",
        },
        404: {"model": ProblemDetailResponse, "description": "Proposal not found"},
        409: {"model": ProblemDetailResponse, "description": "Proposal not pending"},
    },
    summary="Cancel a pending proposal",
)
async def cancel_proposal(
    proposal_id: UUID,
    request_data: CancelRequest,
    request: Request,
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalResponse:
    try:
        proposal = await service.cancel(
            proposal_id=proposal_id, requester_id=request_data.requester_id
        )
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalResponse.from_domain(proposal)


@router.get(
    "/{proposal_id}",
    response_model=ProposalStatusResponse,
    responses={
        403: {"model": ProblemDetailResponse, "description": "Not allowed to view"},
        404: {"model": ProblemDetailResponse, "description": "Proposal not found"},
    },
    summary="Get proposal status",
    description="Proposal with approve/reject tallies and every voter's position.",
)
async def get_proposal_status(
    proposal_id: UUID,
    request: Request,
    requester_id: UUID = Query(..., description="User asking for the status"),
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalStatusResponse:
    try:
        view = await service.get_status(proposal_id, requester_id)
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalStatusResponse.from_view(view)


@router.post(
    "/{proposal_id}/execution",
    response_model=ProposalResponse,
    responses={
        400: {"model": ProblemDetailResponse, "description": "Invalid actual cost"},
        403: {
            "model": ProblemDetailResponse,
            "description": "Only the proposer or an administrator may confirm",
        },
        404: {"model": ProblemDetailResponse, "description": "Proposal not found"},
        409: {
            "model": ProblemDetailResponse,
            "description": "Proposal is not an upgrade awaiting execution",
        },
    },
    summary="Confirm an approved upgrade was performed",
    description=(
        "Debit the actual cost of an approved vehicle upgrade from the fund. "
        "If the fund cannot cover it the proposal moves to "
        "ExecutionFailedInsufficientResource."
    ),
)
async def confirm_execution(
    proposal_id: UUID,
    request_data: ConfirmExecutionRequest,
    request: Request,
    service: ConsensusService = Depends(get_consensus_service),
) -> ProposalResponse:
    """Confirm execution of an approved vehicle upgrade.

    Args:
        proposal_id: The upgrade proposal.
        request_data: Requester, actual cost and notes.
        request: FastAPI request for error context.
        service: Injected consensus service.

    Returns:
        ProposalResponse in Executed or ExecutionFailedInsufficientResource.
    """
    try:
        proposal = await service.confirm_execution(
            proposal_id=proposal_id,
            requester_id=request_data.requester_id,
            actual_cost=request_data.actual_cost,
            execution_notes=request_data.execution_notes,
        )
    except ProblemDetailError as e:
        raise problem_exception(e, request) from None
    return ProposalResponse.from_domain(proposal)
