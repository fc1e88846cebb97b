"""Consensus API request/response models.

Pydantic models for proposal, vote, cancel and confirm-execution
endpoints and the vehicle/user read endpoints. Payload shape invariants
(amounts > 0, percentages summing to 100, full co-owner coverage) are
checked by the domain, which answers with RFC 7807 problem documents;
these models only enforce types.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer

from coownership.domain.models.ownership import OwnershipAuditEntry
from coownership.domain.models.payloads import (
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    ProposalPayload,
    ShareChange,
    UpgradeType,
    VehicleUpgradePayload,
)
from coownership.domain.models.proposal import Proposal, ProposalKind
from coownership.domain.models.proposal_view import (
    ProposalView,
    VehicleProposalStatistics,
    VoterVisibility,
    VotingHistoryEntry,
)
from coownership.domain.models.vote import VoteDecision

# ISO 8601 with Z suffix (Pydantic v2)
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]

# Decimals serialize as strings
DecimalString = Annotated[Decimal, PlainSerializer(lambda v: str(v), return_type=str)]


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------


class FundExpenditureRequest(BaseModel):
    """Payload of a fund expenditure (e.g. a maintenance cost)."""

    kind: Literal["FundExpenditure"] = "FundExpenditure"
    target_ledger_id: UUID = Field(..., description="Vehicle fund to debit")
    amount: Decimal = Field(..., description="Amount to debit on approval")
    cost_reference_id: UUID = Field(
        ..., description="Maintenance or cost record the expenditure pays for"
    )
    reason: str = Field(default="", max_length=2000)
    image_url: str | None = Field(default=None, max_length=500)

    def to_domain(self) -> FundExpenditurePayload:
        return FundExpenditurePayload(
            target_ledger_id=self.target_ledger_id,
            amount=self.amount,
            cost_reference_id=self.cost_reference_id,
            reason=self.reason,
            image_url=self.image_url,
        )


class ShareChangeRequest(BaseModel):
    co_owner_id: UUID
    current_percentage: Decimal
    proposed_percentage: Decimal
    current_investment: Decimal
    proposed_investment: Decimal


class OwnershipReallocationRequest(BaseModel):
    """Replacement partition; must list every active co-owner once."""

    kind: Literal["OwnershipReallocation"] = "OwnershipReallocation"
    shares: list[ShareChangeRequest] = Field(default_factory=list)
    reason: str = Field(default="", max_length=2000)

    def to_domain(self) -> OwnershipReallocationPayload:
        return OwnershipReallocationPayload(
            shares=tuple(
                ShareChange(
                    co_owner_id=s.co_owner_id,
                    current_percentage=s.current_percentage,
                    proposed_percentage=s.proposed_percentage,
                    current_investment=s.current_investment,
                    proposed_investment=s.proposed_investment,
                )
                for s in self.shares
            ),
            reason=self.reason,
        )


class VehicleUpgradeRequest(BaseModel):
    """Upgrade proposal; the fund is debited on confirm-execution."""

    kind: Literal["VehicleUpgrade"] = "VehicleUpgrade"
    target_ledger_id: UUID
    upgrade_type: UpgradeType
    title: str = Field(..., max_length=200)
    estimated_cost: Decimal
    description: str = Field(default="", max_length=2000)
    justification: str | None = Field(default=None, max_length=1000)
    vendor_name: str | None = Field(default=None, max_length=200)
    vendor_contact: str | None = Field(default=None, max_length=200)
    proposed_installation_date: date | None = None
    estimated_duration_days: int | None = None
    image_url: str | None = Field(default=None, max_length=500)

    def to_domain(self) -> VehicleUpgradePayload:
        return VehicleUpgradePayload(
            target_ledger_id=self.target_ledger_id,
            upgrade_type=self.upgrade_type,
            title=self.title,
            estimated_cost=self.estimated_cost,
            description=self.description,
            justification=self.justification,
            vendor_name=self.vendor_name,
            vendor_contact=self.vendor_contact,
            proposed_installation_date=self.proposed_installation_date,
            estimated_duration_days=self.estimated_duration_days,
            image_url=self.image_url,
        )


PayloadRequest = Annotated[
    Union[FundExpenditureRequest, OwnershipReallocationRequest, VehicleUpgradeRequest],
    Field(discriminator="kind"),
]


class ProposeRequest(BaseModel):
    """Request to create a proposal; the payload's kind selects its type."""

    vehicle_id: UUID
    proposer_id: UUID
    payload: PayloadRequest

    @property
    def kind(self) -> ProposalKind:
        return ProposalKind(self.payload.kind)

    def domain_payload(self) -> ProposalPayload:
        return self.payload.to_domain()


class VoteRequest(BaseModel):
    voter_id: UUID
    decision: VoteDecision
    comment: str | None = Field(default=None, max_length=1000)


class CancelRequest(BaseModel):
    requester_id: UUID


class ConfirmExecutionRequest(BaseModel):
    """Confirms an approved upgrade was performed."""

    requester_id: UUID = Field(..., description="Proposer or administrator")
    actual_cost: Decimal = Field(..., description="Cost known after the work")
    execution_notes: str | None = Field(default=None, max_length=2000)


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------


class ProposalResponse(BaseModel):
    id: UUID
    vehicle_id: UUID
    kind: str
    proposer_id: UUID
    status: str
    payload: dict[str, Any]
    required_approvals: int
    total_eligible: int
    created_at: DateTimeWithZ
    finalized_at: DateTimeWithZ | None = None
    executed_at: DateTimeWithZ | None = None
    is_executed: bool
    failure_reason: str | None = None
    actual_cost: DecimalString | None = None
    execution_notes: str | None = None
    executed_by: UUID | None = None
    cancelled_by: UUID | None = None

    @classmethod
    def from_domain(cls, proposal: Proposal) -> "ProposalResponse":
        return cls(**cls._fields_from(proposal))

    @staticmethod
    def _fields_from(proposal: Proposal) -> dict[str, Any]:
        return {
            "id": proposal.id,
            "vehicle_id": proposal.vehicle_id,
            "kind": proposal.kind.value,
            "proposer_id": proposal.proposer_id,
            "status": proposal.status.value,
            "payload": proposal.payload.to_dict(),
            "required_approvals": proposal.required_approvals,
            "total_eligible": proposal.total_eligible,
            "created_at": proposal.created_at,
            "finalized_at": proposal.finalized_at,
            "executed_at": proposal.executed_at,
            "is_executed": proposal.is_executed,
            "failure_reason": proposal.failure_reason,
            "actual_cost": proposal.actual_cost,
            "execution_notes": proposal.execution_notes,
            "executed_by": proposal.executed_by,
            "cancelled_by": proposal.cancelled_by,
        }


class VoterResponse(BaseModel):
    voter_id: UUID
    has_voted: bool
    decision: str | None = None
    comment: str | None = None
    cast_at: DateTimeWithZ | None = None
    automatic: bool = False

    @classmethod
    def from_domain(cls, voter: VoterVisibility) -> "VoterResponse":
        return cls(
            voter_id=voter.voter_id,
            has_voted=voter.has_voted,
            decision=voter.decision.value if voter.decision else None,
            comment=voter.comment,
            cast_at=voter.cast_at,
            automatic=voter.automatic,
        )


class ProposalStatusResponse(ProposalResponse):
    """Proposal with tallies and per-voter visibility."""

    approvals: int
    rejections: int
    approvals_remaining: int
    approval_percentage: DecimalString
    voters: list[VoterResponse]

    @classmethod
    def from_view(cls, view: ProposalView) -> "ProposalStatusResponse":
        return cls(
            **cls._fields_from(view.proposal),
            approvals=view.tally.approvals,
            rejections=view.tally.rejections,
            approvals_remaining=view.approvals_remaining,
            approval_percentage=view.approval_percentage,
            voters=[VoterResponse.from_domain(v) for v in view.voters],
        )


class ProposalListResponse(BaseModel):
    proposals: list[ProposalStatusResponse]
    total: int


class VotingHistoryItem(BaseModel):
    vote_id: UUID
    proposal_id: UUID
    vehicle_id: UUID
    proposal_kind: str
    proposal_status: str
    decision: str
    comment: str | None = None
    cast_at: DateTimeWithZ
    automatic: bool
    content_hash: str

    @classmethod
    def from_domain(cls, entry: VotingHistoryEntry) -> "VotingHistoryItem":
        return cls(
            vote_id=entry.vote.vote_id,
            proposal_id=entry.vote.proposal_id,
            vehicle_id=entry.vehicle_id,
            proposal_kind=entry.proposal_kind.value,
            proposal_status=entry.proposal_status.value,
            decision=entry.vote.decision.value,
            comment=entry.vote.comment,
            cast_at=entry.vote.cast_at,
            automatic=entry.vote.automatic,
            content_hash=entry.vote.content_hash.hex(),
        )


class VotingHistoryResponse(BaseModel):
    user_id: UUID
    votes: list[VotingHistoryItem]
    total: int


class VehicleStatisticsResponse(BaseModel):
    vehicle_id: UUID
    total_proposals: int
    by_status: dict[str, int]
    by_kind: dict[str, int]
    total_executed_spend: DecimalString

    @classmethod
    def from_domain(cls, stats: VehicleProposalStatistics) -> "VehicleStatisticsResponse":
        return cls(
            vehicle_id=stats.vehicle_id,
            total_proposals=stats.total_proposals,
            by_status={s.value: n for s, n in stats.by_status.items()},
            by_kind={k.value: n for k, n in stats.by_kind.items()},
            total_executed_spend=stats.total_executed_spend,
        )


class OwnershipHistoryItem(BaseModel):
    entry_id: UUID
    proposal_id: UUID
    co_owner_id: UUID
    previous_percentage: DecimalString
    new_percentage: DecimalString
    percentage_delta: DecimalString
    previous_investment: DecimalString
    new_investment: DecimalString
    investment_delta: DecimalString
    actor_id: UUID
    recorded_at: DateTimeWithZ

    @classmethod
    def from_domain(cls, entry: OwnershipAuditEntry) -> "OwnershipHistoryItem":
        return cls(
            entry_id=entry.entry_id,
            proposal_id=entry.proposal_id,
            co_owner_id=entry.co_owner_id,
            previous_percentage=entry.previous_percentage,
            new_percentage=entry.new_percentage,
            percentage_delta=entry.percentage_delta,
            previous_investment=entry.previous_investment,
            new_investment=entry.new_investment,
            investment_delta=entry.investment_delta,
            actor_id=entry.actor_id,
            recorded_at=entry.recorded_at,
        )


class OwnershipHistoryResponse(BaseModel):
    vehicle_id: UUID
    entries: list[OwnershipHistoryItem]
    total: int


class ProblemDetailResponse(BaseModel):
    """RFC 7807 error body (under the "detail" key of the response)."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error message")
    instance: str = Field(..., description="Request URL that caused the error")
