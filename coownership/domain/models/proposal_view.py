"""Read-only projections of proposals for status, history and statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from coownership.domain.models.proposal import Proposal, ProposalKind, ProposalStatus
from coownership.domain.models.vote import Vote, VoteDecision, VoteTally


@dataclass(frozen=True, eq=True)
class VoterVisibility:
    """One eligible (or past) voter's position on a proposal."""

    voter_id: UUID
    has_voted: bool
    decision: VoteDecision | None = None
    comment: str | None = None
    cast_at: datetime | None = None
    automatic: bool = False

    @classmethod
    def from_vote(cls, vote: Vote) -> VoterVisibility:
        return cls(
            voter_id=vote.voter_id,
            has_voted=True,
            decision=vote.decision,
            comment=vote.comment,
            cast_at=vote.cast_at,
            automatic=vote.automatic,
        )

    def to_dict(self) -> dict:
        return {
            "voter_id": str(self.voter_id),
            "has_voted": self.has_voted,
            "decision": self.decision.value if self.decision else None,
            "comment": self.comment,
            "cast_at": self.cast_at.isoformat() if self.cast_at else None,
            "automatic": self.automatic,
        }


@dataclass(frozen=True, eq=True)
class ProposalView:
    """Proposal with its tallies and per-voter visibility.

    Attributes:
        proposal: The proposal as stored.
        tally: Approve/reject counts recomputed from votes.
        voters: Every current co-owner plus anyone who already voted.
    """

    proposal: Proposal
    tally: VoteTally
    voters: tuple[VoterVisibility, ...] = field(default_factory=tuple)

    @property
    def required_approvals(self) -> int:
        return self.proposal.required_approvals

    @property
    def approvals_remaining(self) -> int:
        return max(0, self.proposal.required_approvals - self.tally.approvals)

    @property
    def approval_percentage(self) -> Decimal:
        """Approvals as a share of the frozen voter population."""
        return (
            Decimal(self.tally.approvals) * 100 / Decimal(self.proposal.total_eligible)
        ).quantize(Decimal("0.01"))

    def to_dict(self) -> dict:
        return {
            **self.proposal.to_dict(),
            "approvals": self.tally.approvals,
            "rejections": self.tally.rejections,
            "approvals_remaining": self.approvals_remaining,
            "approval_percentage": str(self.approval_percentage),
            "is_executed": self.proposal.is_executed,
            "voters": [v.to_dict() for v in self.voters],
        }


@dataclass(frozen=True, eq=True)
class VotingHistoryEntry:
    """A vote a user cast, with the proposal's current state."""

    vote: Vote
    proposal_kind: ProposalKind
    proposal_status: ProposalStatus
    vehicle_id: UUID


@dataclass(frozen=True, eq=True)
class VehicleProposalStatistics:
    """Aggregate counts over all proposals of one vehicle."""

    vehicle_id: UUID
    total_proposals: int
    by_status: dict[ProposalStatus, int]
    by_kind: dict[ProposalKind, int]
    total_executed_spend: Decimal

    def to_dict(self) -> dict:
        return {
            "vehicle_id": str(self.vehicle_id),
            "total_proposals": self.total_proposals,
            "by_status": {s.value: n for s, n in self.by_status.items()},
            "by_kind": {k.value: n for k, n in self.by_kind.items()},
            "total_executed_spend": str(self.total_executed_spend),
        }
