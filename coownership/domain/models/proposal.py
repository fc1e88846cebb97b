"""Proposal domain model and lifecycle.

A proposal is a request to change state shared by the co-owners of a
vehicle. It is created once, moves forward only through its status enum
and is immutable once it reaches a terminal status.

State Machine:
    Pending -> Approved -> Executed | ExecutionFailed*      (immediate kinds)
    Pending -> ApprovedAwaitingExecution
            -> Executed | ExecutionFailedInsufficientResource (upgrades)
    Pending -> Rejected    (any single reject vetoes)
    Pending -> Cancelled   (proposer or administrator, Pending only)

Terminal Statuses:
    Rejected, Cancelled, Executed, ExecutionFailedInsufficientResource,
    ExecutionFailedInvalidPayload. Nothing is deleted; terminal proposals
    stay queryable indefinitely.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

from coownership.domain.errors.proposal import InvalidStateTransitionError
from coownership.domain.models.payloads import (
    PAYLOAD_TYPES,
    ProposalPayload,
)
from coownership.domain.services.quorum_policy import QuorumPolicy


class ProposalKind(Enum):
    """Kind of shared-state change a proposal requests.

    Kinds:
        FUND_EXPENDITURE: Debit the vehicle fund (e.g. maintenance cost)
        OWNERSHIP_REALLOCATION: Replace the ownership partition
        VEHICLE_UPGRADE: Approve an upgrade whose cost is paid later
    """

    FUND_EXPENDITURE = "FundExpenditure"
    OWNERSHIP_REALLOCATION = "OwnershipReallocation"
    VEHICLE_UPGRADE = "VehicleUpgrade"

    @property
    def policy(self) -> QuorumPolicy:
        """Quorum policy applied to proposals of this kind."""
        return KIND_POLICIES[self]

    @property
    def defers_execution(self) -> bool:
        """True when approval waits for a separate confirm-execution call."""
        return self is ProposalKind.VEHICLE_UPGRADE


KIND_POLICIES: dict[ProposalKind, QuorumPolicy] = {
    ProposalKind.FUND_EXPENDITURE: QuorumPolicy.MAJORITY,
    ProposalKind.OWNERSHIP_REALLOCATION: QuorumPolicy.UNANIMOUS,
    ProposalKind.VEHICLE_UPGRADE: QuorumPolicy.MAJORITY,
}


class ProposalStatus(Enum):
    """Lifecycle status of a proposal."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"
    APPROVED_AWAITING_EXECUTION = "ApprovedAwaitingExecution"
    EXECUTION_FAILED_INSUFFICIENT_RESOURCE = "ExecutionFailedInsufficientResource"
    EXECUTION_FAILED_INVALID_PAYLOAD = "ExecutionFailedInvalidPayload"
    EXECUTED = "Executed"

    def is_terminal(self) -> bool:
        """Check if no further transitions are permitted from this status."""
        return self in TERMINAL_STATUSES

    def valid_transitions(self) -> frozenset[ProposalStatus]:
        """Get valid transitions from this status.

        Returns:
            Frozenset of statuses this status can transition to.
            Empty set for terminal statuses.
        """
        return STATUS_TRANSITION_MATRIX.get(self, frozenset())


TERMINAL_STATUSES: frozenset[ProposalStatus] = frozenset(
    {
        ProposalStatus.REJECTED,
        ProposalStatus.CANCELLED,
        ProposalStatus.EXECUTED,
        ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
        ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
    }
)

_EXECUTION_OUTCOMES = frozenset(
    {
        ProposalStatus.EXECUTED,
        ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
        ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
    }
)

STATUS_TRANSITION_MATRIX: dict[ProposalStatus, frozenset[ProposalStatus]] = {
    ProposalStatus.PENDING: frozenset(
        {
            ProposalStatus.APPROVED,
            ProposalStatus.APPROVED_AWAITING_EXECUTION,
            ProposalStatus.REJECTED,
            ProposalStatus.CANCELLED,
        }
    ),
    ProposalStatus.APPROVED: _EXECUTION_OUTCOMES,
    # Upgrades fail only on balance; membership is not re-checked.
    ProposalStatus.APPROVED_AWAITING_EXECUTION: frozenset(
        {
            ProposalStatus.EXECUTED,
            ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
        }
    ),
    ProposalStatus.REJECTED: frozenset(),
    ProposalStatus.CANCELLED: frozenset(),
    ProposalStatus.EXECUTED: frozenset(),
    ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE: frozenset(),
    ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD: frozenset(),
}


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class Proposal:
    """A request to change shared state, pending multi-party approval.

    Attributes:
        id: Unique identifier.
        vehicle_id: Vehicle whose co-owners vote.
        kind: What the proposal changes.
        proposer_id: Co-owner who created the proposal.
        payload: Kind-specific immutable data.
        required_approvals: Threshold frozen at creation.
        total_eligible: Active co-owner count frozen at creation.
        status: Current lifecycle status.
        created_at: Creation timestamp (UTC).
        finalized_at: When the proposal left Pending.
        executed_at: When the effect was applied.
        failure_reason: Why execution failed, for failure statuses.
        actual_cost: Cost supplied when confirming an upgrade.
        execution_notes: Free text supplied when confirming an upgrade.
        executed_by: Who confirmed an upgrade's execution.
        cancelled_by: Who cancelled the proposal.
    """

    id: UUID
    vehicle_id: UUID
    kind: ProposalKind
    proposer_id: UUID
    payload: ProposalPayload
    required_approvals: int
    total_eligible: int
    status: ProposalStatus = field(default=ProposalStatus.PENDING)
    created_at: datetime = field(default_factory=_utc_now)
    finalized_at: datetime | None = field(default=None)
    executed_at: datetime | None = field(default=None)
    failure_reason: str | None = field(default=None)
    actual_cost: Decimal | None = field(default=None)
    execution_notes: str | None = field(default=None)
    executed_by: UUID | None = field(default=None)
    cancelled_by: UUID | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate proposal fields."""
        if self.total_eligible < 1:
            raise ValueError("total_eligible must be at least 1")
        if not 1 <= self.required_approvals <= self.total_eligible:
            raise ValueError(
                f"required_approvals must be in [1, {self.total_eligible}], "
                f"got {self.required_approvals}"
            )
        expected_payload = PAYLOAD_TYPES[self.kind.value]
        if not isinstance(self.payload, expected_payload):
            raise ValueError(
                f"{self.kind.value} proposals require {expected_payload.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @property
    def is_executed(self) -> bool:
        """True once the effect has been applied."""
        return self.status is ProposalStatus.EXECUTED

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def with_status(
        self,
        new_status: ProposalStatus,
        *,
        at: datetime | None = None,
        failure_reason: str | None = None,
    ) -> Proposal:
        """Create new proposal with updated status.

        Enforces the transition matrix. Since Proposal is frozen, returns
        a new instance; ``required_approvals`` is carried over unchanged.

        Args:
            new_status: The status to transition to.
            at: Transition timestamp (defaults to now, UTC).
            failure_reason: Reason recorded for execution failure statuses.

        Returns:
            New Proposal instance with the updated status.

        Raises:
            InvalidStateTransitionError: Transition not in the matrix.
        """
        if new_status not in self.status.valid_transitions():
            raise InvalidStateTransitionError(
                from_status=self.status,
                to_status=new_status,
                allowed_transitions=sorted(
                    self.status.valid_transitions(), key=lambda s: s.value
                ),
            )

        timestamp = at or _utc_now()
        changes: dict[str, object] = {"status": new_status}
        if self.status is ProposalStatus.PENDING:
            changes["finalized_at"] = timestamp
        if new_status is ProposalStatus.EXECUTED:
            changes["executed_at"] = timestamp
        if failure_reason is not None:
            changes["failure_reason"] = failure_reason
        return replace(self, **changes)  # type: ignore[arg-type]

    def with_cancellation(self, cancelled_by: UUID, at: datetime | None = None) -> Proposal:
        """Transition to Cancelled, recording who cancelled."""
        return replace(
            self.with_status(ProposalStatus.CANCELLED, at=at),
            cancelled_by=cancelled_by,
        )

    def with_execution_details(
        self,
        actual_cost: Decimal,
        executed_by: UUID,
        execution_notes: str | None = None,
    ) -> Proposal:
        """Record the confirm-execution inputs of an upgrade.

        Does not change status; the executor applies the status afterwards.
        """
        return replace(
            self,
            actual_cost=actual_cost,
            executed_by=executed_by,
            execution_notes=execution_notes,
        )

    def to_dict(self) -> dict:
        """Serialize to dictionary for events and API responses.

        Returns:
            Dictionary with UUIDs, datetimes and decimals as strings.
        """
        return {
            "id": str(self.id),
            "vehicle_id": str(self.vehicle_id),
            "kind": self.kind.value,
            "proposer_id": str(self.proposer_id),
            "payload": self.payload.to_dict(),
            "required_approvals": self.required_approvals,
            "total_eligible": self.total_eligible,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "finalized_at": self.finalized_at.isoformat() if self.finalized_at else None,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "failure_reason": self.failure_reason,
            "actual_cost": str(self.actual_cost) if self.actual_cost is not None else None,
            "execution_notes": self.execution_notes,
            "executed_by": str(self.executed_by) if self.executed_by else None,
            "cancelled_by": str(self.cancelled_by) if self.cancelled_by else None,
        }
