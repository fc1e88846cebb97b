"""Proposal lifecycle errors.

Proposals move forward only through their status enum. These errors are
raised when a caller asks for a transition the lifecycle forbids or when
two writers race for the same transition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from coownership.domain.errors.base import ConflictError, NotFoundError

if TYPE_CHECKING:
    from coownership.domain.models.proposal import ProposalStatus


class ProposalNotFoundError(NotFoundError):
    """Raised when a proposal id does not resolve.

    HTTP Status: 404 Not Found
    """

    problem_type = "proposal:not-found"
    title = "Proposal Not Found"

    def __init__(self, proposal_id: UUID) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal not found: {proposal_id}")

    def extensions(self) -> dict[str, Any]:
        return {"proposal_id": str(self.proposal_id)}


class ProposalNotPendingError(ConflictError):
    """Raised when voting on or cancelling a proposal that left Pending.

    HTTP Status: 409 Conflict

    Attributes:
        proposal_id: The proposal.
        status: Its current status.
        action: What the caller attempted (vote, cancel).
    """

    problem_type = "proposal:not-pending"
    title = "Proposal Not Pending"

    def __init__(
        self,
        proposal_id: UUID,
        status: ProposalStatus,
        action: str,
    ) -> None:
        self.proposal_id = proposal_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} proposal {proposal_id}: status is {status.value}"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "proposal_id": str(self.proposal_id),
            "current_status": self.status.value,
            "action": self.action,
        }


class InvalidStateTransitionError(ConflictError):
    """Raised when a transition is not in the transition matrix.

    Attributes:
        from_status: Current status of the proposal.
        to_status: Attempted target status.
        allowed_transitions: Valid targets from the current status.
    """

    problem_type = "proposal:invalid-transition"
    title = "Invalid State Transition"

    def __init__(
        self,
        from_status: ProposalStatus,
        to_status: ProposalStatus,
        allowed_transitions: list[ProposalStatus] | None = None,
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = allowed_transitions or []

        allowed_str = (
            f" Valid transitions: {[s.value for s in self.allowed_transitions]}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            f"Invalid state transition: {from_status.value} -> {to_status.value}.{allowed_str}"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "allowed_transitions": [s.value for s in self.allowed_transitions],
        }


class ConcurrentModificationError(ConflictError):
    """Raised when a compare-and-swap status update loses a race.

    The expected status no longer matches the stored status, meaning
    another writer moved the proposal first. The caller should re-read
    the proposal; it must not re-apply the effect.

    Attributes:
        proposal_id: The proposal being updated.
        expected_status: Status the writer expected to replace.
    """

    problem_type = "proposal:concurrent-modification"
    title = "Concurrent Modification"

    def __init__(self, proposal_id: UUID, expected_status: ProposalStatus) -> None:
        self.proposal_id = proposal_id
        self.expected_status = expected_status
        super().__init__(
            f"Concurrent modification detected for proposal {proposal_id}. "
            f"Expected status: {expected_status.value}."
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "proposal_id": str(self.proposal_id),
            "expected_status": self.expected_status.value,
        }


class PendingReallocationExistsError(ConflictError):
    """Raised when a vehicle already has a pending ownership reallocation.

    Two concurrent reallocations would each be computed against the same
    starting partition, so only one may be open per vehicle.
    """

    problem_type = "proposal:pending-reallocation-exists"
    title = "Pending Reallocation Exists"

    def __init__(self, vehicle_id: UUID, existing_proposal_id: UUID) -> None:
        self.vehicle_id = vehicle_id
        self.existing_proposal_id = existing_proposal_id
        super().__init__(
            f"Vehicle {vehicle_id} already has pending ownership reallocation "
            f"{existing_proposal_id}"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "vehicle_id": str(self.vehicle_id),
            "existing_proposal_id": str(self.existing_proposal_id),
        }


class ProposalNotAwaitingExecutionError(ConflictError):
    """Raised when confirming execution of a proposal not awaiting it.

    Only VehicleUpgrade proposals in ApprovedAwaitingExecution accept a
    confirm-execution call.
    """

    problem_type = "proposal:not-awaiting-execution"
    title = "Proposal Not Awaiting Execution"

    def __init__(self, proposal_id: UUID, status: ProposalStatus) -> None:
        self.proposal_id = proposal_id
        self.status = status
        super().__init__(
            f"Proposal {proposal_id} is {status.value}; only approved upgrades "
            "awaiting execution can be confirmed"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "proposal_id": str(self.proposal_id),
            "current_status": self.status.value,
        }
