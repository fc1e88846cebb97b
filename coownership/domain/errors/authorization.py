"""Authorization errors for proposal, vote and cancel operations."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from coownership.domain.errors.base import AuthorizationError


class NotActiveCoOwnerError(AuthorizationError):
    """Raised when a non co-owner tries to act on a vehicle.

    HTTP Status: 403 Forbidden

    Attributes:
        vehicle_id: The vehicle the caller tried to act on.
        user_id: The caller.
        action: What the caller attempted (propose, view, ...).
    """

    problem_type = "authorization:not-co-owner"
    title = "Not An Active Co-Owner"

    def __init__(self, vehicle_id: UUID, user_id: UUID, action: str) -> None:
        self.vehicle_id = vehicle_id
        self.user_id = user_id
        self.action = action
        super().__init__(
            f"User {user_id} is not an active co-owner of vehicle {vehicle_id} "
            f"and cannot {action}"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "vehicle_id": str(self.vehicle_id),
            "user_id": str(self.user_id),
            "action": self.action,
        }


class NotProposerOrAdministratorError(AuthorizationError):
    """Raised when cancel or confirm-execution comes from anyone else.

    Only the original proposer or an administrator may cancel a proposal
    or confirm execution of an approved upgrade.

    HTTP Status: 403 Forbidden
    """

    problem_type = "authorization:not-proposer-or-admin"
    title = "Only Proposer Or Administrator"

    def __init__(self, proposal_id: UUID, requester_id: UUID, action: str) -> None:
        self.proposal_id = proposal_id
        self.requester_id = requester_id
        self.action = action
        super().__init__(
            f"Only the proposer or an administrator can {action} "
            f"proposal {proposal_id} (requested by {requester_id})"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "proposal_id": str(self.proposal_id),
            "requester_id": str(self.requester_id),
            "action": self.action,
        }
