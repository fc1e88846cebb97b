"""Vote errors.

A voter casts at most one vote per proposal, ever. There is no vote
revision; a second attempt is a conflict, whatever its decision.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from coownership.domain.errors.base import AuthorizationError, ConflictError


class AlreadyVotedError(ConflictError):
    """Raised when a voter tries to vote on the same proposal twice.

    HTTP Status: 409 Conflict

    Attributes:
        proposal_id: The proposal already voted on.
        voter_id: The voter attempting the duplicate.
        existing_vote_id: Id of the recorded vote (if available).
        cast_at: When the recorded vote was cast (if available).
    """

    problem_type = "vote:already-voted"
    title = "Already Voted"

    def __init__(
        self,
        proposal_id: UUID,
        voter_id: UUID,
        existing_vote_id: UUID | None = None,
        cast_at: datetime | None = None,
    ) -> None:
        self.proposal_id = proposal_id
        self.voter_id = voter_id
        self.existing_vote_id = existing_vote_id
        self.cast_at = cast_at
        super().__init__(f"Voter {voter_id} already voted on proposal {proposal_id}")

    def extensions(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "proposal_id": str(self.proposal_id),
            "voter_id": str(self.voter_id),
        }
        if self.existing_vote_id is not None:
            result["existing_vote_id"] = str(self.existing_vote_id)
        if self.cast_at is not None:
            result["cast_at"] = self.cast_at.isoformat()
        return result


class NotEligibleVoterError(AuthorizationError):
    """Raised when the voter is not an active co-owner at call time.

    Eligibility is checked against current membership, not against the
    snapshot used to freeze the approval threshold.
    """

    problem_type = "vote:not-eligible"
    title = "Not An Eligible Voter"

    def __init__(self, proposal_id: UUID, voter_id: UUID, vehicle_id: UUID) -> None:
        self.proposal_id = proposal_id
        self.voter_id = voter_id
        self.vehicle_id = vehicle_id
        super().__init__(
            f"Voter {voter_id} is not an active co-owner of vehicle {vehicle_id} "
            f"and cannot vote on proposal {proposal_id}"
        )

    def extensions(self) -> dict[str, Any]:
        return {
            "proposal_id": str(self.proposal_id),
            "voter_id": str(self.voter_id),
            "vehicle_id": str(self.vehicle_id),
        }
