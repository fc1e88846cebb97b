"""Proposal lifecycle event payloads delivered to co-owners.

Notification is fire-and-forget: events are produced after the state
change they describe has been committed, and a failed delivery never
rolls that change back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

PROPOSAL_CREATED_EVENT_TYPE: str = "proposal.created"
VOTE_RECORDED_EVENT_TYPE: str = "proposal.vote.recorded"
PROPOSAL_FINALIZED_EVENT_TYPE: str = "proposal.finalized"
PROPOSAL_CANCELLED_EVENT_TYPE: str = "proposal.cancelled"
PROPOSAL_EXECUTION_FAILED_EVENT_TYPE: str = "proposal.execution.failed"

PROPOSAL_EVENT_SCHEMA_VERSION: str = "1.0.0"


@dataclass(frozen=True, eq=True)
class ProposalEvent:
    """Payload of one proposal notification.

    Attributes:
        event_type: One of the *_EVENT_TYPE constants.
        proposal_id: Proposal the event is about.
        vehicle_id: Vehicle of the proposal.
        kind: ProposalKind value.
        status: Proposal status after the change.
        actor_id: Who triggered the change.
        occurred_at: When the change was committed (UTC).
        details: Event-specific extra data (tallies, failure reason, ...).
    """

    event_type: str
    proposal_id: UUID
    vehicle_id: UUID
    kind: str
    status: str
    actor_id: UUID
    occurred_at: datetime
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert payload to dict for delivery.

        Returns:
            Dict with a schema_version for consumers.
        """
        return {
            "event_type": self.event_type,
            "proposal_id": str(self.proposal_id),
            "vehicle_id": str(self.vehicle_id),
            "kind": self.kind,
            "status": self.status,
            "actor_id": str(self.actor_id),
            "occurred_at": self.occurred_at.isoformat(),
            "details": dict(self.details),
            "schema_version": PROPOSAL_EVENT_SCHEMA_VERSION,
        }
