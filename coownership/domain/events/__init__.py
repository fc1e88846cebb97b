"""Notification event payloads."""

from coownership.domain.events.proposal import (
    PROPOSAL_CANCELLED_EVENT_TYPE,
    PROPOSAL_CREATED_EVENT_TYPE,
    PROPOSAL_EXECUTION_FAILED_EVENT_TYPE,
    PROPOSAL_FINALIZED_EVENT_TYPE,
    VOTE_RECORDED_EVENT_TYPE,
    ProposalEvent,
)

__all__: list[str] = [
    "PROPOSAL_CANCELLED_EVENT_TYPE",
    "PROPOSAL_CREATED_EVENT_TYPE",
    "PROPOSAL_EXECUTION_FAILED_EVENT_TYPE",
    "PROPOSAL_FINALIZED_EVENT_TYPE",
    "VOTE_RECORDED_EVENT_TYPE",
    "ProposalEvent",
]
