"""Domain models for the co-ownership consensus core."""

from coownership.domain.models.ledger import (
    LedgerEntry,
    LedgerEntryDirection,
    quantize_money,
)
from coownership.domain.models.ownership import (
    OwnershipAuditEntry,
    OwnershipPartition,
    OwnershipShare,
)
from coownership.domain.models.payloads import (
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    ProposalPayload,
    ShareChange,
    UpgradeType,
    VehicleUpgradePayload,
)
from coownership.domain.models.proposal import Proposal, ProposalKind, ProposalStatus
from coownership.domain.models.proposal_view import (
    ProposalView,
    VehicleProposalStatistics,
    VoterVisibility,
    VotingHistoryEntry,
)
from coownership.domain.models.vote import Vote, VoteDecision, VoteTally

__all__: list[str] = [
    "FundExpenditurePayload",
    "LedgerEntry",
    "LedgerEntryDirection",
    "OwnershipAuditEntry",
    "OwnershipPartition",
    "OwnershipReallocationPayload",
    "OwnershipShare",
    "Proposal",
    "ProposalKind",
    "ProposalPayload",
    "ProposalStatus",
    "ProposalView",
    "ShareChange",
    "UpgradeType",
    "VehicleProposalStatistics",
    "VehicleUpgradePayload",
    "Vote",
    "VoteDecision",
    "VoteTally",
    "VoterVisibility",
    "VotingHistoryEntry",
    "quantize_money",
]
