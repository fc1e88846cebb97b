"""Application ports - abstract interfaces to external collaborators.

Ports follow the hexagonal architecture pattern: the consensus services
depend on these protocols, and infrastructure provides implementations.

Available ports:
- CoOwnerRegistryProtocol: Membership and administrator lookup
- LedgerRepositoryProtocol: Atomic fund balance mutation
- OwnershipRepositoryProtocol: Partition replacement with audit trail
- ProposalRepositoryProtocol: Proposal persistence with status CAS
- VoteRepositoryProtocol: Unique (proposal, voter) vote store
- NotifierProtocol: Fire-and-forget notification delivery
"""

from coownership.application.ports.co_owner_registry import CoOwnerRegistryProtocol
from coownership.application.ports.ledger_repository import LedgerRepositoryProtocol
from coownership.application.ports.notifier import NotifierProtocol
from coownership.application.ports.ownership_repository import (
    OwnershipRepositoryProtocol,
)
from coownership.application.ports.proposal_repository import (
    ProposalRepositoryProtocol,
)
from coownership.application.ports.vote_repository import VoteRepositoryProtocol

__all__: list[str] = [
    "CoOwnerRegistryProtocol",
    "LedgerRepositoryProtocol",
    "NotifierProtocol",
    "OwnershipRepositoryProtocol",
    "ProposalRepositoryProtocol",
    "VoteRepositoryProtocol",
]
