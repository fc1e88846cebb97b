"""In-memory implementations of the application ports.

Used by the API's default wiring and by the integration tests. They
enforce the same atomicity and uniqueness guarantees a database-backed
adapter must provide.
"""

from coownership.infrastructure.stubs.co_owner_registry_stub import CoOwnerRegistryStub
from coownership.infrastructure.stubs.ledger_repository_stub import LedgerRepositoryStub
from coownership.infrastructure.stubs.notifier_stub import Delivery, NotifierStub
from coownership.infrastructure.stubs.ownership_repository_stub import (
    OwnershipRepositoryStub,
)
from coownership.infrastructure.stubs.proposal_repository_stub import (
    ProposalRepositoryStub,
)
from coownership.infrastructure.stubs.vote_repository_stub import VoteRepositoryStub

__all__: list[str] = [
    "CoOwnerRegistryStub",
    "Delivery",
    "LedgerRepositoryStub",
    "NotifierStub",
    "OwnershipRepositoryStub",
    "ProposalRepositoryStub",
    "VoteRepositoryStub",
]
