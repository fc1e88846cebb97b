"""Domain errors for the co-ownership consensus core.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from CoOwnershipError.
"""

from coownership.domain.errors.authorization import (
    NotActiveCoOwnerError,
    NotProposerOrAdministratorError,
)
from coownership.domain.errors.base import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PayloadValidationError,
    ProblemDetailError,
)
from coownership.domain.errors.ledger import (
    InsufficientBalanceError,
    LedgerNotFoundError,
    PartitionIntegrityError,
    PartitionNotFoundError,
)
from coownership.domain.errors.proposal import (
    ConcurrentModificationError,
    InvalidStateTransitionError,
    PendingReallocationExistsError,
    ProposalNotAwaitingExecutionError,
    ProposalNotFoundError,
    ProposalNotPendingError,
)
from coownership.domain.errors.validation import (
    InvalidAmountError,
    InvalidPayloadError,
    NoEligibleVotersError,
    PartitionMembershipError,
    PartitionSumError,
)
from coownership.domain.errors.vote import AlreadyVotedError, NotEligibleVoterError

__all__: list[str] = [
    "AlreadyVotedError",
    "AuthorizationError",
    "ConcurrentModificationError",
    "ConflictError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidPayloadError",
    "InvalidStateTransitionError",
    "LedgerNotFoundError",
    "NoEligibleVotersError",
    "NotActiveCoOwnerError",
    "NotEligibleVoterError",
    "NotFoundError",
    "NotProposerOrAdministratorError",
    "PartitionIntegrityError",
    "PartitionMembershipError",
    "PartitionNotFoundError",
    "PartitionSumError",
    "PayloadValidationError",
    "PendingReallocationExistsError",
    "ProblemDetailError",
    "ProposalNotAwaitingExecutionError",
    "ProposalNotFoundError",
    "ProposalNotPendingError",
]
