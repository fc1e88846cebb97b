"""Consensus API dependencies.

Dependency injection setup for the consensus core. Provides in-memory
stub adapters; a deployment swaps them through the set_* helpers (or
FastAPI dependency_overrides) for database-backed implementations.
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
from coownership.application.services.consensus_service import ConsensusService
from coownership.application.services.effect_executor_service import (
    EffectExecutorService,
)
from coownership.application.services.proposal_state_machine import (
    ProposalStateMachine,
)
from coownership.application.services.vote_ledger_service import VoteLedgerService
from coownership.config.consensus_config import ConsensusConfig
from coownership.infrastructure.stubs import (
    CoOwnerRegistryStub,
    LedgerRepositoryStub,
    NotifierStub,
    OwnershipRepositoryStub,
    ProposalRepositoryStub,
    VoteRepositoryStub,
)

# Singleton instances; built lazily on first request

_config: ConsensusConfig | None = None
_co_owner_registry: CoOwnerRegistryProtocol | None = None
_ledger_repository: LedgerRepositoryProtocol | None = None
_ownership_repository: OwnershipRepositoryProtocol | None = None
_proposal_repository: ProposalRepositoryProtocol | None = None
_vote_repository: VoteRepositoryProtocol | None = None
_notifier: NotifierProtocol | None = None
_consensus_service: ConsensusService | None = None


def get_consensus_config() -> ConsensusConfig:
    """Get configuration loaded from COOWNERSHIP_* environment variables."""
    global _config
    if _config is None:
        _config = ConsensusConfig.from_environment()
    return _config


def get_co_owner_registry() -> CoOwnerRegistryProtocol:
    global _co_owner_registry
    if _co_owner_registry is None:
        _co_owner_registry = CoOwnerRegistryStub()
    return _co_owner_registry


def get_ledger_repository() -> LedgerRepositoryProtocol:
    global _ledger_repository
    if _ledger_repository is None:
        _ledger_repository = LedgerRepositoryStub()
    return _ledger_repository


def get_ownership_repository() -> OwnershipRepositoryProtocol:
    global _ownership_repository
    if _ownership_repository is None:
        _ownership_repository = OwnershipRepositoryStub(
            tolerance=get_consensus_config().percentage_tolerance
        )
    return _ownership_repository


def get_proposal_repository() -> ProposalRepositoryProtocol:
    global _proposal_repository
    if _proposal_repository is None:
        _proposal_repository = ProposalRepositoryStub()
    return _proposal_repository


def get_vote_repository() -> VoteRepositoryProtocol:
    global _vote_repository
    if _vote_repository is None:
        _vote_repository = VoteRepositoryStub()
    return _vote_repository


def get_notifier() -> NotifierProtocol:
    global _notifier
    if _notifier is None:
        _notifier = NotifierStub()
    return _notifier


def get_consensus_service() -> ConsensusService:
    """Get the consensus service singleton.

    Wires the vote ledger, effect executor and state machine over the
    current adapters. A single instance is required: the per-proposal
    locks live on its state machine.

    Returns:
        ConsensusService instance.
    """
    global _consensus_service
    if _consensus_service is None:
        config = get_consensus_config()
        registry = get_co_owner_registry()
        proposal_repo = get_proposal_repository()
        vote_repo = get_vote_repository()
        ownership_repo = get_ownership_repository()

        effect_executor = EffectExecutorService(
            ledger_repo=get_ledger_repository(),
            ownership_repo=ownership_repo,
            co_owner_registry=registry,
            config=config,
        )
        _consensus_service = ConsensusService(
            proposal_repo=proposal_repo,
            vote_repo=vote_repo,
            ownership_repo=ownership_repo,
            co_owner_registry=registry,
            notifier=get_notifier(),
            vote_ledger=VoteLedgerService(
                vote_repo=vote_repo, co_owner_registry=registry
            ),
            state_machine=ProposalStateMachine(
                proposal_repo=proposal_repo,
                vote_repo=vote_repo,
                effect_executor=effect_executor,
            ),
            effect_executor=effect_executor,
            config=config,
        )
    return _consensus_service


# Testing helper functions


def reset_consensus_dependencies() -> None:
    """Reset all singleton instances for testing.

    Call this in test fixtures to ensure clean state between tests.
    """
    global _config
    global _co_owner_registry
    global _ledger_repository
    global _ownership_repository
    global _proposal_repository
    global _vote_repository
    global _notifier
    global _consensus_service

    _config = None
    _co_owner_registry = None
    _ledger_repository = None
    _ownership_repository = None
    _proposal_repository = None
    _vote_repository = None
    _notifier = None
    _consensus_service = None


def set_co_owner_registry(registry: CoOwnerRegistryProtocol) -> None:
    """Set a custom co-owner registry (e.g. the membership service adapter)."""
    global _co_owner_registry, _consensus_service
    _co_owner_registry = registry
    _consensus_service = None  # Force service recreation


def set_ledger_repository(repo: LedgerRepositoryProtocol) -> None:
    global _ledger_repository, _consensus_service
    _ledger_repository = repo
    _consensus_service = None


def set_ownership_repository(repo: OwnershipRepositoryProtocol) -> None:
    global _ownership_repository, _consensus_service
    _ownership_repository = repo
    _consensus_service = None


def set_notifier(notifier: NotifierProtocol) -> None:
    global _notifier, _consensus_service
    _notifier = notifier
    _consensus_service = None
