"""Application services for the consensus core.

- VoteLedgerService: at-most-one vote per (proposal, voter)
- EffectExecutorService: the only writer of ledgers and partitions
- ProposalStateMachine: quorum evaluation and status transitions
- ConsensusService: facade used by external callers
"""

from coownership.application.services.consensus_service import ConsensusService
from coownership.application.services.effect_executor_service import (
    EffectExecutorService,
    EffectResult,
)
from coownership.application.services.proposal_state_machine import (
    ProposalStateMachine,
)
from coownership.application.services.vote_ledger_service import VoteLedgerService

__all__: list[str] = [
    "ConsensusService",
    "EffectExecutorService",
    "EffectResult",
    "ProposalStateMachine",
    "VoteLedgerService",
]
