"""Proposal state machine: quorum evaluation, effect triggering, cancel.

Exactly-once execution rests on two guards:

1. A per-proposal asyncio.Lock that callers hold around
   "insert vote + advance". Two votes that each complete the quorum are
   serialized; the second sees the proposal already out of Pending.
2. Claim-first compare-and-swap. Pending -> Approved is written before
   the effect runs, and Approved -> outcome after it. A writer that
   loses the first swap never applies the effect.

For immediate-effect kinds a proposal is observable as Approved only
for the duration of the effect call. An effect that raises moves the
proposal to ExecutionFailedInsufficientResource before the error
propagates.

Locks are held in a WeakValueDictionary: a lock lives while some caller
holds or awaits it and is dropped afterwards.
"""

from __future__ import annotations

import asyncio
import weakref
from typing import TYPE_CHECKING
from uuid import UUID

from structlog import get_logger

from coownership.domain.errors import (
    ConcurrentModificationError,
    NotProposerOrAdministratorError,
    ProposalNotFoundError,
    ProposalNotPendingError,
)
from coownership.domain.models.proposal import Proposal, ProposalStatus
from coownership.domain.models.vote import Vote, VoteTally
from coownership.domain.services.quorum_policy import QuorumOutcome, evaluate

if TYPE_CHECKING:
    from coownership.application.ports.proposal_repository import (
        ProposalRepositoryProtocol,
    )
    from coownership.application.ports.vote_repository import VoteRepositoryProtocol
    from coownership.application.services.effect_executor_service import (
        EffectExecutorService,
    )

logger = get_logger(__name__)


class ProposalStateMachine:
    """Owns proposal lifecycle transitions after creation."""

    def __init__(
        self,
        proposal_repo: ProposalRepositoryProtocol,
        vote_repo: VoteRepositoryProtocol,
        effect_executor: EffectExecutorService,
    ) -> None:
        self._proposal_repo = proposal_repo
        self._vote_repo = vote_repo
        self._effect_executor = effect_executor
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, proposal_id: UUID) -> asyncio.Lock:
        """Get the mutual-exclusion boundary of one proposal.

        The lock is not re-entrant; advance() and cancel() expect the
        caller to hold it already.
        """
        lock = self._locks.get(proposal_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[proposal_id] = lock
        return lock

    async def tally(self, proposal_id: UUID) -> VoteTally:
        """Recompute the tally from recorded votes."""
        return VoteTally.from_votes(await self._vote_repo.list_for_proposal(proposal_id))

    async def advance(self, proposal: Proposal, new_vote: Vote | None = None) -> Proposal:
        """Re-evaluate quorum and apply the effect if it was reached.

        Tallies are recomputed from the vote store on every call, never
        taken from a cached counter. The caller must hold
        ``lock_for(proposal.id)``.

        Args:
            proposal: The proposal as loaded under the lock.
            new_vote: The vote that triggered this pass, for logging.

        Returns:
            The proposal after any transition.
        """
        log = logger.bind(
            proposal_id=str(proposal.id),
            kind=proposal.kind.value,
            trigger_vote_id=str(new_vote.vote_id) if new_vote else None,
        )

        if proposal.status is not ProposalStatus.PENDING:
            log.debug("advance_skipped_not_pending", status=proposal.status.value)
            return proposal

        tally = await self.tally(proposal.id)
        outcome = evaluate(
            proposal.total_eligible,
            tally.approvals,
            tally.rejections,
            proposal.kind.policy,
        )
        log.info(
            "quorum_evaluated",
            approvals=tally.approvals,
            rejections=tally.rejections,
            required_approvals=proposal.required_approvals,
            outcome=outcome.value,
        )

        if outcome is QuorumOutcome.PENDING:
            return proposal

        if outcome is QuorumOutcome.REJECTED:
            rejected, _ = await self._swap(
                proposal.with_status(ProposalStatus.REJECTED),
                expected_status=ProposalStatus.PENDING,
            )
            return rejected

        if proposal.kind.defers_execution:
            result = await self._effect_executor.apply(proposal)
            awaiting, _ = await self._swap(
                proposal.with_status(result.status),
                expected_status=ProposalStatus.PENDING,
            )
            return awaiting

        claimed, won = await self._swap(
            proposal.with_status(ProposalStatus.APPROVED),
            expected_status=ProposalStatus.PENDING,
        )
        if not won:
            # Another writer claimed the proposal; it owns the effect
            return claimed

        try:
            result = await self._effect_executor.apply(claimed)
        except Exception as e:
            # Never leave a claimed proposal in Approved
            log.exception("effect_raised")
            reason = f"Effect could not be applied: {type(e).__name__}: {e}"
            await self._swap(
                claimed.with_status(
                    ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
                    failure_reason=reason,
                ),
                expected_status=ProposalStatus.APPROVED,
            )
            raise
        final, _ = await self._swap(
            claimed.with_status(result.status, failure_reason=result.failure_reason),
            expected_status=ProposalStatus.APPROVED,
        )
        log.info(
            "proposal_executed" if result.succeeded else "proposal_execution_failed",
            status=final.status.value,
            failure_reason=final.failure_reason,
        )
        return final

    async def cancel(
        self,
        proposal: Proposal,
        requester_id: UUID,
        *,
        is_administrator: bool,
    ) -> Proposal:
        """Cancel a Pending proposal.

        Allowed for the proposer or an administrator, regardless of how
        many votes were already cast. The caller must hold
        ``lock_for(proposal.id)``.

        Raises:
            NotProposerOrAdministratorError: Requester lacks the right.
            ProposalNotPendingError: Proposal already left Pending.
        """
        log = logger.bind(proposal_id=str(proposal.id), requester_id=str(requester_id))

        if requester_id != proposal.proposer_id and not is_administrator:
            log.warning("cancel_rejected_not_authorized")
            raise NotProposerOrAdministratorError(
                proposal.id, requester_id, action="cancel"
            )
        if proposal.status is not ProposalStatus.PENDING:
            log.warning("cancel_rejected_not_pending", status=proposal.status.value)
            raise ProposalNotPendingError(proposal.id, proposal.status, action="cancel")

        cancelled = await self._proposal_repo.update_status(
            proposal.with_cancellation(requester_id),
            expected_status=ProposalStatus.PENDING,
        )
        log.info("proposal_cancelled", by_administrator=requester_id != proposal.proposer_id)
        return cancelled

    async def _swap(
        self, proposal: Proposal, expected_status: ProposalStatus
    ) -> tuple[Proposal, bool]:
        """Compare-and-swap a status.

        Returns:
            (stored proposal, True) on success, or (the version another
            writer stored, False) on a lost race.
        """
        try:
            stored = await self._proposal_repo.update_status(
                proposal, expected_status=expected_status
            )
            return stored, True
        except ConcurrentModificationError:
            stored = await self._proposal_repo.get(proposal.id)
            if stored is None:
                raise ProposalNotFoundError(proposal.id) from None
            logger.warning(
                "status_swap_lost",
                proposal_id=str(proposal.id),
                expected_status=expected_status.value,
                wanted_status=proposal.status.value,
                stored_status=stored.status.value,
            )
            return stored, False
