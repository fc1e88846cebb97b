"""Consensus service: the only entry point external callers use.

Composes the vote ledger, the proposal state machine and the effect
executor, and talks to the membership registry, the stores and the
notifier.

Callers must distinguish two kinds of failure:
- The call failed: validation, authorization, not-found and conflict
  errors are raised and nothing is persisted.
- The proposal failed to execute: the call succeeds and returns a
  proposal in an ExecutionFailed* status with a failure_reason.

Notifications are sent after the state change is committed. A delivery
failure is logged and never undoes the change.
"""

from __future__ import annotations

import asyncio
import weakref
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from structlog import get_logger

from coownership.config.consensus_config import (
    DEFAULT_CONSENSUS_CONFIG,
    ConsensusConfig,
)
from coownership.domain.errors import (
    InvalidAmountError,
    NoEligibleVotersError,
    NotActiveCoOwnerError,
    NotProposerOrAdministratorError,
    PendingReallocationExistsError,
    ProposalNotAwaitingExecutionError,
    ProposalNotFoundError,
)
from coownership.domain.events.proposal import (
    PROPOSAL_CANCELLED_EVENT_TYPE,
    PROPOSAL_CREATED_EVENT_TYPE,
    PROPOSAL_EXECUTION_FAILED_EVENT_TYPE,
    PROPOSAL_FINALIZED_EVENT_TYPE,
    VOTE_RECORDED_EVENT_TYPE,
    ProposalEvent,
)
from coownership.domain.models.ownership import OwnershipAuditEntry
from coownership.domain.models.payloads import (
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    ProposalPayload,
    VehicleUpgradePayload,
)
from coownership.domain.models.proposal import Proposal, ProposalKind, ProposalStatus
from coownership.domain.models.proposal_view import (
    ProposalView,
    VehicleProposalStatistics,
    VoterVisibility,
    VotingHistoryEntry,
)
from coownership.domain.models.vote import VoteDecision, VoteTally
from coownership.domain.services.payload_validator import validate_payload
from coownership.domain.services.quorum_policy import required_approvals

if TYPE_CHECKING:
    from coownership.application.ports.co_owner_registry import (
        CoOwnerRegistryProtocol,
    )
    from coownership.application.ports.notifier import NotifierProtocol
    from coownership.application.ports.ownership_repository import (
        OwnershipRepositoryProtocol,
    )
    from coownership.application.ports.proposal_repository import (
        ProposalRepositoryProtocol,
    )
    from coownership.application.ports.vote_repository import VoteRepositoryProtocol
    from coownership.application.services.effect_executor_service import (
        EffectExecutorService,
    )
    from coownership.application.services.proposal_state_machine import (
        ProposalStateMachine,
    )
    from coownership.application.services.vote_ledger_service import (
        VoteLedgerService,
    )

logger = get_logger(__name__)

_EXECUTION_FAILURES = frozenset(
    {
        ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
        ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
    }
)


class ConsensusService:
    """Facade over proposal creation, voting, cancellation and queries.

    Example:
        >>> service = ConsensusService(
        ...     proposal_repo=proposal_repo,
        ...     vote_repo=vote_repo,
        ...     ownership_repo=ownership_repo,
        ...     co_owner_registry=registry,
        ...     notifier=notifier,
        ...     vote_ledger=vote_ledger,
        ...     state_machine=state_machine,
        ...     effect_executor=effect_executor,
        ... )
        >>> proposal = await service.propose(
        ...     vehicle_id=vehicle_id,
        ...     proposer_id=owner_id,
        ...     kind=ProposalKind.FUND_EXPENDITURE,
        ...     payload=payload,
        ... )
    """

    def __init__(
        self,
        proposal_repo: ProposalRepositoryProtocol,
        vote_repo: VoteRepositoryProtocol,
        ownership_repo: OwnershipRepositoryProtocol,
        co_owner_registry: CoOwnerRegistryProtocol,
        notifier: NotifierProtocol,
        vote_ledger: VoteLedgerService,
        state_machine: ProposalStateMachine,
        effect_executor: EffectExecutorService,
        config: ConsensusConfig | None = None,
    ) -> None:
        self._proposal_repo = proposal_repo
        self._vote_repo = vote_repo
        self._ownership_repo = ownership_repo
        self._co_owner_registry = co_owner_registry
        self._notifier = notifier
        self._vote_ledger = vote_ledger
        self._state_machine = state_machine
        self._effect_executor = effect_executor
        self._config = config or DEFAULT_CONSENSUS_CONFIG
        # Serializes "check no pending reallocation + save" per vehicle
        self._reallocation_locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def propose(
        self,
        vehicle_id: UUID,
        proposer_id: UUID,
        kind: ProposalKind,
        payload: ProposalPayload,
    ) -> Proposal:
        """Create a proposal and cast the proposer's approval.

        Steps:
        1. Proposer must be an active co-owner
        2. Payload is validated against its kind's shape invariants
        3. Target ledger must exist (fund and upgrade kinds)
        4. At most one pending reallocation per vehicle
        5. required_approvals is computed from the current co-owner count
           and frozen on the proposal
        6. The proposal is persisted, the proposer's Approve vote is cast
           and one quorum pass runs (a sole owner is approved at once)
        7. The other co-owners are notified

        Raises:
            NotActiveCoOwnerError: Proposer is not an active co-owner.
            NoEligibleVotersError: Vehicle has no active co-owners.
            InvalidPayloadError: Payload violates its invariants.
            InvalidAmountError: Non-positive or unrepresentable amount or cost.
            LedgerNotFoundError: Target ledger doesn't exist.
            PendingReallocationExistsError: Another reallocation is pending.
        """
        log = logger.bind(
            vehicle_id=str(vehicle_id),
            proposer_id=str(proposer_id),
            kind=kind.value,
        )
        log.info("propose_started")

        if not await self._co_owner_registry.is_active_co_owner(vehicle_id, proposer_id):
            log.warning("propose_rejected_not_co_owner")
            raise NotActiveCoOwnerError(vehicle_id, proposer_id, action="propose")

        active_ids = await self._co_owner_registry.active_co_owner_ids(vehicle_id)
        if not active_ids:
            raise NoEligibleVotersError(vehicle_id)

        payload = self._normalize_money(payload)
        validate_payload(
            kind.value,
            payload,
            active_ids,
            tolerance=self._config.percentage_tolerance,
            max_investment=self._config.max_investment,
        )

        if isinstance(payload, (FundExpenditurePayload, VehicleUpgradePayload)):
            balance = await self._effect_executor.get_balance(payload.target_ledger_id)
            log.debug("target_ledger_balance", balance=str(balance))

        if (
            kind is ProposalKind.OWNERSHIP_REALLOCATION
            and self._config.single_pending_reallocation
        ):
            async with self._reallocation_lock(vehicle_id):
                await self._ensure_no_pending_reallocation(vehicle_id)
                proposal = await self._create(
                    vehicle_id, proposer_id, kind, payload, len(active_ids)
                )
        else:
            proposal = await self._create(
                vehicle_id, proposer_id, kind, payload, len(active_ids)
            )

        log = log.bind(proposal_id=str(proposal.id))
        log.info(
            "proposal_created",
            required_approvals=proposal.required_approvals,
            total_eligible=proposal.total_eligible,
        )

        async with self._state_machine.lock_for(proposal.id):
            vote = await self._vote_ledger.cast_vote(
                proposal, proposer_id, VoteDecision.APPROVE, automatic=True
            )
            proposal = await self._state_machine.advance(proposal, vote)

        others = [uid for uid in active_ids if uid != proposer_id]
        await self._notify(
            others,
            self._event(PROPOSAL_CREATED_EVENT_TYPE, proposal, proposer_id),
        )
        if proposal.status is not ProposalStatus.PENDING:
            await self._notify_finalized(proposal, proposer_id, active_ids)

        return proposal

    async def vote(
        self,
        proposal_id: UUID,
        voter_id: UUID,
        decision: VoteDecision,
        comment: str | None = None,
    ) -> ProposalView:
        """Cast a vote and advance the proposal.

        Returns:
            The proposal with its current tallies. An execution failure
            is reported through the proposal status, not raised.

        Raises:
            ProposalNotFoundError: Proposal doesn't exist.
            NotEligibleVoterError: Voter is not an active co-owner.
            AlreadyVotedError: Voter already voted on this proposal.
            ProposalNotPendingError: Proposal has left Pending.
        """
        log = logger.bind(
            proposal_id=str(proposal_id),
            voter_id=str(voter_id),
            decision=decision.value,
        )

        async with self._state_machine.lock_for(proposal_id):
            proposal = await self._load(proposal_id)
            vote = await self._vote_ledger.cast_vote(
                proposal, voter_id, decision, comment=comment
            )
            updated = await self._state_machine.advance(proposal, vote)

        log.info("vote_processed", status=updated.status.value)

        await self._notify(
            [updated.proposer_id] if updated.proposer_id != voter_id else [],
            self._event(
                VOTE_RECORDED_EVENT_TYPE,
                updated,
                voter_id,
                decision=decision.value,
                comment=comment,
            ),
        )
        if updated.status is not proposal.status:
            active_ids = await self._co_owner_registry.active_co_owner_ids(
                updated.vehicle_id
            )
            await self._notify_finalized(updated, voter_id, active_ids)

        return await self._build_view(updated)

    async def cancel(self, proposal_id: UUID, requester_id: UUID) -> Proposal:
        """Cancel a Pending proposal (proposer or administrator only).

        Raises:
            ProposalNotFoundError: Proposal doesn't exist.
            NotProposerOrAdministratorError: Requester lacks the right.
            ProposalNotPendingError: Proposal already left Pending.
        """
        is_admin = await self._co_owner_registry.is_administrator(requester_id)
        async with self._state_machine.lock_for(proposal_id):
            proposal = await self._load(proposal_id)
            cancelled = await self._state_machine.cancel(
                proposal, requester_id, is_administrator=is_admin
            )

        active_ids = await self._co_owner_registry.active_co_owner_ids(
            cancelled.vehicle_id
        )
        await self._notify(
            [uid for uid in active_ids if uid != requester_id],
            self._event(PROPOSAL_CANCELLED_EVENT_TYPE, cancelled, requester_id),
        )
        return cancelled

    async def confirm_execution(
        self,
        proposal_id: UUID,
        requester_id: UUID,
        actual_cost: Decimal,
        execution_notes: str | None = None,
    ) -> Proposal:
        """Confirm an approved upgrade was performed and pay its actual cost.

        The actual cost may differ from the estimate. If the ledger
        cannot cover it, the proposal moves to
        ExecutionFailedInsufficientResource and is_executed stays False.

        Raises:
            ProposalNotFoundError: Proposal doesn't exist.
            NotProposerOrAdministratorError: Requester lacks the right.
            ProposalNotAwaitingExecutionError: Not an upgrade awaiting execution.
            InvalidAmountError: actual_cost is not positive or not representable.
        """
        log = logger.bind(
            proposal_id=str(proposal_id),
            requester_id=str(requester_id),
            actual_cost=str(actual_cost),
        )

        cost = self._effect_executor.quantize(actual_cost, field="actual_cost")
        if cost <= 0:
            raise InvalidAmountError(actual_cost, field="actual_cost")
        is_admin = await self._co_owner_registry.is_administrator(requester_id)

        async with self._state_machine.lock_for(proposal_id):
            proposal = await self._load(proposal_id)
            if requester_id != proposal.proposer_id and not is_admin:
                log.warning("confirm_rejected_not_authorized")
                raise NotProposerOrAdministratorError(
                    proposal_id, requester_id, action="confirm execution of"
                )
            if proposal.status is not ProposalStatus.APPROVED_AWAITING_EXECUTION:
                log.warning("confirm_rejected_wrong_status", status=proposal.status.value)
                raise ProposalNotAwaitingExecutionError(proposal_id, proposal.status)

            result = await self._effect_executor.confirm_upgrade_execution(proposal, cost)
            final = await self._proposal_repo.update_status(
                proposal.with_execution_details(
                    actual_cost=cost,
                    executed_by=requester_id,
                    execution_notes=execution_notes,
                ).with_status(result.status, failure_reason=result.failure_reason),
                expected_status=ProposalStatus.APPROVED_AWAITING_EXECUTION,
            )

        log.info("upgrade_execution_confirmed", status=final.status.value)
        active_ids = await self._co_owner_registry.active_co_owner_ids(final.vehicle_id)
        await self._notify_finalized(final, requester_id, active_ids)
        return final

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_status(self, proposal_id: UUID, requester_id: UUID) -> ProposalView:
        """Read a proposal with tallies and per-voter visibility.

        Visible to current co-owners, administrators and anyone who took
        part (proposer or voter), even after they left the vehicle.

        Raises:
            ProposalNotFoundError: Proposal doesn't exist.
            NotActiveCoOwnerError: Requester may not see the proposal.
        """
        proposal = await self._load(proposal_id)
        if not await self._may_view(proposal, requester_id):
            raise NotActiveCoOwnerError(
                proposal.vehicle_id, requester_id, action="view this proposal"
            )
        return await self._build_view(proposal)

    async def list_vehicle_proposals(
        self,
        vehicle_id: UUID,
        requester_id: UUID,
        include_finalized: bool = False,
    ) -> list[ProposalView]:
        """List a vehicle's proposals, newest first.

        Args:
            vehicle_id: The vehicle.
            requester_id: Must be an active co-owner or administrator.
            include_finalized: Include proposals that left Pending.

        Raises:
            NotActiveCoOwnerError: Requester may not see the vehicle.
        """
        await self._authorize_vehicle_read(vehicle_id, requester_id, "list proposals")
        statuses = None if include_finalized else [ProposalStatus.PENDING]
        proposals = await self._proposal_repo.list_by_vehicle(vehicle_id, statuses=statuses)
        return [await self._build_view(p) for p in proposals]

    async def get_voting_history(self, user_id: UUID) -> list[VotingHistoryEntry]:
        """Every vote the user cast, newest first, with current proposal status."""
        votes = await self._vote_repo.list_for_voter(user_id)
        proposal_ids = list(dict.fromkeys(v.proposal_id for v in votes))
        proposals = {p.id: p for p in await self._proposal_repo.list_by_ids(proposal_ids)}

        history: list[VotingHistoryEntry] = []
        for vote in votes:
            proposal = proposals.get(vote.proposal_id)
            if proposal is None:
                logger.warning(
                    "vote_without_proposal",
                    vote_id=str(vote.vote_id),
                    proposal_id=str(vote.proposal_id),
                )
                continue
            history.append(
                VotingHistoryEntry(
                    vote=vote,
                    proposal_kind=proposal.kind,
                    proposal_status=proposal.status,
                    vehicle_id=proposal.vehicle_id,
                )
            )
        return history

    async def get_vehicle_statistics(
        self, vehicle_id: UUID, requester_id: UUID
    ) -> VehicleProposalStatistics:
        """Counts per status and kind, plus total spend of executed proposals.

        Raises:
            NotActiveCoOwnerError: Requester may not see the vehicle.
        """
        await self._authorize_vehicle_read(vehicle_id, requester_id, "view statistics")
        proposals = await self._proposal_repo.list_by_vehicle(vehicle_id)

        spend = Decimal("0")
        for proposal in proposals:
            if not proposal.is_executed:
                continue
            if isinstance(proposal.payload, FundExpenditurePayload):
                spend += proposal.payload.amount
            elif proposal.actual_cost is not None:
                spend += proposal.actual_cost

        return VehicleProposalStatistics(
            vehicle_id=vehicle_id,
            total_proposals=len(proposals),
            by_status=dict(Counter(p.status for p in proposals)),
            by_kind=dict(Counter(p.kind for p in proposals)),
            total_executed_spend=self._effect_executor.quantize(spend),
        )

    async def get_ownership_history(
        self, vehicle_id: UUID, requester_id: UUID
    ) -> list[OwnershipAuditEntry]:
        """The vehicle's append-only ownership audit trail, oldest first.

        Raises:
            NotActiveCoOwnerError: Requester may not see the vehicle.
        """
        await self._authorize_vehicle_read(
            vehicle_id, requester_id, "view ownership history"
        )
        return await self._ownership_repo.list_history(vehicle_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _create(
        self,
        vehicle_id: UUID,
        proposer_id: UUID,
        kind: ProposalKind,
        payload: ProposalPayload,
        total_eligible: int,
    ) -> Proposal:
        proposal = Proposal(
            id=uuid4(),
            vehicle_id=vehicle_id,
            kind=kind,
            proposer_id=proposer_id,
            payload=payload,
            required_approvals=required_approvals(total_eligible, kind.policy),
            total_eligible=total_eligible,
        )
        await self._proposal_repo.save(proposal)
        return proposal

    def _reallocation_lock(self, vehicle_id: UUID) -> asyncio.Lock:
        lock = self._reallocation_locks.get(vehicle_id)
        if lock is None:
            lock = asyncio.Lock()
            self._reallocation_locks[vehicle_id] = lock
        return lock

    async def _ensure_no_pending_reallocation(self, vehicle_id: UUID) -> None:
        pending = await self._proposal_repo.list_by_vehicle(
            vehicle_id,
            statuses=[ProposalStatus.PENDING],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
        )
        if pending:
            logger.warning(
                "propose_rejected_pending_reallocation",
                vehicle_id=str(vehicle_id),
                existing_proposal_id=str(pending[0].id),
            )
            raise PendingReallocationExistsError(vehicle_id, pending[0].id)

    def _normalize_money(self, payload: ProposalPayload) -> ProposalPayload:
        """Quantize monetary payload fields to the configured precision."""
        quantize = self._effect_executor.quantize
        if isinstance(payload, FundExpenditurePayload):
            return replace(payload, amount=quantize(payload.amount, "amount"))
        if isinstance(payload, VehicleUpgradePayload):
            return replace(
                payload, estimated_cost=quantize(payload.estimated_cost, "estimated_cost")
            )
        if isinstance(payload, OwnershipReallocationPayload):
            return replace(
                payload,
                shares=tuple(
                    replace(
                        share,
                        current_investment=quantize(
                            share.current_investment, "current_investment"
                        ),
                        proposed_investment=quantize(
                            share.proposed_investment, "proposed_investment"
                        ),
                    )
                    for share in payload.shares
                ),
            )
        return payload

    async def _load(self, proposal_id: UUID) -> Proposal:
        proposal = await self._proposal_repo.get(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(proposal_id)
        return proposal

    async def _may_view(self, proposal: Proposal, requester_id: UUID) -> bool:
        if requester_id == proposal.proposer_id:
            return True
        if await self._co_owner_registry.is_active_co_owner(
            proposal.vehicle_id, requester_id
        ):
            return True
        if await self._co_owner_registry.is_administrator(requester_id):
            return True
        return await self._vote_repo.get_existing(proposal.id, requester_id) is not None

    async def _authorize_vehicle_read(
        self, vehicle_id: UUID, requester_id: UUID, action: str
    ) -> None:
        if await self._co_owner_registry.is_active_co_owner(vehicle_id, requester_id):
            return
        if await self._co_owner_registry.is_administrator(requester_id):
            return
        raise NotActiveCoOwnerError(vehicle_id, requester_id, action=action)

    async def _build_view(self, proposal: Proposal) -> ProposalView:
        votes = await self._vote_repo.list_for_proposal(proposal.id)
        active_ids = await self._co_owner_registry.active_co_owner_ids(proposal.vehicle_id)

        voters = [VoterVisibility.from_vote(v) for v in votes]
        voted = {v.voter_id for v in votes}
        voters.extend(
            VoterVisibility(voter_id=uid, has_voted=False)
            for uid in sorted(active_ids - voted, key=str)
        )
        return ProposalView(
            proposal=proposal,
            tally=VoteTally.from_votes(votes),
            voters=tuple(voters),
        )

    def _event(
        self,
        event_type: str,
        proposal: Proposal,
        actor_id: UUID,
        **details: object,
    ) -> ProposalEvent:
        return ProposalEvent(
            event_type=event_type,
            proposal_id=proposal.id,
            vehicle_id=proposal.vehicle_id,
            kind=proposal.kind.value,
            status=proposal.status.value,
            actor_id=actor_id,
            occurred_at=datetime.now(timezone.utc),
            details=dict(details),
        )

    async def _notify_finalized(
        self,
        proposal: Proposal,
        actor_id: UUID,
        recipients: frozenset[UUID],
    ) -> None:
        if proposal.status in _EXECUTION_FAILURES:
            event = self._event(
                PROPOSAL_EXECUTION_FAILED_EVENT_TYPE,
                proposal,
                actor_id,
                failure_reason=proposal.failure_reason,
            )
        else:
            event = self._event(PROPOSAL_FINALIZED_EVENT_TYPE, proposal, actor_id)
        await self._notify(list(recipients | {proposal.proposer_id}), event)

    async def _notify(self, recipients: list[UUID], event: ProposalEvent) -> None:
        """Deliver an event; failures are logged, never raised."""
        payload = event.to_dict()
        for user_id in recipients:
            try:
                await self._notifier.notify(user_id, event.event_type, payload)
            except Exception as e:
                logger.warning(
                    "notification_failed",
                    event_type=event.event_type,
                    proposal_id=str(event.proposal_id),
                    user_id=str(user_id),
                    error=str(e),
                )
