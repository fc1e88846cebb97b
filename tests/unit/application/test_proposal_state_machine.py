"""Unit tests for ProposalStateMachine."""

import gc
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from coownership.application.services.effect_executor_service import EffectResult
from coownership.application.services.proposal_state_machine import (
    ProposalStateMachine,
)
from coownership.application.services.vote_ledger_service import VoteLedgerService
from coownership.domain.errors import (
    NotProposerOrAdministratorError,
    ProposalNotPendingError,
)
from coownership.domain.models.proposal import Proposal, ProposalKind, ProposalStatus
from coownership.domain.models.vote import VoteDecision
from coownership.infrastructure.stubs import (
    CoOwnerRegistryStub,
    ProposalRepositoryStub,
    VoteRepositoryStub,
)
from tests.helpers import fund_payload, upgrade_payload


@pytest.fixture
def proposal_repo() -> ProposalRepositoryStub:
    return ProposalRepositoryStub()


@pytest.fixture
def vote_repo() -> VoteRepositoryStub:
    return VoteRepositoryStub()


@pytest.fixture
def effect_executor() -> AsyncMock:
    executor = AsyncMock()
    executor.apply = AsyncMock(
        return_value=EffectResult(status=ProposalStatus.EXECUTED)
    )
    return executor


@pytest.fixture
def machine(
    proposal_repo: ProposalRepositoryStub,
    vote_repo: VoteRepositoryStub,
    effect_executor: AsyncMock,
) -> ProposalStateMachine:
    return ProposalStateMachine(
        proposal_repo=proposal_repo,
        vote_repo=vote_repo,
        effect_executor=effect_executor,
    )


class _Fixture:
    """A stored 3-owner proposal plus a vote ledger to cast on it."""

    def __init__(self, proposal: Proposal, owners: list, ledger: VoteLedgerService):
        self.proposal = proposal
        self.owners = owners
        self.ledger = ledger

    async def vote(self, index: int, decision: VoteDecision = VoteDecision.APPROVE):
        return await self.ledger.cast_vote(self.proposal, self.owners[index], decision)


async def _stored(
    proposal_repo: ProposalRepositoryStub,
    vote_repo: VoteRepositoryStub,
    kind: ProposalKind = ProposalKind.FUND_EXPENDITURE,
) -> _Fixture:
    vehicle_id = uuid4()
    owners = [uuid4(), uuid4(), uuid4()]
    registry = CoOwnerRegistryStub()
    registry.add_co_owners(vehicle_id, owners)
    if kind is ProposalKind.VEHICLE_UPGRADE:
        payload = upgrade_payload(uuid4())
    else:
        payload = fund_payload(uuid4())
    proposal = Proposal(
        id=uuid4(),
        vehicle_id=vehicle_id,
        kind=kind,
        proposer_id=owners[0],
        payload=payload,
        required_approvals=2,
        total_eligible=3,
    )
    await proposal_repo.save(proposal)
    ledger = VoteLedgerService(vote_repo=vote_repo, co_owner_registry=registry)
    return _Fixture(proposal, owners, ledger)


class TestAdvance:
    @pytest.mark.asyncio
    async def test_below_threshold_stays_pending(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        vote = await fx.vote(0)

        result = await machine.advance(fx.proposal, vote)

        assert result.status is ProposalStatus.PENDING
        effect_executor.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quorum_claims_then_executes(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        vote = await fx.vote(1)

        result = await machine.advance(fx.proposal, vote)

        assert result.status is ProposalStatus.EXECUTED
        effect_executor.apply.assert_awaited_once()
        assert proposal_repo.status_writes_for(fx.proposal.id) == [
            ProposalStatus.PENDING,
            ProposalStatus.APPROVED,
            ProposalStatus.EXECUTED,
        ]

    @pytest.mark.asyncio
    async def test_rejection_vetoes_without_effect(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        vote = await fx.vote(1, VoteDecision.REJECT)

        result = await machine.advance(fx.proposal, vote)

        assert result.status is ProposalStatus.REJECTED
        assert result.finalized_at is not None
        effect_executor.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_execution_failure_recorded(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        effect_executor.apply.return_value = EffectResult(
            status=ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
            failure_reason="short",
        )
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        await fx.vote(1)

        result = await machine.advance(fx.proposal)

        assert result.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        assert result.failure_reason == "short"
        assert not result.is_executed

    @pytest.mark.asyncio
    async def test_upgrade_moves_to_awaiting_execution(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        effect_executor.apply.return_value = EffectResult(
            status=ProposalStatus.APPROVED_AWAITING_EXECUTION
        )
        fx = await _stored(proposal_repo, vote_repo, kind=ProposalKind.VEHICLE_UPGRADE)
        await fx.vote(0)
        await fx.vote(1)

        result = await machine.advance(fx.proposal)

        assert result.status is ProposalStatus.APPROVED_AWAITING_EXECUTION
        assert ProposalStatus.APPROVED not in proposal_repo.status_writes_for(
            fx.proposal.id
        )

    @pytest.mark.asyncio
    async def test_stale_copy_never_reapplies_effect(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        """A second advance with a stale Pending copy loses the claim."""
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        await fx.vote(1)

        first = await machine.advance(fx.proposal)
        second = await machine.advance(fx.proposal)

        assert first.status is ProposalStatus.EXECUTED
        assert second.status is ProposalStatus.EXECUTED
        effect_executor.apply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_pending_is_skipped(
        self,
        machine: ProposalStateMachine,
        effect_executor: AsyncMock,
    ) -> None:
        proposal = Proposal(
            id=uuid4(),
            vehicle_id=uuid4(),
            kind=ProposalKind.FUND_EXPENDITURE,
            proposer_id=uuid4(),
            payload=fund_payload(uuid4()),
            required_approvals=1,
            total_eligible=1,
        ).with_status(ProposalStatus.CANCELLED)

        assert await machine.advance(proposal) is proposal
        effect_executor.apply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_raising_effect_records_failure_and_propagates(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
        effect_executor: AsyncMock,
    ) -> None:
        """An effect error never strands the proposal in Approved."""
        effect_executor.apply.side_effect = RuntimeError("db down")
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        await fx.vote(1)

        with pytest.raises(RuntimeError, match="db down"):
            await machine.advance(fx.proposal)

        stored = await proposal_repo.get(fx.proposal.id)
        assert stored is not None
        assert stored.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        assert "db down" in stored.failure_reason
        assert not stored.is_executed

        again = await machine.advance(fx.proposal)
        assert again.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        effect_executor.apply.assert_awaited_once()


class TestLocks:
    def test_same_lock_while_referenced(self, machine: ProposalStateMachine) -> None:
        proposal_id = uuid4()
        lock = machine.lock_for(proposal_id)

        assert machine.lock_for(proposal_id) is lock

    def test_unreferenced_lock_is_dropped(self, machine: ProposalStateMachine) -> None:
        proposal_id = uuid4()
        lock = machine.lock_for(proposal_id)
        assert proposal_id in machine._locks

        del lock
        gc.collect()

        assert proposal_id not in machine._locks

    @pytest.mark.asyncio
    async def test_lock_survives_while_held(self, machine: ProposalStateMachine) -> None:
        proposal_id = uuid4()
        async with machine.lock_for(proposal_id):
            gc.collect()
            assert machine.lock_for(proposal_id).locked()


class TestCancel:
    @pytest.mark.asyncio
    async def test_proposer_cancels(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        cancelled = await machine.cancel(
            fx.proposal, fx.proposal.proposer_id, is_administrator=False
        )
        assert cancelled.status is ProposalStatus.CANCELLED
        assert cancelled.cancelled_by == fx.proposal.proposer_id

    @pytest.mark.asyncio
    async def test_administrator_cancels(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        admin_id = uuid4()
        cancelled = await machine.cancel(fx.proposal, admin_id, is_administrator=True)
        assert cancelled.cancelled_by == admin_id

    @pytest.mark.asyncio
    async def test_other_co_owner_cannot_cancel(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        with pytest.raises(NotProposerOrAdministratorError):
            await machine.cancel(fx.proposal, fx.owners[1], is_administrator=False)

    @pytest.mark.asyncio
    async def test_finalized_cannot_be_cancelled(
        self,
        machine: ProposalStateMachine,
        proposal_repo: ProposalRepositoryStub,
        vote_repo: VoteRepositoryStub,
    ) -> None:
        fx = await _stored(proposal_repo, vote_repo)
        await fx.vote(0)
        await fx.vote(1)
        executed = await machine.advance(fx.proposal)

        with pytest.raises(ProposalNotPendingError):
            await machine.cancel(executed, executed.proposer_id, is_administrator=False)
