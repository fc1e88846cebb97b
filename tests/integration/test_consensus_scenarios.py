"""End-to-end consensus flows over the in-memory stores.

Each test drives ConsensusService the way an API caller would and then
checks the stores directly: ledger balances and journal entries, the
ownership partition and its audit trail, and the recorded votes.
"""

from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from coownership.domain.errors import (
    AlreadyVotedError,
    NotEligibleVoterError,
    PendingReallocationExistsError,
    ProposalNotPendingError,
)
from coownership.domain.models.ownership import OwnershipPartition, OwnershipShare
from coownership.domain.models.proposal import ProposalKind, ProposalStatus
from coownership.domain.models.vote import VoteDecision
from tests.helpers import (
    ConsensusHarness,
    fund_payload,
    reallocation_payload,
    upgrade_payload,
)

APPROVE = VoteDecision.APPROVE
REJECT = VoteDecision.REJECT


def _seed_even_partition(harness: ConsensusHarness, vehicle_id, owners) -> None:
    share = Decimal(100) / len(owners)
    harness.ownership_repo.seed_partition(
        OwnershipPartition(
            vehicle_id=vehicle_id,
            shares=tuple(
                OwnershipShare(
                    co_owner_id=o,
                    percentage=share,
                    investment=Decimal("1000.00"),
                )
                for o in owners
            ),
        )
    )


class TestFundExpenditure:
    @pytest.mark.asyncio
    async def test_majority_executes_and_debits_exact_amount(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(4)
        ledger_id = harness.fund("800000.00")

        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(ledger_id, amount="500000.00"),
        )
        assert proposal.status is ProposalStatus.PENDING
        assert proposal.required_approvals == 2

        view = await harness.service.vote(proposal.id, owners[1], APPROVE)

        assert view.proposal.status is ProposalStatus.EXECUTED
        assert view.proposal.is_executed
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("300000.00")

        # A late approval finds the proposal already finalized
        with pytest.raises(ProposalNotPendingError):
            await harness.service.vote(proposal.id, owners[2], APPROVE)
        assert len(harness.ledger_repo.get_entries_for_reference(proposal.id)) == 1

    @pytest.mark.asyncio
    async def test_balance_drop_before_quorum_fails_execution(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(4)
        ledger_id = harness.fund("800000.00")
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(ledger_id, amount="500000.00"),
        )

        harness.ledger_repo.set_balance(ledger_id, Decimal("300000.00"))
        view = await harness.service.vote(proposal.id, owners[1], APPROVE)

        assert view.proposal.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        assert not view.proposal.is_executed
        assert view.proposal.failure_reason
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("300000.00")
        assert harness.ledger_repo.get_entries_for_reference(proposal.id) == []

    @pytest.mark.asyncio
    async def test_ledger_outage_during_effect_leaves_terminal_failure(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        ledger_id = harness.fund("500.00")
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(ledger_id, amount="120.00"),
        )
        harness.ledger_repo.deduct = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError, match="db down"):
            await harness.service.vote(proposal.id, owners[1], APPROVE)

        stored = harness.proposal_repo.get_stored(proposal.id)
        assert stored.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        assert "db down" in stored.failure_reason
        assert not stored.is_executed
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("500.00")

        # The proposal is finalized, so later votes are refused
        with pytest.raises(ProposalNotPendingError):
            await harness.service.vote(proposal.id, owners[2], APPROVE)

    @pytest.mark.asyncio
    async def test_sole_owner_executes_without_further_votes(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, (owner,) = harness.vehicle_with_owners(1)
        ledger_id = harness.fund("50.00")

        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owner,
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(ledger_id, amount="49.99"),
        )

        assert proposal.status is ProposalStatus.EXECUTED
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("0.01")

    @pytest.mark.asyncio
    async def test_second_vote_by_same_voter_is_rejected(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(5)
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(harness.fund("500.00")),
        )
        await harness.service.vote(proposal.id, owners[1], APPROVE)

        with pytest.raises(AlreadyVotedError):
            await harness.service.vote(proposal.id, owners[1], REJECT)

        view = await harness.service.get_status(proposal.id, owners[1])
        assert view.tally.approvals == 2
        assert view.tally.rejections == 0
        assert view.proposal.status is ProposalStatus.PENDING


class TestOwnershipReallocation:
    @pytest.mark.asyncio
    async def test_single_reject_vetoes_and_partition_is_unchanged(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        _seed_even_partition(harness, vehicle_id, owners)
        before = harness.ownership_repo.get_stored_partition(vehicle_id)

        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
            payload=reallocation_payload(
                {owners[0]: "50", owners[1]: "25", owners[2]: "25"}
            ),
        )
        assert proposal.required_approvals == 3
        await harness.service.vote(proposal.id, owners[1], APPROVE)
        view = await harness.service.vote(proposal.id, owners[2], REJECT)

        assert view.proposal.status is ProposalStatus.REJECTED
        assert harness.ownership_repo.get_stored_partition(vehicle_id) == before
        assert await harness.ownership_repo.list_history(vehicle_id) == []

    @pytest.mark.asyncio
    async def test_unanimous_approval_replaces_partition_with_audit(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(2)
        _seed_even_partition(harness, vehicle_id, owners)

        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
            payload=reallocation_payload(
                {owners[0]: "60", owners[1]: "40"},
                current={owners[0]: "50", owners[1]: "50"},
            ),
        )
        view = await harness.service.vote(proposal.id, owners[1], APPROVE)

        assert view.proposal.status is ProposalStatus.EXECUTED
        partition = await harness.ownership_repo.load_partition(vehicle_id)
        assert partition.total_percentage == Decimal("100")
        assert partition.share_for(owners[0]).percentage == Decimal("60")

        history = await harness.service.get_ownership_history(vehicle_id, owners[1])
        assert {e.co_owner_id for e in history} == set(owners)
        assert all(e.proposal_id == proposal.id for e in history)
        assert all(e.actor_id == owners[0] for e in history)
        deltas = {e.co_owner_id: e.percentage_delta for e in history}
        assert deltas == {owners[0]: Decimal("10"), owners[1]: Decimal("-10")}

    @pytest.mark.asyncio
    async def test_membership_drift_fails_execution(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(2)
        _seed_even_partition(harness, vehicle_id, owners)
        before = harness.ownership_repo.get_stored_partition(vehicle_id)
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
            payload=reallocation_payload({owners[0]: "70", owners[1]: "30"}),
        )

        # A third co-owner joins before the last vote; the split no longer covers everyone
        harness.registry.add_co_owner(vehicle_id, uuid4())
        view = await harness.service.vote(proposal.id, owners[1], APPROVE)

        assert view.proposal.status is ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD
        assert not view.proposal.is_executed
        assert "membership" in view.proposal.failure_reason
        assert harness.ownership_repo.get_stored_partition(vehicle_id) == before
        assert await harness.ownership_repo.list_history(vehicle_id) == []

    @pytest.mark.asyncio
    async def test_only_one_pending_reallocation_per_vehicle(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        split = {owners[0]: "40", owners[1]: "30", owners[2]: "30"}
        first = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
            payload=reallocation_payload(split),
        )

        with pytest.raises(PendingReallocationExistsError):
            await harness.service.propose(
                vehicle_id=vehicle_id,
                proposer_id=owners[1],
                kind=ProposalKind.OWNERSHIP_REALLOCATION,
                payload=reallocation_payload(split),
            )

        await harness.service.cancel(first.id, owners[0])
        second = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[1],
            kind=ProposalKind.OWNERSHIP_REALLOCATION,
            payload=reallocation_payload(split),
        )
        assert second.status is ProposalStatus.PENDING


class TestVehicleUpgrade:
    @pytest.mark.asyncio
    async def test_confirm_with_unaffordable_actual_cost(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        ledger_id = harness.fund("1000.00")
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.VEHICLE_UPGRADE,
            payload=upgrade_payload(ledger_id, estimated_cost="900.00"),
        )
        view = await harness.service.vote(proposal.id, owners[2], APPROVE)
        assert view.proposal.status is ProposalStatus.APPROVED_AWAITING_EXECUTION
        # Approval alone does not touch the fund
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("1000.00")

        final = await harness.service.confirm_execution(
            proposal.id, owners[0], actual_cost=Decimal("1250.00")
        )

        assert final.status is ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE
        assert final.is_executed is False
        assert final.actual_cost == Decimal("1250.00")
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_confirm_debits_actual_cost(self, harness: ConsensusHarness) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(2)
        ledger_id = harness.fund("1000.00")
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[1],
            kind=ProposalKind.VEHICLE_UPGRADE,
            payload=upgrade_payload(ledger_id, estimated_cost="900.00"),
        )

        final = await harness.service.confirm_execution(
            proposal.id, owners[1], actual_cost=Decimal("875.50"), execution_notes="Done"
        )

        assert final.status is ProposalStatus.EXECUTED
        assert final.executed_by == owners[1]
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("124.50")
        entries = harness.ledger_repo.get_entries_for_reference(proposal.id)
        assert [e.amount for e in entries] == [Decimal("875.50")]


class TestFrozenThreshold:
    @pytest.mark.asyncio
    async def test_threshold_survives_membership_growth(
        self, harness: ConsensusHarness
    ) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(harness.fund("500.00")),
        )
        newcomers = [uuid4(), uuid4(), uuid4()]
        for user_id in newcomers:
            harness.registry.add_co_owner(vehicle_id, user_id)

        view = await harness.service.vote(proposal.id, newcomers[0], APPROVE)

        assert view.proposal.required_approvals == 2
        assert view.proposal.total_eligible == 3
        assert view.proposal.status is ProposalStatus.EXECUTED

    @pytest.mark.asyncio
    async def test_departed_co_owner_cannot_vote(self, harness: ConsensusHarness) -> None:
        vehicle_id, owners = harness.vehicle_with_owners(3)
        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(harness.fund("500.00")),
        )
        harness.registry.remove_co_owner(vehicle_id, owners[1])

        with pytest.raises(NotEligibleVoterError):
            await harness.service.vote(proposal.id, owners[1], APPROVE)

        stored = harness.proposal_repo.get_stored(proposal.id)
        assert stored.required_approvals == 2
        assert stored.status is ProposalStatus.PENDING


class TestNotificationFailure:
    @pytest.mark.asyncio
    async def test_delivery_errors_do_not_undo_execution(
        self, harness: ConsensusHarness
    ) -> None:
        harness.notifier.fail_with(ConnectionError("push gateway down"))
        vehicle_id, owners = harness.vehicle_with_owners(2)
        ledger_id = harness.fund("100.00")

        proposal = await harness.service.propose(
            vehicle_id=vehicle_id,
            proposer_id=owners[0],
            kind=ProposalKind.FUND_EXPENDITURE,
            payload=fund_payload(ledger_id, amount="40.00"),
        )

        assert proposal.status is ProposalStatus.EXECUTED
        assert await harness.ledger_repo.get_balance(ledger_id) == Decimal("60.00")
        assert harness.notifier.deliveries == []
