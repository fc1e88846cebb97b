"""Effect executor: applies the side effect of an approved proposal.

This is the only component that mutates a ledger balance or an ownership
partition. It never writes proposal status; it reports the status the
proposal must move to and the state machine persists it.

Effects by kind:
    FundExpenditure        debit the target ledger
    OwnershipReallocation  replace the partition and append audit rows
    VehicleUpgrade         nothing until confirm-execution supplies the
                           actual cost, then debit the target ledger

Resource and integrity failures are returned, not raised. An
insufficient balance leaves the ledger untouched; a membership change
since creation leaves the partition untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
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
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerNotFoundError,
    PartitionIntegrityError,
    PartitionNotFoundError,
)
from coownership.domain.models.ledger import LedgerEntry, quantize_money
from coownership.domain.models.ownership import (
    OwnershipAuditEntry,
    OwnershipPartition,
    OwnershipShare,
)
from coownership.domain.models.payloads import (
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    VehicleUpgradePayload,
)
from coownership.domain.models.proposal import Proposal, ProposalStatus
from coownership.domain.services.payload_validator import membership_mismatch

if TYPE_CHECKING:
    from coownership.application.ports.co_owner_registry import (
        CoOwnerRegistryProtocol,
    )
    from coownership.application.ports.ledger_repository import (
        LedgerRepositoryProtocol,
    )
    from coownership.application.ports.ownership_repository import (
        OwnershipRepositoryProtocol,
    )

logger = get_logger(__name__)


@dataclass(frozen=True)
class EffectResult:
    """Outcome of applying a proposal's effect.

    Attributes:
        status: Status the proposal must move to.
        failure_reason: Why execution failed, for failure statuses.
        ledger_entry: Journal entry of a fund debit.
        audit_entries: Audit rows of a partition replacement.
    """

    status: ProposalStatus
    failure_reason: str | None = None
    ledger_entry: LedgerEntry | None = None
    audit_entries: tuple[OwnershipAuditEntry, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status in (
            ProposalStatus.EXECUTED,
            ProposalStatus.APPROVED_AWAITING_EXECUTION,
        )


class EffectExecutorService:
    """Applies proposal effects to ledgers and ownership partitions."""

    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol,
        ownership_repo: OwnershipRepositoryProtocol,
        co_owner_registry: CoOwnerRegistryProtocol,
        config: ConsensusConfig | None = None,
    ) -> None:
        self._ledger_repo = ledger_repo
        self._ownership_repo = ownership_repo
        self._co_owner_registry = co_owner_registry
        self._config = config or DEFAULT_CONSENSUS_CONFIG

    def quantize(self, amount: Decimal, field: str = "amount") -> Decimal:
        """Round an amount to the configured monetary precision.

        Raises:
            InvalidAmountError: amount cannot be represented at that precision.
        """
        return quantize_money(amount, self._config.money_decimal_places, field=field)

    async def get_balance(self, ledger_id: UUID) -> Decimal:
        """Read a ledger balance without mutating it.

        Raises:
            LedgerNotFoundError: Ledger doesn't exist.
        """
        return await self._ledger_repo.get_balance(ledger_id)

    async def apply(self, proposal: Proposal) -> EffectResult:
        """Apply the effect of a proposal that has just reached quorum.

        Args:
            proposal: The approved proposal.

        Returns:
            EffectResult naming the status to persist.
        """
        payload = proposal.payload
        if isinstance(payload, FundExpenditurePayload):
            return await self._debit(
                proposal,
                payload.target_ledger_id,
                payload.amount,
                description=payload.reason or f"Fund expenditure {payload.cost_reference_id}",
            )
        if isinstance(payload, OwnershipReallocationPayload):
            return await self._reallocate(proposal, payload)

        # Upgrades only flip status; the debit waits for confirm-execution.
        logger.info(
            "upgrade_awaiting_execution",
            proposal_id=str(proposal.id),
            estimated_cost=str(payload.estimated_cost),
        )
        return EffectResult(status=ProposalStatus.APPROVED_AWAITING_EXECUTION)

    async def confirm_upgrade_execution(
        self,
        proposal: Proposal,
        actual_cost: Decimal,
    ) -> EffectResult:
        """Debit the actual cost of an approved upgrade.

        Args:
            proposal: Upgrade proposal in ApprovedAwaitingExecution.
            actual_cost: Cost known after the work was performed.

        Returns:
            EffectResult with EXECUTED or EXECUTION_FAILED_INSUFFICIENT_RESOURCE.

        Raises:
            InvalidAmountError: actual_cost is not positive.
            ValueError: The proposal is not an upgrade.
        """
        payload = proposal.payload
        if not isinstance(payload, VehicleUpgradePayload):
            raise ValueError(
                f"Proposal {proposal.id} is {proposal.kind.value}, not VehicleUpgrade"
            )
        if actual_cost <= 0:
            raise InvalidAmountError(actual_cost, field="actual_cost")

        return await self._debit(
            proposal,
            payload.target_ledger_id,
            actual_cost,
            description=f"Upgrade: {payload.title}",
        )

    async def deduct(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Atomically debit a ledger.

        Raises:
            InvalidAmountError: amount rounds to zero or below.
            LedgerNotFoundError: Ledger doesn't exist.
            InsufficientBalanceError: Balance < amount; ledger unchanged.
        """
        quantized = self.quantize(amount)
        if quantized <= 0:
            raise InvalidAmountError(amount)
        entry = await self._ledger_repo.deduct(
            ledger_id, quantized, reference_id=reference_id, description=description
        )
        logger.info(
            "ledger_debited",
            ledger_id=str(ledger_id),
            amount=str(quantized),
            balance_after=str(entry.balance_after),
            reference_id=str(reference_id) if reference_id else None,
        )
        return entry

    async def refund(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Atomically credit a ledger, e.g. to return an overpaid cost.

        Raises:
            InvalidAmountError: amount rounds to zero or below.
            LedgerNotFoundError: Ledger doesn't exist.
        """
        quantized = self.quantize(amount)
        if quantized <= 0:
            raise InvalidAmountError(amount)
        entry = await self._ledger_repo.credit(
            ledger_id, quantized, reference_id=reference_id, description=description
        )
        logger.info(
            "ledger_credited",
            ledger_id=str(ledger_id),
            amount=str(quantized),
            balance_after=str(entry.balance_after),
            reference_id=str(reference_id) if reference_id else None,
        )
        return entry

    async def _debit(
        self,
        proposal: Proposal,
        ledger_id: UUID,
        amount: Decimal,
        description: str,
    ) -> EffectResult:
        log = logger.bind(
            proposal_id=str(proposal.id),
            ledger_id=str(ledger_id),
            amount=str(amount),
        )
        try:
            entry = await self.deduct(
                ledger_id, amount, reference_id=proposal.id, description=description
            )
        except InsufficientBalanceError as e:
            log.warning(
                "execution_failed_insufficient_balance",
                balance=str(e.balance),
                shortfall=str(e.shortfall),
            )
            return EffectResult(
                status=ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
                failure_reason=str(e),
            )
        except LedgerNotFoundError as e:
            log.warning("execution_failed_ledger_missing")
            return EffectResult(
                status=ProposalStatus.EXECUTION_FAILED_INSUFFICIENT_RESOURCE,
                failure_reason=str(e),
            )

        log.info("fund_effect_applied", entry_id=str(entry.entry_id))
        return EffectResult(status=ProposalStatus.EXECUTED, ledger_entry=entry)

    async def _reallocate(
        self,
        proposal: Proposal,
        payload: OwnershipReallocationPayload,
    ) -> EffectResult:
        log = logger.bind(
            proposal_id=str(proposal.id),
            vehicle_id=str(proposal.vehicle_id),
        )

        active_ids = await self._co_owner_registry.active_co_owner_ids(
            proposal.vehicle_id
        )
        mismatch = membership_mismatch(payload, active_ids)
        if mismatch is not None:
            log.warning(
                "execution_failed_membership_changed",
                missing=sorted(str(uid) for uid in mismatch.missing),
                unexpected=sorted(str(uid) for uid in mismatch.unexpected),
            )
            return EffectResult(
                status=ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
                failure_reason=f"Co-owner membership changed since creation: {mismatch}",
            )

        try:
            current = await self._ownership_repo.load_partition(proposal.vehicle_id)
        except PartitionNotFoundError:
            current = None

        now = datetime.now(timezone.utc)
        shares: list[OwnershipShare] = []
        audit_entries: list[OwnershipAuditEntry] = []
        for change in payload.shares:
            previous = current.share_for(change.co_owner_id) if current else None
            new_investment = self.quantize(change.proposed_investment)
            shares.append(
                OwnershipShare(
                    co_owner_id=change.co_owner_id,
                    percentage=change.proposed_percentage,
                    investment=new_investment,
                )
            )
            audit_entries.append(
                OwnershipAuditEntry(
                    entry_id=uuid4(),
                    vehicle_id=proposal.vehicle_id,
                    proposal_id=proposal.id,
                    co_owner_id=change.co_owner_id,
                    previous_percentage=(
                        previous.percentage if previous else change.current_percentage
                    ),
                    new_percentage=change.proposed_percentage,
                    previous_investment=(
                        previous.investment if previous else change.current_investment
                    ),
                    new_investment=new_investment,
                    actor_id=proposal.proposer_id,
                    recorded_at=now,
                )
            )

        partition = OwnershipPartition(
            vehicle_id=proposal.vehicle_id,
            shares=tuple(shares),
            updated_at=now,
        )
        if not partition.sums_to_hundred(self._config.percentage_tolerance):
            log.warning(
                "execution_failed_partition_sum",
                total=str(partition.total_percentage),
            )
            return EffectResult(
                status=ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
                failure_reason=(
                    f"Proposed percentages sum to {partition.total_percentage}, not 100"
                ),
            )

        try:
            await self._ownership_repo.replace_partition(
                proposal.vehicle_id, partition, audit_entries
            )
        except PartitionIntegrityError as e:
            log.error("execution_failed_partition_integrity", total=str(e.total))
            return EffectResult(
                status=ProposalStatus.EXECUTION_FAILED_INVALID_PAYLOAD,
                failure_reason=str(e),
            )

        log.info("ownership_effect_applied", audit_rows=len(audit_entries))
        return EffectResult(
            status=ProposalStatus.EXECUTED,
            audit_entries=tuple(audit_entries),
        )
