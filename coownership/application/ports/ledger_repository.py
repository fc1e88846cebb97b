"""Ledger (vehicle fund) repository port.

Each mutation is a single atomic read-check-write scoped to one ledger.
Two deductions against the same ledger must never both observe the
pre-deduction balance; deductions against different ledgers need no
coordination.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from coownership.domain.models.ledger import LedgerEntry


class LedgerRepositoryProtocol(Protocol):
    """Protocol for atomic ledger balance access."""

    @abstractmethod
    async def get_balance(self, ledger_id: UUID) -> Decimal:
        """Load the current balance.

        Args:
            ledger_id: The ledger.

        Returns:
            Current balance (never negative).

        Raises:
            LedgerNotFoundError: Ledger doesn't exist.
        """
        ...

    @abstractmethod
    async def deduct(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Atomically check the balance and debit it.

        The balance is read inside the same atomic step that debits it.
        On insufficient balance nothing is written.

        Args:
            ledger_id: The ledger to debit.
            amount: Positive amount to debit.
            reference_id: Proposal that caused the debit.
            description: Text for the fund statement.

        Returns:
            The appended ledger entry.

        Raises:
            LedgerNotFoundError: Ledger doesn't exist.
            InsufficientBalanceError: Balance < amount; ledger unchanged.
        """
        ...

    @abstractmethod
    async def credit(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Atomically credit the balance.

        Args:
            ledger_id: The ledger to credit.
            amount: Positive amount to credit.
            reference_id: Record that caused the credit.
            description: Text for the fund statement.

        Returns:
            The appended ledger entry.

        Raises:
            LedgerNotFoundError: Ledger doesn't exist.
        """
        ...

    @abstractmethod
    async def list_entries(self, ledger_id: UUID) -> list[LedgerEntry]:
        """Get the ledger's journal ordered by recorded_at.

        Args:
            ledger_id: The ledger.

        Returns:
            All entries, oldest first.
        """
        ...
