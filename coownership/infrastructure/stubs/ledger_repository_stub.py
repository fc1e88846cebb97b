"""In-memory stub for LedgerRepositoryProtocol.

This stub simulates the database behavior the consensus core relies on:
- Per-ledger atomic read-check-write for deduct and credit
- Balance never negative (deduct refuses and writes nothing)
- Append-only entry journal

Each ledger has its own asyncio.Lock. The lock is held across a yield
point between reading and writing the balance, so a stub without the
lock would let two deductions observe the same pre-deduction balance.
Different ledgers never wait on each other.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from coownership.domain.errors import InsufficientBalanceError, LedgerNotFoundError
from coownership.domain.models.ledger import LedgerEntry, LedgerEntryDirection


class LedgerRepositoryStub:
    """In-memory stub implementation of LedgerRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._balances: dict[UUID, Decimal] = {}
        self._entries: dict[UUID, list[LedgerEntry]] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def _lock_for(self, ledger_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(ledger_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[ledger_id] = lock
        return lock

    def _require(self, ledger_id: UUID) -> Decimal:
        if ledger_id not in self._balances:
            raise LedgerNotFoundError(ledger_id)
        return self._balances[ledger_id]

    async def get_balance(self, ledger_id: UUID) -> Decimal:
        return self._require(ledger_id)

    async def deduct(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Debit the ledger if the balance covers the amount.

        Raises:
            LedgerNotFoundError: Ledger doesn't exist.
            InsufficientBalanceError: Balance < amount; nothing written.
            ValueError: amount is not positive.
        """
        if amount <= 0:
            raise ValueError(f"amount must be positive, got {amount}")

        async with self._lock_for(ledger_id):
            balance = self._require(ledger_id)
            # Storage round trip between read and write
            await asyncio.sleep(0)
            if balance < amount:
                raise InsufficientBalanceError(
                    ledger_id=ledger_id, balance=balance, amount=amount
                )
            return self._append(
                ledger_id,
                amount,
                LedgerEntryDirection.DEBIT,
                balance - amount,
                reference_id,
                description,
            )

    async def credit(
        self,
        ledger_id: UUID,
        amount: Decimal,
        reference_id: UUID | None = None,
        description: str = "",
    ) -> LedgerEntry:
        if amount <= 0:
            raise ValueError(f"amount must be positive, got {amount}")

        async with self._lock_for(ledger_id):
            balance = self._require(ledger_id)
            await asyncio.sleep(0)
            return self._append(
                ledger_id,
                amount,
                LedgerEntryDirection.CREDIT,
                balance + amount,
                reference_id,
                description,
            )

    async def list_entries(self, ledger_id: UUID) -> list[LedgerEntry]:
        return sorted(self._entries.get(ledger_id, []), key=lambda e: e.recorded_at)

    def _append(
        self,
        ledger_id: UUID,
        amount: Decimal,
        direction: LedgerEntryDirection,
        balance_after: Decimal,
        reference_id: UUID | None,
        description: str,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            entry_id=uuid4(),
            ledger_id=ledger_id,
            amount=amount,
            direction=direction,
            reference_id=reference_id,
            balance_after=balance_after,
            recorded_at=datetime.now(timezone.utc),
            description=description,
        )
        self._balances[ledger_id] = balance_after
        self._entries.setdefault(ledger_id, []).append(entry)
        return entry

    # Test helper methods

    def seed_ledger(self, ledger_id: UUID, balance: Decimal) -> None:
        """Create a ledger with an opening balance (no journal entry)."""
        if balance < 0:
            raise ValueError("opening balance must not be negative")
        self._balances[ledger_id] = balance
        self._entries.setdefault(ledger_id, [])

    def set_balance(self, ledger_id: UUID, balance: Decimal) -> None:
        """Overwrite a balance to simulate drift from outside the core."""
        self._require(ledger_id)
        self._balances[ledger_id] = balance

    def get_entries_for_reference(self, reference_id: UUID) -> list[LedgerEntry]:
        """Get every entry (any ledger) caused by the given record."""
        return [
            entry
            for entries in self._entries.values()
            for entry in entries
            if entry.reference_id == reference_id
        ]

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._balances.clear()
        self._entries.clear()
        self._locks.clear()
