"""Ledger (vehicle fund) domain model.

The balance is a fixed-point monetary value that is never negative.
Every mutation appends an immutable LedgerEntry; entries are never
rewritten or removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from enum import Enum
from uuid import UUID

from coownership.domain.errors.validation import InvalidAmountError

DEFAULT_MONEY_PLACES = 2


def quantize_money(
    amount: Decimal,
    places: int = DEFAULT_MONEY_PLACES,
    field: str = "amount",
) -> Decimal:
    """Round a monetary amount to the configured number of decimal places.

    Raises:
        InvalidAmountError: amount is not finite or has more digits than
            the decimal context can hold after rounding.
    """
    exponent = Decimal(1).scaleb(-places)
    try:
        value = Decimal(amount)
        # Quiet NaN passes quantize() without signalling
        if not value.is_finite():
            raise InvalidOperation
        return value.quantize(exponent, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        raise InvalidAmountError(
            amount, field=field, reason="is not a representable monetary amount"
        ) from None


class LedgerEntryDirection(Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


@dataclass(frozen=True, eq=True)
class LedgerEntry:
    """One balance mutation.

    Attributes:
        entry_id: Unique identifier.
        ledger_id: Ledger mutated.
        amount: Positive amount moved.
        direction: Debit or credit.
        reference_id: Proposal (or other record) that caused the mutation.
        balance_after: Balance immediately after the mutation.
        recorded_at: When the mutation was committed (UTC).
        description: Free text for fund statements.
    """

    entry_id: UUID
    ledger_id: UUID
    amount: Decimal
    direction: LedgerEntryDirection
    reference_id: UUID | None
    balance_after: Decimal
    recorded_at: datetime
    description: str = ""

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"amount must be positive, got {self.amount}")
        if self.balance_after < 0:
            raise ValueError(f"balance_after must not be negative, got {self.balance_after}")

    def to_dict(self) -> dict:
        return {
            "entry_id": str(self.entry_id),
            "ledger_id": str(self.ledger_id),
            "amount": str(self.amount),
            "direction": self.direction.value,
            "reference_id": str(self.reference_id) if self.reference_id else None,
            "balance_after": str(self.balance_after),
            "recorded_at": self.recorded_at.isoformat(),
            "description": self.description,
        }
