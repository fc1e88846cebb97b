"""Ledger and ownership partition errors."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from coownership.domain.errors.base import ConflictError, NotFoundError
from coownership.domain.exceptions import CoOwnershipError


class LedgerNotFoundError(NotFoundError):
    """Raised when a ledger (vehicle fund) id does not resolve."""

    problem_type = "ledger:not-found"
    title = "Ledger Not Found"

    def __init__(self, ledger_id: UUID) -> None:
        self.ledger_id = ledger_id
        super().__init__(f"Ledger not found: {ledger_id}")

    def extensions(self) -> dict[str, Any]:
        return {"ledger_id": str(self.ledger_id)}


class InsufficientBalanceError(ConflictError):
    """Raised by a ledger deduction that would make the balance negative.

    The ledger is left untouched. Inside proposal execution this error is
    converted to the ExecutionFailedInsufficientResource status and is
    never seen by the voter.

    Attributes:
        ledger_id: The ledger.
        balance: Balance observed inside the atomic step.
        amount: Amount that was requested.
    """

    problem_type = "ledger:insufficient-balance"
    title = "Insufficient Balance"

    def __init__(self, ledger_id: UUID, balance: Decimal, amount: Decimal) -> None:
        self.ledger_id = ledger_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Ledger {ledger_id} balance {balance} is insufficient for {amount}"
        )

    @property
    def shortfall(self) -> Decimal:
        """Amount missing to cover the request."""
        return self.amount - self.balance

    def extensions(self) -> dict[str, Any]:
        return {
            "ledger_id": str(self.ledger_id),
            "balance": str(self.balance),
            "amount": str(self.amount),
            "shortfall": str(self.shortfall),
        }


class PartitionNotFoundError(NotFoundError):
    """Raised when a vehicle has no committed ownership partition."""

    problem_type = "ownership:partition-not-found"
    title = "Ownership Partition Not Found"

    def __init__(self, vehicle_id: UUID) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(f"No ownership partition for vehicle {vehicle_id}")

    def extensions(self) -> dict[str, Any]:
        return {"vehicle_id": str(self.vehicle_id)}


class PartitionIntegrityError(CoOwnershipError):
    """Raised when a partition write would break the sum-to-100 invariant.

    This is a guard inside the ownership store. The executor validates
    before writing, so reaching it means a programming error.
    """

    def __init__(self, vehicle_id: UUID, total: Decimal) -> None:
        self.vehicle_id = vehicle_id
        self.total = total
        super().__init__(
            f"Partition for vehicle {vehicle_id} sums to {total}, not 100"
        )
