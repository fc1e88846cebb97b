"""Payload validation errors raised at propose time."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from coownership.domain.errors.base import PayloadValidationError


class InvalidPayloadError(PayloadValidationError):
    """Raised when a proposal payload violates its shape invariants.

    Attributes:
        kind: The proposal kind whose payload was rejected.
        field: Offending payload field, if one can be named.
        reason: Human-readable explanation.
    """

    problem_type = "validation:invalid-payload"
    title = "Invalid Proposal Payload"

    def __init__(self, kind: str, reason: str, field: str | None = None) -> None:
        self.kind = kind
        self.field = field
        self.reason = reason
        location = f" ({field})" if field else ""
        super().__init__(f"Invalid {kind} payload{location}: {reason}")

    def extensions(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field}


class InvalidAmountError(PayloadValidationError):
    """Raised when a monetary amount is zero, negative, too large or malformed.

    Attributes:
        amount: The rejected amount.
        field: Name of the field carrying the amount.
    """

    problem_type = "validation:invalid-amount"
    title = "Invalid Amount"

    def __init__(
        self,
        amount: Decimal,
        field: str = "amount",
        reason: str = "must be greater than 0",
    ) -> None:
        self.amount = amount
        self.field = field
        super().__init__(f"{field} {reason}, got {amount}")

    def extensions(self) -> dict[str, Any]:
        return {"amount": str(self.amount), "field": self.field}


class PartitionSumError(InvalidPayloadError):
    """Raised when proposed ownership percentages do not sum to 100.

    Attributes:
        total: Sum of the proposed percentages.
        tolerance: Allowed absolute deviation from 100.
    """

    problem_type = "validation:partition-sum"
    title = "Ownership Percentages Must Sum To 100"

    def __init__(self, total: Decimal, tolerance: Decimal) -> None:
        self.total = total
        self.tolerance = tolerance
        super().__init__(
            "OwnershipReallocation",
            f"proposed percentages sum to {total}, expected 100 (+/- {tolerance})",
            field="shares",
        )

    def extensions(self) -> dict[str, Any]:
        return {
            **super().extensions(),
            "total": str(self.total),
            "tolerance": str(self.tolerance),
        }


class PartitionMembershipError(InvalidPayloadError):
    """Raised when a reallocation does not list every active co-owner once.

    Attributes:
        missing: Active co-owners absent from the payload.
        unexpected: Payload entries that are not active co-owners.
        duplicated: Co-owners listed more than once.
    """

    problem_type = "validation:partition-membership"
    title = "Reallocation Must Cover Every Co-Owner"

    def __init__(
        self,
        missing: frozenset[UUID] = frozenset(),
        unexpected: frozenset[UUID] = frozenset(),
        duplicated: frozenset[UUID] = frozenset(),
    ) -> None:
        self.missing = missing
        self.unexpected = unexpected
        self.duplicated = duplicated
        super().__init__(
            "OwnershipReallocation",
            f"{len(missing)} missing, {len(unexpected)} unexpected, "
            f"{len(duplicated)} duplicated co-owner entries",
            field="shares",
        )

    def extensions(self) -> dict[str, Any]:
        return {
            **super().extensions(),
            "missing": sorted(str(u) for u in self.missing),
            "unexpected": sorted(str(u) for u in self.unexpected),
            "duplicated": sorted(str(u) for u in self.duplicated),
        }


class NoEligibleVotersError(PayloadValidationError):
    """Raised when a vehicle has no active co-owners to vote.

    A proposal needs at least one eligible voter; the quorum threshold
    would otherwise be undefined.
    """

    problem_type = "validation:no-eligible-voters"
    title = "No Eligible Voters"

    def __init__(self, vehicle_id: UUID) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle {vehicle_id} has no active co-owners")

    def extensions(self) -> dict[str, Any]:
        return {"vehicle_id": str(self.vehicle_id)}
