"""Kind-specific proposal payloads.

Exactly one payload shape exists per proposal kind. Payloads are frozen;
a proposal's payload never changes after creation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Union
from uuid import UUID


@dataclass(frozen=True, eq=True)
class FundExpenditurePayload:
    """Debit of the vehicle fund, e.g. to pay a maintenance cost.

    Attributes:
        target_ledger_id: Fund to debit.
        amount: Amount to debit once approved.
        cost_reference_id: The cost record (maintenance invoice) being paid.
        reason: Free-text justification.
        image_url: Optional receipt or quote image.
    """

    target_ledger_id: UUID
    amount: Decimal
    cost_reference_id: UUID
    reason: str = ""
    image_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "target_ledger_id": str(self.target_ledger_id),
            "amount": str(self.amount),
            "cost_reference_id": str(self.cost_reference_id),
            "reason": self.reason,
            "image_url": self.image_url,
        }


@dataclass(frozen=True, eq=True)
class ShareChange:
    """One co-owner's line in an ownership reallocation."""

    co_owner_id: UUID
    current_percentage: Decimal
    proposed_percentage: Decimal
    current_investment: Decimal
    proposed_investment: Decimal

    @property
    def percentage_delta(self) -> Decimal:
        return self.proposed_percentage - self.current_percentage

    def to_dict(self) -> dict:
        return {
            "co_owner_id": str(self.co_owner_id),
            "current_percentage": str(self.current_percentage),
            "proposed_percentage": str(self.proposed_percentage),
            "current_investment": str(self.current_investment),
            "proposed_investment": str(self.proposed_investment),
            "percentage_delta": str(self.percentage_delta),
        }


@dataclass(frozen=True, eq=True)
class OwnershipReallocationPayload:
    """Replacement ownership partition covering every active co-owner.

    Attributes:
        shares: One entry per co-owner; proposed percentages sum to 100.
        reason: Free-text justification.
    """

    shares: tuple[ShareChange, ...]
    reason: str = ""

    @property
    def co_owner_ids(self) -> frozenset[UUID]:
        return frozenset(s.co_owner_id for s in self.shares)

    @property
    def proposed_total(self) -> Decimal:
        return sum((s.proposed_percentage for s in self.shares), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "shares": [s.to_dict() for s in self.shares],
            "reason": self.reason,
        }


class UpgradeType(Enum):
    """Category of a vehicle upgrade."""

    BATTERY = "Battery"
    SOFTWARE = "Software"
    HARDWARE = "Hardware"
    INTERIOR = "Interior"
    EXTERIOR = "Exterior"
    SAFETY = "Safety"
    PERFORMANCE = "Performance"
    COMFORT = "Comfort"
    TECHNOLOGY = "Technology"
    OTHER = "Other"


@dataclass(frozen=True, eq=True)
class VehicleUpgradePayload:
    """Upgrade proposal; the fund is debited only on confirm-execution.

    The estimated cost is informational. The actual cost is only known
    after the work is performed and is supplied when confirming.
    """

    target_ledger_id: UUID
    upgrade_type: UpgradeType
    title: str
    estimated_cost: Decimal
    description: str = ""
    justification: str | None = None
    vendor_name: str | None = None
    vendor_contact: str | None = None
    proposed_installation_date: date | None = None
    estimated_duration_days: int | None = None
    image_url: str | None = field(default=None)

    def to_dict(self) -> dict:
        return {
            "target_ledger_id": str(self.target_ledger_id),
            "upgrade_type": self.upgrade_type.value,
            "title": self.title,
            "estimated_cost": str(self.estimated_cost),
            "description": self.description,
            "justification": self.justification,
            "vendor_name": self.vendor_name,
            "vendor_contact": self.vendor_contact,
            "proposed_installation_date": (
                self.proposed_installation_date.isoformat()
                if self.proposed_installation_date
                else None
            ),
            "estimated_duration_days": self.estimated_duration_days,
            "image_url": self.image_url,
        }


ProposalPayload = Union[
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    VehicleUpgradePayload,
]

# Keyed by ProposalKind value to avoid an import cycle with models.proposal
PAYLOAD_TYPES: dict[str, type] = {
    "FundExpenditure": FundExpenditurePayload,
    "OwnershipReallocation": OwnershipReallocationPayload,
    "VehicleUpgrade": VehicleUpgradePayload,
}
