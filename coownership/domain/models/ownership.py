"""Ownership partition and its audit trail.

A vehicle's partition is a set of (co_owner_id, percentage, investment)
shares whose percentages sum to 100 whenever the partition is committed.
Every change appends one OwnershipAuditEntry per affected co-owner, keyed
by the proposal that caused it. Audit entries are never overwritten or
deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

HUNDRED = Decimal("100")


@dataclass(frozen=True, eq=True)
class OwnershipShare:
    co_owner_id: UUID
    percentage: Decimal
    investment: Decimal

    def to_dict(self) -> dict:
        return {
            "co_owner_id": str(self.co_owner_id),
            "percentage": str(self.percentage),
            "investment": str(self.investment),
        }


@dataclass(frozen=True, eq=True)
class OwnershipPartition:
    """Committed ownership split of one vehicle."""

    vehicle_id: UUID
    shares: tuple[OwnershipShare, ...]
    updated_at: datetime | None = None

    @property
    def total_percentage(self) -> Decimal:
        return sum((s.percentage for s in self.shares), Decimal("0"))

    def share_for(self, co_owner_id: UUID) -> OwnershipShare | None:
        for share in self.shares:
            if share.co_owner_id == co_owner_id:
                return share
        return None

    def sums_to_hundred(self, tolerance: Decimal) -> bool:
        return abs(self.total_percentage - HUNDRED) <= tolerance

    def to_dict(self) -> dict:
        return {
            "vehicle_id": str(self.vehicle_id),
            "shares": [s.to_dict() for s in self.shares],
            "total_percentage": str(self.total_percentage),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True, eq=True)
class OwnershipAuditEntry:
    """Immutable record of one co-owner's share change.

    Attributes:
        entry_id: Unique identifier.
        vehicle_id: Vehicle whose partition changed.
        proposal_id: Proposal that caused the change.
        co_owner_id: Affected co-owner.
        previous_percentage: Share before the change.
        new_percentage: Share after the change.
        previous_investment: Investment before the change.
        new_investment: Investment after the change.
        actor_id: Who drove the change (the proposer).
        recorded_at: When the change was committed (UTC).
    """

    entry_id: UUID
    vehicle_id: UUID
    proposal_id: UUID
    co_owner_id: UUID
    previous_percentage: Decimal
    new_percentage: Decimal
    previous_investment: Decimal
    new_investment: Decimal
    actor_id: UUID
    recorded_at: datetime

    @property
    def percentage_delta(self) -> Decimal:
        return self.new_percentage - self.previous_percentage

    @property
    def investment_delta(self) -> Decimal:
        return self.new_investment - self.previous_investment

    def to_dict(self) -> dict:
        return {
            "entry_id": str(self.entry_id),
            "vehicle_id": str(self.vehicle_id),
            "proposal_id": str(self.proposal_id),
            "co_owner_id": str(self.co_owner_id),
            "previous_percentage": str(self.previous_percentage),
            "new_percentage": str(self.new_percentage),
            "percentage_delta": str(self.percentage_delta),
            "previous_investment": str(self.previous_investment),
            "new_investment": str(self.new_investment),
            "investment_delta": str(self.investment_delta),
            "actor_id": str(self.actor_id),
            "recorded_at": self.recorded_at.isoformat(),
        }
