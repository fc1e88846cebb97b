"""Payload shape validation for proposals.

Validation runs at propose time, before anything is persisted. The
reallocation membership check also runs again at execution time, since
co-owners may join or leave while the proposal is pending.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from uuid import UUID

from coownership.domain.errors.validation import (
    InvalidAmountError,
    InvalidPayloadError,
    PartitionMembershipError,
    PartitionSumError,
)
from coownership.domain.models.ownership import HUNDRED
from coownership.domain.models.payloads import (
    PAYLOAD_TYPES,
    FundExpenditurePayload,
    OwnershipReallocationPayload,
    ProposalPayload,
    VehicleUpgradePayload,
)

MIN_PROPOSED_PERCENTAGE = Decimal("0.01")


def membership_mismatch(
    payload: OwnershipReallocationPayload,
    active_co_owner_ids: frozenset[UUID],
) -> PartitionMembershipError | None:
    """Compare a reallocation's co-owner set with current membership.

    Returns:
        The error describing the mismatch, or None when every active
        co-owner appears exactly once and nobody else appears.
    """
    counts = Counter(s.co_owner_id for s in payload.shares)
    duplicated = frozenset(uid for uid, n in counts.items() if n > 1)
    listed = frozenset(counts)
    missing = active_co_owner_ids - listed
    unexpected = listed - active_co_owner_ids
    if missing or unexpected or duplicated:
        return PartitionMembershipError(
            missing=missing, unexpected=unexpected, duplicated=duplicated
        )
    return None


def _validate_fund_expenditure(payload: FundExpenditurePayload) -> None:
    if payload.amount <= 0:
        raise InvalidAmountError(payload.amount, field="amount")


def _validate_vehicle_upgrade(payload: VehicleUpgradePayload) -> None:
    if payload.estimated_cost <= 0:
        raise InvalidAmountError(payload.estimated_cost, field="estimated_cost")
    if not payload.title.strip():
        raise InvalidPayloadError("VehicleUpgrade", "title must not be empty", field="title")
    if payload.estimated_duration_days is not None and payload.estimated_duration_days < 0:
        raise InvalidPayloadError(
            "VehicleUpgrade",
            "estimated_duration_days must not be negative",
            field="estimated_duration_days",
        )


def _validate_reallocation(
    payload: OwnershipReallocationPayload,
    active_co_owner_ids: frozenset[UUID],
    tolerance: Decimal,
    max_investment: Decimal,
) -> None:
    if not payload.shares:
        raise InvalidPayloadError(
            "OwnershipReallocation", "at least one share is required", field="shares"
        )

    mismatch = membership_mismatch(payload, active_co_owner_ids)
    if mismatch is not None:
        raise mismatch

    for share in payload.shares:
        if not MIN_PROPOSED_PERCENTAGE <= share.proposed_percentage <= HUNDRED:
            raise InvalidPayloadError(
                "OwnershipReallocation",
                f"proposed percentage {share.proposed_percentage} for co-owner "
                f"{share.co_owner_id} must be between {MIN_PROPOSED_PERCENTAGE} and 100",
                field="proposed_percentage",
            )
        if not Decimal("0") <= share.proposed_investment <= max_investment:
            raise InvalidPayloadError(
                "OwnershipReallocation",
                f"proposed investment {share.proposed_investment} for co-owner "
                f"{share.co_owner_id} must be between 0 and {max_investment}",
                field="proposed_investment",
            )

    total = payload.proposed_total
    if abs(total - HUNDRED) > tolerance:
        raise PartitionSumError(total=total, tolerance=tolerance)


def validate_payload(
    kind: str,
    payload: ProposalPayload,
    active_co_owner_ids: frozenset[UUID],
    *,
    tolerance: Decimal,
    max_investment: Decimal,
) -> None:
    """Validate a payload against its kind's shape invariants.

    Args:
        kind: ProposalKind value.
        payload: Payload to validate.
        active_co_owner_ids: Current active co-owners of the vehicle.
        tolerance: Allowed deviation of percentage sums from 100.
        max_investment: Upper bound of a proposed investment.

    Raises:
        InvalidPayloadError: Wrong payload type or shape.
        InvalidAmountError: Non-positive amount or estimated cost.
        PartitionSumError: Percentages do not sum to 100.
        PartitionMembershipError: Co-owner set does not match membership.
    """
    expected = PAYLOAD_TYPES.get(kind)
    if expected is None or not isinstance(payload, expected):
        raise InvalidPayloadError(
            kind, f"expected {expected.__name__ if expected else 'known kind'}"
        )

    if isinstance(payload, FundExpenditurePayload):
        _validate_fund_expenditure(payload)
    elif isinstance(payload, VehicleUpgradePayload):
        _validate_vehicle_upgrade(payload)
    else:
        _validate_reallocation(payload, active_co_owner_ids, tolerance, max_investment)
