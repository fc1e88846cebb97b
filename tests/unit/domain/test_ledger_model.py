"""Unit tests for money rounding, ledger entries and partitions."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from coownership.domain.errors import InvalidAmountError
from coownership.domain.models.ledger import (
    LedgerEntry,
    LedgerEntryDirection,
    quantize_money,
)
from coownership.domain.models.ownership import OwnershipPartition, OwnershipShare


class TestQuantizeMoney:
    def test_rounds_half_even(self) -> None:
        assert quantize_money(Decimal("0.125")) == Decimal("0.12")
        assert quantize_money(Decimal("0.135")) == Decimal("0.14")

    def test_sub_cent_rounds_to_zero(self) -> None:
        assert quantize_money(Decimal("0.004")) == Decimal("0.00")

    def test_custom_places(self) -> None:
        assert quantize_money(Decimal("1.23456"), places=4) == Decimal("1.2346")

    def test_amount_beyond_precision_is_invalid_amount(self) -> None:
        with pytest.raises(InvalidAmountError, match="not a representable") as exc_info:
            quantize_money(Decimal("1e27"))
        assert exc_info.value.field == "amount"
        assert exc_info.value.http_status == 400

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_is_invalid_amount(self, raw: str) -> None:
        with pytest.raises(InvalidAmountError):
            quantize_money(Decimal(raw), field="actual_cost")

    def test_field_name_is_reported(self) -> None:
        with pytest.raises(InvalidAmountError) as exc_info:
            quantize_money(Decimal("1e40"), field="proposed_investment")
        assert exc_info.value.extensions()["field"] == "proposed_investment"


class TestLedgerEntry:
    def test_negative_balance_after_rejected(self) -> None:
        with pytest.raises(ValueError, match="balance_after"):
            LedgerEntry(
                entry_id=uuid4(),
                ledger_id=uuid4(),
                amount=Decimal("10"),
                direction=LedgerEntryDirection.DEBIT,
                reference_id=None,
                balance_after=Decimal("-0.01"),
                recorded_at=datetime.now(timezone.utc),
            )


class TestOwnershipPartition:
    def test_sum_and_lookup(self) -> None:
        a, b = uuid4(), uuid4()
        partition = OwnershipPartition(
            vehicle_id=uuid4(),
            shares=(
                OwnershipShare(a, Decimal("60"), Decimal("6000")),
                OwnershipShare(b, Decimal("40"), Decimal("4000")),
            ),
        )
        assert partition.total_percentage == Decimal("100")
        assert partition.sums_to_hundred(Decimal("0"))
        assert partition.share_for(a).percentage == Decimal("60")
        assert partition.share_for(uuid4()) is None
