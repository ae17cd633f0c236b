"""Unit tests for the delivery fee, wallet allocation and cost DTOs."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.costing import delivery_fee, final_cost, wallet_allocation
from modules.orders.dtos import CostBreakdownDTO, OrderDraftDTO, UpdateOrderStatusDTO

pytestmark = pytest.mark.unit

D = Decimal


class TestDeliveryFee:
    def test_distance_times_rate(self):
        assert delivery_fee(D("10"), D("5")) == D("50.00")

    def test_rounds_half_up(self):
        assert delivery_fee(D("2.345"), D("1")) == D("2.35")

    def test_zero_distance_is_free(self):
        assert delivery_fee(D("0"), D("5")) == D("0.00")


class TestWalletAllocation:
    def test_flag_off_uses_nothing(self):
        assert wallet_allocation(False, D("40"), D("300"), D("30")) == D("0.00")

    def test_balance_below_payable(self):
        # min(40, 300 - 30)
        assert wallet_allocation(True, D("40"), D("300"), D("30")) == D("40.00")

    def test_capped_by_payable(self):
        assert wallet_allocation(True, D("500"), D("300"), D("30")) == D("270.00")

    def test_never_negative(self):
        assert wallet_allocation(True, D("10"), D("0"), D("0")) == D("0.00")


class TestFinalCost:
    def test_formula(self):
        assert final_cost(D("300"), D("50"), D("40"), D("30")) == D("280.00")

    def test_breakdown_derives_final_cost(self):
        costs = CostBreakdownDTO(
            total=D("300"), profit=D("0"), delivery=D("50"), wallet=D("40"), coupon=D("30")
        )
        assert costs.final_cost == D("280.00")
        assert costs.model_dump()["final_cost"] == D("280.00")

    def test_breakdown_is_frozen(self):
        costs = CostBreakdownDTO(
            total=D("1"), profit=D("0"), delivery=D("0"), wallet=D("0"), coupon=D("0")
        )
        with pytest.raises(ValidationError):
            costs.total = D("2")


class TestDraftDTO:
    def _draft(self, **kwargs):
        costs = CostBreakdownDTO(
            total=D("0"), profit=D("0"), delivery=D("0"), wallet=D("0"), coupon=D("0")
        )
        return OrderDraftDTO(customer_id=uuid4(), lines=[], costs=costs, **kwargs)

    def test_clean_draft_is_not_drifted(self):
        assert self._draft().drifted is False

    def test_stock_drift(self):
        assert self._draft(altered=True).drifted is True

    def test_coupon_drift(self):
        assert self._draft(coupon_rejection="expired").drifted is True


class TestUpdateOrderStatusDTO:
    def test_status_normalised(self):
        assert UpdateOrderStatusDTO(status="ACCEPTED").status == "accepted"

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            UpdateOrderStatusDTO(status="shipped")
