"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  They are the
contracts between the API layer (DRF serializers) and ``OrderService``.
DTOs are immutable (``frozen=True``).

- ``DraftLineDTO`` / ``CostBreakdownDTO`` / ``OrderDraftDTO``: the priced,
  unsaved draft produced by both checkout entry points.
- ``UpdateOrderStatusDTO``: input for a lifecycle change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from modules.orders.costing import final_cost
from modules.orders.constants import OrderStatus

# ---------------------------------------------------------------------------
# Draft (output of check / input of commit)
# ---------------------------------------------------------------------------


class DraftLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    requested_quantity: int
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    subtotal: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def clamped(self) -> bool:
        return self.quantity < self.requested_quantity


class CostBreakdownDTO(BaseModel):
    """Money side of a draft.  ``final_cost`` is always derived."""

    model_config = ConfigDict(frozen=True)

    total: Decimal
    profit: Decimal
    delivery: Decimal
    wallet: Decimal
    coupon: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def final_cost(self) -> Decimal:
        return final_cost(self.total, self.delivery, self.wallet, self.coupon)


class OrderDraftDTO(BaseModel):
    """A priced order that has not been saved.

    ``altered`` reports stock drift (lines dropped or clamped);
    ``coupon_rejection`` reports a cart coupon that is no longer usable.
    Either one makes the draft ``drifted`` and uncommittable.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    lines: List[DraftLineDTO]
    dropped_product_ids: List[UUID] = []
    costs: CostBreakdownDTO
    altered: bool = False
    coupon_id: Optional[UUID] = None
    coupon_code: Optional[str] = None
    coupon_rejection: Optional[str] = None
    use_wallet: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def drifted(self) -> bool:
        return self.altered or self.coupon_rejection is not None


# ---------------------------------------------------------------------------
# Lifecycle input
# ---------------------------------------------------------------------------


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    delivery_id: Optional[UUID] = None
    notes: str = ""

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: str) -> str:
        v = v.lower()
        if v not in OrderStatus.values:
            raise ValueError(f"Unknown order status '{v}'.")
        return v
