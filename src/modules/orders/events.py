"""Domain events for the Orders bounded context.

Payload fields are plain strings so the outbox JSON round-trips without
custom decoding.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when checkout commits an order."""

    customer_id: str = ""
    order_number: str = ""
    total: str = "0.00"
    final_cost: str = "0.00"
    coupon_code: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when the lifecycle moves an order to a new status."""

    old_status: str = ""
    new_status: str = ""
    changed_by: str = ""


@dataclass(frozen=True)
class OrderRejected(DomainEvent):
    """Raised when an order is rejected and its stock released."""

    customer_id: str = ""
    refunded_wallet: str = "0.00"


@dataclass(frozen=True)
class OrderDeliveryAssigned(DomainEvent):
    """Raised when a courier is attached to an order."""

    delivery_id: str = ""
    assigned_by: str = ""
