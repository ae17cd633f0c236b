"""Event handlers for Orders domain events.

Handlers run when the outbox publisher delivers an event; they only log
for now, giving notification or analytics consumers a place to hook in.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderDeliveryAssigned,
    OrderRejected,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            final_cost=event.final_cost,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderRejectedHandler(IEventHandler[OrderRejected]):
    def handle(self, event: OrderRejected) -> None:
        logger.info(
            "order.event.rejected",
            order_id=str(event.aggregate_id),
            refunded_wallet=event.refunded_wallet,
        )


class OrderDeliveryAssignedHandler(IEventHandler[OrderDeliveryAssigned]):
    def handle(self, event: OrderDeliveryAssigned) -> None:
        logger.info(
            "order.event.delivery_assigned",
            order_id=str(event.aggregate_id),
            delivery_id=event.delivery_id,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_rejected_handler = OrderRejectedHandler()
order_delivery_assigned_handler = OrderDeliveryAssignedHandler()
