"""Django ORM implementation of the Order repository.

``save`` drains the aggregate's domain events into ``OutboxEvent`` rows
inside the caller's transaction, so events exist only for committed
changes.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_RELATIONS = ("customer", "delivery", "coupon")
_PREFETCH = ("items", "status_history")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            customer_id=data["customer_id"],
            coupon_id=data.get("coupon_id"),
            idempotency_key=data.get("idempotency_key"),
            total=data["total"],
            profit=data["profit"],
            delivery_fee=data["delivery_fee"],
            wallet_amount=data["wallet_amount"],
            coupon_amount=data["coupon_amount"],
        )
        order.save()

        items = data.get("items", [])
        for item_data in items:
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                product_name=item_data.get("product_name", ""),
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
                unit_cost=item_data["unit_cost"],
            ).save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return self.queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related(*_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str, customer_id: UUID) -> Optional[Order]:
        return (
            self.queryset()
            .filter(customer_id=customer_id, idempotency_key=key)
            .first()
        )

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Order.objects.select_related(*_RELATIONS).prefetch_related(
            *_PREFETCH
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the order and write its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic="orders",
            )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    return json.loads(json.dumps(_normalize_for_json(asdict(event))))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
