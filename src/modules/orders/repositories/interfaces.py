"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, row locking for the lifecycle, status
history, idempotency-key look-up, and a filterable queryset for listing.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes ``OrderItem`` children and
    ``OrderStatusHistory`` records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` holds ``customer_id``, the cost fields, an optional
        ``coupon_id`` / ``idempotency_key`` and ``items`` (dicts with
        ``product_id``, ``product_name``, ``quantity``, ``unit_price``,
        ``unit_cost``).
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str, customer_id: UUID) -> Optional[Order]:
        """Retrieve *customer_id*'s order placed with idempotency key *key*."""

    @abstractmethod
    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Orders with relations eager-loaded, optionally pre-filtered."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by_id: Optional[UUID] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a lifecycle change in the order's audit trail."""
