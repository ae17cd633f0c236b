"""Order, OrderItem, and OrderStatusHistory models.

- ``order_number`` is a human-readable identifier generated on first save.
- ``OrderItem`` snapshots the effective unit price and the cost price at
  commit time; later catalogue changes never touch a placed order.
- Cost fields (``total``, ``profit``, ``delivery_fee``, ``wallet_amount``,
  ``coupon_amount``) are written once by checkout.  ``final_cost`` is
  derived from them and not stored.
- After creation only the lifecycle changes ``status`` and ``delivery``;
  each change appends an ``OrderStatusHistory`` row.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.costing import final_cost
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), **kwargs
    )


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``idempotency_key`` is nullable: only API clients that send an
    ``Idempotency-Key`` header carry one, and NULLs never collide.  Keys
    are unique per customer, so two shoppers may pick the same key.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    delivery: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries",
    )
    coupon: models.ForeignKey = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    total: models.DecimalField = _money()
    profit: models.DecimalField = _money()
    delivery_fee: models.DecimalField = _money()
    wallet_amount: models.DecimalField = _money()
    coupon_amount: models.DecimalField = _money()
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0)
                & models.Q(delivery_fee__gte=0)
                & models.Q(wallet_amount__gte=0)
                & models.Q(coupon_amount__gte=0),
                name="orders_costs_non_negative",
            ),
            models.UniqueConstraint(
                fields=["customer", "idempotency_key"],
                name="orders_idempotency_key_per_customer",
            ),
        ]

    # ------------------------------------------------------------------
    # Costs
    # ------------------------------------------------------------------

    @property
    def final_cost(self) -> Decimal:
        return final_cost(
            self.total, self.delivery_fee, self.wallet_amount, self.coupon_amount
        )

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Immutable line snapshot.

    ``unit_price`` is the effective (discounted) price and ``unit_cost``
    the original price at commit.  ``subtotal`` is ``quantity * unit_price``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name: models.CharField = models.CharField(max_length=255, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2
    )
    unit_cost: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, editable=False
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name or self.product_id} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for lifecycle changes.

    ``changed_by`` is nullable: ``None`` means the system made the change
    (e.g. the initial ``pending`` row written by checkout).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    changed_by: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_changes",
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
