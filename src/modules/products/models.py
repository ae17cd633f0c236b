"""Product record as seen by the checkout core.

The core only reads products; catalogue management happens elsewhere
(Django admin, seed command).

- ``price_org`` is what the store paid, ``price_net`` the list price and
  ``discount_percent`` an optional markdown on ``price_net``.
  ``price_org <= price_net`` is enforced by ``clean`` and a check constraint.
- ``amount`` is the stock on hand; it never goes below zero.
- ``orders_count`` counts committed orders that included the product.
- A soft-deleted product is treated as missing by every lookup.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel
from modules.products import pricing

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price_org = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    price_net = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[
            MinValueValidator(Decimal("0")),
            MaxValueValidator(Decimal("100")),
        ],
    )
    amount = models.PositiveIntegerField(default=0)
    orders_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_org__lte=models.F("price_net")),
                name="products_org_not_above_net",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="products_amount_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if (
            self.price_org is not None
            and self.price_net is not None
            and self.price_org > self.price_net
        ):
            raise ValidationError(
                {"price_org": "Original price cannot exceed the net price."}
            )

    @property
    def effective_price(self) -> Decimal:
        return pricing.effective_price(self)

    @property
    def in_stock(self) -> bool:
        return self.amount > 0

    def __str__(self) -> str:
        return f"{self.name} ({self.amount} in stock)"
