"""Discount coupon.

- ``code`` is unique and stored upper-case.
- ``value`` is a percentage (0–100) taken off the order total.
- ``limit`` caps redemptions when set; ``used`` counts them.  Only
  ``CouponService.redeem`` increments it and only ``CouponService.release``
  (an order rejected after commit) decrements it.
- ``expire`` is optional; a coupon expires at that instant.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import SoftDeleteModel


class Coupon(SoftDeleteModel):
    code = models.CharField(max_length=64, unique=True)
    value = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    limit = models.PositiveIntegerField(null=True, blank=True)
    used = models.PositiveIntegerField(default=0)
    expire = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "coupons"
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(limit__isnull=True)
                | models.Q(used__lte=models.F("limit")),
                name="coupons_used_within_limit",
            ),
            models.CheckConstraint(
                condition=models.Q(value__gte=0) & models.Q(value__lte=100),
                name="coupons_value_percentage",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expire is None:
            return False
        return self.expire <= (now or timezone.now())

    @property
    def limit_reached(self) -> bool:
        return self.limit is not None and self.used >= self.limit

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self.used, 0)

    def __str__(self) -> str:
        return f"{self.code} ({self.value}%)"
