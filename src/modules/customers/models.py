"""Customer profile: wallet, delivery distance, role and spend counters.

The auth user carries credentials; ``Customer`` carries everything the
checkout core needs about the person behind it:

- ``wallet`` is store credit that can offset an order total (never < 0).
- ``distance_km`` is filled by the geocoding collaborator and drives the
  delivery fee.
- ``orders_count`` / ``spent`` are aggregate counters bumped on commit.
- ``role`` gates the order lifecycle (couriers, managers, admins).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class CustomerRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    USER = "user", "User"
    DELIVERY = "delivery", "Delivery"
    MANAGER = "manager", "Manager"


STAFF_ROLES: frozenset[str] = frozenset({CustomerRole.ADMIN, CustomerRole.MANAGER})


class Customer(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer",
    )
    name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=20, unique=True)
    role = models.CharField(
        max_length=20,
        choices=CustomerRole.choices,
        default=CustomerRole.USER,
    )
    wallet = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    address = models.TextField(blank=True, default="")
    distance_km = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    orders_count = models.PositiveIntegerField(default=0)
    spent = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="customers_role_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(wallet__gte=0),
                name="customers_wallet_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(spent__gte=0),
                name="customers_spent_non_negative",
            ),
        ]

    @property
    def is_courier(self) -> bool:
        return self.role == CustomerRole.DELIVERY

    @property
    def is_staff_role(self) -> bool:
        return self.role in STAFF_ROLES

    def __str__(self) -> str:
        # Phone numbers are masked: only the last four digits are shown.
        suffix = self.phone[-4:] if self.phone else "????"
        return f"{self.name or 'customer'} (***{suffix}, {self.role})"
