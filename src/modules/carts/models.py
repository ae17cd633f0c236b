"""Shopping cart.

Each customer owns exactly one cart.  Items keep insertion order (UUIDv7
ids are time-ordered) and a product appears at most once per cart.  The
cart is only emptied by a successful checkout or by the owner.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Cart(BaseModel):
    customer = models.OneToOneField(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="cart",
    )
    coupon = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="carts",
    )
    use_wallet = models.BooleanField(default=False)

    class Meta:
        db_table = "carts"

    def __str__(self) -> str:
        return f"Cart of {self.customer_id}"


class CartItem(BaseModel):
    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                name="cart_items_unique_product",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity}"
