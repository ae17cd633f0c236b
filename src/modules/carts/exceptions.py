"""Cart domain exceptions."""

from __future__ import annotations


class CartItemNotFound(Exception):
    """The product is not in the cart."""


class CouponAlreadyApplied(Exception):
    """The cart already carries a coupon; remove it before applying another."""
