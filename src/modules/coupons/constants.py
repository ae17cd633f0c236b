"""Coupon rejection reasons, in the order the validator checks them."""

from django.db import models


class CouponRejectionReason(models.TextChoices):
    INACTIVE = "inactive", "Coupon not active"
    EXPIRED = "expired", "Coupon expired"
    LIMIT_REACHED = "limit_reached", "Coupon limit reached"

# Reported instead of a rejection reason when the coupon no longer exists.
COUPON_MISSING = "not_found"
