"""Coupon domain exceptions."""

from __future__ import annotations

from modules.coupons.constants import CouponRejectionReason


class CouponNotFound(Exception):
    """No live coupon matches the given id or code."""


class CouponRejected(Exception):
    """The coupon exists but may not be used right now.

    ``reason`` is one of ``CouponRejectionReason``.
    """

    def __init__(self, reason: CouponRejectionReason, message: str = "") -> None:
        self.reason = CouponRejectionReason(reason)
        super().__init__(message or self.reason.label)
