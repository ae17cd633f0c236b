"""Coupon Validator / Redeemer.

Validation order is fixed: existence, ``is_active``, expiry, usage limit.
``peek`` never mutates; ``redeem`` claims exactly one use or raises, and a
rejection leaves the coupon untouched.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.coupons.constants import CouponRejectionReason
from modules.coupons.exceptions import CouponNotFound, CouponRejected
from modules.products.pricing import round2

if TYPE_CHECKING:
    from modules.coupons.models import Coupon
    from modules.coupons.repositories.interfaces import ICouponRepository

logger = structlog.get_logger(__name__)


def coupon_discount(total: Decimal, value: Decimal) -> Decimal:
    """Discount granted by a ``value``% coupon on *total*."""
    return round2(Decimal(total) * Decimal(value) / 100)


class CouponService:
    def __init__(self, repository: ICouponRepository) -> None:
        self._repo = repository

    def get_by_code(self, code: str) -> Coupon:
        coupon = self._repo.get_by_code(code)
        if coupon is None:
            raise CouponNotFound(f"Coupon '{code}' not found.")
        return coupon

    @staticmethod
    def validate(coupon: Coupon, now: Optional[datetime] = None) -> None:
        """Raise ``CouponRejected`` with the first rule the coupon breaks."""
        if not coupon.is_active:
            raise CouponRejected(CouponRejectionReason.INACTIVE)
        if coupon.is_expired(now):
            raise CouponRejected(CouponRejectionReason.EXPIRED)
        if coupon.limit_reached:
            raise CouponRejected(CouponRejectionReason.LIMIT_REACHED)

    def peek(self, coupon_id: str, lock: bool = False) -> Coupon:
        """Non-mutating eligibility check.

        Raises:
            CouponNotFound: the coupon was deleted.
            CouponRejected: the coupon is inactive, expired or used up.
        """
        getter = self._repo.get_for_update if lock else self._repo.get_by_id
        coupon = getter(str(coupon_id))
        if coupon is None:
            raise CouponNotFound(f"Coupon {coupon_id} not found.")
        self.validate(coupon)
        return coupon

    @transaction.atomic
    def redeem(self, coupon_id: str) -> Coupon:
        """Claim one use of the coupon.

        The row is locked, validated, then incremented with a conditional
        update that re-checks ``used < limit``.

        Raises:
            CouponNotFound: the coupon does not exist.
            CouponRejected: the coupon is not redeemable; nothing changed.
        """
        now = timezone.now()
        log = logger.bind(coupon_id=str(coupon_id))

        coupon = self._repo.get_for_update(str(coupon_id))
        if coupon is None:
            raise CouponNotFound(f"Coupon {coupon_id} not found.")
        try:
            self.validate(coupon, now)
        except CouponRejected as exc:
            log.warning("coupon.redeem_rejected", reason=exc.reason.value)
            raise

        if not self._repo.claim_use(str(coupon.id), now):
            log.warning("coupon.redeem_lost_race")
            raise CouponRejected(CouponRejectionReason.LIMIT_REACHED)

        coupon.refresh_from_db(fields=["used", "updated_at"])
        log.info("coupon.redeemed", code=coupon.code, used=coupon.used)
        return coupon

    def release(self, coupon_id: str) -> bool:
        """Return the use claimed by an order that did not go through."""
        released = self._repo.release_use(str(coupon_id))
        logger.info("coupon.use_released", coupon_id=str(coupon_id), released=released)
        return released
