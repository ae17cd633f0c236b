"""Django ORM implementation of the Coupon repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from modules.coupons.models import Coupon
from modules.coupons.repositories.interfaces import ICouponRepository

logger = structlog.get_logger(__name__)


class CouponDjangoRepository(ICouponRepository):
    """Concrete Coupon repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Coupon]:
        try:
            return Coupon.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return Coupon.objects.alive().filter(code=code.strip().upper()).first()

    def get_for_update(self, id: str) -> Optional[Coupon]:
        try:
            return Coupon.objects.alive().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def claim_use(self, id: str, now: datetime) -> bool:
        """Compare-and-increment in a single ``UPDATE``.

        The ``WHERE`` clause repeats every eligibility rule, so two
        transactions racing for the last use cannot both succeed even
        without the row lock.
        """
        updated = (
            Coupon.objects.alive()
            .filter(id=id, is_active=True)
            .filter(Q(limit__isnull=True) | Q(used__lt=F("limit")))
            .filter(Q(expire__isnull=True) | Q(expire__gt=now))
            .update(used=F("used") + 1, updated_at=now)
        )
        return updated == 1

    def release_use(self, id: str) -> bool:
        updated = Coupon.objects.filter(id=id, used__gt=0).update(
            used=F("used") - 1, updated_at=timezone.now()
        )
        return updated == 1

    @transaction.atomic
    def save(self, entity: Coupon) -> Coupon:
        entity.save()
        logger.info("coupon.saved", coupon_id=str(entity.id), code=entity.code)
        return entity
