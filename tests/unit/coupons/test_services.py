"""Unit tests for the Coupon Validator / Redeemer."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.coupons.constants import CouponRejectionReason
from modules.coupons.exceptions import CouponNotFound, CouponRejected
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.services import CouponService, coupon_discount

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CouponService(CouponDjangoRepository())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidate:
    def test_usable_coupon_passes(self, make_coupon):
        CouponService.validate(make_coupon(limit=3, used=2))

    def test_inactive(self, make_coupon):
        with pytest.raises(CouponRejected) as exc:
            CouponService.validate(make_coupon(is_active=False))
        assert exc.value.reason == CouponRejectionReason.INACTIVE

    def test_expired(self, make_coupon):
        coupon = make_coupon(expire=timezone.now() - timedelta(minutes=1))
        with pytest.raises(CouponRejected) as exc:
            CouponService.validate(coupon)
        assert exc.value.reason == CouponRejectionReason.EXPIRED

    def test_limit_reached(self, make_coupon):
        with pytest.raises(CouponRejected) as exc:
            CouponService.validate(make_coupon(limit=1, used=1))
        assert exc.value.reason == CouponRejectionReason.LIMIT_REACHED

    def test_inactive_checked_before_expiry(self, make_coupon):
        coupon = make_coupon(
            is_active=False, expire=timezone.now() - timedelta(days=1)
        )
        with pytest.raises(CouponRejected) as exc:
            CouponService.validate(coupon)
        assert exc.value.reason == CouponRejectionReason.INACTIVE

    def test_future_expiry_is_fine(self, make_coupon):
        CouponService.validate(make_coupon(expire=timezone.now() + timedelta(days=1)))


class TestLookup:
    def test_get_by_code_is_case_insensitive(self, service, make_coupon):
        coupon = make_coupon(code="SAVE10")
        assert service.get_by_code(" save10 ").id == coupon.id

    def test_get_by_code_missing(self, service):
        with pytest.raises(CouponNotFound):
            service.get_by_code("NOPE")

    def test_soft_deleted_coupon_is_missing(self, service, make_coupon):
        coupon = make_coupon(code="GONE")
        coupon.delete()
        with pytest.raises(CouponNotFound):
            service.get_by_code("GONE")

    def test_peek_does_not_mutate(self, service, make_coupon):
        coupon = make_coupon(limit=2)
        service.peek(str(coupon.id))
        service.peek(str(coupon.id), lock=True)
        coupon.refresh_from_db()
        assert coupon.used == 0

    def test_peek_unknown_id(self, service):
        with pytest.raises(CouponNotFound):
            service.peek(str(uuid4()))


# ---------------------------------------------------------------------------
# Redemption
# ---------------------------------------------------------------------------


class TestRedeem:
    def test_claims_one_use(self, service, make_coupon):
        coupon = make_coupon(limit=2)

        redeemed = service.redeem(str(coupon.id))

        assert redeemed.used == 1
        coupon.refresh_from_db()
        assert coupon.used == 1

    def test_unlimited_coupon_keeps_counting(self, service, make_coupon):
        coupon = make_coupon(limit=None)
        for _ in range(3):
            service.redeem(str(coupon.id))
        coupon.refresh_from_db()
        assert coupon.used == 3

    def test_last_use_then_limit_reached(self, service, make_coupon):
        coupon = make_coupon(limit=1)
        service.redeem(str(coupon.id))

        with pytest.raises(CouponRejected) as exc:
            service.redeem(str(coupon.id))

        assert exc.value.reason == CouponRejectionReason.LIMIT_REACHED
        coupon.refresh_from_db()
        assert coupon.used == 1

    def test_rejection_has_no_side_effect(self, service, make_coupon):
        coupon = make_coupon(is_active=False, limit=5)
        with pytest.raises(CouponRejected):
            service.redeem(str(coupon.id))
        coupon.refresh_from_db()
        assert coupon.used == 0

    def test_lost_race_reports_limit_reached(self, service, make_coupon):
        """Another transaction took the last use between lock and update."""
        coupon = make_coupon(limit=1)
        with patch.object(CouponDjangoRepository, "claim_use", return_value=False):
            with pytest.raises(CouponRejected) as exc:
                service.redeem(str(coupon.id))
        assert exc.value.reason == CouponRejectionReason.LIMIT_REACHED
        coupon.refresh_from_db()
        assert coupon.used == 0

    def test_claim_use_never_exceeds_limit(self, make_coupon):
        """The conditional UPDATE alone keeps ``used <= limit``."""
        repo = CouponDjangoRepository()
        coupon = make_coupon(limit=3)
        now = timezone.now()

        results = [repo.claim_use(str(coupon.id), now) for _ in range(10)]

        assert results.count(True) == 3
        coupon.refresh_from_db()
        assert coupon.used == 3

    def test_claim_use_respects_expiry(self, make_coupon):
        repo = CouponDjangoRepository()
        coupon = make_coupon(expire=timezone.now() - timedelta(seconds=1))
        assert repo.claim_use(str(coupon.id), timezone.now()) is False


class TestRelease:
    def test_release_gives_one_use_back(self, service, make_coupon):
        coupon = make_coupon(limit=2, used=2)

        assert service.release(str(coupon.id)) is True

        coupon.refresh_from_db()
        assert coupon.used == 1
        service.redeem(str(coupon.id))

    def test_release_never_goes_below_zero(self, service, make_coupon):
        coupon = make_coupon(used=0)

        assert service.release(str(coupon.id)) is False

        coupon.refresh_from_db()
        assert coupon.used == 0


class TestCouponDiscount:
    def test_percentage_of_total(self):
        assert coupon_discount(Decimal("300.00"), Decimal("10")) == Decimal("30.00")

    def test_rounds_half_up(self):
        assert coupon_discount(Decimal("10.05"), Decimal("50")) == Decimal("5.03")
