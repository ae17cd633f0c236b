import pytest
from django.contrib import admin

from modules.coupons.models import Coupon
from modules.customers.models import Customer
from modules.products.models import Product

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("model", [Product, Coupon, Customer])
def test_catalogue_models_are_managed_through_admin(model):
    assert admin.site.is_registered(model)


def test_coupon_usage_is_read_only_in_admin():
    assert "used" in admin.site._registry[Coupon].readonly_fields


def test_coupon_admin_lists_remaining_uses(make_coupon):
    coupon_admin = admin.site._registry[Coupon]
    assert "remaining" in coupon_admin.list_display
    assert make_coupon(limit=5, used=2).remaining == 3
    assert make_coupon(limit=None).remaining is None
