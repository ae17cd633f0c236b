from __future__ import annotations

from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.coupons.models import Coupon
from modules.customers.models import Customer, CustomerRole
from modules.products.models import Product

User = get_user_model()

_sequence = count(1)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; keep tests independent."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_customer():
    def _make(
        role: str = CustomerRole.USER,
        wallet: str = "0.00",
        distance_km: str = "10",
        is_active: bool = True,
        **extra,
    ) -> Customer:
        n = next(_sequence)
        user = User.objects.create_user(username=f"user{n}", password="testpass123")
        return Customer.objects.create(
            user=user,
            name=extra.pop("name", f"Customer {n}"),
            phone=extra.pop("phone", f"+96477{n:08d}"),
            role=role,
            wallet=Decimal(wallet),
            distance_km=Decimal(distance_km),
            is_active=is_active,
            **extra,
        )

    return _make


@pytest.fixture()
def make_product():
    def _make(
        amount: int = 10,
        price_net: str = "100.00",
        price_org: str = "60.00",
        discount_percent=None,
        **extra,
    ) -> Product:
        n = next(_sequence)
        return Product.objects.create(
            name=extra.pop("name", f"Product {n}"),
            price_org=Decimal(price_org),
            price_net=Decimal(price_net),
            discount_percent=(
                Decimal(str(discount_percent)) if discount_percent is not None else None
            ),
            amount=amount,
            **extra,
        )

    return _make


@pytest.fixture()
def make_coupon():
    def _make(value: str = "10", limit=None, used: int = 0, **extra) -> Coupon:
        n = next(_sequence)
        return Coupon.objects.create(
            code=extra.pop("code", f"CODE{n}"),
            value=Decimal(value),
            limit=limit,
            used=used,
            **extra,
        )

    return _make


@pytest.fixture()
def customer(make_customer):
    return make_customer()


@pytest.fixture()
def client_for():
    """APIClient authenticated as the auth user behind a customer."""

    def _client(customer: Customer) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=customer.user)
        return client

    return _client
