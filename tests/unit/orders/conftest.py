from __future__ import annotations

from decimal import Decimal

import pytest

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.services import CouponService
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


@pytest.fixture()
def cart_service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        coupon_service=CouponService(CouponDjangoRepository()),
    )


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        coupon_service=CouponService(CouponDjangoRepository()),
        rate_per_km=Decimal("5"),
    )
