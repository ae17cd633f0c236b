"""Cart API views.

The cart is a singleton resource per customer, so every route is a
``detail=False`` action on the ``cart/`` prefix.  Domain exceptions are
translated into status codes here; anything else propagates.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.carts.exceptions import CartItemNotFound, CouponAlreadyApplied
from modules.carts.reconciliation import CartReconciler
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import (
    AddProductSerializer,
    ApplyCouponSerializer,
    CartSerializer,
    CartSyncSerializer,
    WalletSerializer,
)
from modules.carts.services import CartService
from modules.coupons.exceptions import CouponNotFound, CouponRejected
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.services import CouponService
from modules.customers.mixins import CustomerContextMixin
from modules.products.exceptions import OutOfStock, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


def coupon_rejected_response(exc: CouponRejected) -> Response:
    return Response(
        {"detail": str(exc), "reason": exc.reason.value},
        status=status.HTTP_400_BAD_REQUEST,
    )


class CartViewSet(CustomerContextMixin, ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        product_repository = ProductDjangoRepository()
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=product_repository,
            coupon_service=CouponService(CouponDjangoRepository()),
            reconciler=CartReconciler(product_repository),
        )

    def _cart_response(self, cart) -> Response:
        return Response(CartSerializer(cart).data)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        return self._cart_response(self._service.get_cart(self.get_customer().id))

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"], url_path="products")
    def add_product(self, request: Request) -> Response:
        """POST /api/v1/cart/products/"""
        serializer = AddProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            cart = self._service.add_product(
                self.get_customer().id, data["product_id"], data["quantity"]
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except OutOfStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return self._cart_response(cart)

    @action(
        detail=False,
        methods=["delete"],
        url_path=r"products/(?P<product_id>[0-9a-fA-F-]{36})",
    )
    def remove_product(self, request: Request, product_id: str) -> Response:
        """DELETE /api/v1/cart/products/{product_id}/"""
        try:
            cart = self._service.remove_product(self.get_customer().id, product_id)
        except CartItemNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return self._cart_response(cart)

    # ------------------------------------------------------------------
    # Coupon / wallet
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post", "delete"], url_path="coupon")
    def coupon(self, request: Request) -> Response:
        """POST (apply) or DELETE (remove) /api/v1/cart/coupon/"""
        customer = self.get_customer()
        if request.method == "DELETE":
            return self._cart_response(self._service.remove_coupon(customer.id))

        serializer = ApplyCouponSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            cart = self._service.apply_coupon(
                customer.id, serializer.validated_data["code"]
            )
        except CouponNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except CouponRejected as exc:
            return coupon_rejected_response(exc)
        except CouponAlreadyApplied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return self._cart_response(cart)

    @action(detail=False, methods=["put"], url_path="wallet")
    def wallet(self, request: Request) -> Response:
        """PUT /api/v1/cart/wallet/ ``{"use_wallet": bool}``"""
        serializer = WalletSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.set_wallet(
            self.get_customer().id, serializer.validated_data["use_wallet"]
        )
        return self._cart_response(cart)

    # ------------------------------------------------------------------
    # Drift correction
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"], url_path="sync")
    def sync(self, request: Request) -> Response:
        """POST /api/v1/cart/sync/

        Writes clamped quantities and dropped lines back to the cart and
        detaches a coupon that can no longer be used.
        """
        outcome = self._service.sync(self.get_customer().id)
        return Response(CartSyncSerializer(outcome).data)
