"""Order API views.

Exposes ``OrderService`` via HTTP using a DRF ``GenericViewSet``.
Domain exceptions are caught and translated into status codes; the
view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.views import coupon_rejected_response
from modules.coupons.exceptions import CouponRejected
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.services import CouponService
from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.customers.mixins import CustomerContextMixin
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import OrderDraftDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import (
    CartDrifted,
    EmptyCart,
    ForbiddenTransition,
    InsufficientStock,
    InvalidOrderStatus,
    NotACourier,
    OrderAccessDenied,
    OrderNotFound,
    OrderStorageFailure,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderDraftSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def _drift_response(draft: OrderDraftDTO) -> Response:
    return Response(
        {
            "detail": "Cart changed since it was last checked.",
            "draft": OrderDraftSerializer(draft).data,
        },
        status=status.HTTP_409_CONFLICT,
    )


class OrderViewSet(CustomerContextMixin, GenericViewSet):
    """ViewSet for checkout and order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            coupon_service=CouponService(CouponDjangoRepository()),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "check"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.visible_orders(self.get_customer())

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def check(self, request: Request) -> Response:
        """GET /api/v1/orders/check/

        Dry-run pricing of the current cart.  A drifted draft comes back
        with 409 so the client can show the corrections.
        """
        try:
            draft = self._service.check_order(self.get_customer().id)
        except EmptyCart as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InactiveCustomer as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        if draft.drifted:
            return _drift_response(draft)
        return Response(OrderDraftSerializer(draft).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Commits the caller's cart.  Supports idempotency via the
        ``Idempotency-Key`` header: a replay returns the original order.
        """
        idempotency_key = request.headers.get("Idempotency-Key") or None
        customer = self.get_customer()

        try:
            order = self._service.create_order(customer.id, idempotency_key)
        except CustomerNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (EmptyCart, InactiveCustomer) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except CouponRejected as exc:
            return coupon_rejected_response(exc)
        except CartDrifted as exc:
            return _drift_response(exc.draft)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except OrderStorageFailure as exc:
            return Response(
                {"detail": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Plain users only ever see their own orders.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, self.get_customer())
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except OrderAccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ ``{status, delivery?, notes?}``"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dto = UpdateOrderStatusDTO(
            status=data["status"],
            delivery_id=data.get("delivery"),
            notes=data.get("notes", ""),
        )

        try:
            order = self._service.update_status(pk, self.get_customer(), dto)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except CustomerNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (ForbiddenTransition, NotACourier) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)
