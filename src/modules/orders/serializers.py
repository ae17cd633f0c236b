"""Order DRF serializers for API input/output.

Serializers validate at the HTTP boundary; the service layer receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpdateOrderStatusSerializer(serializers.Serializer):
    """``PATCH orders/{id}/`` payload."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    delivery = serializers.UUIDField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, default="", allow_blank=True)

    def to_internal_value(self, data):
        if isinstance(data, dict) and isinstance(data.get("status"), str):
            data = {**data, "status": data["status"].lower()}
        return super().to_internal_value(data)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class MoneyField(serializers.DecimalField):
    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("read_only", True)
        super().__init__(max_digits=12, decimal_places=2, **kwargs)


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    coupon = serializers.CharField(source="coupon.code", read_only=True, default=None)
    final_cost = MoneyField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "delivery_id",
            "status",
            "total",
            "profit",
            "delivery_fee",
            "wallet_amount",
            "coupon_amount",
            "final_cost",
            "coupon",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    final_cost = MoneyField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "delivery_id",
            "status",
            "total",
            "final_cost",
            "created_at",
        ]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Draft (check / drift responses)
# ---------------------------------------------------------------------------


class DraftLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    requested_quantity = serializers.IntegerField()
    quantity = serializers.IntegerField()
    unit_price = MoneyField()
    subtotal = MoneyField()
    clamped = serializers.BooleanField()


class CostBreakdownSerializer(serializers.Serializer):
    total = MoneyField()
    profit = MoneyField()
    delivery = MoneyField()
    wallet = MoneyField()
    coupon = MoneyField()
    final_cost = MoneyField()


class OrderDraftSerializer(serializers.Serializer):
    """Renders an ``OrderDraftDTO``."""

    lines = DraftLineSerializer(many=True)
    dropped_product_ids = serializers.ListField(child=serializers.UUIDField())
    costs = CostBreakdownSerializer()
    altered = serializers.BooleanField()
    coupon_code = serializers.CharField(allow_null=True)
    coupon_rejection = serializers.CharField(allow_null=True)
    use_wallet = serializers.BooleanField()
    drifted = serializers.BooleanField()
