"""Cart DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.carts.models import Cart, CartItem
from modules.products.pricing import effective_price

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AddProductSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class ApplyCouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50, trim_whitespace=True)


class WalletSerializer(serializers.Serializer):
    use_wallet = serializers.BooleanField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CartItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    unit_price = serializers.SerializerMethodField()
    in_stock = serializers.IntegerField(source="product.amount", read_only=True)

    class Meta:
        model = CartItem
        fields = ["product_id", "product_name", "quantity", "unit_price", "in_stock"]
        read_only_fields = fields

    def get_unit_price(self, obj: CartItem) -> str:
        return str(effective_price(obj.product))


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    coupon = serializers.CharField(source="coupon.code", read_only=True, default=None)

    class Meta:
        model = Cart
        fields = ["id", "items", "coupon", "use_wallet", "updated_at"]
        read_only_fields = fields


class ReconciledLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    requested_quantity = serializers.IntegerField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    clamped = serializers.BooleanField()


class CartSyncSerializer(serializers.Serializer):
    """Renders a ``CartSync`` for ``POST cart/sync/``."""

    altered = serializers.BooleanField()
    total = serializers.DecimalField(
        source="reconciliation.total", max_digits=12, decimal_places=2
    )
    lines = ReconciledLineSerializer(source="reconciliation.lines", many=True)
    dropped_product_ids = serializers.ListField(
        source="reconciliation.dropped_product_ids", child=serializers.UUIDField()
    )
    coupon_rejection = serializers.CharField(allow_null=True)
    cart = CartSerializer()
