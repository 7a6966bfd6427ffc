"""Cart DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.carts.models import Cart, CartLine

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpsertCartLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    supplier_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    desired_delivery_date = serializers.DateField(required=False, allow_null=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CartLineSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = CartLine
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "supplier_id",
            "supplier_name",
            "quantity",
            "desired_delivery_date",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    lines = CartLineSerializer(many=True, read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "station_id",
            "status",
            "created_by",
            "created_at",
            "updated_at",
            "lines",
        ]
        read_only_fields = fields
