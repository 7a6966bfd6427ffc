"""Purchase order and master order DRF serializers.

Serializers operate at the interface layer only.  Business rules live
in the service layer, which receives Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import (
    MasterOrder,
    NonConformity,
    OrderLine,
    OrderStatusHistory,
    PurchaseOrder,
)

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderLineUpdateSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    confirmed_delivery_date = serializers.DateField(required=False, allow_null=True)
    quantity_received = serializers.IntegerField(
        required=False, allow_null=True, min_value=0
    )


class NonConformityInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=2000)
    quantity_affected = serializers.IntegerField(min_value=0, default=0)
    photo_keys = serializers.ListField(
        child=serializers.CharField(max_length=512), required=False, default=list
    )


class TransitionOrderSerializer(serializers.Serializer):
    """Validates a status transition request.

    Status names are case-insensitive (``"Confirmed"`` and ``"CONFIRMED"``
    are the same target).  Whether the target is known, reachable and
    fully specified is decided by the workflow, not here.
    """

    status = serializers.CharField(max_length=20)
    expected_status = serializers.CharField(
        max_length=20, required=False, allow_blank=True, default=None
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    lines = OrderLineUpdateSerializer(many=True, required=False, default=list)
    carrier = serializers.CharField(
        max_length=120, required=False, default="", allow_blank=True
    )
    tracking_number = serializers.CharField(
        max_length=120, required=False, default="", allow_blank=True
    )
    shipment_proof_key = serializers.CharField(
        max_length=512, required=False, default="", allow_blank=True
    )
    reception_proof_key = serializers.CharField(
        max_length=512, required=False, default="", allow_blank=True
    )
    non_conformities = NonConformityInputSerializer(
        many=True, required=False, default=list
    )

    def validate_status(self, value: str) -> str:
        return value.strip().upper()

    def validate_expected_status(self, value):
        return value.strip().upper() if value else None


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    """Order line with its frozen supplier terms."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "packaging_unit",
            "quantity_per_package",
            "supplier_reference",
            "subtotal",
            "desired_delivery_date",
            "confirmed_delivery_date",
            "quantity_received",
        ]
        read_only_fields = fields


class NonConformitySerializer(serializers.ModelSerializer):
    class Meta:
        model = NonConformity
        fields = [
            "id",
            "stage",
            "description",
            "quantity_affected",
            "photo_keys",
            "reported_by",
            "created_at",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "actor_id",
            "actor_role",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class PurchaseOrderSerializer(serializers.ModelSerializer):
    """Full purchase order with lines, non-conformities and history."""

    lines = OrderLineSerializer(many=True, read_only=True)
    non_conformities = NonConformitySerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "order_number",
            "master_order_id",
            "station_id",
            "supplier_id",
            "status",
            "total_amount",
            "carrier",
            "tracking_number",
            "shipment_proof_key",
            "shipped_at",
            "reception_proof_key",
            "received_at",
            "created_by",
            "created_at",
            "updated_at",
            "lines",
            "non_conformities",
            "status_history",
        ]
        read_only_fields = fields


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "order_number",
            "master_order_id",
            "station_id",
            "supplier_id",
            "status",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields


class MasterOrderSerializer(serializers.ModelSerializer):
    purchase_orders = PurchaseOrderListSerializer(many=True, read_only=True)

    class Meta:
        model = MasterOrder
        fields = [
            "id",
            "reference",
            "station_id",
            "aggregate_status",
            "total_amount",
            "created_by",
            "created_at",
            "updated_at",
            "purchase_orders",
        ]
        read_only_fields = fields
