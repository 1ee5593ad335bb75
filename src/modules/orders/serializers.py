"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business rules on shipping details live in the Pydantic DTOs the
views build from ``validated_data``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    customer_name = serializers.CharField()
    address = serializers.CharField()
    postal_code = serializers.CharField()
    address_detail = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    phone_number = serializers.CharField()


class CreateOrderSerializer(serializers.Serializer):
    """Validates the pending-order creation payload."""

    shipping_address = ShippingAddressSerializer()
    order_note = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    expected_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines (name and price snapshots)."""

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
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class ShippingSnapshotSerializer(serializers.Serializer):
    customer_name = serializers.CharField(source="shipping_name")
    address = serializers.CharField(source="shipping_address")
    postal_code = serializers.CharField(source="shipping_postal_code")
    address_detail = serializers.CharField(source="shipping_address_detail")
    phone_number = serializers.CharField(source="shipping_phone")


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    shipping_address = ShippingSnapshotSerializer(source="*", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "total_amount",
            "shipping_address",
            "order_note",
            "payment_reference",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the order list."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "total_amount",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return len(obj.items.all())
