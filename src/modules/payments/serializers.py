"""Payment DRF serializers for API input."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.serializers import ShippingAddressSerializer


class ConfirmPaymentSerializer(serializers.Serializer):
    """The gateway's redirect parameters as forwarded by the browser."""

    payment_key = serializers.CharField()
    order_id = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    shipping_address = ShippingAddressSerializer(required=False, allow_null=True)
    order_note = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
