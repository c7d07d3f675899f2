"""
Serializers for refund requests and the refund ledger.
"""

from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from .models import Refund


class RefundRequestSerializer(serializers.Serializer):
    """
    Staff refund request. Either a transaction or an order is named; an
    omitted amount on an order refunds everything still refundable.
    """

    transaction_id = serializers.UUIDField(required=False)
    order_id = serializers.UUIDField(required=False)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate(self, attrs):
        if not attrs.get("transaction_id") and not attrs.get("order_id"):
            raise serializers.ValidationError("Either transaction_id or order_id is required.")
        if attrs.get("transaction_id") and attrs.get("amount") is None:
            raise serializers.ValidationError({"amount": "Amount is required when refunding a transaction."})
        return attrs


class RefundSerializer(BaseModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Refund
        fields = [
            "id",
            "transaction",
            "order",
            "order_number",
            "amount",
            "currency",
            "reason",
            "source",
            "status",
            "gateway_refund_id",
            "initiated_by",
            "created_at",
            "processed_at",
        ]
        read_only_fields = fields
