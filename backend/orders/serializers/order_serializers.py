from rest_framework import serializers

from core_backend.base import BaseModelSerializer, TimestampedSerializer
from orders.models import Order, OrderItem, OrderItemAddOn


class OrderLineInputSerializer(serializers.Serializer):
    """One cart line as sent by the client. Prices are never accepted."""

    item_size_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=100)
    add_ons = serializers.ListField(
        child=serializers.IntegerField(min_value=1), required=False, default=list
    )


class OrderCreateSerializer(serializers.Serializer):
    address_id = serializers.UUIDField()
    items = OrderLineInputSerializer(many=True, allow_empty=False)
    offer_code = serializers.CharField(required=False, allow_blank=True, max_length=50)
    special_instructions = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    client_total = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        required=False,
        help_text="Total shown to the customer; rejected if it differs from the server total.",
    )

    def validate_offer_code(self, value):
        return value.strip().upper()


class OrderItemAddOnSerializer(BaseModelSerializer):
    class Meta:
        model = OrderItemAddOn
        fields = ["id", "add_on", "name", "price"]
        read_only_fields = fields


class OrderItemSerializer(BaseModelSerializer):
    add_ons = OrderItemAddOnSerializer(many=True, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "item_size",
            "item_name",
            "size_name",
            "category_name",
            "unit_price",
            "gst_rate",
            "quantity",
            "line_total",
            "gst_amount",
            "add_ons",
        ]
        read_only_fields = fields


class OrderSerializer(TimestampedSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    offer_code = serializers.CharField(source="offer.code", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "status",
            "payment_status",
            "payment_method",
            "gateway_order_id",
            "currency",
            "subtotal",
            "gst_amount",
            "discount_amount",
            "delivery_charge",
            "total_price",
            "offer_code",
            "delivery_address",
            "special_instructions",
            "refund_eligible",
            "cancelled_by_role",
            "cancellation_reason",
            "items",
            "created_at",
            "updated_at",
            "paid_at",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
        ]
        read_only_fields = fields
        select_related_fields = ["offer", "customer"]
        prefetch_related_fields = ["items__add_ons"]
