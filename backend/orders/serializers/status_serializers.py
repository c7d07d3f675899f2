from rest_framework import serializers
from orders.models import Order


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Serializer specifically for validating a staff status change. Whether the
    transition is allowed is decided by the order state machine.
    """

    status = serializers.ChoiceField(choices=Order.Status.choices)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)
    expected_status = serializers.ChoiceField(
        choices=Order.Status.choices,
        required=False,
        help_text="Status the caller last saw; a cancel against a changed order is a conflict.",
    )
