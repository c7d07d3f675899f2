from rest_framework import serializers


class InitiatePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class VerifyPaymentSerializer(serializers.Serializer):
    # Missing values are rejected by the verifier as a signature mismatch
    gateway_order_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    gateway_payment_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    signature = serializers.CharField(max_length=256, required=False, allow_blank=True, default="")


class CheckPaymentStatusSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
