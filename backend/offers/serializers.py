from rest_framework import serializers

from orders.serializers import OrderLineInputSerializer


class OfferPreviewSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    items = OrderLineInputSerializer(many=True, allow_empty=False)

    def validate_code(self, value):
        return value.strip().upper()
