"""
Refund API views.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
import logging

from users.permissions import IsStaffMember
from .serializers import RefundRequestSerializer, RefundSerializer
from .services import RefundProcessor

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffMember])
def process_refund(request):
    """
    Refund a captured payment, in full or in part.

    Request body:
    {
        "transaction_id": "uuid",   (or "order_id")
        "amount": "100.00",         (optional with order_id: full remaining amount)
        "reason": "Cold food"
    }
    """
    serializer = RefundRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    processor = RefundProcessor()
    reason = data.get("reason", "")
    if data.get("transaction_id"):
        refund = processor.refund(
            data["transaction_id"], data["amount"], reason=reason, initiated_by=request.user
        )
    else:
        refund = processor.refund_order(
            data["order_id"], amount=data.get("amount"), reason=reason, initiated_by=request.user
        )

    logger.info(f"Refund {refund.id} processed by user {request.user.id}")
    return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)
