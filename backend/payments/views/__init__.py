from .customer import InitiatePaymentView, VerifyPaymentView, CheckPaymentStatusView
from .webhooks import GatewayWebhookView

__all__ = [
    "InitiatePaymentView",
    "VerifyPaymentView",
    "CheckPaymentStatusView",
    "GatewayWebhookView",
]
