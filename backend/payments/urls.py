from django.urls import path
from .views import (
    InitiatePaymentView,
    VerifyPaymentView,
    CheckPaymentStatusView,
    GatewayWebhookView,
)

app_name = "payments"

urlpatterns = [
    path("initiate/", InitiatePaymentView.as_view(), name="initiate-payment"),
    path("verify/", VerifyPaymentView.as_view(), name="verify-payment"),
    path("check-status/", CheckPaymentStatusView.as_view(), name="check-payment-status"),
    path("webhooks/gateway/", GatewayWebhookView.as_view(), name="gateway-webhook"),
]
