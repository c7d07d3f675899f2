import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _


class Refund(models.Model):
    """
    Refund ledger entry. Rows are appended, never edited after processing,
    and together never exceed the captured amount of their transaction.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PROCESSED = "processed", _("Processed")
        FAILED = "failed", _("Failed")

    class Source(models.TextChoices):
        STAFF = "staff", _("Staff")
        CANCELLATION = "cancellation", _("Order cancellation")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction = models.ForeignKey(
        "payments.Transaction",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text=_("The captured transaction being refunded"),
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="refunds",
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="INR")
    reason = models.TextField(blank=True)
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.STAFF)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    gateway_refund_id = models.CharField(max_length=100, blank=True)
    provider_response = models.JSONField(
        null=True,
        blank=True,
        help_text=_("Raw response from payment provider"),
    )

    initiated_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="initiated_refunds",
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["transaction", "status"]),
            models.Index(fields=["order", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(check=models.Q(amount__gt=0), name="refund_amount_positive"),
        ]

    def __str__(self):
        return f"Refund {self.amount} {self.currency} on {self.transaction_id} ({self.status})"
