import uuid
from decimal import Decimal
from django.db import models
from django.utils.translation import gettext_lazy as _

from .money import to_minor


class Transaction(models.Model):
    """
    One payment attempt at the gateway. A failed attempt is never turned into
    a success; retrying creates a new row.
    """

    class Status(models.TextChoices):
        CREATED = "created", _("Created")
        AUTHORIZED = "authorized", _("Authorized")
        CAPTURED = "captured", _("Captured")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    OPEN_STATUSES = (Status.CREATED, Status.AUTHORIZED)
    REFUNDABLE_STATUSES = (Status.CAPTURED, Status.AUTHORIZED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    gateway = models.CharField(max_length=30, default="razorpay")
    gateway_order_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    gateway_payment_id = models.CharField(max_length=100, null=True, blank=True)
    signature = models.CharField(max_length=256, blank=True)

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Amount in major units. Immutable once saved."),
    )
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.CREATED, db_index=True
    )
    refunded_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )

    # --- Payment method details reported by the gateway ---
    payment_method = models.CharField(max_length=30, blank=True)
    upi_vpa = models.CharField(max_length=100, blank=True)
    card_network = models.CharField(max_length=30, blank=True)
    card_last4 = models.CharField(max_length=4, blank=True)
    bank_name = models.CharField(max_length=100, blank=True)
    wallet_name = models.CharField(max_length=50, blank=True)

    error_code = models.CharField(max_length=100, blank=True)
    error_description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    captured_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "status"]),
            models.Index(fields=["gateway_payment_id"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status__in=["created", "authorized"]),
                name="one_open_transaction_per_order",
            ),
            models.UniqueConstraint(
                fields=["gateway", "gateway_payment_id"],
                condition=models.Q(gateway_payment_id__isnull=False),
                name="unique_gateway_payment_id",
            ),
            models.CheckConstraint(
                check=models.Q(amount__gte=0) & models.Q(refunded_amount__gte=0),
                name="transaction_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return f"Transaction {self.gateway_order_id or self.pk} ({self.status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_amount = instance.__dict__.get("amount")
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, "_loaded_amount", None)
        if loaded is not None and self.amount != loaded:
            raise ValueError(f"Transaction {self.pk}: amount cannot change once recorded")
        super().save(*args, **kwargs)
        self._loaded_amount = self.amount

    @property
    def amount_minor(self):
        return to_minor(self.currency, self.amount)

    @property
    def refundable_amount(self):
        return self.amount - self.refunded_amount

    @classmethod
    def refundable_for_order(cls, order_id):
        """Captured transactions of an order with money not yet refunded."""
        return cls.objects.filter(
            order_id=order_id,
            status__in=cls.REFUNDABLE_STATUSES,
            refunded_amount__lt=models.F("amount"),
        )
