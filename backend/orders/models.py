import uuid
import random
import string
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils.translation import gettext_lazy as _
from django.utils import timezone


class Order(models.Model):
    # --- Status Fields ---
    class Status(models.TextChoices):
        PENDING_PAYMENT = "pending_payment", _("Pending Payment")  # Created, waiting for the gateway
        PENDING = "pending", _("Pending")  # Paid, waiting for the kitchen to accept
        CONFIRMED = "confirmed", _("Confirmed")
        PREPARING = "preparing", _("Preparing")
        READY = "ready", _("Ready")
        OUT_FOR_DELIVERY = "out_for_delivery", _("Out for Delivery")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PROCESSING = "processing", _("Processing")  # Gateway intent open
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=20, unique=True, blank=True)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    address = models.ForeignKey(
        "customers.CustomerAddress",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_address = models.TextField(
        help_text=_("Address as it was when the order was placed.")
    )
    offer = models.ForeignKey(
        "offers.Offer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING_PAYMENT,
        db_index=True,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    payment_method = models.CharField(max_length=50, blank=True)
    gateway_order_id = models.CharField(max_length=100, blank=True, db_index=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True)

    # --- Financial Fields (server-calculated only) ---
    currency = models.CharField(max_length=3, default="INR")
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    gst_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    special_instructions = models.TextField(blank=True)

    # --- Cancellation / refund ---
    refund_eligible = models.BooleanField(
        default=False,
        help_text=_("Set when a paid order is cancelled and its payment must be returned."),
    )
    cancelled_by_role = models.CharField(max_length=20, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)

    # --- Timestamps ---
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "status"]),
            models.Index(fields=["status", "payment_status"]),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(subtotal__gte=0)
                & models.Q(gst_amount__gte=0)
                & models.Q(discount_amount__gte=0)
                & models.Q(delivery_charge__gte=0)
                & models.Q(total_price__gte=0),
                name="order_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} - {self.status}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = self._generate_order_number()
        super().save(*args, **kwargs)

    @staticmethod
    def _generate_order_number():
        suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"ORD-{timezone.now():%y%m%d}-{suffix}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_paid(self):
        return self.payment_status == self.PaymentStatus.COMPLETED

    def expected_total(self):
        """Total implied by the stored components, floored at zero."""
        total = self.subtotal + self.gst_amount + self.delivery_charge - self.discount_amount
        return max(total, Decimal("0.00"))


class OrderItem(models.Model):
    """
    One cart line, with the catalog values frozen at order time. Later price
    or rate changes in the menu never touch existing orders.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    item_size = models.ForeignKey(
        "menu.ItemSize",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    item_name = models.CharField(max_length=200)
    size_name = models.CharField(max_length=50)
    category_name = models.CharField(max_length=100, blank=True)
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, help_text=_("Size price at order time.")
    )
    gst_rate = models.DecimalField(
        max_digits=5, decimal_places=2, help_text=_("Category GST % at order time.")
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    line_total = models.DecimalField(max_digits=10, decimal_places=2)
    gst_amount = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1), name="order_item_quantity_positive"
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.item_name} ({self.size_name})"


class OrderItemAddOn(models.Model):
    order_item = models.ForeignKey(OrderItem, on_delete=models.CASCADE, related_name="add_ons")
    add_on = models.ForeignKey(
        "menu.AddOn",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_item_add_ons",
    )
    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    def __str__(self):
        return f"{self.name} (+{self.price})"
