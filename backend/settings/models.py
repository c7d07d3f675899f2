from django.db import models
from django.core.exceptions import ValidationError
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)


class RestaurantSettings(models.Model):
    """
    Restaurant-wide settings. There is exactly one row; use
    ``RestaurantSettings.load()`` (or ``settings.config.app_settings``) to read it.

    Delivery fee and minimum order value are applied server-side when an
    order is priced; clients never submit them.
    """

    name = models.CharField(max_length=100, default="Restaurant")
    phone = models.CharField(max_length=20, blank=True)

    # === FINANCIAL RULES ===
    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="Three-letter currency code (ISO 4217).",
    )
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("40.00"),
        help_text="Flat delivery charge added to every order.",
    )
    minimum_order_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Orders with a lower subtotal are rejected.",
    )

    # === OPERATIONS ===
    is_manually_closed = models.BooleanField(
        default=False,
        help_text="When set, new orders are refused regardless of time of day.",
    )
    manual_closure_reason = models.CharField(max_length=255, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Restaurant Settings"
        verbose_name_plural = "Restaurant Settings"

    def clean(self):
        if RestaurantSettings.objects.exclude(pk=self.pk).exists():
            raise ValidationError("There can only be one RestaurantSettings instance.")
        if self.delivery_fee < 0 or self.minimum_order_value < 0:
            raise ValidationError("Delivery fee and minimum order value cannot be negative.")

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    @classmethod
    def load(cls):
        obj = cls.objects.first()
        if obj is None:
            obj = cls()
            obj.save()
            logger.info("Created default RestaurantSettings instance")
        return obj

    def __str__(self):
        return f"Restaurant Settings ({self.name})"
