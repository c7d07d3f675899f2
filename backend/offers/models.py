from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinLengthValidator
from decimal import Decimal


class Offer(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FLAT = "flat", "Flat Amount"
        FREE_DELIVERY = "free_delivery", "Free Delivery"

    code = models.CharField(
        max_length=50,
        unique=True,
        validators=[MinLengthValidator(3)],
        help_text="Code customers enter at checkout. Stored upper-case.",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
    )
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Percentage or flat amount. Ignored for free delivery.",
    )
    max_discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Upper bound for percentage discounts.",
    )
    min_order_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="The minimum subtotal required for the offer to apply.",
    )

    # Restrict the offer to a category or a single item
    applicable_category = models.ForeignKey(
        "menu.Category", on_delete=models.SET_NULL, null=True, blank=True, related_name="offers"
    )
    applicable_item = models.ForeignKey(
        "menu.Item", on_delete=models.SET_NULL, null=True, blank=True, related_name="offers"
    )

    first_order_only = models.BooleanField(default=False)
    max_uses_per_user = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Leave empty for unlimited redemptions.",
    )

    valid_from = models.DateTimeField(null=True, blank=True)
    valid_to = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "valid_from", "valid_to"]),
        ]

    def __str__(self):
        return f"{self.code} ({self.get_discount_type_display()})"

    def clean(self):
        super().clean()

        if self.discount_type != self.DiscountType.FREE_DELIVERY and self.discount_value <= 0:
            raise ValidationError({
                'discount_value': 'Discount value must be greater than zero.'
            })

        if self.discount_type == self.DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValidationError({
                'discount_value': 'Percentage discount cannot exceed 100%.'
            })

        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValidationError({
                'valid_to': 'Offer must end after it starts.'
            })

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)
