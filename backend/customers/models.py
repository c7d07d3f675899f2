import uuid

from django.conf import settings
from django.db import models


class CustomerAddress(models.Model):
    """Customer delivery addresses"""

    class Label(models.TextChoices):
        HOME = 'home', 'Home'
        WORK = 'work', 'Work'
        OTHER = 'other', 'Other'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='addresses'
    )

    label = models.CharField(
        max_length=10,
        choices=Label.choices,
        default=Label.HOME
    )
    is_default = models.BooleanField(default=False)

    # Address details
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=50, default='India')
    landmark = models.CharField(max_length=255, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers_customer_address'
        verbose_name = 'Customer Address'
        verbose_name_plural = 'Customer Addresses'
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return f"{self.get_label_display()} address ({self.city})"

    def snapshot(self):
        """
        Single-line copy of the address stored on an order, so later edits
        or deletion of the address never change an existing order.

        e.g. "12 MG Road, Flat 4, Bengaluru, Karnataka - 560001, India (Near: Metro)"
        """
        parts = [self.address_line1]
        if self.address_line2:
            parts.append(self.address_line2)
        parts.append(self.city)
        text = ", ".join(parts)
        text += f", {self.state} - {self.postal_code}, {self.country}"
        if self.landmark:
            text += f" (Near: {self.landmark})"
        return text
