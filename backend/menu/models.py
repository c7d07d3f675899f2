from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


DEFAULT_GST_RATE = Decimal("5.00")


class Category(models.Model):
    name = models.CharField(_("name"), max_length=100, unique=True)
    description = models.TextField(blank=True)
    gst_rate = models.DecimalField(
        _("GST rate (%)"),
        max_digits=5,
        decimal_places=2,
        default=DEFAULT_GST_RATE,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text=_("GST percentage applied to every item in this category."),
    )
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name_plural = "categories"
        ordering = ["display_order", "name"]

    def __str__(self):
        return self.name


class Item(models.Model):
    category = models.ForeignKey(
        Category, on_delete=models.PROTECT, related_name="items"
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    is_veg = models.BooleanField(default=True)
    is_available = models.BooleanField(
        default=True, help_text=_("Unavailable items cannot be ordered.")
    )

    class Meta:
        ordering = ["category__display_order", "name"]
        indexes = [models.Index(fields=["category", "is_available"])]

    def __str__(self):
        return self.name


class ItemSize(models.Model):
    """A priced variant of an item (e.g. Regular / Large)."""

    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="sizes")
    size = models.CharField(max_length=50, default="Regular")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    is_available = models.BooleanField(default=True)

    class Meta:
        unique_together = ("item", "size")
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gte=0), name="menu_itemsize_price_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.item.name} ({self.size})"

    @property
    def is_orderable(self):
        return (
            self.is_available
            and self.item.is_available
            and self.item.category.is_active
        )


class AddOn(models.Model):
    name = models.CharField(max_length=100)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gte=0), name="menu_addon_price_non_negative"
            ),
        ]

    def __str__(self):
        return self.name
