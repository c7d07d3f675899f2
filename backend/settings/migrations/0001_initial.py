from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RestaurantSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(default="Restaurant", max_length=100)),
                ("phone", models.CharField(blank=True, max_length=20)),
                (
                    "currency",
                    models.CharField(default="INR", help_text="Three-letter currency code (ISO 4217).", max_length=3),
                ),
                (
                    "delivery_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("40.00"),
                        help_text="Flat delivery charge added to every order.",
                        max_digits=10,
                    ),
                ),
                (
                    "minimum_order_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Orders with a lower subtotal are rejected.",
                        max_digits=10,
                    ),
                ),
                (
                    "is_manually_closed",
                    models.BooleanField(
                        default=False,
                        help_text="When set, new orders are refused regardless of time of day.",
                    ),
                ),
                ("manual_closure_reason", models.CharField(blank=True, max_length=255)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Restaurant Settings",
                "verbose_name_plural": "Restaurant Settings",
            },
        ),
    ]
