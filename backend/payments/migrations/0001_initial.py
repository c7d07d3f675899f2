from decimal import Decimal
import uuid
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("gateway", models.CharField(default="razorpay", max_length=30)),
                ("gateway_order_id", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ("gateway_payment_id", models.CharField(blank=True, max_length=100, null=True)),
                ("signature", models.CharField(blank=True, max_length=256)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Amount in major units. Immutable once saved.", max_digits=10
                    ),
                ),
                ("currency", models.CharField(default="INR", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("authorized", "Authorized"),
                            ("captured", "Captured"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="created",
                        max_length=20,
                    ),
                ),
                ("refunded_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("payment_method", models.CharField(blank=True, max_length=30)),
                ("upi_vpa", models.CharField(blank=True, max_length=100)),
                ("card_network", models.CharField(blank=True, max_length=30)),
                ("card_last4", models.CharField(blank=True, max_length=4)),
                ("bank_name", models.CharField(blank=True, max_length=100)),
                ("wallet_name", models.CharField(blank=True, max_length=50)),
                ("error_code", models.CharField(blank=True, max_length=100)),
                ("error_description", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("captured_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["order", "status"], name="payments_tr_order_i_7a2c4e_idx"),
                    models.Index(fields=["gateway_payment_id"], name="payments_tr_gateway_1d5b93_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["created", "authorized"])),
                        fields=("order",),
                        name="one_open_transaction_per_order",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("gateway_payment_id__isnull", False)),
                        fields=("gateway", "gateway_payment_id"),
                        name="unique_gateway_payment_id",
                    ),
                    models.CheckConstraint(
                        check=models.Q(("amount__gte", 0), ("refunded_amount__gte", 0)),
                        name="transaction_amounts_non_negative",
                    ),
                ],
            },
        ),
    ]
