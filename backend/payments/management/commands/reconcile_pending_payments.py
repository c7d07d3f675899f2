from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from orders.models import Order
from payments.gateway import GatewayAPI, GatewayConfig
from payments.models import Transaction
from payments.services import PaymentGatewayClient


class Command(BaseCommand):
    help = (
        "Ask the payment gateway about orders still waiting for payment and apply any\n"
        "captures whose client callback never arrived.\n"
        "Usage: python manage.py reconcile_pending_payments [--minutes 15] [--dry-run]"
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            dest="minutes",
            type=int,
            default=getattr(settings, "PAYMENT_RECONCILE_AFTER_MINUTES", 15),
            help="Only check transactions opened at least this many minutes ago",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            dest="dry_run",
            help="List the orders that would be checked without calling the gateway",
        )

    def handle(self, *args, **options):
        minutes = options["minutes"]
        if minutes < 0:
            raise CommandError("--minutes must not be negative")

        cutoff = timezone.now() - timedelta(minutes=minutes)
        order_ids = list(
            Transaction.objects.filter(
                status__in=Transaction.OPEN_STATUSES,
                created_at__lte=cutoff,
                order__status=Order.Status.PENDING_PAYMENT,
            )
            .exclude(gateway_order_id__isnull=True)
            .values_list("order_id", flat=True)
            .distinct()
        )

        if not order_ids:
            self.stdout.write("No pending payments to reconcile.")
            return

        if options["dry_run"]:
            self.stdout.write(f"{len(order_ids)} order(s) would be checked:")
            for order_id in order_ids:
                self.stdout.write(f" - {order_id}")
            return

        config = GatewayConfig.from_settings()
        client = PaymentGatewayClient(api=GatewayAPI(config), config=config)

        paid = 0
        for order_id in order_ids:
            result = client.check_status(order_id)
            if result["payment_status"] == Order.PaymentStatus.COMPLETED:
                paid += 1
                self.stdout.write(f" - {order_id}: payment captured")
            else:
                self.stdout.write(f" - {order_id}: {result['payment_status']}")

        self.stdout.write(
            self.style.SUCCESS(f"Checked {len(order_ids)} order(s); {paid} newly paid.")
        )
