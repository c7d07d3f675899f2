from decimal import Decimal
from typing import List, Dict, Any, Optional
import logging

from django.db import transaction

from core_backend.exceptions import (
    AvailabilityError,
    OfferInvalidError,
    PriceMismatchError,
    ValidationError,
)
from customers.models import CustomerAddress
from menu.services import CatalogService
from offers.services import OfferValidator
from payments.money import format_money
from settings.config import app_settings
from users.models import User
from ..calculators import PriceCalculator, PriceLine
from ..models import Order, OrderItem, OrderItemAddOn
from ..signals import OrderEvent, emit_order_event
from ..state_machine import OrderStateMachine

logger = logging.getLogger(__name__)


class OrderService:
    """Order creation and staff-driven status changes."""

    STATUS_EVENTS = {
        Order.Status.CONFIRMED: OrderEvent.ORDER_CONFIRMED,
        Order.Status.PREPARING: OrderEvent.ORDER_PREPARING,
        Order.Status.READY: OrderEvent.ORDER_READY,
        Order.Status.OUT_FOR_DELIVERY: OrderEvent.ORDER_OUT_FOR_DELIVERY,
        Order.Status.COMPLETED: OrderEvent.ORDER_COMPLETED,
    }

    @staticmethod
    def price_cart(customer: User, items: List[Dict[str, Any]], offer_code: Optional[str] = None):
        """
        Resolve a cart against the menu and price it. Returns
        ``(resolved_lines, breakdown, offer_result)``. Nothing is written.
        Raises AvailabilityError / ValidationError / OfferInvalidError.
        """
        currency = app_settings.currency
        calculator = PriceCalculator(currency=currency)

        resolved = CatalogService.resolve_lines(items)
        price_lines = [
            PriceLine(
                item_size_price=line.item_size.price,
                quantity=line.quantity,
                gst_rate_percent=line.category.gst_rate,
                add_on_prices=tuple(a.price for a in line.add_ons),
            )
            for line in resolved
        ]

        delivery_charge = app_settings.delivery_fee
        breakdown = calculator.calculate(price_lines, delivery_charge=delivery_charge)

        if breakdown.subtotal < app_settings.minimum_order_value:
            raise ValidationError(
                f"Minimum order value is {format_money(currency, app_settings.minimum_order_value)}",
                field="items",
            )

        offer_result = None
        if offer_code:
            offer_result = OfferValidator(currency=currency).validate(
                offer_code,
                breakdown.subtotal,
                category_ids={line.category.id for line in resolved},
                item_ids={line.item.id for line in resolved},
                user=customer,
            )
            if not offer_result.valid:
                raise OfferInvalidError(offer_result.reason, offer_result.message)
            breakdown = calculator.calculate(
                price_lines, delivery_charge=delivery_charge, offer_result=offer_result
            )

        return resolved, breakdown, offer_result

    @staticmethod
    def create_order(
        customer: User,
        address_id,
        items: List[Dict[str, Any]],
        offer_code: Optional[str] = None,
        special_instructions: str = "",
        client_total: Optional[Decimal] = None,
    ) -> Order:
        """
        Create an order in ``pending_payment`` with server-calculated totals.

        Every price is re-read from the menu; a ``client_total`` that does not
        match the calculated total is rejected. Nothing is persisted on error.
        """
        if app_settings.is_manually_closed:
            reason = app_settings.manual_closure_reason or "The restaurant is currently closed"
            raise AvailabilityError(reason)

        address = CustomerAddress.objects.filter(id=address_id, customer=customer).first()
        if address is None:
            raise ValidationError("Delivery address not found", field="address_id")

        with transaction.atomic():
            if offer_code:
                # Per-user offer caps are checked under this lock
                User.objects.select_for_update().get(pk=customer.pk)

            resolved, breakdown, offer_result = OrderService.price_cart(customer, items, offer_code)

            if client_total is not None and Decimal(client_total) != breakdown.total_price:
                logger.warning(
                    f"Client total {client_total} rejected for user {customer.id}; "
                    f"server total is {breakdown.total_price}"
                )
                raise PriceMismatchError(client_total, breakdown.total_price)

            order = Order.objects.create(
                customer=customer,
                address=address,
                delivery_address=address.snapshot(),
                offer=offer_result.offer if offer_result else None,
                status=Order.Status.PENDING_PAYMENT,
                payment_status=Order.PaymentStatus.PENDING,
                currency=app_settings.currency,
                subtotal=breakdown.subtotal,
                gst_amount=breakdown.gst_amount,
                discount_amount=breakdown.discount_amount,
                delivery_charge=breakdown.delivery_charge,
                total_price=breakdown.total_price,
                special_instructions=special_instructions or "",
            )

            for line, line_breakdown in zip(resolved, breakdown.lines):
                order_item = OrderItem.objects.create(
                    order=order,
                    item_size=line.item_size,
                    item_name=line.item.name,
                    size_name=line.item_size.size,
                    category_name=line.category.name,
                    unit_price=line.item_size.price,
                    gst_rate=line.category.gst_rate,
                    quantity=line.quantity,
                    line_total=line_breakdown.line_total,
                    gst_amount=line_breakdown.gst_amount,
                )
                OrderItemAddOn.objects.bulk_create(
                    [
                        OrderItemAddOn(
                            order_item=order_item, add_on=add_on, name=add_on.name, price=add_on.price
                        )
                        for add_on in line.add_ons
                    ]
                )

            emit_order_event(order, OrderEvent.ORDER_CREATED)

        logger.info(
            f"Order {order.order_number} created for user {customer.id}: total {order.total_price}"
        )
        return order

    @staticmethod
    def update_status(order_id, new_status: str, user: User, reason: str = "") -> Order:
        """
        Move an order along the kitchen flow. Cancellation is handed to
        CancellationService so refunds are handled in one place.
        """
        if new_status == Order.Status.CANCELLED:
            from .cancellation_service import CancellationService

            return CancellationService.cancel_order(order_id, user, reason=reason)

        actor = OrderStateMachine.actor_for(user)

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)
            changed = OrderStateMachine.apply(order, new_status, actor)
            order.save(update_fields=changed)

            event = OrderService.STATUS_EVENTS.get(new_status)
            if event:
                emit_order_event(order, event)

        return order
