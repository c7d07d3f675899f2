"""
Server-side order price calculator.

Pure functions over Decimal values: no database access, no I/O. The order
service resolves prices from the menu and passes them in here, so whatever
the client sent as a price is never part of the arithmetic.

Usage:
    from orders.calculators import PriceCalculator, PriceLine
    calculator = PriceCalculator(currency="INR")
    breakdown = calculator.calculate(lines, delivery_charge=Decimal("40.00"))
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from payments.money import quantize, percentage_of, ZERO


@dataclass(frozen=True)
class PriceLine:
    item_size_price: Decimal
    quantity: int
    gst_rate_percent: Decimal
    add_on_prices: Sequence[Decimal] = field(default_factory=tuple)


@dataclass(frozen=True)
class LineBreakdown:
    line_total: Decimal
    gst_amount: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    gst_amount: Decimal
    delivery_charge: Decimal
    discount_amount: Decimal
    total_price: Decimal
    lines: List[LineBreakdown] = field(default_factory=list)


class PriceCalculator:
    """
    Calculates subtotal, GST, delivery, discount and total for a cart.

    GST is charged per line at that line's own category rate and each line's
    GST is rounded to the currency minor unit (half-up) before summing.
    """

    def __init__(self, currency: str = "INR"):
        self.currency = currency

    def line_total(self, line: PriceLine) -> Decimal:
        unit_price = line.item_size_price + sum(line.add_on_prices, ZERO)
        return quantize(self.currency, unit_price * line.quantity)

    def line_gst(self, line_total: Decimal, gst_rate_percent: Decimal) -> Decimal:
        return percentage_of(self.currency, line_total, gst_rate_percent)

    def calculate(
        self,
        lines: Sequence[PriceLine],
        delivery_charge: Decimal,
        discount_amount: Decimal = ZERO,
        free_delivery: bool = False,
        offer_result: Optional["OfferResult"] = None,
    ) -> PriceBreakdown:
        """
        ``offer_result`` (a valid ``offers.services.OfferResult``) takes
        precedence over the explicit ``discount_amount`` / ``free_delivery``.
        """
        if offer_result is not None and offer_result.valid:
            discount_amount = offer_result.discount_amount
            free_delivery = offer_result.free_delivery

        line_breakdowns = []
        for line in lines:
            total = self.line_total(line)
            line_breakdowns.append(
                LineBreakdown(line_total=total, gst_amount=self.line_gst(total, line.gst_rate_percent))
            )

        subtotal = sum((lb.line_total for lb in line_breakdowns), ZERO)
        gst_amount = sum((lb.gst_amount for lb in line_breakdowns), ZERO)
        delivery = ZERO if free_delivery else quantize(self.currency, delivery_charge)
        discount = quantize(self.currency, discount_amount)

        total_price = max(subtotal + gst_amount + delivery - discount, ZERO)

        return PriceBreakdown(
            subtotal=quantize(self.currency, subtotal),
            gst_amount=quantize(self.currency, gst_amount),
            delivery_charge=delivery,
            discount_amount=discount,
            total_price=quantize(self.currency, total_price),
            lines=line_breakdowns,
        )
