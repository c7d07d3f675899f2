from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
import logging

from django.utils import timezone

from payments.money import format_money, ZERO
from .factories import OfferStrategyFactory
from .models import Offer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OfferResult:
    valid: bool
    reason: Optional[str] = None
    message: str = ""
    discount_amount: Decimal = ZERO
    free_delivery: bool = False
    offer: Optional[Offer] = None


class OfferValidator:
    """
    Decides whether an offer code applies to a cart and how much it takes off.

    Checks run in a fixed order and the first failure wins, so a customer
    always sees the most basic problem with a code first. Failures are
    returned, never raised.
    """

    INVALID_CODE = "invalid_code"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum"
    FIRST_ORDER_ONLY = "first_order_only"
    USAGE_EXHAUSTED = "usage_exhausted"
    NOT_APPLICABLE = "not_applicable"

    def __init__(self, currency="INR", now=None):
        self.currency = currency
        self.now = now

    def validate(
        self,
        code: str,
        subtotal: Decimal,
        category_ids: Iterable[int],
        item_ids: Iterable[int],
        user,
    ) -> OfferResult:
        normalized = (code or "").strip().upper()
        offer = Offer.objects.filter(code=normalized).first() if normalized else None

        if offer is None:
            return self._fail(self.INVALID_CODE, "Invalid offer code")

        if not offer.is_active:
            return self._fail(self.INACTIVE, "This offer is no longer active", offer)

        now = self.now or timezone.now()
        if offer.valid_from and now < offer.valid_from:
            return self._fail(self.NOT_YET_VALID, "This offer is not yet valid", offer)
        if offer.valid_to and now > offer.valid_to:
            return self._fail(self.EXPIRED, "This offer has expired", offer)

        if subtotal < offer.min_order_value:
            return self._fail(
                self.BELOW_MINIMUM,
                f"Minimum order value of {format_money(self.currency, offer.min_order_value)} required",
                offer,
            )

        if offer.first_order_only and self._has_prior_orders(user):
            return self._fail(
                self.FIRST_ORDER_ONLY, "This offer is only valid for first-time orders", offer
            )

        if offer.max_uses_per_user is not None:
            used = self._redemptions(offer, user)
            if used >= offer.max_uses_per_user:
                return self._fail(
                    self.USAGE_EXHAUSTED,
                    "You have already used this offer the maximum number of times",
                    offer,
                )

        if not self._matches_cart(offer, set(category_ids), set(item_ids)):
            return self._fail(
                self.NOT_APPLICABLE, "This offer is not applicable to items in your cart", offer
            )

        strategy = OfferStrategyFactory.get_strategy(offer)
        discount = strategy.discount_for(subtotal, offer, self.currency)

        return OfferResult(
            valid=True,
            message=offer.title,
            discount_amount=discount,
            free_delivery=strategy.free_delivery,
            offer=offer,
        )

    def _fail(self, reason, message, offer=None):
        logger.info(f"Offer rejected: {reason} ({offer.code if offer else 'unknown code'})")
        return OfferResult(valid=False, reason=reason, message=message, offer=offer)

    @staticmethod
    def _has_prior_orders(user):
        from orders.models import Order

        return Order.objects.filter(customer=user).exclude(
            status=Order.Status.CANCELLED
        ).exists()

    @staticmethod
    def _redemptions(offer, user):
        # Unpaid orders count; cancelling gives the use back
        from orders.models import Order

        return Order.objects.filter(customer=user, offer=offer).exclude(status=Order.Status.CANCELLED).count()

    @staticmethod
    def _matches_cart(offer, category_ids, item_ids):
        if offer.applicable_category_id and offer.applicable_category_id not in category_ids:
            return False
        if offer.applicable_item_id and offer.applicable_item_id not in item_ids:
            return False
        return True
