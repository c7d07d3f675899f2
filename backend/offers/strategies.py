from abc import ABC, abstractmethod
from decimal import Decimal

from payments.money import quantize, percentage_of, ZERO
from .models import Offer
import logging

logger = logging.getLogger(__name__)


class OfferStrategy(ABC):
    """The interface for an offer discount strategy."""

    free_delivery = False

    @abstractmethod
    def discount_for(self, subtotal: Decimal, offer: Offer, currency: str) -> Decimal:
        pass


class PercentageOfferStrategy(OfferStrategy):
    """Percentage of the subtotal, capped at the offer's max_discount_amount."""

    def discount_for(self, subtotal, offer, currency):
        amount = percentage_of(currency, subtotal, offer.discount_value)
        if offer.max_discount_amount is not None:
            amount = min(amount, offer.max_discount_amount)
        return quantize(currency, amount)


class FlatOfferStrategy(OfferStrategy):
    """Fixed amount off, never more than the subtotal."""

    def discount_for(self, subtotal, offer, currency):
        return quantize(currency, min(offer.discount_value, subtotal))


class FreeDeliveryOfferStrategy(OfferStrategy):
    """No discount on the subtotal; the calculator zeroes the delivery charge."""

    free_delivery = True

    def discount_for(self, subtotal, offer, currency):
        return ZERO
