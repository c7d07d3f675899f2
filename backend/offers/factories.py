from .models import Offer
from .strategies import (
    OfferStrategy,
    PercentageOfferStrategy,
    FlatOfferStrategy,
    FreeDeliveryOfferStrategy,
)


class OfferStrategyFactory:
    """
    Factory for creating an offer strategy based on the offer's discount type.
    """

    _strategies = {
        Offer.DiscountType.PERCENTAGE: PercentageOfferStrategy,
        Offer.DiscountType.FLAT: FlatOfferStrategy,
        Offer.DiscountType.FREE_DELIVERY: FreeDeliveryOfferStrategy,
    }

    @staticmethod
    def get_strategy(offer: Offer) -> OfferStrategy:
        strategy_class = OfferStrategyFactory._strategies.get(offer.discount_type)

        if strategy_class:
            return strategy_class()

        raise ValueError(f"No strategy found for discount type '{offer.discount_type}'")
