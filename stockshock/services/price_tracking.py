"""
Price tracking service for detecting price changes.
"""
import logging
import math
from typing import Optional

from ..models.api_models import Item, PriceChange


def is_known_price(value: Optional[float]) -> bool:
    """The storefront reports unpriced items as 0, the store returns NaN for unknown."""
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(value) and not math.isinf(value) and value != 0


class PriceTrackingService:
    """Compares freshly observed prices with the last known ones."""

    def __init__(self):
        """Initialize price tracking service."""
        self.logger = logging.getLogger(__name__)

    def detect_price_change(self, item: Item, last_known_price: Optional[float]) -> Optional[PriceChange]:
        """
        Detect a price change between the stored price and the observed one.

        Args:
            item: Current observation
            last_known_price: Price from the price store, NaN or None if unknown

        Returns:
            PriceChange object if both prices are known and differ, None otherwise
        """
        current_price = item.price_amount
        if not is_known_price(current_price) or not is_known_price(last_known_price):
            return None

        previous_price = float(last_known_price)
        if current_price == previous_price:
            return None

        change_amount = current_price - previous_price
        change_percentage = (change_amount / previous_price) * 100

        self.logger.debug(
            f"Price of {item.product_id} changed from {previous_price} to {current_price} "
            f"({change_percentage:.2f}%)"
        )
        return PriceChange(
            previous_price=previous_price,
            current_price=current_price,
            change_amount=change_amount,
            change_percentage=change_percentage,
            currency=item.currency
        )

    def should_store_price(self, item: Item, last_known_price: Optional[float]) -> bool:
        """A known observed price is stored whenever it differs from the stored one."""
        current_price = item.price_amount
        if not is_known_price(current_price):
            return False
        if not is_known_price(last_known_price):
            return True
        return current_price != float(last_known_price)

