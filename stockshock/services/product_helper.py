"""
Availability classification for storefront items.
"""
from typing import Dict, Optional

from ..models.api_models import Item, AvailabilityType
from ..models.stores import Store


class ProductHelper:
    """Maps an item snapshot to available / buyable / addable to basket.

    The online gate combines ``product.onlineStatus`` (when
    ``check_online_status`` is on, otherwise it is assumed true) and
    ``productControl.isInAssortment`` (only when ``check_in_assortment`` is
    on). Items without a product are never available, buyable or addable.
    """

    def __init__(self, check_online_status: bool = True, check_in_assortment: bool = False):
        self.check_online_status = check_online_status
        self.check_in_assortment = check_in_assortment

    def _passes_online_gate(self, item: Item) -> bool:
        if item.product is None:
            return False

        online_status = True
        if self.check_online_status:
            online_status = item.product.online_status

        in_assortment = True
        if self.check_in_assortment:
            in_assortment = bool(item.product_control and item.product_control.is_in_assortment)

        return online_status and in_assortment

    @staticmethod
    def _has_deliverable_stock(item: Item) -> bool:
        """IN_STORE ships regardless of quantity, warehouse stock needs quantity > 0."""
        availability_type = item.availability_type
        if availability_type is AvailabilityType.IN_STORE:
            return True
        if availability_type in (AvailabilityType.IN_WAREHOUSE, AvailabilityType.LONG_TAIL):
            return item.quantity > 0
        return False

    def is_product_available(self, item: Item) -> bool:
        """Item passes the online gate or has deliverable stock."""
        if item.product is None:
            return False
        return self._passes_online_gate(item) or self._has_deliverable_stock(item)

    def is_product_buyable(self, item: Item) -> bool:
        """Item passes the online gate and has deliverable stock."""
        return self._passes_online_gate(item) and self._has_deliverable_stock(item)

    def can_product_be_added_to_basket(self, item: Item) -> bool:
        """Item passes the online gate, regardless of delivery state."""
        return self._passes_online_gate(item)

    def get_product_url(self, item: Item, store: Store,
                        replacements: Optional[Dict[str, str]] = None, magician: bool = False) -> str:
        """
        Build the link shown in notifications.

        Args:
            item: The observed item
            store: Storefront the item belongs to
            replacements: Product id -> URL overrides (``"<id>*"`` keys for magician links)
            magician: Append the ``magician`` query parameter

        Returns:
            The product URL, or an empty string for items without product
        """
        if item.product is None:
            return ""

        product_id = item.product.id
        if replacements:
            replacement = replacements.get(f"{product_id}*" if magician else product_id)
            if replacement:
                return replacement

        path = item.product.url or f"/{store.language_code}/product/-{product_id}.html"
        suffix = f"?magician={product_id}" if magician else ""
        return f"{store.base_url}{path}{suffix}"
