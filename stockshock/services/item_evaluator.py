"""
Item evaluation engine.

Turns a batch of observed items into stock and price notifications and the
set of products that are candidates for basket cookie automation, while
updating the cooldown store and the price store.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional

from ..exceptions import AuthenticationLostError
from ..models.api_models import Item, Product
from ..models.interfaces import IDatabaseConnection
from .cooldown_manager import CooldownManager
from .error_handler import ErrorHandler
from .notification_dispatcher import NotificationDispatcher
from .price_tracking import PriceTrackingService
from .product_helper import ProductHelper


class ItemEvaluator:
    """Decides per item whether to notify and whether it is basket eligible.

    Items are evaluated strictly one after another so that cooldown changes
    made for one item are visible to every later item of the same pass.
    """

    def __init__(self, product_helper: ProductHelper, cooldown_manager: CooldownManager,
                 dispatcher: NotificationDispatcher, database: Optional[IDatabaseConnection] = None,
                 cookie_ids: Optional[Iterable[str]] = None,
                 price_tracking: Optional[PriceTrackingService] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.product_helper = product_helper
        self.cooldown_manager = cooldown_manager
        self.dispatcher = dispatcher
        self.database = database
        self.cookie_ids = set(cookie_ids or [])
        self.price_tracking = price_tracking or PriceTrackingService()
        self.error_handler = error_handler or dispatcher.error_handler

    async def check_items(self, items: Optional[List[Item]]) -> Dict[str, Product]:
        """
        Evaluate one batch of items.

        Args:
            items: Items of one result page, may be None

        Returns:
            Product id -> product for every basket candidate of this batch
        """
        basket_products: Dict[str, Product] = {}
        for item in items or []:
            try:
                await self.check_item(item, basket_products)
            except AuthenticationLostError:
                raise
            except Exception as e:
                self.error_handler.handle_item_error(e, item.product_id if item else None)
        return basket_products

    async def check_item(self, item: Optional[Item], basket_products: Dict[str, Product]) -> Dict[str, Product]:
        """Evaluate a single item, adding it to ``basket_products`` when eligible."""
        if item is None or item.product is None or not item.product_id:
            return basket_products

        if not self.product_helper.is_product_available(item):
            return basket_products

        product = item.product
        item_id = product.id
        is_buyable = self.product_helper.is_product_buyable(item)
        can_be_added_to_basket = self.product_helper.can_product_be_added_to_basket(item)

        # Becoming fully buyable always notifies, even under a "not buyable" cooldown
        existing = self.cooldown_manager.get_cooldown(item_id)
        if is_buyable and (existing is None or not existing.is_product_buyable):
            if self.cooldown_manager.delete_cooldown(item_id):
                self.logger.debug(f"Reset cooldown of {item_id}, item became buyable")

        await self._check_price(item)

        if not self.cooldown_manager.has_cooldown(item_id):
            cookies_amount = await self.database.get_cookies_amount(product) if self.database else 0
            for message in await self.dispatcher.notify_stock(item, cookies_amount):
                self.logger.info(message)
            cooldown = self.cooldown_manager.add_to_cooldown_map(
                item, is_buyable, can_be_added_to_basket, has_cookies=bool(cookies_amount)
            )
            if cooldown:
                self.logger.debug(f"Cooldown for {item_id} until {cooldown.end_time.isoformat()}")

        if (
            can_be_added_to_basket
            and not self.cooldown_manager.has_basket_cooldown(item_id)
            and (not self.cookie_ids or item_id in self.cookie_ids)
        ):
            basket_products[item_id] = product

        return basket_products

    async def _check_price(self, item: Item) -> None:
        """Announce and store price changes."""
        last_known_price = await self.database.get_last_known_price(item.product) if self.database else math.nan

        price_change = self.price_tracking.detect_price_change(item, last_known_price)
        if price_change:
            await self.dispatcher.notify_price_change(item, price_change.previous_price)

        if self.database and self.price_tracking.should_store_price(item, last_known_price):
            await self.database.store_price(item.product, item.price_amount)

    async def record_basket_success(self, product: Product, cookies: List[str]) -> None:
        """Start the basket cooldown and announce cookies created for a product."""
        if not cookies:
            return
        self.cooldown_manager.add_to_basket_cooldown_map(product)
        self.logger.info(f"Created {len(cookies)} basket cookies for {product.id}")
        await self.dispatcher.notify_cookies(product, cookies)
        if self.database:
            await self.database.store_cookies(product, cookies)
