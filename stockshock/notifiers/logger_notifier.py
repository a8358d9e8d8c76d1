"""
Notifier writing every event to the application log.
"""
import logging
from typing import List, Optional

from ..models.api_models import Item, Product
from ..models.interfaces import INotifier
from ..models.stores import Store, StoreConfiguration
from ..services.product_helper import ProductHelper
from .formatting import (
    StockKind, cookies_message, price_change_message, rate_limit_message, stock_message
)


class LoggerNotifier(INotifier):
    """Always registered; the log is the notification channel of last resort."""

    def __init__(self, store: Store, store_config: Optional[StoreConfiguration] = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        store_config = store_config or StoreConfiguration()
        self.product_helper = ProductHelper(
            check_online_status=store_config.check_online_status,
            check_in_assortment=store_config.check_in_assortment
        )

    async def notify_stock(self, item: Item, cookies_amount: int = 0) -> Optional[str]:
        if item is None or item.product is None:
            return None
        kind = StockKind.classify(item, self.product_helper)
        # Basket parkers get the plain link, everything else the magician link
        url = self.product_helper.get_product_url(item, self.store, magician=kind is not StockKind.BASKET_PARKER)
        return stock_message(kind, item, url)

    async def notify_price_change(self, item: Item, old_price: float) -> None:
        if item is None or item.product is None or not old_price:
            return
        self.logger.info(price_change_message(item, old_price))

    async def notify_admin(self, message: str, error: Optional[BaseException] = None) -> None:
        if error:
            self.logger.info(f"{message}, {error!r}")
        else:
            self.logger.info(message)

    async def notify_rate_limit(self, seconds: float) -> None:
        message = rate_limit_message(self.store, seconds)
        if message:
            self.logger.info(message)

    async def notify_cookies(self, product: Product, cookies: List[str]) -> None:
        if product is None or cookies is None:
            return
        self.logger.info(cookies_message(self.store, product, cookies))
