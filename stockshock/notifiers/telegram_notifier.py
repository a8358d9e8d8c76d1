"""
Telegram notifier for stock messages.

Uses the Bot API ``sendMessage`` method directly over aiohttp. Only stock
notifications are sent; every other event is ignored.
"""
import logging
from datetime import datetime
from typing import List, Optional

import aiohttp

from ..exceptions import NotifierError
from ..models.api_models import Item, Product
from ..models.interfaces import INotifier
from ..models.stores import Store, StoreConfiguration
from ..services.product_helper import ProductHelper
from .formatting import StockKind, format_price

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
TELEGRAM_MAX_MESSAGE_LEN = 4096

STOCK_HEADLINES = {
    StockKind.AVAILABLE: "🟢 Product available at {store}:",
    StockKind.ADDABLE: "🛒 Product at {store} can be added to basket:",
    StockKind.BASKET_PARKER: "🟡 Product at {store} for basket parkers:",
}


def chunk_text(text: str, max_len: int = TELEGRAM_MAX_MESSAGE_LEN) -> List[str]:
    """Split a message at paragraph or line breaks so every part fits one message."""
    if not text:
        return [""]
    if len(text) <= max_len:
        return [text]

    chunks: List[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_len:
            chunks.append(remaining)
            break

        split_at = remaining.rfind("\n\n", 0, max_len)
        if split_at <= 0:
            split_at = remaining.rfind("\n", 0, max_len)
        if split_at <= 0:
            split_at = max_len

        chunks.append(remaining[:split_at].rstrip())
        remaining = remaining[split_at:].lstrip()

    return chunks


class TelegramNotifier(INotifier):
    """Posts stock messages to one Telegram chat."""

    def __init__(self, store: Store, store_config: StoreConfiguration, timeout: int = 10,
                 session: Optional[aiohttp.ClientSession] = None):
        self.store = store
        self.token = (store_config.telegram_bot_api_key or "").strip()
        self.chat_id = str(store_config.telegram_channel_id or "").strip()
        self.shopping_cart_alerts = store_config.shopping_cart_alerts
        self.replacements = store_config.get_id_replacements()
        self.product_helper = ProductHelper(
            check_online_status=store_config.check_online_status,
            check_in_assortment=store_config.check_in_assortment
        )
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self.session

    async def send_message(self, text: str) -> None:
        """Send a text, split into as many messages as needed."""
        session = await self._get_session()
        url = TELEGRAM_API_URL.format(token=self.token)
        for chunk in chunk_text(text):
            payload = {
                "chat_id": self.chat_id,
                "text": chunk,
                "disable_web_page_preview": True
            }
            try:
                async with session.post(url, json=payload) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise NotifierError(f"Telegram send failed: status={response.status} body={body[:500]}")
            except aiohttp.ClientError as e:
                raise NotifierError(f"Telegram send error: {e}") from e

    def build_stock_message(self, kind: StockKind, item: Item) -> str:
        headline = STOCK_HEADLINES[kind].format(store=self.store.short_name)
        url = self.product_helper.get_product_url(item, self.store, self.replacements)
        timestamp = datetime.now().strftime("[%d.%m.%Y %H:%M:%S]")
        return f"{headline}\n\n{item.product.title}\n\nPrice: {format_price(item)}!\n\n{url}\n\n{timestamp}"

    async def notify_stock(self, item: Item, cookies_amount: int = 0) -> Optional[str]:
        if not self.enabled or item is None or item.product is None:
            return None
        kind = StockKind.classify(item, self.product_helper)
        if kind is StockKind.ADDABLE and not self.shopping_cart_alerts:
            return None
        message = self.build_stock_message(kind, item)
        await self.send_message(message)
        logger.debug(f"Sent Telegram stock message for {item.product.id}")
        return message

    async def notify_price_change(self, item: Item, old_price: float) -> None:
        pass

    async def notify_admin(self, message: str, error: Optional[BaseException] = None) -> None:
        pass

    async def notify_rate_limit(self, seconds: float) -> None:
        pass

    async def notify_cookies(self, product: Product, cookies: List[str]) -> None:
        pass

    async def close(self) -> None:
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None
