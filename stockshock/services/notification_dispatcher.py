"""
Fan-out of monitor events to every registered notifier.
"""
import logging
from typing import Any, Awaitable, Callable, List, Optional

from ..models.api_models import Item, Product
from ..models.interfaces import INotifier
from .error_handler import ErrorHandler


class NotificationDispatcher:
    """Calls every registered notifier for an event.

    A failing notifier is logged through the error handler and skipped, the
    remaining notifiers still receive the event.
    """

    def __init__(self, notifiers: Optional[List[INotifier]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.notifiers: List[INotifier] = list(notifiers or [])
        self.error_handler = error_handler or ErrorHandler()

    def register(self, notifier: INotifier) -> None:
        """Register an additional notifier."""
        self.notifiers.append(notifier)

    async def _call_all(self, event: str, call: Callable[[INotifier], Awaitable[Any]]) -> List[Any]:
        results = []
        for notifier in self.notifiers:
            try:
                results.append(await call(notifier))
            except Exception as e:
                self.error_handler.handle_notifier_error(e, notifier.__class__.__name__, event)
        return results

    async def notify_stock(self, item: Item, cookies_amount: int = 0) -> List[str]:
        """Send a stock notification, returning the plain messages notifiers produced."""
        results = await self._call_all("stock", lambda n: n.notify_stock(item, cookies_amount))
        messages = [message for message in results if message]
        self.logger.debug(f"Stock notification for {item.product_id} produced {len(messages)} messages")
        return messages

    async def notify_price_change(self, item: Item, old_price: float) -> None:
        await self._call_all("price_change", lambda n: n.notify_price_change(item, old_price))

    async def notify_admin(self, message: str, error: Optional[BaseException] = None) -> None:
        await self._call_all("admin", lambda n: n.notify_admin(message, error))

    async def notify_rate_limit(self, seconds: float) -> None:
        await self._call_all("rate_limit", lambda n: n.notify_rate_limit(seconds))

    async def notify_cookies(self, product: Product, cookies: List[str]) -> None:
        await self._call_all("cookies", lambda n: n.notify_cookies(product, cookies))

    async def close(self) -> None:
        """Close every notifier transport."""
        await self._call_all("close", lambda n: n.close())
