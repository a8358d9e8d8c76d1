"""
Polling loop tying item sources, the evaluator and basket automation together.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Any

from ..exceptions import AuthenticationLostError, QueryError, RateLimitedError
from ..models.api_models import Product
from ..models.interfaces import IBasketAdder, IItemSource
from ..models.stores import Store
from .cooldown_manager import CooldownManager
from .error_handler import ErrorHandler
from .item_evaluator import ItemEvaluator
from .notification_dispatcher import NotificationDispatcher

RATE_LIMIT_MAX_PAUSE_SECONDS = 320


class StockMonitor:
    """Runs polling cycles for one storefront until stopped."""

    def __init__(self, store: Store, evaluator: ItemEvaluator, sources: List[IItemSource],
                 cooldown_manager: CooldownManager, dispatcher: NotificationDispatcher,
                 basket_adder: Optional[IBasketAdder] = None, cycle_sleep_seconds: float = 5,
                 rate_limit_pause_seconds: float = 300,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.evaluator = evaluator
        self.sources = list(sources)
        self.cooldown_manager = cooldown_manager
        self.dispatcher = dispatcher
        self.basket_adder = basket_adder
        self.cycle_sleep_seconds = cycle_sleep_seconds
        self.rate_limit_pause_seconds = rate_limit_pause_seconds
        self.sleep = sleep
        self.error_handler = error_handler or dispatcher.error_handler

        self.running = False
        self.cycles = 0
        self.authentication_lost = False

    def stop(self) -> None:
        """Ask the loop to finish after the current cycle."""
        self.running = False

    async def run_cycle(self) -> Dict[str, Product]:
        """
        Run one polling cycle over every source.

        Returns:
            Product id -> product of every basket candidate found this cycle
        """
        self.cycles += 1
        self.cooldown_manager.prune_expired()
        basket_products: Dict[str, Product] = {}

        try:
            for source in self.sources:
                basket_products.update(await self._check_source(source))
        except AuthenticationLostError as e:
            self.authentication_lost = True
            self.error_handler.handle_query_error(e, self.store.short_code)
            await self.dispatcher.notify_admin(f"😵 Session lost for {self.store.name}, cycle aborted", e)
            basket_products = {}
        except RateLimitedError as e:
            self.error_handler.handle_query_error(e, self.store.short_code)
            await self._pause_for_rate_limit(e)
        else:
            self.authentication_lost = False

        if basket_products:
            await self._create_cookies(basket_products)

        self.cooldown_manager.persist()
        return basket_products

    async def _check_source(self, source: IItemSource) -> Dict[str, Product]:
        basket_products: Dict[str, Product] = {}
        name = getattr(source, 'name', source.__class__.__name__)
        try:
            async for items in source.batches():
                basket_products.update(await self.evaluator.check_items(items))
        except (AuthenticationLostError, RateLimitedError):
            raise
        except QueryError as e:
            self.error_handler.handle_query_error(e, name)
        return basket_products

    async def _pause_for_rate_limit(self, error: RateLimitedError) -> None:
        seconds = error.retry_after or self.rate_limit_pause_seconds
        self.logger.error(f"Too many requests, we need to cooldown and sleep {seconds} seconds")
        await self.dispatcher.notify_rate_limit(seconds)
        await self.sleep(min(seconds, RATE_LIMIT_MAX_PAUSE_SECONDS))

    async def _create_cookies(self, basket_products: Dict[str, Product]) -> None:
        if self.basket_adder is None:
            return
        for product in basket_products.values():
            try:
                cookies = await self.basket_adder.create_cookies(product)
                await self.evaluator.record_basket_success(product, cookies)
            except Exception as e:
                self.error_handler.handle_item_error(e, product.id)

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Run cycles with the store's sleep jitter until stopped."""
        self.running = True
        self.logger.info(f"Starting stock monitor for {self.store.name} with {len(self.sources)} sources")
        try:
            while self.running:
                await self.run_cycle()
                if max_cycles is not None and self.cycles >= max_cycles:
                    break
                if not self.running:
                    break
                await self.sleep(self.cycle_sleep_seconds + self.store.get_sleep_time() / 1000)
        finally:
            self.running = False
            self.cooldown_manager.persist()
            self.logger.info(f"Stock monitor for {self.store.name} stopped after {self.cycles} cycles")
