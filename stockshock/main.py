"""
Main application entry point for the stock monitor.
"""
import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Any, List, Optional

from .config.environment import Environment
from .config.config_manager import ConfigManager
from .config.logging_config import configure_logging
from .database.connection import DatabaseConnection
from .database.price_repository import PriceRepository
from .exceptions import ConfigurationError
from .models.interfaces import IItemSource
from .models.stores import STORES, Store, StoreConfiguration, get_store
from .notifiers import DiscordNotifier, LoggerNotifier, TelegramNotifier
from .services.cooldown_manager import CooldownManager, CooldownSettings
from .services.error_handler import ErrorHandler
from .services.graphql_client import GraphQLClient
from .services.item_evaluator import ItemEvaluator
from .services.monitoring_engine import StockMonitor
from .services.notification_dispatcher import NotificationDispatcher
from .services.product_helper import ProductHelper
from .services.stock_checker import PaginatedItemSource, QueryKind

DEFAULT_CONFIG_FILE = "config/stores.yaml"


@dataclass
class Application:
    """Everything wired up for one storefront."""
    monitor: StockMonitor
    dispatcher: NotificationDispatcher
    client: GraphQLClient
    db: DatabaseConnection

    async def close(self) -> None:
        await self.dispatcher.close()
        await self.client.close()
        self.db.close()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stockshock",
        description="Monitor storefront wishlists, categories and searches for stock and price changes."
    )
    parser.add_argument(
        "--config",
        default=Environment.get_config_file() or DEFAULT_CONFIG_FILE,
        help=f"YAML or JSON configuration file (default: CONFIG_FILE or {DEFAULT_CONFIG_FILE})"
    )
    parser.add_argument(
        "--store",
        choices=sorted(STORES),
        help="Store short code; defaults to the first store section of the configuration"
    )
    parser.add_argument("--once", action="store_true", help="Run a single polling cycle and exit")
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser.parse_args(argv)


def select_store_code(config: ConfigManager, requested: Optional[str]) -> str:
    if requested:
        return requested
    stores = config.get('stores') or {}
    if not stores:
        raise ConfigurationError("No store section configured")
    return next(iter(stores)).lower()


def build_sources(client: GraphQLClient, store: Store, store_config: StoreConfiguration,
                  error_handler: ErrorHandler) -> List[IItemSource]:
    """Create one paginated source per configured wishlist, category and search."""
    logger = logging.getLogger(__name__)
    sources: List[IItemSource] = []

    if store_config.check_wishlist:
        if store_config.wishlist_sha256:
            sources.append(PaginatedItemSource(
                client, store, QueryKind.WISHLIST, store_config.wishlist_sha256, error_handler=error_handler
            ))
        else:
            logger.warning("Wishlist check enabled but no wishlist_sha256 configured, skipping")

    if store_config.categories:
        if store_config.category_sha256 and store_config.product_sha256:
            for category in store_config.categories:
                sources.append(PaginatedItemSource(
                    client, store, QueryKind.CATEGORY, store_config.category_sha256,
                    query=category, title_regex=store_config.category_regex,
                    product_sha256=store_config.product_sha256, error_handler=error_handler
                ))
        else:
            logger.warning("Categories configured but category_sha256/product_sha256 missing, skipping")

    if store_config.searches:
        if store_config.search_sha256:
            for search in store_config.searches:
                sources.append(PaginatedItemSource(
                    client, store, QueryKind.SEARCH, store_config.search_sha256,
                    query=search, title_regex=store_config.search_regex,
                    price_range=store_config.get_search_price_range(), error_handler=error_handler
                ))
        else:
            logger.warning("Searches configured but no search_sha256 configured, skipping")

    return sources


def build_notifiers(store: Store, store_config: StoreConfiguration, config: ConfigManager) -> List[Any]:
    notifiers: List[Any] = [LoggerNotifier(store, store_config)]

    discord_notifier = DiscordNotifier(store, store_config)
    if discord_notifier.enabled:
        notifiers.append(discord_notifier)

    telegram_notifier = TelegramNotifier(
        store, store_config, timeout=config.get('notifications.telegram_timeout', 10)
    )
    if telegram_notifier.enabled:
        notifiers.append(telegram_notifier)

    return notifiers


def create_application(config: ConfigManager, store_code: str) -> Application:
    """Wire every collaborator for one store."""
    logger = logging.getLogger(__name__)
    store_config = config.get_store_configuration(store_code)
    store = get_store(store_code).with_sleep_times(store_config.min_sleep_time, store_config.max_sleep_time)
    monitoring_config = config.get_monitoring_config()

    error_handler = ErrorHandler()
    dispatcher = NotificationDispatcher(build_notifiers(store, store_config, config), error_handler)
    logger.info(f"Registered notifiers: {', '.join(n.__class__.__name__ for n in dispatcher.notifiers)}")

    db = DatabaseConnection(store_config.database_path)
    db.create_tables()
    repository = PriceRepository(db, store)

    cooldown_manager = CooldownManager(
        data_dir=Environment.get_data_dir(),
        settings=CooldownSettings.from_store_configuration(store_config)
    )
    cooldown_manager.restore()

    evaluator = ItemEvaluator(
        ProductHelper(store_config.check_online_status, store_config.check_in_assortment),
        cooldown_manager,
        dispatcher,
        database=repository,
        cookie_ids=store_config.cookie_ids,
        error_handler=error_handler
    )

    client = GraphQLClient(
        store,
        client_version=monitoring_config.get('graphql_client_version', '8.0.0'),
        cache_busting=store_config.cache_busting,
        request_timeout=monitoring_config.get('request_timeout', 10)
    )

    monitor = StockMonitor(
        store,
        evaluator,
        build_sources(client, store, store_config, error_handler),
        cooldown_manager,
        dispatcher,
        cycle_sleep_seconds=monitoring_config.get('cycle_sleep_seconds', 5),
        rate_limit_pause_seconds=monitoring_config.get('rate_limit_pause_seconds', 300),
        error_handler=error_handler
    )
    return Application(monitor=monitor, dispatcher=dispatcher, client=client, db=db)


def setup_signal_handlers(loop: asyncio.AbstractEventLoop, monitor: StockMonitor) -> None:
    """Stop the monitor gracefully on SIGINT/SIGTERM."""
    def signal_handler():
        logging.getLogger(__name__).info("Shutdown signal received, stopping after the current cycle...")
        monitor.stop()

    # Signal handlers are not supported by the Windows event loop
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)
    Environment.setup_basic_logging()
    logger = logging.getLogger(__name__)

    try:
        config = ConfigManager(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    logger = configure_logging(config, args.log_level)

    try:
        store_code = select_store_code(config, args.store)
        app = create_application(config, store_code)
    except (ConfigurationError, KeyError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_signal_handlers(asyncio.get_running_loop(), app.monitor)
    await app.dispatcher.notify_admin(f"🚀 Stock monitor started for {app.monitor.store.name}")

    try:
        await app.monitor.run(max_cycles=1 if args.once else None)
    finally:
        await app.close()
        logger.info("All services shut down")
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
