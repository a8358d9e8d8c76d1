"""
Tests for the application wiring.
"""
from unittest.mock import MagicMock

import pytest

from stockshock.config.config_manager import ConfigManager
from stockshock.exceptions import ConfigurationError
from stockshock.main import build_notifiers, build_sources, main, parse_args, select_store_code
from stockshock.models.stores import StoreConfiguration
from stockshock.notifiers import DiscordNotifier, LoggerNotifier, TelegramNotifier
from stockshock.services.stock_checker import QueryKind


def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv("CONFIG_FILE", raising=False)

    args = parse_args([])

    assert args.config == "config/stores.yaml"
    assert args.store is None
    assert args.once is False


def test_parse_args_rejects_unknown_store():
    with pytest.raises(SystemExit):
        parse_args(["--store", "amazon"])


def test_select_store_code():
    config = ConfigManager()

    with pytest.raises(ConfigurationError):
        select_store_code(config, None)

    config.set("stores", {"MMDE": {}, "saturn": {}})
    assert select_store_code(config, None) == "mmde"
    assert select_store_code(config, "saturn") == "saturn"


def test_build_sources(store, error_handler):
    store_config = StoreConfiguration(
        wishlist_sha256="w",
        categories=["CAT_1", "CAT_2"],
        category_sha256="c",
        product_sha256="p",
        searches=["ps5"],
        search_sha256="s",
        search_price_range=[100, 600],
    )

    sources = build_sources(MagicMock(), store, store_config, error_handler)

    assert [source.kind for source in sources] == [
        QueryKind.WISHLIST, QueryKind.CATEGORY, QueryKind.CATEGORY, QueryKind.SEARCH
    ]
    assert sources[-1].price_range == (100.0, 600.0)


def test_build_sources_skips_unhashed_queries(store, error_handler):
    store_config = StoreConfiguration(categories=["CAT_1"], category_sha256="c", searches=["ps5"])

    assert build_sources(MagicMock(), store, store_config, error_handler) == []


def test_build_notifiers(store):
    config = ConfigManager()

    assert [type(n) for n in build_notifiers(store, StoreConfiguration(), config)] == [LoggerNotifier]

    store_config = StoreConfiguration(
        discord_admin_webhook="https://discord.com/api/webhooks/1/admin",
        telegram_bot_api_key="token",
        telegram_channel_id="1",
    )
    notifiers = build_notifiers(store, store_config, config)
    assert [type(n) for n in notifiers] == [LoggerNotifier, DiscordNotifier, TelegramNotifier]


@pytest.mark.asyncio
async def test_main_reports_missing_config(tmp_path):
    assert await main(["--config", str(tmp_path / "missing.yaml")]) == 1
