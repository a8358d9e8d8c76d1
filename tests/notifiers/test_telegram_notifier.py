"""
Tests for the Telegram notifier.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from stockshock.exceptions import NotifierError
from stockshock.models.api_models import Product
from stockshock.models.stores import StoreConfiguration
from stockshock.notifiers.telegram_notifier import TELEGRAM_MAX_MESSAGE_LEN, TelegramNotifier, chunk_text


def make_session(status=200, body="{}"):
    session = MagicMock(closed=False)
    response = MagicMock(status=status)
    response.text = AsyncMock(return_value=body)
    session.post.return_value.__aenter__.return_value = response
    return session


@pytest.fixture
def telegram_config():
    return StoreConfiguration(telegram_bot_api_key="token", telegram_channel_id="-100123")


@pytest.mark.asyncio
async def test_stock_message_is_sent(store, telegram_config, make_item):
    session = make_session()
    notifier = TelegramNotifier(store, telegram_config, session=session)
    item = make_item(product_id="1", title="PS5", availability_type="IN_STORE", price=499)

    message = await notifier.notify_stock(item)

    assert message.startswith("🟢 Product available at MediaMarkt:\n\nPS5\n\nPrice: 499 EUR!")
    url = session.post.call_args.args[0]
    payload = session.post.call_args.kwargs["json"]
    assert url == "https://api.telegram.org/bottoken/sendMessage"
    assert payload["chat_id"] == "-100123"
    assert payload["text"] == message


@pytest.mark.asyncio
async def test_disabled_without_credentials(store, make_item):
    session = make_session()
    notifier = TelegramNotifier(store, StoreConfiguration(), session=session)

    assert not notifier.enabled
    assert await notifier.notify_stock(make_item()) is None
    session.post.assert_not_called()


@pytest.mark.asyncio
async def test_shopping_cart_alerts_disabled(store, telegram_config, make_item):
    telegram_config.shopping_cart_alerts = False
    session = make_session()
    notifier = TelegramNotifier(store, telegram_config, session=session)

    assert await notifier.notify_stock(make_item(online_status=True, availability_type="NONE")) is None
    session.post.assert_not_called()


@pytest.mark.asyncio
async def test_failed_send_raises_notifier_error(store, telegram_config, make_item):
    notifier = TelegramNotifier(store, telegram_config, session=make_session(status=400, body="bad chat"))

    with pytest.raises(NotifierError):
        await notifier.notify_stock(make_item(availability_type="IN_STORE"))


@pytest.mark.asyncio
async def test_other_events_are_ignored(store, telegram_config, make_item):
    session = make_session()
    notifier = TelegramNotifier(store, telegram_config, session=session)

    await notifier.notify_price_change(make_item(), 10.0)
    await notifier.notify_admin("hi")
    await notifier.notify_rate_limit(900)
    await notifier.notify_cookies(Product(id="1"), ["c"])

    session.post.assert_not_called()


def test_chunk_text_short_message():
    assert chunk_text("hello") == ["hello"]


def test_chunk_text_splits_on_paragraphs():
    paragraph = "x" * 3000
    chunks = chunk_text(f"{paragraph}\n\n{paragraph}")

    assert chunks == [paragraph, paragraph]


def test_chunk_text_hard_split():
    chunks = chunk_text("y" * (TELEGRAM_MAX_MESSAGE_LEN + 10))

    assert [len(chunk) for chunk in chunks] == [TELEGRAM_MAX_MESSAGE_LEN, 10]
