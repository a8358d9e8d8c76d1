"""
Tests for the notification fan-out.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from stockshock.exceptions import NotifierError
from stockshock.models.api_models import Product
from stockshock.services.error_handler import ErrorCategory
from stockshock.services.notification_dispatcher import NotificationDispatcher


@pytest.fixture
def failing_notifier():
    notifier = MagicMock()
    for name in ("notify_stock", "notify_price_change", "notify_admin",
                 "notify_rate_limit", "notify_cookies", "close"):
        setattr(notifier, name, AsyncMock(side_effect=NotifierError(f"{name} failed")))
    return notifier


@pytest.mark.asyncio
async def test_notify_stock_collects_messages(mock_notifier, error_handler, make_item):
    silent = MagicMock()
    silent.notify_stock = AsyncMock(return_value=None)
    dispatcher = NotificationDispatcher([mock_notifier, silent], error_handler)
    item = make_item()

    messages = await dispatcher.notify_stock(item, 2)

    assert messages == ["message"]
    mock_notifier.notify_stock.assert_awaited_once_with(item, 2)
    silent.notify_stock.assert_awaited_once_with(item, 2)


@pytest.mark.asyncio
async def test_failing_notifier_is_isolated(failing_notifier, mock_notifier, error_handler, make_item):
    dispatcher = NotificationDispatcher([failing_notifier, mock_notifier], error_handler)
    item = make_item()
    product = Product(id="1")

    await dispatcher.notify_stock(item)
    await dispatcher.notify_price_change(item, 10.0)
    await dispatcher.notify_admin("hello")
    await dispatcher.notify_rate_limit(400)
    await dispatcher.notify_cookies(product, ["c"])
    await dispatcher.close()

    mock_notifier.notify_stock.assert_awaited_once()
    mock_notifier.notify_price_change.assert_awaited_once_with(item, 10.0)
    mock_notifier.notify_admin.assert_awaited_once_with("hello", None)
    mock_notifier.notify_rate_limit.assert_awaited_once_with(400)
    mock_notifier.notify_cookies.assert_awaited_once_with(product, ["c"])
    mock_notifier.close.assert_awaited_once()
    assert error_handler.get_error_count(ErrorCategory.NOTIFIER) == 6


@pytest.mark.asyncio
async def test_register_adds_notifier(error_handler, mock_notifier):
    dispatcher = NotificationDispatcher(error_handler=error_handler)
    dispatcher.register(mock_notifier)

    await dispatcher.notify_admin("hi", None)

    mock_notifier.notify_admin.assert_awaited_once_with("hi", None)


@pytest.mark.asyncio
async def test_notifier_failure_context_is_recorded(failing_notifier, error_handler):
    dispatcher = NotificationDispatcher([failing_notifier], error_handler)

    await dispatcher.notify_admin("hi")

    last_error = error_handler.get_last_error(ErrorCategory.NOTIFIER)
    assert last_error["context"]["event"] == "admin"
    assert last_error["error_type"] == "NotifierError"
