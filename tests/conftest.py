"""
Pytest configuration and fixtures for testing.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, AsyncMock

from stockshock.models.api_models import Item
from stockshock.models.stores import STORES, StoreConfiguration
from stockshock.services.cooldown_manager import CooldownManager
from stockshock.services.error_handler import ErrorHandler
from stockshock.services.notification_dispatcher import NotificationDispatcher
from stockshock.services.product_helper import ProductHelper


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def build_item(product_id="1", title="PlayStation 5", online_status=True,
               availability_type="IN_WAREHOUSE", quantity=1, price=499.0,
               currency="EUR", in_assortment=None, with_product=True) -> Item:
    """Build an item from a storefront shaped payload."""
    payload = {
        "price": {"price": price, "currency": currency} if price is not None else None,
        "availability": {
            "delivery": {"availabilityType": availability_type, "quantity": quantity}
        },
    }
    if with_product:
        payload["product"] = {
            "id": product_id,
            "title": title,
            "url": f"/de/product/_{product_id}.html",
            "onlineStatus": online_status,
            "titleImageId": "pixelboxx-mss-123",
        }
    if in_assortment is not None:
        payload["productControl"] = {"isInAssortment": in_assortment}
    return Item.from_dict(payload)


@pytest.fixture
def make_item():
    return build_item


@pytest.fixture
def store():
    return STORES["mmde"]


@pytest.fixture
def store_config():
    return StoreConfiguration()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cooldown_manager(tmp_path, clock):
    return CooldownManager(data_dir=tmp_path, clock=clock)


@pytest.fixture
def product_helper():
    return ProductHelper()


@pytest.fixture
def error_handler():
    return ErrorHandler()


@pytest.fixture
def mock_notifier():
    """A notifier whose every method is an AsyncMock."""
    notifier = MagicMock()
    notifier.notify_stock = AsyncMock(return_value="message")
    notifier.notify_price_change = AsyncMock()
    notifier.notify_admin = AsyncMock()
    notifier.notify_rate_limit = AsyncMock()
    notifier.notify_cookies = AsyncMock()
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def dispatcher(mock_notifier, error_handler):
    return NotificationDispatcher([mock_notifier], error_handler)


@pytest.fixture
def mock_database():
    database = MagicMock()
    database.get_last_known_price = AsyncMock(return_value=float("nan"))
    database.store_price = AsyncMock()
    database.get_cookies_amount = AsyncMock(return_value=0)
    database.store_cookies = AsyncMock()
    return database
