"""
Tests for the SQLite price and cookie repository.
"""
import math
import sqlite3
from unittest.mock import MagicMock

import pytest

from stockshock.database.connection import DatabaseConnection
from stockshock.database.price_repository import PriceRepository
from stockshock.exceptions import DatabaseError
from stockshock.models.api_models import Product
from stockshock.models.stores import STORES


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing."""
    db = DatabaseConnection(str(tmp_path / "test_db.sqlite"))
    db.create_tables()
    yield db
    db.close()


@pytest.fixture
def repository(temp_db, store):
    return PriceRepository(temp_db, store)


@pytest.fixture
def product():
    return Product(id="123", title="PlayStation 5")


@pytest.mark.asyncio
async def test_unknown_price_is_nan(repository, product):
    assert math.isnan(await repository.get_last_known_price(product))


@pytest.mark.asyncio
async def test_store_and_update_price(repository, product):
    await repository.store_price(product, 499.99)
    assert await repository.get_last_known_price(product) == 499.99

    await repository.store_price(product, 449.0)
    assert await repository.get_last_known_price(product) == 449.0


@pytest.mark.asyncio
async def test_prices_are_scoped_per_store(temp_db, repository, product):
    other_store = PriceRepository(temp_db, STORES["saturn"])

    await repository.store_price(product, 100.0)

    assert math.isnan(await other_store.get_last_known_price(product))


@pytest.mark.asyncio
async def test_cookies(temp_db, repository, product):
    assert await repository.get_cookies_amount(product) == 0

    await repository.store_cookies(product, ["a", "b"])
    await repository.store_cookies(product, ["c"])
    await repository.store_cookies(product, [])

    assert await repository.get_cookies_amount(product) == 3
    rows = temp_db.execute("SELECT cookie_url FROM basket_cookies ORDER BY id").fetchall()
    assert [row["cookie_url"] for row in rows] == [
        "https://www.mediamarkt.de?cookie=a",
        "https://www.mediamarkt.de?cookie=b",
        "https://www.mediamarkt.de?cookie=c",
    ]


@pytest.mark.asyncio
async def test_read_failures_degrade(store, product):
    db = MagicMock()
    db.execute.side_effect = sqlite3.OperationalError("no such table")
    repository = PriceRepository(db, store)

    assert math.isnan(await repository.get_last_known_price(product))
    assert await repository.get_cookies_amount(product) == 0


@pytest.mark.asyncio
async def test_write_failures_raise(store, product):
    db = MagicMock()
    db.execute.side_effect = sqlite3.OperationalError("database is locked")
    db.execute_many.side_effect = sqlite3.OperationalError("database is locked")
    repository = PriceRepository(db, store)

    with pytest.raises(DatabaseError):
        await repository.store_price(product, 10.0)
    with pytest.raises(DatabaseError):
        await repository.store_cookies(product, ["a"])
    assert db.rollback.call_count == 2


def test_in_memory_database():
    db = DatabaseConnection(":memory:")
    db.create_tables()

    tables = {row["name"] for row in db.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()}

    assert {"product_prices", "basket_cookies"} <= tables
    db.close()
    assert db.connection is None
