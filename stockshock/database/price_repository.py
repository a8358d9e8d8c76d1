"""
Repository for last known prices and basket cookies.
"""
import logging
import math
import sqlite3
from typing import List

from .connection import DatabaseConnection
from ..exceptions import DatabaseError
from ..models.api_models import Product
from ..models.interfaces import IDatabaseConnection
from ..models.stores import Store


class PriceRepository(IDatabaseConnection):
    """SQLite backed price and cookie store keyed by (store short code, product id).

    Reads degrade to "unknown" (NaN price, zero cookies); writes raise
    ``DatabaseError``.
    """

    def __init__(self, db: DatabaseConnection, store: Store):
        """Initialize repository."""
        self.logger = logging.getLogger(__name__)
        self.db = db
        self.store = store

    async def get_last_known_price(self, product: Product) -> float:
        try:
            row = self.db.execute(
                'SELECT price FROM product_prices WHERE store = ? AND product_id = ?',
                (self.store.short_code, product.id)
            ).fetchone()
        except sqlite3.Error as e:
            self.logger.error(f"Error reading last known price of {product.id}: {e}")
            return math.nan
        if row is None or row['price'] is None:
            return math.nan
        return float(row['price'])

    async def store_price(self, product: Product, price: float) -> None:
        try:
            self.db.execute(
                '''
                INSERT INTO product_prices (store, product_id, title, price, updated_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(store, product_id) DO UPDATE SET
                    price = excluded.price,
                    title = excluded.title,
                    updated_at = CURRENT_TIMESTAMP
                ''',
                (self.store.short_code, product.id, product.title, price)
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            raise DatabaseError(f"Unable to store price of {product.id}: {e}") from e

    async def get_cookies_amount(self, product: Product) -> int:
        try:
            row = self.db.execute(
                'SELECT COUNT(*) AS amount FROM basket_cookies WHERE store = ? AND product_id = ?',
                (self.store.short_code, product.id)
            ).fetchone()
        except sqlite3.Error as e:
            self.logger.error(f"Error reading cookie amount of {product.id}: {e}")
            return 0
        return int(row['amount']) if row else 0

    async def store_cookies(self, product: Product, cookies: List[str]) -> None:
        if not cookies:
            return
        try:
            self.db.execute_many(
                'INSERT INTO basket_cookies (store, product_id, cookie_url) VALUES (?, ?, ?)',
                [
                    (self.store.short_code, product.id, self.store.get_cookie_url(cookie))
                    for cookie in cookies
                ]
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            raise DatabaseError(f"Unable to store cookies of {product.id}: {e}") from e
