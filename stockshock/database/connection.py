"""
Database connection management for SQLite.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Optional, Tuple

from ..config.environment import Environment


class DatabaseConnection:
    """SQLite database connection manager."""

    def __init__(self, database_path: Optional[str] = None):
        """Initialize database connection manager."""
        self.logger = logging.getLogger(__name__)

        if database_path:
            self.database_path = database_path
        else:
            self.database_path = str(Environment.get_data_dir() / "stockshock.db")

        self.connection: Optional[sqlite3.Connection] = None
        self._ensure_directory_exists()

    def _ensure_directory_exists(self) -> None:
        """Ensure database directory exists."""
        if self.database_path != ':memory:':
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Connect to the SQLite database."""
        if self.connection is None:
            try:
                self.connection = sqlite3.connect(self.database_path, check_same_thread=False)
                self.connection.row_factory = sqlite3.Row
                self.logger.info(f"Connected to database: {self.database_path}")
            except sqlite3.Error as e:
                self.logger.error(f"Database connection error: {e}")
                raise

        return self.connection

    def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            try:
                self.connection.close()
                self.connection = None
                self.logger.info("Database connection closed")
            except sqlite3.Error as e:
                self.logger.error(f"Error closing database connection: {e}")

    def execute(self, query: str, params: Tuple = ()) -> sqlite3.Cursor:
        """Execute a SQL query."""
        conn = self.connect()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor
        except sqlite3.Error as e:
            self.logger.error(f"Query execution error: {e}")
            self.logger.error(f"Query: {query}")
            self.logger.error(f"Params: {params}")
            raise

    def execute_many(self, query: str, params_list: list) -> sqlite3.Cursor:
        """Execute a SQL query with multiple parameter sets."""
        conn = self.connect()
        try:
            cursor = conn.cursor()
            cursor.executemany(query, params_list)
            return cursor
        except sqlite3.Error as e:
            self.logger.error(f"Query execution error: {e}")
            self.logger.error(f"Query: {query}")
            raise

    def commit(self) -> None:
        """Commit the current transaction."""
        if self.connection:
            self.connection.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        if self.connection:
            self.connection.rollback()

    def create_tables(self) -> None:
        """Create database tables if they don't exist."""
        try:
            # Last known price per (store, product)
            self.execute('''
                CREATE TABLE IF NOT EXISTS product_prices (
                    store TEXT NOT NULL,
                    product_id TEXT NOT NULL,
                    title TEXT,
                    price REAL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (store, product_id)
                )
            ''')

            # Basket cookies created per (store, product)
            self.execute('''
                CREATE TABLE IF NOT EXISTS basket_cookies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store TEXT NOT NULL,
                    product_id TEXT NOT NULL,
                    cookie_url TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            self.execute('''
                CREATE INDEX IF NOT EXISTS idx_basket_cookies_product
                ON basket_cookies(store, product_id)
            ''')

            self.commit()
            self.logger.info("Database tables created successfully")
        except sqlite3.Error as e:
            self.rollback()
            self.logger.error(f"Error creating database tables: {e}")
            raise
