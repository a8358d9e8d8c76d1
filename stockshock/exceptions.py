"""
Exception hierarchy for the stock monitor.
"""
from typing import Optional


class StockShockError(Exception):
    """Base class for all stock monitor errors."""
    pass


class ConfigurationError(StockShockError):
    """Raised when the configuration file or a store section is invalid."""
    pass


class DatabaseError(StockShockError):
    """Raised when the price/cookie store cannot be written."""
    pass


class NotifierError(StockShockError):
    """Raised by a notifier transport that failed to deliver a message."""
    pass


class QueryError(StockShockError):
    """Raised when a storefront query returns an unusable response."""

    def __init__(self, operation: str, status: Optional[int], message: str = ""):
        self.operation = operation
        self.status = status
        super().__init__(f"{operation} failed with status {status}{': ' + message if message else ''}")


class RateLimitedError(QueryError):
    """Raised when the storefront answers with HTTP 429."""

    def __init__(self, operation: str, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__(operation, 429, f"retry after {retry_after}s" if retry_after else "")


class AuthenticationLostError(QueryError):
    """Raised when the storefront session is no longer accepted.

    This is fatal for the current polling cycle.
    """
    pass
