"""
Centralized error handling for the stock monitor.

Errors raised by collaborators (storefront queries, the price store,
notifier transports) are categorized, counted and logged here so that the
evaluation logic itself never has to catch them.
"""
import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Tuple

import aiohttp
import discord

from ..exceptions import (
    AuthenticationLostError, ConfigurationError, DatabaseError,
    NotifierError, QueryError, RateLimitedError
)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""
    NETWORK = "network"
    NOTIFIER = "notifier"
    DATABASE = "database"
    PARSING = "parsing"
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels for prioritization."""
    CRITICAL = "critical"  # Polling cycle cannot continue
    HIGH = "high"          # Feature broken until fixed
    MEDIUM = "medium"      # Degraded, retried next cycle
    LOW = "low"            # Expected, informational


class ErrorHandler:
    """Categorizes, counts and logs collaborator errors."""

    def __init__(self):
        """Initialize error handler."""
        self.logger = logging.getLogger("stockshock.errors")
        self._error_counts: Dict[str, int] = {}
        self._last_errors: Dict[str, Dict[str, Any]] = {}

    def categorize_error(self, error: BaseException) -> Tuple[ErrorCategory, ErrorSeverity]:
        """Categorize an error by type and determine severity."""
        if isinstance(error, AuthenticationLostError):
            return ErrorCategory.AUTHENTICATION, ErrorSeverity.CRITICAL
        if isinstance(error, RateLimitedError):
            return ErrorCategory.RATE_LIMIT, ErrorSeverity.LOW
        if isinstance(error, QueryError):
            return ErrorCategory.NETWORK, ErrorSeverity.MEDIUM
        if isinstance(error, (aiohttp.ClientError, ConnectionError, asyncio.TimeoutError)):
            return ErrorCategory.NETWORK, ErrorSeverity.MEDIUM
        if isinstance(error, (NotifierError, discord.DiscordException)):
            return ErrorCategory.NOTIFIER, ErrorSeverity.MEDIUM
        if isinstance(error, (DatabaseError, sqlite3.Error)):
            return ErrorCategory.DATABASE, ErrorSeverity.HIGH
        if isinstance(error, ConfigurationError):
            return ErrorCategory.CONFIGURATION, ErrorSeverity.HIGH
        if isinstance(error, (ValueError, TypeError, KeyError)):
            return ErrorCategory.PARSING, ErrorSeverity.MEDIUM
        return ErrorCategory.UNKNOWN, ErrorSeverity.MEDIUM

    def handle_error(self, error: BaseException, context: Optional[Dict[str, Any]] = None,
                     category: Optional[ErrorCategory] = None) -> Dict[str, Any]:
        """Record and log an error. Returns the structured error data."""
        detected_category, severity = self.categorize_error(error)
        category = category or detected_category
        context = context or {}

        error_key = f"{category.value}:{error.__class__.__name__}"
        self._error_counts[error_key] = self._error_counts.get(error_key, 0) + 1

        error_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "category": category.value,
            "severity": severity.value,
            "error_type": error.__class__.__name__,
            "error_message": str(error),
            "context": {k: str(v) for k, v in context.items()},
            "count": self._error_counts[error_key]
        }
        self._last_errors[category.value] = error_data

        context_str = ", ".join(f"{k}={v}" for k, v in error_data["context"].items())
        log_message = f"{category.value.upper()} ERROR: {error}" + (f" ({context_str})" if context_str else "")

        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
        elif severity == ErrorSeverity.HIGH:
            self.logger.error(log_message, exc_info=error)
        elif severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        return error_data

    def handle_notifier_error(self, error: BaseException, notifier: str, event: str) -> Dict[str, Any]:
        """Handle a failed notifier delivery."""
        return self.handle_error(error, {"notifier": notifier, "event": event}, ErrorCategory.NOTIFIER)

    def handle_item_error(self, error: BaseException, product_id: Optional[str]) -> Dict[str, Any]:
        """Handle a collaborator failure while evaluating one item."""
        return self.handle_error(error, {"product_id": product_id or "unknown"})

    def handle_query_error(self, error: BaseException, source: str) -> Dict[str, Any]:
        """Handle a failed storefront query."""
        return self.handle_error(error, {"source": source})

    def get_error_count(self, category: ErrorCategory) -> int:
        """Total number of errors recorded for a category."""
        prefix = f"{category.value}:"
        return sum(count for key, count in self._error_counts.items() if key.startswith(prefix))

    def get_last_error(self, category: ErrorCategory) -> Optional[Dict[str, Any]]:
        return self._last_errors.get(category.value)
