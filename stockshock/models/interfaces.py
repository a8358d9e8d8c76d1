"""
Base interfaces for the monitoring system components.
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Any, AsyncIterator

from .api_models import Item, Product


class INotifier(ABC):
    """Interface for notification transports."""

    @abstractmethod
    async def notify_stock(self, item: Item, cookies_amount: int = 0) -> Optional[str]:
        """Announce an available item. Returns the plain message if one was built."""
        pass

    @abstractmethod
    async def notify_price_change(self, item: Item, old_price: float) -> None:
        """Announce a price change."""
        pass

    @abstractmethod
    async def notify_admin(self, message: str, error: Optional[BaseException] = None) -> None:
        """Send an operational message to the admin channel."""
        pass

    @abstractmethod
    async def notify_rate_limit(self, seconds: float) -> None:
        """Announce that the storefront rate limited us."""
        pass

    @abstractmethod
    async def notify_cookies(self, product: Product, cookies: List[str]) -> None:
        """Announce newly created basket cookies."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


class IDatabaseConnection(ABC):
    """Interface for the price and basket cookie store."""

    @abstractmethod
    async def get_last_known_price(self, product: Product) -> float:
        """Last stored price, NaN when unknown."""
        pass

    @abstractmethod
    async def store_price(self, product: Product, price: float) -> None:
        """Store the latest observed price."""
        pass

    @abstractmethod
    async def get_cookies_amount(self, product: Product) -> int:
        """Number of basket cookies created so far, 0 when unknown."""
        pass

    @abstractmethod
    async def store_cookies(self, product: Product, cookies: List[str]) -> None:
        """Append newly created basket cookies."""
        pass


class IQueryClient(ABC):
    """Interface for the storefront GraphQL transport."""

    @abstractmethod
    async def query(self, operation: str, sha256_hash: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Run a persisted query and return its ``data`` object."""
        pass


class IItemSource(ABC):
    """Interface for producers of raw item batches."""

    @abstractmethod
    def batches(self) -> AsyncIterator[List[Item]]:
        """Yield one list of items per page."""
        pass


class IBasketAdder(ABC):
    """Interface for basket/cookie automation."""

    @abstractmethod
    async def create_cookies(self, product: Product) -> List[str]:
        """Add the product to fresh baskets and return the basket cookies."""
        pass


class IConfigManager(ABC):
    """Interface for configuration management."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        pass

    @abstractmethod
    def load_config(self, config_path: str) -> None:
        """Load configuration from file."""
        pass

    @abstractmethod
    def save_config(self, config_path: str) -> None:
        """Save configuration to file."""
        pass
