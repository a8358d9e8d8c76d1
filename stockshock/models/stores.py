"""
Storefront definitions and per-store configuration.
"""
import logging
import random
from dataclasses import dataclass, field, fields
from typing import Optional, List, Dict, Any, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Store:
    """Identity of one storefront."""
    base_url: str
    country_code: str
    language_code: str
    sales_line: str
    short_code: str
    name: str
    short_name: str
    thumbnail: Optional[str] = None
    login_sleep_time: Optional[int] = None
    min_sleep_time: int = 100  # milliseconds
    max_sleep_time: int = 500

    def with_sleep_times(self, min_sleep_time: Optional[int], max_sleep_time: Optional[int]) -> 'Store':
        """Return a copy using the configured sleep window."""
        return Store(
            base_url=self.base_url,
            country_code=self.country_code,
            language_code=self.language_code,
            sales_line=self.sales_line,
            short_code=self.short_code,
            name=self.name,
            short_name=self.short_name,
            thumbnail=self.thumbnail,
            login_sleep_time=self.login_sleep_time,
            min_sleep_time=min_sleep_time or self.min_sleep_time,
            max_sleep_time=max_sleep_time or self.max_sleep_time
        )

    def get_sleep_time(self) -> float:
        """Random sleep time in milliseconds between two requests."""
        return random.uniform(self.min_sleep_time, self.max_sleep_time)

    def get_cookie_url(self, cookie: str) -> str:
        """Link that restores a basket cookie in the browser."""
        return f"{self.base_url}?cookie={cookie}"


STORES: Dict[str, Store] = {
    store.short_code: store for store in (
        Store("https://www.mediamarkt.at", "AT", "de", "Media", "mmat",
              "MediaMarkt Austria", "MediaMarkt", login_sleep_time=2500),
        Store("https://www.mediamarkt.be", "BE", "nl", "Media", "mmbe",
              "MediaMarkt Belgium", "MediaMarkt"),
        Store("https://www.mediamarkt.de", "DE", "de", "Media", "mmde",
              "MediaMarkt Germany", "MediaMarkt",
              thumbnail="https://www.mediamarkt.de/public/manifest/splashscreen-Media-512x512.png"),
        Store("https://www.mediamarkt.es", "ES", "es", "Media", "mmes",
              "MediaMarkt Spain", "MediaMarkt"),
        Store("https://www.mediaworld.it", "IT", "it", "Media", "mmit",
              "MediaWorld Italy", "MediaWorld",
              thumbnail="https://www.mediaworld.it/public/manifest/splashscreen-Media-512x512.png"),
        Store("https://www.mediamarkt.nl", "NL", "nl", "Media", "mmnl",
              "MediaMarkt Netherlands", "MediaMarkt"),
        Store("https://mediamarkt.pl", "PL", "pl", "Media", "mmpl",
              "MediaMarkt Poland", "MediaMarkt"),
        Store("https://www.mediamarkt.ch", "CH", "de", "Media", "mmch",
              "MediaMarkt Switzerland", "MediaMarkt"),
        Store("https://www.saturn.de", "DE", "de", "Saturn", "saturn",
              "Saturn", "Saturn"),
    )
}


def get_store(short_code: str) -> Store:
    """Look up a storefront by its short code."""
    try:
        return STORES[short_code.lower()]
    except KeyError:
        raise KeyError(f"Unknown store '{short_code}', choose one of: {', '.join(sorted(STORES))}")


@dataclass
class StoreConfiguration:
    """Every option recognised in a store section of the config file."""
    # Sources to check
    check_wishlist: bool = True
    categories: List[str] = field(default_factory=list)
    category_regex: Optional[str] = None
    searches: List[str] = field(default_factory=list)
    search_regex: Optional[str] = None
    search_price_range: Optional[List[float]] = None

    # Misc
    cache_busting: bool = True
    min_sleep_time: Optional[int] = None
    max_sleep_time: Optional[int] = None
    cookie_ids: List[str] = field(default_factory=list)
    announce_cookies: bool = True
    shopping_cart_alerts: bool = True
    show_cookies_amount: bool = True
    show_magician_link: bool = True
    check_online_status: bool = True
    check_in_assortment: bool = False
    id_replacements: List[List[str]] = field(default_factory=list)

    # Cooldowns (minutes)
    cooldown_in_stock_minutes: Optional[int] = None
    cooldown_can_be_added_to_basket_minutes: Optional[int] = None
    cooldown_stock_with_cookies_minutes: Optional[int] = None
    cooldown_stock_no_cookies_minutes: Optional[int] = None
    cooldown_basket_minutes: Optional[int] = None

    # Discord
    discord_stock_webhook: Optional[str] = None
    discord_cookie_webhook: Optional[str] = None
    discord_admin_webhook: Optional[str] = None
    discord_price_change_webhook: Optional[str] = None
    discord_stock_role_ping: Optional[str] = None
    discord_cookie_role_ping: Optional[str] = None
    discord_admin_role_ping: Optional[str] = None
    discord_price_change_role_ping: Optional[str] = None
    discord_nocookie_emoji: Optional[str] = None

    # Telegram
    telegram_bot_api_key: Optional[str] = None
    telegram_channel_id: Optional[str] = None

    # Price/cookie storage
    database_path: Optional[str] = None

    # Persisted query hashes
    wishlist_sha256: Optional[str] = None
    category_sha256: Optional[str] = None
    search_sha256: Optional[str] = None
    product_sha256: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'StoreConfiguration':
        """Create instance from a config section.

        Unknown keys are reported and dropped.
        """
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(key for key in data if key not in known)
        if unknown:
            logger.warning(f"Ignoring unknown store configuration keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})

    def get_id_replacements(self) -> Dict[str, str]:
        """Product id -> URL overrides."""
        replacements = {}
        for pair in self.id_replacements:
            if len(pair) >= 2:
                replacements[str(pair[0])] = str(pair[1])
        return replacements

    def get_search_price_range(self) -> Optional[Tuple[float, float]]:
        if not self.search_price_range or len(self.search_price_range) != 2:
            return None
        return float(self.search_price_range[0]), float(self.search_price_range[1])
