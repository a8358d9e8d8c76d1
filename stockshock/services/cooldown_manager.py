"""
Notification cooldown store.

Keeps two independent maps keyed by product id:

- stock cooldowns suppress repeated stock notifications for an item
- basket cooldowns suppress repeated basket cookie creation after a success

Both maps are restored from and persisted to JSON files in the data
directory at process boundaries.
"""
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, List

from ..models.api_models import Item, Product
from ..models.cooldown import CooldownTag, NotificationCooldown
from ..models.stores import StoreConfiguration

COOLDOWNS_FILE = "cooldowns.json"
BASKET_COOLDOWNS_FILE = "basket-cooldowns.json"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CooldownSettings:
    """Durations of the stock cooldown tiers and the basket cooldown."""
    in_stock: timedelta = timedelta(minutes=5)
    can_be_added_to_basket: timedelta = timedelta(hours=12)
    stock_with_cookies: timedelta = timedelta(hours=2)
    stock_no_cookies: timedelta = timedelta(hours=24)
    basket: timedelta = timedelta(hours=8)

    @classmethod
    def from_store_configuration(cls, store_config: StoreConfiguration) -> 'CooldownSettings':
        """Apply the ``cooldown_*_minutes`` overrides of a store section."""
        defaults = cls()

        def minutes(value: Optional[int], default: timedelta) -> timedelta:
            return timedelta(minutes=value) if value is not None else default

        return cls(
            in_stock=minutes(store_config.cooldown_in_stock_minutes, defaults.in_stock),
            can_be_added_to_basket=minutes(
                store_config.cooldown_can_be_added_to_basket_minutes, defaults.can_be_added_to_basket
            ),
            stock_with_cookies=minutes(store_config.cooldown_stock_with_cookies_minutes, defaults.stock_with_cookies),
            stock_no_cookies=minutes(store_config.cooldown_stock_no_cookies_minutes, defaults.stock_no_cookies),
            basket=minutes(store_config.cooldown_basket_minutes, defaults.basket)
        )


class CooldownManager:
    """Owns the stock and basket cooldown maps for the process lifetime."""

    def __init__(self, data_dir: Optional[Path] = None, settings: Optional[CooldownSettings] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.logger = logging.getLogger(__name__)
        self.data_dir = Path(data_dir) if data_dir else Path('.')
        self.settings = settings or CooldownSettings()
        self.clock = clock
        self.cooldowns: Dict[str, NotificationCooldown] = {}
        self.basket_cooldowns: Dict[str, NotificationCooldown] = {}

    @property
    def cooldowns_path(self) -> Path:
        return self.data_dir / COOLDOWNS_FILE

    @property
    def basket_cooldowns_path(self) -> Path:
        return self.data_dir / BASKET_COOLDOWNS_FILE

    # Lookups check expiry themselves so that unpruned entries never suppress.

    def has_cooldown(self, item_id: str) -> bool:
        return self.get_cooldown(item_id) is not None

    def get_cooldown(self, item_id: str) -> Optional[NotificationCooldown]:
        """Active stock cooldown for an id, if any."""
        cooldown = self.cooldowns.get(item_id)
        if cooldown is None or not cooldown.is_active(self.clock()):
            return None
        return cooldown

    def has_basket_cooldown(self, item_id: str) -> bool:
        cooldown = self.basket_cooldowns.get(item_id)
        return cooldown is not None and cooldown.is_active(self.clock())

    def set_cooldown(self, item_id: str, is_buyable: bool, duration: timedelta) -> NotificationCooldown:
        """Upsert the stock cooldown of an id."""
        cooldown = NotificationCooldown(
            id=item_id,
            tag=CooldownTag.from_buyable(is_buyable),
            end_time=self.clock() + duration
        )
        self.cooldowns[item_id] = cooldown
        return cooldown

    def set_basket_cooldown(self, item_id: str, duration: Optional[timedelta] = None) -> NotificationCooldown:
        """Upsert the basket cooldown of an id."""
        cooldown = NotificationCooldown(
            id=item_id,
            tag=CooldownTag.NOT_APPLICABLE,
            end_time=self.clock() + (duration if duration is not None else self.settings.basket)
        )
        self.basket_cooldowns[item_id] = cooldown
        return cooldown

    def delete_cooldown(self, item_id: str) -> bool:
        return self.cooldowns.pop(item_id, None) is not None

    def get_stock_cooldown_duration(self, is_buyable: bool, can_be_added_to_basket: bool,
                                    has_cookies: bool) -> timedelta:
        """Pick the stock cooldown tier.

        Buyable items re-alert quickly, addable items rarely. Items that are
        neither re-alert sooner once cookies exist for them.
        """
        if is_buyable:
            return self.settings.in_stock
        if can_be_added_to_basket:
            return self.settings.can_be_added_to_basket
        if has_cookies:
            return self.settings.stock_with_cookies
        return self.settings.stock_no_cookies

    def add_to_cooldown_map(self, item: Item, is_buyable: bool, can_be_added_to_basket: bool,
                            has_cookies: bool = False) -> Optional[NotificationCooldown]:
        """Start the stock cooldown of an item using the tier policy."""
        if item.product_id is None:
            return None
        duration = self.get_stock_cooldown_duration(is_buyable, can_be_added_to_basket, has_cookies)
        return self.set_cooldown(item.product_id, is_buyable, duration)

    def add_to_basket_cooldown_map(self, product: Product) -> NotificationCooldown:
        """Start the basket cooldown after successful cookie creation."""
        return self.set_basket_cooldown(product.id)

    def prune_expired(self, now: Optional[datetime] = None) -> int:
        """Remove every record of both maps whose end time has passed."""
        now = now or self.clock()
        removed = 0
        for cooldown_map in (self.cooldowns, self.basket_cooldowns):
            expired = [item_id for item_id, cooldown in cooldown_map.items() if not cooldown.is_active(now)]
            for item_id in expired:
                del cooldown_map[item_id]
            removed += len(expired)
        if removed:
            self.logger.debug(f"Pruned {removed} expired cooldowns")
        return removed

    def restore(self) -> None:
        """Load both maps from disk; missing or corrupt files start empty."""
        self.cooldowns = self._read_map(self.cooldowns_path)
        self.basket_cooldowns = self._read_map(self.basket_cooldowns_path)
        self.prune_expired()
        self.logger.info(
            f"Restored {len(self.cooldowns)} stock cooldowns and {len(self.basket_cooldowns)} basket cooldowns"
        )

    def persist(self) -> None:
        """Snapshot both maps and write them to disk."""
        cooldowns = [[item_id, cooldown.to_dict()] for item_id, cooldown in list(self.cooldowns.items())]
        basket_cooldowns = [[item_id, cooldown.to_dict()] for item_id, cooldown in list(self.basket_cooldowns.items())]
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._write_atomic(self.cooldowns_path, cooldowns)
        self._write_atomic(self.basket_cooldowns_path, basket_cooldowns)
        self.logger.debug(f"Saved {len(cooldowns)} stock cooldowns and {len(basket_cooldowns)} basket cooldowns")

    def _read_map(self, path: Path) -> Dict[str, NotificationCooldown]:
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                entries: List = json.load(f)
            if not isinstance(entries, list):
                raise ValueError(f"expected a list of entries, got {type(entries).__name__}")
            return {
                str(item_id): NotificationCooldown.from_dict(record)
                for item_id, record in entries
            }
        except (OSError, ValueError, TypeError, KeyError) as e:
            self.logger.warning(f"Ignoring unreadable cooldown file {path}: {e}")
            return {}

    @staticmethod
    def _write_atomic(path: Path, payload: List) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
