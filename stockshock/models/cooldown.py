"""
Notification cooldown records.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from enum import Enum


class CooldownTag(Enum):
    """Buyability the product had when the cooldown was set."""
    BUYABLE = "buyable"
    NOT_BUYABLE = "not_buyable"
    NOT_APPLICABLE = "not_applicable"  # basket cooldowns

    @classmethod
    def from_buyable(cls, is_buyable: bool) -> 'CooldownTag':
        return cls.BUYABLE if is_buyable else cls.NOT_BUYABLE

    @classmethod
    def from_legacy(cls, value: Optional[bool]) -> 'CooldownTag':
        """Map the old nullable ``isProductBuyable`` flag."""
        if value is None:
            return cls.NOT_APPLICABLE
        return cls.from_buyable(bool(value))


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class NotificationCooldown:
    """Suppression window for one product id."""
    id: str
    tag: CooldownTag
    end_time: datetime

    @property
    def is_product_buyable(self) -> bool:
        return self.tag is CooldownTag.BUYABLE

    def is_active(self, now: datetime) -> bool:
        """A cooldown is active iff now is before its end time."""
        return _ensure_aware(now) < _ensure_aware(self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for file storage."""
        return {
            'id': self.id,
            'tag': self.tag.value,
            'endTime': _ensure_aware(self.end_time).isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NotificationCooldown':
        """Create instance from dictionary.

        Accepts both the ``tag`` field and the older ``isProductBuyable``
        flag written by previous versions.

        Raises:
            ValueError: If the record is not an object or has no usable end time
        """
        if not isinstance(data, dict):
            raise ValueError(f"Cooldown record must be an object, got {type(data).__name__}")

        if 'tag' in data:
            tag = CooldownTag(data['tag'])
        else:
            tag = CooldownTag.from_legacy(data.get('isProductBuyable'))

        end_time = data['endTime']
        if isinstance(end_time, str):
            end_time = datetime.fromisoformat(end_time.replace('Z', '+00:00'))
        elif not isinstance(end_time, datetime):
            raise ValueError(f"Cooldown endTime must be an ISO timestamp, got {end_time!r}")

        return cls(id=str(data['id']), tag=tag, end_time=_ensure_aware(end_time))
