"""
Core data models for storefront query responses.

The storefront returns camelCase GraphQL payloads where almost every
sub-object may be missing or null. Every ``from_dict`` here is total: a
malformed payload produces a model with ``None`` fields instead of raising.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum
import math


class AvailabilityType(Enum):
    """Delivery availability reported by the storefront."""
    IN_WAREHOUSE = "IN_WAREHOUSE"
    IN_STORE = "IN_STORE"
    LONG_TAIL = "LONG_TAIL"
    NONE = "NONE"

    @classmethod
    def parse(cls, value: Any) -> Optional['AvailabilityType']:
        """Parse a wire value, returning None for missing or unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class Product:
    """Identity record of a storefront product."""
    id: str
    title: Optional[str] = None
    url: Optional[str] = None
    online_status: bool = False
    title_image_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['Product']:
        """Create instance from a GraphQL product object."""
        data = _as_dict(data)
        product_id = data.get('id')
        if not product_id:
            return None
        return cls(
            id=str(product_id),
            title=data.get('title'),
            url=data.get('url'),
            online_status=bool(data.get('onlineStatus', False)),
            title_image_id=data.get('titleImageId')
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the wire representation."""
        return {
            'id': self.id,
            'title': self.title,
            'url': self.url,
            'onlineStatus': self.online_status,
            'titleImageId': self.title_image_id
        }


@dataclass(frozen=True)
class Price:
    """Observed price of an item."""
    amount: Optional[float] = None
    currency: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['Price']:
        """Create instance from a GraphQL price object."""
        if not isinstance(data, dict):
            return None
        amount = data.get('price')
        try:
            amount = float(amount) if amount is not None else None
        except (TypeError, ValueError):
            amount = None
        if amount is not None and math.isnan(amount):
            amount = None
        return cls(amount=amount, currency=data.get('currency'))


@dataclass(frozen=True)
class Delivery:
    """Delivery descriptor of one observation."""
    availability_type: Optional[AvailabilityType] = None
    quantity: int = 0
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'Delivery':
        data = _as_dict(data)
        try:
            quantity = int(data.get('quantity') or 0)
        except (TypeError, ValueError):
            quantity = 0
        return cls(
            availability_type=AvailabilityType.parse(data.get('availabilityType')),
            quantity=quantity,
            earliest=_parse_datetime(data.get('earliest')),
            latest=_parse_datetime(data.get('latest'))
        )


@dataclass(frozen=True)
class Availability:
    """Availability snapshot; superseded on every poll."""
    delivery: Delivery = field(default_factory=Delivery)

    @classmethod
    def from_dict(cls, data: Any) -> 'Availability':
        return cls(delivery=Delivery.from_dict(_as_dict(data).get('delivery')))


@dataclass(frozen=True)
class ProductControl:
    """Assortment flags some storefronts attach to an item."""
    is_in_assortment: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> Optional['ProductControl']:
        if not isinstance(data, dict):
            return None
        return cls(is_in_assortment=bool(data.get('isInAssortment', False)))


@dataclass(frozen=True)
class Item:
    """A product paired with its price and availability from one response."""
    product: Optional[Product] = None
    price: Optional[Price] = None
    availability: Availability = field(default_factory=Availability)
    product_control: Optional[ProductControl] = None

    @property
    def product_id(self) -> Optional[str]:
        """Resolvable product id or None."""
        return self.product.id if self.product else None

    @property
    def availability_type(self) -> Optional[AvailabilityType]:
        return self.availability.delivery.availability_type

    @property
    def quantity(self) -> int:
        return self.availability.delivery.quantity

    @property
    def price_amount(self) -> Optional[float]:
        return self.price.amount if self.price else None

    @property
    def currency(self) -> Optional[str]:
        return self.price.currency if self.price else None

    @classmethod
    def from_dict(cls, data: Any) -> 'Item':
        """Create instance from a wishlist, search or product detail item."""
        data = _as_dict(data)
        return cls(
            product=Product.from_dict(data.get('product')),
            price=Price.from_dict(data.get('price')),
            availability=Availability.from_dict(data.get('availability')),
            product_control=ProductControl.from_dict(data.get('productControl'))
        )

    @classmethod
    def list_from_dicts(cls, items: Any) -> List['Item']:
        """Parse a list of raw items, ignoring anything that is not an object."""
        if not isinstance(items, list):
            return []
        return [cls.from_dict(raw) for raw in items if isinstance(raw, dict)]


@dataclass
class PriceChange:
    """Price change information."""
    previous_price: float
    current_price: float
    change_amount: float
    change_percentage: float
    currency: Optional[str] = None

    @property
    def is_increase(self) -> bool:
        return self.change_amount > 0
