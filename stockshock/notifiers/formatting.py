"""
Message texts shared by the notifiers.
"""
from enum import Enum
from typing import List, Optional

from ..models.api_models import Item, Product
from ..models.stores import Store
from ..services.product_helper import ProductHelper

UNKNOWN_CURRENCY = "𑿠"
RATE_LIMIT_ANNOUNCE_SECONDS = 300


class StockKind(Enum):
    """The three stock notification kinds, valued by their headline."""
    AVAILABLE = "🟢 Item **available**"
    ADDABLE = "🛒 Item **can be added to basket**"
    BASKET_PARKER = "🟡 Item for **basket parker**"

    @property
    def emoji(self) -> str:
        return self.value.split(" ", 1)[0]

    @classmethod
    def classify(cls, item: Item, product_helper: ProductHelper) -> 'StockKind':
        if product_helper.is_product_buyable(item):
            return cls.AVAILABLE
        if product_helper.can_product_be_added_to_basket(item):
            return cls.ADDABLE
        return cls.BASKET_PARKER


def format_amount(value: Optional[float]) -> str:
    """Render a price without a trailing ``.0`` for whole amounts."""
    if value is None:
        return "0"
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def format_price(item: Item) -> str:
    return f"{format_amount(item.price_amount)} {item.currency or UNKNOWN_CURRENCY}"


def stock_message(kind: StockKind, item: Item, url: str) -> str:
    product = item.product
    return f"{kind.value}: {product.id}, {product.title} for {format_price(item)}! Go check it out: {url}"


def price_change_message(item: Item, old_price: float) -> str:
    currency = item.currency or UNKNOWN_CURRENCY
    new_price = item.price_amount or 0
    delta = new_price - old_price
    delta_percentage = (delta / old_price) * 100
    emoji = "⏫" if delta > 0 else "⏬"
    return (
        f"{emoji} {item.product.title} [{item.product.id}] changed the price from "
        f"{format_amount(old_price)} {currency} to {format_amount(new_price)} {currency} "
        f"({delta_percentage:.2f}%)"
    )


def rate_limit_message(store: Store, seconds: float) -> Optional[str]:
    """Only pauses longer than five minutes are worth announcing."""
    if not seconds or seconds <= RATE_LIMIT_ANNOUNCE_SECONDS:
        return None
    return f"💤 [{store.name}] Too many requests, we need to pause {seconds / 60:.2f} minutes... 😴"


def cookies_message(store: Store, product: Product, cookies: List[str]) -> str:
    return f"🍪 {len(cookies)} basket cookies were made for **{product.id}**, **{product.title}** for {store.name}"


def decorate_with_roles(message: str, role_pings: Optional[List[str]]) -> str:
    """Append Discord role mentions."""
    if not role_pings:
        return message
    return f"{message} " + " ".join(f"<@&{role}>" for role in role_pings)


def split_role_pings(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [role.strip() for role in str(value).split(",") if role.strip()]
