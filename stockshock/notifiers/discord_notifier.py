"""
Discord notifier delivering embeds through channel webhooks.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import aiohttp
import discord
from discord import Embed, Color

from .. import __version__
from ..exceptions import NotifierError
from ..models.api_models import Item, Product
from ..models.interfaces import INotifier
from ..models.stores import Store, StoreConfiguration
from ..services.product_helper import ProductHelper
from .formatting import (
    StockKind, cookies_message, decorate_with_roles, format_amount, format_price,
    price_change_message, rate_limit_message, split_role_pings, stock_message, UNKNOWN_CURRENCY
)

IMAGE_URL = "https://assets.mmsrg.com/isr/166325/c1/-/{image_id}/mobile_200_200.png"
NO_COOKIE_EMOJI = "👎"

STOCK_COLORS = {
    StockKind.AVAILABLE: Color(0x7ab05e),
    StockKind.ADDABLE: Color(0x60696f),
    StockKind.BASKET_PARKER: Color(0xfcca62),
}
PRICE_UP_COLOR = Color(0xc31515)
PRICE_DOWN_COLOR = Color(0x7ab05e)


class DiscordNotifier(INotifier):
    """
    Sends stock, cookie, admin and price change messages to Discord.

    Every message kind has its own webhook and optional role pings; a kind
    without a webhook is skipped silently.
    """

    def __init__(self, store: Store, store_config: StoreConfiguration,
                 session: Optional[aiohttp.ClientSession] = None):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.session = session
        self._owns_session = session is None

        self.product_helper = ProductHelper(
            check_online_status=store_config.check_online_status,
            check_in_assortment=store_config.check_in_assortment
        )
        self.replacements = store_config.get_id_replacements()
        self.announce_cookies = store_config.announce_cookies
        self.shopping_cart_alerts = store_config.shopping_cart_alerts
        self.show_cookies_amount = store_config.show_cookies_amount
        self.show_magician_link = store_config.show_magician_link
        self.no_cookie_emoji = store_config.discord_nocookie_emoji or NO_COOKIE_EMOJI

        self.webhook_urls: Dict[str, Optional[str]] = {
            'stock': store_config.discord_stock_webhook,
            'cookie': store_config.discord_cookie_webhook,
            'admin': store_config.discord_admin_webhook,
            'price_change': store_config.discord_price_change_webhook,
        }
        self.role_pings: Dict[str, List[str]] = {
            'stock': split_role_pings(store_config.discord_stock_role_ping),
            'cookie': split_role_pings(store_config.discord_cookie_role_ping),
            'admin': split_role_pings(store_config.discord_admin_role_ping),
            'price_change': split_role_pings(store_config.discord_price_change_role_ping),
        }
        self._webhooks: Dict[str, discord.Webhook] = {}

    @property
    def enabled(self) -> bool:
        return any(self.webhook_urls.values())

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def _get_webhook(self, channel: str) -> Optional[discord.Webhook]:
        url = self.webhook_urls.get(channel)
        if not url:
            return None
        if channel not in self._webhooks:
            self._webhooks[channel] = discord.Webhook.from_url(url, session=await self._get_session())
        return self._webhooks[channel]

    async def _send(self, channel: str, content: str, embed: Optional[Embed] = None) -> bool:
        """Send to the webhook of a channel kind. Returns False if none is configured."""
        webhook = await self._get_webhook(channel)
        if webhook is None:
            return False
        try:
            if embed is not None:
                await webhook.send(content=content, embed=embed)
            else:
                await webhook.send(content=content)
        except discord.HTTPException as e:
            raise NotifierError(f"Discord {channel} webhook failed: {e}") from e
        return True

    def _create_embed(self, item: Item) -> Embed:
        embed = Embed(timestamp=datetime.now(timezone.utc))
        embed.set_footer(text=f"Stockshock v{__version__} • Links may be affiliate links")
        if item.product is None:
            return embed
        embed.title = item.product.title
        embed.url = self.product_helper.get_product_url(item, self.store, self.replacements)
        if item.product.title_image_id:
            embed.set_image(url=IMAGE_URL.format(image_id=item.product.title_image_id))
        return embed

    async def notify_stock(self, item: Item, cookies_amount: int = 0) -> Optional[str]:
        if item is None or item.product is None:
            return None

        kind = StockKind.classify(item, self.product_helper)
        if kind is StockKind.ADDABLE and not self.shopping_cart_alerts:
            return None

        product = item.product
        embed = self._create_embed(item)
        embed.description = kind.value
        embed.color = STOCK_COLORS[kind]
        embed.add_field(name="ProductID", value=product.id, inline=False)
        embed.add_field(name="Price", value=format_price(item), inline=True)
        embed.add_field(name="Store", value=self.store.name, inline=True)
        if self.show_magician_link:
            embed.add_field(
                name="Magician",
                value=self.product_helper.get_product_url(item, self.store, self.replacements, magician=True),
                inline=False
            )
        if self.show_cookies_amount:
            embed.add_field(
                name="Cookies",
                value=f"{cookies_amount} 🍪" if cookies_amount else self.no_cookie_emoji,
                inline=True
            )

        role_pings = self.role_pings['stock']
        url = self.product_helper.get_product_url(
            item, self.store, self.replacements, magician=kind is not StockKind.BASKET_PARKER
        )
        plain_message = decorate_with_roles(stock_message(kind, item, url), role_pings)

        await self._send(
            'stock',
            decorate_with_roles(f"{kind.emoji} {product.title} [{product.id}] for {format_price(item)}", role_pings),
            embed
        )
        return plain_message

    async def notify_price_change(self, item: Item, old_price: float) -> None:
        if item is None or item.product is None or not old_price:
            return

        currency = item.currency or UNKNOWN_CURRENCY
        new_price = item.price_amount or 0
        delta = new_price - old_price
        delta_percentage = (delta / old_price) * 100
        emoji = "⏫" if delta > 0 else "⏬"

        embed = self._create_embed(item)
        embed.description = f"{emoji} Price change"
        embed.color = PRICE_UP_COLOR if delta > 0 else PRICE_DOWN_COLOR
        embed.add_field(name="ProductID", value=item.product.id, inline=False)
        embed.add_field(name="Old Price", value=f"{format_amount(old_price)} {currency}", inline=True)
        embed.add_field(name="New Price", value=f"{format_amount(new_price)} {currency}", inline=True)
        embed.add_field(name="Delta", value=f"{delta:.2f} {currency} ({delta_percentage:.2f}%)", inline=True)
        embed.add_field(name="Store", value=self.store.name, inline=True)

        await self._send(
            'price_change',
            decorate_with_roles(price_change_message(item, old_price), self.role_pings['price_change']),
            embed
        )

    async def notify_admin(self, message: str, error: Optional[BaseException] = None) -> None:
        if not message:
            return
        await self._send('admin', decorate_with_roles(message, self.role_pings['admin']))

    async def notify_rate_limit(self, seconds: float) -> None:
        message = rate_limit_message(self.store, seconds)
        if message:
            await self._send('admin', decorate_with_roles(message, self.role_pings['admin']))

    async def notify_cookies(self, product: Product, cookies: List[str]) -> None:
        if product is None or cookies is None:
            return
        message = cookies_message(self.store, product, cookies)
        if self.announce_cookies:
            links = "\n".join(self.store.get_cookie_url(cookie) for cookie in cookies)
            message += f":\n`{links}`\n"
        await self._send('cookie', decorate_with_roles(message, self.role_pings['cookie']))

    async def close(self) -> None:
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None
        self._webhooks.clear()
