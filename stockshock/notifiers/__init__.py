"""Notification transports."""
from .logger_notifier import LoggerNotifier
from .discord_notifier import DiscordNotifier
from .telegram_notifier import TelegramNotifier

__all__ = ['LoggerNotifier', 'DiscordNotifier', 'TelegramNotifier']
