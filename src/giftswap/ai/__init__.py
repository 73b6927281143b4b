"""Autoplay for non-human players."""

from giftswap.ai.autoplay import (
    AutoplayAgent,
    BotAction,
    BotDecision,
    is_bot,
    DEFAULT_BOT_PREFIX,
)
from giftswap.ai.bot_driver import BotDriver

__all__ = [
    "AutoplayAgent",
    "BotAction",
    "BotDecision",
    "is_bot",
    "DEFAULT_BOT_PREFIX",
    "BotDriver",
]
