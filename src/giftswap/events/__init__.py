"""Events package."""

from giftswap.events.game_events import (
    # Enums
    EventType,
    SkipReason,
    # History entries
    BaseHistoryEvent,
    PickEvent,
    StealEvent,
    SkipEvent,
    HistoryEvent,
)

from giftswap.events.event_formatter import EventFormatter
from giftswap.events.event_log import GameRecord

__all__ = [
    # Enums
    "EventType",
    "SkipReason",
    # History entries
    "BaseHistoryEvent",
    "PickEvent",
    "StealEvent",
    "SkipEvent",
    "HistoryEvent",
    # Logs
    "EventFormatter",
    "GameRecord",
]
