"""Real-time fan-out of game notifications to party members."""

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    GAME_STARTED = "game-started"
    GAME_UPDATED = "game-updated"
    GAME_ENDED = "game-ended"
    ACTION_STARTED = "action-started"  # Pre-transition, UI choreography only


class Notification(BaseModel):
    """One message to every member of a party."""

    kind: NotificationKind
    party_id: str
    version: int = 0
    payload: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.kind.value}[{self.party_id}@{self.version}]"


class Broadcaster(Protocol):
    async def publish(self, notification: Notification) -> None:
        ...


class NullBroadcaster:
    """Drops every notification."""

    async def publish(self, notification: Notification) -> None:
        pass


class CollectingBroadcaster:
    """Keeps notifications in memory for inspection."""

    def __init__(self):
        self.notifications: list[Notification] = []

    async def publish(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def kinds(self, party_id: Optional[str] = None) -> list[NotificationKind]:
        return [
            n.kind for n in self.notifications
            if party_id is None or n.party_id == party_id
        ]

    def clear(self) -> None:
        self.notifications.clear()


class CallbackBroadcaster:
    """Forwards notifications to a callback (sync or async).

    A failing callback is logged and does not affect the game.
    """

    def __init__(self, on_notification: Callable[[Notification], Any]):
        """Initialize the broadcaster.

        Args:
            on_notification: Called with each Notification. May be a coroutine
                             function.
        """
        self._on_notification = on_notification

    async def publish(self, notification: Notification) -> None:
        try:
            result = self._on_notification(notification)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Notification callback failed for %s", notification)
