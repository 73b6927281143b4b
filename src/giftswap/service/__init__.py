"""Service layer: command entry points, persistence and notifications."""

from giftswap.service.store import (
    GameStore,
    InMemoryGameStore,
    YamlFileGameStore,
    PersistenceError,
    VersionConflict,
)
from giftswap.service.broadcaster import (
    Broadcaster,
    NullBroadcaster,
    CollectingBroadcaster,
    CallbackBroadcaster,
    Notification,
    NotificationKind,
)
from giftswap.service.game_service import (
    GameService,
    CommandOutcome,
    GameNotFoundError,
    GameSetupError,
)

__all__ = [
    "GameStore",
    "InMemoryGameStore",
    "YamlFileGameStore",
    "PersistenceError",
    "VersionConflict",
    "Broadcaster",
    "NullBroadcaster",
    "CollectingBroadcaster",
    "CallbackBroadcaster",
    "Notification",
    "NotificationKind",
    "GameService",
    "CommandOutcome",
    "GameNotFoundError",
    "GameSetupError",
]
