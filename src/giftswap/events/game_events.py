"""History event types.

The history is append-only and is the ground truth for ownership: the live
gift map in GameState is a projection that can always be rebuilt from it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Kinds of history entries."""

    PICK = "PICK"
    STEAL = "STEAL"
    SKIP = "SKIP"


class SkipReason(str, Enum):
    """Why an actor ended their turn without acting."""

    VOLUNTARY = "VOLUNTARY"  # Kept a gift they like
    NO_LEGAL_MOVE = "NO_LEGAL_MOVE"  # Nothing to pick or steal
    FORCED = "FORCED"  # Admin override or bot livelock breaker


class BaseHistoryEvent(BaseModel):
    """Fields shared by every history entry."""

    actor_id: str
    turn_index: int = 0
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(actor={self.actor_id}, turn={self.turn_index})"


class PickEvent(BaseHistoryEvent):
    """Actor unwrapped a gift from the pool."""

    type: Literal["PICK"] = "PICK"
    gift_id: str

    def __str__(self) -> str:
        return f"Pick(actor={self.actor_id}, gift={self.gift_id})"


class StealEvent(BaseHistoryEvent):
    """Actor took an unwrapped gift from its owner."""

    type: Literal["STEAL"] = "STEAL"
    gift_id: str
    previous_owner_id: str
    exchanged_gift_id: Optional[str] = None  # Gift handed to the previous owner
    resulting_steal_count: int
    became_frozen: bool = False

    def __str__(self) -> str:
        swap = f", exchanged={self.exchanged_gift_id}" if self.exchanged_gift_id else ""
        return (
            f"Steal(actor={self.actor_id}, gift={self.gift_id}, "
            f"from={self.previous_owner_id}{swap})"
        )


class SkipEvent(BaseHistoryEvent):
    """Actor ended the turn without picking or stealing."""

    type: Literal["SKIP"] = "SKIP"
    reason: SkipReason = SkipReason.VOLUNTARY

    def __str__(self) -> str:
        return f"Skip(actor={self.actor_id}, reason={self.reason.value})"


HistoryEvent = Annotated[
    Union[PickEvent, StealEvent, SkipEvent],
    Field(discriminator="type"),
]
