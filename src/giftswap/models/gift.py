"""Gift and game configuration models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class StealBackRule(str, Enum):
    """How long a player is barred from stealing back a gift taken from them."""

    CHAIN = "CHAIN"  # Barred until the turn queue advances
    ALLOWED = "ALLOWED"  # No restriction


class GameConfig(BaseModel):
    """Rule configuration for one game. Immutable once the game starts."""

    max_steals: int = Field(default=3, ge=1)
    return_to_start: bool = False  # Boomerang (snake draft) mode
    steal_back: StealBackRule = StealBackRule.CHAIN

    model_config = ConfigDict(frozen=True)


class Gift(BaseModel):
    """An unwrapped gift and its current holder.

    Wrapped gifts are tracked by id only, so every Gift has an owner.
    """

    gift_id: str
    owner_id: str
    steal_count: int = 0
    is_frozen: bool = False
    last_owner_id: Optional[str] = None  # Taken from this player in the current chain

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for display."""
        return {
            "gift_id": self.gift_id,
            "owner_id": self.owner_id,
            "steal_count": self.steal_count,
            "is_frozen": self.is_frozen,
        }


class GameSetup(BaseModel):
    """Everything needed to start a game."""

    players: list[str]
    gifts: list[str]
    config: GameConfig = Field(default_factory=GameConfig)

    @model_validator(mode='after')
    def validate_pool(self) -> "GameSetup":
        if len(self.players) < 2:
            raise ValueError(f"need at least 2 players, got {len(self.players)}")
        if len(set(self.players)) != len(self.players):
            raise ValueError("player ids must be unique")
        if len(set(self.gifts)) != len(self.gifts):
            raise ValueError("gift ids must be unique")
        if len(self.gifts) < len(self.players):
            raise ValueError(
                f"not enough gifts: {len(self.gifts)} gifts for {len(self.players)} players"
            )
        return self
