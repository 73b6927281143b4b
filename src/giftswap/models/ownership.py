"""Final ownership produced when a game ends."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ReconciliationSource(str, Enum):
    """Where the final ownership map came from."""

    LIVE = "LIVE"  # Live gift map was consistent
    HISTORY_REPLAY = "HISTORY_REPLAY"  # Rebuilt by replaying history
    REPAIRED = "REPAIRED"  # Replay also conflicted; first gift per player kept


class FinalOwnership(BaseModel):
    """Immutable gift -> player assignment for a finished game."""

    ownership: dict[str, str] = Field(default_factory=dict)
    source: ReconciliationSource = ReconciliationSource.LIVE
    violations: list[str] = Field(default_factory=list)
    unclaimed: list[str] = Field(default_factory=list)  # Wrapped gifts nobody could take

    model_config = ConfigDict(frozen=True)

    def gift_of(self, player_id: str) -> list[str]:
        """Gifts assigned to a player (normally exactly one)."""
        return [gid for gid, owner in self.ownership.items() if owner == player_id]

    def by_player(self) -> dict[str, str]:
        """Player -> gift view. Assumes one gift per player."""
        return {owner: gid for gid, owner in self.ownership.items()}
