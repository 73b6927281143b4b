"""Exportable record of a finished (or in-progress) game."""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
import yaml
from pydantic import BaseModel, Field

from giftswap.models import GameConfig, FinalOwnership
from .game_events import (
    EventType,
    HistoryEvent,
    StealEvent,
    SkipEvent,
    SkipReason,
)
from .event_formatter import EventFormatter

if TYPE_CHECKING:
    from giftswap.engine.game_state import GameState


class GameRecord(BaseModel):
    """
    Chronological history of one game plus its final ownership.

    Structure:
    - players: turn order as shuffled at start
    - turn_queue: the full slot sequence
    - history: PICK / STEAL / SKIP events in order
    - final_ownership: reconciler output, once the game ended
    """

    game_id: str = Field(default_factory=lambda: datetime.now().strftime("%Y%m%d_%H%M%S"))
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    players: list[str] = Field(default_factory=list)
    turn_queue: list[str] = Field(default_factory=list)
    config: GameConfig = Field(default_factory=GameConfig)
    history: list[HistoryEvent] = Field(default_factory=list)
    final_ownership: Optional[FinalOwnership] = None
    metadata: dict = Field(default_factory=dict)

    @classmethod
    def from_state(cls, state: "GameState", **metadata) -> "GameRecord":
        """Snapshot the history of a game state into a record."""
        return cls(
            game_id=state.party_id,
            players=list(state.turn_order),
            turn_queue=list(state.turn_queue),
            config=state.config,
            history=list(state.history),
            final_ownership=state.final_ownership,
            metadata=dict(metadata),
        )

    def __str__(self) -> str:
        """Human-readable narration of the whole game."""
        formatter = EventFormatter(max_steals=self.config.max_steals)
        mode = "boomerang" if self.config.return_to_start else "standard"
        lines = [f"Game {self.game_id} ({len(self.players)} players, {mode})"]
        for i, event in enumerate(self.history, start=1):
            lines.append(f"  {i:3d}. {formatter.format(event)}")
        if self.final_ownership is not None:
            lines.append("")
            lines.append(f"  Final ownership ({self.final_ownership.source.value}):")
            for gift_id, owner in self.final_ownership.ownership.items():
                lines.append(f"    {gift_id} -> {owner}")
            if self.final_ownership.unclaimed:
                lines.append(f"    unclaimed: {', '.join(self.final_ownership.unclaimed)}")
        return "\n".join(lines)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def events_of_type(self, event_type: EventType) -> list[HistoryEvent]:
        return [e for e in self.history if e.type == event_type]

    def steals_of(self, gift_id: str) -> list[StealEvent]:
        """All steals that targeted a gift, in order."""
        return [
            e for e in self.history
            if isinstance(e, StealEvent) and e.gift_id == gift_id
        ]

    def summary(self) -> dict:
        """Counts by event type plus frozen gifts."""
        frozen = [
            e.gift_id for e in self.history
            if isinstance(e, StealEvent) and e.became_frozen
        ]
        return {
            "total_events": len(self.history),
            "picks": len(self.events_of_type(EventType.PICK)),
            "steals": len(self.events_of_type(EventType.STEAL)),
            "skips": len(self.events_of_type(EventType.SKIP)),
            "forced_skips": sum(
                1 for e in self.history
                if isinstance(e, SkipEvent) and e.reason != SkipReason.VOLUNTARY
            ),
            "frozen_gifts": frozen,
        }

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_yaml(self, include_summary: bool = True) -> str:
        """Serialize the record to a YAML string."""
        data = self.model_dump(mode="json")
        if include_summary:
            data["summary"] = self.summary()
        return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)

    @classmethod
    def from_yaml(cls, text: str) -> "GameRecord":
        data = yaml.safe_load(text) or {}
        data.pop("summary", None)
        return cls.model_validate(data)

    def save_to_file(self, filepath: str) -> None:
        """Serialize the record to a YAML file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_yaml())

    @classmethod
    def load_from_file(cls, filepath: str) -> "GameRecord":
        """Load a record from a YAML file."""
        with open(filepath, "r", encoding="utf-8") as f:
            return cls.from_yaml(f.read())
