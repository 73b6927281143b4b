"""Game state for one white-elephant party."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from giftswap.models import GameConfig, Gift, FinalOwnership
from giftswap.events.game_events import HistoryEvent


class GamePhase(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class TurnAction(str, Enum):
    """What the active actor already did in the current slot."""

    PICKED = "PICKED"
    STOLEN = "STOLEN"


class GameState(BaseModel):
    """Full serialisable state of a game.

    The state is only changed through ``apply_command``; every applied
    transition bumps ``version`` so stores can compare-and-swap on save.
    """

    party_id: str = Field(min_length=1)
    config: GameConfig = Field(default_factory=GameConfig)
    turn_order: list[str]  # Shuffled players
    turn_queue: list[str]  # All slots, see build_turn_queue
    turn_index: int = 0
    current_victim: Optional[str] = None  # Pending victim; overrides the queue
    turn_action: Optional[TurnAction] = None

    wrapped_gifts: list[str] = Field(default_factory=list)
    unwrapped_gifts: dict[str, Gift] = Field(default_factory=dict)  # gift_id -> Gift

    phase: GamePhase = GamePhase.ACTIVE
    history: list[HistoryEvent] = Field(default_factory=list)
    version: int = 0
    final_ownership: Optional[FinalOwnership] = None

    # =========================================================================
    # Turn pointer
    # =========================================================================

    @property
    def active_actor(self) -> Optional[str]:
        """The player allowed to act now, or None once the queue is exhausted."""
        if self.phase == GamePhase.ENDED:
            return None
        if self.current_victim is not None:
            return self.current_victim
        if self.turn_index < len(self.turn_queue):
            return self.turn_queue[self.turn_index]
        return None

    @property
    def queue_holder(self) -> Optional[str]:
        """Nominal owner of the current slot, ignoring any pending victim."""
        if self.turn_index < len(self.turn_queue):
            return self.turn_queue[self.turn_index]
        return None

    @property
    def has_acted(self) -> bool:
        return self.turn_action is not None

    @property
    def is_boomerang_phase(self) -> bool:
        """True during the reverse pass of a boomerang game."""
        return self.config.return_to_start and self.turn_index >= len(self.turn_order)

    @property
    def is_bookend_slot(self) -> bool:
        """True on the repeated final turn of the first player (standard mode)."""
        return (
            not self.config.return_to_start
            and self.turn_index == len(self.turn_queue) - 1
            and self.current_victim is None
        )

    @property
    def is_ended(self) -> bool:
        return self.phase == GamePhase.ENDED

    # =========================================================================
    # Gift queries
    # =========================================================================

    def held_gift(self, player_id: str) -> Optional[Gift]:
        """The unwrapped gift a player holds, if any."""
        for gift in self.unwrapped_gifts.values():
            if gift.owner_id == player_id:
                return gift
        return None

    def owners(self) -> dict[str, str]:
        """gift_id -> owner_id for every unwrapped gift."""
        return {gid: gift.owner_id for gid, gift in self.unwrapped_gifts.items()}

    def giftless_players(self) -> list[str]:
        """Players holding nothing, in turn order."""
        holders = {gift.owner_id for gift in self.unwrapped_gifts.values()}
        return [p for p in self.turn_order if p not in holders]

    def get_gift(self, gift_id: str) -> Optional[Gift]:
        return self.unwrapped_gifts.get(gift_id)

    def is_wrapped(self, gift_id: str) -> bool:
        return gift_id in self.wrapped_gifts

    def all_gift_ids(self) -> list[str]:
        return list(self.unwrapped_gifts.keys()) + list(self.wrapped_gifts)

    def describe(self) -> str:
        """One-line status summary."""
        if self.is_ended:
            return f"[{self.party_id}] ended after {len(self.history)} events"
        victim = f" (victim {self.current_victim})" if self.current_victim else ""
        return (
            f"[{self.party_id}] slot {self.turn_index + 1}/{len(self.turn_queue)}, "
            f"active {self.active_actor}{victim}, "
            f"{len(self.wrapped_gifts)} wrapped, {len(self.unwrapped_gifts)} unwrapped"
        )
