"""Autoplay agent for non-human players.

The agent never decides legality itself: every candidate move comes from the
legal-move policy, so bots play under exactly the same rules as humans.
"""

import logging
import random
from enum import Enum
from typing import Optional
from pydantic import BaseModel

from giftswap.engine.game_state import GameState
from giftswap.engine.policy import can_pick, legal_steal_targets
from giftswap.engine.commands import (
    Command,
    PickCommand,
    StealCommand,
    EndTurnCommand,
)

logger = logging.getLogger(__name__)

DEFAULT_BOT_PREFIX = "bot_"


def is_bot(player_id: str, prefix: str = DEFAULT_BOT_PREFIX) -> bool:
    """Bots are recognised by their id prefix."""
    return player_id.startswith(prefix)


class BotAction(str, Enum):
    PICK = "PICK"
    STEAL = "STEAL"
    SKIP = "SKIP"  # End the turn


class BotDecision(BaseModel):
    """A move chosen by the agent."""

    actor_id: str
    action: BotAction
    gift_id: Optional[str] = None
    reason: str = ""
    anomaly: bool = False  # Fell back to skipping where a move was owed

    def to_command(self) -> Command:
        if self.action == BotAction.PICK:
            return PickCommand(actor_id=self.actor_id, gift_id=self.gift_id)
        if self.action == BotAction.STEAL:
            return StealCommand(actor_id=self.actor_id, gift_id=self.gift_id)
        return EndTurnCommand(actor_id=self.actor_id)

    def __str__(self) -> str:
        target = f" {self.gift_id}" if self.gift_id else ""
        return f"{self.actor_id}: {self.action.value}{target} ({self.reason})"


class AutoplayAgent:
    """Chooses one legal move for the active actor.

    Priority order:
    1. A pending victim with no gift picks if it can, else steals; skipping
       here is an anomaly
    2. A giftless actor picks while wrapped gifts remain
    3. A holder in the boomerang pass steals a legal target, else skips
    4. Otherwise 50/50 between pick and steal when both are legal, the only
       legal option when one is, or skip

    Steal targets are weighted towards gifts that have already been stolen
    more often.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng or random.Random(seed)

    def decide(self, state: GameState, actor_id: str) -> BotDecision:
        """Select a move for ``actor_id`` in ``state``."""
        if state.has_acted:
            return self._skip(actor_id, "already acted this slot")

        held = state.held_gift(actor_id)
        pick_ok = can_pick(state, actor_id)
        targets = legal_steal_targets(state, actor_id)

        # 1. Giftless victim
        if state.current_victim == actor_id and held is None:
            if pick_ok:
                return self._pick(state, actor_id, "victim claims a wrapped gift")
            if targets:
                return self._steal(state, actor_id, targets, "victim steals back in")
            logger.warning("[%s] Victim %s has no legal move", state.party_id, actor_id)
            return self._skip(actor_id, "victim has no legal move", anomaly=True)

        # 2. Claiming priority
        if state.wrapped_gifts and held is None and pick_ok:
            return self._pick(state, actor_id, "wrapped gifts remain")

        # 3. Boomerang swap
        if state.is_boomerang_phase and held is not None:
            if targets:
                return self._steal(state, actor_id, targets, "boomerang swap")
            return self._skip(actor_id, "no swap target in boomerang pass")

        # 4. Free choice
        if pick_ok and targets:
            if self.rng.random() < 0.5:
                return self._pick(state, actor_id, "coin flip")
            return self._steal(state, actor_id, targets, "coin flip")
        if pick_ok:
            return self._pick(state, actor_id, "only pick is legal")
        if targets:
            return self._steal(state, actor_id, targets, "only steal is legal")
        return self._skip(actor_id, "no legal move")

    def _pick(self, state: GameState, actor_id: str, reason: str) -> BotDecision:
        gift_id = self.rng.choice(state.wrapped_gifts)
        return BotDecision(actor_id=actor_id, action=BotAction.PICK, gift_id=gift_id, reason=reason)

    def _steal(
        self,
        state: GameState,
        actor_id: str,
        targets: list[str],
        reason: str,
    ) -> BotDecision:
        weights = [1 + state.unwrapped_gifts[gid].steal_count for gid in targets]
        gift_id = self.rng.choices(targets, weights=weights, k=1)[0]
        return BotDecision(actor_id=actor_id, action=BotAction.STEAL, gift_id=gift_id, reason=reason)

    def _skip(self, actor_id: str, reason: str, anomaly: bool = False) -> BotDecision:
        return BotDecision(actor_id=actor_id, action=BotAction.SKIP, reason=reason, anomaly=anomaly)
