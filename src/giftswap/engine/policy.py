"""Legal-move policy.

Pure predicates over a GameState. The reducer uses them to reject illegal
commands and the autoplay agent uses them to choose bot moves, so there is
exactly one definition of what is legal.

Each ``*_rejection`` function returns None when the move is legal, or a
Rejection explaining why not. The ``can_*`` helpers are boolean wrappers.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

from giftswap.models import StealBackRule
from giftswap.engine.game_state import GameState, GamePhase


class RejectionCode(str, Enum):
    GAME_ENDED = "GAME_ENDED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    ALREADY_ACTED = "ALREADY_ACTED"
    NO_WRAPPED_GIFTS = "NO_WRAPPED_GIFTS"
    GIFT_NOT_FOUND = "GIFT_NOT_FOUND"
    GIFT_NOT_WRAPPED = "GIFT_NOT_WRAPPED"
    GIFT_STILL_WRAPPED = "GIFT_STILL_WRAPPED"
    ALREADY_HOLDS_GIFT = "ALREADY_HOLDS_GIFT"
    OWN_GIFT = "OWN_GIFT"
    GIFT_FROZEN = "GIFT_FROZEN"
    HOLDING_FROZEN_GIFT = "HOLDING_FROZEN_GIFT"
    STEAL_BACK = "STEAL_BACK"
    TURN_ALREADY_USED = "TURN_ALREADY_USED"
    NO_GIFT_HELD = "NO_GIFT_HELD"
    VICTIM_MUST_ACT = "VICTIM_MUST_ACT"
    MUST_STEAL = "MUST_STEAL"
    WRAPPED_GIFTS_REMAIN = "WRAPPED_GIFTS_REMAIN"
    MUST_ACT = "MUST_ACT"
    STALE_STATE = "STALE_STATE"


class Rejection(BaseModel):
    """Why a command was refused. State is never changed by a rejected command."""

    code: RejectionCode
    reason: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.reason}"


def _turn_rejection(state: GameState, actor_id: str) -> Optional[Rejection]:
    """Checks shared by every command: phase, active actor, already acted."""
    if state.phase == GamePhase.ENDED:
        return Rejection(code=RejectionCode.GAME_ENDED, reason="The game has ended")
    active = state.active_actor
    if active is None:
        return Rejection(code=RejectionCode.GAME_ENDED, reason="The turn queue is exhausted")
    if actor_id != active:
        return Rejection(
            code=RejectionCode.NOT_YOUR_TURN,
            reason=f"It is {active}'s turn, not {actor_id}'s",
        )
    if state.has_acted:
        return Rejection(
            code=RejectionCode.ALREADY_ACTED,
            reason=f"{actor_id} already {state.turn_action.value.lower()} this turn",
        )
    return None


def _holder_may_act(state: GameState) -> bool:
    """A gift holder may only act again on the bookend slot, while wrapped
    gifts remain, or during the boomerang pass."""
    return state.is_bookend_slot or bool(state.wrapped_gifts) or state.is_boomerang_phase


# ============================================================================
# PICK
# ============================================================================

def pick_rejection(
    state: GameState,
    actor_id: str,
    gift_id: Optional[str] = None,
) -> Optional[Rejection]:
    """Check whether ``actor_id`` may unwrap ``gift_id`` (any wrapped gift if None)."""
    rejection = _turn_rejection(state, actor_id)
    if rejection:
        return rejection
    if not state.wrapped_gifts:
        return Rejection(code=RejectionCode.NO_WRAPPED_GIFTS, reason="No wrapped gifts remain")
    held = state.held_gift(actor_id)
    if held is not None:
        return Rejection(
            code=RejectionCode.ALREADY_HOLDS_GIFT,
            reason=f"{actor_id} already holds {held.gift_id}; steal to swap instead",
        )
    if gift_id is not None and gift_id not in state.wrapped_gifts:
        if gift_id in state.unwrapped_gifts:
            return Rejection(
                code=RejectionCode.GIFT_NOT_WRAPPED,
                reason=f"{gift_id} is already unwrapped",
            )
        return Rejection(code=RejectionCode.GIFT_NOT_FOUND, reason=f"Unknown gift {gift_id}")
    return None


def can_pick(state: GameState, actor_id: str, gift_id: Optional[str] = None) -> bool:
    return pick_rejection(state, actor_id, gift_id) is None


# ============================================================================
# STEAL
# ============================================================================

def steal_rejection(state: GameState, actor_id: str, gift_id: str) -> Optional[Rejection]:
    """Check whether ``actor_id`` may steal ``gift_id``.

    Beyond ownership and freeze checks:
    - an actor holding a frozen gift cannot steal, since the swap would move it
    - a holder may only steal on the bookend slot, while wrapped gifts remain,
      or in the boomerang pass
    - with ``StealBackRule.CHAIN`` the gift just taken from the actor cannot be
      taken back until the turn queue advances
    """
    rejection = _turn_rejection(state, actor_id)
    if rejection:
        return rejection

    gift = state.unwrapped_gifts.get(gift_id)
    if gift is None:
        if gift_id in state.wrapped_gifts:
            return Rejection(
                code=RejectionCode.GIFT_STILL_WRAPPED,
                reason=f"{gift_id} is still wrapped; pick it instead",
            )
        return Rejection(code=RejectionCode.GIFT_NOT_FOUND, reason=f"Unknown gift {gift_id}")
    if gift.owner_id == actor_id:
        return Rejection(code=RejectionCode.OWN_GIFT, reason=f"{actor_id} already owns {gift_id}")
    if gift.is_frozen:
        return Rejection(
            code=RejectionCode.GIFT_FROZEN,
            reason=f"{gift_id} is frozen after {gift.steal_count} steals",
        )

    held = state.held_gift(actor_id)
    if held is not None:
        if held.is_frozen:
            return Rejection(
                code=RejectionCode.HOLDING_FROZEN_GIFT,
                reason=f"{actor_id} holds frozen {held.gift_id} and cannot swap it",
            )
        if not _holder_may_act(state):
            return Rejection(
                code=RejectionCode.TURN_ALREADY_USED,
                reason=f"{actor_id} already holds {held.gift_id}",
            )

    if (
        state.config.steal_back == StealBackRule.CHAIN
        and gift.last_owner_id == actor_id
    ):
        return Rejection(
            code=RejectionCode.STEAL_BACK,
            reason=f"{gift_id} was just taken from {actor_id}",
        )
    return None


def can_steal(state: GameState, actor_id: str, gift_id: str) -> bool:
    return steal_rejection(state, actor_id, gift_id) is None


def legal_steal_targets(state: GameState, actor_id: str) -> list[str]:
    """Gift ids the actor may steal right now, in unwrap order."""
    return [gid for gid in state.unwrapped_gifts if can_steal(state, actor_id, gid)]


# ============================================================================
# SKIP
# ============================================================================

def skip_rejection(state: GameState, actor_id: str) -> Optional[Rejection]:
    """Check whether ``actor_id`` may end their turn without acting.

    Only a holder of a non-frozen gift may decline, and only when not a
    pending victim, not in the boomerang pass, and no wrapped gifts remain
    (the bookend player may decline even with wrapped gifts left).
    """
    rejection = _turn_rejection(state, actor_id)
    if rejection:
        return rejection
    if state.current_victim == actor_id:
        return Rejection(
            code=RejectionCode.VICTIM_MUST_ACT,
            reason=f"{actor_id} lost a gift and must pick or steal",
        )
    held = state.held_gift(actor_id)
    if held is None:
        return Rejection(code=RejectionCode.NO_GIFT_HELD, reason=f"{actor_id} holds no gift")
    if held.is_frozen:
        return Rejection(
            code=RejectionCode.HOLDING_FROZEN_GIFT,
            reason=f"{actor_id} holds frozen {held.gift_id}",
        )
    if state.is_boomerang_phase:
        return Rejection(
            code=RejectionCode.MUST_STEAL,
            reason="Gift holders must swap during the boomerang pass",
        )
    if state.wrapped_gifts and not state.is_bookend_slot:
        return Rejection(
            code=RejectionCode.WRAPPED_GIFTS_REMAIN,
            reason=f"{len(state.wrapped_gifts)} wrapped gifts remain",
        )
    return None


def can_skip(state: GameState, actor_id: str) -> bool:
    return skip_rejection(state, actor_id) is None


def has_legal_move(state: GameState, actor_id: str) -> bool:
    """True if the actor can pick or steal anything."""
    return can_pick(state, actor_id) or bool(legal_steal_targets(state, actor_id))
