"""Game state machine.

``apply_command`` is a pure reducer: it never mutates its input, and either
returns a Transition holding the new state or raises ActionRejected with
the input state untouched.
"""

import logging
import random
from typing import Optional
from pydantic import BaseModel, Field

from giftswap.models import GameSetup, Gift
from giftswap.events.game_events import (
    HistoryEvent,
    PickEvent,
    StealEvent,
    SkipEvent,
    SkipReason,
)
from giftswap.reconciler import reconcile, repair_live_state
from .game_state import GameState, GamePhase, TurnAction
from .turn_queue import build_turn_queue
from .commands import (
    Command,
    PickCommand,
    StealCommand,
    EndTurnCommand,
    EndGameCommand,
)
from .policy import (
    Rejection,
    RejectionCode,
    pick_rejection,
    steal_rejection,
    skip_rejection,
    can_skip,
    has_legal_move,
)

logger = logging.getLogger(__name__)


class ActionRejected(Exception):
    """Raised when a command is illegal in the current state."""

    def __init__(self, rejection: Rejection):
        self.rejection = rejection
        super().__init__(str(rejection))

    @property
    def code(self) -> RejectionCode:
        return self.rejection.code


class Transition(BaseModel):
    """Result of applying one command."""

    state: GameState
    event: Optional[HistoryEvent] = None  # History entry written, if any
    ended: bool = False  # This command moved the game to ENDED
    violations: list[str] = Field(default_factory=list)  # Invariant violations repaired
    anomalies: list[str] = Field(default_factory=list)  # Forced or deadlock skips
    noop: bool = False  # Nothing changed; state is the input state


def new_game(
    party_id: str,
    setup: GameSetup,
    rng: Optional[random.Random] = None,
    shuffle: bool = True,
) -> GameState:
    """Create the initial state for a party.

    Args:
        party_id: Identifier of the party
        setup: Players, gifts and rule configuration (already validated)
        rng: Random source for shuffling the turn order
        shuffle: If False, ``setup.players`` is used as the turn order

    Returns:
        A fresh ACTIVE GameState with every gift wrapped
    """
    turn_order = list(setup.players)
    if shuffle:
        (rng or random.Random()).shuffle(turn_order)
    state = GameState(
        party_id=party_id,
        config=setup.config,
        turn_order=turn_order,
        turn_queue=build_turn_queue(turn_order, setup.config.return_to_start),
        wrapped_gifts=list(setup.gifts),
    )
    logger.info(
        "[%s] Game started: %d players, %d gifts, queue of %d slots",
        party_id, len(turn_order), len(setup.gifts), len(state.turn_queue),
    )
    return state


def apply_command(state: GameState, command: Command) -> Transition:
    """Apply one command to a state.

    Raises:
        ActionRejected: The command is illegal; ``state`` is unchanged
    """
    if isinstance(command, PickCommand):
        transition = _apply_pick(state, command)
    elif isinstance(command, StealCommand):
        transition = _apply_steal(state, command)
    elif isinstance(command, EndTurnCommand):
        transition = _apply_end_turn(state, command)
    elif isinstance(command, EndGameCommand):
        transition = _apply_end_game(state, command)
    else:
        raise TypeError(f"Unknown command: {command!r}")

    logger.debug(
        "[%s] %s applied at slot %d -> %s",
        state.party_id, command, state.turn_index, transition.state.describe(),
    )
    return transition


# ============================================================================
# Transitions
# ============================================================================

def _apply_pick(state: GameState, command: PickCommand) -> Transition:
    rejection = pick_rejection(state, command.actor_id, command.gift_id)
    if rejection:
        raise ActionRejected(rejection)

    new = state.model_copy(deep=True)
    new.wrapped_gifts.remove(command.gift_id)
    new.unwrapped_gifts[command.gift_id] = Gift(
        gift_id=command.gift_id,
        owner_id=command.actor_id,
    )
    new.turn_action = TurnAction.PICKED
    event = PickEvent(
        actor_id=command.actor_id,
        turn_index=new.turn_index,
        gift_id=command.gift_id,
    )
    new.history.append(event)
    new.version += 1
    return Transition(state=new, event=event)


def _apply_steal(state: GameState, command: StealCommand) -> Transition:
    rejection = steal_rejection(state, command.actor_id, command.gift_id)
    if rejection:
        raise ActionRejected(rejection)

    new = state.model_copy(deep=True)
    actor = command.actor_id
    gift = new.unwrapped_gifts[command.gift_id]
    victim = gift.owner_id
    held = new.held_gift(actor)

    gift.steal_count += 1
    became_frozen = gift.steal_count >= new.config.max_steals
    if became_frozen:
        gift.is_frozen = True
    gift.owner_id = actor
    gift.last_owner_id = victim

    exchanged_gift_id = None
    if held is not None:
        # Swap: the victim gets the actor's gift as a fresh one and is not interrupted
        held.owner_id = victim
        held.steal_count = 0
        held.is_frozen = False
        held.last_owner_id = None
        exchanged_gift_id = held.gift_id
        new.turn_action = TurnAction.STOLEN
    else:
        # Victim priority: the victim acts next without consuming a slot
        new.current_victim = victim
        new.turn_action = None

    event = StealEvent(
        actor_id=actor,
        turn_index=new.turn_index,
        gift_id=gift.gift_id,
        previous_owner_id=victim,
        exchanged_gift_id=exchanged_gift_id,
        resulting_steal_count=gift.steal_count,
        became_frozen=became_frozen,
    )
    new.history.append(event)
    new.version += 1

    violations = repair_live_state(new)
    return Transition(state=new, event=event, violations=violations)


def _apply_end_turn(state: GameState, command: EndTurnCommand) -> Transition:
    if state.phase == GamePhase.ENDED:
        raise ActionRejected(Rejection(code=RejectionCode.GAME_ENDED, reason="The game has ended"))
    actor = state.active_actor
    if actor is None:
        raise ActionRejected(
            Rejection(code=RejectionCode.GAME_ENDED, reason="The turn queue is exhausted")
        )
    if command.actor_id is not None and command.actor_id != actor and not command.force:
        raise ActionRejected(
            Rejection(
                code=RejectionCode.NOT_YOUR_TURN,
                reason=f"It is {actor}'s turn, not {command.actor_id}'s",
            )
        )

    if state.has_acted:
        new = state.model_copy(deep=True)
        return _advance(new)

    anomalies: list[str] = []
    if command.force:
        reason = SkipReason.FORCED
        anomalies.append(f"{actor} was forced to end the turn without acting")
    elif can_skip(state, actor):
        reason = SkipReason.VOLUNTARY
    elif not has_legal_move(state, actor):
        reason = SkipReason.NO_LEGAL_MOVE
        if state.current_victim == actor and state.held_gift(actor) is None:
            anomalies.append(f"Victim {actor} has no gift and no legal move")
    elif state.current_victim == actor:
        # Pending victim still owes a move: control stays with them
        return Transition(state=state, noop=True)
    else:
        raise ActionRejected(
            Rejection(
                code=RejectionCode.MUST_ACT,
                reason=f"{actor} must act before ending the turn "
                       f"({skip_rejection(state, actor).reason})",
            )
        )

    for anomaly in anomalies:
        logger.warning("[%s] %s", state.party_id, anomaly)

    new = state.model_copy(deep=True)
    event = SkipEvent(actor_id=actor, turn_index=new.turn_index, reason=reason)
    new.history.append(event)
    transition = _advance(new)
    transition.event = event
    transition.anomalies = anomalies
    return transition


def _apply_end_game(state: GameState, command: EndGameCommand) -> Transition:
    if state.phase == GamePhase.ENDED:
        raise ActionRejected(Rejection(code=RejectionCode.GAME_ENDED, reason="The game has ended"))
    new = state.model_copy(deep=True)
    new.current_victim = None
    new.turn_action = None
    logger.warning("[%s] Game ended early (%s)", state.party_id, command.reason)
    return Transition(state=_finish(new), ended=True)


def _advance(new: GameState) -> Transition:
    """Close the current slot on a working copy and move to the next one."""
    new.current_victim = None
    new.turn_action = None
    for gift in new.unwrapped_gifts.values():
        gift.last_owner_id = None
    new.turn_index += 1
    if new.turn_index >= len(new.turn_queue):
        return Transition(state=_finish(new), ended=True)
    new.version += 1
    return Transition(state=new)


def _finish(new: GameState) -> GameState:
    new.phase = GamePhase.ENDED
    new.final_ownership = reconcile(new)
    new.version += 1
    logger.info("[%s] Game ended after %d events", new.party_id, len(new.history))
    return new
