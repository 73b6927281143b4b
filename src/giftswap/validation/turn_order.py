"""Turn Progression Validators (T.1-T.5).

Rules:
- T.1: turn_index never decreases
- T.2: STEAL never moves turn_index
- T.3: 0 <= turn_index <= len(turn_queue)
- T.4: History is append-only
- T.5: A pending victim who has not acted holds no gift
"""

from typing import Optional

from giftswap.engine.game_state import GameState
from giftswap.events.game_events import BaseHistoryEvent, StealEvent
from .types import ValidationViolation


def validate_turn_state(state: GameState) -> list[ValidationViolation]:
    """Validate single-state rules T.3 and T.5."""
    violations: list[ValidationViolation] = []

    # T.3
    if not 0 <= state.turn_index <= len(state.turn_queue):
        violations.append(ValidationViolation(
            rule_id="T.3",
            category="Turn Progression",
            message=f"turn_index {state.turn_index} outside 0..{len(state.turn_queue)}",
            context={"turn_index": state.turn_index},
        ))

    # T.5
    victim = state.current_victim
    if victim is not None and state.turn_action is None:
        held = state.held_gift(victim)
        if held is not None:
            violations.append(ValidationViolation(
                rule_id="T.5",
                category="Turn Progression",
                message=f"Pending victim {victim} still holds {held.gift_id}",
                context={"victim": victim, "gift_id": held.gift_id},
            ))

    return violations


def validate_turn_progression(
    before: GameState,
    after: GameState,
    event: Optional[BaseHistoryEvent] = None,
) -> list[ValidationViolation]:
    """Validate transition rules T.1, T.2 and T.4."""
    violations: list[ValidationViolation] = []
    event_type = event.type if event is not None else None

    # T.1
    if after.turn_index < before.turn_index:
        violations.append(ValidationViolation(
            rule_id="T.1",
            category="Turn Progression",
            message=f"turn_index went back {before.turn_index} -> {after.turn_index}",
            event_type=event_type,
        ))

    # T.2
    if isinstance(event, StealEvent) and after.turn_index != before.turn_index:
        violations.append(ValidationViolation(
            rule_id="T.2",
            category="Turn Progression",
            message=f"STEAL moved turn_index {before.turn_index} -> {after.turn_index}",
            event_type=event_type,
        ))

    # T.4
    prefix = after.history[:len(before.history)]
    if len(after.history) < len(before.history) or prefix != before.history:
        violations.append(ValidationViolation(
            rule_id="T.4",
            category="Turn Progression",
            message="History was rewritten instead of appended",
            context={"before": len(before.history), "after": len(after.history)},
            event_type=event_type,
        ))

    return violations
