"""Freeze Validators (F.1-F.4).

Rules:
- F.1: is_frozen is true exactly when steal_count >= max_steals
- F.2: steal_count never exceeds max_steals
- F.3: A frozen gift keeps its owner and stays frozen
- F.4: steal_count never decreases, except for the gift handed over in a swap
"""

from typing import Optional

from giftswap.engine.game_state import GameState
from giftswap.events.game_events import BaseHistoryEvent, StealEvent
from .types import ValidationViolation


def validate_freeze_state(state: GameState) -> list[ValidationViolation]:
    """Validate per-gift freeze rules F.1-F.2 on a single state."""
    violations: list[ValidationViolation] = []
    max_steals = state.config.max_steals

    for gift_id, gift in state.unwrapped_gifts.items():
        # F.1
        expected = gift.steal_count >= max_steals
        if gift.is_frozen != expected:
            violations.append(ValidationViolation(
                rule_id="F.1",
                category="Freeze",
                message=(
                    f"{gift_id}: is_frozen={gift.is_frozen} "
                    f"with steal_count={gift.steal_count}/{max_steals}"
                ),
                context={"gift_id": gift_id, "steal_count": gift.steal_count},
            ))
        # F.2
        if gift.steal_count > max_steals:
            violations.append(ValidationViolation(
                rule_id="F.2",
                category="Freeze",
                message=f"{gift_id} was stolen {gift.steal_count} times (max {max_steals})",
                context={"gift_id": gift_id, "steal_count": gift.steal_count},
            ))

    return violations


def validate_freeze_transition(
    before: GameState,
    after: GameState,
    event: Optional[BaseHistoryEvent] = None,
) -> list[ValidationViolation]:
    """Validate freeze monotonicity F.3-F.4 across one transition.

    Args:
        before: State before the command
        after: State after the command
        event: History event written by the command, if any
    """
    violations: list[ValidationViolation] = []
    exchanged = event.exchanged_gift_id if isinstance(event, StealEvent) else None

    for gift_id, old in before.unwrapped_gifts.items():
        new = after.unwrapped_gifts.get(gift_id)
        if new is None:
            continue

        # F.3
        if old.is_frozen and (not new.is_frozen or new.owner_id != old.owner_id):
            violations.append(ValidationViolation(
                rule_id="F.3",
                category="Freeze",
                message=f"Frozen {gift_id} changed: owner {old.owner_id} -> {new.owner_id}",
                context={"gift_id": gift_id},
                event_type=event.type if event is not None else None,
            ))

        # F.4
        if new.steal_count < old.steal_count and gift_id != exchanged:
            violations.append(ValidationViolation(
                rule_id="F.4",
                category="Freeze",
                message=f"{gift_id} steal_count decreased {old.steal_count} -> {new.steal_count}",
                context={"gift_id": gift_id},
                event_type=event.type if event is not None else None,
            ))

    return violations
