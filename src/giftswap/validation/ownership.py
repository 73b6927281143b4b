"""Ownership Validators (O.1-O.4).

Rules:
- O.1: Every unwrapped gift is owned by a player in the turn order
- O.2: No player owns two unwrapped gifts
- O.3: A gift is either wrapped or unwrapped, never both
- O.4: Unwrapped map keys match the gift ids they hold
"""

from giftswap.engine.game_state import GameState
from .types import ValidationViolation, ValidationSeverity


def validate_ownership(state: GameState) -> list[ValidationViolation]:
    """Validate ownership rules O.1-O.4.

    Args:
        state: Game state to check

    Returns:
        List of validation violations (empty if valid)
    """
    violations: list[ValidationViolation] = []
    players = set(state.turn_order)

    # O.1: owners are players
    for gift_id, gift in state.unwrapped_gifts.items():
        if gift.owner_id not in players:
            violations.append(ValidationViolation(
                rule_id="O.1",
                category="Ownership",
                message=f"{gift_id} is owned by unknown player {gift.owner_id}",
                context={"gift_id": gift_id, "owner_id": gift.owner_id},
            ))

    # O.2: one gift per player
    by_owner: dict[str, list[str]] = {}
    for gift_id, gift in state.unwrapped_gifts.items():
        by_owner.setdefault(gift.owner_id, []).append(gift_id)
    for owner, gifts in by_owner.items():
        if len(gifts) > 1:
            violations.append(ValidationViolation(
                rule_id="O.2",
                category="Ownership",
                message=f"{owner} owns {len(gifts)} gifts: {', '.join(gifts)}",
                context={"owner_id": owner, "gifts": gifts},
            ))

    # O.3: wrapped and unwrapped are disjoint
    overlap = set(state.wrapped_gifts) & set(state.unwrapped_gifts)
    if overlap:
        violations.append(ValidationViolation(
            rule_id="O.3",
            category="Ownership",
            message="Gifts are both wrapped and unwrapped",
            context={"gifts": sorted(overlap)},
        ))
    if len(set(state.wrapped_gifts)) != len(state.wrapped_gifts):
        violations.append(ValidationViolation(
            rule_id="O.3",
            category="Ownership",
            message="Wrapped pool contains duplicates",
            severity=ValidationSeverity.ERROR,
            context={"wrapped": list(state.wrapped_gifts)},
        ))

    # O.4: keys match
    for key, gift in state.unwrapped_gifts.items():
        if key != gift.gift_id:
            violations.append(ValidationViolation(
                rule_id="O.4",
                category="Ownership",
                message=f"Gift stored under {key} has id {gift.gift_id}",
                context={"key": key, "gift_id": gift.gift_id},
            ))

    return violations
