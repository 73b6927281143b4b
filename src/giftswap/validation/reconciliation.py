"""Reconciliation Validators (R.1-R.5).

Rules:
- R.1: Every gift appears exactly once, either assigned or unclaimed
- R.2: No player receives two gifts
- R.3: Assigned gifts go to players in the turn order
- R.4: With as many gifts as players, every player receives exactly one
- R.5: Live ownership matches the history replay when no repair was needed
"""

from giftswap.engine.game_state import GameState
from giftswap.models import FinalOwnership, ReconciliationSource
from giftswap.reconciler.replay import replay_ownership
from .types import ValidationViolation, ValidationSeverity


def validate_final_ownership(
    state: GameState,
    final: FinalOwnership,
) -> list[ValidationViolation]:
    """Validate reconciler output rules R.1-R.5.

    Args:
        state: The ENDED game state
        final: Reconciler output for that state

    Returns:
        List of validation violations (empty if valid)
    """
    violations: list[ValidationViolation] = []
    all_gifts = set(state.all_gift_ids())
    assigned = set(final.ownership)
    unclaimed = set(final.unclaimed)

    # R.1
    if assigned & unclaimed or (assigned | unclaimed) != all_gifts:
        violations.append(ValidationViolation(
            rule_id="R.1",
            category="Reconciliation",
            message="Final ownership does not cover every gift exactly once",
            context={
                "missing": sorted(all_gifts - assigned - unclaimed),
                "both": sorted(assigned & unclaimed),
            },
        ))

    # R.2
    owners = list(final.ownership.values())
    doubled = sorted({p for p in owners if owners.count(p) > 1})
    if doubled:
        violations.append(ValidationViolation(
            rule_id="R.2",
            category="Reconciliation",
            message=f"Players received more than one gift: {', '.join(doubled)}",
            context={"players": doubled},
        ))

    # R.3
    strangers = sorted(set(owners) - set(state.turn_order))
    if strangers:
        violations.append(ValidationViolation(
            rule_id="R.3",
            category="Reconciliation",
            message=f"Gifts assigned to unknown players: {', '.join(strangers)}",
            context={"players": strangers},
        ))

    # R.4
    if len(all_gifts) == len(state.turn_order):
        giftless = [p for p in state.turn_order if p not in set(owners)]
        if giftless:
            violations.append(ValidationViolation(
                rule_id="R.4",
                category="Reconciliation",
                message=f"Players left without a gift: {', '.join(giftless)}",
                context={"players": giftless},
            ))

    # R.5
    if final.source == ReconciliationSource.LIVE:
        replayed = replay_ownership(state.history)
        if replayed != state.owners():
            violations.append(ValidationViolation(
                rule_id="R.5",
                category="Reconciliation",
                message="Live ownership differs from the history replay",
                severity=ValidationSeverity.WARNING,
                context={"live": state.owners(), "replayed": replayed},
            ))

    return violations
