"""Game Initialization Validators (B.1-B.4).

Rules:
- B.1: At least 2 unique players and at least as many unique gifts
- B.2: Turn queue is N+1 slots (standard) or 2N slots (boomerang) and
       matches the turn order
- B.3: Every gift starts wrapped
- B.4: Game starts ACTIVE at slot 0 with empty history and no victim
"""

from giftswap.engine.game_state import GameState, GamePhase
from giftswap.engine.turn_queue import build_turn_queue
from .types import ValidationViolation


def validate_game_start(state: GameState) -> list[ValidationViolation]:
    """Validate game initialization rules B.1-B.4.

    Args:
        state: Freshly created game state

    Returns:
        List of validation violations (empty if valid)
    """
    violations: list[ValidationViolation] = []
    players = state.turn_order
    gifts = state.all_gift_ids()

    # B.1
    if len(players) < 2 or len(set(players)) != len(players):
        violations.append(ValidationViolation(
            rule_id="B.1",
            category="Game Initialization",
            message=f"Need at least 2 unique players, got {players}",
            context={"players": list(players)},
        ))
    if len(set(gifts)) < len(players):
        violations.append(ValidationViolation(
            rule_id="B.1",
            category="Game Initialization",
            message=f"{len(set(gifts))} gifts for {len(players)} players",
            context={"gifts": gifts},
        ))

    # B.2
    expected_length = 2 * len(players) if state.config.return_to_start else len(players) + 1
    if len(state.turn_queue) != expected_length:
        violations.append(ValidationViolation(
            rule_id="B.2",
            category="Game Initialization",
            message=f"Turn queue has {len(state.turn_queue)} slots, expected {expected_length}",
            context={"turn_queue": list(state.turn_queue)},
        ))
    elif len(players) >= 2 and state.turn_queue != build_turn_queue(
        players, state.config.return_to_start
    ):
        violations.append(ValidationViolation(
            rule_id="B.2",
            category="Game Initialization",
            message="Turn queue does not follow the turn order",
            context={"turn_queue": list(state.turn_queue), "turn_order": list(players)},
        ))

    # B.3
    if state.unwrapped_gifts:
        violations.append(ValidationViolation(
            rule_id="B.3",
            category="Game Initialization",
            message=f"{len(state.unwrapped_gifts)} gifts already unwrapped at start",
            context={"unwrapped": list(state.unwrapped_gifts)},
        ))

    # B.4
    if (
        state.phase != GamePhase.ACTIVE
        or state.turn_index != 0
        or state.history
        or state.current_victim is not None
        or state.turn_action is not None
    ):
        violations.append(ValidationViolation(
            rule_id="B.4",
            category="Game Initialization",
            message="Game does not start ACTIVE at slot 0 with a clean history",
            context={"phase": state.phase.value, "turn_index": state.turn_index},
        ))

    return violations
