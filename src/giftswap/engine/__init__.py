"""Engine package - turn queue, legal-move policy and the game reducer."""

from .game_state import GameState, GamePhase, TurnAction
from .turn_queue import build_turn_queue
from .policy import (
    Rejection,
    RejectionCode,
    pick_rejection,
    steal_rejection,
    skip_rejection,
    can_pick,
    can_steal,
    can_skip,
    legal_steal_targets,
    has_legal_move,
)
from .commands import (
    Command,
    PickCommand,
    StealCommand,
    EndTurnCommand,
    EndGameCommand,
)
from .transitions import (
    ActionRejected,
    Transition,
    apply_command,
    new_game,
)
from .validator import (
    GameValidator,
    NoOpValidator,
    CollectingValidator,
    StrictValidator,
    create_validator,
    ValidationError,
)

__all__ = [
    "GameState",
    "GamePhase",
    "TurnAction",
    "build_turn_queue",
    "Rejection",
    "RejectionCode",
    "pick_rejection",
    "steal_rejection",
    "skip_rejection",
    "can_pick",
    "can_steal",
    "can_skip",
    "legal_steal_targets",
    "has_legal_move",
    "Command",
    "PickCommand",
    "StealCommand",
    "EndTurnCommand",
    "EndGameCommand",
    "ActionRejected",
    "Transition",
    "apply_command",
    "new_game",
    "GameValidator",
    "NoOpValidator",
    "CollectingValidator",
    "StrictValidator",
    "create_validator",
    "ValidationError",
]
