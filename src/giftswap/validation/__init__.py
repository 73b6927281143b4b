"""Game rule validation package.

Each module checks one group of rules and returns a list of
ValidationViolation; an empty list means the rules hold.
"""

from .types import ValidationSeverity, ValidationViolation, ValidationResult
from .exceptions import ValidationError
from .ownership import validate_ownership
from .freeze import validate_freeze_state, validate_freeze_transition
from .turn_order import validate_turn_state, validate_turn_progression
from .initialization import validate_game_start
from .reconciliation import validate_final_ownership

__all__ = [
    # Types
    "ValidationSeverity",
    "ValidationViolation",
    "ValidationResult",
    "ValidationError",
    # Ownership
    "validate_ownership",
    # Freeze
    "validate_freeze_state",
    "validate_freeze_transition",
    # Turn progression
    "validate_turn_state",
    "validate_turn_progression",
    # Initialization
    "validate_game_start",
    # Reconciliation
    "validate_final_ownership",
]
