"""GameValidator - runtime validation hooks for game rules.

This module provides a Protocol for validating game state transitions
and rule compliance at runtime. The game service calls the hooks at game
start, after every applied transition, and at game end.

Usage:
    # In tests or simulations
    validator = CollectingValidator()
    service = GameService(store, validator=validator)
    violations = validator.get_violations()

    # No overhead in production
    service = GameService(store)  # NoOpValidator
"""

from typing import Optional, Protocol

from giftswap.events.game_events import BaseHistoryEvent
from giftswap.models import FinalOwnership
from giftswap.validation.types import ValidationViolation, ValidationSeverity
from giftswap.validation.exceptions import ValidationError
from .game_state import GameState


class GameValidator(Protocol):
    """Hooks for runtime validation at key game points.

    All methods are async. Violations are collected internally and can be
    retrieved via get_violations().
    """

    async def on_game_start(self, state: GameState) -> None:
        """Called when a game is created. Validates initial state."""
        ...

    async def on_transition(
        self,
        before: GameState,
        after: GameState,
        event: Optional[BaseHistoryEvent],
    ) -> None:
        """Called after each transition is applied."""
        ...

    async def on_game_end(
        self,
        state: GameState,
        final: FinalOwnership,
    ) -> list[ValidationViolation]:
        """Called when the game ends. Returns all violations found."""
        ...

    def get_violations(self) -> list[ValidationViolation]:
        ...


class NoOpValidator:
    """No-op validator for production use.

    All hooks do nothing.
    """

    async def on_game_start(self, state: GameState) -> None:
        pass

    async def on_transition(
        self,
        before: GameState,
        after: GameState,
        event: Optional[BaseHistoryEvent],
    ) -> None:
        pass

    async def on_game_end(
        self,
        state: GameState,
        final: FinalOwnership,
    ) -> list[ValidationViolation]:
        return []

    def get_violations(self) -> list[ValidationViolation]:
        return []


class CollectingValidator(NoOpValidator):
    """Validator that collects violations for later inspection.

    All validation functions from giftswap/validation/ are composed here.
    Lazy imports are used to avoid circular imports.
    """

    def __init__(self):
        self._violations: list[ValidationViolation] = []

    def get_violations(self) -> list[ValidationViolation]:
        """Get all collected violations."""
        return list(self._violations)

    def get_errors(self) -> list[ValidationViolation]:
        return [v for v in self._violations if v.severity == ValidationSeverity.ERROR]

    def clear(self) -> None:
        """Clear collected violations."""
        self._violations.clear()

    def _record(self, violations: list[ValidationViolation]) -> None:
        self._violations.extend(violations)

    async def on_game_start(self, state: GameState) -> None:
        """Validate game initialization rules B.1-B.4."""
        from giftswap.validation import validate_game_start
        self._record(validate_game_start(state))

    async def on_transition(
        self,
        before: GameState,
        after: GameState,
        event: Optional[BaseHistoryEvent],
    ) -> None:
        """Validate ownership, freeze and turn rules across one transition."""
        from giftswap.validation import (
            validate_ownership,
            validate_freeze_state,
            validate_freeze_transition,
            validate_turn_state,
            validate_turn_progression,
        )

        self._record(validate_ownership(after))
        self._record(validate_freeze_state(after))
        self._record(validate_freeze_transition(before, after, event))
        self._record(validate_turn_state(after))
        self._record(validate_turn_progression(before, after, event))

    async def on_game_end(
        self,
        state: GameState,
        final: FinalOwnership,
    ) -> list[ValidationViolation]:
        """Validate the reconciled ownership and return everything collected."""
        from giftswap.validation import validate_final_ownership, validate_ownership

        self._record(validate_ownership(state))
        self._record(validate_final_ownership(state, final))
        return self.get_violations()


class StrictValidator(CollectingValidator):
    """Collecting validator that raises on the first error-level violation."""

    def _record(self, violations: list[ValidationViolation]) -> None:
        super()._record(violations)
        errors = [v for v in violations if v.severity == ValidationSeverity.ERROR]
        if errors:
            raise ValidationError(errors)


def create_validator(collect: bool = False, strict: bool = False) -> GameValidator:
    """Factory function to create appropriate validator.

    Args:
        collect: If True, returns CollectingValidator.
        strict: If True, returns StrictValidator (implies collect).

    Returns:
        A GameValidator implementation.
    """
    if strict:
        return StrictValidator()
    if collect:
        return CollectingValidator()
    return NoOpValidator()
