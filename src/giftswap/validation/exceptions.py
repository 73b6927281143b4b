"""Validation exceptions."""

from .types import ValidationViolation, ValidationSeverity


class ValidationError(Exception):
    """Raised by StrictValidator when a rule violation is detected.

    Services run with NoOpValidator by default and never raise this.
    """

    def __init__(self, violations: list[ValidationViolation]):
        self.violations = violations
        count = len(violations)
        errors = sum(1 for v in violations if v.severity == ValidationSeverity.ERROR)
        super().__init__(f"Validation failed with {count} violation(s) ({errors} errors)")

    def __str__(self) -> str:
        if not self.violations:
            return "ValidationError(no violations)"
        lines = [f"ValidationError({len(self.violations)} violations):"]
        for v in self.violations:
            lines.append(f"  [{v.severity.value.upper()}] {v.rule_id}: {v.message}")
        return "\n".join(lines)
