"""
Error taxonomy shared by the engine, persistence and adapters.

- ValidationError: malformed data at a save/load/import boundary
- RestoreFailed: a rebuilt state still fails validation
- TransientFetchError: external climate data unavailable
- RuleEvaluationError: a single event rule failed (contained per rule)
- InvariantViolation: a programming defect, the game must not proceed
"""

from __future__ import annotations


class CoastlineError(Exception):
    """Base class for all engine errors."""


class ValidationError(CoastlineError):
    """Raised when data crossing a boundary fails structural validation."""

    def __init__(self, errors: list[str], message: str | None = None):
        self.errors = list(errors)
        if message is None:
            message = f"Validation failed with {len(self.errors)} error(s)"
            if self.errors:
                message += ": " + "; ".join(self.errors)
        super().__init__(message)


class RestoreFailed(ValidationError):
    """Raised when a restored state does not pass validation."""


class TransientFetchError(CoastlineError):
    """External data could not be fetched this cycle."""


class RuleEvaluationError(CoastlineError):
    """A climate event rule raised while being evaluated."""

    def __init__(self, rule_id: str, cause: BaseException):
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"Rule '{rule_id}' failed: {cause!r}")


class InvariantViolation(CoastlineError):
    """The state broke an invariant the engine relies on."""
