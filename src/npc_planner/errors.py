"""Exception types raised by the planning core."""

from __future__ import annotations


class PlannerError(Exception):
    """Base class for planner failures."""


class TaskValidationError(PlannerError, ValueError):
    """Raised when a task cannot be represented as a plan (no action, no target)."""


class PlannerRegistrationError(PlannerError, ValueError):
    """Raised when a planner is registered under an invalid action or is not callable."""


class TaskGraphError(PlannerError, ValueError):
    """Raised for unknown or duplicate node ids and for edges that would close a cycle."""


class PlanValidationError(PlannerError):
    """Raised when a serialized plan does not match the plan schema."""

    def __init__(
        self,
        message: str,
        *,
        path: list[str | int] | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path or []
        self.errors = errors or [message]
