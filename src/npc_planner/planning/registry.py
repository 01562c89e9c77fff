"""Action-name to planner lookup with error isolation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Protocol

from npc_planner.errors import PlannerRegistrationError
from npc_planner.models import Task
from npc_planner.planning.primitives import Plan


class Planner(Protocol):
    """Turns a task plus world context into a plan."""

    def __call__(self, task: Task, context: Mapping[str, Any]) -> Plan:
        """Return a plan or raise when the task cannot be represented."""


class PlannerRegistry:
    """Thread-safe, re-entrant registry of planners keyed by action name."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._planners: dict[str, Planner] = {}
        self._lock = threading.RLock()
        self._logger = logger or logging.getLogger("npc_planner.registry")

    @staticmethod
    def _key(action: Any) -> str:
        if not isinstance(action, str) or not action.strip():
            raise PlannerRegistrationError("Planner action must be a non-empty string")
        return action.strip().lower()

    def register(self, action: str, planner: Planner) -> None:
        """Register ``planner`` for ``action``; a later registration replaces an earlier one."""
        key = self._key(action)
        if not callable(planner):
            raise PlannerRegistrationError(f"Planner for {key!r} must be callable")
        with self._lock:
            replaced = key in self._planners
            self._planners[key] = planner
        self._logger.debug("planner_registered", extra={"action": key, "replaced": replaced})

    def unregister(self, action: str) -> bool:
        with self._lock:
            return self._planners.pop(self._key(action), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._planners.clear()

    def has(self, action: Any) -> bool:
        if not isinstance(action, str) or not action.strip():
            return False
        with self._lock:
            return action.strip().lower() in self._planners

    def get(self, action: Any) -> Planner | None:
        if not self.has(action):
            return None
        with self._lock:
            return self._planners.get(action.strip().lower())

    def list_actions(self) -> list[str]:
        with self._lock:
            return sorted(self._planners)

    def invoke(self, action: Any, task: Task | Mapping[str, Any], context: Mapping[str, Any] | None = None) -> Plan | None:
        """Run the planner registered for ``action``.

        Returns ``None`` when no planner is registered, when the task payload is
        malformed, or when the planner raises.
        """
        planner = self.get(action)
        if planner is None:
            self._logger.warning("planner_missing", extra={"action": action})
            return None

        try:
            resolved = Task.coerce(task)
            return planner(resolved, context if context is not None else {})
        except Exception:  # noqa: BLE001 - a faulty planner must not take down the caller.
            self._logger.exception("planner_failed", extra={"action": action})
            return None
