"""Entry point that turns a task request into a personality-biased plan."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from npc_planner.config import settings
from npc_planner.errors import PlanValidationError
from npc_planner.models import Task
from npc_planner.planners import register_builtin_planners
from npc_planner.planning.personality import apply_personality_bias, extract_traits
from npc_planner.planning.primitives import Plan
from npc_planner.planning.registry import Planner, PlannerRegistry
from npc_planner.planning.schema import validate_plan
from npc_planner.telemetry import LoggingTelemetry, Telemetry


class TaskDispatcher:
    """Selects a planner by action, runs it and applies the NPC's personality.

    ``plan_task`` never raises: invalid requests, unknown actions and planner faults all
    come back as ``None`` with the reason logged.
    """

    def __init__(
        self,
        registry: PlannerRegistry,
        *,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
        validate_plans: bool | None = None,
    ) -> None:
        self.registry = registry
        self._logger = logger or logging.getLogger("npc_planner.dispatcher")
        self._telemetry = telemetry or LoggingTelemetry()
        self._validate = settings.validate_plans if validate_plans is None else validate_plans

    def plan_task(self, task: Task | Mapping[str, Any] | None, context: Mapping[str, Any] | None = None) -> Plan | None:
        if isinstance(task, Task):
            action: Any = task.action
        elif isinstance(task, Mapping):
            action = task.get("action")
        else:
            action = None
        if not isinstance(action, str) or not action.strip():
            self._logger.warning("task_rejected", extra={"reason": "missing action"})
            return None
        if not self.registry.has(action):
            self._logger.warning("planner_missing", extra={"action": action})
            return None

        base_context = context if isinstance(context, Mapping) else {}
        plan = self.registry.invoke(action, task, {**base_context, "planRegistry": self.registry})
        if plan is None:
            return None

        try:
            plan = apply_personality_bias(plan, extract_traits(base_context))
        except Exception:  # noqa: BLE001 - bias faults must not escape the dispatcher.
            self._logger.exception("personality_bias_failed", extra={"action": action})
            return None

        if self._validate:
            try:
                validate_plan(plan.to_dict())
            except PlanValidationError as exc:
                self._logger.warning("plan_schema_violation", extra={"action": action, "error": str(exc)})

        self._telemetry.emit(
            "plan_created",
            {
                "action": plan.action,
                "steps": len(plan.steps),
                "estimated_duration": plan.estimated_duration,
                "risks": len(plan.risks),
                "sub_tasks": len(plan.sub_tasks),
            },
        )
        return plan


_default_lock = threading.Lock()
_default_dispatcher: TaskDispatcher | None = None


def _dispatcher() -> TaskDispatcher:
    global _default_dispatcher
    with _default_lock:
        if _default_dispatcher is None:
            _default_dispatcher = TaskDispatcher(register_builtin_planners(PlannerRegistry()))
        return _default_dispatcher


def default_registry() -> PlannerRegistry:
    """Process-wide registry pre-populated with the built-in planners."""
    return _dispatcher().registry


def reset_default_registry() -> PlannerRegistry:
    """Drop custom registrations and restore the built-in planners."""
    global _default_dispatcher
    with _default_lock:
        _default_dispatcher = None
    return default_registry()


def plan_task(task: Task | Mapping[str, Any] | None, context: Mapping[str, Any] | None = None) -> Plan | None:
    return _dispatcher().plan_task(task, context)


def register_planner(action: str, planner: Planner) -> None:
    default_registry().register(action, planner)


def has_planner(action: Any) -> bool:
    return default_registry().has(action)


def list_registered_planners() -> list[str]:
    return default_registry().list_actions()
