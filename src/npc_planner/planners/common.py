"""Shared scaffolding for the action planners."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from npc_planner.config import settings
from npc_planner.context import EnvironmentalSignals, InventoryItem, extract_environmental_signals, extract_inventory
from npc_planner.errors import TaskValidationError
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, normalize_item_name, target_position
from npc_planner.planning.primitives import Plan, Step, SubTask, create_plan, create_step
from npc_planner.planning.subplanning import SubTaskCollector


def world_bounds_risk(target: Any) -> str | None:
    position = target_position(target)
    if position is None:
        return None
    y = position["y"]
    if y < settings.world_min_y or y > settings.world_max_y:
        return f"Target position outside world bounds (y={y:g})."
    return None


def require_target(task: Task, purpose: str) -> Any:
    """Return the task target or raise when the task cannot be planned without one."""
    if not task.target:
        raise TaskValidationError(f"{task.action} task requires a target to {purpose}")
    return task.target


def metadata_name(task: Task, *keys: str, fallback: Any = None) -> str:
    """Canonical item name read from metadata, then ``fallback`` (usually ``task.details``)."""
    name = normalize_item_name(task.meta(*keys))
    if not is_specified(name) and fallback is not None:
        name = normalize_item_name(fallback)
    return name


def metadata_list(value: Any) -> list[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, Iterable):
        return [entry for entry in value if entry is not None and entry != ""]
    return [value]


def metadata_names(value: Any) -> list[str]:
    names: list[str] = []
    for entry in metadata_list(value):
        if isinstance(entry, Mapping):
            entry = entry.get("name") or entry.get("item") or entry.get("type")
        name = normalize_item_name(entry)
        if is_specified(name) and name not in names:
            names.append(name)
    return names


def truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no", "off", "none"}
    return bool(value)


def horizontal_distance(origin: Mapping[str, float] | None, position: Mapping[str, float] | None) -> float | None:
    if origin is None or position is None:
        return None
    return math.hypot(position["x"] - origin["x"], position["z"] - origin["z"])


def block_reference(task: Task, context: Mapping[str, Any] | None, meta_key: str,
                    context_key: str) -> tuple[str, dict[str, float] | None, Mapping[str, Any]]:
    """Name, position and raw record of the block a task points at.

    Looked up in ``task.metadata[meta_key]``, then the task target, then ``context[context_key]``;
    a bare string anywhere along the way is taken as the block name.
    """
    raw: Any = task.meta(meta_key)
    if raw is None and isinstance(task.target, Mapping) and (task.target.get("type") or task.target.get("block")):
        raw = task.target
    if raw is None and context:
        raw = context.get(context_key)
    record: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    if record:
        name = normalize_item_name(record.get("type") or record.get("block") or record.get("name"))
    else:
        name = normalize_item_name(raw)
    if not is_specified(name):
        name = normalize_item_name(task.meta(f"{meta_key}Type", "type", "block") or task.details)
    position = target_position(record.get("position") or record) if record else None
    if position is None:
        position = target_position(task.target)
    return name, position, record


class PlanDraft:
    """Accumulates the pieces of one plan, then assembles them with :func:`create_plan`."""

    def __init__(self, task: Task, context: Mapping[str, Any] | None, *, summary: str) -> None:
        self.task = task
        self.context: Mapping[str, Any] = context or {}
        self.summary = summary
        self.target_description = describe_target(task.target)
        self.steps: list[Step] = []
        self.resources: list[Any] = []
        self.risks: list[str] = []
        self.notes: list[str] = []
        self.metadata: dict[str, Any] = {}
        self._collector: SubTaskCollector | None = None
        self._inventory: list[InventoryItem] | None = None
        self._signals: EnvironmentalSignals | None = None

        bounds_risk = world_bounds_risk(task.target)
        if bounds_risk:
            self.risks.append(bounds_risk)

    @property
    def inventory(self) -> list[InventoryItem]:
        if self._inventory is None:
            self._inventory = extract_inventory(self.context)
        return self._inventory

    @property
    def signals(self) -> EnvironmentalSignals:
        if self._signals is None:
            self._signals = extract_environmental_signals(self.context, self.task)
        return self._signals

    def step(
        self,
        title: str,
        description: str,
        *,
        step_type: str = "action",
        command: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Step:
        created = create_step(title, description, step_type=step_type, command=command, metadata=metadata)
        self.steps.append(created)
        return created

    def risk(self, message: str | None) -> None:
        if message:
            self.risks.append(message)

    def note(self, message: str | None) -> None:
        if message:
            self.notes.append(message)

    def use(self, *names: Any) -> None:
        self.resources.extend(names)

    @property
    def collector(self) -> SubTaskCollector:
        if self._collector is None:
            self._collector = SubTaskCollector(self.task, self.context, summary=self.summary)
        return self._collector

    def prerequisite(self, action: str, summary: str, *, target: Any = None,
                     metadata: dict[str, Any] | None = None) -> SubTask:
        return self.collector.prerequisite(action, summary, target=target, metadata=metadata)

    def follow_up(self, action: str, summary: str, *, target: Any = None,
                  metadata: dict[str, Any] | None = None) -> SubTask:
        return self.collector.follow_up(action, summary, target=target, metadata=metadata)

    def build(self, estimated_duration: float | None, *, summary: str | None = None) -> Plan:
        risks = list(self.risks)
        notes = list(self.notes)
        task_graph = None
        sub_tasks: list[SubTask] = []
        if self._collector is not None:
            risks.extend(self._collector.risks)
            notes.extend(self._collector.notes)
            task_graph = self._collector.task_graph
            sub_tasks = self._collector.sub_tasks
        return create_plan(
            self.task.action,
            summary or self.summary,
            steps=self.steps,
            estimated_duration=estimated_duration,
            resources=self.resources,
            risks=risks,
            notes=notes,
            task_graph=task_graph,
            sub_tasks=sub_tasks,
            metadata=self.metadata,
        )
