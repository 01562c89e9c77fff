"""Hierarchical sub-planning: attach prerequisite and follow-up plans under a task graph."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from npc_planner.config import settings
from npc_planner.context import context_value
from npc_planner.models import Task
from npc_planner.normalize import describe_target, resolve_quantity
from npc_planner.planning.primitives import Plan, SubTask, TaskGraph

PREREQUISITE = "prerequisite"
FOLLOW_UP = "follow_up"

_logger = logging.getLogger("npc_planner.subplanning")


def plan_depth(context: Mapping[str, Any] | None) -> int:
    depth = resolve_quantity(context_value(context, "planDepth", "plan_depth"), 0)
    return int(depth)


def registry_from_context(context: Mapping[str, Any] | None) -> Any:
    registry = context_value(context, "planRegistry", "plan_registry")
    return registry if callable(getattr(registry, "invoke", None)) else None


def attach_sub_task(
    graph: TaskGraph,
    root_id: str,
    *,
    action: str,
    task: Task,
    context: Mapping[str, Any] | None,
    relation: str = PREREQUISITE,
    summary: str | None = None,
) -> tuple[SubTask, list[str], list[str]]:
    """Add a node for ``task``, wire it around ``root_id`` and plan it through the registry.

    Prerequisites become parents of the root and follow-ups become children. The
    returned sub-plan is not expanded further here. Returns the sub-task record plus
    any notes and risks the caller should surface on its own plan.
    """
    label = summary or f"{action} {describe_target(task.target)}"
    node = graph.add_node(
        action=action,
        summary=label,
        metadata={"relation": relation, **task.metadata},
    )
    if relation == FOLLOW_UP:
        graph.add_dependency(root_id, node.id)
    else:
        graph.add_dependency(node.id, root_id)

    notes: list[str] = []
    risks: list[str] = []
    plan: Plan | None = None
    depth = plan_depth(context)
    registry = registry_from_context(context)

    if depth >= settings.max_subplan_depth:
        _logger.warning(
            "subplan_depth_exceeded",
            extra={"action": action, "depth": depth, "max_depth": settings.max_subplan_depth},
        )
        risks.append(f"Sub-plan depth limit reached; {action} left unplanned.")
    elif registry is not None:
        child_context = {**(context or {}), "planDepth": depth + 1}
        plan = registry.invoke(action, task, child_context)

    if plan is None:
        notes.append(f"No sub-plan available for {action} ({label}).")

    return SubTask(id=node.id, action=action, task=task, plan=plan, relation=relation), notes, risks


class SubTaskCollector:
    """Owns the task graph of one plan and the sub-tasks spawned around its root node."""

    def __init__(self, task: Task, context: Mapping[str, Any] | None, *, summary: str) -> None:
        self._task = task
        self._context = context
        self.graph = TaskGraph(id_prefix=task.action)
        root = self.graph.add_node(
            action=task.action,
            summary=summary,
            metadata={"priority": task.priority.value, "target": task.target},
        )
        self.root_id = root.id
        self.sub_tasks: list[SubTask] = []
        self.notes: list[str] = []
        self.risks: list[str] = []

    def _attach(self, relation: str, action: str, summary: str, target: Any, metadata: dict[str, Any] | None) -> SubTask:
        sub_task_request = self._task.derive(action, target=target, metadata=metadata, details=summary)
        sub_task, notes, risks = attach_sub_task(
            self.graph,
            self.root_id,
            action=action,
            task=sub_task_request,
            context=self._context,
            relation=relation,
            summary=summary,
        )
        self.sub_tasks.append(sub_task)
        self.notes.extend(notes)
        self.risks.extend(risks)
        return sub_task

    def prerequisite(self, action: str, summary: str, *, target: Any = None,
                     metadata: dict[str, Any] | None = None) -> SubTask:
        return self._attach(PREREQUISITE, action, summary, target, metadata)

    def follow_up(self, action: str, summary: str, *, target: Any = None,
                  metadata: dict[str, Any] | None = None) -> SubTask:
        return self._attach(FOLLOW_UP, action, summary, target, metadata)

    @property
    def task_graph(self) -> TaskGraph | None:
        return self.graph if self.sub_tasks else None
