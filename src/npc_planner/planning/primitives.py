"""Value types shared by every planner: steps, plans, task nodes and the task graph."""

from __future__ import annotations

import copy
import itertools
import threading
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.config import settings
from npc_planner.errors import TaskGraphError
from npc_planner.models import Task
from npc_planner.normalize import is_specified, normalize_item_name

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_id_lock = threading.Lock()
_id_counter = itertools.count(1)


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_task_node_id(prefix: str = "task") -> str:
    """Mint ``<prefix>_<base36 ms timestamp>_<counter>``."""
    with _id_lock:
        sequence = next(_id_counter)
    return f"{prefix}_{_to_base36(int(time.time() * 1000))}_{sequence}"


def reset_task_node_ids() -> None:
    global _id_counter
    with _id_lock:
        _id_counter = itertools.count(1)


def unique_strings(values: Iterable[Any]) -> list[str]:
    """Drop empty entries and duplicates while keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        text = value.strip()
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


def canonical_resources(values: Iterable[Any]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        name = normalize_item_name(value)
        if is_specified(name) and name not in seen:
            seen.add(name)
            result.append(name)
    return result


@dataclass(slots=True)
class Step:
    title: str
    description: str
    type: str = "action"
    command: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "type": self.type,
            "description": self.description,
            "metadata": copy.deepcopy(self.metadata),
        }
        if self.command is not None:
            payload["command"] = self.command
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Step:
        return create_step(
            payload.get("title", ""),
            payload.get("description", ""),
            step_type=payload.get("type", "action"),
            command=payload.get("command"),
            metadata=payload.get("metadata"),
        )


def create_step(
    title: str,
    description: str,
    *,
    step_type: str = "action",
    command: str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> Step:
    """Build a step, cloning ``metadata`` so later edits to the input do not leak in."""
    return Step(
        title=str(title).strip(),
        description=str(description).strip(),
        type=step_type or "action",
        command=command,
        metadata=copy.deepcopy(dict(metadata)) if metadata else {},
    )


@dataclass(slots=True)
class TaskNode:
    id: str
    action: str
    summary: str
    metadata: dict[str, Any] = field(default_factory=dict)
    requirements: list[Any] = field(default_factory=list)
    parents: set[str] = field(default_factory=set)
    children: set[str] = field(default_factory=set)

    def copy(self) -> TaskNode:
        return TaskNode(
            id=self.id,
            action=self.action,
            summary=self.summary,
            metadata=copy.deepcopy(self.metadata),
            requirements=copy.deepcopy(self.requirements),
            parents=set(self.parents),
            children=set(self.children),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "summary": self.summary,
            "metadata": copy.deepcopy(self.metadata),
            "requirements": copy.deepcopy(self.requirements),
            "parents": sorted(self.parents),
            "children": sorted(self.children),
        }


class TaskGraph:
    """A DAG of task nodes; edges point from prerequisite (parent) to dependent (child)."""

    def __init__(self, id_prefix: str = "graph") -> None:
        self._nodes: dict[str, TaskNode] = {}
        self._id_prefix = id_prefix
        self.root_id: str | None = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def add_node(
        self,
        *,
        node_id: str | None = None,
        action: str | None = None,
        summary: str | None = None,
        title: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        requirements: Iterable[Any] | None = None,
    ) -> TaskNode:
        """Add a node from partial input and return a copy of it.

        The first node added becomes the root.
        """
        node_id = node_id or generate_task_node_id(self._id_prefix)
        if node_id in self._nodes:
            raise TaskGraphError(f"Duplicate task node id: {node_id}")
        resolved_action = action or "generic"
        node = TaskNode(
            id=node_id,
            action=resolved_action,
            summary=summary or title or resolved_action or "task",
            metadata=copy.deepcopy(dict(metadata)) if metadata else {},
            requirements=copy.deepcopy(list(requirements)) if requirements else [],
        )
        self._nodes[node_id] = node
        if self.root_id is None:
            self.root_id = node_id
        return node.copy()

    def set_root(self, node_id: str) -> None:
        if node_id not in self._nodes:
            raise TaskGraphError(f"Unknown task node id: {node_id}")
        self.root_id = node_id

    def _reaches(self, start: str, goal: str) -> bool:
        stack = [start]
        visited: set[str] = set()
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(self._nodes[current].children)
        return False

    def add_dependency(self, parent_id: str, child_id: str) -> None:
        """Record that ``parent_id`` must finish before ``child_id``.

        Repeated edges are no-ops and self-loops are ignored. An edge that would close
        a cycle raises :class:`TaskGraphError`.
        """
        for node_id in (parent_id, child_id):
            if node_id not in self._nodes:
                raise TaskGraphError(f"Unknown task node id: {node_id}")
        if parent_id == child_id:
            return
        parent = self._nodes[parent_id]
        if child_id in parent.children:
            return
        if self._reaches(child_id, parent_id):
            raise TaskGraphError(f"Edge {parent_id} -> {child_id} would create a cycle")
        parent.children.add(child_id)
        self._nodes[child_id].parents.add(parent_id)

    def get_node(self, node_id: str) -> TaskNode | None:
        node = self._nodes.get(node_id)
        return node.copy() if node is not None else None

    def nodes(self) -> list[TaskNode]:
        return [node.copy() for node in self._nodes.values()]

    def edges(self) -> set[tuple[str, str]]:
        return {(node.id, child) for node in self._nodes.values() for child in node.children}

    def get_ready_nodes(self, completed: Iterable[str] = ()) -> list[str]:
        """Ids of unfinished nodes whose parents have all completed."""
        done = set(completed)
        return [
            node.id
            for node in self._nodes.values()
            if node.id not in done and node.parents <= done
        ]

    def to_dict(self) -> dict[str, Any]:
        return {"rootId": self.root_id, "nodes": [node.to_dict() for node in self._nodes.values()]}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TaskGraph:
        graph = cls()
        raw_nodes = payload.get("nodes") or []
        for raw in raw_nodes:
            graph.add_node(
                node_id=raw.get("id"),
                action=raw.get("action"),
                summary=raw.get("summary"),
                metadata=raw.get("metadata"),
                requirements=raw.get("requirements"),
            )
        for raw in raw_nodes:
            for child_id in raw.get("children") or []:
                graph.add_dependency(raw["id"], child_id)
            for parent_id in raw.get("parents") or []:
                graph.add_dependency(parent_id, raw["id"])
        root_id = payload.get("rootId")
        if root_id:
            graph.set_root(root_id)
        return graph


@dataclass(slots=True)
class SubTask:
    """A prerequisite or follow-up task attached to a plan, with its sub-plan if one was produced."""

    id: str
    action: str
    task: Task
    plan: Plan | None = None
    relation: str = "prerequisite"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "relation": self.relation,
            "task": self.task.to_dict(),
            "plan": self.plan.to_dict() if self.plan is not None else None,
        }


@dataclass(slots=True)
class Plan:
    action: str
    summary: str
    estimated_duration: int
    steps: list[Step]
    resources: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    task_graph: TaskGraph | None = None
    sub_tasks: list[SubTask] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def step_titles(self) -> list[str]:
        return [step.title for step in self.steps]

    def find_step(self, title: str) -> Step | None:
        return next((step for step in self.steps if step.title == title), None)

    def copy(self) -> Plan:
        return Plan(
            action=self.action,
            summary=self.summary,
            estimated_duration=self.estimated_duration,
            steps=[create_step(s.title, s.description, step_type=s.type, command=s.command, metadata=s.metadata)
                   for s in self.steps],
            resources=list(self.resources),
            risks=list(self.risks),
            notes=list(self.notes),
            task_graph=self.task_graph,
            sub_tasks=list(self.sub_tasks),
            metadata=copy.deepcopy(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": self.action,
            "summary": self.summary,
            "estimatedDuration": self.estimated_duration,
            "resources": list(self.resources),
            "steps": [step.to_dict() for step in self.steps],
            "risks": list(self.risks),
            "notes": list(self.notes),
            "metadata": copy.deepcopy(self.metadata),
        }
        if self.task_graph is not None:
            payload["taskGraph"] = self.task_graph.to_dict()
        if self.sub_tasks:
            payload["subTasks"] = [sub_task.to_dict() for sub_task in self.sub_tasks]
        return payload


def create_plan(
    action: str,
    summary: str,
    *,
    steps: Iterable[Step],
    estimated_duration: float | None = None,
    resources: Iterable[Any] = (),
    risks: Iterable[Any] = (),
    notes: Iterable[Any] = (),
    task_graph: TaskGraph | None = None,
    sub_tasks: Iterable[SubTask] = (),
    metadata: Mapping[str, Any] | None = None,
) -> Plan:
    """Assemble a plan with canonical, de-duplicated resources, risks and notes.

    The duration is rounded to a positive integer number of milliseconds and falls back
    to ``settings.default_duration_ms`` when missing or not positive.
    """
    if estimated_duration is None or estimated_duration <= 0:
        duration = settings.default_duration_ms
    else:
        duration = max(1, int(round(estimated_duration)))
    return Plan(
        action=action,
        summary=summary.strip() or action,
        estimated_duration=duration,
        steps=[step for step in steps if step.title and step.description],
        resources=canonical_resources(resources),
        risks=unique_strings(risks),
        notes=unique_strings(notes),
        task_graph=task_graph,
        sub_tasks=list(sub_tasks),
        metadata=copy.deepcopy(dict(metadata)) if metadata else {},
    )
