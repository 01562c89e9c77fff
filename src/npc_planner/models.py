from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from npc_planner.errors import TaskValidationError


class TaskPriority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"
    critical = "critical"

    @classmethod
    def parse(cls, value: Any) -> TaskPriority:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.normal
        return cls.normal


@dataclass(slots=True)
class Task:
    """A request envelope handed to a planner."""

    action: str
    details: str | None = None
    priority: TaskPriority = TaskPriority.normal
    target: str | dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Task:
        action = payload.get("action")
        if not isinstance(action, str) or not action.strip():
            raise TaskValidationError("Task requires a non-empty action")

        target = payload.get("target")
        if isinstance(target, Mapping):
            target = copy.deepcopy(dict(target))
        elif not isinstance(target, str):
            target = None

        metadata = payload.get("metadata")
        details = payload.get("details")
        return cls(
            action=action.strip(),
            details=details if isinstance(details, str) else None,
            priority=TaskPriority.parse(payload.get("priority")),
            target=target,
            metadata=copy.deepcopy(dict(metadata)) if isinstance(metadata, Mapping) else {},
        )

    @classmethod
    def coerce(cls, value: Task | Mapping[str, Any]) -> Task:
        if isinstance(value, Task):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise TaskValidationError(f"Unsupported task payload: {type(value).__name__}")

    def meta(self, *keys: str, default: Any = None) -> Any:
        """Return the first metadata value present under any of ``keys``."""
        for key in keys:
            value = self.metadata.get(key)
            if value is not None and value != "":
                return value
        return default

    def derive(self, action: str, *, target: Any = None, metadata: dict[str, Any] | None = None,
               details: str | None = None) -> Task:
        """Build a follow-on task sharing this task's priority."""
        return Task(
            action=action,
            details=details,
            priority=self.priority,
            target=copy.deepcopy(target),
            metadata=metadata or {},
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": self.action,
            "priority": self.priority.value,
            "metadata": copy.deepcopy(self.metadata),
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.target is not None:
            payload["target"] = copy.deepcopy(self.target)
        return payload
