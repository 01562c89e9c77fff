"""NPC task planner: turns task requests into structured, dependency-aware plans."""

from .context import (
    count_inventory_items,
    extract_environmental_signals,
    extract_inventory,
    has_inventory_item,
    merge_inventories,
    resolve_tool_integrity,
)
from .dispatcher import (
    TaskDispatcher,
    default_registry,
    has_planner,
    list_registered_planners,
    plan_task,
    register_planner,
    reset_default_registry,
)
from .errors import PlannerError, PlannerRegistrationError, PlanValidationError, TaskGraphError, TaskValidationError
from .models import Task, TaskPriority
from .normalize import (
    describe_target,
    format_display_name,
    format_requirement_list,
    normalize_item_name,
    resolve_quantity,
)
from .planning import Plan, PlannerRegistry, Step, TaskGraph, TaskNode

__all__ = [
    "Plan",
    "PlanValidationError",
    "PlannerError",
    "PlannerRegistrationError",
    "PlannerRegistry",
    "Step",
    "Task",
    "TaskDispatcher",
    "TaskGraph",
    "TaskGraphError",
    "TaskNode",
    "TaskPriority",
    "TaskValidationError",
    "count_inventory_items",
    "default_registry",
    "describe_target",
    "extract_environmental_signals",
    "extract_inventory",
    "format_display_name",
    "format_requirement_list",
    "has_inventory_item",
    "has_planner",
    "list_registered_planners",
    "merge_inventories",
    "normalize_item_name",
    "plan_task",
    "register_planner",
    "reset_default_registry",
    "resolve_quantity",
    "resolve_tool_integrity",
]
