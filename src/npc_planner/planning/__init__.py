"""Plan primitives, the planner registry, sub-planning and the personality layer."""

from .personality import apply_personality_bias, extract_traits
from .primitives import (
    Plan,
    Step,
    SubTask,
    TaskGraph,
    TaskNode,
    create_plan,
    create_step,
    generate_task_node_id,
    reset_task_node_ids,
)
from .registry import Planner, PlannerRegistry
from .subplanning import FOLLOW_UP, PREREQUISITE, SubTaskCollector, attach_sub_task

__all__ = [
    "FOLLOW_UP",
    "PREREQUISITE",
    "Plan",
    "Planner",
    "PlannerRegistry",
    "Step",
    "SubTask",
    "SubTaskCollector",
    "TaskGraph",
    "TaskNode",
    "apply_personality_bias",
    "attach_sub_task",
    "create_plan",
    "create_step",
    "extract_traits",
    "generate_task_node_id",
    "reset_task_node_ids",
]
