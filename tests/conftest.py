from __future__ import annotations

import pytest

from npc_planner.dispatcher import reset_default_registry
from npc_planner.planners import register_builtin_planners
from npc_planner.planning import PlannerRegistry, reset_task_node_ids


@pytest.fixture(autouse=True)
def _fresh_planner_state():
    reset_task_node_ids()
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def registry() -> PlannerRegistry:
    return register_builtin_planners(PlannerRegistry())


@pytest.fixture
def plan_context(registry: PlannerRegistry):
    """Build a context that lets planners expand sub-tasks through ``registry``."""

    def build(**values):
        return {"planRegistry": registry, **values}

    return build
