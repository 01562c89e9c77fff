from __future__ import annotations

import pytest

from npc_planner.models import Task
from npc_planner.planners import BUILTIN_PLANNERS
from npc_planner.planning.schema import validate_plan

SPOT = {"x": 12, "y": 64, "z": -8}

SCENARIOS = {
    "build": {"target": SPOT, "metadata": {"template": "basic house"}},
    "mine": {"target": {"x": 0, "y": 12, "z": 0}, "metadata": {"resource": "iron ore", "quantity": 8}},
    "craft": {"metadata": {"item": "torch", "quantity": 8}},
    "combat": {"target": SPOT, "metadata": {"targetEntity": "skeleton"}},
    "gather": {"target": SPOT, "metadata": {"resource": "oak log", "quantity": 16}},
    "guard": {"target": "village gate"},
    "explore": {"target": {"x": 300, "y": 70, "z": 300}},
    "interact": {"target": SPOT, "metadata": {"container": "chest"}},
    "eat": {"metadata": {"hunger": 9}},
    "sleep": {},
    "door": {"target": SPOT, "metadata": {"door": "oak door"}},
    "climb": {"target": {"x": 0, "y": 80, "z": 0}},
    "redstone": {"target": SPOT, "metadata": {"component": "lever"}},
    "throw": {"target": SPOT, "metadata": {"item": "snowball"}},
    "trade": {"metadata": {"item": "bread", "profession": "farmer"}},
    "minecart": {"target": {"x": 100, "y": 64, "z": 0}},
    "item_frame": {"target": SPOT, "metadata": {"item": "compass"}},
    "display": {"metadata": {"display": "armor stand", "armor": ["iron chestplate"]}},
    "composter": {"metadata": {"bonemeal": 1}},
    "scaffolding": {"metadata": {"pattern": "bridge"}},
    "ranged": {"target": SPOT},
}

CONTEXT = {
    "playerPosition": {"x": 0, "y": 64, "z": 0},
    "inventory": [
        {"name": "bread", "count": 6},
        {"name": "oak planks", "count": 12},
        {"name": "emerald", "count": 3},
        {"name": "snowball", "count": 8},
    ],
}


def test_every_builtin_action_has_a_scenario() -> None:
    assert sorted(SCENARIOS) == sorted(BUILTIN_PLANNERS)


@pytest.mark.parametrize("action", sorted(SCENARIOS))
def test_builtin_plans_are_well_formed(action, registry) -> None:
    task = Task.from_mapping({"action": action, **SCENARIOS[action]})
    plan = registry.invoke(action, task, {**CONTEXT, "planRegistry": registry})

    assert plan is not None
    assert plan.action == action
    assert plan.steps
    assert all(step.title and step.description for step in plan.steps)
    assert isinstance(plan.estimated_duration, int) and plan.estimated_duration >= 1
    assert len(plan.resources) == len(set(plan.resources))
    assert "unspecified item" not in plan.resources
    assert len(plan.risks) == len(set(plan.risks))
    assert len(plan.notes) == len(set(plan.notes))
    validate_plan(plan.to_dict())


@pytest.mark.parametrize("action", ["mine", "sleep", "ranged"])
def test_sub_plans_are_well_formed(action, registry) -> None:
    task = Task.from_mapping({"action": action, **SCENARIOS[action]})
    plan = registry.invoke(action, task, {"planRegistry": registry})

    assert plan.sub_tasks
    for sub_task in plan.sub_tasks:
        assert sub_task.id in plan.task_graph
        if sub_task.plan is not None:
            validate_plan(sub_task.plan.to_dict())
