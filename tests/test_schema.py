from __future__ import annotations

import json

import pytest

from npc_planner.errors import PlanValidationError
from npc_planner.models import Task
from npc_planner.planning import create_plan, create_step
from npc_planner.planning.schema import PLAN_SCHEMA, PLAN_SCHEMA_VERSION, plan_schema_json, validate_plan
from npc_planner.planners import plan_mine_task


def _valid_plan() -> dict:
    return create_plan("mine", "Mine.", steps=[create_step("Mine", "Dig.")], estimated_duration=1000).to_dict()


def test_schema_json_is_parseable() -> None:
    parsed = json.loads(plan_schema_json())
    assert parsed == PLAN_SCHEMA
    assert PLAN_SCHEMA_VERSION == "1.0.0"


def test_valid_plan_passes() -> None:
    validate_plan(_valid_plan())


def test_planner_output_with_sub_tasks_passes(plan_context) -> None:
    task = Task(action="mine", target={"x": 0, "y": 12, "z": 0},
                metadata={"resource": "iron_ore", "dropOff": "base chest"})
    plan = plan_mine_task(task, plan_context())
    payload = plan.to_dict()
    assert "taskGraph" in payload and "subTasks" in payload
    validate_plan(payload)


@pytest.mark.parametrize(
    ("mutate", "path"),
    [
        (lambda plan: plan.update(estimatedDuration=0), ["estimatedDuration"]),
        (lambda plan: plan.update(steps=[]), ["steps"]),
        (lambda plan: plan.update(resources=["unspecified item"]), ["resources", 0]),
        (lambda plan: plan.update(risks=["same", "same"]), ["risks"]),
        (lambda plan: plan["steps"][0].update(title=" "), ["steps", 0, "title"]),
    ],
)
def test_invalid_plans_raise_with_path(mutate, path) -> None:
    plan = _valid_plan()
    mutate(plan)
    with pytest.raises(PlanValidationError) as excinfo:
        validate_plan(plan)
    assert excinfo.value.path == path


def test_missing_required_field_fails() -> None:
    plan = _valid_plan()
    del plan["summary"]
    with pytest.raises(PlanValidationError):
        validate_plan(plan)


def test_every_violation_is_reported() -> None:
    plan = _valid_plan()
    plan.update(estimatedDuration=0, steps=[], risks=["same", "same"])

    with pytest.raises(PlanValidationError) as excinfo:
        validate_plan(plan)

    locations = [message.split(":", 1)[0] for message in excinfo.value.errors]
    assert sorted(locations) == ["estimatedDuration", "risks", "steps"]
    for location in locations:
        assert location in str(excinfo.value)
