from __future__ import annotations

import pytest

from npc_planner.errors import PlannerRegistrationError
from npc_planner.models import Task
from npc_planner.planners import BUILTIN_PLANNERS
from npc_planner.planning import PlannerRegistry, create_plan, create_step


def _echo_planner(task, context):
    return create_plan(task.action, f"Echo {task.details}", steps=[create_step("Echo", str(context.get("value")))])


def _broken_planner(task, context):
    raise RuntimeError("boom")


def test_register_and_invoke_with_mapping_task() -> None:
    registry = PlannerRegistry()
    registry.register("Echo", _echo_planner)

    plan = registry.invoke("echo", {"action": "echo", "details": "hi"}, {"value": 3})

    assert registry.has(" ECHO ")
    assert plan.summary == "Echo hi"
    assert plan.steps[0].description == "3"


def test_later_registration_replaces_earlier() -> None:
    registry = PlannerRegistry()
    registry.register("echo", _broken_planner)
    registry.register("echo", _echo_planner)
    assert registry.invoke("echo", Task(action="echo")) is not None
    assert registry.list_actions() == ["echo"]


def test_invalid_registrations_raise() -> None:
    registry = PlannerRegistry()
    with pytest.raises(PlannerRegistrationError):
        registry.register("", _echo_planner)
    with pytest.raises(PlannerRegistrationError):
        registry.register("echo", "not callable")


def test_invoke_isolates_failures(caplog) -> None:
    registry = PlannerRegistry()
    registry.register("broken", _broken_planner)
    registry.register("echo", _echo_planner)

    assert registry.invoke("broken", Task(action="broken")) is None
    assert registry.invoke("missing", Task(action="missing")) is None
    assert registry.invoke("echo", {"details": "no action"}) is None
    assert any(record.getMessage() == "planner_failed" for record in caplog.records)


def test_has_rejects_non_strings_and_unregister_works() -> None:
    registry = PlannerRegistry()
    registry.register("echo", _echo_planner)
    assert not registry.has(None)
    assert not registry.has(7)
    assert registry.get("nope") is None
    assert registry.unregister("echo")
    assert not registry.unregister("echo")
    registry.register("echo", _echo_planner)
    registry.clear()
    assert registry.list_actions() == []


def test_builtin_registry_covers_every_action(registry: PlannerRegistry) -> None:
    assert registry.list_actions() == sorted(BUILTIN_PLANNERS)
    for action in ("build", "mine", "craft", "combat", "gather", "guard", "explore", "interact", "eat", "sleep",
                   "door", "climb", "redstone", "throw", "trade", "minecart", "item_frame", "display",
                   "composter", "scaffolding", "ranged"):
        assert registry.has(action)
