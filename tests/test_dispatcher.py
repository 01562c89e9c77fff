from __future__ import annotations

import copy

import npc_planner
from npc_planner.dispatcher import TaskDispatcher
from npc_planner.models import Task
from npc_planner.planning import PlannerRegistry, create_plan, create_step


class _StubTelemetry:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))


def _context_probe(task, context):
    return create_plan(
        task.action,
        "Probe",
        steps=[create_step("Probe", "Look around.")],
        estimated_duration=4_000,
        metadata={"sawRegistry": context.get("planRegistry") is not None, "keys": sorted(context)},
    )


def _broken(task, context):
    raise ValueError("planner exploded")


def test_unknown_action_returns_none() -> None:
    assert npc_planner.plan_task({"action": "teleport", "target": {"x": 0, "y": 64, "z": 0}}) is None
    assert not npc_planner.has_planner("teleport")


def test_missing_or_blank_action_returns_none() -> None:
    dispatcher = TaskDispatcher(PlannerRegistry())
    assert dispatcher.plan_task({"target": "spawn"}) is None
    assert dispatcher.plan_task({"action": "   "}) is None
    assert dispatcher.plan_task(None) is None
    assert dispatcher.plan_task("mine") is None


def test_planner_faults_become_none() -> None:
    registry = PlannerRegistry()
    registry.register("broken", _broken)
    telemetry = _StubTelemetry()
    assert TaskDispatcher(registry, telemetry=telemetry).plan_task({"action": "broken"}) is None
    assert telemetry.events == []


def test_dispatcher_passes_registry_and_emits_telemetry() -> None:
    registry = PlannerRegistry()
    registry.register("probe", _context_probe)
    telemetry = _StubTelemetry()
    dispatcher = TaskDispatcher(registry, telemetry=telemetry)

    plan = dispatcher.plan_task(Task(action="probe"), {"weather": "clear"})

    assert plan.metadata["sawRegistry"] is True
    assert plan.metadata["keys"] == ["planRegistry", "weather"]
    assert telemetry.events == [
        ("plan_created", {"action": "probe", "steps": 1, "estimated_duration": 4_000, "risks": 0, "sub_tasks": 0}),
    ]


def test_personality_traits_are_applied() -> None:
    registry = PlannerRegistry()
    registry.register("probe", _context_probe)
    dispatcher = TaskDispatcher(registry, telemetry=_StubTelemetry())

    plan = dispatcher.plan_task({"action": "probe"}, {"npc": {"traits": {"patience": 1.0, "aggression": 0.0}}})

    assert plan.estimated_duration == 5_000
    assert plan.metadata["personality_bias"]["duration_factor"] == 1.25


def test_personality_failure_becomes_none(monkeypatch) -> None:
    registry = PlannerRegistry()
    registry.register("probe", _context_probe)
    dispatcher = TaskDispatcher(registry, telemetry=_StubTelemetry())

    def _explode(plan, traits):
        raise RuntimeError("bad traits")

    monkeypatch.setattr("npc_planner.dispatcher.apply_personality_bias", _explode)
    assert dispatcher.plan_task({"action": "probe"}, {"npc": {"traits": {"patience": 0.9}}}) is None


def test_schema_validation_only_logs(caplog) -> None:
    def _bad_plan(task, context):
        plan = create_plan(task.action, "Bad", steps=[create_step("Step", "Do it.")])
        plan.risks = ["dup", "dup"]
        return plan

    registry = PlannerRegistry()
    registry.register("bad", _bad_plan)
    plan = TaskDispatcher(registry, telemetry=_StubTelemetry(), validate_plans=True).plan_task({"action": "bad"})

    assert plan is not None
    assert any(record.getMessage() == "plan_schema_violation" for record in caplog.records)


def test_module_level_registry_is_resettable() -> None:
    npc_planner.register_planner("probe", _context_probe)
    assert npc_planner.has_planner("probe")
    assert "probe" in npc_planner.list_registered_planners()
    assert npc_planner.plan_task({"action": "probe"}).summary == "Probe"

    npc_planner.reset_default_registry()
    assert not npc_planner.has_planner("probe")
    assert npc_planner.has_planner("mine")


MINE_TASK = {
    "action": "mine",
    "target": {"x": 100, "y": 12, "z": -40},
    "metadata": {"resource": "iron_ore", "quantity": 32, "tool": "pickaxe", "dropOff": "base_chest"},
}
TRAIT_CONTEXT = {
    "inventory": [{"name": "torch", "count": 8}],
    "npc": {"traits": {"patience": 0.9, "empathy": 0.7, "aggression": 0.2}},
}


def _collect_node_ids(value, found: list[str]) -> list[str]:
    if isinstance(value, dict):
        if "rootId" in value and "nodes" in value:
            found.extend(node["id"] for node in value["nodes"])
        for item in value.values():
            _collect_node_ids(item, found)
    elif isinstance(value, list):
        for item in value:
            _collect_node_ids(item, found)
    return found


def _mask(value, labels: dict[str, str]):
    if isinstance(value, dict):
        return {key: _mask(item, labels) for key, item in value.items()}
    if isinstance(value, list):
        return [_mask(item, labels) for item in value]
    if isinstance(value, str):
        return labels.get(value, value)
    return value


def _without_node_ids(plan) -> dict:
    payload = plan.to_dict()
    labels = {node_id: f"node-{index}" for index, node_id in enumerate(_collect_node_ids(payload, []))}
    return _mask(payload, labels)


def test_identical_inputs_give_identical_plans() -> None:
    first = npc_planner.plan_task(copy.deepcopy(MINE_TASK), copy.deepcopy(TRAIT_CONTEXT))
    second = npc_planner.plan_task(copy.deepcopy(MINE_TASK), copy.deepcopy(TRAIT_CONTEXT))

    assert first.sub_tasks
    assert "personality_bias" in first.metadata
    assert _without_node_ids(first) == _without_node_ids(second)


def test_plan_task_leaves_task_and_context_untouched() -> None:
    task = Task.from_mapping(copy.deepcopy(MINE_TASK))
    before_task = copy.deepcopy(task.to_dict())
    raw_task = copy.deepcopy(MINE_TASK)
    context = copy.deepcopy(TRAIT_CONTEXT)

    assert npc_planner.plan_task(task, context) is not None
    assert npc_planner.plan_task(raw_task, context) is not None

    assert task.to_dict() == before_task
    assert raw_task == MINE_TASK
    assert context == TRAIT_CONTEXT
    assert "planRegistry" not in context
