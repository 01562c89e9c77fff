from __future__ import annotations

import re

import pytest

from npc_planner.errors import TaskGraphError, TaskValidationError
from npc_planner.models import Task, TaskPriority
from npc_planner.planning import (
    TaskGraph,
    create_plan,
    create_step,
    generate_task_node_id,
    reset_task_node_ids,
)


def test_task_from_mapping_normalizes_fields() -> None:
    task = Task.from_mapping({
        "action": " mine ",
        "priority": "HIGH",
        "target": {"x": 1, "y": 2, "z": 3},
        "metadata": {"resource": "iron_ore"},
        "details": 5,
    })
    assert task.action == "mine"
    assert task.priority is TaskPriority.high
    assert task.details is None
    assert task.meta("missing", "resource") == "iron_ore"


def test_task_from_mapping_rejects_missing_action() -> None:
    with pytest.raises(TaskValidationError):
        Task.from_mapping({"target": "somewhere"})
    with pytest.raises(TaskValidationError):
        Task.coerce(["mine"])


def test_unknown_priority_defaults_to_normal() -> None:
    assert TaskPriority.parse("urgent") is TaskPriority.normal
    assert TaskPriority.parse(None) is TaskPriority.normal


def test_task_meta_skips_empty_values() -> None:
    task = Task(action="craft", metadata={"item": "", "output": "torch"})
    assert task.meta("item", "output") == "torch"
    assert task.meta("nothing", default=3) == 3


def test_node_ids_use_prefix_and_counter() -> None:
    reset_task_node_ids()
    first = generate_task_node_id("mine")
    second = generate_task_node_id("mine")
    assert re.fullmatch(r"mine_[0-9a-z]+_1", first)
    assert second.endswith("_2")


def test_create_step_clones_metadata() -> None:
    metadata = {"items": ["torch"]}
    step = create_step(" Place torches ", " Light the tunnel. ", metadata=metadata)
    metadata["items"].append("lantern")
    assert step.title == "Place torches"
    assert step.metadata == {"items": ["torch"]}
    assert step.type == "action"
    assert "command" not in step.to_dict()


def test_create_plan_dedupes_and_defaults_duration() -> None:
    plan = create_plan(
        "mine",
        "Mine things.",
        steps=[create_step("Mine", "Dig."), create_step("", "Dropped."), create_step("Store", "")],
        estimated_duration=None,
        resources=["Iron_Ore", "iron ore", None, "", "torch"],
        risks=["Lava", "Lava", " ", "Gravel"],
        notes=["a", "a"],
    )
    assert plan.step_titles() == ["Mine"]
    assert plan.resources == ["iron ore", "torch"]
    assert plan.risks == ["Lava", "Gravel"]
    assert plan.notes == ["a"]
    assert plan.estimated_duration == 8000

    rounded = create_plan("mine", "x", steps=[create_step("Mine", "Dig.")], estimated_duration=0.2)
    assert rounded.estimated_duration == 1
    negative = create_plan("mine", "x", steps=[create_step("Mine", "Dig.")], estimated_duration=-5)
    assert negative.estimated_duration == 8000


def test_graph_first_node_is_root_and_edges_are_recorded() -> None:
    graph = TaskGraph()
    root = graph.add_node(action="mine", summary="Mine iron")
    tool = graph.add_node(node_id="craft-1", action="craft")
    graph.add_dependency(tool.id, root.id)
    graph.add_dependency(tool.id, root.id)
    graph.add_dependency(root.id, root.id)

    assert graph.root_id == root.id
    assert graph.edges() == {(tool.id, root.id)}
    assert graph.get_node(root.id).parents == {tool.id}
    assert graph.get_node("craft-1").summary == "craft"
    assert len(graph) == 2


def test_graph_rejects_cycles_duplicates_and_unknown_ids() -> None:
    graph = TaskGraph()
    a = graph.add_node(node_id="a")
    b = graph.add_node(node_id="b")
    c = graph.add_node(node_id="c")
    graph.add_dependency(a.id, b.id)
    graph.add_dependency(b.id, c.id)

    with pytest.raises(TaskGraphError):
        graph.add_dependency(c.id, a.id)
    with pytest.raises(TaskGraphError):
        graph.add_node(node_id="a")
    with pytest.raises(TaskGraphError):
        graph.add_dependency("a", "zzz")
    with pytest.raises(TaskGraphError):
        graph.set_root("zzz")
    assert graph.get_node("a").action == "generic"


def test_graph_ready_nodes_follow_completion() -> None:
    graph = TaskGraph()
    for node_id in ("root", "tool", "store"):
        graph.add_node(node_id=node_id)
    graph.add_dependency("tool", "root")
    graph.add_dependency("root", "store")

    assert graph.get_ready_nodes() == ["tool"]
    assert graph.get_ready_nodes(["tool"]) == ["root"]
    assert graph.get_ready_nodes(["tool", "root"]) == ["store"]


def test_graph_nodes_are_copies() -> None:
    graph = TaskGraph()
    node = graph.add_node(node_id="a", metadata={"k": 1})
    node.metadata["k"] = 2
    node.children.add("ghost")
    stored = graph.get_node("a")
    assert stored.metadata == {"k": 1}
    assert stored.children == set()


def test_graph_round_trips_through_dict() -> None:
    graph = TaskGraph()
    graph.add_node(node_id="root", action="mine")
    graph.add_node(node_id="tool", action="craft")
    graph.add_dependency("tool", "root")

    restored = TaskGraph.from_dict(graph.to_dict())
    assert restored.root_id == "root"
    assert restored.edges() == {("tool", "root")}
    assert restored.to_dict()["nodes"][0]["parents"] == ["tool"]
