from __future__ import annotations

from npc_planner.config import settings
from npc_planner.models import Task
from npc_planner.planning import (
    FOLLOW_UP,
    PlannerRegistry,
    SubTaskCollector,
    TaskGraph,
    attach_sub_task,
    create_plan,
    create_step,
)


class _RecordingRegistry:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def invoke(self, action, task, context):
        self.calls.append((action, dict(context)))
        return create_plan(action, f"Sub {action}", steps=[create_step("Do", "Do it.")])


def test_prerequisite_becomes_parent_of_root() -> None:
    registry = _RecordingRegistry()
    graph = TaskGraph()
    root = graph.add_node(action="mine")

    sub_task, notes, risks = attach_sub_task(
        graph, root.id, action="craft", task=Task(action="craft"), context={"planRegistry": registry},
    )

    assert graph.get_node(root.id).parents == {sub_task.id}
    assert sub_task.plan.summary == "Sub craft"
    assert sub_task.relation == "prerequisite"
    assert notes == [] and risks == []
    assert registry.calls[0][1]["planDepth"] == 1


def test_follow_up_becomes_child_of_root() -> None:
    graph = TaskGraph()
    root = graph.add_node(action="mine")
    sub_task, notes, _ = attach_sub_task(
        graph, root.id, action="interact", task=Task(action="interact", target="chest"), context={},
        relation=FOLLOW_UP,
    )
    assert graph.get_node(root.id).children == {sub_task.id}
    assert sub_task.plan is None
    assert notes == ["No sub-plan available for interact (interact chest)."]


def test_depth_limit_leaves_sub_task_unplanned() -> None:
    registry = _RecordingRegistry()
    graph = TaskGraph()
    root = graph.add_node(action="mine")
    context = {"planRegistry": registry, "planDepth": settings.max_subplan_depth}

    sub_task, notes, risks = attach_sub_task(graph, root.id, action="craft", task=Task(action="craft"),
                                             context=context)

    assert sub_task.plan is None
    assert registry.calls == []
    assert risks == ["Sub-plan depth limit reached; craft left unplanned."]
    assert len(graph) == 2


def test_collector_only_exposes_graph_once_populated() -> None:
    task = Task(action="mine", target={"x": 1, "y": 12, "z": 1})
    collector = SubTaskCollector(task, {}, summary="Mine iron")
    assert collector.task_graph is None

    collector.prerequisite("craft", "Craft a pickaxe", metadata={"item": "wooden pickaxe"})
    collector.follow_up("interact", "Store ore", target="chest")

    graph = collector.task_graph
    root = graph.get_node(collector.root_id)
    assert root.action == "mine"
    assert root.metadata["priority"] == "normal"
    assert len(root.parents) == 1 and len(root.children) == 1
    assert [sub.relation for sub in collector.sub_tasks] == ["prerequisite", "follow_up"]
    assert collector.sub_tasks[0].task.metadata == {"item": "wooden pickaxe"}


def test_recursion_through_real_registry_is_bounded(registry: PlannerRegistry) -> None:
    def recursive(task, context):
        collector = SubTaskCollector(task, context, summary="again")
        collector.prerequisite("loop", "Loop again")
        return create_plan(task.action, "loop", steps=[create_step("Loop", "Loop.")],
                           task_graph=collector.task_graph, sub_tasks=collector.sub_tasks)

    registry.register("loop", recursive)
    plan = registry.invoke("loop", Task(action="loop"), {"planRegistry": registry})

    depth = 0
    current = plan
    while current is not None and current.sub_tasks:
        current = current.sub_tasks[0].plan
        depth += 1
    assert depth == settings.max_subplan_depth + 1
