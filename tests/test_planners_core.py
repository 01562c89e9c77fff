from __future__ import annotations

import pytest

from npc_planner.errors import TaskValidationError
from npc_planner.models import Task
from npc_planner.planners import (
    plan_build_task,
    plan_combat_task,
    plan_craft_task,
    plan_explore_task,
    plan_gather_task,
    plan_guard_task,
    plan_interact_task,
    plan_mine_task,
)

PICKAXE = {"name": "iron pickaxe", "count": 1, "durability": 240, "maxDurability": 250}


def test_mine_with_tool_has_no_sub_tasks() -> None:
    task = Task(action="mine", target={"x": 5, "y": 30, "z": 5}, metadata={"resource": "coal_ore", "quantity": 10})
    plan = plan_mine_task(task, {"inventory": [PICKAXE, {"name": "torch", "count": 32}]})

    assert plan.task_graph is None
    assert plan.sub_tasks == []
    assert "Missing required tool: pickaxe." not in plan.risks
    assert "coal ore" in plan.resources
    assert "Process ore" in plan.step_titles()


def test_mine_duration_grows_with_quantity() -> None:
    context = {"inventory": [PICKAXE]}
    small = plan_mine_task(Task(action="mine", metadata={"resource": "iron ore", "quantity": 4}), context)
    large = plan_mine_task(Task(action="mine", metadata={"resource": "iron ore", "quantity": 64}), context)
    assert large.estimated_duration > small.estimated_duration


def test_mine_reacts_to_low_light_lava_and_broken_tools() -> None:
    context = {
        "inventory": [{"name": "iron pickaxe", "durability": 0, "maxDurability": 250}],
        "bridgeState": {"hazards": ["lava"], "lightLevel": 2},
    }
    plan = plan_mine_task(Task(action="mine", metadata={"resource": "diamond ore"}), context)

    titles = plan.step_titles()
    assert "Stabilize lighting" in titles
    assert "Lava contingency" in titles
    assert "Replace primary tool" in titles
    assert plan.find_step("Lava contingency").command == "retreat"
    assert "Active lava detected; keep retreat routes clear." in plan.risks


@pytest.mark.parametrize("depth", [-54, "-54", "Y-54"])
def test_mine_keeps_negative_y_levels(depth) -> None:
    task = Task(action="mine", target={"x": 0, "y": -54, "z": 0},
                metadata={"resource": "diamond ore", "depth": depth})
    plan = plan_mine_task(task, {"inventory": [{"name": "iron pickaxe"}]})

    assert "Y-54" in plan.find_step("Select mining style").description
    assert plan.find_step("Select mining style").metadata["style"] == "vertical shaft"
    assert "Y-54" in plan.find_step("Stabilize shaft").description


def test_mine_out_of_bounds_target_is_flagged() -> None:
    plan = plan_mine_task(Task(action="mine", target={"x": 0, "y": -100, "z": 0}), {"inventory": [PICKAXE]})
    assert plan.risks[0] == "Target position outside world bounds (y=-100)."


def test_craft_with_ingredients_on_hand_verifies_them() -> None:
    task = Task(action="craft", metadata={"item": "torch", "quantity": 4,
                                          "ingredients": [{"name": "stick", "count": 1}, {"name": "coal", "count": 1}]})
    plan = plan_craft_task(task, {"inventory": {"stick": 8, "coal": 8}})

    assert "Verify ingredients" in plan.step_titles()
    assert "Restock ingredients" not in plan.step_titles()
    assert plan.sub_tasks == []
    assert plan.find_step("Craft item").command == "/craft torch 4"


def test_craft_missing_ingredients_spawn_gather_sub_tasks() -> None:
    task = Task(action="craft", metadata={"item": "torch", "quantity": 2,
                                          "ingredients": [{"name": "stick", "count": 1}, {"name": "coal", "count": 1}]})
    plan = plan_craft_task(task, {"inventory": {"stick": 2}})

    assert "Restock ingredients" in plan.step_titles()
    assert [sub.action for sub in plan.sub_tasks] == ["gather"]
    assert plan.sub_tasks[0].task.metadata == {"resource": "coal", "quantity": 2}


def test_craft_exact_quantity_overrides_stock_rules() -> None:
    task = Task(action="craft", metadata={"item": "torch", "exactQuantity": 3, "maintainMinimum": 64})
    plan = plan_craft_task(task, {})
    assert plan.metadata["quantity"] == 3


def test_combat_duration_scales_with_enemy_count() -> None:
    one = plan_combat_task(Task(action="combat", metadata={"targetEntity": "zombie"}), {})
    many = plan_combat_task(Task(action="combat", metadata={"targetEntity": "zombie", "enemyCount": 6}), {})
    assert many.estimated_duration > one.estimated_duration
    assert "Multiple hostiles present; expect an extended fight." in many.risks


def test_combat_explicit_priority_targets_come_first() -> None:
    task = Task(action="combat", metadata={"targetEntity": "zombie", "enemyTypes": ["creeper"],
                                           "priorityTargets": ["zombie"]})
    plan = plan_combat_task(task, {})
    assert plan.metadata["threatOrder"] == ["zombie", "creeper"]


def test_combat_without_squad_skips_coordination() -> None:
    plan = plan_combat_task(Task(action="combat", metadata={"targetEntity": "spider"}), {})
    assert plan.find_step("Coordinate squad") is None
    assert plan.metadata["squadRoles"] == []
    assert plan.step_titles()[0] == "Prepare"


def test_build_from_dimensions_estimates_materials() -> None:
    task = Task(action="build", target={"x": 0, "y": 64, "z": 0},
                metadata={"dimensions": "7x7x4", "primaryMaterial": "oak planks"})
    plan = plan_build_task(task, {})

    assert plan.metadata["blockCount"] > 0
    assert "oak planks" in plan.resources
    assert "Restock materials" in plan.step_titles()
    assert [phase["name"] for phase in plan.metadata["phases"]][0] == "site_preparation"
    assert "redstone" not in [phase["name"] for phase in plan.metadata["phases"]]


def test_build_redstone_template_includes_redstone_phase() -> None:
    plan = plan_build_task(Task(action="build", metadata={"template": "redstone farm"}), {})
    assert "redstone" in [phase["name"] for phase in plan.metadata["phases"]]
    assert "Install redstone" in plan.step_titles()


def test_gather_without_tool_requests_one() -> None:
    task = Task(action="gather", target={"x": 3, "y": 64, "z": 3}, metadata={"resource": "oak log", "tool": "axe"})
    plan = plan_gather_task(task, {})

    titles = plan.step_titles()
    assert "Obtain tools" in titles
    assert "Harvest" in titles
    assert "Store" in titles
    assert [sub.action for sub in plan.sub_tasks] == ["craft"]


def test_guard_requires_target() -> None:
    with pytest.raises(TaskValidationError):
        plan_guard_task(Task(action="guard"), {})


def test_guard_patrol_route_and_shift() -> None:
    task = Task(action="guard", target="village gate",
                metadata={"patrolRoute": "gate, wall", "shiftMinutes": 10, "threatLevel": "high"})
    plan = plan_guard_task(task, {"inventory": ["iron sword", "shield", "armor"]})

    assert plan.find_step("Patrol").metadata["route"] == ["gate", "wall"]
    assert plan.find_step("Maintain watch") is not None
    assert plan.estimated_duration == 10_000 + 10 * 600
    assert "High threat level expected; keep escape route ready." in plan.risks


def test_explore_produces_travel_and_report() -> None:
    plan = plan_explore_task(Task(action="explore", target={"x": 500, "y": 70, "z": -200}), {})
    titles = plan.step_titles()
    assert titles[0] == "Prepare expedition"
    assert "Travel and explore" in titles
    assert "Report findings" in titles


def test_interact_duration_is_seconds_plus_buffer() -> None:
    task = Task(action="interact", target={"x": 10.7, "y": 64, "z": -3.2},
                metadata={"container": "barrel", "duration": 4,
                          "transfer": {"take": [{"name": "bread", "count": 3}]}})
    plan = plan_interact_task(task, {})

    assert plan.estimated_duration == 7_000
    assert plan.find_step("Interact").command == "/data get block 10 64 -4 Items"
    assert plan.metadata["transfer"]["take"] == [{"name": "bread", "count": 3}]


def test_interact_missing_key_is_a_risk() -> None:
    task = Task(action="interact", target="vault", metadata={"requiresKey": "tripwire hook"})
    plan = plan_interact_task(task, {})
    assert "Missing required key item (tripwire hook)." in plan.risks
    with pytest.raises(TaskValidationError):
        plan_interact_task(Task(action="interact"), {})
