from __future__ import annotations

import pytest

from npc_planner.errors import TaskValidationError
from npc_planner.models import Task
from npc_planner.planners import (
    plan_composter_task,
    plan_item_frame_task,
    plan_minecart_task,
    plan_scaffolding_task,
)

ORIGIN = {"x": 0, "y": 64, "z": 0}


def _commands(plan) -> list[str | None]:
    return [step.command for step in plan.steps]


def test_minecart_ride_on_existing_track() -> None:
    task = Task(action="minecart", target={"x": 64, "y": 64, "z": 0})
    plan = plan_minecart_task(task, {"inventory": ["minecart"], "playerPosition": ORIGIN})

    assert _commands(plan) == ["place_minecart", "enter_minecart", "travel", "exit_minecart"]
    assert plan.find_step("Travel").metadata["travelTime"] == 10.0
    assert plan.metadata["route"]["railRequirements"]["poweredRails"] == 8
    assert plan.metadata["status"] == "ready"


def test_minecart_lays_track_and_crafts_missing_rails() -> None:
    task = Task(action="minecart", target={"x": 64, "y": 64, "z": 0}, metadata={"buildRails": True})
    plan = plan_minecart_task(task, {"inventory": ["minecart"], "playerPosition": ORIGIN})

    commands = _commands(plan)
    assert commands[:4] == ["build_loading_station", "lay_rails", "add_redstone_power", "build_unloading_station"]
    assert [sub.task.metadata["item"] for sub in plan.sub_tasks] == ["rail", "powered rail"]
    assert plan.sub_tasks[0].task.metadata["quantity"] == 56
    assert plan.metadata["status"] == "blocked"


def test_plain_minecart_does_not_count_chest_minecart() -> None:
    plan = plan_minecart_task(Task(action="minecart", target={"x": 10, "y": 64, "z": 0}),
                              {"inventory": ["chest minecart"], "playerPosition": ORIGIN})
    assert plan.metadata["status"] == "blocked"
    assert plan.sub_tasks[0].task.metadata["reason"] == "missing_minecart"


def test_chest_minecart_is_pushed() -> None:
    task = Task(action="minecart", target={"x": 10, "y": 64, "z": 0}, metadata={"cartType": "chest minecart"})
    plan = plan_minecart_task(task, {"inventory": ["chest minecart"], "playerPosition": ORIGIN})
    assert _commands(plan) == ["place_minecart", "push_minecart", "travel"]


def test_minecart_requires_destination() -> None:
    with pytest.raises(TaskValidationError):
        plan_minecart_task(Task(action="minecart", target="the mine"), {})


def test_item_frame_with_rotated_map() -> None:
    task = Task(action="item_frame", metadata={"item": "filled map", "rotation": 2})
    plan = plan_item_frame_task(task, {"inventory": ["item frame", "filled map"]})

    assert _commands(plan) == ["place_frame", "add_item", "rotate_item"]
    assert plan.metadata["rotation"] == 2
    assert plan.metadata["status"] == "ready"
    assert "Place maps in order so adjacent tiles line up." in plan.notes


def test_frame_wall_needs_enough_frames() -> None:
    task = Task(action="display", metadata={"rows": 2, "columns": 3})
    plan = plan_item_frame_task(task, {"inventory": [{"name": "item frame", "count": 2}]})

    assert plan.metadata["frames"] == 6
    assert plan.metadata["status"] == "blocked"
    assert plan.sub_tasks[0].task.metadata["quantity"] == 6


def test_armor_stand_equips_slots_in_order() -> None:
    task = Task(action="display", metadata={"display": "armor stand", "armor": ["diamond boots", "iron helmet"],
                                            "pose": "saluting"})
    plan = plan_item_frame_task(task, {"inventory": ["armor stand", "iron helmet", "diamond boots"]})

    assert _commands(plan) == ["place_armor_stand", "equip_helmet", "equip_boots", "set_pose"]
    assert plan.metadata["armor"] == {"helmet": "iron helmet", "boots": "diamond boots"}
    assert plan.metadata["equipped"] == 2


def test_composter_uses_the_best_items_first() -> None:
    task = Task(action="composter", metadata={"bonemeal": 1, "existingComposter": True})
    plan = plan_composter_task(task, {"inventory": [{"name": "wheat seeds", "count": 64},
                                                    {"name": "bread", "count": 20}]})

    assert _commands(plan) == ["compost_bread", "collect_bonemeal"]
    assert plan.metadata["itemsComposted"] == 9
    assert plan.metadata["expectedBonemeal"] == 1
    assert plan.metadata["status"] == "ready"


def test_composter_without_composter_or_items() -> None:
    plan = plan_composter_task(Task(action="composter", metadata={"bonemeal": 2}), {})

    assert _commands(plan) == ["gather_compostables"]
    assert plan.metadata["status"] == "blocked"
    reasons = [sub.task.metadata["reason"] for sub in plan.sub_tasks]
    assert reasons == ["missing_composter", "missing_compostables"]
    assert plan.sub_tasks[1].task.metadata["quantity"] == 48


def test_composter_flags_non_compostables() -> None:
    task = Task(action="composter", metadata={"items": ["dirt", "bread"], "existingComposter": True})
    plan = plan_composter_task(task, {"inventory": [{"name": "bread", "count": 10}]})
    assert "dirt cannot be composted." in plan.risks


def test_scaffolding_tower_with_enough_blocks() -> None:
    plan = plan_scaffolding_task(Task(action="scaffolding"), {"inventory": [{"name": "scaffolding", "count": 10}]})

    assert _commands(plan) == ["build_step_1", "build_step_2", "build_step_3", "build_step_4", "safety_check"]
    assert plan.metadata["scaffoldingNeeded"] == 10
    assert plan.metadata["status"] == "ready"


def test_scaffolding_height_from_target_and_shortfall() -> None:
    task = Task(action="scaffolding", target={"x": 0, "y": 94, "z": 0})
    plan = plan_scaffolding_task(task, {"playerPosition": ORIGIN, "inventory": [{"name": "scaffolding", "count": 10}]})

    assert plan.metadata["dimensions"] == {"height": 30}
    assert plan.sub_tasks[0].task.metadata["materials"] == {"bamboo": 24, "string": 4}
    assert "Working 30 blocks up; a fall from the top is lethal." in plan.risks
    assert plan.metadata["status"] == "blocked"


def test_unknown_scaffolding_pattern_falls_back_to_tower() -> None:
    plan = plan_scaffolding_task(Task(action="scaffolding", metadata={"pattern": "zeppelin"}), {})
    assert plan.metadata["pattern"] == "tower"
    assert plan.risks[0].startswith("Unknown scaffolding pattern zeppelin")


def test_wide_platform_needs_support_columns() -> None:
    task = Task(action="scaffolding", metadata={"pattern": "platform", "width": 15, "length": 15})
    plan = plan_scaffolding_task(task, {"inventory": [{"name": "scaffolding", "count": 300}]})
    assert plan.metadata["scaffoldingNeeded"] == 225
    assert any("add support columns" in risk for risk in plan.risks)
