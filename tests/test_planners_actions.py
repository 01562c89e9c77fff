from __future__ import annotations

import pytest

from npc_planner.errors import TaskValidationError
from npc_planner.models import Task
from npc_planner.planners import (
    plan_climb_task,
    plan_door_task,
    plan_eat_task,
    plan_ranged_task,
    plan_redstone_task,
    plan_sleep_task,
    plan_throw_task,
    plan_trade_task,
)

ORIGIN = {"x": 0, "y": 64, "z": 0}


def _commands(plan) -> list[str | None]:
    return [step.command for step in plan.steps]


def test_eat_prefers_the_most_restorative_food() -> None:
    plan = plan_eat_task(Task(action="eat", metadata={"hunger": 10}),
                         {"inventory": [{"name": "bread", "count": 4}, {"name": "cooked_beef", "count": 2}]})

    assert _commands(plan) == ["select_food", "eat_food"]
    assert plan.metadata["food"] == "cooked beef"
    assert plan.metadata["status"] == "ready"


def test_eat_stew_returns_the_bowl() -> None:
    plan = plan_eat_task(Task(action="eat", metadata={"hunger": 8}), {"inventory": ["mushroom stew"]})
    assert _commands(plan)[-1] == "collect_container"
    assert "bowl" in plan.resources


def test_eat_without_food_requests_some() -> None:
    plan = plan_eat_task(Task(action="eat", metadata={"hunger": 12}), {})

    assert _commands(plan) == ["acquire_food"]
    assert "No suitable food in inventory." in plan.risks
    assert plan.metadata["status"] == "blocked"
    assert [sub.action for sub in plan.sub_tasks] == ["gather"]


def test_eat_at_full_hunger_skips_the_meal() -> None:
    plan = plan_eat_task(Task(action="eat", metadata={"hunger": 20}), {"inventory": ["bread"]})
    assert _commands(plan) == ["skip_meal"]
    assert plan.metadata["status"] == "satisfied"


def test_eat_with_unknown_hunger_assumes_a_level() -> None:
    plan = plan_eat_task(Task(action="eat"), {"inventory": ["bread"]})
    assert plan.metadata["hunger"]["known"] is False
    assert any(note.startswith("Hunger level unknown") for note in plan.notes)


def test_sleep_in_the_nether_is_refused() -> None:
    plan = plan_sleep_task(Task(action="sleep"), {"environment": {"dimension": "the_nether"},
                                                  "inventory": ["red bed"]})
    assert _commands(plan) == ["abort_sleep"]
    assert plan.metadata["status"] == "blocked"
    assert plan.metadata["danger"] is True


def test_sleep_without_bed_crafts_one() -> None:
    plan = plan_sleep_task(Task(action="sleep"), {"timeOfDay": 14_000})
    assert _commands(plan) == ["obtain_bed"]
    assert plan.metadata["status"] == "blocked"
    assert plan.sub_tasks[0].task.metadata["item"] == "white bed"


def test_sleep_with_bed_in_inventory_at_night() -> None:
    plan = plan_sleep_task(Task(action="sleep"), {"timeOfDay": 18_000, "inventory": ["red bed"]})
    assert _commands(plan) == ["place_bed", "sleep", "wake_up"]
    assert plan.metadata["status"] == "ready"


def test_sleep_during_the_day_waits_for_night() -> None:
    plan = plan_sleep_task(Task(action="sleep"), {"timeOfDay": 6_000, "inventory": ["red bed"]})
    assert _commands(plan)[0] == "wait_for_night"
    assert "You can only sleep at night or during thunderstorms." in plan.risks
    assert plan.metadata["status"] == "blocked"


def test_sleep_with_unknown_time_notes_it() -> None:
    plan = plan_sleep_task(Task(action="sleep"), {"inventory": ["white bed"]})
    assert any(note.startswith("Time of day unknown") for note in plan.notes)
    assert plan.metadata["status"] == "ready"


def test_door_requires_a_door_or_location() -> None:
    with pytest.raises(TaskValidationError):
        plan_door_task(Task(action="door"), {})


def test_wooden_door_is_opened_by_hand() -> None:
    task = Task(action="door", target={"x": 1, "y": 64, "z": 0}, metadata={"door": "oak door", "operation": "open"})
    plan = plan_door_task(task, {"playerPosition": ORIGIN})

    assert _commands(plan) == ["interact_door"]
    assert plan.metadata["outcome"] == {"previousState": "closed", "newState": "open", "changed": True}
    assert plan.metadata["status"] == "ready"


def test_iron_door_places_a_button_when_carried() -> None:
    task = Task(action="door", metadata={"door": "iron door", "operation": "open"})
    plan = plan_door_task(task, {"inventory": ["stone button"]})

    assert _commands(plan) == ["place_mechanism", "activate_redstone"]
    assert plan.metadata["doorType"] == "door"
    assert plan.sub_tasks == []


def test_iron_door_without_mechanism_is_blocked() -> None:
    plan = plan_door_task(Task(action="door", metadata={"door": "iron door", "operation": "open"}), {})

    assert _commands(plan) == ["activate_redstone"]
    assert plan.metadata["status"] == "blocked"
    assert plan.sub_tasks[0].task.metadata["item"] == "stone button"


def test_door_already_in_requested_state() -> None:
    task = Task(action="door", metadata={"door": {"type": "spruce door", "open": True}, "operation": "open"})
    plan = plan_door_task(task, {})
    assert _commands(plan) == ["no_change"]
    assert plan.metadata["outcome"]["changed"] is False


def test_lever_already_on_is_left_alone() -> None:
    plan = plan_redstone_task(Task(action="redstone", metadata={"component": {"type": "lever", "powered": True}}), {})
    assert _commands(plan) == ["no_change", "verify_output"]


def test_lever_is_flipped_off() -> None:
    task = Task(action="redstone", metadata={"component": {"type": "lever", "powered": True}, "operation": "off"})
    plan = plan_redstone_task(task, {})
    assert _commands(plan) == ["toggle_lever", "verify_output"]
    assert plan.steps[0].metadata["newState"] == "off"


def test_button_is_pressed() -> None:
    plan = plan_redstone_task(Task(action="redstone", metadata={"component": "stone button"}), {})
    assert _commands(plan) == ["press_button", "verify_output"]
    assert plan.metadata["componentType"] == "button"


def test_unknown_component_is_uncertain() -> None:
    plan = plan_redstone_task(Task(action="redstone", metadata={"component": "mystery gadget"}), {})
    assert _commands(plan) == ["interact_component"]
    assert plan.metadata["status"] == "uncertain"
    with pytest.raises(TaskValidationError):
        plan_redstone_task(Task(action="redstone"), {})


def test_throw_snowball_at_target() -> None:
    task = Task(action="throw", target={"x": 10, "y": 64, "z": 0}, metadata={"item": "snowball"})
    plan = plan_throw_task(task, {"inventory": [{"name": "snowball", "count": 16}], "playerPosition": ORIGIN})

    assert _commands(plan) == ["select_throwable", "aim_at_target", "throw_item", "impact"]
    assert plan.metadata["status"] == "ready"


def test_throw_unknown_item_is_uncertain() -> None:
    plan = plan_throw_task(Task(action="throw", metadata={"item": "grand piano"}), {})
    assert _commands(plan) == ["throw_item"]
    assert plan.metadata["status"] == "uncertain"


def test_throw_blocks_when_item_missing_or_target_unreachable() -> None:
    missing = plan_throw_task(Task(action="throw", metadata={"item": "egg"}), {})
    assert missing.metadata["status"] == "blocked"

    far = plan_throw_task(Task(action="throw", target={"x": 500, "y": 64, "z": 0}, metadata={"item": "egg"}),
                          {"inventory": ["egg"], "playerPosition": ORIGIN})
    assert far.metadata["status"] == "blocked"
    assert any(risk.startswith("Target too far") for risk in far.risks)


def test_ender_pearl_warns_about_fall_damage() -> None:
    plan = plan_throw_task(Task(action="throw", metadata={"item": "ender pearl"}), {"inventory": ["ender pearl"]})
    assert "Teleporting takes 5 fall damage on arrival." in plan.risks


def test_ranged_bow_attack() -> None:
    task = Task(action="ranged", target={"x": 10, "y": 64, "z": 0}, metadata={"shots": 3})
    plan = plan_ranged_task(task, {"inventory": ["bow", {"name": "arrow", "count": 16}], "playerPosition": ORIGIN})

    assert _commands(plan) == ["equip_weapon", "aim_at_target", "charge_and_shoot"]
    assert plan.metadata["weapon"] == "bow"
    assert plan.metadata["distance"] == 10
    assert plan.metadata["status"] == "ready"


def test_ranged_crossbow_loads_first() -> None:
    task = Task(action="ranged", metadata={"weapon": "crossbow"})
    plan = plan_ranged_task(task, {"inventory": ["crossbow", {"name": "arrow", "count": 4}]})
    assert _commands(plan) == ["equip_weapon", "load_crossbow", "shoot_crossbow"]


def test_ranged_without_gear_crafts_weapon_and_ammo() -> None:
    plan = plan_ranged_task(Task(action="ranged", metadata={"shots": 5}), {})
    assert plan.metadata["status"] == "blocked"
    assert [sub.task.metadata["reason"] for sub in plan.sub_tasks] == ["missing_weapon", "missing_ammo"]


def test_trade_for_bread_with_a_nearby_farmer() -> None:
    task = Task(action="trade", metadata={"item": "bread", "quantity": 12,
                                          "villager": {"profession": "farmer", "position": {"x": 1, "y": 64, "z": 0}}})
    plan = plan_trade_task(task, {"inventory": [{"name": "emerald", "count": 5}], "playerPosition": ORIGIN})

    assert _commands(plan) == ["open_trade_interface", "select_trade", "confirm_trade"]
    assert plan.metadata["trades"] == 2
    assert plan.metadata["payment"] == {"emerald": 2}
    assert plan.metadata["status"] == "ready"


def test_trade_refused_at_terrible_reputation() -> None:
    task = Task(action="trade", metadata={"item": "bread", "villager": {"profession": "farmer", "reputation": -150}})
    plan = plan_trade_task(task, {"inventory": [{"name": "emerald", "count": 5}]})

    assert "Reputation is too low; the villager refuses to trade." in plan.risks
    assert plan.metadata["reputation"] == "terrible"
    assert plan.metadata["status"] == "blocked"
    assert _commands(plan)[0] == "navigate_to_villager"


def test_trade_without_payment_gathers_emeralds() -> None:
    task = Task(action="trade", metadata={"item": "bread", "villager": {"profession": "farmer"}})
    plan = plan_trade_task(task, {})
    assert "Insufficient emerald for the trade: need 1, have 0." in plan.risks
    assert plan.sub_tasks[0].task.metadata["resource"] == "emerald"
    with pytest.raises(TaskValidationError):
        plan_trade_task(Task(action="trade"), {})


def test_climb_without_materials_crafts_ladders() -> None:
    plan = plan_climb_task(Task(action="climb", target={"x": 0, "y": 74, "z": 0}), {"playerPosition": ORIGIN})
    assert _commands(plan) == ["acquire_climbing_materials"]
    assert plan.metadata["status"] == "blocked"
    assert plan.sub_tasks[0].task.metadata == {"item": "ladder", "quantity": 10,
                                               "reason": "missing_climbing_materials"}


def test_climb_at_the_target_height_needs_no_travel() -> None:
    plan = plan_climb_task(Task(action="climb", target={"y": 64}), {"playerPosition": ORIGIN})
    assert _commands(plan) == ["confirm_elevation"]
    with pytest.raises(TaskValidationError):
        plan_climb_task(Task(action="climb", target="the roof"), {})
