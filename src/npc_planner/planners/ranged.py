"""Ranged attacks with a bow or crossbow."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from npc_planner.context import count_inventory_items, extract_player_position, find_inventory_item
from npc_planner.knowledge.projectiles import (
    ARROWS_PER_CRAFT,
    BOW_FULL_CHARGE_SECONDS,
    RangedWeapon,
    arrow_type,
    choose_tactic,
    consumes_arrows,
    crossbow_load_seconds,
    parse_enchantments,
    ranged_weapon,
    shot_damage,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, resolve_count, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_name

BASE_DURATION_MS = 1_000
AIM_MS = 500
ARC_COMPENSATION_DISTANCE = 20


def _weapon(task: Task, draft: PlanDraft) -> RangedWeapon:
    requested = metadata_name(task, "weapon")
    weapon = ranged_weapon(requested)
    if weapon is None and is_specified(requested):
        draft.risk(f"{requested} is not a bow or crossbow; planning with a bow.")
    if weapon is None:
        carried = next((ranged_weapon(name) for name in ("crossbow", "bow")
                        if find_inventory_item(draft.inventory, name) is not None), None)
        weapon = carried or ranged_weapon("bow")
    return weapon


def plan_ranged_task(task: Task, context: Mapping[str, Any]) -> Plan:
    draft = PlanDraft(task, context, summary="Attack with a ranged weapon.")
    weapon = _weapon(task, draft)
    ammo_name = metadata_name(task, "arrowType", "ammo", fallback="arrow")
    arrow = arrow_type(ammo_name)
    if arrow is None:
        draft.risk(f"{ammo_name} is not a known arrow; assuming plain arrows.")
        arrow = arrow_type("arrow")
    shots = resolve_count(task.meta("shots", "quantity"), 1)
    enemy_count = resolve_count(task.meta("enemyCount"), 1)
    enchantments = parse_enchantments(task.meta("enchantments"))
    target = target_position(task.target)
    origin = extract_player_position(context) or {"x": 0.0, "y": 0.0, "z": 0.0}
    distance = math.dist([origin[a] for a in "xyz"], [target[a] for a in "xyz"]) if target else None
    draft.summary = f"Attack {draft.target_description} with a {weapon.name}."

    status = "ready"
    if find_inventory_item(draft.inventory, weapon.name) is None:
        recipe = ", ".join(f"{count} {item}" for item, count in weapon.recipe.items())
        draft.risk(f"No {weapon.name} in inventory; craft one from {recipe}.")
        draft.prerequisite("craft", f"Craft a {weapon.name}",
                           metadata={"item": weapon.name, "quantity": 1, "reason": "missing_weapon"})
        status = "blocked"

    consumes = consumes_arrows(weapon, enchantments, arrow)
    needed = shots if consumes else 1
    carried = count_inventory_items(draft.inventory, arrow.name)
    if carried < needed:
        shortfall = needed - carried
        draft.risk(f"Not enough {arrow.name}: need {needed}, have {carried}.")
        draft.prerequisite("craft", f"Craft {shortfall} {arrow.name}",
                           metadata={"item": arrow.name, "quantity": shortfall, "reason": "missing_ammo",
                                     "crafts": math.ceil(shortfall / ARROWS_PER_CRAFT)})
        status = "blocked"
    if weapon.name == "bow" and enchantments.get("infinity") and arrow.tipped:
        draft.note("Infinity does not apply to tipped arrows.")

    tactic = choose_tactic(weapon, distance, enemy_count, enchantments)
    damage = shot_damage(weapon, power=enchantments.get("power", 0), arrow=arrow)

    draft.step("Equip weapon", f"Equip the {weapon.name} in the main hand.", step_type="inventory",
               command="equip_weapon", metadata={"weapon": weapon.name, "slot": "main hand"})
    duration = BASE_DURATION_MS
    load_seconds = 0.0
    if weapon.name == "crossbow":
        quick_charge = enchantments.get("quick charge", 0)
        load_seconds = crossbow_load_seconds(quick_charge)
        draft.step("Load crossbow", f"Hold use to load the crossbow ({load_seconds:g}s).", step_type="preparation",
                   command="load_crossbow",
                   metadata={"loadTime": load_seconds, "quickChargeLevel": quick_charge,
                             "shotsPerMinute": math.floor(60 / load_seconds)})
    if target is not None:
        compensation = "Aim slightly above the target for the arc." if distance > ARC_COMPENSATION_DISTANCE \
            else "Aim directly at the target."
        draft.step("Aim at target", f"Aim at {describe_target(target)}. {compensation}", step_type="combat",
                   command="aim_at_target", metadata={"target": target, "distance": round(distance)})
        duration += AIM_MS
        if distance > weapon.effective_range:
            draft.risk(f"Target is {distance:.0f} blocks away, beyond the {weapon.name}'s accurate range of "
                       f"{weapon.effective_range}.")

    if weapon.name == "bow":
        draft.step("Charge and shoot", f"Draw the bow for {BOW_FULL_CHARGE_SECONDS:g}s and release.",
                   step_type="combat", command="charge_and_shoot",
                   metadata={"chargeTime": BOW_FULL_CHARGE_SECONDS, "fullCharge": True, "shots": shots,
                             "tactic": tactic.name, "expectedDamage": damage})
        duration += shots * BOW_FULL_CHARGE_SECONDS * 1000
    else:
        draft.step("Shoot crossbow", "Fire the loaded crossbow.", step_type="combat", command="shoot_crossbow",
                   metadata={"shots": shots, "tactic": tactic.name, "expectedDamage": damage,
                             "multishot": bool(enchantments.get("multishot")),
                             "piercing": enchantments.get("piercing", 0)})
        duration += shots * load_seconds * 1000

    draft.note(f"Tactic: {tactic.name} ({tactic.reason.lower()}).")
    if arrow.effect:
        draft.note(f"{arrow.name}: {arrow.effect}.")
    draft.use(weapon.name, arrow.name)
    draft.metadata.update({
        "weapon": weapon.name,
        "ammo": arrow.name,
        "consumesArrows": consumes,
        "damage": damage,
        "distance": round(distance) if distance is not None else None,
        "tactic": tactic.name,
        "enchantments": enchantments,
        "status": status,
    })
    return draft.build(duration)
