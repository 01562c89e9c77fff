"""Throwing: snowballs, pearls, potions, tridents and other hand-thrown items."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import context_value, extract_player_position, find_inventory_item
from npc_planner.knowledge.projectiles import (
    CHARGE_SECONDS,
    MAX_THROW_DISTANCE,
    THROWABLES,
    Throwable,
    parse_enchantments,
    throw_trajectory,
    throwable_profile,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_name, truthy

BASE_DURATION_MS = 500
AIM_MS = 500
LOW_TRIDENT_DURABILITY = 10
# Preferred throwables per purpose when the task does not name one.
PURPOSE_PRIORITIES = {
    "combat": ("splash potion", "trident", "snowball"),
    "teleport": ("ender pearl",),
    "xp": ("experience bottle",),
    "fire": ("fire charge",),
    "exploration": ("eye of ender",),
    "distraction": ("snowball", "egg"),
}


def _pick_from_inventory(draft: PlanDraft, purpose: str) -> tuple[str, Throwable] | None:
    carried = [(item.name, throwable_profile(item.name)) for item in draft.inventory]
    carried = [(name, profile) for name, profile in carried if profile is not None]
    for preferred in PURPOSE_PRIORITIES.get(purpose, PURPOSE_PRIORITIES["combat"]):
        for name, profile in carried:
            if preferred in name:
                return name, profile
    return carried[0] if carried else None


def plan_throw_task(task: Task, context: Mapping[str, Any]) -> Plan:
    requested = metadata_name(task, "item", "throwable", fallback=task.details)
    purpose = metadata_name(task, "purpose", fallback="combat")
    draft = PlanDraft(task, context, summary="Throw an item.")
    target = target_position(task.target)
    origin = extract_player_position(context) or {"x": 0.0, "y": 0.0, "z": 0.0}

    item_name = requested
    profile = throwable_profile(requested) if is_specified(requested) else None
    if profile is None and not is_specified(requested):
        picked = _pick_from_inventory(draft, purpose)
        if picked is not None:
            item_name, profile = picked
            draft.note(f"No throwable named; using {item_name} for {purpose}.")

    if profile is None:
        label = item_name if is_specified(item_name) else "item"
        draft.summary = f"Throw {label} toward {draft.target_description}."
        if is_specified(item_name):
            draft.risk(f"{item_name} is not a known throwable; flight and impact are uncertain.")
        else:
            draft.risk("No throwable item named or carried.")
        draft.step("Throw item", f"Throw the {label} toward {draft.target_description}.", step_type="action",
                   command="throw_item", metadata={"item": label, "known": False})
        draft.metadata.update({"item": label, "itemType": None, "status": "uncertain",
                               "knownThrowables": sorted(THROWABLES)})
        return draft.build(BASE_DURATION_MS + CHARGE_SECONDS * 1000)

    draft.summary = f"Throw {item_name} at {draft.target_description}." if target else f"Throw {item_name}."
    on_hand = find_inventory_item(draft.inventory, item_name)
    status = "ready"
    if on_hand is None:
        draft.risk(f"No {item_name} in inventory.")
        status = "blocked"

    trajectory = None
    if target is not None:
        player_state = context_value(context, "playerState", "player_state", default={})
        movement = player_state.get("movement", "standing") if isinstance(player_state, Mapping) else "standing"
        trajectory = throw_trajectory(origin, target, profile, movement)
        if not trajectory.reachable:
            draft.risk(f"Target too far ({trajectory.distance:.1f} blocks, max {MAX_THROW_DISTANCE}).")
            status = "blocked"

    enchantments = parse_enchantments(task.meta("enchantments"))
    if profile.name == "trident":
        if on_hand is not None and on_hand.durability is not None:
            if on_hand.durability <= 0:
                draft.risk("Trident is broken.")
                status = "blocked"
            elif on_hand.durability < LOW_TRIDENT_DURABILITY:
                draft.risk(f"Trident durability low: {on_hand.durability}/250.")
        if enchantments.get("riptide"):
            wet = draft.signals.weather in {"rain", "thunder", "thunderstorm"} or truthy(task.meta("inWater"))
            if not wet:
                draft.risk("Riptide trident only works in rain or water.")
                status = "blocked"
            else:
                draft.note("Riptide will launch the thrower along with the trident.")
    if profile.fall_damage:
        draft.risk(f"Teleporting takes {profile.fall_damage:g} fall damage on arrival.")
    if profile.break_chance:
        draft.note(f"The {profile.name} has a {round(profile.break_chance * 100)}% chance to break after use.")

    draft.step("Select throwable", f"Select {item_name} from inventory.", step_type="inventory",
               command="select_throwable", metadata={"item": item_name, "slot": "main hand"})
    duration = BASE_DURATION_MS
    if target is not None and trajectory is not None:
        compensation = "Aim slightly above the target for the arc." if profile.gravity and \
            trajectory.horizontal > 20 else "Aim directly at the target."
        draft.step("Aim at target", f"Aim at {describe_target(target)}. {compensation}", step_type="combat",
                   command="aim_at_target", metadata={"target": target, **trajectory.to_dict()})
        duration += AIM_MS

    note = None
    if profile.kind == "teleport projectile":
        note = "Will teleport to the impact location."
    elif profile.splash_radius:
        note = f"Affects a {profile.splash_radius:g}-block radius."
    elif profile.name == "trident":
        note = "Returns only with the loyalty enchantment." if not enchantments.get("loyalty") else \
            "Loyalty returns the trident after the throw."
    draft.step("Throw item", f"Throw the {item_name}.", step_type="action", command="throw_item",
               metadata={"item": item_name, "velocity": profile.velocity, "gravity": profile.gravity,
                         "consumesItem": profile.consumed, "note": note})
    duration += CHARGE_SECONDS * 1000 + profile.cooldown * 1000

    if target is not None and trajectory is not None:
        impact: dict[str, Any] = {"effects": list(profile.effects), "hitEffect": profile.hit_effect}
        if profile.splash_radius:
            impact["splash"] = {"radius": profile.splash_radius, "potencyAtCenter": 1.0, "potencyAtEdge": 0.25,
                                "lingering": profile.linger_seconds is not None,
                                "lingerDuration": profile.linger_seconds or 0}
        draft.step("Impact", f"The {item_name} lands at {describe_target(target)}.", step_type="observation",
                   command="impact", metadata=impact)
        duration += trajectory.flight_seconds * 1000

    draft.use(item_name)
    draft.metadata.update({
        "item": item_name,
        "itemType": profile.kind,
        "consumed": profile.consumed,
        "trajectory": trajectory.to_dict() if trajectory else None,
        "status": status,
    })
    return draft.build(duration)
