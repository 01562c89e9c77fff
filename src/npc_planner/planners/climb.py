"""Climbing: pick the fastest vertical route the inventory supports."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from npc_planner.context import context_value, extract_player_position
from npc_planner.errors import TaskValidationError
from npc_planner.knowledge.climbing import (
    HIGH_FALL_RISK_DISTANCE,
    LADDERS_PER_CRAFT,
    SAFETY_RECOMMENDATIONS,
    STICKS_PER_LADDER_CRAFT,
    ClimbOption,
    assess_vertical_route,
)
from npc_planner.models import Task
from npc_planner.normalize import normalize_item_name
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, require_target, truthy

BASE_DURATION_MS = 2_000
PLACEMENT_MS = 250
BLOCKED_DURATION_MS = 5_000


def _target_y(target: Any) -> float:
    y = target.get("y") if isinstance(target, Mapping) else None
    if isinstance(y, bool) or not isinstance(y, (int, float)) or not math.isfinite(y):
        raise TaskValidationError("climb task requires a target with a numeric y coordinate")
    return float(y)


def _method_steps(draft: PlanDraft, option: ClimbOption, distance: int, direction: str, remove_after: bool) -> None:
    method = option.method
    if method == "ladder":
        draft.step("Place ladders", f"Place {distance} ladders up a solid wall.", step_type="preparation",
                   command="place_ladders",
                   metadata={"item": "ladder", "count": distance, "placement": "vertical column", "requiresWall": True})
        draft.step("Climb ladders", f"Climb {direction} {distance} blocks on the ladder column.", step_type="movement",
                   command="climb_ladders",
                   metadata={"method": method, "distance": distance, "direction": direction,
                             "durationSeconds": round(option.duration_s, 2)})
    elif method == "scaffolding":
        draft.step("Place scaffolding", f"Stack {distance} scaffolding blocks into a tower.", step_type="preparation",
                   command="place_scaffolding",
                   metadata={"item": "scaffolding", "count": distance, "placement": "vertical tower",
                             "requiresWall": False})
        draft.step("Climb scaffolding", f"Climb {direction} {distance} blocks through the scaffolding.",
                   step_type="movement", command="climb_scaffolding",
                   metadata={"method": method, "distance": distance, "direction": direction,
                             "durationSeconds": round(option.duration_s, 2),
                             "note": "Hold sneak for a fast descent." if direction == "down" else None})
        if remove_after:
            draft.step("Remove scaffolding", "Break the bottom scaffolding block to collapse and recover the tower.",
                       step_type="cleanup", command="remove_scaffolding",
                       metadata={"item": "scaffolding", "recoverCount": distance})
    elif method == "water bucket landing":
        draft.step("Prepare water", "Hold the water bucket in the main hand.", step_type="preparation",
                   command="prepare_water", metadata={"item": "water bucket"})
        draft.step("Descend with water", f"Drop {distance} blocks and place water just before landing.",
                   step_type="movement", command="descend_with_water",
                   metadata={"method": method, "distance": distance, "timing": "critical"})
        draft.risk("Water landings need precise timing; a missed placement means full fall damage.")
    elif method in {"soul sand column", "magma column"}:
        base = "soul sand" if method == "soul sand column" else "magma block"
        draft.step("Build bubble column", f"Build a {distance}-block water column with {base} at the bottom.",
                   step_type="preparation", command="build_water_column",
                   metadata={"materials": option.materials_needed, "height": distance})
        draft.step("Ride bubble column", f"Ride the bubble column {direction} {distance} blocks.",
                   step_type="movement", command="use_bubble_column",
                   metadata={"method": method, "distance": distance,
                             "durationSeconds": round(option.duration_s, 2)})
    else:
        draft.step("Locate vines", "Find a continuous run of natural vines near the target.", step_type="movement",
                   command="locate_vines", metadata={"biome": draft.signals.biome})
        draft.step("Climb vines", f"Climb {direction} {distance} blocks using the vines.", step_type="movement",
                   command="climb_vines", metadata={"method": method, "distance": distance})


def plan_climb_task(task: Task, context: Mapping[str, Any]) -> Plan:
    target = require_target(task, "climb toward")
    target_y = _target_y(target)
    position = extract_player_position(context)
    start_y = position["y"] if position else 0.0
    distance = int(math.ceil(abs(target_y - start_y)))
    direction = "up" if target_y > start_y else "down"

    draft = PlanDraft(task, context, summary=f"Climb {direction} {distance} blocks to y={target_y:g}.")
    if position is None:
        draft.note("Player position unknown; assuming the climb starts at y=0.")

    biome = draft.signals.biome or ""
    vines = "jungle" in biome and (truthy(task.meta("naturalVines")) or truthy(context_value(context, "naturalVines")))
    assessment = assess_vertical_route(distance, direction, draft.inventory, natural_vines=vines)
    requested = normalize_item_name(task.meta("method")) if task.meta("method") else None
    option = assessment.choose(requested)

    safety = {"fall_risk": "normal", "recommendations": []}
    if distance > HIGH_FALL_RISK_DISTANCE and direction == "up":
        safety = {"fall_risk": "high", "recommendations": list(SAFETY_RECOMMENDATIONS)}
    draft.metadata.update({
        "distance": distance,
        "direction": direction,
        "startY": start_y,
        "endY": target_y,
        "options": [entry.to_dict() for entry in assessment.options],
        "safety": safety,
    })

    if distance == 0:
        draft.step("Confirm elevation", "Already level with the target; no vertical travel needed.",
                   step_type="planning", command="confirm_elevation")
        draft.metadata["method"] = None
        return draft.build(BASE_DURATION_MS / 2)

    if option is None:
        crafts = math.ceil(distance / LADDERS_PER_CRAFT)
        draft.step(
            "Acquire climbing materials",
            f"Gather materials for {distance} ladders ({crafts * STICKS_PER_LADDER_CRAFT} sticks) or "
            f"{distance} scaffolding before climbing.",
            step_type="inventory",
            command="acquire_climbing_materials",
            metadata={"materialsNeeded": {"ladder": distance}},
        )
        draft.risk("No climbing method available with the current inventory.")
        draft.prerequisite("craft", f"Craft {distance} ladders for the climb",
                           metadata={"item": "ladder", "quantity": distance, "reason": "missing_climbing_materials"})
        draft.metadata.update({"status": "blocked", "method": None, "materialsNeeded": {"ladder": distance}})
        draft.use("ladder", "stick")
        return draft.build(BLOCKED_DURATION_MS)

    if requested and option.method != requested:
        draft.note(f"Requested method {requested} is unavailable; using {option.method} instead.")
    _method_steps(draft, option, distance, direction, truthy(task.meta("removeAfter")))

    if safety["fall_risk"] == "high":
        draft.risk(f"Climbing {distance} blocks up carries a high fall risk.")
        for recommendation in SAFETY_RECOMMENDATIONS:
            draft.note(recommendation)
    for note in option.notes:
        draft.note(note)

    draft.use(*option.materials_needed)
    draft.metadata.update({"status": "ready", "method": option.method})
    placement = distance * PLACEMENT_MS if option.method in {"ladder", "scaffolding", "soul sand column",
                                                              "magma column"} else 0
    return draft.build(BASE_DURATION_MS + option.duration_s * 1000 + placement)