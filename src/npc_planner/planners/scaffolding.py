"""Scaffolding structures built from a named pattern."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import context_value, count_inventory_items, extract_player_position, has_inventory_item
from npc_planner.knowledge.scaffolding import (
    HIGH_ALTITUDE,
    PATTERNS,
    SUPPORT_RANGE,
    crafting_requirements,
    max_reach,
    scaffold_pattern,
    scaffolding_needed,
)
from npc_planner.models import Task
from npc_planner.normalize import is_specified, resolve_quantity, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name

SAFETY_CHECK_MS = 1_000


def _dimensions(task: Task, player: Mapping[str, float] | None) -> dict[str, Any]:
    requested = dict(task.meta("dimensions") or {}) if isinstance(task.meta("dimensions"), Mapping) else {}
    for key in ("height", "width", "length"):
        if task.meta(key) is not None:
            requested[key] = task.meta(key)
    target = target_position(task.target)
    if "height" not in requested and target is not None and player is not None and target["y"] > player["y"]:
        requested["height"] = round(target["y"] - player["y"])
    return requested


def plan_scaffolding_task(task: Task, context: Mapping[str, Any]) -> Plan:
    requested = metadata_name(task, "pattern", "purpose", "structure")
    pattern = scaffold_pattern(requested) if is_specified(requested) else PATTERNS["tower"]
    draft = PlanDraft(task, context, summary="Build scaffolding.")
    if pattern is None:
        draft.risk(f"Unknown scaffolding pattern {requested}; building a tower. "
                   f"Known patterns: {', '.join(PATTERNS)}.")
        pattern = PATTERNS["tower"]

    player = extract_player_position(context)
    dims = pattern.dimensions(_dimensions(task, player))
    needed = scaffolding_needed(pattern, dims)
    size = " x ".join(str(value) for value in dims.values())
    draft.summary = f"Build a {pattern.name} of scaffolding ({size}, {needed} blocks)."
    draft.metadata.update({"pattern": pattern.name, "dimensions": dims, "scaffoldingNeeded": needed,
                           "difficulty": pattern.difficulty, "safety": pattern.safety})

    have = count_inventory_items(draft.inventory, "scaffolding")
    status = "ready"
    if have < needed:
        shortfall = needed - have
        materials = crafting_requirements(shortfall)
        draft.risk(f"Insufficient scaffolding (need {needed}, have {have}); craft {shortfall} more from "
                   f"{materials['bamboo']} bamboo and {materials['string']} string.")
        draft.prerequisite("craft", f"Craft {shortfall} scaffolding",
                           metadata={"item": "scaffolding", "quantity": shortfall, "materials": materials,
                                     "reason": "insufficient_scaffolding"})
        status = "blocked"
    if pattern.name == "water column" and not has_inventory_item(draft.inventory, "water bucket"):
        draft.risk("A water column needs a water bucket.")
        status = "blocked"

    world = context_value(context, "worldData", "world_data", default={})
    world = world if isinstance(world, Mapping) else {}
    supports = metadata_list(world.get("nearbyScaffolding")) + metadata_list(world.get("nearbySolidBlocks"))
    if "nearbyScaffolding" in world or "nearbySolidBlocks" in world:
        if not supports:
            draft.risk(f"No support within {SUPPORT_RANGE} blocks; unsupported scaffolding falls.")
        distances = [resolve_quantity(entry.get("distance"), None) for entry in supports if isinstance(entry, Mapping)]
        distances = [value for value in distances if value is not None]
        if distances and min(distances) > SUPPORT_RANGE:
            draft.risk(f"Too far from support ({min(distances):g} blocks, max {SUPPORT_RANGE}).")
    if max_reach(pattern, dims) > SUPPORT_RANGE:
        draft.risk(f"The {pattern.name} reaches more than {SUPPORT_RANGE} blocks from a support; "
                   "add support columns.")
    height = dims.get("height", 0)
    if height > HIGH_ALTITUDE:
        draft.risk(f"Working {height} blocks up; a fall from the top is lethal.")
        draft.note("Keep a water bucket ready for emergency landings.")

    for index, instruction in enumerate(pattern.instructions, start=1):
        draft.step(f"Build step {index}", f"{instruction}.", step_type="construction",
                   command=f"build_step_{index}",
                   metadata={"stepNumber": index, "totalSteps": len(pattern.instructions), "pattern": pattern.name})
    draft.step("Safety check", "Hold sneak to descend without fall damage; break the bottom block to remove "
               "the whole structure.", step_type="safety", command="safety_check",
               metadata={"backup": "water bucket", "removal": "break the bottom scaffolding"})
    if pattern.name == "cage":
        draft.note("Mobs cannot spawn on scaffolding.")

    draft.use("scaffolding", *(["water bucket"] if pattern.name == "water column" else []))
    draft.metadata["status"] = status
    return draft.build(needed * pattern.seconds_per_block * 1000 + SAFETY_CHECK_MS)
