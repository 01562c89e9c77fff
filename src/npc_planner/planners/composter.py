"""Composting plant matter into bone meal."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from npc_planner.context import context_value, count_inventory_items, find_inventory_item
from npc_planner.knowledge.composting import (
    COMPOSTER_RECIPE,
    HOPPER_ITEMS_PER_SECOND,
    LAYERS_PER_BONE_MEAL,
    compostable,
    plan_batches,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, normalize_item_name, resolve_count, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, truthy

PLACE_MS = 1_000
MS_PER_ITEM = 250
COLLECT_MS = 500
FALLBACK_COMPOSTABLE = "wheat seeds"


def _requested_items(task: Task, draft: PlanDraft) -> list[tuple[str, int]]:
    requested = []
    for entry in metadata_list(task.meta("items", "item")):
        if isinstance(entry, Mapping):
            name = normalize_item_name(entry.get("name") or entry.get("item"))
            count = resolve_count(entry.get("count"), 0) or count_inventory_items(draft.inventory, name)
        else:
            name = normalize_item_name(entry)
            count = count_inventory_items(draft.inventory, name)
        if is_specified(name):
            requested.append((name, count))
    return requested


def plan_composter_task(task: Task, context: Mapping[str, Any]) -> Plan:
    target = resolve_count(task.meta("bonemeal", "boneMeal", "amount", "quantity"), 1)
    draft = PlanDraft(task, context, summary=f"Produce {target} bone meal in a composter.")

    requested = _requested_items(task, draft)
    for name, _ in requested:
        if compostable(name) is None:
            draft.risk(f"{name} cannot be composted.")
    available = requested or [(item.name, item.count) for item in draft.inventory]
    batches, expected = plan_batches(available, target)

    existing = truthy(task.meta("existingComposter")) or context_value(context, "nearestComposter") is not None
    if not existing and find_inventory_item(draft.inventory, "composter") is None:
        recipe = ", ".join(f"{count} {item}" for item, count in COMPOSTER_RECIPE.items())
        draft.risk(f"No composter available; craft one from {recipe}.")
        draft.prerequisite("craft", "Craft a composter",
                           metadata={"item": "composter", "quantity": 1, "reason": "missing_composter"})
        draft.metadata["status"] = "blocked"

    if not batches:
        draft.risk("No compostable items available.")
        needed = compostable(FALLBACK_COMPOSTABLE).items_per_bone_meal * target
        draft.prerequisite("gather", f"Gather {needed} {FALLBACK_COMPOSTABLE} to compost",
                           metadata={"resource": FALLBACK_COMPOSTABLE, "quantity": needed,
                                     "reason": "missing_compostables"})
        draft.step("Gather compostables", "Collect crops, seeds, saplings or other plant matter to compost.",
                   step_type="planning", command="gather_compostables",
                   metadata={"suggestions": ["cake", "pumpkin pie", "bread", "hay block", "wheat seeds"]})
        draft.metadata.update({"status": "blocked", "targetBonemeal": target, "expectedBonemeal": 0})
        return draft.build(PLACE_MS)

    if expected < target:
        draft.risk(f"Available items only make about {expected} of {target} bone meal.")
        draft.metadata["status"] = "blocked"

    duration = 0.0
    position = target_position(task.target)
    if not existing:
        where = f"at {describe_target(position)}" if position else "on flat ground"
        draft.step("Place composter", f"Place the composter {where}.", step_type="construction",
                   command="place_composter", metadata={"item": "composter", "requiresFlatSurface": True})
        draft.use("composter")
        duration += PLACE_MS

    for batch in batches:
        item = batch.item
        key = item.name.replace(" ", "_")
        draft.step(f"Compost {item.name}", f"Add {batch.count} {item.name} to the composter "
                   f"({round(item.chance * 100)}% fill chance per item).", step_type="action",
                   command=f"compost_{key}",
                   metadata={"item": item.name, "count": batch.count, "chance": item.chance,
                             "expectedLayers": round(batch.expected_layers, 1),
                             "action": "right_click_composter"})
        have = count_inventory_items(draft.inventory, item.name)
        if have < batch.count:
            draft.risk(f"Only {have} of {batch.count} {item.name} in inventory.")
        draft.use(item.name)
        duration += batch.count * MS_PER_ITEM

    draft.step("Collect bone meal", f"Collect the bone meal each time the composter reaches level "
               f"{LAYERS_PER_BONE_MEAL}.", step_type="action", command="collect_bonemeal",
               metadata={"output": "bone meal", "count": expected, "readyLevel": LAYERS_PER_BONE_MEAL})
    duration += COLLECT_MS * max(1, expected)

    best = batches[0].item
    if best.rating == "poor":
        draft.note("Seeds and saplings fill slowly; cake, pumpkin pie and bread fill fastest.")
    if truthy(task.meta("automated")):
        per_hour = math.floor(HOPPER_ITEMS_PER_SECOND * 3600 / best.items_per_bone_meal)
        draft.note(f"A hopper-fed composter with {best.name} yields about {per_hour} bone meal per hour.")
    draft.metadata.setdefault("status", "ready")
    draft.metadata.update({
        "targetBonemeal": target,
        "expectedBonemeal": expected,
        "itemsComposted": sum(batch.count for batch in batches),
        "items": [{**batch.item.to_dict(), "count": batch.count} for batch in batches],
    })
    return draft.build(duration)
