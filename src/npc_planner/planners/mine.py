"""Mining: style selection, tool integrity checks, hazard contingencies and ore storage."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from npc_planner.context import (
    count_inventory_items,
    extract_preferences,
    has_inventory_item,
    resolve_tool_integrity,
)
from npc_planner.knowledge.crafting import default_tool_variant
from npc_planner.knowledge.mining import DEFAULT_SUPPORT_SUPPLIES, MINING_STYLES, choose_mining_style
from npc_planner.models import Task
from npc_planner.normalize import (
    describe_target,
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_quantity,
)
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names, truthy

BASE_DURATION_MS = 11_000
PER_BLOCK_MS = 500
UNKNOWN_QUOTA_MS = 4_000
LOW_DURABILITY = 0.2
_Y_LEVEL = re.compile(r"^\s*(?:y\s*=?\s*)?([+-]?\d+(?:\.\d+)?)", re.IGNORECASE)


def _supply_entries(raw: Any) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for entry in metadata_list(raw):
        if isinstance(entry, Mapping):
            name = normalize_item_name(entry.get("name") or entry.get("item"))
            count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
        else:
            name, count = normalize_item_name(entry), None
        if is_specified(name):
            entries.append({"name": name, "count": int(count) if count else None})
    return entries


def _y_level(raw: Any) -> float | None:
    # Y levels go below zero, so they cannot go through resolve_quantity.
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, str):
        match = _Y_LEVEL.match(raw)
        if match:
            return float(match.group(1))
    return None


def _percent(value: float) -> int:
    return int(round(value * 100))


def plan_mine_task(task: Task, context: Mapping[str, Any]) -> Plan:
    resource = metadata_name(task, "resource", "ore", fallback=task.details)
    tool = metadata_name(task, "tool", fallback="pickaxe")
    backup_tool = metadata_name(task, "backupTool", "secondaryTool")
    drop_off = metadata_name(task, "dropOff")
    quantity = resolve_quantity(task.meta("quantity", "count"), None)
    quantity = int(quantity) if quantity else None
    depth = _y_level(task.meta("depth", "yLevel"))
    hazards = metadata_names(task.meta("hazards"))
    anchor = task.meta("anchorPoint", "respawnAnchor")
    escort = task.meta("escort")
    reinforcements = _supply_entries(task.meta("reinforcements"))
    supplies = [dict(entry) for entry in DEFAULT_SUPPORT_SUPPLIES] + _supply_entries(task.meta("supplies"))

    resource_label = resource if is_specified(resource) else "target ore"
    preferences = extract_preferences(context)
    choice = choose_mining_style(
        explicit=task.meta("style", "pattern", "layout"),
        preference=preferences.get("miningStyle") or preferences.get("mineStyle"),
        method=task.meta("method"),
        quantity=quantity,
        depth=depth,
        hazards=hazards,
    )
    style = choice.style

    draft = PlanDraft(task, context,
                      summary=f"Mine {resource_label} at {describe_target(task.target)} using the {style.label} pattern.")
    inventory = draft.inventory
    signals = draft.signals

    integrity = resolve_tool_integrity(tool, context)
    backup_integrity = resolve_tool_integrity(backup_tool, context) if is_specified(backup_tool) else None
    has_tool = has_inventory_item(inventory, tool)
    missing_supplies = [
        entry for entry in supplies if not has_inventory_item(inventory, entry["name"], entry["count"] or 1)
    ]

    if missing_supplies:
        description = f"Restock essential supplies ({format_requirement_list(missing_supplies)})."
    else:
        description = f"Confirm support supplies are packed: {format_requirement_list(supplies)}."
    draft.step("Stock supplies", description, step_type="inventory",
               metadata={"supplies": supplies, "missing": missing_supplies})

    if reinforcements:
        draft.step(
            "Stage reinforcements",
            f"Pack building blocks for shoring: {format_requirement_list(reinforcements)}.",
            step_type="preparation",
            metadata={"reinforcements": reinforcements},
        )

    if integrity is not None and integrity.broken:
        gear = f"Primary {tool} is marked as broken; arrange a replacement before entering the mine."
    elif has_tool:
        suffix = f" (~{_percent(integrity.percent)}% durability)" if integrity and integrity.percent is not None else ""
        gear = f"Inspect the {tool}{suffix} and equip it before entering the mine."
    else:
        gear = f"Retrieve or craft a suitable {tool} before entering the mine."
    draft.step("Gear check", gear, step_type="preparation",
               metadata={"tool": tool, "backupTool": backup_tool if is_specified(backup_tool) else None,
                         "hasTool": has_tool})

    if not has_tool:
        draft.risk(f"Missing required tool: {tool}.")
        craft_item = default_tool_variant(tool)
        draft.prerequisite(
            "craft",
            f"Craft a {craft_item} for mining",
            metadata={"item": craft_item, "quantity": 1, "reason": "missing_tool"},
        )

    if integrity is not None and integrity.broken:
        draft.step(
            "Replace primary tool",
            f"Tool monitoring flagged the {tool} as broken. Craft or retrieve a replacement before going underground.",
            step_type="crafting",
            metadata={"tool": tool, "trigger": "durability_zero", "origin": integrity.origin},
        )
        draft.risk(f"Primary {tool} is currently unusable and must be replaced.")
    elif integrity is not None and integrity.percent is not None and integrity.percent < LOW_DURABILITY:
        draft.step(
            "Stage backup tool",
            f"Primary {tool} durability is low (~{_percent(integrity.percent)}%). "
            "Stage materials or a backup before descent.",
            step_type="preparation",
            metadata={"tool": tool, "durability": integrity.percent},
        )
        draft.risk(f"Primary {tool} durability is low (~{_percent(integrity.percent)}%).")

    if is_specified(backup_tool):
        if backup_integrity is not None and backup_integrity.broken:
            draft.step(
                "Restore backup tool",
                f"Backup {backup_tool} is broken; craft or retrieve a replacement to cover failures mid-run.",
                step_type="crafting",
                metadata={"tool": backup_tool, "trigger": "backup_tool_broken", "origin": backup_integrity.origin},
            )
            draft.risk(f"Backup {backup_tool} is broken; there is no redundancy if the primary fails.")
        elif not has_inventory_item(inventory, backup_tool):
            draft.risk(f"No functional backup {backup_tool} is available if the primary breaks.")

    draft.step(
        "Select mining style",
        f"Use the {style.label} pattern: {choice.rationale}",
        step_type="planning",
        metadata={
            "style": style.id,
            "method": style.method,
            "selectionSource": choice.source,
            "options": [{"id": option.id, "label": option.label} for option in MINING_STYLES],
        },
    )

    if signals.low_light:
        level = f" (level {signals.light_level})" if signals.light_level is not None else ""
        draft.step(
            "Stabilize lighting",
            f"Low light detected{level}; place torches every few blocks before digging deeper.",
            step_type="safety",
            command="place_torches",
            metadata={"trigger": "low_light", "lightLevel": signals.light_level},
        )
        draft.risk("Low light could allow hostile mobs to spawn.")
        draft.note("Insufficient lighting flagged; prioritize torch placement.")

    draft.step(
        "Navigate",
        f"Travel to {draft.target_description} using safe pathing and align the entrance with the {style.label} layout.",
        step_type="movement",
    )

    has_bed = has_inventory_item(inventory, "bed")
    if anchor or has_bed:
        draft.step(
            "Secure exit",
            f"Set spawn at {anchor} and mark a clear return path." if anchor
            else "Place a temporary bed near the mine entrance and mark the route back.",
            step_type="safety",
            metadata={"anchor": anchor or "bed"},
        )

    if escort:
        draft.step("Coordinate escort", f"Meet with {escort} before descent and assign overwatch positions.",
                   step_type="coordination", metadata={"escort": escort})
        draft.note(f"Escort {escort} provides backup; keep line of sight while mining.")

    if depth is not None and depth < 20:
        draft.step("Stabilize shaft", f"Install supports and ladder access while descending to Y{depth:g}.",
                   step_type="safety")

    if signals.lava or "lava" in hazards or "lava pool" in hazards:
        draft.step(
            "Lava contingency",
            "Lava detected nearby. Deploy water or non-flammable blocks and retreat if containment fails."
            if signals.lava else
            "Carry a water bucket or fire resistance potion and block off exposed lava before mining.",
            step_type="safety",
            command="retreat",
            metadata={"trigger": "lava_detected" if signals.lava else "lava_expected",
                      "recommended": ["water bucket", "cobblestone"]},
        )
        if signals.lava:
            draft.risk("Active lava detected; keep retreat routes clear.")

    if signals.gravel or "gravel" in hazards or "gravel pocket" in hazards:
        draft.step(
            "Gravel collapse plan",
            "Unstable gravel overhead; brace ceilings, dig from the top down and retreat if collapse begins."
            if signals.gravel else
            "Expect gravel pockets; brace ceilings and dig from above to prevent suffocation.",
            step_type="safety",
            command="retreat" if signals.gravel else None,
            metadata={"trigger": "gravel_detected" if signals.gravel else "gravel_expected"},
        )
        draft.risk("Falling gravel or sand could suffocate the miner.")

    if quantity:
        mine_text = f"Mine approximately {quantity} blocks of {resource_label} using the {style.label} pattern ({style.method})."
    else:
        mine_text = (f"Mine the {resource_label} following the {style.label} pattern ({style.method}), "
                     "reinforcing ceilings and sealing hazards.")
    draft.step("Mine", mine_text, metadata={"method": style.method, "quantity": quantity, "style": style.id})

    if reinforcements:
        draft.step("Shore tunnels", "Place reinforcement blocks along long corridors and exposed ceilings.",
                   step_type="safety", metadata={"reinforcements": reinforcements})
        draft.note("Use staged reinforcements to seal side tunnels once depleted.")
    elif {"ravine", "unstable ceiling"} & set(hazards):
        draft.risk("Lack of reinforcement blocks increases collapse risk.")

    if truthy(task.meta("silkTouch", "requiresSilkTouch")):
        draft.step("Apply silk touch", f"Use a silk touch tool on {resource_label} blocks that should stay intact.",
                   step_type="quality")

    draft.step("Collect drops", f"Collect the dropped items and keep inventory space for {resource_label}.",
               step_type="collection")

    if truthy(task.meta("autoSmelt")) or "ore" in resource.split(" "):
        draft.step("Process ore", f"Smelt or blast the {resource_label} at a furnace array before storage if time allows.",
                   step_type="processing", metadata={"smelt": True})

    if is_specified(drop_off):
        draft.step(
            "Store resources",
            f"Deliver the mined {resource_label} to the {drop_off} and tidy the shaft for future runs.",
            step_type="storage",
            metadata={"container": drop_off},
        )
        draft.follow_up(
            "interact",
            f"Store {resource_label} in {drop_off}",
            target=drop_off,
            metadata={
                "container": drop_off,
                "interaction": "store",
                "transfer": {"store": [{"name": resource_label, "count": quantity or 1}]},
            },
        )

    on_hand = count_inventory_items(inventory, resource)
    draft.step("Log findings", f"Report yields ({on_hand} currently on hand) and note hazards or new branches.",
               step_type="report")

    if "cave" in hazards:
        draft.risk("Unlit caves may spawn hostile mobs.")
    draft.risk(style.risk)

    draft.note(f"Selected style: {style.label}. {choice.rationale}")
    draft.note(f"Style selection source: {choice.source}.")
    if task.meta("beacon"):
        draft.note(f"Activate haste beacon at {task.meta('beacon')}.")
    if integrity is not None:
        draft.note(f"Tool telemetry source: {integrity.origin}.")

    draft.use(resource, tool, *(entry["name"] for entry in supplies), *(entry["name"] for entry in reinforcements),
              *style.recommended_supplies)
    if is_specified(drop_off):
        draft.use(drop_off)
    draft.metadata.update({
        "style": style.id,
        "method": style.method,
        "styleSource": choice.source,
        "resource": resource_label,
        "quantity": quantity,
        "tool": tool,
    })

    duration = BASE_DURATION_MS + (quantity * PER_BLOCK_MS if quantity else UNKNOWN_QUOTA_MS) + style.duration_modifier
    return draft.build(duration)

