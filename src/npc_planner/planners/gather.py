"""Gathering: crops, logs, stone and ores with tool, biome, depth and weather analysis."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import find_inventory_item, has_inventory_item
from npc_planner.knowledge.crafting import default_tool_variant
from npc_planner.knowledge.gathering import (
    FieldConditions,
    assess_field_hazards,
    biome_profile,
    resource_profile,
    safety_recommendations,
    tool_condition,
    tool_profile,
    travel_time_ms,
    weather_profile,
    y_level_band,
    y_level_modifier,
)
from npc_planner.models import Task
from npc_planner.normalize import format_requirement_list, is_specified, resolve_quantity
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names, truthy

PREP_MS = 5_000
MISSING_TOOL_MS = 5_000
UNKNOWN_QUOTA_MS = 3_500
REPLANT_PER_PLOT_MS = 100
PROCESS_PER_UNIT_MS = 50
POST_MS = 2_000


def _target_y(task: Task, context: Mapping[str, Any]) -> float | None:
    for source in (task.target, context.get("position"), context.get("playerPosition")):
        if isinstance(source, Mapping):
            y = source.get("y")
            if isinstance(y, (int, float)) and not isinstance(y, bool):
                return float(y)
    return None


def _supplies(raw: Any) -> list[Any]:
    if isinstance(raw, Mapping) and "name" not in raw:
        return [{"name": name, "count": count} for name, count in raw.items()]
    return metadata_list(raw)


def plan_gather_task(task: Task, context: Mapping[str, Any]) -> Plan:
    resource_name = metadata_name(task, "resource", fallback=task.details)
    if not is_specified(resource_name):
        resource_name = "resources"
    profile = resource_profile(resource_name)
    tool = metadata_name(task, "tool", fallback=profile.tool)
    backup_tools = metadata_names(task.meta("backupTools"))
    storage = metadata_name(task, "storage", fallback="storage chest")
    quantity = resolve_quantity(task.meta("quantity", "count"), None)
    quantity = int(quantity) if quantity else None
    method = metadata_name(task, "method", fallback="manual harvest")
    replant_flag = task.meta("replant")
    replant = profile.replantable if replant_flag is None else truthy(replant_flag)
    replant_item = None
    if replant:
        replant_item = metadata_name(task, "replantItem", "seed", fallback=profile.seed or f"{resource_name} seeds")
    field_size = resolve_quantity(task.meta("fieldSize"), None)
    processing = metadata_names(task.meta("processing")) or list(profile.processing)
    maturity = task.meta("maturity", default="fully grown" if profile.kind == "crop" else None)
    window = task.meta("window", "timing")
    supplies = _supplies(task.meta("supplies"))
    compost = truthy(task.meta("compost", "compostExtras"))

    draft = PlanDraft(task, context, summary="")
    inventory = draft.inventory
    signals = draft.signals

    biome_name = metadata_name(task, "biome", fallback=signals.biome)
    biome = biome_profile(biome_name) if is_specified(biome_name) else None
    weather = weather_profile(task.meta("weather") or signals.weather or "clear")
    time_label = metadata_name(task, "timeOfDay")
    is_night = time_label in {"night", "midnight"} if is_specified(time_label) else signals.is_night
    light_level = resolve_quantity(task.meta("lightLevel"), None)
    if light_level is None:
        light_level = signals.light_level if signals.light_level is not None else (4 if is_night else 15)
    y = _target_y(task, context)
    band_info = y_level_band(y)
    band = band_info[0] if band_info else None

    tool_item = find_inventory_item(inventory, tool)
    has_tool = tool == "hand" or tool_item is not None
    tool_info = tool_profile(tool_item.name if tool_item else tool)
    status, percent = tool_condition(tool_item.durability, tool_item.max_durability) if tool_item else ("unknown", None)
    efficiency = tool_info.efficiency(profile)
    appropriate = tool_info.appropriate_for(profile)
    missing_tools = [name for name in [tool, *backup_tools] if name != "hand" and not has_inventory_item(inventory, name)]
    replant_quantity = int(field_size or quantity or 1)
    needs_replant_stock = bool(replant and replant_item and not has_inventory_item(inventory, replant_item, replant_quantity))
    durability_cost = quantity if quantity and tool_info.durability else None
    enough_durability = True
    if durability_cost and percent is not None and tool_info.durability:
        enough_durability = percent / 100 * tool_info.durability > durability_cost

    conditions = FieldConditions(biome, band, weather, is_night, light_level)
    hazards = assess_field_hazards(profile, conditions, tool_status=status)
    recommendations = safety_recommendations(hazards)

    env_summary = f" in {biome_name} (Y={y:g})" if biome is not None and y is not None else ""
    draft.summary = f"Gather {resource_name} at {draft.target_description}{env_summary}."

    serious = [hazard for hazard in hazards if hazard.severity in {"critical", "high"}]
    if serious:
        top = ", ".join(entry["action"] for entry in recommendations[:3])
        draft.step("Safety briefing", f"Review hazards and safety measures. Key mitigations: {top}.",
                   step_type="preparation",
                   metadata={"hazards": [hazard.name for hazard in serious], "safetyMeasures": recommendations})

    if missing_tools:
        draft.step(
            "Obtain tools",
            f"Obtain or craft required tools: {format_requirement_list([{'name': n, 'count': 1} for n in missing_tools])}.",
            step_type="preparation",
            metadata={"tool": tool, "backupTools": backup_tools, "missing": missing_tools},
        )
        for name in missing_tools:
            craft_item = default_tool_variant(name)
            draft.prerequisite("craft", f"Craft a {craft_item} for gathering {resource_name}",
                               metadata={"item": craft_item, "quantity": 1, "reason": "missing_tool"})
    else:
        warnings = []
        if status in {"low", "critical"} and percent is not None:
            warnings.append(f"{tool} is at {round(percent)}% durability")
        if not enough_durability:
            warnings.append("it may not have enough durability for the planned quota")
        backups = f" and backups ({', '.join(backup_tools)})" if backup_tools else ""
        warning_text = f" Warning: {', '.join(warnings)}." if warnings else ""
        draft.step("Prepare gear", f"Check durability on the {tool}{backups} before departing.{warning_text}",
                   step_type="preparation",
                   metadata={"tool": tool, "backupTools": backup_tools, "condition": status,
                             "sufficientDurability": enough_durability})

    if needs_replant_stock:
        draft.step("Gather replanting stock",
                   f"Restock {replant_quantity} {replant_item} so the field can be replanted after harvesting.",
                   step_type="inventory", metadata={"item": replant_item, "amount": replant_quantity})

    if supplies:
        draft.step("Pack supplies", f"Carry supportive items ({format_requirement_list(supplies) or 'supplies'}).",
                   step_type="inventory", metadata={"supplies": supplies})

    draft.step("Travel", f"Head to {draft.target_description} where {resource_name} can be collected.",
               step_type="movement", metadata={"destination": draft.target_description})

    if maturity or window:
        parts = []
        if maturity:
            parts.append(f"Confirm the {resource_name} is {maturity}")
        if window:
            parts.append(f"work within the preferred window ({window})")
        draft.step("Inspect field", " and ".join(parts) + ".", step_type="survey",
                   metadata={"maturity": maturity, "window": window})

    efficiency_note = " (high efficiency)" if efficiency > 2.0 else " (low efficiency)" if efficiency < 1.0 else ""
    amount = f"approximately {quantity}" if quantity else "the"
    draft.step(
        "Harvest",
        f"Collect {amount} {resource_name} using the {tool}{efficiency_note} via {method}.",
        step_type="collection",
        metadata={"tool": tool, "quantity": quantity, "method": method, "efficiency": round(efficiency, 2)},
    )

    if replant:
        draft.step("Replant", f"Replant {replant_item or 'seeds or saplings'} to sustain future {resource_name} harvests.",
                   step_type="maintenance", metadata={"item": replant_item})

    if processing:
        draft.step("Process yield", f"Process gathered items into {', '.join(processing)}.", step_type="processing",
                   metadata={"processing": processing})

    draft.step("Sort", f"Organize gathered {resource_name} in inventory, converting to blocks or bundles if useful.",
               step_type="inventory")
    draft.step("Store", f"Deliver {resource_name} to the {storage} and update counts.", step_type="storage",
               metadata={"container": storage, "quantity": quantity})

    if compost:
        draft.step("Compost surplus", f"Convert excess or spoiled {resource_name} into bone meal.",
                   step_type="processing", metadata={"method": "compost"})

    if task.meta("report") is not False:
        draft.step("Report", "Share totals gathered and note regrowth timers or hazards encountered.",
                   step_type="report")

    if not has_tool:
        draft.risk(f"Missing primary tool ({tool}) could slow gathering significantly.")
    if not appropriate:
        draft.risk(f"Tool {tool} may not be effective for {resource_name}.")
    if needs_replant_stock:
        draft.risk(f"Insufficient {replant_item} to fully replant after harvesting.")
    if efficiency < 0.8:
        draft.risk(f"Low tool efficiency ({round(efficiency * 100)}%) will increase gathering time.")
    for hazard in hazards:
        if hazard.severity == "critical":
            draft.risk(f"Critical hazard: {hazard.description}")
        elif hazard.severity == "high":
            draft.risk(hazard.description)
    if biome is not None and band_info is not None:
        if profile.name not in biome.optimal_for:
            draft.risk(f"{resource_name} is not optimal for the {biome.name} biome; reduced yields possible.")
        if profile.kind not in band_info[1] and profile.name not in band_info[1]:
            draft.risk(f"Y-level {y:g} is not optimal for {resource_name}; consider relocating.")

    if biome is not None and y is not None:
        draft.note(f"Operating in {biome_name} biome at Y={y:g} ({band or 'unknown'} level).")
    if weather.name != "clear":
        draft.note(f"Weather: {weather.name}; expect {round((1 - weather.movement) * 100)}% slower movement.")
    if truthy(task.meta("weatherSensitive")) or profile.weather_sensitive:
        draft.note("Avoid harvesting during rain to protect crops.")
    if task.meta("schedule"):
        draft.note(f"Preferred harvest schedule: {task.meta('schedule')}.")
    if window:
        draft.note(f"Aim to harvest during {window} for peak yields.")
    if field_size:
        estimate = quantity or round(profile.yield_per_unit * field_size)
        if biome is not None and profile.kind == "crop":
            estimate = round(estimate * biome.crop_growth)
        draft.note(f"Expect roughly {estimate} items from {field_size:g} plots.")
    if efficiency > 2.0:
        draft.note(f"High tool efficiency ({round(efficiency * 100)}%) will speed up gathering.")

    weather_modifier = 1.0 / weather.movement
    biome_modifier = 1.0
    if biome is not None:
        if "navigation difficulty" in biome.traits:
            biome_modifier *= 1.2
        if "steep terrain" in biome.traits:
            biome_modifier *= 1.3
        if biome.name == "forest":
            biome_modifier *= 1.1
    tool_modifier = 1.0 / max(efficiency, 0.5) if has_tool else 2.0
    per_unit = profile.per_unit_ms * tool_modifier * weather_modifier * biome_modifier * y_level_modifier(band)
    breakdown = {
        "preparation": PREP_MS + (0 if has_tool else MISSING_TOOL_MS),
        "travel": round(travel_time_ms(task.target) * weather_modifier),
        "gathering": round(quantity * per_unit) if quantity else UNKNOWN_QUOTA_MS,
        "replanting": round(field_size * REPLANT_PER_PLOT_MS) if replant and field_size else 0,
        "processing": (quantity or 0) * PROCESS_PER_UNIT_MS if processing else 0,
        "storage": POST_MS,
    }

    draft.use(resource_name, tool, *backup_tools)
    if replant_item:
        draft.use(replant_item)
    draft.metadata.update({
        "resource": profile.name,
        "resourceKind": profile.kind,
        "durationBreakdown": breakdown,
        "safetyRecommendations": recommendations,
        "hazards": [hazard.to_dict() for hazard in hazards],
        "toolEfficiency": round(efficiency, 2),
        "environment": {"biome": biome.name if biome else None, "yLevel": y, "band": band, "weather": weather.name},
    })
    return draft.build(sum(breakdown.values()))
