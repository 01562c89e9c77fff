"""Exploration: biome-aware preparation, structure hunting and search strategies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import has_inventory_item
from npc_planner.knowledge.exploration import (
    choose_strategy,
    exploration_biome,
    exploration_duration_ms,
    structure_profile,
)
from npc_planner.models import Task
from npc_planner.normalize import format_requirement_list, is_specified, normalize_item_name, resolve_quantity
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names, truthy

_HARD_DIFFICULTIES = {"hard", "very hard", "extreme"}
_COMPLEX_NAVIGATION = {"very high", "extreme"}


def _supply_entries(raw: Any) -> list[dict[str, Any]]:
    if isinstance(raw, Mapping) and "name" not in raw and "item" not in raw:
        raw = [{"name": name, "count": count} for name, count in raw.items()]
    entries = []
    for entry in metadata_list(raw):
        if isinstance(entry, Mapping):
            name = normalize_item_name(entry.get("name") or entry.get("item"))
            count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
            entries.append({"name": name, "count": count} if count else {"name": name})
        else:
            entries.append({"name": normalize_item_name(entry)})
    return entries


def plan_explore_task(task: Task, context: Mapping[str, Any]) -> Plan:
    draft = PlanDraft(task, context, summary="")
    biome_name = metadata_name(task, "biome", fallback=draft.signals.biome or "plains")
    biome = exploration_biome(biome_name)
    structure_name = metadata_name(task, "structure")
    structure = structure_profile(structure_name)
    strategy = choose_strategy(biome, structure, task.meta("strategy", "navigationStrategy"))
    radius = resolve_quantity(task.meta("radius", "range"), None)
    transport = metadata_name(task, "transport", fallback="foot")
    navigation_tool = metadata_name(task, "navigation", "tool", fallback="map")
    points = metadata_names(task.meta("pointsOfInterest"))

    if structure is not None:
        draft.summary = f"Explore {biome_name} biome to locate {structure.name} near {draft.target_description}."
    else:
        draft.summary = f"Explore {biome_name} biome near {draft.target_description} using {strategy.name}."

    requested = _supply_entries(task.meta("supplies"))
    supplies: dict[str, dict[str, Any]] = {}
    for entry in [*({"name": name} for name in biome.supplies),
                  *({"name": name} for name in (structure.preparations if structure else ())),
                  *({"name": name} for name in strategy.requirements),
                  *requested]:
        if is_specified(entry["name"]):
            supplies.setdefault(entry["name"], entry)
    supply_list = list(supplies.values())
    missing = [entry for entry in supply_list if not has_inventory_item(draft.inventory, entry["name"],
                                                                         int(entry.get("count") or 1))]

    lead = (f"Prepare for {structure.rarity} structure hunting in {biome.category} biome."
            if structure is not None else f"Prepare for {biome.category} biome exploration.")
    if missing:
        detail = f"Stock up on: {format_requirement_list(missing)}."
    else:
        detail = f"Verify you have: {format_requirement_list(supply_list) or 'expedition supplies'}."
    draft.step("Prepare expedition", f"{lead} {detail}", step_type="preparation",
               metadata={"biome": biome_name, "structure": structure.name if structure else None,
                         "supplies": supply_list, "missing": missing})

    if biome.considerations:
        draft.step("Review biome hazards", f"{biome.category} biome notes: {'; '.join(biome.considerations)}.",
                   step_type="preparation", metadata={"considerations": list(biome.considerations)})

    if structure is not None and structure.tips:
        draft.step(f"Locate {structure.name}", f"Tips for finding {structure.name}: {'; '.join(structure.tips)}.",
                   step_type="preparation", metadata={"structure": structure.name, "tips": list(structure.tips)})

    tips = f" Tips: {'; '.join(strategy.tips)}." if strategy.tips else ""
    draft.step(f"Execute {strategy.name}", f"{strategy.description}: {strategy.technique}.{tips}",
               step_type="navigation",
               metadata={"strategy": strategy.key, "efficiency": strategy.efficiency,
                         "requirements": list(strategy.requirements)})

    draft.step("Calibrate navigation tools",
               f"Ensure {navigation_tool}, compass and coordinates are ready for {strategy.name.lower()}.",
               step_type="preparation", metadata={"tool": navigation_tool})

    if transport != "foot":
        terrain = "Good terrain for fast travel." if biome.traversal_speed >= 0.8 else \
            "Difficult terrain may slow travel."
        draft.step("Ready transport", f"Prepare {transport} for travel. {terrain}", step_type="preparation",
                   metadata={"transport": transport, "terrainSpeed": biome.traversal_speed})

    search_radius = structure.search_radius if structure is not None else radius
    if structure is not None:
        scope = f"Search within {structure.search_radius} block radius"
    elif radius:
        scope = f"Explore within {radius:g} block radius"
    else:
        scope = "Explore the region"
    draft.step("Travel and explore",
               f"{scope} of {draft.target_description} using {strategy.name}. Mark waypoints and safe routes.",
               step_type="movement",
               metadata={"radius": search_radius, "transport": transport, "strategy": strategy.key})

    if structure is not None:
        cues = ", ".join(structure.visual_cues) or "unusual blocks"
        draft.step(f"Search for {structure.name}",
                   f"Look for visual cues: {cues}. Detectable from about {structure.detectable_from} blocks away.",
                   step_type="observation",
                   metadata={"visualCues": list(structure.visual_cues), "detectableRange": structure.detectable_from})

    if truthy(task.meta("mapChunks", "mapOutChunks")):
        draft.step("Map chunks", "Chart chunk boundaries and update locator maps for the region.",
                   step_type="observation")

    if points:
        survey = f"Document specific points of interest: {', '.join(points)}."
    elif structure is not None and structure.loot:
        survey = (f"Document the {structure.name} location, loot ({', '.join(structure.loot)}) and dangers "
                  f"({', '.join(structure.dangers) or 'none known'}).")
    else:
        found = ", ".join(biome.resources) or "local resources"
        survey = f"Document notable terrain, resources ({found}) and any structures found."
    draft.step("Survey and document", survey, step_type="observation", metadata={"pointsOfInterest": points})

    waypoints = task.meta("waypoints")
    if waypoints or biome.navigation_complexity in _COMPLEX_NAVIGATION:
        draft.step("Place waypoints",
                   f"Drop markers at strategic spots; critical for {biome.navigation_complexity} complexity terrain.",
                   step_type="action", metadata={"waypoints": waypoints})

    watch = f" Watch for {', '.join(biome.hostile_mobs[:3])}." if biome.hostile_mobs else ""
    draft.step("Return safely", f"Follow marked waypoints back to base.{watch}", step_type="movement")
    loot = f" Loot to look for: {', '.join(structure.loot)}." if structure is not None and structure.loot else ""
    draft.step("Report findings", f"Share coordinates and notes.{loot}", step_type="report",
               metadata={"format": task.meta("reportFormat", default="summary")})

    if missing:
        draft.risk(f"Missing expedition supplies: {format_requirement_list(missing)}.")
    if biome.hazards:
        draft.risk(f"{biome.category} biome hazards: {', '.join(biome.hazards)}.")
    if biome.dimension == "nether":
        draft.risk("Nether environment: fire resistance essential, no natural water, beds explode.")
    elif biome.dimension == "end":
        draft.risk("End dimension: void death is permanent, endermen everywhere, bring blocks.")
    if structure is not None and structure.dangers:
        draft.risk(f"{structure.name} dangers: {', '.join(structure.dangers)}.")
    if biome.hostile_mobs:
        draft.risk(f"Hostile mobs in {biome_name}: {', '.join(biome.hostile_mobs)}.")
    if biome.difficulty in _HARD_DIFFICULTIES:
        draft.risk(f"High difficulty ({biome.difficulty}); bring backup supplies and armor.")
    if truthy(task.meta("nightRun")) or draft.signals.is_night:
        draft.risk("Night exploration significantly increases hostile mob encounters.")
    if biome.navigation_complexity in _COMPLEX_NAVIGATION:
        draft.risk(f"{biome.navigation_complexity} navigation complexity; easy to get lost, mark paths clearly.")

    draft.note(f"Using {strategy.name} ({round(strategy.efficiency * 100)}% efficiency, {strategy.coverage} coverage).")
    draft.note(f"Terrain traversal speed: {round(biome.traversal_speed * 100)}% of normal.")
    if structure is not None:
        draft.note(f"{structure.name} rarity: {structure.rarity}, finding difficulty: {structure.finding_difficulty}.")
        if structure.worth_revisiting:
            draft.note(f"{structure.name} worth marking for future visits.")
    if task.meta("returnBy"):
        draft.note(f"Return before {task.meta('returnBy')}.")
    if task.meta("lootPriority"):
        draft.note(f"Priority loot: {task.meta('lootPriority')}.")

    draft.use(navigation_tool, *supplies, *strategy.requirements)
    if transport != "foot":
        draft.use(transport)
    draft.metadata.update({
        "biome": biome.name if biome.name != "unknown" else biome_name,
        "structure": structure.name if structure else None,
        "strategy": strategy.key,
        "searchRadius": search_radius,
    })
    return draft.build(exploration_duration_ms(search_radius, biome, strategy))
