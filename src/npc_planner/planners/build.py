"""Construction: templates, terrain preparation, material estimates and the phase model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import has_inventory_item
from npc_planner.knowledge.building import (
    SCAFFOLDING_HEIGHT,
    TALL_STRUCTURE_HEIGHT,
    BuildingTemplate,
    Dimensions,
    build_phases,
    estimate_materials,
    find_building_template,
    parse_dimensions,
    terrain_profile,
)
from npc_planner.knowledge.crafting import TOOL_WORDS, default_tool_variant
from npc_planner.models import Task
from npc_planner.normalize import (
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_count,
    resolve_quantity,
)
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, truthy

BASE_DURATION_MS = 14_000
PER_BLOCK_MS = 90
TALL_STRUCTURE_MS = 4_000
VOLUME_MS = 5


def _material_requirements(task: Task, dimensions: Dimensions | None,
                           template: BuildingTemplate | None) -> list[dict[str, Any]]:
    explicit = task.meta("materials", "material")
    counts = task.meta("materialQuantities", "materialCounts", default={})
    counts = counts if isinstance(counts, Mapping) else {}
    if isinstance(explicit, Mapping) and not ("name" in explicit or "item" in explicit):
        explicit = [{"name": name, "count": count} for name, count in explicit.items()]

    requirements: list[dict[str, Any]] = []
    for entry in metadata_list(explicit):
        if isinstance(entry, Mapping):
            name = normalize_item_name(entry.get("name") or entry.get("item"))
            count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
        else:
            name = normalize_item_name(entry)
            count = resolve_quantity(counts.get(entry), None)
        if is_specified(name):
            requirements.append({"name": name, "count": int(count) if count else None})
    # A single named material with no count still needs a quantity from the footprint.
    if requirements and any(entry["count"] for entry in requirements):
        return requirements

    if template is not None and not requirements:
        return [{"name": name, "count": count} for name, count in template.materials]

    if dimensions is not None:
        primary = requirements[0]["name"] if requirements else metadata_name(task, "primaryMaterial",
                                                                            fallback="oak planks")
        roof_material = metadata_name(task, "roofMaterial")
        estimate = estimate_materials(
            dimensions,
            material=primary,
            roof_material=roof_material if is_specified(roof_material) else None,
            foundation_material=metadata_name(task, "foundationMaterial", fallback="cobblestone"),
            roof_style=metadata_name(task, "roofStyle", "style", fallback="pitched"),
            floors=resolve_count(task.meta("floors"), 1),
            interior=task.meta("interior") is not False,
        )
        return [{"name": name, "count": count} for name, count in estimate.materials.items()]

    if requirements:
        return requirements
    fallback = metadata_name(task, "primaryMaterial", fallback=task.details or "building blocks")
    count = resolve_quantity(task.meta("quantity", "blocks"), None)
    return [{"name": fallback, "count": int(count) if count else None}]


def plan_build_task(task: Task, context: Mapping[str, Any]) -> Plan:
    template = find_building_template(task.meta("template", "blueprint", "structure"))
    blueprint = metadata_name(task, "blueprint", "structure",
                              fallback=template.name if template else task.details)
    if not is_specified(blueprint):
        blueprint = template.id if template else "structure"

    dimensions = parse_dimensions(task.meta("dimensions", "dimension"), height=task.meta("height", "floors"))
    if dimensions is None:
        dimensions = parse_dimensions({"length": task.meta("length"), "width": task.meta("width")},
                                      height=task.meta("height", "floors"))
    if dimensions is None and template is not None:
        dimensions = template.dimensions
    height = dimensions.height if dimensions is not None else resolve_quantity(task.meta("height"), None)

    terrain_name = task.meta("terrain", default=template.terrain if template else None)
    terrain = terrain_profile(terrain_name)
    roof_style = metadata_name(task, "roofStyle", "style", fallback=template.roof_style if template else None)
    interior = task.meta("interior")
    interior = template.interior if interior is None and template is not None else interior is not False
    redstone = truthy(task.meta("redstone", "includesRedstone")) or bool(template and template.includes_redstone)
    level_ground = truthy(task.meta("levelGround")) or bool(template and template.level_ground)
    foundation = metadata_name(task, "foundation", fallback=template.foundation if template else None)
    needs_scaffolding = bool(height and height > SCAFFOLDING_HEIGHT) or bool(template and template.requires_scaffolding)
    threat_level = metadata_name(task, "threatLevel", fallback=template.threat_level if template else None)
    orientation = metadata_name(task, "orientation", "facing")

    draft = PlanDraft(task, context, summary="")
    draft.summary = f"Construct {blueprint} at {draft.target_description}."
    inventory = draft.inventory

    requirements = _material_requirements(task, dimensions, template)
    missing_materials = [
        entry for entry in requirements if not has_inventory_item(inventory, entry["name"], entry["count"] or 1)
    ]
    block_count = sum(entry["count"] or 0 for entry in requirements)

    tools: list[str] = []
    if needs_scaffolding:
        tools.append("scaffolding")
    if foundation == "stone":
        tools.append("pickaxe")
    if level_ground:
        tools.append("shovel")
    if terrain is not None:
        tools.extend(terrain.tools)
    if redstone:
        tools.append("redstone")
    if truthy(task.meta("lighting", "buildAtNight")):
        tools.append("torch")
    tools = [name for index, name in enumerate(tools) if name not in tools[:index]]
    missing_tools = [name for name in tools if not has_inventory_item(inventory, name)]

    if tools:
        draft.step(
            "Prepare tools" if missing_tools else "Verify tools",
            f"Gather tools before departure: {format_requirement_list(missing_tools)}." if missing_tools
            else f"Confirm required tools are on hand: {format_requirement_list(tools)}.",
            step_type="inventory",
            metadata={"required": tools, "missing": missing_tools},
        )
        for tool in missing_tools:
            if tool in TOOL_WORDS:
                craft_item = default_tool_variant(tool)
                draft.prerequisite("craft", f"Craft a {craft_item} for construction",
                                   metadata={"item": craft_item, "quantity": 1, "reason": "missing_tool"})

    reference = task.meta("blueprintReference", "blueprintUrl")
    if reference or template is not None:
        dims_text = f" ({dimensions.label()})" if dimensions else ""
        draft.step(
            "Review blueprint",
            f"Load {reference or template.name}{dims_text} and verify dimensions before construction begins.",
            step_type="planning",
            metadata={"template": template.id if template else None,
                      "dimensions": dimensions.label() if dimensions else None},
        )

    if missing_materials:
        draft.step(
            "Restock materials",
            f"Obtain missing resources: {format_requirement_list(missing_materials)}. Stage extras near the build site.",
            step_type="inventory",
            metadata={"materials": requirements, "missing": missing_materials},
        )
        draft.risk(f"Missing materials: {format_requirement_list(missing_materials)}.")
    else:
        draft.step(
            "Verify materials",
            f"Confirm required materials are ready: {format_requirement_list(requirements)}.",
            step_type="inventory",
            metadata={"materials": requirements, "missing": []},
        )

    survey = f"Inspect {draft.target_description} to ensure the area is clear for building and mark foundation corners"
    if is_specified(orientation):
        survey += f", aligning the main entrance toward {orientation}"
    draft.step("Survey site", survey + ".", step_type="planning")

    if (terrain is not None and terrain.name != "flat") or level_ground:
        if terrain is not None and terrain.considerations:
            considerations = "; ".join(terrain.considerations)
            text = f"Prepare the {terrain.name} site for the {blueprint}: {considerations}."
        else:
            text = f"Clear vegetation and level ground to support the {blueprint} footprint."
        draft.step(
            "Prepare terrain",
            text,
            step_type="preparation",
            metadata={"terrain": terrain.name if terrain else "flat",
                      "considerations": list(terrain.considerations) if terrain else [],
                      "clearanceTime": terrain.clearance_ms if terrain else 0},
        )

    draft.step("Stage materials", f"Move materials on-site, placing staging chests for the {blueprint}.",
               step_type="collection", metadata={"materials": requirements})

    if truthy(task.meta("perimeter")) or threat_level == "high":
        draft.step(
            "Secure perimeter",
            "Place perimeter lighting and temporary barricades to prevent mob interference during construction.",
            step_type="safety",
            metadata={"recommended": ["torch", "fence"]},
        )

    draft.step("Lay foundation", f"Outline the {blueprint} footprint and reinforce the base with durable blocks.",
               step_type="construction", metadata={"foundation": foundation if is_specified(foundation) else None})

    if needs_scaffolding:
        draft.step(
            "Place scaffolding",
            f"Set up scaffolding and guard rails to safely build up to {height or 'the planned'} blocks high.",
            step_type="safety",
        )

    draft.step("Assemble structure",
               f"Build the {blueprint} layer by layer, checking alignment with the blueprint after each level.",
               step_type="construction")

    if is_specified(roof_style) or truthy(task.meta("requiresRoof")):
        style = roof_style if is_specified(roof_style) else "specified"
        draft.step("Install roof",
                   f"Shape the roof using the {style} style, ensuring overhangs and lighting prevent mob spawns.",
                   step_type="construction", metadata={"roofStyle": style})

    if redstone:
        draft.step("Install redstone", "Wire redstone components and test circuits before sealing access panels.",
                   step_type="automation")

    draft.step(
        "Finish and inspect",
        "Add lighting, doors and final touches, then verify the structure matches the blueprint and passes safety checks.",
        step_type="inspection",
    )

    if interior:
        draft.step("Outfit interior",
                   "Place furnishings, storage and lighting, verifying access and spawn-proofing inside the structure.",
                   step_type="decoration")

    if task.meta("cleanup") is not False:
        draft.step("Cleanup site", "Remove scaffolding and excess materials, then restore the surrounding terrain.",
                   step_type="cleanup")

    floor_area = dimensions.floor_area if dimensions else None
    volume = dimensions.volume if dimensions else None
    if needs_scaffolding:
        draft.risk("Elevated work area increases fall damage risk.")
    if terrain is not None:
        for risk in terrain.risks:
            draft.risk(risk)
    if draft.signals.storm or task.meta("weather") == "stormy":
        draft.risk("Stormy weather may cause lightning strikes; add lightning rods and shelter.")
    if threat_level == "high":
        draft.risk("Hostile mobs likely to interrupt construction; maintain perimeter defenses.")
    if floor_area:
        draft.risk(f"Large footprint (~{floor_area} blocks) increases build time and supply demand."
                   if floor_area >= 100 else None)
    if template is not None and template.difficulty in {"hard", "expert"}:
        draft.risk(f"{template.name} is rated as {template.difficulty} difficulty; expect increased complexity.")

    if template is not None:
        draft.note(f"Using template: {template.name} ({template.category}).")
    if is_specified(orientation):
        draft.note(f"Align entrance toward {orientation}.")
    if task.meta("deadline"):
        draft.note(f"Requested completion before {task.meta('deadline')}.")
    if floor_area:
        draft.note(f"Estimated footprint area: {floor_area} blocks.")
    if volume:
        draft.note(f"Approximate enclosed volume: {volume} blocks.")
    if missing_tools:
        draft.note(f"Acquire missing tools: {format_requirement_list(missing_tools)}.")
    if template is not None and template.features:
        draft.note(f"Key features: {', '.join(template.features)}.")
    if terrain is not None and terrain.name != "flat":
        draft.note(f"Terrain {terrain.name}: time x{terrain.time_multiplier:g}, "
                   f"clearance {terrain.clearance_ms // 1000}s.")

    if template is not None:
        base = template.duration_ms
    else:
        base = BASE_DURATION_MS + block_count * PER_BLOCK_MS
        if height and height > TALL_STRUCTURE_HEIGHT:
            base += TALL_STRUCTURE_MS
        if volume:
            base += volume * VOLUME_MS
    duration = base
    if terrain is not None:
        duration = base * terrain.time_multiplier + terrain.clearance_ms

    draft.use(*(entry["name"] for entry in requirements), *tools)
    draft.metadata.update({
        "template": template.id if template else None,
        "terrain": terrain.name if terrain else None,
        "dimensions": dimensions.label() if dimensions else None,
        "blockCount": block_count,
        "phases": build_phases(redstone=redstone),
    })
    return draft.build(duration)
