"""Crafting, smelting, brewing and anvil work with stock-driven quantities."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from npc_planner.context import InventoryItem, count_inventory_items
from npc_planner.knowledge.crafting import (
    BOTTLES_PER_BATCH,
    FuelOption,
    Recipe,
    find_recipe,
    fuel_option,
    fuel_rank,
    optimize_enchantment_order,
    station_profile,
)
from npc_planner.models import Task
from npc_planner.normalize import (
    describe_target,
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_count,
    resolve_quantity,
)
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names, truthy

BASE_DURATION_MS = 8_000
PER_INGREDIENT_MS = 1_500
PER_EXTRA_UNIT_MS = 1_200


@dataclass(slots=True)
class Ingredient:
    name: str
    count: int | None = None
    required: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "count": self.required}


@dataclass(slots=True)
class QuantityDecision:
    quantity: int
    current_stock: int
    reasons: list[str]


def resolve_craft_quantity(task: Task, current_stock: int) -> QuantityDecision:
    """``exactQuantity`` wins; otherwise the largest of base, minimum deficit and stock deficit, plus buffer."""
    base = resolve_count(task.meta("quantity", "count"), 1)
    maintain = resolve_quantity(task.meta("maintainMinimum", "minStock", "maintain"), None)
    desired = resolve_quantity(task.meta("desiredStock", "targetStock", "restockTarget"), None)
    buffer = int(resolve_quantity(task.meta("buffer", "extra"), 0) or 0)
    exact = resolve_quantity(task.meta("exactQuantity"), None)

    if exact and exact > 0:
        return QuantityDecision(int(exact), current_stock, [f"exact quantity override to {int(exact)}"])

    quantity = base
    reasons: list[str] = []
    if maintain and current_stock < maintain:
        deficit = int(maintain - current_stock)
        quantity = max(quantity, deficit)
        reasons.append(f"inventory below minimum ({current_stock}/{int(maintain)})")
    if desired and current_stock < desired:
        deficit = int(desired - current_stock)
        quantity = max(quantity, deficit)
        reasons.append(f"target stock of {int(desired)} requires {deficit}")
    if buffer > 0:
        quantity += buffer
        reasons.append(f"include buffer of {buffer}")
    return QuantityDecision(max(1, int(quantity)), current_stock, reasons)


def _parse_ingredients(task: Task, recipe: Recipe | None, quantity: int) -> tuple[list[Ingredient], str]:
    raw = task.meta("ingredients")
    if raw is None and isinstance(task.meta("recipe"), Mapping):
        raw = task.meta("recipe")

    parsed: list[Ingredient] = []
    if isinstance(raw, Mapping):
        for name, count in raw.items():
            count = resolve_quantity(count, None)
            parsed.append(Ingredient(normalize_item_name(str(name)), int(count) if count else None))
    else:
        for entry in metadata_list(raw):
            if isinstance(entry, Mapping):
                count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
                parsed.append(Ingredient(normalize_item_name(entry.get("name") or entry.get("item") or entry.get("id")),
                                         int(count) if count else None))
            else:
                parsed.append(Ingredient(normalize_item_name(entry)))
    parsed = [ingredient for ingredient in parsed if is_specified(ingredient.name)]

    if parsed:
        for ingredient in parsed:
            ingredient.required = (ingredient.count or 1) * quantity
        return parsed, "task"

    if recipe is not None:
        crafts = math.ceil(quantity / recipe.output)
        return [Ingredient(name, count, count * crafts) for name, count in recipe.ingredients], "recipe book"
    return [], "unknown"


def _select_fuel(options: list[FuelOption], units: int, inventory: list[InventoryItem]) -> tuple[FuelOption, int, bool]:
    """Pick a fuel the inventory holds enough of; fall back to the best-ranked option."""
    def needed(option: FuelOption) -> int:
        return max(1, math.ceil(units / option.items_per_fuel))

    stocked = [option for option in options if count_inventory_items(inventory, option.name) >= needed(option)]
    if stocked:
        chosen = min(stocked, key=fuel_rank)
        return chosen, needed(chosen), True
    chosen = min(options, key=fuel_rank)
    return chosen, needed(chosen), False


def plan_craft_task(task: Task, context: Mapping[str, Any]) -> Plan:
    item = metadata_name(task, "item", "output", fallback=task.details)
    item_label = item if is_specified(item) else "requested item"
    recipe = find_recipe(item)
    station_name = metadata_name(task, "station", fallback=recipe.station if recipe else "crafting table")
    station = station_profile(station_name)
    storage = metadata_name(task, "storage", "dropOff", fallback="nearest chest")
    automation = truthy(task.meta("automation", "autocrafter"))

    draft = PlanDraft(task, context, summary="")
    inventory = draft.inventory
    decision = resolve_craft_quantity(task, count_inventory_items(inventory, item))
    quantity = decision.quantity
    draft.summary = (f"Craft {quantity}x {item_label} using the {station_name}." if quantity > 1
                     else f"Craft {item_label} using the {station_name}.")

    ingredients, ingredient_source = _parse_ingredients(task, recipe, quantity)
    missing = [
        ingredient for ingredient in ingredients
        if count_inventory_items(inventory, ingredient.name) < ingredient.required
    ]

    stock_tracked = any(task.meta(key) is not None for key in
                        ("maintainMinimum", "minStock", "desiredStock", "targetStock", "buffer", "exactQuantity"))
    if stock_tracked or decision.reasons:
        reason_text = "; ".join(decision.reasons) or "stock already healthy"
        draft.step(
            "Assess stock levels",
            f"Inventory shows {decision.current_stock} {item_label}. Planned quantity {quantity}: {reason_text}.",
            step_type="analysis",
            metadata={"currentStock": decision.current_stock, "plannedQuantity": quantity,
                      "reasons": decision.reasons},
        )

    if missing:
        shortfalls = [
            {"name": ingredient.name,
             "count": ingredient.required - count_inventory_items(inventory, ingredient.name)}
            for ingredient in missing
        ]
        draft.step(
            "Restock ingredients",
            f"Acquire missing components for {item_label}: {format_requirement_list(shortfalls)}.",
            step_type="inventory",
            metadata={"ingredients": [entry.to_dict() for entry in ingredients], "missing": shortfalls},
        )
        draft.risk("Insufficient ingredients could delay crafting.")
        for shortfall in shortfalls:
            draft.prerequisite(
                "gather",
                f"Gather {shortfall['count']} {shortfall['name']}",
                metadata={"resource": shortfall["name"], "quantity": shortfall["count"]},
            )
    else:
        summary = format_requirement_list([entry.to_dict() for entry in ingredients])
        draft.step(
            "Verify ingredients",
            f"Confirm ingredients for {item_label} x{quantity}: {summary}." if summary
            else f"Confirm ingredients for {item_label} x{quantity} are available.",
            step_type="inventory",
            metadata={"ingredients": [entry.to_dict() for entry in ingredients], "source": ingredient_source},
        )
    if ingredient_source == "unknown":
        draft.note(f"No recipe on record for {item_label}; confirm ingredients manually.")

    subcomponents = task.meta("subcomponents")
    if subcomponents:
        if isinstance(subcomponents, Mapping):
            parts = [{"name": normalize_item_name(str(name)), "count": resolve_quantity(count, None)}
                     for name, count in subcomponents.items()]
        else:
            parts = [{"name": name} for name in metadata_names(subcomponents)]
        draft.step("Craft subcomponents",
                   f"Craft prerequisite parts ({format_requirement_list(parts) or 'required subcomponents'}).",
                   step_type="preparation", metadata={"subcomponents": parts})

    draft.step("Move to workstation", f"Travel to the {station_name} at {describe_target(task.target)}.",
               step_type="movement", metadata={"station": station_name, "process": station.process})

    if station.requires_fuel:
        requested = metadata_names(task.meta("fuel", "fuels", "requiredFuel"))
        options = [fuel_option(name) for name in (requested or station.default_fuels)]
        if station.process == "brewing":
            batches = math.ceil(quantity / BOTTLES_PER_BATCH)
            units = batches
        else:
            units = quantity * station.items_per_operation
        fuel, fuel_needed, stocked = _select_fuel(options, units, inventory)
        draft.step(
            "Load fuel",
            f"Insert {fuel_needed} {fuel.name} into the {station_name} to power the process.",
            step_type="inventory",
            metadata={"fuel": fuel.name, "fuelNeeded": fuel_needed, "options": [option.name for option in options],
                      "stocked": stocked},
        )
        if not stocked:
            draft.risk("Fuel reserves are low; gather additional fuel before processing.")
        draft.note(f"Fuel options: {', '.join(option.name for option in options)}; "
                   f"selected {fuel.name} (estimated need {fuel_needed}).")
        draft.use(fuel.name)

        if station.process == "brewing":
            bottles = math.ceil(quantity / BOTTLES_PER_BATCH) * BOTTLES_PER_BATCH
            draft.step("Prep bottles", f"Fill and place {bottles} water bottles plus initial reagents into the brewing stand.",
                       step_type="inventory", metadata={"bottlesNeeded": bottles})
            draft.risk("Brewing sequences are timing-sensitive; avoid swapping reagents mid-cycle.")
        if station.process == "smelting":
            draft.step("Queue inputs", f"Load raw ingredients for {item_label} into the {station_name} input slots.",
                       step_type="inventory",
                       metadata={"ingredients": [entry.to_dict() for entry in ingredients], "quantity": quantity})

    template = metadata_name(task, "template", "smithingTemplate")
    if station.process == "smithing" and is_specified(template):
        draft.step("Slot smithing template",
                   f"Place the {template} into the smithing table before combining materials.",
                   step_type="preparation", metadata={"template": template})
        draft.use(template)

    enchantments = metadata_names(task.meta("enchantments"))
    order = optimize_enchantment_order(enchantments) if enchantments else None
    xp_cost = resolve_quantity(task.meta("xpCost"), None)
    if xp_cost is None and order is not None and station.process == "anvil":
        xp_cost = order.total_cost
    if station.process == "anvil":
        if xp_cost:
            draft.step("Verify XP levels",
                       f"Ensure at least {xp_cost:g} XP levels are available to finish the anvil work.",
                       step_type="analysis", metadata={"xpCost": xp_cost})
        draft.risk("Combining items may reduce anvil durability; keep a backup anvil.")
    if order is not None:
        sequence = ", ".join(step.enchantment for step in order.steps)
        draft.step(
            "Order enchantments",
            f"Apply enchantments cheapest first ({sequence}) to limit prior-work penalties; "
            f"estimated total {order.total_cost} levels.",
            step_type="planning",
            metadata={"order": [step.to_dict() for step in order.steps], "totalCost": order.total_cost},
        )
        draft.metadata["enchantmentOrder"] = [step.to_dict() for step in order.steps]

    if automation:
        draft.step("Configure automation", f"Load the recipe into the {station_name} autocrafter and prime input buffers.",
                   step_type="configuration")
        draft.risk("Autocrafter misconfiguration may waste materials.")

    command = None
    if station.craft_command and is_specified(item):
        command = f"/craft {item.replace(' ', '_')}" + (f" {quantity}" if quantity > 1 else "")
    craft_text = (f"Use the {station_name} to {station.verb} {quantity}x {item_label}, arranging ingredients per recipe."
                  if quantity > 1 else f"Use the {station_name} to {station.verb} {item_label}, arranging ingredients per recipe.")
    draft.step("Craft item", craft_text, command=command, metadata={"item": item_label, "quantity": quantity})

    if station.post_collection:
        draft.step("Collect output", station.post_collection.format(item=item_label), metadata={"station": station_name})

    if truthy(task.meta("inspect", "qualityCheck")):
        draft.step("Inspect output", f"Verify enchantments or durability on the crafted {item_label} before delivery.",
                   step_type="quality")

    draft.step("Store output", f"Place the crafted {item_label} into the {storage} and report the quantity produced.",
               step_type="storage", metadata={"container": storage, "quantity": quantity})

    if decision.reasons:
        draft.note(f"Quantity rationale: {'; '.join(decision.reasons)}.")
    else:
        draft.note(f"Quantity rationale: requested {quantity}.")
    if station.note:
        draft.note(station.note)
    if task.meta("deliverTo"):
        draft.note(f"Deliver finished items to {task.meta('deliverTo')}.")

    draft.use(item, station_name, storage, *(ingredient.name for ingredient in ingredients))
    draft.metadata.update({
        "item": item_label,
        "quantity": quantity,
        "currentStock": decision.current_stock,
        "station": station_name,
        "process": station.process,
        "ingredientSource": ingredient_source,
    })

    duration = BASE_DURATION_MS + len(ingredients) * PER_INGREDIENT_MS + (quantity - 1) * PER_EXTRA_UNIT_MS
    return draft.build(duration)
