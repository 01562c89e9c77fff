"""Item frame and armor stand displays."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import extract_player_position, find_inventory_item, has_inventory_item
from npc_planner.knowledge.display import (
    ARMOR_SLOTS,
    DISPLAYS,
    FRAME_SURFACES,
    POSES,
    ROTATION_DEGREES,
    SLOT_NAMES,
    DisplayProfile,
    armor_slot,
    display_profile,
    frame_grid,
    rotation_steps,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, normalize_item_name, resolve_count, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, horizontal_distance, metadata_name, truthy

APPROACH_DISTANCE = 4
TRAVEL_MS_PER_BLOCK = 250
PLACE_MS = 1_000
INTERACT_MS = 500
POSE_MS = 3_000
DIM_LIGHT = 7


def _display(task: Task) -> DisplayProfile:
    requested = display_profile(task.meta("display", "frame", "frameType"))
    if requested is not None:
        return requested
    if task.action == "armor_stand" or "armor stand" in (task.details or "").lower():
        return DISPLAYS["armor stand"]
    if truthy(task.meta("glow")):
        return DISPLAYS["glow item frame"]
    return DISPLAYS["item frame"]


def _ensure_display(draft: PlanDraft, display: DisplayProfile, quantity: int) -> None:
    if has_inventory_item(draft.inventory, display.name, quantity):
        return
    draft.risk(f"Not enough {display.name} in inventory (need {quantity}); craft from {display.recipe_text()}.")
    draft.prerequisite("craft", f"Craft {quantity} {display.name}",
                       metadata={"item": display.name, "quantity": quantity, "reason": "missing_display"})
    draft.metadata["status"] = "blocked"


def _plan_armor_stand(task: Task, draft: PlanDraft, display: DisplayProfile,
                      position: dict[str, float] | None) -> float:
    armor = task.meta("armor")
    pieces: dict[str, str] = {}
    if isinstance(armor, Mapping):
        pieces = {slot: normalize_item_name(armor[slot]) for slot in ARMOR_SLOTS if armor.get(slot)}
    elif isinstance(armor, (list, tuple)):
        for item in armor:
            slot = armor_slot(item)
            if slot is not None:
                pieces[slot] = normalize_item_name(item)
    hand_item = metadata_name(task, "mainHand", "weapon")
    pose = normalize_item_name(task.meta("pose")) if task.meta("pose") else "default"

    draft.summary = "Set up an armor stand display."
    _ensure_display(draft, display, 1)
    where = f"at {describe_target(position)}" if position else "on the floor"
    draft.step("Place armor stand", f"Place the armor stand {where}.", step_type="construction",
               command="place_armor_stand", metadata={"item": display.name, "requiresFlatSurface": True})
    duration = float(PLACE_MS)
    missing = [item for item in pieces.values() if not has_inventory_item(draft.inventory, item)]
    if missing:
        draft.risk(f"Missing armor: {', '.join(missing)}.")
    for slot in ARMOR_SLOTS:
        if slot in pieces:
            draft.step(f"Equip {slot}", f"Right-click the stand with the {pieces[slot]}.", step_type="inventory",
                       command=f"equip_{slot}", metadata={"slot": SLOT_NAMES[slot], "item": pieces[slot]})
            duration += INTERACT_MS
    if is_specified(hand_item):
        draft.step("Equip main hand", f"Give the stand the {hand_item}.", step_type="inventory",
                   command="equip_main_hand", metadata={"slot": "mainHand", "item": hand_item})
        duration += INTERACT_MS
    if pose != "default":
        if pose in POSES:
            draft.step("Set pose", f"Set the armor stand to the {pose} pose.", step_type="action",
                       command="set_pose", metadata={"pose": pose, "requires": "commands or a pose editor"})
            duration += POSE_MS
        else:
            draft.risk(f"Unknown pose {pose}; known poses are {', '.join(POSES)}.")
    draft.use(display.name, *pieces.values(), *([hand_item] if is_specified(hand_item) else []))
    draft.metadata.update({"display": display.name, "armor": pieces, "pose": pose,
                           "equipped": len(pieces) + is_specified(hand_item)})
    return duration


def plan_item_frame_task(task: Task, context: Mapping[str, Any]) -> Plan:
    display = _display(task)
    position = target_position(task.target)
    draft = PlanDraft(task, context, summary=f"Place {display.name}.")

    duration = 0.0
    distance = horizontal_distance(extract_player_position(context), position)
    if position is not None and (distance is None or distance > APPROACH_DISTANCE):
        draft.step("Navigate to display spot", f"Walk to {describe_target(position)}.", step_type="movement",
                   command="navigate_to_display", metadata={"target": position, "maxDistance": APPROACH_DISTANCE})
        duration += (distance if distance is not None else 10) * TRAVEL_MS_PER_BLOCK

    if display.kind == "stand":
        duration += _plan_armor_stand(task, draft, display, position)
        draft.metadata.setdefault("status", "ready")
        return draft.build(duration)

    item = metadata_name(task, "item", "displayItem")
    rows = resolve_count(task.meta("rows"), 1)
    columns = resolve_count(task.meta("columns"), 1)
    frames = rows * columns
    surface = normalize_item_name(task.meta("surface")) if task.meta("surface") else "wall"
    if surface not in display.surfaces:
        draft.risk(f"{display.name} cannot be placed on a {surface}; use one of {', '.join(FRAME_SURFACES)}.")
        surface = "wall"
    existing = truthy(task.meta("existingFrame"))
    label = f"{display.name} with {item}" if is_specified(item) else f"empty {display.name}"
    draft.summary = f"Display {item} in a {display.name}." if is_specified(item) else f"Place an {label}."
    if frames > 1:
        draft.summary = f"Build a {rows}x{columns} {display.name} wall."

    if not existing:
        _ensure_display(draft, display, frames)
        where = f"at {describe_target(position)}" if position else f"on the {surface}"
        metadata: dict[str, Any] = {"item": display.name, "surface": surface, "requiresSolidBlock": True,
                                    "count": frames}
        if frames > 1 and position is not None:
            metadata["grid"] = frame_grid(rows, columns, position)
        draft.step("Place frame", f"Place {frames} {display.name}{'s' if frames > 1 else ''} {where}.",
                   step_type="construction", command="place_frame", metadata=metadata)
        duration += PLACE_MS * frames

    steps = 0
    if is_specified(item):
        if find_inventory_item(draft.inventory, item) is None:
            draft.risk(f"No {item} to display.")
            draft.metadata["status"] = "blocked"
        draft.step("Add item", f"Right-click the frame with the {item}.", step_type="action", command="add_item",
                   metadata={"item": item, "action": "right_click"})
        duration += INTERACT_MS * frames
        steps = rotation_steps(task.meta("rotation"), task.meta("angle", "degrees"))
        if steps:
            draft.step("Rotate item", f"Rotate the {item} {steps * ROTATION_DEGREES} degrees.", step_type="action",
                       command="rotate_item", metadata={"rotations": steps, "degrees": steps * ROTATION_DEGREES,
                                                        "action": "right_click_empty_hand"})
            duration += INTERACT_MS * steps
        if item == "map" or item.endswith(" map"):
            draft.note("Place maps in order so adjacent tiles line up.")
    elif task.meta("rotation") is not None:
        draft.note("Rotation ignored: the frame has no item to turn.")

    if display.glows:
        draft.note("Glow item frames keep the item visible in the dark.")
    elif draft.signals.light_level is not None and draft.signals.light_level < DIM_LIGHT:
        draft.note("The area is dark; a glow item frame or a torch would make the display visible.")
    draft.use(display.name, *([item] if is_specified(item) else []))
    draft.metadata.setdefault("status", "ready")
    draft.metadata.update({"display": display.name, "item": item if is_specified(item) else "empty",
                           "rotation": steps, "frames": frames, "surface": surface})
    return draft.build(duration)
