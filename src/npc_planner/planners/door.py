"""Doors, trapdoors and fence gates: open, close or toggle, with redstone for iron variants."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import extract_player_position, find_inventory_item
from npc_planner.errors import TaskValidationError
from npc_planner.knowledge.mechanisms import (
    DEFAULT_MECHANISM,
    INTERACTION_SECONDS,
    activation_mechanism,
    assess_door_security,
    door_profile,
    door_state_change,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, normalize_item_name
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, block_reference, horizontal_distance, truthy

APPROACH_DISTANCE = 3
BASE_DURATION_MS = 500
TRAVEL_MS_PER_BLOCK = 250
PLACE_MECHANISM_MS = 1_500
_OPERATIONS = {"open": "open", "close": "close", "shut": "close", "toggle": "toggle"}


def _operation(task: Task) -> str:
    requested = normalize_item_name(task.meta("operation", "doorAction", "state"))
    if requested in _OPERATIONS:
        return _OPERATIONS[requested]
    details = (task.details or "").lower()
    for word, operation in _OPERATIONS.items():
        if word in details.split():
            return operation
    return "toggle"


def plan_door_task(task: Task, context: Mapping[str, Any]) -> Plan:
    name, position, record = block_reference(task, context, "door", "targetDoor")
    if not is_specified(name) and position is None:
        raise TaskValidationError("door task requires a door or a target location")

    operation = _operation(task)
    door = door_profile(name)
    draft = PlanDraft(task, context, summary=f"{operation.capitalize()} the door.")
    if door is None:
        draft.risk(f"{name if is_specified(name) else 'Target block'} is not a recognized door; "
                   "treating it as a wooden door.")
        door = door_profile("oak door")

    is_open = truthy(record.get("open", task.meta("open", "isOpen")))
    change = door_state_change(is_open, operation)
    label = name if is_specified(name) and door_profile(name) is not None else door.kind
    draft.summary = (f"{change.verb.capitalize()} the {label}." if change.changed
                     else f"Leave the {label} {change.current}.")
    draft.metadata.update({
        "door": door.name,
        "doorType": door.kind,
        "material": door.material,
        "operation": operation,
        "outcome": {"previousState": change.current, "newState": change.new, "changed": change.changed},
    })

    duration = BASE_DURATION_MS
    player = extract_player_position(context)
    distance = horizontal_distance(player, position)
    if position is not None and (distance is None or distance > APPROACH_DISTANCE):
        draft.step("Navigate to door", f"Move to the {door.kind} at {describe_target(position)}.",
                   step_type="movement", command="navigate_to_door",
                   metadata={"target": position, "maxDistance": APPROACH_DISTANCE})
        duration += (distance if distance is not None else 10) * TRAVEL_MS_PER_BLOCK
    elif position is None:
        draft.note("Door position unknown; interacting with the nearest matching door.")

    mechanism_name = record.get("mechanism") or task.meta("mechanism", "redstoneMechanism")
    if not change.changed:
        draft.step("No change", f"The {door.kind} is already {change.current}.", step_type="planning",
                   command="no_change", metadata={"skip": True, "state": change.current})
    elif door.requires_power:
        mechanism = activation_mechanism(mechanism_name or DEFAULT_MECHANISM)
        existing = bool(mechanism_name) or truthy(record.get("powered", task.meta("hasMechanism")))
        if not existing:
            on_hand = find_inventory_item(draft.inventory, mechanism.item) or \
                find_inventory_item(draft.inventory, mechanism.name)
            if on_hand is not None:
                draft.step(f"Place {mechanism.name}", f"Place a {on_hand.name} {mechanism.placement}.",
                           step_type="construction", command="place_mechanism", metadata=mechanism.to_dict())
                draft.use(on_hand.name)
                duration += PLACE_MECHANISM_MS
            else:
                draft.risk(f"{door.name} can only be opened with redstone and no {mechanism.item} is available.")
                draft.prerequisite("craft", f"Craft a {mechanism.item} to power the {door.name}",
                                   metadata={"item": mechanism.item, "quantity": 1, "reason": "missing_mechanism"})
                draft.metadata["status"] = "blocked"
        draft.step("Activate redstone", f"Use the {mechanism.name} to {change.verb} the {door.name}.",
                   step_type="action", command="activate_redstone",
                   metadata={"mechanism": mechanism.name, "currentState": change.current, "newState": change.new,
                             "signalDuration": mechanism.hold})
        if mechanism.warning:
            draft.risk(mechanism.warning)
        draft.metadata["redstonePlan"] = mechanism.to_dict()
        if mechanism.name == "button" and change.new == "open":
            draft.note("A button only holds the door open for about a second; pass through promptly.")
    else:
        draft.step("Interact door", f"{change.verb.capitalize()} the {door.kind} by hand.", step_type="action",
                   command="interact_door",
                   metadata={"door": position, "currentState": change.current, "newState": change.new,
                             "interactionTime": INTERACTION_SECONDS})
    duration += INTERACTION_SECONDS * 1000

    security = assess_door_security(
        door,
        near_villagers=truthy(task.meta("nearVillagers")),
        light_level=draft.signals.light_level,
        mechanism=mechanism_name,
        airlock=truthy(task.meta("airlock")),
    )
    draft.metadata["security"] = security.to_dict()
    if change.new == "open" and draft.signals.hostiles:
        draft.risk("Hostile mobs nearby; an open door lets them in.")
    if change.new == "closed" and door.zombie_breakable and draft.signals.is_night:
        draft.note("Zombies can break wooden doors on hard difficulty; consider an iron door.")
    for recommendation in security.recommendations:
        draft.note(recommendation)
    draft.metadata.setdefault("status", "ready")
    return draft.build(duration)
