"""Redstone components: flip levers, press buttons, step on plates and check the output."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import extract_player_position, has_inventory_item
from npc_planner.errors import TaskValidationError
from npc_planner.knowledge.mechanisms import ACTIVATES, INTERACTION_RANGE, component_profile
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, normalize_item_name
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, block_reference, horizontal_distance, metadata_names

APPROACH_DISTANCE = 3
BASE_DURATION_MS = 500
ACTIVATION_MS = 100
TRAVEL_MS_PER_BLOCK = 250
VERIFY_MS = 1_000
_PROJECTILES = ("bow", "crossbow", "trident", "snowball", "egg")
_OPERATIONS = {"activate": "on", "on": "on", "deactivate": "off", "off": "off", "toggle": "toggle"}


def _desired_state(task: Task) -> str:
    requested = normalize_item_name(task.meta("operation", "state", "mode"))
    return _OPERATIONS.get(requested, "on")


def plan_redstone_task(task: Task, context: Mapping[str, Any]) -> Plan:
    name, position, record = block_reference(task, context, "component", "targetComponent")
    if not is_specified(name) and position is None:
        raise TaskValidationError("redstone task requires a component or a target location")

    component = component_profile(name)
    desired = _desired_state(task)
    label = component.name if component is not None else (name if is_specified(name) else "redstone component")
    draft = PlanDraft(task, context, summary=f"Activate the {label}.")

    duration = BASE_DURATION_MS
    player = extract_player_position(context)
    distance = horizontal_distance(player, position)
    if position is not None and (distance is None or distance > APPROACH_DISTANCE):
        draft.step("Navigate to component", f"Move within reach of the {label} at {describe_target(position)}.",
                   step_type="movement", command="navigate_to_component",
                   metadata={"target": position, "maxDistance": INTERACTION_RANGE - 1})
        duration += (distance if distance is not None else 10) * TRAVEL_MS_PER_BLOCK

    if component is None:
        draft.risk(f"{label} is not a recognized redstone component; interaction outcome is uncertain.")
        draft.step("Interact with component", f"Use the {label}.", step_type="action", command="interact_component",
                   metadata={"component": label, "interactionType": "use"})
        draft.metadata.update({"component": label, "componentType": None, "status": "uncertain"})
        return draft.build(duration + ACTIVATION_MS)

    if component.kind == "switch":
        current = "on" if record.get("powered") or normalize_item_name(record.get("state")) == "on" else "off"
        new_state = ("off" if current == "on" else "on") if desired == "toggle" else desired
        draft.summary = f"Switch the lever {new_state}."
        if new_state == current:
            draft.step("No change", f"The lever is already {current}.", step_type="planning", command="no_change",
                       metadata={"skip": True, "state": current})
        else:
            draft.step("Toggle lever", f"Flip the lever {new_state.upper()}.", step_type="action",
                       command="toggle_lever",
                       metadata={"currentState": current, "newState": new_state, "duration": "indefinite",
                                 "powerOutput": component.power})
    elif component.kind == "button":
        draft.summary = f"Press the {component.name}."
        draft.step("Press button", f"Press the {component.name}.", step_type="action", command="press_button",
                   metadata={"activationDuration": component.active_seconds, "powerOutput": component.power})
        draft.note(f"The {component.name} stays powered for {component.active_seconds:g}s.")
        if desired == "off":
            draft.note("Buttons reset on their own; there is nothing to switch off.")
    elif component.kind == "pressure plate":
        draft.summary = f"Step on the {component.name}."
        draft.step("Step on plate", f"Step onto the {component.name} and stay on it while power is needed.",
                   step_type="movement", command="step_on_plate",
                   metadata={"activatedBy": ["player", "mob", "item"],
                             "deactivationDelay": component.release_seconds, "powerOutput": component.power})
        draft.note("The plate turns off as soon as the weight is removed.")
    elif component.kind == "target":
        draft.summary = "Hit the target block with a projectile."
        draft.step("Shoot target", "Hit the target block; a hit closer to the centre gives a stronger signal.",
                   step_type="combat", command="shoot_target",
                   metadata={"powerOutput": "1-15 based on accuracy",
                             "activationDuration": component.active_seconds})
        if not any(has_inventory_item(draft.inventory, projectile) for projectile in _PROJECTILES):
            draft.risk("No bow, crossbow, trident or throwable to hit the target block with.")
    else:
        draft.step("Interact with component", f"Trigger the {component.name} ({component.activation}).",
                   step_type="action", command="interact_component",
                   metadata={"component": component.name, "interactionType": component.activation})
        if component.kind == "power source":
            draft.note(f"A {component.name} is always on; place or remove it to change the signal.")
    for requirement in component.requires:
        if not has_inventory_item(draft.inventory, requirement):
            draft.risk(f"The {component.name} needs {requirement}, which is not in inventory.")
    duration += ACTIVATION_MS

    targets = metadata_names(task.meta("connectedTo", "outputs")) or list(ACTIVATES.get(component.kind, ()))
    draft.step("Verify output", f"Check that the connected {', '.join(targets) or 'devices'} respond.",
               step_type="observation", command="verify_output",
               metadata={"expectedPower": component.power, "targets": targets})
    duration += VERIFY_MS

    draft.metadata.update({"component": component.name, "componentType": component.kind, "status": "ready",
                           "outcome": component.to_dict()})
    return draft.build(duration)
