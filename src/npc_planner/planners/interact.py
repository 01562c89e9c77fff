"""Container and block interaction: open, transfer items, record, secure."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from npc_planner.context import has_inventory_item
from npc_planner.models import Task
from npc_planner.normalize import (
    describe_target,
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_quantity,
    target_position,
)
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, require_target, truthy

DEFAULT_DURATION_MS = 7_000
BUFFER_MS = 3_000
LINKED_CONTAINER_MS = 1_500

_UNSAFE_COMMAND_CHARS = re.compile(r"[^0-9\s.\-]")


def _transfer_entries(raw: Any) -> list[dict[str, Any]]:
    entries = []
    for entry in metadata_list(raw):
        if isinstance(entry, Mapping):
            name = normalize_item_name(entry.get("name") or entry.get("item"))
            count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
        else:
            name, count = normalize_item_name(entry), None
        if is_specified(name):
            entries.append({"name": name, "count": count} if count else {"name": name})
    return entries


def command_coordinates(target: Any) -> str:
    """``"x y z"`` block coordinates for a data command; other targets are stripped to digits."""
    position = target_position(target)
    if position is not None:
        return " ".join(str(math.floor(position[axis])) for axis in ("x", "y", "z"))
    return " ".join(_UNSAFE_COMMAND_CHARS.sub("", describe_target(target)).split())


def plan_interact_task(task: Task, context: Mapping[str, Any]) -> Plan:
    require_target(task, "interact with")
    container = metadata_name(task, "container", "block", fallback="chest")
    interaction = metadata_name(task, "interaction", fallback="open container")
    transfer = task.meta("transfer") or {}
    take = _transfer_entries(transfer.get("take")) if isinstance(transfer, Mapping) else []
    store = _transfer_entries(transfer.get("store")) if isinstance(transfer, Mapping) else []
    key = metadata_name(task, "requiresKey")
    hold_item = metadata_name(task, "holdItem")
    seconds = resolve_quantity(task.meta("duration"), None)
    linked = [describe_target(entry) for entry in metadata_list(task.meta("linkedContainers", "network"))]

    draft = PlanDraft(task, context, summary="")
    draft.summary = f"Interact with {container} at {draft.target_description}."
    missing_key = is_specified(key) and not has_inventory_item(draft.inventory, key)

    if is_specified(key):
        verb = "Retrieve" if missing_key else "Keep"
        ending = "required to unlock" if missing_key else "ready to unlock"
        draft.step("Prepare key", f"{verb} the {key} {ending} the {container}.", step_type="preparation",
                   metadata={"key": key, "missing": missing_key})

    if is_specified(hold_item):
        draft.step("Select tool", f"Hold {hold_item} before interacting to trigger the correct behavior.",
                   step_type="preparation", metadata={"item": hold_item})

    draft.step("Approach", f"Move to {container} located at {draft.target_description}.", step_type="movement")

    if seconds:
        description = (f"Perform {interaction} on the {container} and keep it open for {seconds:g} seconds to "
                       "complete transfers.")
    else:
        description = (f"Perform {interaction} on the {container}, ensuring the inventory GUI remains open long "
                       "enough for transfers.")
    draft.step("Interact", description, step_type="interaction",
               command=f"/data get block {command_coordinates(task.target)} Items",
               metadata={"interaction": interaction, "container": container})

    if take or store:
        parts = []
        if take:
            parts.append(f"retrieve {format_requirement_list(take)}")
        if store:
            parts.append(f"deposit {format_requirement_list(store)}")
        draft.step("Manage inventory", f"Within the {container}, {' and '.join(parts)}. Confirm slot counts "
                   "afterwards.", step_type="inventory", metadata={"take": take, "store": store})

    if linked:
        draft.step("Check linked containers", f"Review the connected storage network ({', '.join(linked)}) for "
                   "overflow or sorted items.", step_type="inventory", metadata={"linkedContainers": linked})

    if truthy(task.meta("recordContents")):
        draft.step("Record contents", f"Log notable items inside the {container} for tracking.", step_type="report")

    draft.step("Secure container", f"Close the {container} and ensure no items spill on the ground.",
               step_type="cleanup")

    if missing_key:
        draft.risk(f"Missing required key item ({key}).")
    if truthy(task.meta("redstoneLinked")):
        draft.risk("Redstone linkage may trigger traps when opened.")
    if task.meta("ownership"):
        draft.note(f"Container owned by {task.meta('ownership')}; ensure permissions before interacting.")

    draft.use(container, *(entry["name"] for entry in take + store))
    if is_specified(key):
        draft.use(key)
    if is_specified(hold_item):
        draft.use(hold_item)
    draft.metadata.update({"container": container, "interaction": interaction, "transfer": {"take": take,
                                                                                              "store": store}})
    duration = seconds * 1000 + BUFFER_MS if seconds else DEFAULT_DURATION_MS
    return draft.build(duration + len(linked) * LINKED_CONTAINER_MS)
