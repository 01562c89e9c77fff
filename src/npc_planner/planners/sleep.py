"""Sleeping: find or place a bed, check the blockers, sleep through the night."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import bridge_state, context_value, extract_player_position, find_inventory_item
from npc_planner.knowledge.rest import (
    BED_TYPES,
    DEFAULT_BED,
    EXPLOSION_POWER,
    PHANTOM_THRESHOLD_DAYS,
    SLEEP_SECONDS,
    WAKE_SECONDS,
    dimension_blocker,
    headroom_issues,
    is_bed,
    nearby_hostiles,
    sleep_window,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, normalize_item_name, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, horizontal_distance, metadata_list, truthy

ADJACENT_DISTANCE = 3
PLACE_MS = 1_500
TRAVEL_MS_PER_BLOCK = 250
CLEAR_HOSTILE_MS = 4_000
WAIT_FOR_NIGHT_MS = 30_000


def _bed_location(task: Task, context: Mapping[str, Any]) -> tuple[dict[str, float] | None, str | None]:
    bed = task.meta("bed")
    if isinstance(bed, Mapping):
        position = target_position(bed.get("position") or bed)
        if position is not None:
            return position, normalize_item_name(bed.get("type") or "bed")
    position = target_position(task.target)
    if position is not None:
        return position, "bed"
    if truthy(task.meta("nearestBed")) or context_value(context, "nearestBedLocation"):
        return target_position(context_value(context, "nearestBedLocation", "nearest_bed_location")), "bed"
    return None, None


def _entities(context: Mapping[str, Any]) -> list[Any]:
    raw = context_value(context, "nearbyEntities", "nearby_entities")
    if raw is None:
        raw = bridge_state(context).get("nearbyEntities", bridge_state(context).get("entities"))
    return metadata_list(raw)


def plan_sleep_task(task: Task, context: Mapping[str, Any]) -> Plan:
    draft = PlanDraft(task, context, summary="Sleep in a bed until dawn.")
    signals = draft.signals
    player = extract_player_position(context)
    bed_position, bed_kind = _bed_location(task, context)
    bed_item = None
    if bed_position is None:
        wanted = normalize_item_name(task.meta("bedType"))
        candidates = (wanted,) if is_bed(wanted) else BED_TYPES
        bed_item = next((item for item in (find_inventory_item(draft.inventory, name) for name in candidates)
                         if item is not None), None)
        if bed_item is None:
            bed_item = next((item for item in draft.inventory if is_bed(item.name)), None)

    window = sleep_window(signals.time_of_day, thunderstorm=signals.storm or truthy(task.meta("thunderstorm")))
    explosion = dimension_blocker(signals.dimension)
    origin = bed_position or player
    hostiles = nearby_hostiles(origin, _entities(context))
    world = context_value(context, "worldData", "world_data", default={})
    blocks_above = world.get("blocksAbove", []) if isinstance(world, Mapping) else []
    obstructions = headroom_issues(blocks_above) if bed_position else []

    blockers: list[str] = []
    if not window.allowed:
        blockers.append("You can only sleep at night or during thunderstorms.")
    if explosion:
        blockers.append(explosion)
    if hostiles:
        blockers.append(f"{len(hostiles)} hostile mob(s) within 8 blocks of the bed.")
    blockers.extend(obstructions)

    draft.metadata.update({
        "blockers": blockers,
        "sleepWindow": window.reason,
        "threats": [hostile.to_dict() for hostile in hostiles],
    })

    if explosion:
        draft.summary = "Do not sleep here; beds explode outside the Overworld."
        draft.step("Abort sleep", f"{explosion} Return to the Overworld before using a bed.", step_type="planning",
                   command="abort_sleep", metadata={"explosionPower": EXPLOSION_POWER})
        for blocker in blockers:
            draft.risk(blocker)
        draft.risk(f"Using a bed here causes a power {EXPLOSION_POWER:g} explosion.")
        draft.metadata.update({"status": "blocked", "danger": True})
        return draft.build(PLACE_MS)

    if bed_position is None and bed_item is None:
        draft.summary = "Obtain a bed before sleeping."
        draft.step("Obtain bed", "No bed available; craft one from 3 wool and 3 planks or find one in a village.",
                   step_type="inventory", command="obtain_bed", metadata={"item": DEFAULT_BED})
        draft.risk("No bed available.")
        draft.prerequisite("craft", f"Craft a {DEFAULT_BED}",
                           metadata={"item": DEFAULT_BED, "quantity": 1, "reason": "missing_bed"})
        draft.metadata["status"] = "blocked"
        draft.use(DEFAULT_BED)
        return draft.build(WAIT_FOR_NIGHT_MS)

    duration = (SLEEP_SECONDS + WAKE_SECONDS) * 1000
    if not window.allowed:
        draft.step("Wait for night", "Wait until after sunset (tick 12541) or for a thunderstorm.",
                   step_type="timed", command="wait_for_night", metadata={"sleepableFrom": 12541})
        duration += WAIT_FOR_NIGHT_MS

    if bed_item is not None:
        placement = task.meta("placePosition") or "current position"
        draft.step("Place bed", f"Place the {bed_item.name} on flat ground with two blocks of headroom.",
                   step_type="construction", command="place_bed",
                   metadata={"item": bed_item.name, "position": placement})
        draft.use(bed_item.name)
        duration += PLACE_MS
    elif bed_position is not None:
        distance = horizontal_distance(player, bed_position)
        if distance is None or distance > ADJACENT_DISTANCE:
            draft.step("Navigate to bed", f"Navigate to the {bed_kind} at {describe_target(bed_position)}.",
                       step_type="movement", command="navigate_to_bed",
                       metadata={"target": bed_position, "maxDistance": 2})
            duration += (distance or 10) * TRAVEL_MS_PER_BLOCK

    if hostiles:
        draft.step("Clear hostiles", f"Clear {len(hostiles)} hostile mob(s) within 8 blocks before sleeping.",
                   step_type="combat", command="clear_hostiles",
                   metadata={"targets": [hostile.to_dict() for hostile in hostiles]})
        duration += CLEAR_HOSTILE_MS * len(hostiles)

    draft.step("Sleep", "Lie down in the bed and sleep.", step_type="action", command="sleep",
               metadata={"durationSeconds": SLEEP_SECONDS, "interruptible": True,
                         "interruptConditions": ["hostile mob nearby", "player damage", "bed destroyed"]})
    draft.step("Wake up", "Wake up at dawn with the respawn point set.", step_type="action", command="wake_up",
               metadata={"newTimeOfDay": 0, "wakeDelaySeconds": WAKE_SECONDS})

    for blocker in blockers:
        draft.risk(blocker)
    draft.note("Sleeping sets the respawn point.")
    player_state = context_value(context, "playerState", "player_state", default={})
    days = player_state.get("daysSinceRest") if isinstance(player_state, Mapping) else None
    if isinstance(days, (int, float)) and not isinstance(days, bool) and days >= PHANTOM_THRESHOLD_DAYS:
        draft.note("Phantom spawn timer will reset after sleeping.")
    if window.reason == "unknown time":
        draft.note("Time of day unknown; sleep only works at night or during a thunderstorm.")

    draft.metadata.update({"status": "blocked" if blockers else "ready", "bed": bed_position or bed_item.name})
    return draft.build(duration)
