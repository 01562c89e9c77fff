"""Minecart rides along a rail route, optionally laying the track first."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from npc_planner.context import extract_player_position, find_inventory_item
from npc_planner.errors import TaskValidationError
from npc_planner.knowledge.transport import (
    MINECARTS,
    POWER_RANGE,
    STATIONS,
    RailRoute,
    format_duration,
    minecart_profile,
    plan_rail_route,
    rail_profile,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_name, truthy

PLACE_MS = 1_000
BOARD_MS = 500
BUILD_MS_PER_BLOCK = 2_000
STATION_MS = 15_000


def _carried(draft: PlanDraft, name: str) -> int:
    """Exact-name count, so plain "rail" or "minecart" does not match the powered or chest variants."""
    return sum(item.count for item in draft.inventory if item.name == name)


def _lay_track(draft: PlanDraft, route: RailRoute, start: Mapping[str, float], end: Mapping[str, float]) -> float:
    requirements = route.requirements
    shortages = []
    for rail_name, needed in (("rail", requirements.regular_rails), ("powered rail", requirements.powered_rails)):
        have = _carried(draft, rail_name)
        if have < needed:
            rail = rail_profile(rail_name)
            recipe = ", ".join(f"{count} {item}" for item, count in rail.recipe.items())
            draft.risk(f"Not enough {rail_name}: need {needed}, have {have} ({recipe} makes {rail.yield_count}).")
            draft.prerequisite("craft", f"Craft {needed - have} {rail_name}",
                               metadata={"item": rail_name, "quantity": needed - have, "reason": "missing_rails"})
            shortages.append(rail_name)

    draft.step("Build loading station", f"Build a loading station at {describe_target(start)}.",
               step_type="construction", command="build_loading_station",
               metadata={"position": dict(start), **STATIONS["loading"]})
    draft.step("Lay rails", f"Lay {route.distance} blocks of track toward {describe_target(end)}.",
               step_type="construction", command="lay_rails",
               metadata={"regularRails": requirements.regular_rails, "poweredRails": requirements.powered_rails})
    if route.elevation > 0:
        draft.step("Place uphill powered rails", f"Power every block of the {route.elevation:g}-block climb.",
                   step_type="construction", command="place_uphill_powered_rails",
                   metadata={"uphillBlocks": route.elevation})
    torches = math.ceil(requirements.powered_rails / POWER_RANGE)
    if torches:
        draft.step("Add redstone power", f"Place {torches} redstone torch{'es' if torches != 1 else ''} "
                   "beside or under the powered rails.", step_type="construction", command="add_redstone_power",
                   metadata={"redstoneTorches": torches})
    draft.step("Build unloading station", f"Build an unloading station at {describe_target(end)}.",
               step_type="construction", command="build_unloading_station",
               metadata={"position": dict(end), **STATIONS["unloading"]})
    draft.use("rail", "powered rail", "redstone torch")
    if shortages:
        draft.metadata["status"] = "blocked"
    return route.distance * BUILD_MS_PER_BLOCK + 2 * STATION_MS


def plan_minecart_task(task: Task, context: Mapping[str, Any]) -> Plan:
    destination = target_position(task.meta("destination")) or target_position(task.target)
    if destination is None:
        raise TaskValidationError("minecart task requires a destination")

    requested = metadata_name(task, "minecart", "cartType", fallback="minecart")
    cart = minecart_profile(requested)
    draft = PlanDraft(task, context, summary=f"Ride a minecart to {describe_target(destination)}.")
    if cart is None:
        draft.risk(f"{requested} is not a known minecart; using a plain minecart.")
        cart = MINECARTS["minecart"]

    start = target_position(task.meta("start")) or extract_player_position(context) or \
        {"x": 0.0, "y": 0.0, "z": 0.0}
    route = plan_rail_route(start, destination, optimal=not truthy(task.meta("minimalPower")),
                            max_speed=cart.max_speed)

    duration = 0.0
    if truthy(task.meta("buildRails", "layTrack")):
        draft.summary = f"Lay {route.distance} blocks of track and ride to {describe_target(destination)}."
        duration += _lay_track(draft, route, start, destination)
    elif task.meta("railsPresent") is False:
        draft.risk("No rails reported along the route; set buildRails to lay track first.")

    if not _carried(draft, cart.name):
        recipe = ", ".join(f"{count} {item}" for item, count in cart.recipe.items())
        draft.risk(f"No {cart.name} in inventory; craft one from {recipe}.")
        draft.prerequisite("craft", f"Craft a {cart.name}",
                           metadata={"item": cart.name, "quantity": 1, "reason": "missing_minecart"})
        draft.metadata["status"] = "blocked"

    draft.step("Place minecart", f"Place the {cart.name} on the rails.", step_type="action",
               command="place_minecart", metadata={"item": cart.name, "requiresRails": True})
    duration += PLACE_MS
    if cart.passengers:
        draft.step("Enter minecart", "Right-click the minecart to board it.", step_type="movement",
                   command="enter_minecart",
                   metadata={"controls": {"forward": "accelerate", "backward": "brake", "sneak": "exit"}})
    else:
        draft.risk(f"A {cart.name} cannot carry passengers; it will travel alone.")
        draft.step("Push minecart", f"Push the {cart.name} to start it moving.", step_type="movement",
                   command="push_minecart", metadata={"item": cart.name})
    duration += BOARD_MS

    if cart.fuel:
        fuel = next((item for item in cart.fuel if find_inventory_item(draft.inventory, item)), None)
        if fuel is None:
            draft.risk(f"The {cart.name} needs {' or '.join(cart.fuel)} to move.")
        else:
            draft.step("Fuel minecart", f"Feed {fuel} to the {cart.name}.", step_type="preparation",
                       command="fuel_minecart", metadata={"fuel": fuel})
            draft.use(fuel)

    draft.step("Travel", f"Travel {route.distance} blocks to {describe_target(destination)} "
               f"({format_duration(route.seconds)}).", step_type="movement", command="travel",
               metadata={"distance": route.distance, "travelTime": round(route.seconds, 1),
                         "averageSpeed": round(route.distance / route.seconds, 1) if route.seconds else 0})
    duration += route.seconds * 1000
    if cart.passengers:
        draft.step("Exit minecart", "Sneak to leave the minecart and pick it back up.", step_type="movement",
                   command="exit_minecart", metadata={"collectMinecart": True})
        duration += BOARD_MS

    for recommendation in route.recommendations:
        draft.note(recommendation)
    if cart.activators:
        draft.note(f"Activated by: {', '.join(cart.activators)}.")
    draft.use(cart.name)
    draft.metadata.setdefault("status", "ready")
    draft.metadata.update({"minecart": cart.to_dict(), "route": route.to_dict(),
                           "travelTime": format_duration(route.seconds)})
    return draft.build(duration)
