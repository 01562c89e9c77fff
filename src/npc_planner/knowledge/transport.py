"""Minecarts and rails: cart catalog, rail material estimates and route timing."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name

MAX_SPEED = 8.0
# Carts spend time accelerating and braking, so the average sits below top speed.
AVERAGE_SPEED_FACTOR = 0.8
OPTIMAL_POWER_SPACING = 8
MINIMAL_POWER_SPACING = 38
POWER_RANGE = 9
RAILS_PER_CRAFT = 16
POWERED_RAILS_PER_CRAFT = 6
LONG_ROUTE = 500


@dataclass(frozen=True, slots=True)
class MinecartType:
    name: str
    kind: str
    capacity: int
    max_speed: float = MAX_SPEED
    passengers: bool = False
    fuel: tuple[str, ...] = ()
    activators: tuple[str, ...] = ()
    recipe: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.kind, "capacity": self.capacity, "maxSpeed": self.max_speed,
                "carriesPassengers": self.passengers}


MINECARTS: dict[str, MinecartType] = {
    cart.name: cart
    for cart in (
        MinecartType("minecart", "passenger", 1, passengers=True, recipe={"iron ingot": 5}),
        MinecartType("chest minecart", "storage", 27, recipe={"minecart": 1, "chest": 1}),
        MinecartType("furnace minecart", "powered", 0, max_speed=4.0, fuel=("coal", "charcoal"),
                     recipe={"minecart": 1, "furnace": 1}),
        MinecartType("hopper minecart", "hopper", 5, activators=("activator rail",),
                     recipe={"minecart": 1, "hopper": 1}),
        MinecartType("tnt minecart", "explosive", 0, activators=("activator rail", "fire", "lava", "explosion"),
                     recipe={"minecart": 1, "tnt": 1}),
    )
}


@dataclass(frozen=True, slots=True)
class RailType:
    name: str
    powered: bool
    can_turn: bool
    yield_count: int
    recipe: dict[str, int]


RAILS: dict[str, RailType] = {
    rail.name: rail
    for rail in (
        RailType("rail", False, True, RAILS_PER_CRAFT, {"iron ingot": 6, "stick": 1}),
        RailType("powered rail", True, False, POWERED_RAILS_PER_CRAFT,
                 {"gold ingot": 6, "stick": 1, "redstone dust": 1}),
        RailType("detector rail", False, False, 6, {"iron ingot": 6, "stone pressure plate": 1, "redstone dust": 1}),
        RailType("activator rail", True, False, 6, {"iron ingot": 6, "stick": 2, "redstone torch": 1}),
    )
}

STATIONS = {
    "loading": {"description": "Passengers board the cart", "components": ["powered rail", "button"],
                "materials": {"powered rail": 3, "button": 1, "redstone torch": 1}},
    "unloading": {"description": "Carts stop and passengers exit", "components": ["powered rail", "activator rail"],
                  "materials": {"powered rail": 5, "activator rail": 1}},
}


def minecart_profile(name: Any) -> MinecartType | None:
    canonical = normalize_item_name(name).removeprefix("minecraft:")
    if canonical in MINECARTS:
        return MINECARTS[canonical]
    padded = f" {canonical} "
    mentioned = [key for key in MINECARTS if f" {key} " in padded]
    return MINECARTS[max(mentioned, key=len)] if mentioned else None


def rail_profile(name: Any) -> RailType | None:
    return RAILS.get(normalize_item_name(name))


@dataclass(slots=True)
class RailRequirements:
    distance: int
    regular_rails: int
    powered_rails: int
    materials: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {"distance": self.distance, "regularRails": self.regular_rails, "poweredRails": self.powered_rails,
                "materials": dict(self.materials)}


def rail_requirements(distance: int, *, uphill: int = 0, downhill: int = 0, optimal: bool = True) -> RailRequirements:
    """Every uphill block needs a powered rail; flat track gets one per spacing interval."""
    flat = max(0, distance - uphill - downhill)
    spacing = OPTIMAL_POWER_SPACING if optimal else MINIMAL_POWER_SPACING
    powered = uphill + math.ceil(flat / spacing) + math.ceil(downhill / MINIMAL_POWER_SPACING)
    powered = min(powered, max(distance, uphill))
    regular = max(0, distance - powered)
    rail_crafts = math.ceil(regular / RAILS_PER_CRAFT)
    powered_crafts = math.ceil(powered / POWERED_RAILS_PER_CRAFT)
    materials = {
        "iron ingot": rail_crafts * RAILS["rail"].recipe["iron ingot"],
        "gold ingot": powered_crafts * RAILS["powered rail"].recipe["gold ingot"],
        "stick": rail_crafts + powered_crafts,
        "redstone dust": powered_crafts,
    }
    return RailRequirements(distance, regular, powered, {k: v for k, v in materials.items() if v})


def travel_seconds(distance: float, max_speed: float = MAX_SPEED) -> float:
    return distance / (max_speed * AVERAGE_SPEED_FACTOR) if distance > 0 else 0.0


def format_duration(seconds: float) -> str:
    return f"{int(seconds // 60)}m {int(seconds % 60)}s"


@dataclass(slots=True)
class RailRoute:
    start: dict[str, float]
    end: dict[str, float]
    distance: int
    elevation: float
    requirements: RailRequirements
    seconds: float
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "distance": self.distance,
            "elevation": self.elevation,
            "railRequirements": self.requirements.to_dict(),
            "travelTime": round(self.seconds, 1),
            "travelTimeFormatted": format_duration(self.seconds),
        }


def plan_rail_route(start: Mapping[str, float], end: Mapping[str, float], *, optimal: bool = True,
                    max_speed: float = MAX_SPEED) -> RailRoute:
    dy = end["y"] - start["y"]
    distance = math.ceil(math.hypot(end["x"] - start["x"], end["z"] - start["z"]))
    uphill = math.ceil(dy) if dy > 0 else 0
    downhill = math.ceil(-dy) if dy < 0 else 0
    requirements = rail_requirements(distance, uphill=uphill, downhill=downhill, optimal=optimal)
    recommendations = []
    if dy > 0:
        recommendations.append("Route goes uphill and needs a powered rail on every rising block.")
    elif dy < 0:
        recommendations.append("Route goes downhill; brake with unpowered rails at the destination.")
    if distance > LONG_ROUTE:
        recommendations.append("Long route; consider a mid-point station.")
    spacing = OPTIMAL_POWER_SPACING if optimal else MINIMAL_POWER_SPACING
    recommendations.append(f"Powered rail every {spacing} blocks on flat track.")
    return RailRoute(dict(start), dict(end), distance, dy, requirements, travel_seconds(distance, max_speed),
                     recommendations)
