"""Vertical traversal options: ladders, scaffolding, bubble columns, water landings and vines."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from npc_planner.context import count_inventory_items, has_inventory_item

# Blocks per second.
CLIMB_SPEEDS = {
    "ladder": 2.35,
    "scaffolding up": 2.5,
    "scaffolding down": 6.0,
    "soul sand column": 3.5,
    "magma column": 13.0,
    "vines": 2.35,
}
WATER_LANDING_SECONDS = 2.0
HIGH_FALL_RISK_DISTANCE = 20
LADDERS_PER_CRAFT = 3
STICKS_PER_LADDER_CRAFT = 7

SAFETY_RECOMMENDATIONS = (
    "Place a water bucket at the bottom as a safety net.",
    "Keep climbing input held continuously; letting go mid-column causes a fall.",
    "Carry hay bales or slime blocks to soften an emergency landing.",
)


@dataclass(slots=True)
class ClimbOption:
    method: str
    available: bool
    duration_s: float
    materials_needed: dict[str, int] = field(default_factory=dict)
    difficulty: str = "easy"
    safety: str = "high"
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "available": self.available,
            "durationSeconds": round(self.duration_s, 2),
            "materialsNeeded": dict(self.materials_needed),
            "difficulty": self.difficulty,
            "safety": self.safety,
        }


@dataclass(slots=True)
class RouteAssessment:
    distance: int
    direction: str
    options: list[ClimbOption] = field(default_factory=list)

    @property
    def available(self) -> list[ClimbOption]:
        return [option for option in self.options if option.available]

    def choose(self, method: str | None = None) -> ClimbOption | None:
        """Fastest available option, unless ``method`` names an available one."""
        ready = self.available
        if method:
            forced = next((option for option in ready if option.method == method), None)
            if forced is not None:
                return forced
        return ready[0] if ready else None


def assess_vertical_route(
    distance: int,
    direction: str,
    inventory: Iterable[Any],
    *,
    natural_vines: bool = False,
) -> RouteAssessment:
    inventory = list(inventory)
    assessment = RouteAssessment(distance, direction)
    needed = max(distance, 0)

    ladders = count_inventory_items(inventory, "ladder")
    if ladders:
        assessment.options.append(ClimbOption(
            "ladder", ladders >= needed, distance / CLIMB_SPEEDS["ladder"],
            {"ladder": needed}, notes=("Ladders need a solid wall behind every rung.",),
        ))

    scaffolding = count_inventory_items(inventory, "scaffolding")
    if scaffolding:
        speed = CLIMB_SPEEDS["scaffolding up" if direction == "up" else "scaffolding down"]
        assessment.options.append(ClimbOption(
            "scaffolding", scaffolding >= needed, distance / speed,
            {"scaffolding": needed}, notes=("Self-supporting; break the bottom block to recover the tower.",),
        ))

    has_water = has_inventory_item(inventory, "water bucket")
    has_kelp = has_inventory_item(inventory, "kelp")
    if direction == "down" and has_water:
        assessment.options.append(ClimbOption(
            "water bucket landing", True, WATER_LANDING_SECONDS, {"water bucket": 1},
            difficulty="medium", notes=("Place the water just before landing.",),
        ))
    if direction == "up" and has_water and has_kelp and has_inventory_item(inventory, "soul sand"):
        assessment.options.append(ClimbOption(
            "soul sand column", True, distance / CLIMB_SPEEDS["soul sand column"],
            {"soul sand": 1, "water bucket": 1, "kelp": needed}, difficulty="medium", safety="very high",
        ))
    if direction == "down" and has_water and has_kelp and has_inventory_item(inventory, "magma block"):
        assessment.options.append(ClimbOption(
            "magma column", True, distance / CLIMB_SPEEDS["magma column"],
            {"magma block": 1, "water bucket": 1, "kelp": needed}, difficulty="medium", safety="medium",
            notes=("Magma columns deal damage without a boat or sneaking.",),
        ))
    if natural_vines:
        assessment.options.append(ClimbOption(
            "natural vines", True, distance / CLIMB_SPEEDS["vines"], difficulty="easy", safety="medium",
        ))

    assessment.options.sort(key=lambda option: option.duration_s)
    return assessment
