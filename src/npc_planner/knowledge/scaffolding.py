"""Scaffolding structures: patterns, block counts and placement limits."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import normalize_item_name, resolve_count

SUPPORT_RANGE = 6
SCAFFOLDING_PER_CRAFT = 6
BAMBOO_PER_CRAFT = 6
STRING_PER_CRAFT = 1
HIGH_ALTITUDE = 20


@dataclass(frozen=True, slots=True)
class ScaffoldPattern:
    name: str
    kind: str
    seconds_per_block: float
    difficulty: str
    safety: str
    instructions: tuple[str, ...]
    defaults: tuple[tuple[str, int], ...]

    def dimensions(self, requested: Mapping[str, Any]) -> dict[str, int]:
        return {key: resolve_count(requested.get(key), default) for key, default in self.defaults}


PATTERNS: dict[str, ScaffoldPattern] = {
    pattern.name: pattern
    for pattern in (
        ScaffoldPattern("tower", "vertical", 0.5, "easy", "high", (
            "Look straight up",
            "Hold jump and place scaffolding rapidly",
            "Scaffolding stacks automatically on the column below",
            "Sneak to descend quickly",
        ), (("height", 10),)),
        ScaffoldPattern("platform", "horizontal", 1.0, "easy", "medium", (
            "Build a central tower to working height",
            "Place scaffolding outward in all directions",
            f"Stay within {SUPPORT_RANGE} blocks of the nearest support",
            "Add support columns before extending further",
        ), (("width", 3), ("length", 3))),
        ScaffoldPattern("bridge", "bridge", 2.0, "medium", "medium", (
            f"Build a support column every {SUPPORT_RANGE} blocks",
            "Raise each column to bridge height",
            "Connect the columns with horizontal scaffolding",
            "Build two wide for comfortable passage",
        ), (("length", 20), ("height", 10))),
        ScaffoldPattern("staircase", "spiral", 3.0, "hard", "high", (
            "Build a center column",
            "Place scaffolding in a spiral around the center",
            "Gain two to three blocks of height per rotation",
            "Add railings for safety",
        ), (("height", 20),)),
        ScaffoldPattern("cage", "cage", 5.0, "medium", "very high", (
            "Build four corner towers to full height",
            "Connect the corners with scaffolding walls",
            "Add a scaffolding roof",
            "Leave an entrance gap",
        ), (("width", 3), ("length", 3), ("height", 3))),
        ScaffoldPattern("water column", "water", 1.0, "easy", "high", (
            "Place a scaffolding column from bottom to top",
            "Pour a water bucket at the top",
            "Let the water flow down through the scaffolding",
        ), (("height", 10),)),
    )
}

_ALIASES = {
    "simple tower": "tower", "quick ascent": "tower", "pillar": "tower",
    "working platform": "platform", "work platform": "platform",
    "bridge with supports": "bridge",
    "spiral": "staircase", "spiral staircase": "staircase", "safe ascent": "staircase", "stairs": "staircase",
    "mob proof cage": "cage", "mob shelter": "cage", "shelter": "cage",
    "waterlogged column": "water column", "water elevator": "water column",
}


def scaffold_pattern(name: Any) -> ScaffoldPattern | None:
    canonical = normalize_item_name(name)
    return PATTERNS.get(_ALIASES.get(canonical, canonical))


def scaffolding_needed(pattern: ScaffoldPattern, dims: Mapping[str, int]) -> int:
    if pattern.name == "platform":
        return dims["width"] * dims["length"]
    if pattern.name == "bridge":
        supports = math.ceil(dims["length"] / SUPPORT_RANGE)
        return dims["length"] * 2 + supports * dims["height"]
    if pattern.name == "staircase":
        return dims["height"] * 8
    if pattern.name == "cage":
        perimeter = 2 * (dims["width"] + dims["length"])
        return perimeter * dims["height"] + dims["width"] * dims["length"]
    return dims["height"]


def crafting_requirements(shortfall: int) -> dict[str, int]:
    """Six bamboo and one string craft six scaffolding."""
    crafts = math.ceil(max(shortfall, 0) / SCAFFOLDING_PER_CRAFT)
    return {"bamboo": crafts * BAMBOO_PER_CRAFT, "string": crafts * STRING_PER_CRAFT}


def max_reach(pattern: ScaffoldPattern, dims: Mapping[str, int]) -> int:
    """Furthest horizontal distance from a support column."""
    if pattern.name == "platform":
        return max(dims["width"], dims["length"]) // 2
    if pattern.name == "bridge":
        return SUPPORT_RANGE
    return 0
