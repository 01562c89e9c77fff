"""Bed rules: when and where an NPC can sleep."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import normalize_item_name

BED_COLORS = (
    "white", "orange", "magenta", "light blue", "yellow", "lime", "pink", "gray",
    "light gray", "cyan", "purple", "blue", "brown", "green", "red", "black",
)
BED_TYPES = tuple(f"{color} bed" for color in BED_COLORS)
DEFAULT_BED = "white bed"

SLEEP_START_TICK = 12_541
SLEEP_END_TICK = 23_458
DAY_TICKS = 24_000
SLEEP_SECONDS = 5.0
WAKE_SECONDS = 1.0
HOSTILE_RADIUS = 8
HOSTILE_VERTICAL_RADIUS = 5
HEADROOM_BLOCKS = 2
PHANTOM_THRESHOLD_DAYS = 3
EXPLOSION_POWER = 5.0

PEACEFUL_MOBS = frozenset({"villager", "iron golem", "cat", "chicken", "cow", "pig", "sheep", "horse", "wolf"})


def is_bed(name: Any) -> bool:
    canonical = normalize_item_name(name)
    return canonical == "bed" or canonical in BED_TYPES


@dataclass(frozen=True, slots=True)
class SleepWindow:
    allowed: bool
    reason: str


def sleep_window(time_of_day: int | None, *, thunderstorm: bool = False) -> SleepWindow:
    """Night ticks 12541-23458 allow sleep; a thunderstorm allows it at any time."""
    if thunderstorm:
        return SleepWindow(True, "thunderstorm")
    if time_of_day is None:
        return SleepWindow(True, "unknown time")
    tick = time_of_day % DAY_TICKS
    if SLEEP_START_TICK <= tick <= SLEEP_END_TICK:
        return SleepWindow(True, "nighttime")
    return SleepWindow(False, "daytime")


def dimension_blocker(dimension: str | None) -> str | None:
    name = (dimension or "overworld").lower().replace("minecraft:", "")
    if "nether" in name:
        return "Beds explode in the Nether."
    if "end" in name:
        return "Beds explode in the End."
    return None


@dataclass(frozen=True, slots=True)
class NearbyHostile:
    kind: str
    distance: float

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "distance": round(self.distance, 1)}


def _coordinate(raw: Any, axis: str) -> float | None:
    value = raw.get(axis) if isinstance(raw, Mapping) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def nearby_hostiles(origin: Mapping[str, float] | None, entities: Iterable[Any]) -> list[NearbyHostile]:
    """Non-peaceful entities inside the 8 block radius and 5 block vertical band around ``origin``."""
    found = []
    origin = origin or {"x": 0.0, "y": 0.0, "z": 0.0}
    for entity in entities:
        if not isinstance(entity, Mapping):
            continue
        kind = normalize_item_name(entity.get("type") or entity.get("name"))
        if kind in PEACEFUL_MOBS:
            continue
        position = entity.get("position") or entity
        coords = [_coordinate(position, axis) for axis in ("x", "y", "z")]
        if None in coords:
            distance = entity.get("distance")
            if isinstance(distance, (int, float)) and not isinstance(distance, bool) and distance <= HOSTILE_RADIUS:
                found.append(NearbyHostile(kind, float(distance)))
            continue
        x, y, z = coords
        horizontal = math.hypot(x - origin["x"], z - origin["z"])
        if horizontal <= HOSTILE_RADIUS and abs(y - origin["y"]) <= HOSTILE_VERTICAL_RADIUS:
            found.append(NearbyHostile(kind, horizontal))
    return found


def headroom_issues(blocks_above: Iterable[Any]) -> list[str]:
    issues = []
    above = list(blocks_above)[:HEADROOM_BLOCKS]
    for offset, block in enumerate(above, start=1):
        name = normalize_item_name(block)
        if name not in {"air", "unspecified item"} and "carpet" not in name:
            issues.append(f"Block at +{offset} ({name}) is obstructing the bed.")
            break
    return issues
