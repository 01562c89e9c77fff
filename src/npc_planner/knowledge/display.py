"""Item frames and armor stands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name

ROTATION_DEGREES = 45
ROTATION_STEPS = 8
FRAME_SURFACES = ("wall", "floor", "ceiling")


@dataclass(frozen=True, slots=True)
class DisplayProfile:
    name: str
    kind: str
    glows: bool = False
    surfaces: tuple[str, ...] = FRAME_SURFACES
    recipe: dict[str, int] = field(default_factory=dict)

    def recipe_text(self) -> str:
        return " + ".join(f"{count} {item}" for item, count in self.recipe.items())


DISPLAYS: dict[str, DisplayProfile] = {
    profile.name: profile
    for profile in (
        DisplayProfile("item frame", "frame", recipe={"stick": 8, "leather": 1}),
        DisplayProfile("glow item frame", "frame", glows=True, recipe={"item frame": 1, "glow ink sac": 1}),
        DisplayProfile("armor stand", "stand", surfaces=("floor",), recipe={"stick": 6, "smooth stone slab": 1}),
    )
}

_ALIASES = {"frame": "item frame", "glow frame": "glow item frame", "stand": "armor stand"}

ARMOR_SLOTS = ("helmet", "chestplate", "leggings", "boots")
SLOT_NAMES = {"helmet": "head", "chestplate": "chest", "leggings": "legs", "boots": "feet"}
POSES = ("default", "walking", "running", "sneaking", "blocking", "pointing", "saluting", "sitting")


def display_profile(name: Any) -> DisplayProfile | None:
    canonical = normalize_item_name(name).removeprefix("minecraft:")
    canonical = _ALIASES.get(canonical, canonical)
    return DISPLAYS.get(canonical)


def rotation_steps(rotation: Any = None, degrees: Any = None) -> int:
    """Clicks needed to turn a framed item; ``degrees`` snaps to the nearest 45 degree step."""
    if degrees is not None:
        try:
            return round(float(degrees) / ROTATION_DEGREES) % ROTATION_STEPS
        except (TypeError, ValueError):
            return 0
    try:
        return int(rotation) % ROTATION_STEPS
    except (TypeError, ValueError):
        return 0


def frame_grid(rows: int, columns: int, origin: dict[str, float]) -> list[dict[str, Any]]:
    """Wall grid for map art, filled left to right and top to bottom from ``origin``."""
    return [
        {"row": row, "column": column, "index": row * columns + column,
         "position": {"x": origin["x"] + column, "y": origin["y"] - row, "z": origin["z"]}}
        for row in range(rows)
        for column in range(columns)
    ]


def armor_slot(item: Any) -> str | None:
    canonical = normalize_item_name(item)
    if canonical in {"turtle shell", "carved pumpkin"}:
        return "helmet"
    return next((slot for slot in ARMOR_SLOTS if canonical.endswith(slot)), None)
