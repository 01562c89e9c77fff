"""Composter fill chances and bone meal yield estimates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import normalize_item_name

LAYERS_PER_BONE_MEAL = 7
COMPOSTER_RECIPE = {"wooden slab": 7}
HOPPER_ITEMS_PER_SECOND = 2.5

_CHANCES = {
    0.30: ("beetroot seeds", "dried kelp", "glow berries", "grass", "short grass", "hanging roots", "kelp",
           "leaves", "melon seeds", "pumpkin seeds", "sapling", "seagrass", "small dripleaf", "sweet berries",
           "torchflower seeds", "wheat seeds", "pink petals", "moss carpet"),
    0.50: ("cactus", "dried kelp block", "flowering azalea leaves", "glow lichen", "melon slice", "nether sprouts",
           "sugar cane", "tall grass", "twisting vines", "vines", "weeping vines"),
    0.65: ("apple", "azalea", "beetroot", "big dripleaf", "carrot", "cocoa beans", "fern", "flower", "lily pad",
           "melon", "moss block", "mushroom", "nether wart", "pitcher pod", "potato", "pumpkin", "sea pickle",
           "shroomlight", "spore blossom", "torchflower", "wheat", "crimson fungus", "warped fungus",
           "crimson roots", "warped roots"),
    0.85: ("baked potato", "bread", "cookie", "flowering azalea", "hay block", "mushroom block", "nether wart block",
           "warped wart block"),
    1.00: ("cake", "pumpkin pie"),
}

COMPOSTABLES: dict[str, float] = {name: chance for chance, names in _CHANCES.items() for name in names}

# Families matched by suffix, e.g. "oak sapling", "birch leaves", "red mushroom".
_FAMILIES = ("sapling", "leaves", "mushroom", "flower", "tulip")
FLOWERS = ("dandelion", "poppy", "blue orchid", "allium", "azure bluet", "oxeye daisy", "cornflower",
           "lily of the valley", "sunflower", "lilac", "rose bush", "peony", "wither rose")


@dataclass(frozen=True, slots=True)
class Compostable:
    name: str
    chance: float

    @property
    def items_per_bone_meal(self) -> int:
        return math.ceil(LAYERS_PER_BONE_MEAL / self.chance)

    @property
    def rating(self) -> str:
        if self.chance >= 0.85:
            return "excellent"
        if self.chance >= 0.65:
            return "good"
        if self.chance >= 0.5:
            return "fair"
        return "poor"

    def expected_bone_meal(self, count: int) -> int:
        return math.floor(count * self.chance / LAYERS_PER_BONE_MEAL)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "chance": self.chance, "itemsPerBoneMeal": self.items_per_bone_meal,
                "rating": self.rating}


def compostable(name: Any) -> Compostable | None:
    canonical = normalize_item_name(name).removeprefix("minecraft:")
    if canonical in COMPOSTABLES:
        return Compostable(canonical, COMPOSTABLES[canonical])
    if canonical in FLOWERS:
        return Compostable(canonical, COMPOSTABLES["flower"])
    if canonical.endswith("mushroom block"):
        return Compostable(canonical, COMPOSTABLES["mushroom block"])
    for family in _FAMILIES:
        if canonical.endswith(family) or canonical.endswith(f"{family}s"):
            return Compostable(canonical, COMPOSTABLES["flower" if family == "tulip" else family])
    return None


@dataclass(slots=True)
class CompostBatch:
    item: Compostable
    count: int

    @property
    def expected_layers(self) -> float:
        return self.count * self.item.chance


def plan_batches(available: list[tuple[str, int]], target: int) -> tuple[list[CompostBatch], int]:
    """Greedy pick from the best-chance items until ``target`` bone meal is expected.

    Layers carry over between items, so the expected total is computed from the summed layers.
    """
    candidates = [(compostable(name), count) for name, count in available]
    ranked = sorted(((item, count) for item, count in candidates if item is not None and count > 0),
                    key=lambda entry: entry[0].chance, reverse=True)
    batches: list[CompostBatch] = []
    layers = 0.0
    needed_layers = target * LAYERS_PER_BONE_MEAL
    for item, count in ranked:
        if layers >= needed_layers:
            break
        use = min(count, math.ceil((needed_layers - layers) / item.chance))
        batches.append(CompostBatch(item, use))
        layers += use * item.chance
    return batches, math.floor(layers / LAYERS_PER_BONE_MEAL + 1e-9)
