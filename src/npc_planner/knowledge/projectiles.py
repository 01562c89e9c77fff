"""Thrown items and ranged weapons: ballistics, damage and ammunition rules."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name

MAX_THROW_DISTANCE = 120
CHARGE_SECONDS = 0.2
SPLASH_RADIUS = 4
# Accuracy multiplier by how the thrower is moving.
MOVEMENT_ACCURACY = {"standing": 1.0, "walking": 0.95, "moving": 0.95, "jumping": 0.9, "sprinting": 0.85,
                     "in air": 0.7}


@dataclass(frozen=True, slots=True)
class Throwable:
    name: str
    kind: str
    velocity: float
    gravity: bool = True
    damage: float = 0
    cooldown: float = 0
    consumed: bool = True
    effects: tuple[str, ...] = ()
    hit_effect: str | None = None
    splash_radius: float | None = None
    linger_seconds: float | None = None
    fall_damage: float = 0
    break_chance: float = 0

    @property
    def trajectory(self) -> str:
        return "arc" if self.gravity else "straight"


THROWABLES: dict[str, Throwable] = {
    item.name: item
    for item in (
        Throwable("snowball", "projectile", 1.5, hit_effect="small knockback", effects=("3 damage to blazes",)),
        Throwable("egg", "projectile", 1.5, effects=("12.5% chance to spawn a chicken",)),
        Throwable("ender pearl", "teleport projectile", 1.5, cooldown=1.0, effects=("teleport on impact",),
                  hit_effect="teleport player", fall_damage=5),
        Throwable("eye of ender", "finder projectile", 0.5, gravity=False, effects=("points toward stronghold",),
                  break_chance=0.2),
        Throwable("experience bottle", "projectile", 1.5, effects=("3-11 experience",)),
        Throwable("splash water bottle", "splash potion", 1.5, effects=("extinguish fire", "damage blazes"),
                  splash_radius=SPLASH_RADIUS),
        Throwable("splash potion", "splash potion", 1.5, hit_effect="apply potion effect",
                  splash_radius=SPLASH_RADIUS),
        Throwable("lingering potion", "lingering potion", 1.5, hit_effect="leave effect cloud", splash_radius=3,
                  linger_seconds=30),
        Throwable("trident", "weapon projectile", 2.5, damage=8, cooldown=1.0, consumed=False,
                  hit_effect="damage and knockback"),
        Throwable("fire charge", "projectile", 1.0, gravity=False, damage=5,
                  effects=("sets fire for 5s", "ignites tnt", "lights campfires")),
    )
}


def throwable_profile(name: Any) -> Throwable | None:
    canonical = normalize_item_name(name)
    if canonical in THROWABLES:
        return THROWABLES[canonical]
    padded = f" {canonical} "
    mentioned = [key for key in THROWABLES if f" {key} " in padded]
    if mentioned:
        return THROWABLES[max(mentioned, key=len)]
    if "splash potion" in canonical:
        return THROWABLES["splash potion"]
    if "lingering potion" in canonical:
        return THROWABLES["lingering potion"]
    return None


@dataclass(slots=True)
class Trajectory:
    distance: float
    horizontal: float
    vertical: float
    flight_seconds: float
    accuracy: float
    shape: str

    @property
    def reachable(self) -> bool:
        return self.distance <= MAX_THROW_DISTANCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "distance": round(self.distance, 1),
            "horizontalDistance": round(self.horizontal, 1),
            "verticalDistance": round(self.vertical, 1),
            "flightTime": round(self.flight_seconds, 2),
            "accuracy": self.accuracy,
            "trajectory": self.shape,
            "willReach": self.reachable,
        }


def throw_trajectory(origin: Mapping[str, float], target: Mapping[str, float], item: Throwable,
                     movement: str = "standing") -> Trajectory:
    """Straight-line estimate; flight time assumes ``velocity`` blocks per tick."""
    dx, dy, dz = (target[axis] - origin[axis] for axis in ("x", "y", "z"))
    horizontal = math.hypot(dx, dz)
    distance = math.sqrt(horizontal * horizontal + dy * dy)
    accuracy = MOVEMENT_ACCURACY.get(normalize_item_name(movement), 1.0)
    return Trajectory(distance, horizontal, abs(dy), distance / item.velocity / 20, accuracy, item.trajectory)


# Ranged weapons

POWER_BONUS = 0.25
CRITICAL_MULTIPLIER = 1.5
BOW_FULL_CHARGE_SECONDS = 1.0
CROSSBOW_LOAD_SECONDS = 1.25
QUICK_CHARGE_STEP = 0.25
ARROWS_PER_CRAFT = 4


@dataclass(frozen=True, slots=True)
class RangedWeapon:
    name: str
    damage: float
    durability: int
    effective_range: int
    recipe: dict[str, int] = field(default_factory=dict)


RANGED_WEAPONS = {
    "bow": RangedWeapon("bow", 9, 384, 50, {"stick": 3, "string": 3}),
    "crossbow": RangedWeapon("crossbow", 9, 326, 65, {"stick": 3, "string": 2, "iron ingot": 1, "tripwire hook": 1}),
}


@dataclass(frozen=True, slots=True)
class ArrowType:
    name: str
    damage: float = 2
    effect: str | None = None
    recipe: dict[str, int] = field(default_factory=dict)

    @property
    def tipped(self) -> bool:
        return "tipped" in self.name or self.name.startswith("arrow of")


ARROWS = {
    "arrow": ArrowType("arrow", recipe={"flint": 1, "stick": 1, "feather": 1}),
    "spectral arrow": ArrowType("spectral arrow", effect="glowing for 10 seconds",
                                recipe={"arrow": 1, "glowstone dust": 4}),
    "tipped arrow": ArrowType("tipped arrow", effect="applies potion effect on hit",
                              recipe={"arrow": 8, "lingering potion": 1}),
}


def ranged_weapon(name: Any) -> RangedWeapon | None:
    return RANGED_WEAPONS.get(normalize_item_name(name))


def arrow_type(name: Any) -> ArrowType | None:
    canonical = normalize_item_name(name)
    if canonical in ARROWS:
        return ARROWS[canonical]
    if "tipped arrow" in canonical or canonical.startswith("arrow of"):
        return ArrowType(canonical, effect=ARROWS["tipped arrow"].effect, recipe=ARROWS["tipped arrow"].recipe)
    return None


def parse_enchantments(raw: Any) -> dict[str, int]:
    """``{"power": 3}``, ``["power 3", "infinity"]`` or ``"power 3, infinity"`` become ``{name: level}``."""
    if isinstance(raw, Mapping):
        entries: Iterable[Any] = [f"{name} {1 if level is True else level}" for name, level in raw.items() if level]
    elif isinstance(raw, str):
        entries = raw.split(",")
    elif isinstance(raw, Iterable):
        entries = raw
    else:
        return {}
    levels: dict[str, int] = {}
    for entry in entries:
        if isinstance(entry, Mapping):
            entry = f"{entry.get('name') or entry.get('type')} {entry.get('level', 1)}"
        words = normalize_item_name(entry).split(" ")
        level = 1
        if len(words) > 1 and words[-1].isdigit():
            level = int(words.pop())
        name = " ".join(words)
        if name and name != "unspecified item" and level > 0:
            levels[name] = level
    return levels


def shot_damage(weapon: RangedWeapon, *, power: int = 0, charge: float = 1.0, critical: bool = False,
                arrow: ArrowType | None = None) -> float:
    """(weapon + arrow) x charge x (1 + 0.25 per Power level) x critical; charge only applies to bows."""
    arrow_damage = arrow.damage if arrow is not None else ARROWS["arrow"].damage
    charge = charge if weapon.name == "bow" else 1.0
    total = (weapon.damage + arrow_damage) * charge * (1 + power * POWER_BONUS)
    if critical:
        total *= CRITICAL_MULTIPLIER
    return round(total, 1)


def crossbow_load_seconds(quick_charge: int = 0) -> float:
    return CROSSBOW_LOAD_SECONDS - QUICK_CHARGE_STEP * max(0, min(quick_charge, 3))


@dataclass(frozen=True, slots=True)
class RangedTactic:
    name: str
    description: str
    reason: str


def choose_tactic(weapon: RangedWeapon, distance: float | None, enemy_count: int,
                  enchantments: Mapping[str, int]) -> RangedTactic:
    if enemy_count >= 3 and weapon.name == "crossbow" and enchantments.get("multishot"):
        return RangedTactic("multishot crowd", "Crossbow multishot spreads three arrows over a group",
                            "Multiple enemies in range")
    if distance is not None and distance > 40:
        return RangedTactic("sniper", "Fully charged shots from distance", "Long range engagement")
    if distance is not None and distance < 15:
        return RangedTactic("quick shot", "Rapid fire with partial charges", "Close range, prioritize fire rate")
    return RangedTactic("strafe shooting", "Move side to side while shooting", "Standard engagement")


def consumes_arrows(weapon: RangedWeapon, enchantments: Mapping[str, int], arrow: ArrowType | None) -> bool:
    """Infinity bows keep normal arrows; tipped arrows and crossbows always use them up."""
    infinity = weapon.name == "bow" and enchantments.get("infinity", 0) > 0
    return not infinity or (arrow is not None and arrow.tipped)
