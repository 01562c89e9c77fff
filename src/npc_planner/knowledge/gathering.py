"""Harvestable resources, gathering tools, biomes, depth bands, weather and field hazards."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name


@dataclass(frozen=True, slots=True)
class ResourceProfile:
    name: str
    kind: str
    tool: str
    replantable: bool = False
    seed: str | None = None
    yield_per_unit: float = 1.0
    processing: tuple[str, ...] = ()
    weather_sensitive: bool = False
    min_tier: str | None = None

    @property
    def per_unit_ms(self) -> int:
        return {"crop": 200, "wood": 600, "mining": 350}.get(self.kind, 250)


def _crop(name: str, seed: str, yield_per_unit: float, processing: tuple[str, ...] = (),
          weather_sensitive: bool = False) -> ResourceProfile:
    return ResourceProfile(name, "crop", "hoe", True, seed, yield_per_unit, processing, weather_sensitive)


def _log(name: str, yield_per_unit: float = 6) -> ResourceProfile:
    sapling = name.replace(" log", " sapling")
    return ResourceProfile(name, "wood", "axe", True, sapling, yield_per_unit, ("planks", "charcoal"))


def _rock(name: str, tier: str, processing: tuple[str, ...] = ()) -> ResourceProfile:
    return ResourceProfile(name, "mining", "pickaxe", processing=processing, min_tier=tier)


RESOURCE_PROFILES: dict[str, ResourceProfile] = {
    profile.name: profile
    for profile in (
        _crop("wheat", "wheat seeds", 1.5, ("bread", "hay bale"), weather_sensitive=True),
        _crop("carrots", "carrot", 2.5),
        _crop("potatoes", "potato", 2.5, ("baked potato",)),
        _crop("beetroots", "beetroot seeds", 1.5, ("beetroot soup",)),
        _crop("sugar cane", "sugar cane", 2, ("paper", "sugar")),
        _log("oak log"),
        _log("birch log"),
        _log("spruce log", 8),
        _log("jungle log", 10),
        _rock("stone", "wooden", ("smooth stone",)),
        _rock("cobblestone", "wooden", ("stone", "stone bricks")),
        _rock("coal ore", "wooden"),
        _rock("iron ore", "stone", ("iron ingot",)),
        _rock("gold ore", "iron", ("gold ingot",)),
        _rock("diamond ore", "iron"),
        ResourceProfile("sand", "digging", "shovel", processing=("glass",)),
        ResourceProfile("clay", "digging", "shovel", processing=("brick",)),
    )
}

_RESOURCE_ALIASES = {"log": "oak log", "wood": "oak log", "logs": "oak log", "carrot": "carrots",
                     "potato": "potatoes", "beetroot": "beetroots", "iron": "iron ore", "coal": "coal ore"}


def resource_profile(name: Any) -> ResourceProfile:
    canonical = normalize_item_name(name)
    canonical = _RESOURCE_ALIASES.get(canonical, canonical)
    if canonical in RESOURCE_PROFILES:
        return RESOURCE_PROFILES[canonical]
    for key, profile in RESOURCE_PROFILES.items():
        if key in canonical or canonical in key:
            return profile
    return ResourceProfile(canonical, "generic", "hand")


TIER_ORDER = ("none", "wooden", "stone", "iron", "gold", "diamond", "netherite")
_TIER_SPEED = {"none": 1.0, "wooden": 2.0, "stone": 3.0, "iron": 4.0, "gold": 12.0, "diamond": 6.0, "netherite": 7.0}
_TIER_DURABILITY = {"wooden": 59, "stone": 131, "iron": 250, "gold": 32, "diamond": 1561, "netherite": 2031}
# Efficiency of each tool type per resource kind; anything unlisted is 1.0.
_TYPE_EFFICIENCY = {
    "axe": {"wood": 1.0},
    "pickaxe": {"mining": 1.0},
    "shovel": {"digging": 1.0},
    "hoe": {"crop": 0.5},
    "hand": {"wood": 0.2, "mining": 0.1, "digging": 0.5, "crop": 1.0},
}


@dataclass(frozen=True, slots=True)
class ToolProfile:
    name: str
    kind: str
    tier: str
    durability: int | None

    @property
    def speed(self) -> float:
        return _TIER_SPEED.get(self.tier, 1.0)

    def efficiency(self, resource: ResourceProfile) -> float:
        base = _TYPE_EFFICIENCY.get(self.kind, {}).get(resource.kind, 1.0)
        if self.kind == "hand":
            return base
        return base * self.speed

    def appropriate_for(self, resource: ResourceProfile) -> bool:
        if resource.kind == "mining":
            if self.kind != "pickaxe":
                return False
            required = resource.min_tier or "wooden"
            return TIER_ORDER.index(self.tier) >= TIER_ORDER.index(required)
        if resource.kind == "wood":
            return self.kind in {"axe", "hand"}
        return True


def tool_profile(name: Any) -> ToolProfile:
    """Profile for ``"iron pickaxe"``; a bare ``"pickaxe"`` is assumed to be stone tier."""
    canonical = normalize_item_name(name)
    parts = canonical.split(" ")
    kind = parts[-1]
    if kind not in {"axe", "pickaxe", "shovel", "hoe"}:
        return ToolProfile(canonical, "hand", "none", None)
    tier = parts[0] if len(parts) > 1 else "stone"
    tier = "wooden" if tier == "wood" else tier
    tier = tier if tier in TIER_ORDER else "stone"
    return ToolProfile(canonical, kind, tier, _TIER_DURABILITY.get(tier))


def tool_condition(durability: int | None, max_durability: int | None) -> tuple[str, float | None]:
    if durability is None or not max_durability:
        return "unknown", None
    percent = durability / max_durability * 100
    if percent > 75:
        return "good", percent
    if percent > 40:
        return "fair", percent
    if percent > 15:
        return "low", percent
    return "critical", percent


@dataclass(frozen=True, slots=True)
class BiomeProfile:
    name: str
    crop_growth: float
    mob_spawn: float
    optimal_for: tuple[str, ...]
    traits: tuple[str, ...]


BIOME_PROFILES: dict[str, BiomeProfile] = {
    profile.name: profile
    for profile in (
        BiomeProfile("plains", 1.0, 0.7, ("wheat", "carrots", "potatoes", "beetroots"), ("open terrain",)),
        BiomeProfile("forest", 0.9, 0.9, ("oak log", "birch log"), ("dense foliage", "navigation difficulty")),
        BiomeProfile("taiga", 0.8, 0.8, ("spruce log",), ("wolves", "cold")),
        BiomeProfile("jungle", 1.1, 1.0, ("jungle log", "sugar cane"), ("dense foliage", "navigation difficulty")),
        BiomeProfile("desert", 0.7, 1.0, ("sand",), ("husks", "heat", "navigation difficulty")),
        BiomeProfile("mountains", 0.6, 0.6, ("stone", "coal ore", "iron ore"), ("fall damage", "steep terrain")),
        BiomeProfile("caves", 0.0, 1.5, ("stone", "coal ore", "iron ore", "gold ore", "diamond ore"),
                     ("hostile mobs", "fall damage", "lava", "darkness", "navigation difficulty")),
        BiomeProfile("swamp", 0.9, 1.1, ("clay", "sugar cane"), ("slimes", "navigation difficulty")),
    )
}


def biome_profile(name: Any) -> BiomeProfile | None:
    canonical = normalize_item_name(name)
    if canonical in BIOME_PROFILES:
        return BIOME_PROFILES[canonical]
    for key, profile in BIOME_PROFILES.items():
        if key in canonical or canonical in key:
            return profile
    return None


# (band, min y, max y, resource kinds or names that suit it)
Y_LEVEL_BANDS: tuple[tuple[str, int, int, tuple[str, ...]], ...] = (
    ("elevated", 90, 320, ("wood",)),
    ("surface", 62, 89, ("crop", "wood", "digging")),
    ("shallow", 40, 61, ("coal ore", "iron ore", "stone", "cobblestone")),
    ("mid depth", 0, 39, ("iron ore", "gold ore", "coal ore", "stone", "cobblestone")),
    ("deep", -16, -1, ("iron ore", "gold ore", "diamond ore")),
    ("deepslate", -64, -17, ("diamond ore", "gold ore")),
)
_Y_LEVEL_MODIFIERS = {"shallow": 1.1, "deep": 1.3, "deepslate": 1.5}


def y_level_band(y: float | None) -> tuple[str, tuple[str, ...]] | None:
    if y is None:
        return None
    if y > Y_LEVEL_BANDS[0][2] or y < Y_LEVEL_BANDS[-1][1]:
        return None
    for band, low, _high, suits in Y_LEVEL_BANDS:
        if y >= low:
            return band, suits
    return None


def y_level_modifier(band: str | None) -> float:
    return _Y_LEVEL_MODIFIERS.get(band or "", 1.0)


@dataclass(frozen=True, slots=True)
class WeatherProfile:
    name: str
    movement: float
    mob_spawn: float
    lightning: bool


WEATHER_PROFILES: dict[str, WeatherProfile] = {
    "clear": WeatherProfile("clear", 1.0, 1.0, False),
    "rain": WeatherProfile("rain", 0.95, 0.7, True),
    "thunderstorm": WeatherProfile("thunderstorm", 0.9, 1.5, True),
    "snow": WeatherProfile("snow", 0.85, 1.0, False),
}


def weather_profile(name: Any) -> WeatherProfile:
    canonical = normalize_item_name(name)
    if "thunder" in canonical or "storm" in canonical:
        return WEATHER_PROFILES["thunderstorm"]
    return WEATHER_PROFILES.get(canonical, WEATHER_PROFILES["clear"])


@dataclass(frozen=True, slots=True)
class HazardType:
    name: str
    description: str
    mitigations: tuple[str, ...]


HAZARD_TYPES: dict[str, HazardType] = {
    hazard.name: hazard
    for hazard in (
        HazardType("hostile mobs", "Hostile creatures may attack during gathering.",
                   ("armor", "weapons", "torches", "work during day")),
        HazardType("fall damage", "Risk of falling from heights.",
                   ("water bucket", "slow falling potion", "careful movement")),
        HazardType("lava", "Lava pools or flows are likely nearby.",
                   ("fire resistance potion", "water bucket", "careful movement")),
        HazardType("darkness", "Low light levels increase danger.", ("torches", "night vision potion")),
        HazardType("lightning", "Lightning strikes are possible during storms.", ("seek shelter",)),
        HazardType("getting lost", "Complex terrain makes it easy to lose orientation.",
                   ("compass", "map", "torches as markers")),
        HazardType("tool breakage", "The primary tool may break mid-run.", ("backup tools", "mending")),
        HazardType("hunger", "Extended operations deplete food.", ("bring food",)),
        HazardType("weather exposure", "Adverse weather slows operations.", ("shelter", "wait for clear weather")),
    )
}


@dataclass(slots=True)
class FieldHazard:
    name: str
    severity: str

    @property
    def description(self) -> str:
        return HAZARD_TYPES[self.name].description

    def to_dict(self) -> dict[str, str]:
        return {"type": self.name, "severity": self.severity, "description": self.description}


@dataclass(slots=True)
class FieldConditions:
    biome: BiomeProfile | None
    band: str | None
    weather: WeatherProfile
    is_night: bool
    light_level: int | None
    hazards: list[FieldHazard] = field(default_factory=list)


def assess_field_hazards(resource: ResourceProfile, conditions: FieldConditions, *, tool_status: str) -> list[FieldHazard]:
    hazards: list[FieldHazard] = []
    biome = conditions.biome
    traits = biome.traits if biome else ()
    if biome is not None:
        mob_risk = biome.mob_spawn * (1.5 if conditions.is_night else 1.0) * conditions.weather.mob_spawn
        dark = conditions.light_level is not None and conditions.light_level < 8
        if mob_risk > 1.0 or dark:
            hazards.append(FieldHazard("hostile mobs", "critical" if mob_risk > 1.5 else "high"))
    if conditions.band in {"deep", "deepslate"} or "lava" in traits:
        hazards.append(FieldHazard("lava", "critical" if conditions.band == "deepslate" else "high"))
    if conditions.band not in {None, "surface", "elevated"} or "darkness" in traits:
        hazards.append(FieldHazard("darkness", "medium"))
    if conditions.band == "elevated" or "fall damage" in traits:
        hazards.append(FieldHazard("fall damage", "medium"))
    if "navigation difficulty" in traits:
        hazards.append(FieldHazard("getting lost", "medium"))
    if conditions.weather.lightning:
        hazards.append(FieldHazard("lightning", "medium"))
    if conditions.weather.movement < 1.0:
        hazards.append(FieldHazard("weather exposure", "low"))
    if tool_status in {"low", "critical"}:
        hazards.append(FieldHazard("tool breakage", "medium"))
    if resource.kind in {"mining", "wood"}:
        hazards.append(FieldHazard("hunger", "low"))
    return hazards


def safety_recommendations(hazards: Iterable[FieldHazard]) -> list[dict[str, str]]:
    """Two mitigations per critical hazard, one per high hazard, one each for the first two medium ones."""
    hazards = list(hazards)
    seen: set[str] = set()
    recommendations: list[dict[str, str]] = []
    limits = {"critical": (None, 2), "high": (None, 1), "medium": (2, 1)}
    for severity, (hazard_limit, per_hazard) in limits.items():
        matching = [hazard for hazard in hazards if hazard.severity == severity][:hazard_limit]
        for hazard in matching:
            for mitigation in HAZARD_TYPES[hazard.name].mitigations[:per_hazard]:
                if mitigation not in seen:
                    seen.add(mitigation)
                    recommendations.append({"priority": severity, "action": mitigation, "reason": hazard.description})
    return recommendations


def travel_time_ms(target: Any) -> float:
    """Rough travel estimate from the origin, capped at a minute."""
    if isinstance(target, Mapping):
        x, z = target.get("x"), target.get("z")
        if isinstance(x, (int, float)) and isinstance(z, (int, float)):
            return min(math.hypot(x, z) * 50, 60_000)
    return 2_000
