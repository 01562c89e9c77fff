"""Doors, trapdoors, fence gates and the redstone components that drive them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import normalize_item_name

WOOD_TYPES = (
    "oak", "spruce", "birch", "jungle", "acacia", "dark oak", "mangrove", "cherry", "bamboo", "crimson", "warped",
)

INTERACTION_RANGE = 4
INTERACTION_SECONDS = 0.15
SAFE_LIGHT_LEVEL = 7
MAX_POWER = 15


def _lookup(catalog: dict[str, Any], aliases: dict[str, str], name: Any) -> Any:
    """Exact match first, then the longest catalog name mentioned in free text such as "open the iron door"."""
    canonical = normalize_item_name(name).removeprefix("minecraft:")
    canonical = aliases.get(canonical, canonical)
    if canonical in catalog:
        return catalog[canonical]
    padded = f" {canonical} "
    mentioned = [key for key in (*catalog, *aliases) if f" {key} " in padded]
    if not mentioned:
        return None
    best = max(mentioned, key=len)
    return catalog[aliases.get(best, best)]


@dataclass(frozen=True, slots=True)
class DoorProfile:
    name: str
    kind: str
    material: str
    hand_operable: bool = True
    zombie_breakable: bool = False
    waterloggable: bool = False

    @property
    def requires_power(self) -> bool:
        return not self.hand_operable


def _door_catalog() -> dict[str, DoorProfile]:
    catalog: dict[str, DoorProfile] = {}
    for wood in WOOD_TYPES:
        catalog[f"{wood} door"] = DoorProfile(f"{wood} door", "door", "wood", zombie_breakable=True)
        catalog[f"{wood} trapdoor"] = DoorProfile(f"{wood} trapdoor", "trapdoor", "wood", waterloggable=True)
        catalog[f"{wood} fence gate"] = DoorProfile(f"{wood} fence gate", "fence gate", "wood")
    catalog["iron door"] = DoorProfile("iron door", "door", "iron", hand_operable=False)
    catalog["iron trapdoor"] = DoorProfile("iron trapdoor", "trapdoor", "iron", hand_operable=False,
                                           waterloggable=True)
    return catalog


DOORS = _door_catalog()
# Generic words fall back to the oak variant.
_DOOR_ALIASES = {"door": "oak door", "wooden door": "oak door", "trapdoor": "oak trapdoor",
                 "fence gate": "oak fence gate", "gate": "oak fence gate"}


def door_profile(name: Any) -> DoorProfile | None:
    return _lookup(DOORS, _DOOR_ALIASES, name)


@dataclass(frozen=True, slots=True)
class DoorStateChange:
    current: str
    new: str

    @property
    def changed(self) -> bool:
        return self.current != self.new

    @property
    def verb(self) -> str:
        return "open" if self.new == "open" else "close"


def door_state_change(is_open: bool, operation: str = "toggle") -> DoorStateChange:
    current = "open" if is_open else "closed"
    if operation == "open":
        return DoorStateChange(current, "open")
    if operation == "close":
        return DoorStateChange(current, "closed")
    return DoorStateChange(current, "closed" if is_open else "open")


@dataclass(frozen=True, slots=True)
class ActivationMechanism:
    name: str
    item: str
    placement: str
    hold: str
    automatic: bool = False
    materials: tuple[str, ...] = ()
    warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mechanism": self.name,
            "placement": self.placement,
            "duration": self.hold,
            "automatic": self.automatic,
            "materials": list(self.materials or (self.item,)),
            "warning": self.warning,
        }


ACTIVATION_MECHANISMS = {
    "button": ActivationMechanism("button", "stone button", "adjacent to door", "1 second"),
    "lever": ActivationMechanism("lever", "lever", "adjacent to door", "until toggled"),
    "pressure plate": ActivationMechanism("pressure plate", "stone pressure plate", "in front of door",
                                          "while pressed", automatic=True,
                                          warning="Mobs may trigger the pressure plate."),
    "tripwire": ActivationMechanism("tripwire", "tripwire hook", "in front of door with hooks", "while triggered",
                                    automatic=True, materials=("tripwire hook", "string")),
}
DEFAULT_MECHANISM = "button"


def activation_mechanism(name: Any) -> ActivationMechanism:
    canonical = normalize_item_name(name)
    for key, mechanism in ACTIVATION_MECHANISMS.items():
        if canonical == key or canonical == mechanism.item or canonical.endswith(key):
            return mechanism
    return ACTIVATION_MECHANISMS[DEFAULT_MECHANISM]


@dataclass(slots=True)
class SecurityAssessment:
    level: str
    vulnerabilities: list[str]
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"securityLevel": self.level, "vulnerabilities": list(self.vulnerabilities),
                "recommendations": list(self.recommendations)}


def assess_door_security(door: DoorProfile, *, near_villagers: bool = False, light_level: int | None = None,
                         mechanism: str | None = None, airlock: bool = False) -> SecurityAssessment:
    vulnerabilities: list[str] = []
    recommendations: list[str] = []
    level = "high" if door.material == "iron" else "medium"
    if door.zombie_breakable:
        vulnerabilities.append("Zombies can break wooden doors on hard difficulty.")
        recommendations.append("Consider an iron door or a fence gate.")
    if near_villagers and door.hand_operable and door.kind == "door":
        vulnerabilities.append("Villagers can open wooden doors.")
        recommendations.append("Use an iron door or fence gate to keep villagers out.")
    if light_level is not None and light_level < SAFE_LIGHT_LEVEL:
        vulnerabilities.append("Low light level allows mobs to spawn near the door.")
        recommendations.append(f"Add torches to reach light level {SAFE_LIGHT_LEVEL} or more.")
    if door.requires_power:
        if not mechanism:
            vulnerabilities.append(f"{door.name} has no activation mechanism.")
            recommendations.append("Add a button, lever or pressure plate.")
        elif activation_mechanism(mechanism).automatic:
            vulnerabilities.append("Pressure plates and tripwires can be triggered by mobs.")
            recommendations.append("Use a button or lever for more control.")
    if airlock:
        level = "high"
    return SecurityAssessment(level, vulnerabilities, recommendations)


@dataclass(frozen=True, slots=True)
class RedstoneComponent:
    name: str
    kind: str
    activation: str
    power: int | str = MAX_POWER
    # Seconds the signal lasts after a momentary activation; None means it latches or stays constant.
    active_seconds: float | None = None
    release_seconds: float | None = None
    material: str | None = None
    surfaces: tuple[str, ...] = ("any",)
    requires: tuple[str, ...] = ()

    @property
    def latching(self) -> bool:
        return self.active_seconds is None and self.kind in {"switch", "power source"}

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.name,
            "type": self.kind,
            "activation": self.activation,
            "powerOutput": self.power,
            "duration": "indefinite" if self.latching else self.active_seconds,
            "canActivate": list(ACTIVATES.get(self.kind, ())),
        }


def _component_catalog() -> dict[str, RedstoneComponent]:
    catalog = {
        "lever": RedstoneComponent("lever", "switch", "toggle", surfaces=("wall", "floor", "ceiling")),
        "stone button": RedstoneComponent("stone button", "button", "press", active_seconds=1.0, material="stone",
                                          surfaces=("wall", "floor")),
        "polished blackstone button": RedstoneComponent("polished blackstone button", "button", "press",
                                                        active_seconds=1.0, material="stone",
                                                        surfaces=("wall", "floor")),
        "stone pressure plate": RedstoneComponent("stone pressure plate", "pressure plate", "step on",
                                                  release_seconds=0.25, material="stone", surfaces=("floor",)),
        "polished blackstone pressure plate": RedstoneComponent("polished blackstone pressure plate",
                                                                "pressure plate", "step on", release_seconds=0.25,
                                                                material="stone", surfaces=("floor",)),
        "light weighted pressure plate": RedstoneComponent("light weighted pressure plate", "pressure plate",
                                                           "step on", power="variable", material="gold",
                                                           surfaces=("floor",)),
        "heavy weighted pressure plate": RedstoneComponent("heavy weighted pressure plate", "pressure plate",
                                                           "step on", power="variable", material="iron",
                                                           surfaces=("floor",)),
        "tripwire hook": RedstoneComponent("tripwire hook", "tripwire", "walk through", release_seconds=0.15,
                                           surfaces=("wall",), requires=("string",)),
        "redstone torch": RedstoneComponent("redstone torch", "power source", "always on",
                                            surfaces=("wall", "floor")),
        "redstone block": RedstoneComponent("redstone block", "power source", "always on"),
        "target": RedstoneComponent("target", "target", "hit by projectile", power="variable", active_seconds=1.0),
        "lectern": RedstoneComponent("lectern", "comparator output", "turn book page", power="variable",
                                     surfaces=("floor",), requires=("book",)),
        "daylight detector": RedstoneComponent("daylight detector", "sensor", "invert", power="variable",
                                               surfaces=("floor",)),
        "observer": RedstoneComponent("observer", "sensor", "block update", active_seconds=0.1),
        "lightning rod": RedstoneComponent("lightning rod", "sensor", "lightning strike", active_seconds=0.4,
                                           surfaces=("floor",)),
        "sculk sensor": RedstoneComponent("sculk sensor", "sensor", "vibration", power="variable",
                                          active_seconds=2.0),
    }
    for wood in WOOD_TYPES:
        catalog[f"{wood} button"] = RedstoneComponent(f"{wood} button", "button", "press", active_seconds=1.5,
                                                      material="wood", surfaces=("wall", "floor"))
        catalog[f"{wood} pressure plate"] = RedstoneComponent(f"{wood} pressure plate", "pressure plate", "step on",
                                                              release_seconds=0.25, material="wood",
                                                              surfaces=("floor",))
    return catalog


REDSTONE_COMPONENTS = _component_catalog()
_COMPONENT_ALIASES = {"button": "stone button", "pressure plate": "stone pressure plate",
                      "tripwire": "tripwire hook", "target block": "target", "torch": "redstone torch"}

ACTIVATES = {
    "switch": ("door", "trapdoor", "piston", "dispenser", "dropper", "hopper", "redstone lamp", "tnt", "note block"),
    "button": ("door", "trapdoor", "piston", "dispenser", "dropper", "note block"),
    "pressure plate": ("door", "trapdoor", "piston", "dispenser", "dropper", "tnt"),
    "tripwire": ("dispenser", "dropper", "piston", "tnt", "note block"),
}


def component_profile(name: Any) -> RedstoneComponent | None:
    return _lookup(REDSTONE_COMPONENTS, _COMPONENT_ALIASES, name)
