"""Adapters that read a loose world/agent context into typed values.

Every helper here tolerates missing or malformed input and returns an empty value
instead of raising, so planners can treat the context as best-effort telemetry.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import is_specified, normalize_item_name, resolve_quantity, target_position

_INVENTORY_OWNERS = ("npc", "agent", "state")
_DURABILITY_TEXT = re.compile(
    r"(?P<name>[a-z][a-z_ \-]*?)\s+durability\s*[:=]?\s*(?P<current>-?\d+)\s*/\s*(?P<maximum>\d+)",
    re.IGNORECASE,
)
_LOW_LIGHT_THRESHOLD = 8
_NIGHT_START_TICK = 13000
_NIGHT_END_TICK = 23000


@dataclass(slots=True)
class InventoryItem:
    name: str
    count: int = 1
    durability: int | None = None
    max_durability: int | None = None


@dataclass(slots=True)
class EnvironmentalSignals:
    """Booleans and levels derived from hazards, sensors, weather, and time of day."""

    low_light: bool = False
    light_level: int | None = None
    lava: bool = False
    water: bool = False
    gravel: bool = False
    cave_in: bool = False
    hostiles: bool = False
    weather: str | None = None
    time_of_day: int | None = None
    is_night: bool = False
    dimension: str | None = None
    biome: str | None = None
    environment: str | None = None
    hazards: list[str] = field(default_factory=list)

    def has_hazard(self, *keywords: str) -> bool:
        return any(keyword in hazard for hazard in self.hazards for keyword in keywords)

    @property
    def storm(self) -> bool:
        return bool(self.weather) and any(word in self.weather for word in ("thunder", "storm"))


@dataclass(slots=True)
class ToolIntegrity:
    tool: str
    durability: float | None
    max_durability: float | None
    percent: float | None
    broken: bool
    origin: str


def context_value(context: Mapping[str, Any] | None, *keys: str, default: Any = None) -> Any:
    """Return the first non-``None`` value found under ``keys`` (camelCase or snake_case)."""
    if not isinstance(context, Mapping):
        return default
    for key in keys:
        value = context.get(key)
        if value is not None:
            return value
    return default


def bridge_state(context: Mapping[str, Any] | None) -> Mapping[str, Any]:
    state = context_value(context, "bridgeState", "bridge_state", default={})
    return state if isinstance(state, Mapping) else {}


def npc_state(context: Mapping[str, Any] | None) -> Mapping[str, Any]:
    npc = context_value(context, "npc", default={})
    return npc if isinstance(npc, Mapping) else {}


def _entry_name(entry: Mapping[str, Any]) -> str:
    for key in ("name", "item", "id", "type"):
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return normalize_item_name(value)
    return normalize_item_name(None)


def _optional_int(value: Any) -> int | None:
    number = resolve_quantity(value, None)
    return int(number) if number is not None else None


def _coerce_entry(entry: Any, name_hint: str | None = None) -> InventoryItem | None:
    if isinstance(entry, InventoryItem):
        return entry
    if isinstance(entry, str):
        name = normalize_item_name(entry)
        return InventoryItem(name=name) if is_specified(name) else None
    if isinstance(entry, (int, float)) and not isinstance(entry, bool) and name_hint:
        name = normalize_item_name(name_hint)
        return InventoryItem(name=name, count=int(resolve_quantity(entry, 1))) if is_specified(name) else None
    if isinstance(entry, Mapping):
        name = normalize_item_name(name_hint) if name_hint else _entry_name(entry)
        if not is_specified(name):
            return None
        raw_count = entry.get("count", entry.get("quantity", entry.get("amount")))
        count = resolve_quantity(raw_count, None)
        return InventoryItem(
            name=name,
            count=int(count) if count is not None else 1,
            durability=_optional_int(entry.get("durability")),
            max_durability=_optional_int(entry.get("maxDurability", entry.get("max_durability"))),
        )
    return None


def coerce_inventory(raw: Any) -> list[InventoryItem]:
    """Normalize a sequence of records/strings or a ``name -> count`` mapping."""
    items: list[InventoryItem] = []
    if isinstance(raw, Mapping):
        for name, value in raw.items():
            item = _coerce_entry(value if not isinstance(value, str) else {"count": value}, name_hint=str(name))
            if item is not None:
                items.append(item)
        return items
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for entry in raw:
            item = _coerce_entry(entry)
            if item is not None:
                items.append(item)
    return items


def extract_inventory(context: Mapping[str, Any] | None) -> list[InventoryItem]:
    """Walk the known inventory locations in order and return the first non-empty one."""
    candidates: list[Any] = [context_value(context, "inventory")]
    for owner in _INVENTORY_OWNERS:
        holder = context_value(context, owner)
        if isinstance(holder, Mapping):
            candidates.append(holder.get("inventory"))
    candidates.append(bridge_state(context).get("inventory"))

    for raw in candidates:
        items = coerce_inventory(raw)
        if items:
            return items
    return []


def item_matches(item_name: str, wanted: str) -> bool:
    """Exact canonical match, or a generic single-word request matching the last word."""
    if item_name == wanted:
        return True
    return " " not in wanted and item_name.endswith(" " + wanted)


def _as_inventory(inventory: Iterable[Any] | Mapping[str, Any] | None) -> list[InventoryItem]:
    if isinstance(inventory, list) and all(isinstance(item, InventoryItem) for item in inventory):
        return inventory
    return coerce_inventory(inventory)


def count_inventory_items(inventory: Iterable[Any] | Mapping[str, Any] | None, name: Any) -> int:
    wanted = normalize_item_name(name)
    if not is_specified(wanted):
        return 0
    return sum(item.count for item in _as_inventory(inventory) if item_matches(item.name, wanted))


def has_inventory_item(inventory: Iterable[Any] | Mapping[str, Any] | None, name: Any, required: int = 1) -> bool:
    if required <= 0:
        return True
    return count_inventory_items(inventory, name) >= required


def find_inventory_item(inventory: Iterable[Any] | Mapping[str, Any] | None, name: Any) -> InventoryItem | None:
    wanted = normalize_item_name(name)
    for item in _as_inventory(inventory):
        if is_specified(wanted) and item_matches(item.name, wanted):
            return item
    return None


def merge_inventories(*inventories: Iterable[Any] | Mapping[str, Any] | None) -> list[InventoryItem]:
    """Sum counts per canonical name, keeping first-seen order."""
    merged: dict[str, InventoryItem] = {}
    for inventory in inventories:
        for item in _as_inventory(inventory):
            existing = merged.get(item.name)
            if existing is None:
                merged[item.name] = InventoryItem(item.name, item.count, item.durability, item.max_durability)
            else:
                existing.count += item.count
    return list(merged.values())


def _hazard_names(raw: Any) -> list[str]:
    if isinstance(raw, str):
        raw = [raw]
    if isinstance(raw, Mapping):
        raw = [key for key, value in raw.items() if value]
    names: list[str] = []
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for entry in raw:
            if isinstance(entry, Mapping):
                entry = entry.get("type") or entry.get("name") or entry.get("hazard")
            name = normalize_item_name(entry)
            if is_specified(name):
                names.append(name)
    return names


def _environment_name(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        raw = raw.get("type") or raw.get("name") or raw.get("condition") or raw.get("biome")
    name = normalize_item_name(raw)
    return name if is_specified(name) else None


def _time_ticks(raw: Any) -> tuple[int | None, bool]:
    if isinstance(raw, str) and not raw.strip().lstrip("-").isdigit():
        label = normalize_item_name(raw)
        return None, label in {"night", "midnight", "dusk"}
    ticks = resolve_quantity(raw, None)
    if ticks is None:
        return None, False
    ticks = int(ticks) % 24000
    return ticks, _NIGHT_START_TICK <= ticks <= _NIGHT_END_TICK


def extract_environmental_signals(context: Mapping[str, Any] | None, task: Any = None) -> EnvironmentalSignals:
    bridge = bridge_state(context)
    environment = bridge.get("environment", context_value(context, "environment"))
    sensors = context_value(context, "sensors", default={})
    sensors = sensors if isinstance(sensors, Mapping) else {}
    env_map = environment if isinstance(environment, Mapping) else {}

    hazards = _hazard_names(bridge.get("hazards"))
    hazards += _hazard_names(context_value(context, "hazards"))
    hazards += _hazard_names(env_map.get("hazards"))
    metadata = getattr(task, "metadata", None)
    if isinstance(metadata, Mapping):
        hazards += _hazard_names(metadata.get("hazards"))
    unique_hazards = sorted(set(hazards))

    light = None
    for source in (bridge.get("lightLevel"), sensors.get("lightLevel"), sensors.get("light_level"), env_map.get("lightLevel")):
        light = resolve_quantity(source, None)
        if light is not None:
            light = int(light)
            break

    weather = _environment_name(bridge.get("weather", context_value(context, "weather")))
    ticks, is_night = _time_ticks(bridge.get("timeOfDay", context_value(context, "timeOfDay", "time_of_day")))
    npc = npc_state(context)
    dimension = _environment_name(env_map.get("dimension") or context_value(context, "dimension") or npc.get("dimension"))
    biome = _environment_name(env_map.get("biome") or bridge.get("biome") or context_value(context, "biome"))

    signals = EnvironmentalSignals(
        light_level=light,
        weather=weather,
        time_of_day=ticks,
        is_night=is_night,
        dimension=dimension,
        biome=biome,
        environment=_environment_name(environment),
        hazards=unique_hazards,
    )
    signals.low_light = (
        (light is not None and light < _LOW_LIGHT_THRESHOLD)
        or bool(sensors.get("lowLight"))
        or signals.has_hazard("dark", "low light")
    )
    signals.lava = signals.has_hazard("lava", "magma")
    signals.water = signals.has_hazard("water", "flood", "drown")
    signals.gravel = signals.has_hazard("gravel", "sand", "falling block")
    signals.cave_in = signals.has_hazard("cave in", "collapse", "unstable")
    hostile_count = resolve_quantity(bridge.get("nearbyHostiles"), 0)
    signals.hostiles = signals.has_hazard("hostile", "mob") or bool(hostile_count)
    return signals


def _integrity(tool: str, durability: Any, maximum: Any, origin: str) -> ToolIntegrity | None:
    current = resolve_quantity(durability, None)
    if current is None:
        return None
    max_value = resolve_quantity(maximum, None)
    percent: float | None = None
    if max_value:
        percent = round(max(0.0, min(1.0, current / max_value)), 3)
    elif isinstance(current, float) and 0 <= current <= 1:
        percent = round(current, 3)
    return ToolIntegrity(
        tool=tool,
        durability=current,
        max_durability=max_value,
        percent=percent,
        broken=current <= 0,
        origin=origin,
    )


def _integrity_from_pool(pool: Any, wanted: str, origin: str) -> ToolIntegrity | None:
    if isinstance(pool, str):
        for match in _DURABILITY_TEXT.finditer(pool):
            name = normalize_item_name(match.group("name"))
            if item_matches(name, wanted):
                return _integrity(name, int(match.group("current")), int(match.group("maximum")), origin)
        return None
    if isinstance(pool, Mapping):
        for raw_name, value in pool.items():
            name = normalize_item_name(str(raw_name))
            if not item_matches(name, wanted):
                continue
            if isinstance(value, Mapping):
                return _integrity(
                    name,
                    value.get("durability", value.get("current", value.get("remaining"))),
                    value.get("maxDurability", value.get("max", value.get("max_durability"))),
                    origin,
                )
            if isinstance(value, str):
                found = _integrity_from_pool(f"{name} durability {value}", wanted, origin)
                if found is not None:
                    return found
                continue
            return _integrity(name, value, None, origin)
        return None
    if isinstance(pool, Sequence) and not isinstance(pool, bytes):
        for entry in pool:
            if isinstance(entry, str):
                found = _integrity_from_pool(entry, wanted, origin)
            elif isinstance(entry, Mapping):
                name = normalize_item_name(entry.get("name") or entry.get("item") or entry.get("tool"))
                if not is_specified(name) or not item_matches(name, wanted):
                    continue
                found = _integrity(
                    name,
                    entry.get("durability", entry.get("current", entry.get("remaining"))),
                    entry.get("maxDurability", entry.get("max", entry.get("max_durability"))),
                    origin,
                )
            else:
                found = None
            if found is not None:
                return found
    return None


def resolve_tool_integrity(tool: Any, context: Mapping[str, Any] | None) -> ToolIntegrity | None:
    """Find durability telemetry for ``tool``.

    Sources are consulted in a fixed precedence: inventory entries, then the
    ``equipmentDurability`` pools of bridge state, npc, and the context itself.
    """
    wanted = normalize_item_name(tool)
    if not is_specified(wanted):
        return None

    item = find_inventory_item(extract_inventory(context), wanted)
    if item is not None and item.durability is not None:
        found = _integrity(item.name, item.durability, item.max_durability, "inventory")
        if found is not None:
            return found

    pools = (
        ("bridgeState", bridge_state(context).get("equipmentDurability")),
        ("npc", npc_state(context).get("equipmentDurability")),
        ("context", context_value(context, "equipmentDurability", "equipment_durability")),
    )
    for origin, pool in pools:
        if pool is None:
            continue
        found = _integrity_from_pool(pool, wanted, origin)
        if found is not None:
            return found
    return None


def extract_player_position(context: Mapping[str, Any] | None) -> dict[str, float] | None:
    for raw in (
        context_value(context, "playerPosition", "player_position", "position"),
        npc_state(context).get("position"),
        bridge_state(context).get("position"),
    ):
        position = target_position(raw)
        if position is not None:
            return {axis: float(value) for axis, value in position.items()}
    return None


def extract_allies(context: Mapping[str, Any] | None) -> list[dict[str, Any]]:
    raw = bridge_state(context).get("allies", context_value(context, "allies", default=[]))
    allies: list[dict[str, Any]] = []
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for entry in raw:
            if isinstance(entry, str) and entry.strip():
                allies.append({"name": entry.strip()})
            elif isinstance(entry, Mapping) and entry.get("name"):
                allies.append(dict(entry))
    return allies


def extract_preferences(context: Mapping[str, Any] | None) -> Mapping[str, Any]:
    prefs = context_value(context, "preferences", default=None)
    if not isinstance(prefs, Mapping):
        prefs = npc_state(context).get("preferences", {})
    return prefs if isinstance(prefs, Mapping) else {}
