"""Item-name canonicalization, quantity parsing, and human-readable formatting."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

UNSPECIFIED_ITEM = "unspecified item"

_SEPARATORS = re.compile(r"[_\-\s]+")
_LEADING_NUMBER = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")

# Common phrasings mapped to the item they usually mean.
ITEM_ALIASES: dict[str, str] = {
    "wood pickaxe": "wooden_pickaxe",
    "wood axe": "wooden_axe",
    "wood sword": "wooden_sword",
    "wood shovel": "wooden_shovel",
    "wood hoe": "wooden_hoe",
    "meat": "cooked_beef",
    "steak": "cooked_beef",
    "cooked pork": "cooked_porkchop",
    "workbench": "crafting_table",
    "crafting bench": "crafting_table",
    "cobble": "cobblestone",
    "bonemeal": "bone_meal",
    "enderpearl": "ender_pearl",
    "pearl": "ender_pearl",
    "xp bottle": "experience_bottle",
    "bottle o enchanting": "experience_bottle",
    "blaze powder fuel": "blaze_powder",
}


def _collapse(value: str) -> str:
    return _SEPARATORS.sub(" ", value).strip().lower()


_CANONICAL_ALIASES = {_collapse(key): _collapse(value) for key, value in ITEM_ALIASES.items()}


def normalize_item_name(value: Any) -> str:
    """Return the canonical form of ``value`` or :data:`UNSPECIFIED_ITEM`.

    Canonical names are lowercase with runs of ``_``, ``-`` and whitespace collapsed
    to a single space. Alias targets are themselves canonical and never alias keys,
    so the function is idempotent.
    """
    if not isinstance(value, str):
        return UNSPECIFIED_ITEM
    canonical = _collapse(value)
    if not canonical:
        return UNSPECIFIED_ITEM
    return _CANONICAL_ALIASES.get(canonical, canonical)


def is_specified(name: str | None) -> bool:
    return bool(name) and name != UNSPECIFIED_ITEM


def resolve_quantity(value: Any, fallback: Any = None) -> Any:
    """Coerce ``value`` to a non-negative number, returning ``fallback`` when it is not numeric."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return fallback
        return max(0, value)
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return fallback
        text = match.group(1)
        number = float(text) if "." in text else int(text, 10)
        return max(0, number)
    return fallback


def resolve_count(value: Any, fallback: int = 1) -> int:
    """Integer quantity where zero, negative, and non-numeric input all collapse to ``fallback``."""
    quantity = resolve_quantity(value, None)
    if quantity is None or quantity <= 0:
        return fallback
    return int(quantity)


def format_display_name(canonical: str) -> str:
    return " ".join(part.capitalize() for part in normalize_item_name(canonical).split(" "))


def _requirement_parts(entry: Any) -> tuple[str, Any]:
    if isinstance(entry, Mapping):
        name = normalize_item_name(entry.get("name") or entry.get("item"))
        count = resolve_quantity(entry.get("count", entry.get("quantity")), None)
        return name, count
    if isinstance(entry, tuple) and len(entry) == 2:
        return normalize_item_name(entry[0]), resolve_quantity(entry[1], None)
    return normalize_item_name(entry), None


def format_requirement_list(requirements: Iterable[Any] | None) -> str:
    """Render ``[{name, count}]`` as ``"2 stick, 1 coal and 3 iron ingot"``."""
    parts: list[str] = []
    for entry in requirements or []:
        name, count = _requirement_parts(entry)
        if not is_specified(name):
            continue
        if count:
            count = int(count) if float(count).is_integer() else count
            parts.append(f"{count} {name}")
        else:
            parts.append(name)
    if len(parts) <= 1:
        return "".join(parts)
    return f"{', '.join(parts[:-1])} and {parts[-1]}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def describe_target(target: Any) -> str:
    """Human-readable target: a name, ``(x, y, z)`` coordinates and dimension when present."""
    if not target:
        return "current position"
    if isinstance(target, str):
        return target.strip() or "current position"
    if not isinstance(target, Mapping):
        return "target location"

    parts: list[str] = []
    label = target.get("name") or target.get("label")
    if label:
        parts.append(str(label))
    coords = [target.get(axis) for axis in ("x", "y", "z")]
    if all(_is_number(value) for value in coords):
        parts.append("(" + ", ".join(f"{value:.1f}" for value in coords) + ")")
    if target.get("dimension"):
        parts.append(str(target["dimension"]))
    return " ".join(parts) if parts else "target location"


def target_position(target: Any) -> dict[str, float] | None:
    """Return ``{x, y, z}`` when ``target`` carries three finite coordinates."""
    if not isinstance(target, Mapping):
        return None
    coords = {axis: target.get(axis) for axis in ("x", "y", "z")}
    if all(_is_number(value) for value in coords.values()):
        return coords
    return None
