"""Building templates, terrain profiles, the construction phase model and a material calculator."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name, resolve_quantity

SCAFFOLDING_HEIGHT = 6
TALL_STRUCTURE_HEIGHT = 10
MATERIAL_OVERHEAD = 0.1


@dataclass(frozen=True, slots=True)
class Dimensions:
    length: int
    width: int
    height: int | None = None

    @property
    def floor_area(self) -> int:
        return self.length * self.width

    @property
    def volume(self) -> int | None:
        return self.floor_area * self.height if self.height else None

    def label(self) -> str:
        return f"{self.length}x{self.width}x{self.height or 0}"


@dataclass(frozen=True, slots=True)
class BuildingTemplate:
    id: str
    name: str
    category: str
    dimensions: Dimensions
    materials: tuple[tuple[str, int], ...]
    difficulty: str
    duration_ms: int
    roof_style: str | None = None
    interior: bool = False
    foundation: str | None = None
    requires_scaffolding: bool = False
    includes_redstone: bool = False
    level_ground: bool = False
    terrain: str | None = None
    threat_level: str | None = None
    features: tuple[str, ...] = ()


def _template(id: str, name: str, category: str, dims: tuple[int, int, int], difficulty: str, duration_ms: int,
              materials: Mapping[str, int], **options: Any) -> BuildingTemplate:
    return BuildingTemplate(
        id=id,
        name=name,
        category=category,
        dimensions=Dimensions(*dims),
        materials=tuple((normalize_item_name(item), count) for item, count in materials.items()),
        difficulty=difficulty,
        duration_ms=duration_ms,
        **options,
    )


BUILDING_TEMPLATES: dict[str, BuildingTemplate] = {
    template.id: template
    for template in (
        _template("basic house", "Basic House", "residential", (7, 7, 5), "easy", 18_000,
                  {"oak_planks": 220, "glass_pane": 16, "oak_door": 1, "torch": 12, "crafting_table": 1, "bed": 1},
                  roof_style="pitched", interior=True, features=("lighting", "basic furnishings")),
        _template("cottage", "Cottage", "residential", (9, 7, 6), "easy", 24_000,
                  {"spruce_planks": 280, "cobblestone": 120, "glass_pane": 20, "spruce_door": 1, "torch": 16,
                   "furnace": 1, "chest": 3},
                  roof_style="pitched", interior=True, foundation="stone", features=("chimney", "storage", "lighting")),
        _template("watchtower", "Watchtower", "defensive", (5, 5, 15), "medium", 45_000,
                  {"stone_bricks": 450, "ladder": 14, "torch": 20, "fence": 16},
                  requires_scaffolding=True, threat_level="medium",
                  features=("elevated platform", "perimeter fence")),
        _template("castle tower", "Castle Tower", "defensive", (9, 9, 20), "hard", 90_000,
                  {"stone_bricks": 900, "cobblestone": 400, "oak_planks": 120, "iron_door": 1, "ladder": 18,
                   "torch": 30},
                  requires_scaffolding=True, foundation="stone", roof_style="battlements",
                  features=("arrow slits", "spiral stairs", "battlements")),
        _template("fortress wall", "Fortress Wall", "defensive", (30, 3, 8), "medium", 50_000,
                  {"stone_bricks": 720, "cobblestone": 200, "torch": 15},
                  features=("battlements", "guard posts")),
        _template("basic farm", "Basic Farm", "agricultural", (9, 9, 0), "easy", 15_000,
                  {"dirt": 81, "water_bucket": 1, "fence": 36, "fence_gate": 1, "hoe": 1, "seeds": 64},
                  terrain="flat", level_ground=True, features=("irrigation", "fencing")),
        _template("redstone farm", "Automated Redstone Farm", "agricultural", (15, 15, 4), "expert", 60_000,
                  {"redstone": 64, "observer": 12, "hopper": 8, "dispenser": 4, "chest": 4, "building_blocks": 300},
                  includes_redstone=True, level_ground=True,
                  features=("automation", "collection system", "water distribution")),
        _template("warehouse", "Warehouse", "storage", (15, 12, 6), "medium", 55_000,
                  {"oak_planks": 450, "stone": 200, "chest": 27, "torch": 24, "oak_door": 2},
                  interior=True, roof_style="flat", features=("organized storage", "lighting", "large entrance")),
        _template("enchanting room", "Enchanting Room", "utility", (7, 7, 5), "medium", 35_000,
                  {"obsidian": 4, "diamond": 2, "book": 15, "bookshelf": 15, "carpet": 30, "torch": 8},
                  interior=True, features=("bookshelves", "enchanting table", "ambient lighting")),
        _template("nether portal hub", "Nether Portal Hub", "transport", (11, 11, 8), "hard", 65_000,
                  {"obsidian": 40, "stone_bricks": 400, "nether_bricks": 100, "torch": 20, "flint_and_steel": 1},
                  features=("multiple portals", "safe room", "storage")),
        _template("sky bridge", "Sky Bridge", "transport", (100, 3, 0), "medium", 40_000,
                  {"cobblestone": 300, "fence": 200, "torch": 25},
                  requires_scaffolding=True, threat_level="low", features=("safety railings", "lighting")),
    )
}


def find_building_template(name: Any) -> BuildingTemplate | None:
    """Look a template up by id (``"watchtower"``, ``"basic_house"``) or display name."""
    canonical = normalize_item_name(name)
    if canonical in BUILDING_TEMPLATES:
        return BUILDING_TEMPLATES[canonical]
    for template in BUILDING_TEMPLATES.values():
        if normalize_item_name(template.name) == canonical:
            return template
    return None


@dataclass(frozen=True, slots=True)
class TerrainProfile:
    name: str
    time_multiplier: float
    clearance_ms: int
    considerations: tuple[str, ...]
    risks: tuple[str, ...]
    tools: tuple[str, ...] = ()


TERRAIN_PROFILES: dict[str, TerrainProfile] = {
    profile.name: profile
    for profile in (
        TerrainProfile("flat", 1.0, 0, ("Mark the footprint corners and check drainage.",), ()),
        TerrainProfile(
            "hillside", 1.3, 120_000,
            ("Cut terraces into the slope", "retain soil with stone walls", "keep the entrance on the uphill side"),
            ("Hillside terraces can slide if the retaining wall is skipped.",),
            ("shovel", "pickaxe"),
        ),
        TerrainProfile(
            "mountainside", 1.8, 900_000,
            ("Blast or mine a level shelf into the rock", "anchor the foundation into bedrock-deep stone",
             "stage materials on a lower landing", "rig ladders for vertical supply runs"),
            ("Steep mountainside work risks long falls; keep water buckets ready.",
             "Loose stone overhangs may collapse while the shelf is cut."),
            ("pickaxe", "scaffolding", "water bucket"),
        ),
        TerrainProfile(
            "forest", 1.25, 180_000,
            ("Fell trees inside the footprint", "remove stumps and leaves", "replant saplings outside the perimeter"),
            ("Dense canopy hides hostile mobs during construction.",),
            ("axe",),
        ),
        TerrainProfile(
            "swamp", 1.4, 240_000,
            ("Drain standing water", "raise the foundation on stilts or fill", "clear lily pads and vines"),
            ("Swamp ground is soft; slimes and witches spawn nearby.",),
            ("shovel", "bucket"),
        ),
        TerrainProfile(
            "desert", 1.1, 60_000,
            ("Replace sand under the foundation with solid blocks", "shade the work area"),
            ("Sand shifts under load; falling sand can bury foundations.",),
            ("shovel",),
        ),
        TerrainProfile(
            "snow", 1.2, 90_000,
            ("Clear snow layers", "replace ice with solid blocks", "light the site to prevent strays spawning"),
            ("Powder snow can trap builders and cause freezing damage.",),
            ("shovel",),
        ),
        TerrainProfile(
            "underwater", 2.2, 1_200_000,
            ("Build a sealed cofferdam", "drain the interior with sponges or sand", "keep conduits or respiration gear"),
            ("Drowning risk while the structure is flooded.",),
            ("sponge", "water breathing potion"),
        ),
        TerrainProfile(
            "nether", 1.5, 300_000,
            ("Use blast-resistant blocks", "fence off lava edges", "ghast-proof exposed walls"),
            ("Building in the Nether requires fire resistance and ghast-proofing.",),
            ("fire resistance potion", "pickaxe"),
        ),
    )
}

_TERRAIN_ALIASES = {"mountain": "mountainside", "mountains": "mountainside", "hill": "hillside", "slope": "hillside",
                    "uneven": "hillside", "rocky": "mountainside", "sand": "desert", "ocean": "underwater",
                    "jungle": "forest", "taiga": "forest", "plains": "flat"}


def terrain_profile(name: Any) -> TerrainProfile | None:
    canonical = normalize_item_name(name)
    canonical = _TERRAIN_ALIASES.get(canonical, canonical)
    return TERRAIN_PROFILES.get(canonical)


@dataclass(frozen=True, slots=True)
class BuildPhase:
    name: str
    critical_path: bool
    can_parallel: tuple[str, ...] = ()

    def to_dict(self, order: int) -> dict[str, Any]:
        return {"name": self.name, "critical_path": self.critical_path, "can_parallel": list(self.can_parallel),
                "order": order}


BUILD_PHASES: tuple[BuildPhase, ...] = (
    BuildPhase("site_preparation", True),
    BuildPhase("foundation", True),
    BuildPhase("framework", True),
    BuildPhase("walls", True),
    BuildPhase("floors", False, ("lighting",)),
    BuildPhase("lighting", False, ("floors",)),
    BuildPhase("roof", True),
    BuildPhase("weatherproofing", False, ("interior_walls",)),
    BuildPhase("interior_walls", False, ("weatherproofing",)),
    BuildPhase("redstone", True, ("furnishing",)),
    BuildPhase("furnishing", False, ("exterior_decoration",)),
    BuildPhase("exterior_decoration", False, ("furnishing",)),
    BuildPhase("final_inspection", True),
)


def build_phases(*, redstone: bool) -> list[dict[str, Any]]:
    """Phase list in execution order; the redstone phase only appears for wired builds."""
    phases = [phase for phase in BUILD_PHASES if redstone or phase.name != "redstone"]
    return [phase.to_dict(order) for order, phase in enumerate(phases, start=1)]


def parse_dimensions(raw: Any, *, height: Any = None) -> Dimensions | None:
    """Accept ``"LxWxH"``, ``"LxW"`` (plus ``height``) or a ``{length, width, height}`` mapping."""
    if isinstance(raw, str) and "x" in raw.lower():
        parts = [resolve_quantity(part.strip(), None) for part in raw.lower().split("x")]
        if any(part is None or part <= 0 for part in parts) or len(parts) not in (2, 3):
            return None
        if len(parts) == 2:
            extra = resolve_quantity(height, None)
            return Dimensions(int(parts[0]), int(parts[1]), int(extra) if extra is not None else None)
        return Dimensions(int(parts[0]), int(parts[1]), int(parts[2]))
    if isinstance(raw, Mapping):
        length = resolve_quantity(raw.get("length"), None)
        width = resolve_quantity(raw.get("width"), None)
        tall = resolve_quantity(raw.get("height", height), None)
        if length and width:
            return Dimensions(int(length), int(width), int(tall) if tall is not None else None)
    return None


@dataclass(slots=True)
class MaterialEstimate:
    materials: dict[str, int] = field(default_factory=dict)
    breakdown: dict[str, int] = field(default_factory=dict)

    def add(self, name: str, count: int) -> None:
        if count > 0:
            self.materials[name] = self.materials.get(name, 0) + count


def with_overhead(amount: float, buffer: float = MATERIAL_OVERHEAD) -> int:
    return math.ceil(amount * (1 + buffer))


def roof_blocks(length: int, width: int, style: str = "flat") -> int:
    if style == "pitched":
        return math.ceil(length * width * 1.5)
    if style == "steep":
        return math.ceil(length * width * 1.8)
    if style == "dome":
        return math.ceil(math.pi * (max(length, width) / 2) ** 2 * 1.2)
    if style == "battlements":
        return math.ceil(2 * (length + width) * 1.5)
    return length * width


def estimate_materials(
    dimensions: Dimensions,
    *,
    material: str = "oak planks",
    roof_material: str | None = None,
    foundation_material: str | None = "cobblestone",
    roof_style: str = "pitched",
    floors: int = 1,
    interior: bool = True,
) -> MaterialEstimate:
    """Block counts for walls, roof, foundation, flooring and lighting, each padded by 10%."""
    length, width = dimensions.length, dimensions.width
    height = dimensions.height if dimensions.height is not None else 5
    perimeter = 2 * (length + width)
    shell = perimeter * height - (2 * (length - 2) + 2 * (width - 2)) * height
    windows = (length + width) // 3
    doors = 2
    walls = max(0, shell - doors * 2 - windows * 2)
    roof = roof_blocks(length, width, roof_style)
    foundation = length * width
    flooring = max(1, length - 2) * max(1, width - 2) * max(1, floors - 1)
    lighting = math.ceil(length * width / 8 * max(1, height // 4))

    estimate = MaterialEstimate(breakdown={"walls": walls, "roof": roof, "foundation": foundation,
                                           "flooring": flooring, "lighting": lighting})
    estimate.add(material, with_overhead(walls))
    estimate.add(roof_material or material, with_overhead(roof))
    if foundation_material:
        estimate.add(foundation_material, with_overhead(foundation))
    if interior:
        estimate.add(material, with_overhead(flooring))
    estimate.add("torch", lighting)
    estimate.add("glass pane", windows)
    door = f"{material.split(' ')[0]} door" if material.endswith("planks") else "oak door"
    estimate.add(door, doors)
    return estimate
