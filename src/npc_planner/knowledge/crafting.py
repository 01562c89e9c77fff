"""Workstations, fuels, recipes and anvil enchantment costs."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name


@dataclass(frozen=True, slots=True)
class StationProfile:
    name: str
    process: str
    verb: str
    requires_fuel: bool = False
    default_fuels: tuple[str, ...] = ()
    items_per_operation: int = 1
    post_collection: str | None = None
    note: str | None = None
    craft_command: bool = False


STATION_PROFILES: dict[str, StationProfile] = {
    "crafting table": StationProfile("crafting table", "crafting", "craft", craft_command=True),
    "furnace": StationProfile(
        "furnace", "smelting", "smelt", requires_fuel=True,
        default_fuels=("coal", "charcoal", "coal block", "lava bucket", "log"),
        post_collection="Collect finished {item} from the furnace.",
        note="Furnace operations consume fuel; keep hopper outputs clear.",
    ),
    "blast furnace": StationProfile(
        "blast furnace", "smelting", "blast", requires_fuel=True,
        default_fuels=("coal", "charcoal", "coal block", "lava bucket"),
        post_collection="Collect finished {item} from the blast furnace.",
        note="Blast furnaces only accept ores and armor; they run twice as fast as a furnace.",
    ),
    "smoker": StationProfile(
        "smoker", "smelting", "smoke", requires_fuel=True,
        default_fuels=("coal", "charcoal", "dried kelp block", "log"),
        post_collection="Collect cooked {item} from the smoker.",
        note="Smokers only accept food and cook twice as fast as a furnace.",
    ),
    "brewing stand": StationProfile(
        "brewing stand", "brewing", "brew", requires_fuel=True,
        default_fuels=("blaze powder",),
        post_collection="Collect finished potions and clear the brewing stand.",
        note="Brewing needs blaze powder fuel and filled bottles; queue reagents in order.",
    ),
    "smithing table": StationProfile(
        "smithing table", "smithing", "reforge",
        note="Have the smithing template and upgrade material on hand before reforging.",
    ),
    "anvil": StationProfile(
        "anvil", "anvil", "combine",
        note="Combining items on an anvil consumes XP levels and damages the anvil over time.",
    ),
    "stonecutter": StationProfile(
        "stonecutter", "stonecutting", "cut",
        note="Stonecutting converts blocks one to one; confirm the exact pattern before cutting.",
    ),
    "loom": StationProfile(
        "loom", "weaving", "pattern",
        note="Banner patterns consume dye for every layer applied.",
    ),
}

BOTTLES_PER_BATCH = 3


def station_profile(name: Any) -> StationProfile:
    canonical = normalize_item_name(name)
    if canonical in STATION_PROFILES:
        return STATION_PROFILES[canonical]
    for key, profile in STATION_PROFILES.items():
        if key in canonical:
            return profile
    return STATION_PROFILES["crafting table"]


@dataclass(frozen=True, slots=True)
class FuelOption:
    name: str
    items_per_fuel: float
    category: str
    note: str | None = None


FUEL_CATEGORY_ORDER = ("standard", "compressed", "liquid", "nether", "renewable", "basic")

FUEL_OPTIONS: dict[str, FuelOption] = {
    option.name: option
    for option in (
        FuelOption("coal", 8, "standard"),
        FuelOption("charcoal", 8, "standard"),
        FuelOption("coal block", 80, "compressed", "Highly efficient for large smelting jobs."),
        FuelOption("lava bucket", 100, "liquid", "Returns an empty bucket after use."),
        FuelOption("blaze rod", 12, "nether"),
        FuelOption("dried kelp block", 20, "renewable"),
        FuelOption("bamboo", 0.25, "renewable", "Very inefficient; emergencies only."),
        FuelOption("log", 1.5, "basic", "Better converted to charcoal first."),
        FuelOption("planks", 1.5, "basic"),
        FuelOption("stick", 0.5, "basic", "Very wasteful fuel option."),
        FuelOption("blaze powder", 20, "nether", "Each powder fuels twenty brewing operations."),
    )
}


def fuel_option(name: Any) -> FuelOption:
    canonical = normalize_item_name(name)
    return FUEL_OPTIONS.get(canonical, FuelOption(canonical, 1, "basic"))


def fuel_rank(option: FuelOption) -> tuple[float, int]:
    """Sort key: higher efficiency first, then lower category ordinal."""
    ordinal = FUEL_CATEGORY_ORDER.index(option.category) if option.category in FUEL_CATEGORY_ORDER else len(FUEL_CATEGORY_ORDER)
    return (-option.items_per_fuel, ordinal)


@dataclass(frozen=True, slots=True)
class Recipe:
    item: str
    station: str
    ingredients: tuple[tuple[str, int], ...]
    output: int = 1
    durability: int | None = None


def _recipe(item: str, station: str, output: int = 1, durability: int | None = None, **ingredients: int) -> Recipe:
    return Recipe(
        item=normalize_item_name(item),
        station=station,
        ingredients=tuple((normalize_item_name(name), count) for name, count in ingredients.items()),
        output=output,
        durability=durability,
    )


RECIPES: dict[str, Recipe] = {
    recipe.item: recipe
    for recipe in (
        _recipe("wooden_pickaxe", "crafting table", durability=59, planks=3, stick=2),
        _recipe("wooden_sword", "crafting table", durability=59, planks=2, stick=1),
        _recipe("wooden_axe", "crafting table", durability=59, planks=3, stick=2),
        _recipe("stone_pickaxe", "crafting table", durability=131, cobblestone=3, stick=2),
        _recipe("stone_sword", "crafting table", durability=131, cobblestone=2, stick=1),
        _recipe("stone_axe", "crafting table", durability=131, cobblestone=3, stick=2),
        _recipe("stone_shovel", "crafting table", durability=131, cobblestone=1, stick=2),
        _recipe("stone_hoe", "crafting table", durability=131, cobblestone=2, stick=2),
        _recipe("iron_pickaxe", "crafting table", durability=250, iron_ingot=3, stick=2),
        _recipe("iron_sword", "crafting table", durability=250, iron_ingot=2, stick=1),
        _recipe("iron_axe", "crafting table", durability=250, iron_ingot=3, stick=2),
        _recipe("iron_shovel", "crafting table", durability=250, iron_ingot=1, stick=2),
        _recipe("diamond_pickaxe", "crafting table", durability=1561, diamond=3, stick=2),
        _recipe("diamond_sword", "crafting table", durability=1561, diamond=2, stick=1),
        _recipe("stick", "crafting table", output=4, planks=2),
        _recipe("planks", "crafting table", output=4, log=1),
        _recipe("crafting_table", "crafting table", planks=4),
        _recipe("torch", "crafting table", output=4, coal=1, stick=1),
        _recipe("chest", "crafting table", planks=8),
        _recipe("furnace", "crafting table", cobblestone=8),
        _recipe("bucket", "crafting table", iron_ingot=3),
        _recipe("shears", "crafting table", iron_ingot=2),
        _recipe("ladder", "crafting table", output=3, stick=7),
        _recipe("scaffolding", "crafting table", output=6, bamboo=6, string=1),
        _recipe("bed", "crafting table", wool=3, planks=3),
        _recipe("minecart", "crafting table", iron_ingot=5),
        _recipe("item_frame", "crafting table", stick=8, leather=1),
        _recipe("composter", "crafting table", wooden_slab=7),
        _recipe("arrow", "crafting table", output=4, flint=1, stick=1, feather=1),
        _recipe("bow", "crafting table", durability=384, stick=3, string=3),
        _recipe("crossbow", "crafting table", durability=465, stick=3, string=2, iron_ingot=1, tripwire_hook=1),
        _recipe("shield", "crafting table", durability=336, planks=6, iron_ingot=1),
        _recipe("bread", "crafting table", wheat=3),
        _recipe("iron_ingot", "furnace", iron_ore=1),
        _recipe("gold_ingot", "furnace", gold_ore=1),
        _recipe("glass", "furnace", sand=1),
        _recipe("charcoal", "furnace", log=1),
        _recipe("cooked_beef", "smoker", beef=1),
    )
}


def find_recipe(item: Any) -> Recipe | None:
    return RECIPES.get(normalize_item_name(item))


TOOL_WORDS = ("pickaxe", "axe", "shovel", "hoe", "sword")


def default_tool_variant(tool: Any) -> str:
    """Map a generic tool word ("pickaxe") to the cheapest reliable variant ("stone pickaxe")."""
    canonical = normalize_item_name(tool)
    if canonical in TOOL_WORDS:
        return f"stone {canonical}"
    return canonical


# Anvil XP cost per enchantment level.
ENCHANTMENT_COSTS: dict[str, int] = {
    "efficiency i": 1, "efficiency ii": 2, "efficiency iii": 3, "efficiency iv": 4, "efficiency v": 5,
    "unbreaking i": 1, "unbreaking ii": 2, "unbreaking iii": 3,
    "fortune i": 2, "fortune ii": 3, "fortune iii": 4,
    "silk touch": 1,
    "sharpness i": 1, "sharpness ii": 2, "sharpness iii": 3, "sharpness iv": 4, "sharpness v": 5,
    "looting i": 2, "looting ii": 3, "looting iii": 4,
    "mending": 1,
    "protection i": 1, "protection ii": 2, "protection iii": 3, "protection iv": 4,
    "power i": 1, "power ii": 2, "power iii": 3, "power iv": 4, "power v": 5,
    "infinity": 1,
    "feather falling i": 1, "feather falling ii": 2, "feather falling iii": 3, "feather falling iv": 4,
    "respiration i": 2, "respiration ii": 3, "respiration iii": 4,
    "aqua affinity": 1,
    "depth strider i": 2, "depth strider ii": 3, "depth strider iii": 4,
}


@dataclass(slots=True)
class EnchantmentStep:
    step: int
    enchantment: str
    xp_cost: int
    cumulative_penalty: int

    @property
    def total_cost(self) -> int:
        return self.xp_cost + self.cumulative_penalty

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "enchantment": self.enchantment,
            "xpCost": self.xp_cost,
            "cumulativePenalty": self.cumulative_penalty,
            "totalCost": self.total_cost,
        }


@dataclass(slots=True)
class EnchantmentOrder:
    steps: list[EnchantmentStep] = field(default_factory=list)

    @property
    def total_cost(self) -> int:
        return sum(step.total_cost for step in self.steps)


def optimize_enchantment_order(enchantments: Iterable[Any]) -> EnchantmentOrder:
    """Order enchantments cheapest first.

    The prior-work penalty is approximated as ``2**i - 1`` for the i-th application,
    which is a heuristic rather than the exact anvil formula.
    """
    names = [normalize_item_name(name) for name in enchantments]
    ranked = sorted(names, key=lambda name: ENCHANTMENT_COSTS.get(name, 0))
    return EnchantmentOrder([
        EnchantmentStep(step=index + 1, enchantment=name, xp_cost=ENCHANTMENT_COSTS.get(name, 0),
                        cumulative_penalty=2 ** index - 1)
        for index, name in enumerate(ranked)
    ])
