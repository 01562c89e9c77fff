"""Biomes, structures and search strategies for exploration planning."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import is_specified, normalize_item_name


@dataclass(frozen=True, slots=True)
class ExplorationBiome:
    name: str
    dimension: str
    category: str
    terrain: str
    difficulty: str
    traversal_speed: float
    navigation_complexity: str
    hostile_mobs: tuple[str, ...]
    resources: tuple[str, ...]
    supplies: tuple[str, ...]
    considerations: tuple[str, ...]
    hazards: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class StructureProfile:
    name: str
    rarity: str
    finding_difficulty: str
    strategy: str
    visual_cues: tuple[str, ...]
    detectable_from: int
    search_radius: int
    loot: tuple[str, ...]
    dangers: tuple[str, ...]
    preparations: tuple[str, ...]
    tips: tuple[str, ...]
    worth_revisiting: bool = False


@dataclass(frozen=True, slots=True)
class SearchStrategy:
    key: str
    name: str
    description: str
    efficiency: float
    coverage: str
    technique: str
    requirements: tuple[str, ...]
    tips: tuple[str, ...]


EXPLORATION_BIOMES: dict[str, ExplorationBiome] = {
    biome.name: biome
    for biome in (
        ExplorationBiome("plains", "overworld", "temperate", "flat", "easy", 1.0, "low",
                         ("zombie", "skeleton", "creeper", "spider"), ("grass", "flowers", "villages"),
                         ("food", "torch", "bed"),
                         ("Ideal for horse travel", "Villages common", "Flat terrain good for mapping"),
                         ("thunderstorm",)),
        ExplorationBiome("forest", "overworld", "temperate", "varied", "medium", 0.7, "medium",
                         ("zombie", "skeleton", "creeper", "spider", "witch"), ("oak log", "birch log", "mushrooms"),
                         ("food", "torch", "bed", "axe"),
                         ("Dense trees limit visibility", "Easy to get lost", "Abundant wood resources"),
                         ("thunderstorm", "darkness")),
        ExplorationBiome("taiga", "overworld", "cold", "hilly", "medium", 0.8, "medium",
                         ("zombie", "skeleton", "creeper", "spider"), ("spruce log", "ferns", "sweet berries"),
                         ("food", "torch", "bed"), ("Wolves can be hostile", "Sweet berries useful", "Cold climate"),
                         ("snow", "freezing")),
        ExplorationBiome("desert", "overworld", "dry", "flat", "medium", 0.9, "low",
                         ("zombie", "skeleton", "creeper", "husk"), ("sand", "sandstone", "cactus"),
                         ("food", "water bucket", "torch", "bed"),
                         ("Husks do not burn in daylight", "Temples contain loot", "Limited food sources"),
                         ("heat", "no water")),
        ExplorationBiome("jungle", "overworld", "lush", "dense", "hard", 0.5, "very high",
                         ("zombie", "skeleton", "creeper", "spider"), ("jungle log", "bamboo", "cocoa beans"),
                         ("food", "torch", "bed", "axe", "shears", "compass"),
                         ("Extremely difficult navigation", "Jungle temples have traps",
                          "Bamboo useful for scaffolding"),
                         ("heavy rain", "darkness")),
        ExplorationBiome("swamp", "overworld", "wet", "waterlogged", "medium", 0.6, "high",
                         ("zombie", "skeleton", "slime", "witch"), ("vines", "lily pads", "slime balls"),
                         ("food", "torch", "bed", "boat"),
                         ("Witch huts are dangerous", "Slimes spawn at night", "Water slows movement"),
                         ("heavy rain", "flooding")),
        ExplorationBiome("mountains", "overworld", "highland", "steep", "hard", 0.4, "very high",
                         ("zombie", "skeleton", "creeper", "goat"), ("stone", "emerald ore", "iron ore"),
                         ("food", "torch", "bed", "pickaxe", "water bucket", "cobblestone"),
                         ("Fall damage risk", "Goats can knock you off ledges", "Mining opportunities"),
                         ("height", "steep cliffs")),
        ExplorationBiome("ocean", "overworld", "aquatic", "water", "hard", 0.3, "very high",
                         ("drowned", "guardian", "elder guardian"), ("kelp", "prismarine", "sponge"),
                         ("food", "boat", "water breathing potion", "night vision potion"),
                         ("Breathing underwater is critical", "Monuments are very dangerous",
                          "Dolphins help navigation"),
                         ("drowning", "darkness underwater")),
        ExplorationBiome("mushroom fields", "overworld", "rare", "varied", "easy", 1.0, "low",
                         (), ("mycelium", "mushrooms", "mooshroom"), ("food", "bed"),
                         ("No hostile mobs spawn", "Very rare biome"), ()),
        ExplorationBiome("nether wastes", "nether", "hellish", "varied", "very hard", 0.7, "high",
                         ("zombified piglin", "ghast", "magma cube"), ("netherrack", "glowstone", "nether quartz"),
                         ("food", "fire resistance potion", "bow", "cobblestone", "flint and steel"),
                         ("Ghasts destroy terrain", "Fire hazards everywhere", "No natural water"),
                         ("lava", "fire", "ghast fireballs")),
        ExplorationBiome("soul sand valley", "nether", "hellish", "slow", "very hard", 0.3, "high",
                         ("ghast", "skeleton", "enderman"), ("soul sand", "soul soil", "basalt"),
                         ("food", "fire resistance potion", "bow", "cobblestone"),
                         ("Soul sand drastically slows movement", "Many ghasts"), ("lava", "slow terrain")),
        ExplorationBiome("the end", "end", "void", "floating", "extreme", 0.8, "extreme",
                         ("enderman", "shulker"), ("end stone", "chorus fruit", "purpur"),
                         ("food", "ender pearl", "bow", "cobblestone", "slow falling potion", "carved pumpkin"),
                         ("Void death is instant", "Endermen everywhere", "Shulkers levitate you"),
                         ("void", "shulker levitation")),
    )
}

DEFAULT_BIOME = ExplorationBiome("unknown", "overworld", "unfamiliar", "varied", "medium", 1.0, "medium",
                                 (), (), ("food", "torch", "bed"), (), ())

STRUCTURES: dict[str, StructureProfile] = {
    structure.name: structure
    for structure in (
        StructureProfile("village", "common", "easy", "grid search", ("buildings", "paths", "farms"), 100, 500,
                         ("crops", "tools", "emeralds"), ("pillagers",), ("emerald",),
                         ("Follow paths", "Look for smoke from chimneys", "Check plains first"), True),
        StructureProfile("pillager outpost", "uncommon", "medium", "spiral search", ("tall tower", "cages", "banners"),
                         120, 600, ("crossbows", "arrows", "dark oak logs"), ("pillagers", "vindicators", "ravagers"),
                         ("shield", "golden apple"), ("Look for tall structures", "Often near villages")),
        StructureProfile("desert temple", "uncommon", "medium", "grid search", ("orange terracotta", "pyramid shape"),
                         80, 800, ("diamonds", "emeralds", "enchanted books"), ("tnt trap", "fall damage"),
                         ("shovel", "pickaxe", "torch"), ("Search flat desert areas", "Disarm the TNT trap")),
        StructureProfile("jungle temple", "rare", "hard", "systematic clearing", ("mossy cobblestone", "vines"),
                         30, 1000, ("diamonds", "emeralds", "gold"), ("arrow trap", "dispenser trap"),
                         ("axe", "shears", "torch"), ("Cut through dense jungle", "Look for moss stone")),
        StructureProfile("woodland mansion", "very rare", "extreme", "cartographer map",
                         ("large building", "dark oak"), 150, 20000, ("totem of undying", "diamonds"),
                         ("vindicators", "evokers", "vexes"), ("shield", "golden apple", "food"),
                         ("Use a cartographer map", "Prepare for a long journey"), True),
        StructureProfile("ocean monument", "rare", "hard", "ocean exploration", ("prismarine", "guardians"),
                         60, 1500, ("sponges", "gold blocks", "sea lanterns"),
                         ("guardians", "elder guardians", "mining fatigue", "drowning"),
                         ("water breathing potion", "night vision potion"),
                         ("Search deep ocean", "Prepare for underwater combat"), True),
        StructureProfile("nether fortress", "uncommon", "medium", "nether highway search",
                         ("nether brick", "bridges", "towers"), 100, 800, ("nether wart", "blaze rods"),
                         ("blazes", "wither skeletons", "lava"), ("fire resistance potion", "bow", "cobblestone"),
                         ("Travel along the Z axis", "Build bridges over lava"), True),
        StructureProfile("bastion remnant", "uncommon", "medium", "random walk", ("blackstone", "gold blocks"),
                         80, 600, ("ancient debris", "gold", "netherite scrap"), ("piglin brutes", "lava"),
                         ("golden helmet", "fire resistance potion"), ("Wear gold armor", "Avoid piglin brutes"), True),
        StructureProfile("end city", "uncommon", "medium", "island hopping", ("purpur blocks", "tall towers"),
                         120, 1000, ("elytra", "shulker shells"), ("shulkers", "void", "levitation"),
                         ("ender pearl", "slow falling potion"), ("Bridge between islands", "Watch for the void"),
                         True),
        StructureProfile("mineshaft", "common", "medium", "cave exploration", ("oak planks", "rails", "cobwebs"),
                         20, 300, ("rails", "ores"), ("cave spiders", "falls", "lava"), ("torch", "pickaxe", "milk bucket"),
                         ("Explore caves", "Follow rail sounds")),
        StructureProfile("stronghold", "very rare", "extreme", "ender eye tracking", ("stone bricks", "iron bars"),
                         10, 3000, ("end portal", "library books"), ("silverfish", "falls"),
                         ("ender eye", "pickaxe", "torch"), ("Use eyes of ender", "Mark your path"), True),
        StructureProfile("shipwreck", "common", "easy", "ocean exploration", ("broken ship",), 40, 400,
                         ("treasure map", "iron", "emeralds"), ("drowned", "drowning"), ("boat",),
                         ("Scan the ocean floor", "Check beaches")),
        StructureProfile("ruined portal", "common", "easy", "random walk", ("obsidian", "crying obsidian"), 60, 500,
                         ("gold", "obsidian"), ("lava", "falls"), ("pickaxe", "water bucket"),
                         ("Very common", "Check the chest for loot")),
    )
}

STRATEGIES: dict[str, SearchStrategy] = {
    strategy.key: strategy
    for strategy in (
        SearchStrategy("grid search", "Grid Search", "Systematic grid pattern covering the area methodically",
                       0.95, "complete", "Move in parallel lines spaced 50-100 blocks apart",
                       ("compass",), ("Mark the starting point clearly", "Place markers every 100 blocks")),
        SearchStrategy("spiral search", "Spiral Search", "Expanding spiral from a center point", 0.85, "complete",
                       "Start at the center and move outward in an expanding square spiral",
                       ("compass",), ("Mark the center with a tower", "Increase the spiral size gradually")),
        SearchStrategy("random walk", "Random Walk", "Random direction changes, exploring organically", 0.4,
                       "incomplete", "Travel in random directions, following interesting features",
                       ("compass",), ("Leave a breadcrumb trail", "Note coordinates periodically")),
        SearchStrategy("nether highway search", "Nether Highway Search",
                       "Build protected pathways in the Nether for fast travel", 0.7, "linear",
                       "Build an enclosed tunnel along an axis and search perpendicular to it",
                       ("cobblestone", "pickaxe", "fire resistance potion"),
                       ("Protect the tunnel from ghasts with walls", "Branch out every 100 blocks")),
        SearchStrategy("cartographer map", "Cartographer Map Tracking",
                       "Use explorer maps from cartographer villagers", 1.0, "targeted",
                       "Trade with a cartographer and follow the map marker", ("emerald", "map"),
                       ("Find a cartographer villager", "Follow the white marker")),
        SearchStrategy("ender eye tracking", "Eye of Ender Tracking", "Use eyes of ender to locate a stronghold",
                       1.0, "targeted", "Throw eyes, follow their direction and triangulate",
                       ("ender eye", "pickaxe"), ("Bring 12 or more eyes", "Eyes break 20% of the time")),
        SearchStrategy("ocean exploration", "Ocean Exploration", "Systematic ocean floor scanning", 0.6, "moderate",
                       "Boat on the surface and dive periodically to scan the floor",
                       ("boat", "water breathing potion"), ("Night vision helps underwater",)),
        SearchStrategy("cave exploration", "Cave Exploration", "Safe systematic cave network exploration", 0.5,
                       "moderate", "Torches on the right wall, explore every branch",
                       ("torch", "pickaxe"), ("Mark dead ends", "Bring extra torches")),
        SearchStrategy("island hopping", "Island Hopping", "Bridge between End islands systematically", 0.7,
                       "moderate", "Build bridges between the outer islands",
                       ("cobblestone", "ender pearl"), ("Always build with blocks beneath you",)),
        SearchStrategy("systematic clearing", "Systematic Clearing", "Clear vegetation to reveal hidden structures",
                       0.8, "complete", "Clear trees and vegetation in a grid pattern", ("axe", "shears"),
                       ("Work in sections", "Look for unnatural blocks")),
        SearchStrategy("elytra search", "Elytra Aerial Search", "Fly over terrain for rapid scouting", 0.95, "high",
                       "Fly high and scan the terrain below", ("elytra", "firework rocket"),
                       ("Fly at cloud level", "Watch for phantoms")),
    )
}

_BIOME_ALIASES = {"mountain": "mountains", "nether": "nether wastes", "end": "the end", "ocean biome": "ocean"}


def exploration_biome(name: Any) -> ExplorationBiome:
    canonical = normalize_item_name(name)
    canonical = _BIOME_ALIASES.get(canonical, canonical)
    return EXPLORATION_BIOMES.get(canonical, DEFAULT_BIOME)


def structure_profile(name: Any) -> StructureProfile | None:
    canonical = normalize_item_name(name)
    if not is_specified(canonical):
        return None
    if canonical in STRUCTURES:
        return STRUCTURES[canonical]
    return StructureProfile(canonical, "unknown", "medium", "random walk", (), 50, 500, (), (), (), ())


def search_strategy(name: Any) -> SearchStrategy | None:
    return STRATEGIES.get(normalize_item_name(name))


def choose_strategy(biome: ExplorationBiome, structure: StructureProfile | None,
                    requested: Any = None) -> SearchStrategy:
    """Structure strategy first, then an explicit request, then the biome's terrain and dimension."""
    if structure is not None and structure.strategy in STRATEGIES:
        return STRATEGIES[structure.strategy]
    explicit = search_strategy(requested)
    if explicit is not None:
        return explicit
    if biome.terrain == "flat":
        return STRATEGIES["grid search"]
    if biome.navigation_complexity == "very high":
        return STRATEGIES["systematic clearing"]
    if biome.dimension == "nether":
        return STRATEGIES["nether highway search"]
    if biome.dimension == "end":
        return STRATEGIES["island hopping"]
    return STRATEGIES["spiral search"]


def exploration_duration_ms(radius: float | None, biome: ExplorationBiome, strategy: SearchStrategy) -> int:
    radius_ms = radius * 100 if radius else 5_000
    return int(10_000 + radius_ms / biome.traversal_speed / strategy.efficiency)
