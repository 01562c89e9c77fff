"""Food values, hunger thresholds and automatic food selection."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import normalize_item_name

MAX_HUNGER = 20
REGENERATION_HUNGER = 18
EAT_SECONDS = 1.6
HARMFUL_EFFECTS = frozenset({"poison", "hunger", "nausea"})
RISKY_CATEGORIES = frozenset({"raw meat", "raw fish", "dangerous"})


@dataclass(frozen=True, slots=True)
class FoodEffect:
    kind: str
    seconds: float = 0
    amplifier: int = 0
    chance: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "duration": self.seconds, "amplifier": self.amplifier, "chance": self.chance}


@dataclass(frozen=True, slots=True)
class FoodProfile:
    name: str
    hunger: int
    saturation: float
    category: str
    effects: tuple[FoodEffect, ...] = ()
    return_item: str | None = None
    always_edible: bool = False
    eat_seconds: float = EAT_SECONDS

    @property
    def harmful(self) -> bool:
        return any(effect.kind in HARMFUL_EFFECTS for effect in self.effects)


def _food(name: str, hunger: int, saturation: float, category: str, *effects: FoodEffect,
          return_item: str | None = None, always_edible: bool = False) -> FoodProfile:
    return FoodProfile(name, hunger, saturation, category, effects, return_item, always_edible)


FOODS: dict[str, FoodProfile] = {
    food.name: food
    for food in (
        _food("apple", 4, 2.4, "fruit"),
        _food("golden apple", 4, 9.6, "special", FoodEffect("regeneration", 5, 1), FoodEffect("absorption", 120),
              always_edible=True),
        _food("enchanted golden apple", 4, 9.6, "legendary", FoodEffect("regeneration", 20, 4),
              FoodEffect("absorption", 120, 3), FoodEffect("resistance", 300), FoodEffect("fire resistance", 300),
              always_edible=True),
        _food("carrot", 3, 3.6, "vegetable"),
        _food("golden carrot", 6, 14.4, "special"),
        _food("potato", 1, 0.6, "vegetable"),
        _food("baked potato", 5, 6.0, "cooked"),
        _food("poisonous potato", 2, 1.2, "dangerous", FoodEffect("poison", 5, chance=0.6)),
        _food("beetroot", 1, 1.2, "vegetable"),
        _food("beetroot soup", 6, 7.2, "meal", return_item="bowl"),
        _food("sweet berries", 2, 1.2, "fruit"),
        _food("glow berries", 2, 1.2, "fruit"),
        _food("melon slice", 2, 1.2, "fruit"),
        _food("bread", 5, 6.0, "baked"),
        _food("cookie", 2, 0.4, "baked"),
        _food("pumpkin pie", 8, 4.8, "baked"),
        _food("beef", 3, 1.8, "raw meat"),
        _food("porkchop", 3, 1.8, "raw meat"),
        _food("chicken", 2, 1.2, "raw meat", FoodEffect("hunger", 30, chance=0.3)),
        _food("mutton", 2, 1.2, "raw meat"),
        _food("rabbit", 3, 1.8, "raw meat"),
        _food("cooked beef", 8, 12.8, "cooked meat"),
        _food("cooked porkchop", 8, 12.8, "cooked meat"),
        _food("cooked chicken", 6, 7.2, "cooked meat"),
        _food("cooked mutton", 6, 9.6, "cooked meat"),
        _food("cooked rabbit", 5, 6.0, "cooked meat"),
        _food("cod", 2, 0.4, "raw fish"),
        _food("salmon", 2, 0.4, "raw fish"),
        _food("tropical fish", 1, 0.2, "raw fish"),
        _food("pufferfish", 1, 0.2, "dangerous", FoodEffect("poison", 60, 1), FoodEffect("hunger", 15, 2),
              FoodEffect("nausea", 15)),
        _food("cooked cod", 5, 6.0, "cooked fish"),
        _food("cooked salmon", 6, 9.6, "cooked fish"),
        _food("mushroom stew", 6, 7.2, "meal", return_item="bowl"),
        _food("rabbit stew", 10, 12.0, "meal", return_item="bowl"),
        _food("rotten flesh", 4, 0.8, "dangerous", FoodEffect("hunger", 30, chance=0.8)),
        _food("spider eye", 2, 3.2, "dangerous", FoodEffect("poison", 5)),
        _food("chorus fruit", 4, 2.4, "special", FoodEffect("teleport"), always_edible=True),
        _food("dried kelp", 1, 0.6, "vegetable"),
        _food("honey bottle", 6, 1.2, "special", FoodEffect("cure poison"), return_item="glass bottle"),
    )
}

_FOOD_ALIASES = {"raw beef": "beef", "raw porkchop": "porkchop", "raw chicken": "chicken", "raw mutton": "mutton",
                 "raw cod": "cod", "raw salmon": "salmon", "melon": "melon slice", "carrots": "carrot",
                 "potatoes": "potato"}


def food_profile(name: Any) -> FoodProfile | None:
    canonical = normalize_item_name(name)
    return FOODS.get(_FOOD_ALIASES.get(canonical, canonical))


@dataclass(slots=True)
class HungerState:
    hunger: float
    saturation: float
    known: bool = True

    @classmethod
    def from_raw(cls, raw: Any, *, assumed_hunger: float) -> HungerState:
        if isinstance(raw, Mapping):
            hunger = raw.get("hunger", raw.get("food"))
            saturation = raw.get("saturation")
        else:
            hunger, saturation = raw, None
        if isinstance(hunger, bool) or not isinstance(hunger, (int, float)):
            return cls(assumed_hunger, 5.0, known=False)
        if isinstance(saturation, bool) or not isinstance(saturation, (int, float)):
            saturation = 5.0
        return cls(max(0.0, min(float(hunger), MAX_HUNGER)), max(0.0, float(saturation)))

    @property
    def urgency(self) -> str:
        if self.hunger <= 0:
            return "critical"
        if self.hunger <= 6:
            return "high"
        if self.hunger <= 12:
            return "medium"
        if self.hunger <= 17:
            return "low"
        return "none"

    @property
    def can_regenerate(self) -> bool:
        return self.hunger >= REGENERATION_HUNGER and self.saturation > 0


@dataclass(slots=True)
class EatingOutcome:
    food: FoodProfile
    hunger_before: float
    hunger_after: float
    saturation_before: float
    saturation_after: float
    effects: list[FoodEffect] = field(default_factory=list)

    @property
    def hunger_restored(self) -> float:
        return self.hunger_after - self.hunger_before

    @property
    def saturation_restored(self) -> float:
        return self.saturation_after - self.saturation_before

    def to_dict(self) -> dict[str, Any]:
        return {
            "food": self.food.name,
            "hungerRestored": round(self.hunger_restored, 2),
            "saturationRestored": round(self.saturation_restored, 2),
            "hungerAfter": self.hunger_after,
            "saturationAfter": round(self.saturation_after, 2),
            "effects": [effect.to_dict() for effect in self.effects],
            "returnItem": self.food.return_item,
        }


def can_eat(food: FoodProfile, state: HungerState) -> bool:
    return food.always_edible or state.hunger < MAX_HUNGER


def eating_outcome(food: FoodProfile, state: HungerState) -> EatingOutcome:
    """Saturation is capped by the resulting hunger level; every possible effect is listed with its chance."""
    hunger_after = min(MAX_HUNGER, state.hunger + food.hunger)
    saturation_after = min(hunger_after, state.saturation + food.saturation)
    return EatingOutcome(food, state.hunger, hunger_after, state.saturation, saturation_after, list(food.effects))


@dataclass(slots=True)
class FoodChoice:
    food: FoodProfile
    count: int
    outcome: EatingOutcome
    score: float


def best_food_choice(inventory: Iterable[Any], state: HungerState, *, allow_risky: bool = False,
                     prefer_effects: bool = False) -> FoodChoice | None:
    """Highest hunger plus saturation restored per second of eating; ties keep inventory order."""
    best: FoodChoice | None = None
    for item in inventory:
        food = food_profile(getattr(item, "name", item))
        if food is None or not can_eat(food, state):
            continue
        if not allow_risky and food.category in RISKY_CATEGORIES:
            continue
        outcome = eating_outcome(food, state)
        score = (outcome.hunger_restored + outcome.saturation_restored) / food.eat_seconds
        if prefer_effects:
            score += 5 * sum(1 for effect in food.effects if effect.kind not in HARMFUL_EFFECTS)
        if best is None or score > best.score:
            best = FoodChoice(food, getattr(item, "count", 1), outcome, score)
    return best
