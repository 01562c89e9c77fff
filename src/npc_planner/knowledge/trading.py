"""Villager professions, trade tables and price modifiers."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from npc_planner.normalize import normalize_item_name

LEVELS = ("novice", "apprentice", "journeyman", "expert", "master")
HERO_DISCOUNT = 0.30
CURED_DISCOUNT = 0.20
# (minimum reputation, price change); negative change is a discount.
REPUTATION_TIERS = (
    (100, "excellent", -0.20),
    (30, "good", -0.10),
    (-29, "neutral", 0.0),
    (-99, "bad", 0.20),
)


@dataclass(frozen=True, slots=True)
class Trade:
    buy: str
    buy_count: int
    sell: str
    sell_count: int = 1
    buy2: str | None = None
    buy2_count: int = 0
    # Enchanted goods have a price range; buy_count holds the low end.
    max_price: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"buy": self.buy, "buyCount": self.buy_count, "buy2": self.buy2, "buy2Count": self.buy2_count,
                "sell": self.sell, "sellCount": self.sell_count, "maxPrice": self.max_price}


def _buys(item: str, count: int) -> Trade:
    return Trade(item, count, "emerald")


def _sells(item: str, emeralds: int | tuple[int, int], count: int = 1, extra: tuple[str, int] | None = None) -> Trade:
    low, high = emeralds if isinstance(emeralds, tuple) else (emeralds, None)
    buy2, buy2_count = extra or (None, 0)
    return Trade("emerald", low, item, count, buy2, buy2_count, high)


@dataclass(frozen=True, slots=True)
class Profession:
    name: str
    workstation: str | None
    trades: dict[str, tuple[Trade, ...]]

    def trades_up_to(self, level: str) -> list[Trade]:
        """Unlocked trades accumulate as the villager levels up."""
        rank = LEVELS.index(level) if level in LEVELS else 0
        return [trade for tier in LEVELS[:rank + 1] for trade in self.trades.get(tier, ())]


def _profession(name: str, workstation: str | None, *tiers: tuple[Trade, ...]) -> Profession:
    return Profession(name, workstation, dict(zip(LEVELS, tiers)))


PROFESSIONS: dict[str, Profession] = {
    profession.name: profession
    for profession in (
        _profession("armorer", "blast furnace",
                    (_buys("coal", 15), _sells("iron helmet", 5), _sells("iron chestplate", 9),
                     _sells("iron leggings", 7), _sells("iron boots", 4)),
                    (_buys("iron ingot", 4), _sells("bell", 36), _sells("chainmail leggings", 3),
                     _sells("chainmail boots", 1)),
                    (_buys("lava bucket", 1), _buys("diamond", 1), _sells("chainmail helmet", 1),
                     _sells("chainmail chestplate", 4), _sells("shield", 5)),
                    (_sells("enchanted diamond leggings", (19, 33)), _sells("enchanted diamond boots", (13, 27))),
                    (_sells("enchanted diamond helmet", (13, 27)), _sells("enchanted diamond chestplate", (21, 35)))),
        _profession("butcher", "smoker",
                    (_buys("chicken", 14), _buys("porkchop", 7), _buys("rabbit", 4), _sells("rabbit stew", 1)),
                    (_buys("coal", 15), _sells("cooked porkchop", 1, 5), _sells("cooked chicken", 1, 8)),
                    (_buys("mutton", 7), _buys("beef", 10)),
                    (_buys("dried kelp block", 10),),
                    (_buys("sweet berries", 10),)),
        _profession("cartographer", "cartography table",
                    (_buys("paper", 24), _sells("empty map", 7)),
                    (_buys("glass pane", 11), _sells("ocean explorer map", 13, extra=("compass", 1))),
                    (_buys("compass", 1), _sells("woodland explorer map", 14, extra=("compass", 1))),
                    (_sells("item frame", 7), _sells("white banner", 3)),
                    (_sells("globe banner pattern", 8),)),
        _profession("cleric", "brewing stand",
                    (_buys("rotten flesh", 32), _sells("redstone", 1, 2)),
                    (_buys("gold ingot", 3), _sells("lapis lazuli", 1)),
                    (_buys("rabbit foot", 2), _sells("glowstone", 4)),
                    (_buys("scute", 4), _buys("glass bottle", 9), _sells("ender pearl", 5)),
                    (_buys("nether wart", 22), _sells("experience bottle", 3))),
        _profession("farmer", "composter",
                    (_buys("wheat", 20), _buys("potato", 26), _buys("carrot", 22), _buys("beetroot", 15),
                     _sells("bread", 1, 6)),
                    (_buys("pumpkin", 6), _sells("pumpkin pie", 1, 4), _sells("apple", 1, 4)),
                    (_buys("melon", 4), _sells("cookie", 3, 18)),
                    (_sells("cake", 1), _sells("suspicious stew", 1)),
                    (_sells("golden carrot", 3, 3), _sells("glistering melon slice", 4, 3))),
        _profession("fisherman", "barrel",
                    (_buys("string", 20), _buys("coal", 10), _sells("cooked cod", 1, 6, extra=("cod", 6))),
                    (_buys("cod", 15), _sells("cooked salmon", 1, 6, extra=("salmon", 6)), _sells("campfire", 2)),
                    (_buys("salmon", 13), _sells("enchanted fishing rod", (7, 22))),
                    (_buys("tropical fish", 6),),
                    (_buys("pufferfish", 4), _buys("boat", 1))),
        _profession("fletcher", "fletching table",
                    (_buys("stick", 32), _sells("arrow", 1, 16), _sells("flint", 1, 10, extra=("gravel", 10))),
                    (_buys("flint", 26), _sells("bow", 2)),
                    (_buys("string", 14), _sells("crossbow", 3)),
                    (_buys("feather", 24), _sells("enchanted bow", (7, 21))),
                    (_buys("tripwire hook", 8), _sells("enchanted crossbow", (8, 22)),
                     _sells("tipped arrow", 2, 5, extra=("arrow", 5)))),
        _profession("leatherworker", "cauldron",
                    (_buys("leather", 6), _sells("leather pants", 3), _sells("leather tunic", 7)),
                    (_buys("flint", 26), _sells("leather cap", 5), _sells("leather boots", 4)),
                    (_buys("rabbit hide", 9), _sells("leather tunic", 7)),
                    (_buys("scute", 4), _sells("leather horse armor", 6)),
                    (_sells("saddle", 6),)),
        _profession("librarian", "lectern",
                    (_buys("paper", 24), _sells("enchanted book", (5, 64), extra=("book", 1)),
                     _sells("bookshelf", 9)),
                    (_buys("book", 4), _sells("lantern", 1)),
                    (_buys("ink sac", 5), _sells("glass", 1, 4)),
                    (_buys("book and quill", 2), _sells("clock", 5), _sells("compass", 4)),
                    (_sells("name tag", 20),)),
        _profession("mason", "stonecutter",
                    (_buys("clay ball", 10), _sells("brick", 1, 10)),
                    (_buys("stone", 20), _sells("chiseled stone bricks", 1, 4)),
                    (_buys("granite", 16), _buys("andesite", 16), _buys("diorite", 16),
                     _sells("polished andesite", 1, 4)),
                    (_buys("quartz", 12), _sells("glazed terracotta", 1)),
                    (_sells("quartz pillar", 1), _sells("quartz block", 1))),
        _profession("shepherd", "loom",
                    (_buys("white wool", 18), _buys("brown wool", 18), _buys("black wool", 18),
                     _buys("gray wool", 18), _sells("shears", 2)),
                    (_buys("white dye", 12), _sells("white wool", 1), _sells("white carpet", 1, 4)),
                    (_sells("white bed", 3),),
                    (_sells("white banner", 3),),
                    (_sells("painting", 2, 3),)),
        _profession("toolsmith", "smithing table",
                    (_buys("coal", 15), _sells("stone axe", 1), _sells("stone shovel", 1), _sells("stone pickaxe", 1),
                     _sells("stone hoe", 1)),
                    (_buys("iron ingot", 4), _sells("bell", 36)),
                    (_buys("flint", 30), _sells("enchanted iron axe", (6, 20)),
                     _sells("enchanted iron pickaxe", (8, 22))),
                    (_buys("diamond", 1), _sells("enchanted diamond axe", (17, 31))),
                    (_sells("enchanted diamond pickaxe", (18, 32)),)),
        _profession("weaponsmith", "grindstone",
                    (_buys("coal", 15), _sells("iron axe", 3), _sells("enchanted iron sword", (7, 21))),
                    (_buys("iron ingot", 4), _sells("bell", 36)),
                    (_buys("flint", 24),),
                    (_buys("diamond", 1), _sells("enchanted diamond axe", (17, 31))),
                    (_sells("enchanted diamond sword", (13, 27)),)),
        _profession("nitwit", None),
    )
}

WANDERING_TRADER = Profession("wandering trader", None, {"novice": (
    _sells("gunpowder", 1), _sells("lily pad", 1, 2), _sells("slime ball", 4), _sells("glowstone", 2),
    _sells("nautilus shell", 5), _sells("blue ice", 6), _sells("podzol", 1, 3), _sells("kelp", 3),
    _sells("cactus", 3), _sells("fern", 1), _sells("pumpkin", 1), _sells("vine", 1),
    _sells("small dripleaf", 1, 2), _sells("pointed dripstone", 1, 2),
)})


def profession_profile(name: Any) -> Profession | None:
    canonical = normalize_item_name(name)
    if canonical == "wandering trader":
        return WANDERING_TRADER
    return PROFESSIONS.get(canonical)


def normalize_level(level: Any) -> str:
    if isinstance(level, int) and not isinstance(level, bool):
        return LEVELS[max(1, min(level, len(LEVELS))) - 1]
    canonical = normalize_item_name(level)
    return canonical if canonical in LEVELS else LEVELS[0]


def find_trade(trades: Iterable[Trade], item: str) -> Trade | None:
    """Cheapest trade that hands over ``item``."""
    matches = [trade for trade in trades if trade.sell == item]
    return min(matches, key=lambda trade: trade.buy_count) if matches else None


def professions_selling(item: str) -> list[str]:
    return [name for name, profession in PROFESSIONS.items()
            if any(trade.sell == item for trade in profession.trades_up_to("master"))]


def reputation_tier(score: float) -> tuple[str, float]:
    for minimum, name, change in REPUTATION_TIERS:
        if score >= minimum:
            return name, change
    return "terrible", 0.0


@dataclass(slots=True)
class PriceQuote:
    trade: Trade
    buy_count: int
    buy2_count: int
    modifiers: list[str]

    @property
    def discounted(self) -> bool:
        return self.buy_count < self.trade.buy_count

    def describe(self) -> str:
        extra = f" + {self.buy2_count} {self.trade.buy2}" if self.trade.buy2 else ""
        return f"{self.buy_count} {self.trade.buy}{extra} -> {self.trade.sell_count} {self.trade.sell}"

    def to_dict(self) -> dict[str, Any]:
        return {**self.trade.to_dict(), "buyCount": self.buy_count, "buy2Count": self.buy2_count,
                "originalBuyCount": self.trade.buy_count, "discount": self.discounted,
                "modifiers": list(self.modifiers)}


def quote_price(trade: Trade, *, hero: bool = False, reputation: float | None = None, cured: bool = False,
                extra_discount: float = 0.0) -> PriceQuote:
    """Apply hero of the village, cured-villager, reputation and explicit discounts in that order.

    Each modifier rounds up and prices never drop below one item. Only the first ingredient is
    discounted, as in the game.
    """
    count = float(trade.buy_count)
    modifiers: list[str] = []
    if hero:
        count = math.ceil(count * (1 - HERO_DISCOUNT))
        modifiers.append("hero of the village")
    if cured:
        count = math.ceil(count * (1 - CURED_DISCOUNT))
        modifiers.append("cured villager")
    if reputation is not None:
        tier, change = reputation_tier(reputation)
        if change:
            count = math.ceil(count * (1 + change))
            modifiers.append(f"{tier} reputation")
    if extra_discount:
        count = math.ceil(count * (1 - max(0.0, min(extra_discount, 1.0))))
        modifiers.append("discount")
    return PriceQuote(trade, max(1, int(count)), trade.buy2_count, modifiers)
