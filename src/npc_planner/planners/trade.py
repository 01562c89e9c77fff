"""Villager trading: find the right trade, price it and check the payment."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from npc_planner.context import context_value, count_inventory_items, extract_player_position
from npc_planner.errors import TaskValidationError
from npc_planner.knowledge.trading import (
    Profession,
    Trade,
    find_trade,
    normalize_level,
    profession_profile,
    professions_selling,
    quote_price,
    reputation_tier,
)
from npc_planner.models import Task
from npc_planner.normalize import describe_target, is_specified, resolve_count, resolve_quantity, target_position
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, horizontal_distance, metadata_list, metadata_name, truthy

APPROACH_DISTANCE = 3
BASE_DURATION_MS = 2_000
PER_TRADE_MS = 1_000
TRAVEL_MS_PER_BLOCK = 250
SEARCH_MS = 20_000


def _villagers(task: Task, context: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    explicit = task.meta("villager")
    if isinstance(explicit, Mapping):
        return [explicit]
    if isinstance(task.target, Mapping) and task.target.get("profession"):
        return [task.target]
    found = [entry for entry in metadata_list(context_value(context, "nearbyVillagers", "villagers"))
             if isinstance(entry, Mapping)]
    nearest = context_value(context, "nearestVillager")
    if isinstance(nearest, Mapping):
        found.insert(0, nearest)
    profession = metadata_name(task, "profession")
    if not found and is_specified(profession):
        found.append({"profession": profession, "level": task.meta("level")})
    return found


def _reputation(raw: Any) -> float | None:
    # Reputation is signed, so it cannot go through resolve_quantity.
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)) and math.isfinite(raw):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


def _best_offer(item: str,
                villagers: list[Mapping[str, Any]]) -> tuple[Mapping[str, Any], Profession, Trade] | None:
    offers = []
    for villager in villagers:
        profession = profession_profile(villager.get("profession"))
        if profession is None:
            continue
        trade = find_trade(profession.trades_up_to(normalize_level(villager.get("level"))), item)
        if trade is not None:
            offers.append((villager, profession, trade))
    return min(offers, key=lambda offer: offer[2].buy_count) if offers else None


def plan_trade_task(task: Task, context: Mapping[str, Any]) -> Plan:
    item = metadata_name(task, "item", "want", "sell")
    if not is_specified(item):
        raise TaskValidationError("trade task requires an item to trade for")
    wanted = resolve_count(task.meta("quantity", "count"), 1)
    draft = PlanDraft(task, context, summary=f"Trade for {wanted} {item}.")
    villagers = _villagers(task, context)
    offer = _best_offer(item, villagers)

    if offer is None:
        sellers = professions_selling(item)
        if villagers:
            known = ", ".join(sorted({str(v.get("profession")) for v in villagers if v.get("profession")}))
            draft.risk(f"No nearby villager ({known or 'unknown profession'}) trades {item} at their level.")
        else:
            draft.risk("No villager available to trade with.")
        if not sellers:
            draft.risk(f"No villager profession sells {item}.")
            draft.step("Find trader", f"No known trade offers {item}; look for a wandering trader or gather it.",
                       step_type="planning", command="find_trader", metadata={"item": item})
            draft.metadata.update({"status": "blocked", "item": item})
            return draft.build(SEARCH_MS)
        profession = profession_profile(sellers[0])
        trade = find_trade(profession.trades_up_to("master"), item)
        villager: Mapping[str, Any] = {"profession": profession.name, "level": "master"}
        draft.note(f"Look for a {' or '.join(sellers)} near a {profession.workstation or 'village'}.")
    else:
        villager, profession, trade = offer

    level = normalize_level(villager.get("level"))
    reputation = _reputation(villager.get("reputation", context_value(context, "reputation")))
    tier = reputation_tier(reputation)[0] if reputation is not None else "neutral"
    quote = quote_price(
        trade,
        hero=truthy(task.meta("heroOfTheVillage")) or truthy(context_value(context, "hasHeroEffect")),
        reputation=reputation,
        cured=truthy(villager.get("cured")),
        extra_discount=resolve_quantity(context_value(context, "reputationDiscount"), 0.0),
    )
    trades = math.ceil(wanted / trade.sell_count)
    payment = {quote.trade.buy: quote.buy_count * trades}
    if quote.trade.buy2:
        payment[quote.trade.buy2] = payment.get(quote.trade.buy2, 0) + quote.buy2_count * trades

    draft.summary = (f"Trade with a {level} {profession.name} for {trades * trade.sell_count} {item} "
                     f"({trades} trade{'s' if trades != 1 else ''}).")

    status = "ready"
    if tier == "terrible":
        draft.risk("Reputation is too low; the villager refuses to trade.")
        status = "blocked"
    if trade.max_price is not None:
        draft.note(f"{item} price varies between {trade.buy_count} and {trade.max_price} emeralds; "
                   "planning for the low end.")
    for payment_item, needed in payment.items():
        have = count_inventory_items(draft.inventory, payment_item)
        if have < needed:
            draft.risk(f"Insufficient {payment_item} for the trade: need {needed}, have {have}.")
            draft.prerequisite("gather", f"Gather {needed - have} {payment_item} for trading",
                               metadata={"resource": payment_item, "quantity": needed - have,
                                         "reason": "insufficient_payment"})
            status = "blocked"

    duration = BASE_DURATION_MS
    position = target_position(villager.get("position")) or target_position(task.target)
    distance = horizontal_distance(extract_player_position(context), position)
    if position is None or distance is None or distance > APPROACH_DISTANCE:
        where = describe_target(position) if position is not None else "the nearest village"
        draft.step("Navigate to villager", f"Walk to the {profession.name} at {where}.", step_type="movement",
                   command="navigate_to_villager",
                   metadata={"target": position, "profession": profession.name, "maxDistance": APPROACH_DISTANCE})
        duration += (distance if distance is not None else 40) * TRAVEL_MS_PER_BLOCK
    draft.step("Open trade interface", f"Open the trading screen with the {profession.name}.", step_type="action",
               command="open_trade_interface", metadata={"profession": profession.name, "level": level})
    draft.step("Select trade", f"Select trade: {quote.describe()}.", step_type="action", command="select_trade",
               metadata={"trade": quote.to_dict(), "discount": quote.discounted})
    plural = "s" if trades != 1 else ""
    draft.step("Confirm trade", f"Complete {trades} trade{plural} for {item}.", step_type="action", command="confirm_trade",
               metadata={"giving": payment, "receiving": {item: trades * trade.sell_count}, "repeat": trades})
    duration += trades * PER_TRADE_MS

    if quote.modifiers:
        draft.note(f"Price modifiers applied: {', '.join(quote.modifiers)}.")
    draft.use(*payment)
    draft.metadata.update({
        "item": item,
        "profession": profession.name,
        "level": level,
        "trades": trades,
        "payment": payment,
        "quote": quote.to_dict(),
        "reputation": tier,
        "status": status,
    })
    return draft.build(duration)
