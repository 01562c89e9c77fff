"""Eating: pick the best food on hand, or fetch some when there is none."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import bridge_state, context_value, find_inventory_item, npc_state
from npc_planner.knowledge.food import (
    HARMFUL_EFFECTS,
    MAX_HUNGER,
    RISKY_CATEGORIES,
    FoodChoice,
    HungerState,
    best_food_choice,
    can_eat,
    eating_outcome,
    food_profile,
)
from npc_planner.models import Task
from npc_planner.normalize import is_specified
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_name, truthy

# Hunger assumed when the context carries none, so an explicit request to eat is honoured.
ASSUMED_HUNGER = 14
BASE_DURATION_MS = 1_000
SAFE_SPOT_MS = 3_000
FORAGE_DURATION_MS = 20_000
DEFAULT_FORAGE_QUANTITY = 8


def _hunger_state(task: Task, context: Mapping[str, Any]) -> HungerState:
    raw = task.meta("hungerState", "hunger")
    if raw is None:
        raw = context_value(context, "hungerState", "hunger_state")
    if raw is None:
        raw = npc_state(context).get("hunger", bridge_state(context).get("hunger"))
    return HungerState.from_raw(raw, assumed_hunger=ASSUMED_HUNGER)


def plan_eat_task(task: Task, context: Mapping[str, Any]) -> Plan:
    draft = PlanDraft(task, context, summary="Eat food to restore hunger.")
    state = _hunger_state(task, context)
    requested = metadata_name(task, "food", "item", fallback=task.details)
    preferences = task.meta("preferences") or {}
    allow_risky = truthy(preferences.get("allowRisky")) if isinstance(preferences, Mapping) else False
    prefer_effects = truthy(preferences.get("preferEffects")) if isinstance(preferences, Mapping) else False
    hostiles_near = draft.signals.hostiles

    choice: FoodChoice | None = None
    wanted = food_profile(requested) if is_specified(requested) else None
    if is_specified(requested) and wanted is None:
        draft.risk(f"{requested} is not a known food; choosing from inventory instead.")
    if wanted is not None:
        on_hand = find_inventory_item(draft.inventory, wanted.name)
        if on_hand is None:
            draft.risk(f"No {wanted.name} in inventory.")
        elif can_eat(wanted, state):
            choice = FoodChoice(wanted, on_hand.count, eating_outcome(wanted, state), 0.0)
    if choice is None:
        choice = best_food_choice(draft.inventory, state, allow_risky=allow_risky, prefer_effects=prefer_effects)

    if choice is None and state.hunger >= MAX_HUNGER:
        draft.summary = "Hunger is already full; no meal needed."
        draft.step("Skip meal", "Hunger bar is full; keep food for later.", step_type="planning",
                   command="skip_meal", metadata={"hunger": state.hunger})
        draft.note("Only always-edible foods such as golden apples can be eaten at full hunger.")
        draft.metadata.update({"status": "satisfied", "food": None})
        return draft.build(BASE_DURATION_MS)

    urgency = state.urgency
    draft.metadata.update({
        "hunger": {"level": state.hunger, "saturation": state.saturation, "max": MAX_HUNGER,
                   "urgency": urgency, "known": state.known, "canRegenerate": state.can_regenerate},
    })

    needs_safe_spot = urgency == "critical" or (hostiles_near and choice is not None)
    if needs_safe_spot:
        reason = "Critical hunger" if urgency == "critical" else "Hostiles nearby"
        draft.step("Find safe location", f"{reason}; move somewhere safe before eating.", step_type="movement",
                   command="find_safe_location", metadata={"reason": reason.lower()})

    if choice is None:
        target_food = wanted.name if wanted is not None else "food"
        draft.summary = f"Source {target_food} before eating."
        draft.step("Acquire food", f"No suitable food on hand; gather or cook {target_food} first.",
                   step_type="inventory", command="acquire_food", metadata={"food": target_food})
        draft.risk("No suitable food in inventory.")
        if urgency in {"critical", "high"}:
            draft.risk("Starvation damage likely before food is found.")
        draft.prerequisite("gather", f"Gather {target_food} to eat",
                           metadata={"resource": target_food, "quantity": DEFAULT_FORAGE_QUANTITY,
                                     "reason": "no_food"})
        draft.metadata["status"] = "blocked"
        safe = SAFE_SPOT_MS if needs_safe_spot else 0
        return draft.build(BASE_DURATION_MS + FORAGE_DURATION_MS + safe)

    food = choice.food
    outcome = choice.outcome
    draft.summary = f"Eat {food.name} to restore hunger."
    draft.step("Select food", f"Select {food.name} from inventory.", step_type="inventory", command="select_food",
               metadata={"item": food.name, "slot": "main hand", "available": choice.count})
    draft.step("Eat food", f"Eat {food.name}, restoring {outcome.hunger_restored:g} hunger.", step_type="action",
               command="eat_food",
               metadata={"item": food.name, "durationSeconds": food.eat_seconds, "interruptible": False,
                         "outcome": outcome.to_dict()})
    if food.return_item:
        draft.step("Collect container", f"Collect the {food.return_item} left after eating.", step_type="inventory",
                   command="collect_container", metadata={"item": food.return_item})

    if food.category in RISKY_CATEGORIES:
        draft.risk(f"{food.name} is {food.category}; it may cause harmful effects.")
    for effect in food.effects:
        if effect.kind in HARMFUL_EFFECTS:
            chance = f" ({round(effect.chance * 100)}% chance)" if effect.chance < 1 else ""
            draft.risk(f"Eating {food.name} may cause {effect.kind} for {effect.seconds:g}s{chance}.")
    if not state.known:
        draft.note(f"Hunger level unknown; assuming {ASSUMED_HUNGER}/{MAX_HUNGER}.")
    if outcome.hunger_after < MAX_HUNGER and urgency in {"critical", "high"}:
        draft.note("One serving will not fill the hunger bar; eat again when possible.")
    if state.saturation < 2 and state.hunger > 6:
        draft.note("Low saturation; hunger will deplete faster.")

    draft.use(food.name)
    if food.return_item:
        draft.use(food.return_item)
    draft.metadata.update({"status": "ready", "food": food.name, "outcome": outcome.to_dict()})
    safe = SAFE_SPOT_MS if needs_safe_spot else 0
    return draft.build(BASE_DURATION_MS + food.eat_seconds * 1000 + safe)
