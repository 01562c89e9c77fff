"""Personality bias applied to finished plans from an NPC's trait vector."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from npc_planner.config import settings
from npc_planner.context import npc_state
from npc_planner.normalize import resolve_quantity
from npc_planner.planning.primitives import Plan

TRAITS = ("curiosity", "patience", "motivation", "empathy", "aggression", "creativity", "loyalty")

VERY_HIGH = 0.8
HIGH = 0.6
LOW = 0.4
VERY_LOW = 0.2
NEUTRAL = 0.5

EMPHASIS_PHRASES = {
    "curiosity": "curious, expect side observations worth logging",
    "patience": "patient, favors careful pacing over speed",
    "motivation": "driven, keeps momentum between steps",
    "empathy": "empathetic, watches out for nearby allies",
    "aggression": "aggressive, pushes to finish quickly",
    "creativity": "creative, open to improvised solutions",
    "loyalty": "loyal, prioritizes the squad and its commitments",
}

ALLY_KEYWORDS = ("ally", "allies", "squad", "escort", "team", "villager", "pet", "companion")


def extract_traits(context: Mapping[str, Any] | None) -> dict[str, float]:
    """Read ``npc.traits`` as a mapping of trait -> [0, 1], or a list of trait names."""
    raw = npc_state(context).get("traits")
    traits: dict[str, float] = {}
    if isinstance(raw, Mapping):
        for name, value in raw.items():
            number = resolve_quantity(value, None)
            if isinstance(name, str) and number is not None:
                traits[name.strip().lower()] = max(0.0, min(1.0, float(number)))
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for name in raw:
            if isinstance(name, str) and name.strip():
                traits[name.strip().lower()] = VERY_HIGH
    return traits


def duration_factor(traits: Mapping[str, float], max_shift: float | None = None) -> float:
    shift = settings.personality_max_shift if max_shift is None else max_shift
    shift = max(0.0, min(0.25, shift))
    balance = traits.get("patience", NEUTRAL) - traits.get("aggression", NEUTRAL)
    balance = max(-1.0, min(1.0, balance))
    return max(1.0 - shift, min(1.0 + shift, 1.0 + shift * balance))


def _dominant_trait(traits: Mapping[str, float]) -> str | None:
    ranked = sorted(
        ((value, name) for name, value in traits.items() if name in EMPHASIS_PHRASES and value >= HIGH),
        key=lambda pair: (-pair[0], TRAITS.index(pair[1])),
    )
    return ranked[0][1] if ranked else None


def _mentions_allies(risk: str) -> bool:
    lowered = risk.lower()
    return any(keyword in lowered for keyword in ALLY_KEYWORDS)


def apply_personality_bias(plan: Plan, traits: Mapping[str, float] | None) -> Plan:
    """Return a biased copy of ``plan``; the input plan is left untouched.

    Only the duration, the order of risks and one leading note may change.
    """
    if not traits:
        return plan

    biased = plan.copy()
    factor = duration_factor(traits)
    biased.estimated_duration = max(1, int(round(plan.estimated_duration * factor)))

    reordered = False
    if max(traits.get("empathy", NEUTRAL), traits.get("loyalty", NEUTRAL)) >= HIGH:
        ally_risks = [risk for risk in biased.risks if _mentions_allies(risk)]
        other_risks = [risk for risk in biased.risks if not _mentions_allies(risk)]
        reordered = ally_risks + other_risks != biased.risks
        biased.risks = ally_risks + other_risks

    dominant = _dominant_trait(traits)
    if dominant is not None:
        note = f"Personality emphasis: {EMPHASIS_PHRASES[dominant]}."
        if note not in biased.notes:
            biased.notes.insert(0, note)

    biased.metadata["personality_bias"] = {
        "duration_factor": round(factor, 4),
        "dominant_trait": dominant,
        "reordered_risks": reordered,
    }
    return biased
