from __future__ import annotations

from npc_planner.planning import apply_personality_bias, create_plan, create_step, extract_traits
from npc_planner.planning.personality import duration_factor


def _plan():
    return create_plan(
        "guard",
        "Guard the gate.",
        steps=[create_step("Hold position", "Watch the gate.")],
        estimated_duration=10_000,
        risks=["Creepers may breach the wall.", "Villagers could wander into the fight."],
        notes=["Keep torches lit."],
    )


def test_empty_traits_return_the_plan_unchanged() -> None:
    plan = _plan()
    assert apply_personality_bias(plan, {}) is plan
    assert apply_personality_bias(plan, None) is plan


def test_patience_stretches_and_aggression_shrinks_duration() -> None:
    patient = apply_personality_bias(_plan(), {"patience": 1.0, "aggression": 0.0})
    hasty = apply_personality_bias(_plan(), {"patience": 0.0, "aggression": 1.0})
    assert patient.estimated_duration == 12_500
    assert hasty.estimated_duration == 7_500
    assert patient.metadata["personality_bias"]["duration_factor"] == 1.25


def test_duration_shift_is_clamped() -> None:
    assert duration_factor({"patience": 1.0, "aggression": 0.0}, max_shift=0.9) == 1.25
    assert duration_factor({}, max_shift=0.1) == 1.0


def test_bias_never_mutates_the_input() -> None:
    plan = _plan()
    biased = apply_personality_bias(plan, {"empathy": 0.9, "curiosity": 0.7})
    assert plan.estimated_duration == 10_000
    assert plan.risks[0].startswith("Creepers")
    assert plan.notes == ["Keep torches lit."]
    assert "personality_bias" not in plan.metadata
    assert biased is not plan


def test_empathy_moves_ally_risks_first_and_adds_emphasis_note() -> None:
    biased = apply_personality_bias(_plan(), {"empathy": 0.9, "curiosity": 0.7})
    assert biased.risks == ["Villagers could wander into the fight.", "Creepers may breach the wall."]
    assert biased.notes[0] == "Personality emphasis: empathetic, watches out for nearby allies."
    assert biased.metadata["personality_bias"]["reordered_risks"] is True
    assert biased.metadata["personality_bias"]["dominant_trait"] == "empathy"
    assert [step.title for step in biased.steps] == ["Hold position"]


def test_middling_traits_leave_notes_alone() -> None:
    biased = apply_personality_bias(_plan(), {"curiosity": 0.5})
    assert biased.notes == ["Keep torches lit."]
    assert biased.estimated_duration == 10_000
    assert biased.metadata["personality_bias"]["dominant_trait"] is None


def test_extract_traits_accepts_mapping_or_list() -> None:
    assert extract_traits({"npc": {"traits": {"Patience": 2, "loyalty": "0.3", "bad": "x"}}}) == {
        "patience": 1.0,
        "loyalty": 0.3,
    }
    assert extract_traits({"npc": {"traits": ["curiosity"]}}) == {"curiosity": 0.8}
    assert extract_traits({}) == {}
