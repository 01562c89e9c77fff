from __future__ import annotations

from npc_planner.normalize import (
    UNSPECIFIED_ITEM,
    describe_target,
    format_display_name,
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_count,
    resolve_quantity,
    target_position,
)


def test_normalize_item_name_collapses_separators_and_case() -> None:
    assert normalize_item_name("Iron_Ore") == "iron ore"
    assert normalize_item_name("  diamond--pickaxe ") == "diamond pickaxe"
    assert normalize_item_name("oak   planks") == "oak planks"


def test_normalize_item_name_applies_aliases() -> None:
    assert normalize_item_name("steak") == "cooked beef"
    assert normalize_item_name("Wood Pickaxe") == "wooden pickaxe"
    assert normalize_item_name("workbench") == "crafting table"


def test_normalize_item_name_is_idempotent() -> None:
    for raw in ("Steak", "wood_axe", "bonemeal", "Glow Item Frame", ""):
        once = normalize_item_name(raw)
        assert normalize_item_name(once) == once


def test_unusable_names_become_unspecified() -> None:
    assert normalize_item_name(None) == UNSPECIFIED_ITEM
    assert normalize_item_name(42) == UNSPECIFIED_ITEM
    assert normalize_item_name("   ") == UNSPECIFIED_ITEM
    assert not is_specified(normalize_item_name(None))
    assert is_specified("torch")


def test_resolve_quantity_parses_numbers_and_leading_digits() -> None:
    assert resolve_quantity(5) == 5
    assert resolve_quantity("12 blocks") == 12
    assert resolve_quantity("2.5") == 2.5
    assert resolve_quantity(-3) == 0
    assert resolve_quantity("lots", 7) == 7
    assert resolve_quantity(True, None) is None
    assert resolve_quantity(float("nan"), 1) == 1


def test_resolve_count_falls_back_for_zero_and_garbage() -> None:
    assert resolve_count(4) == 4
    assert resolve_count(0) == 1
    assert resolve_count("none", 3) == 3


def test_format_requirement_list_joins_with_and() -> None:
    text = format_requirement_list([
        {"name": "stick", "count": 2},
        {"name": "coal", "count": 1},
        ("iron_ingot", 3),
    ])
    assert text == "2 stick, 1 coal and 3 iron ingot"
    assert format_requirement_list([{"name": "torch"}]) == "torch"
    assert format_requirement_list([]) == ""


def test_format_display_name_title_cases() -> None:
    assert format_display_name("cave_spider") == "Cave Spider"


def test_describe_target_variants() -> None:
    assert describe_target(None) == "current position"
    assert describe_target("base chest") == "base chest"
    assert describe_target({"x": 1, "y": 64, "z": -3}) == "(1.0, 64.0, -3.0)"
    assert describe_target({"name": "Outpost", "x": 0, "y": 70, "z": 0, "dimension": "nether"}) == (
        "Outpost (0.0, 70.0, 0.0) nether"
    )
    assert describe_target({"foo": "bar"}) == "target location"


def test_target_position_requires_three_finite_coordinates() -> None:
    assert target_position({"x": 1, "y": 2, "z": 3}) == {"x": 1, "y": 2, "z": 3}
    assert target_position({"x": 1, "y": 2}) is None
    assert target_position({"x": True, "y": 2, "z": 3}) is None
    assert target_position("spawn") is None
