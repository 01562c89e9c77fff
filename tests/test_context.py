from __future__ import annotations

from npc_planner.context import (
    count_inventory_items,
    extract_allies,
    extract_environmental_signals,
    extract_inventory,
    extract_player_position,
    find_inventory_item,
    has_inventory_item,
    merge_inventories,
    resolve_tool_integrity,
)


def test_extract_inventory_reads_top_level_list() -> None:
    items = extract_inventory({"inventory": [{"name": "Iron_Ingot", "count": 3}, "torch"]})
    assert [(item.name, item.count) for item in items] == [("iron ingot", 3), ("torch", 1)]


def test_extract_inventory_falls_back_through_owners() -> None:
    context = {"inventory": [], "npc": {"inventory": {"bread": 4}}, "bridgeState": {"inventory": ["stick"]}}
    items = extract_inventory(context)
    assert [(item.name, item.count) for item in items] == [("bread", 4)]

    bridge_only = extract_inventory({"bridgeState": {"inventory": [{"item": "cobblestone", "quantity": 64}]}})
    assert bridge_only[0].name == "cobblestone"
    assert bridge_only[0].count == 64


def test_extract_inventory_tolerates_garbage() -> None:
    assert extract_inventory(None) == []
    assert extract_inventory({"inventory": "not a list"}) == []
    assert extract_inventory({"inventory": [None, 5, {"count": 2}]}) == []


def test_generic_names_match_variants() -> None:
    inventory = [{"name": "iron pickaxe", "count": 1}, {"name": "stone pickaxe", "count": 2}]
    assert count_inventory_items(inventory, "pickaxe") == 3
    assert has_inventory_item(inventory, "pickaxe", 3)
    assert not has_inventory_item(inventory, "diamond pickaxe")
    assert find_inventory_item(inventory, "pickaxe").name == "iron pickaxe"
    assert has_inventory_item(inventory, "anything", 0)


def test_merge_inventories_sums_by_canonical_name() -> None:
    merged = merge_inventories([{"name": "Oak_Log", "count": 2}], {"oak log": 3, "stick": 1})
    assert [(item.name, item.count) for item in merged] == [("oak log", 5), ("stick", 1)]


def test_environmental_signals_from_bridge_and_sensors() -> None:
    context = {
        "bridgeState": {"hazards": ["Lava", {"type": "gravel"}], "weather": "thunderstorm", "timeOfDay": 18000},
        "sensors": {"lightLevel": 3},
    }
    signals = extract_environmental_signals(context)
    assert signals.lava
    assert signals.gravel
    assert signals.low_light
    assert signals.light_level == 3
    assert signals.is_night
    assert signals.storm
    assert not signals.water


def test_environmental_signals_include_task_hazards() -> None:
    class _Task:
        metadata = {"hazards": ["hostile mobs"]}

    signals = extract_environmental_signals({}, _Task())
    assert signals.hostiles
    assert signals.hazards == ["hostile mobs"]


def test_empty_context_gives_quiet_signals() -> None:
    signals = extract_environmental_signals(None)
    assert not signals.low_light
    assert signals.time_of_day is None
    assert signals.hazards == []


def test_tool_integrity_prefers_inventory_then_pools() -> None:
    context = {
        "inventory": [{"name": "iron pickaxe", "durability": 25, "maxDurability": 250}],
        "npc": {"equipmentDurability": {"sword": {"durability": 0, "maxDurability": 59}}},
        "equipmentDurability": "shield durability 100/336",
    }
    pickaxe = resolve_tool_integrity("pickaxe", context)
    assert pickaxe.origin == "inventory"
    assert pickaxe.percent == 0.1

    sword = resolve_tool_integrity("sword", context)
    assert sword.origin == "npc"
    assert sword.broken

    shield = resolve_tool_integrity("shield", context)
    assert shield.origin == "context"
    assert shield.max_durability == 336

    assert resolve_tool_integrity("bow", context) is None
    assert resolve_tool_integrity(None, context) is None


def test_player_position_and_allies() -> None:
    context = {"npc": {"position": {"x": 1, "y": 65, "z": 2}}, "allies": ["Iris", {"name": "Juno"}, {"role": "x"}]}
    assert extract_player_position(context) == {"x": 1.0, "y": 65.0, "z": 2.0}
    assert [ally["name"] for ally in extract_allies(context)] == ["Iris", "Juno"]
    assert extract_player_position({}) is None
