from __future__ import annotations

from npc_planner import has_planner, plan_task


def test_mine_without_pickaxe_builds_craft_and_store_sub_tasks() -> None:
    plan = plan_task(
        {
            "action": "mine",
            "target": {"x": 100, "y": 12, "z": -40},
            "metadata": {"resource": "iron_ore", "quantity": 32, "tool": "pickaxe", "dropOff": "base_chest"},
        },
        {"inventory": []},
    )

    graph = plan.task_graph
    root = graph.get_node(graph.root_id)
    parents = [graph.get_node(node_id) for node_id in root.parents]
    children = [graph.get_node(node_id) for node_id in root.children]
    assert root.action == "mine"
    assert [node.action for node in parents] == ["craft"]
    assert [node.action for node in children] == ["interact"]
    assert "Missing required tool: pickaxe." in plan.risks
    titles = plan.step_titles()
    for title in ("Gear check", "Mine", "Store resources"):
        assert title in titles
    assert plan.sub_tasks[0].plan is not None
    assert plan.sub_tasks[0].plan.action == "craft"


def test_craft_tops_up_stock_to_the_minimum_plus_buffer() -> None:
    plan = plan_task(
        {
            "action": "craft",
            "metadata": {
                "item": "torch",
                "quantity": 4,
                "maintainMinimum": 64,
                "buffer": 8,
                "station": "crafting table",
                "ingredients": [{"name": "stick", "count": 1}, {"name": "coal", "count": 1}],
            },
        },
        {"inventory": [{"name": "torch", "count": 10}]},
    )

    assert plan.metadata["quantity"] == 62
    assert any(note.startswith("Quantity rationale:") and "buffer of 8" in note for note in plan.notes)
    titles = plan.step_titles()
    assert "Assess stock levels" in titles
    assert "Verify ingredients" in titles or "Restock ingredients" in titles
    for title in ("Move to workstation", "Craft item", "Store output"):
        assert title in titles
    assert titles.index("Move to workstation") < titles.index("Craft item") < titles.index("Store output")


def test_combat_orders_threats_and_assigns_one_leader() -> None:
    plan = plan_task({
        "action": "combat",
        "metadata": {
            "targetEntity": "zombie",
            "enemyTypes": ["creeper", "skeleton", "zombie"],
            "environment": "cave",
            "squadMembers": ["Iris", "Juno", "Kai"],
        },
    })

    assert plan.metadata["threatOrder"] == ["creeper", "skeleton", "zombie"]
    roles = [entry["role"] for entry in plan.metadata["squadRoles"]]
    assert roles.count("leader") == 1
    battlefield = plan.find_step("Control the battlefield")
    assert battlefield is not None
    assert "cave" in battlefield.description.lower()
    assert any("cave" in risk.lower() for risk in plan.risks)


def test_watchtower_on_mountainside_pays_terrain_costs() -> None:
    plan = plan_task({
        "action": "build",
        "target": {"x": 0, "y": 120, "z": 0},
        "metadata": {"template": "watchtower", "terrain": "mountainside"},
    })

    assert plan.estimated_duration >= 45_000 * 1.8 + 900_000
    terrain = plan.find_step("Prepare terrain")
    assert terrain is not None
    assert terrain.metadata["terrain"] == "mountainside"
    assert terrain.metadata["considerations"]
    phases = [phase["name"] for phase in plan.metadata["phases"]]
    for phase in ("framework", "walls", "roof", "final_inspection"):
        assert phase in phases
    assert phases.index("framework") < phases.index("walls") < phases.index("roof") < phases.index("final_inspection")


def test_climb_thirty_blocks_with_scaffolding_flags_fall_risk() -> None:
    plan = plan_task(
        {"action": "climb", "target": {"x": 10, "y": 95, "z": 10}},
        {"playerPosition": {"x": 10, "y": 65, "z": 10}, "inventory": [{"name": "scaffolding", "count": 30}]},
    )

    assert plan.metadata["method"] == "scaffolding"
    assert [step.command for step in plan.steps] == ["place_scaffolding", "climb_scaffolding"]
    assert plan.metadata["safety"]["fall_risk"] == "high"
    assert plan.metadata["distance"] == 30


def test_unknown_action_yields_no_plan() -> None:
    assert plan_task({"action": "teleport", "target": {"x": 0, "y": 70, "z": 0}}) is None
    assert not has_planner("teleport")
