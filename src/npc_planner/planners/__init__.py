"""Built-in action planners, one module per action."""

from __future__ import annotations

from npc_planner.planning.registry import Planner, PlannerRegistry

from .build import plan_build_task
from .climb import plan_climb_task
from .combat import plan_combat_task
from .composter import plan_composter_task
from .craft import plan_craft_task
from .display import plan_item_frame_task
from .door import plan_door_task
from .eat import plan_eat_task
from .explore import plan_explore_task
from .gather import plan_gather_task
from .guard import plan_guard_task
from .interact import plan_interact_task
from .mine import plan_mine_task
from .minecart import plan_minecart_task
from .ranged import plan_ranged_task
from .redstone import plan_redstone_task
from .scaffolding import plan_scaffolding_task
from .sleep import plan_sleep_task
from .throw import plan_throw_task
from .trade import plan_trade_task

BUILTIN_PLANNERS: dict[str, Planner] = {
    "build": plan_build_task,
    "mine": plan_mine_task,
    "craft": plan_craft_task,
    "combat": plan_combat_task,
    "gather": plan_gather_task,
    "guard": plan_guard_task,
    "explore": plan_explore_task,
    "interact": plan_interact_task,
    "eat": plan_eat_task,
    "sleep": plan_sleep_task,
    "door": plan_door_task,
    "climb": plan_climb_task,
    "redstone": plan_redstone_task,
    "throw": plan_throw_task,
    "trade": plan_trade_task,
    "minecart": plan_minecart_task,
    "item_frame": plan_item_frame_task,
    "display": plan_item_frame_task,
    "composter": plan_composter_task,
    "scaffolding": plan_scaffolding_task,
    "ranged": plan_ranged_task,
}


def register_builtin_planners(registry: PlannerRegistry) -> PlannerRegistry:
    for action, planner in BUILTIN_PLANNERS.items():
        registry.register(action, planner)
    return registry


__all__ = [
    "BUILTIN_PLANNERS",
    "plan_build_task",
    "plan_climb_task",
    "plan_combat_task",
    "plan_composter_task",
    "plan_craft_task",
    "plan_door_task",
    "plan_eat_task",
    "plan_explore_task",
    "plan_gather_task",
    "plan_guard_task",
    "plan_interact_task",
    "plan_item_frame_task",
    "plan_mine_task",
    "plan_minecart_task",
    "plan_ranged_task",
    "plan_redstone_task",
    "plan_scaffolding_task",
    "plan_sleep_task",
    "plan_throw_task",
    "plan_trade_task",
    "register_builtin_planners",
]
