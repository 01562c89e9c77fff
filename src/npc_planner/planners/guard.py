"""Guard duty: equip, take the post, fortify, patrol or hold, and report."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import has_inventory_item
from npc_planner.knowledge.combat import DEFAULT_GUARD_EQUIPMENT, suggest_defensive_setup
from npc_planner.models import Task
from npc_planner.normalize import describe_target, format_requirement_list, is_specified, resolve_quantity
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names, require_target, truthy

BASE_DURATION_MS = 10_000
PER_SHIFT_MINUTE_MS = 600
DEFAULT_SHIFT_MS = 4_000


def _equipment(task: Task) -> list[str]:
    explicit = metadata_names(task.meta("gear", "equipment"))
    if explicit:
        return explicit
    primary, secondary, armor = DEFAULT_GUARD_EQUIPMENT
    gear = [
        metadata_name(task, "primaryWeapon", fallback=primary),
        metadata_name(task, "secondaryWeapon", fallback=secondary),
        armor,
    ]
    return list(dict.fromkeys(name for name in gear if is_specified(name)))


def plan_guard_task(task: Task, context: Mapping[str, Any]) -> Plan:
    require_target(task, "guard")
    draft = PlanDraft(task, context, summary="")
    draft.summary = f"Guard {draft.target_description} with regular status updates."

    route = [describe_target(point) for point in metadata_list(task.meta("patrolRoute", "patrol"))]
    shift_minutes = resolve_quantity(task.meta("shiftMinutes", "duration", "shift"), None)
    radius = resolve_quantity(task.meta("radius"), None)
    backup = metadata_name(task, "backup", "support")
    alarm = metadata_name(task, "alarm", fallback="bell")
    stance = metadata_name(task, "stance", fallback="defensive")
    buffs = metadata_names(task.meta("buffs", "potions"))
    threat = metadata_name(task, "threatLevel", fallback="high" if truthy(task.meta("highThreat")) else "medium")

    equipment = _equipment(task)
    missing = [name for name in equipment if not has_inventory_item(draft.inventory, name)]
    if missing:
        description = f"Acquire missing equipment ({format_requirement_list(missing)}) before heading out."
    else:
        description = f"Equip {', '.join(equipment)} before heading out."
    draft.step("Equip gear", description, step_type="preparation",
               metadata={"equipment": equipment, "missing": missing})

    if buffs:
        draft.step("Brew buffs", f"Carry helpful potions ({', '.join(buffs)}) for prolonged engagements.",
                   step_type="preparation", metadata={"potions": buffs})

    draft.step("Move to post", f"Travel to guard position at {draft.target_description}.", step_type="movement",
               metadata={"stance": stance})

    if truthy(task.meta("fortify")):
        minutes_available = min(shift_minutes * 0.3, 20) if shift_minutes else 15
        setup = suggest_defensive_setup(threat, minutes_available)
        kinds = ", ".join(dict.fromkeys(entry.kind for entry in setup.recommendations))
        draft.step("Fortify area", f"Fortify area: {kinds}. Estimated setup: {setup.minutes} minutes.",
                   step_type="construction",
                   metadata={"threatLevel": threat,
                             "recommendations": [entry.to_dict() for entry in setup.recommendations]})

    if route:
        draft.step("Patrol", f"Follow patrol route: {' -> '.join(route)}, watching for hostile mobs.",
                   step_type="action", metadata={"route": route})
    else:
        area = f" within {radius:g} blocks" if radius else ""
        draft.step("Hold position", f"Monitor the area around {draft.target_description}{area} and engage threats "
                   "as necessary.", step_type="action", metadata={"radius": radius})

    if shift_minutes:
        draft.step("Maintain watch", f"Maintain {stance} stance for {shift_minutes:g} minutes, rotating patrol "
                   "cycles as needed.", step_type="timed", metadata={"minutes": shift_minutes})

    if is_specified(backup):
        draft.step("Coordinate backup", f"Stay in contact with {backup} for reinforcements or relief.",
                   step_type="communication", metadata={"backup": backup})

    draft.step("Set alarm", f"Ensure alarm mechanism ({alarm}) is functional for quick alerts.",
               step_type="preparation", metadata={"alarm": alarm})
    draft.step("Report", "Communicate status updates or threats detected while on guard duty.", step_type="report",
               metadata={"cadence": task.meta("reportCadence", default="regular")})

    if missing:
        draft.risk("Guard may be under-equipped for threats.")
    if threat in {"high", "extreme"}:
        draft.risk("High threat level expected; keep escape route ready.")
    if draft.signals.is_night:
        draft.risk("Night shift increases hostile mob spawns around the post.")
    if task.meta("rotation"):
        draft.note(f"Guard rotation: {task.meta('rotation')}.")
    if task.meta("safeZone"):
        draft.note(f"Fallback point: {describe_target(task.meta('safeZone'))}.")

    draft.use(*equipment, *buffs, alarm)
    if is_specified(backup):
        draft.use(backup)
    draft.metadata.update({"stance": stance, "threatLevel": threat, "shiftMinutes": shift_minutes,
                           "patrolRoute": route})
    shift_ms = shift_minutes * PER_SHIFT_MINUTE_MS if shift_minutes else DEFAULT_SHIFT_MS
    return draft.build(BASE_DURATION_MS + shift_ms)
