"""Combat: threat ordering, stance and squad coordination, gear and battlefield checks."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from npc_planner.context import extract_allies, has_inventory_item, npc_state, resolve_tool_integrity
from npc_planner.knowledge.combat import (
    CRITICAL_DURABILITY,
    HAZARD_RISKS,
    LOW_DURABILITY,
    STANCE_PROFILES,
    WEAPON_MATCHUPS,
    assign_squad_roles,
    collect_battlefield_hazards,
    environment_profile,
    health_protocols,
    prioritize_enemies,
    stance_transitions,
)
from npc_planner.models import Task
from npc_planner.normalize import (
    format_display_name,
    format_requirement_list,
    is_specified,
    normalize_item_name,
    resolve_count,
)
from npc_planner.planning.personality import HIGH, extract_traits
from npc_planner.planning.primitives import Plan
from npc_planner.planners.common import PlanDraft, metadata_list, metadata_name, metadata_names

BASE_DURATION_MS = 9_000
PER_ENEMY_MS = 1_200


def _join(values: list[str]) -> str:
    if len(values) <= 1:
        return "".join(values)
    return f"{', '.join(values[:-1])} and {values[-1]}"


def _squad_members(raw: Any) -> list[str]:
    members: list[str] = []
    for entry in metadata_list(raw):
        if isinstance(entry, Mapping):
            entry = entry.get("name") or entry.get("label") or entry.get("id")
        if isinstance(entry, str) and entry.strip():
            members.append(entry.strip())
    return members


def _time_label(task: Task, draft: PlanDraft) -> str | None:
    explicit = metadata_name(task, "timeOfDay")
    if is_specified(explicit):
        return explicit
    signals = draft.signals
    if signals.time_of_day is None and not signals.is_night:
        return None
    return "night" if signals.is_night else "day"


def plan_combat_task(task: Task, context: Mapping[str, Any]) -> Plan:
    target = metadata_name(task, "targetEntity", "target", fallback=task.details)
    if not is_specified(target):
        target = "hostile mob"
    fallback = metadata_name(task, "fallback", fallback="retreat to base")
    tactic = metadata_name(task, "tactic", fallback="melee")
    enemy_count = resolve_count(task.meta("enemyCount", "count"), 1)
    support = metadata_name(task, "support")

    draft = PlanDraft(task, context, summary="")
    draft.summary = f"Defeat {target} near {draft.target_description}."
    signals = draft.signals
    inventory = draft.inventory

    environment = metadata_name(task, "environment", fallback=signals.environment or signals.biome or "overworld")
    weather = metadata_name(task, "weather", fallback=signals.weather)
    weather = weather if is_specified(weather) else ""
    storm = "storm" in weather or "thunder" in weather
    time_of_day = _time_label(task, draft)

    stance_key = metadata_name(task, "stance", fallback=npc_state(context).get("stance"))
    if stance_key not in STANCE_PROFILES:
        stance_key = "ranged" if "ranged" in tactic else "guard"
    stance = STANCE_PROFILES[stance_key]

    additional = metadata_names(task.meta("enemyTypes")) + metadata_names(task.meta("additionalHostiles"))
    enemy_types: list[str] = []
    for name in [target, *additional]:
        if name not in enemy_types:
            enemy_types.append(name)
    enemies = prioritize_enemies(enemy_types, metadata_names(task.meta("priorityTargets")))

    members = _squad_members(task.meta("squadMembers", "squad", "team"))
    leader_hint = task.meta("squadLeader", "leader")
    roles = assign_squad_roles(members, task.meta("squadRoles"), leader_hint)
    leader = next((entry.name for entry in roles if entry.role == "leader"), None)
    flankers = [entry.name for entry in roles if entry.role in {"dps", "scout"}]
    cover = [entry.name for entry in roles if entry.role in {"healer", "support"}]

    traits = extract_traits(context)
    aggressive_npc = traits.get("aggression", 0.3) > HIGH
    matches = []
    for matchup in WEAPON_MATCHUPS:
        hits = [name for name in enemy_types if name in matchup.enemies]
        if hits:
            matches.append({"weapon": matchup.weapon, "enemies": hits, "reason": matchup.reason,
                            "available": has_inventory_item(inventory, matchup.weapon)})

    primary = metadata_name(task, "primaryWeapon")
    if not is_specified(primary):
        best = next((match for match in matches if match["available"]), matches[0] if matches else None)
        if best is not None:
            primary = best["weapon"]
        elif stance_key == "ranged" or "ranged" in tactic:
            primary = "bow"
        else:
            primary = "axe" if aggressive_npc else stance.primary
    secondary = metadata_name(task, "secondaryWeapon", fallback=stance.secondary)
    weapons = metadata_names(task.meta("weapons"))
    loadout = []
    for name in [primary, secondary, "armor", *stance.extras, *weapons, *(match["weapon"] for match in matches)]:
        if is_specified(name) and name not in loadout:
            loadout.append(name)
    missing_gear = [name for name in loadout if not has_inventory_item(inventory, name)]

    potions = metadata_names(task.meta("buffs", "potions"))
    missing_potions = [name for name in potions if not has_inventory_item(inventory, name)]

    env_profile = environment_profile(environment)
    counters: list[str] = []
    for detail in enemies:
        counters.extend(detail.profile.counters)
    if env_profile is not None:
        counters.extend(env_profile.counter_items)
    counters = [name for index, name in enumerate(counters) if name not in counters[:index]]
    missing_counters = [name for name in counters if not has_inventory_item(inventory, name)]

    hazards = collect_battlefield_hazards(environment, enemy_types, signals.hazards, storm)
    transitions = stance_transitions(stance.name, roles, enemy_types)
    protocols = health_protocols(roles, fallback, extract_allies(context))
    health_threshold = task.meta("healthThreshold")

    alerts = []
    for item in loadout:
        integrity = resolve_tool_integrity(item, context)
        if integrity is None or integrity.percent is None:
            continue
        if integrity.percent <= CRITICAL_DURABILITY:
            level = "critical"
        elif integrity.percent <= LOW_DURABILITY:
            level = "low"
        else:
            continue
        alerts.append({"item": integrity.tool, "level": level, "current": integrity.durability,
                       "max": integrity.max_durability})

    if missing_gear:
        prepare = f"Acquire combat gear ({format_requirement_list(missing_gear)}) and equip it before engaging {target}."
        draft.risk("Missing equipment could reduce combat effectiveness.")
    else:
        prepare = f"Equip weapons, shield and armor, and carry potions or golden apples before engaging {target}."
    draft.step("Prepare", prepare, step_type="preparation",
               metadata={"equipment": loadout, "missing": missing_gear, "primary": primary, "secondary": secondary})

    if matches:
        text = " ".join(
            f"{format_display_name(match['weapon'])} vs {_join([format_display_name(name) for name in match['enemies']])}"
            f"{'' if match['available'] else ' (retrieve or craft first)'}."
            for match in matches
        )
        draft.step("Align weapons to targets", text, step_type="strategy", metadata={"matches": matches})
        if any(not match["available"] for match in matches):
            draft.risk("Optimal counter weapons are missing; expect a longer time to kill on priority targets.")
        draft.note("Weapon counters: " + "; ".join(
            f"{format_display_name(match['weapon'])} vs {_join([format_display_name(name) for name in match['enemies']])}"
            for match in matches) + ".")

    if potions:
        draft.step(
            "Buff up",
            f"Brew or retrieve potions ({format_requirement_list(missing_potions)}) before combat." if missing_potions
            else f"Drink or carry potions ({', '.join(potions)}) to gain an edge.",
            step_type="preparation",
            metadata={"potions": potions, "missing": missing_potions},
        )
        if missing_potions:
            draft.risk(f"Missing potions: {', '.join(missing_potions)}.")

    traps = task.meta("traps")
    if traps:
        draft.step("Set traps", f"Deploy traps or defensive structures before provoking the {target}.",
                   step_type="preparation", metadata={"traps": traps})

    if counters:
        draft.step(
            "Prepare countermeasures",
            f"Secure specialized countermeasures ({format_requirement_list(missing_counters)}) before engaging."
            if missing_counters else
            f"Equip specialized countermeasures ({format_requirement_list(counters)}) to neutralize enemy abilities.",
            step_type="preparation",
            metadata={"counterItems": counters, "missing": missing_counters},
        )
        if missing_counters:
            draft.risk("Missing specialized countermeasures leaves you vulnerable to unique enemy abilities.")

    if len(enemies) > 1:
        priority_text = "; ".join(
            f"{index}. {detail.display_name} - {detail.profile.reason}" for index, detail in enumerate(enemies, start=1)
        )
    else:
        priority_text = f"Focus on eliminating the {enemies[0].display_name} quickly."
    draft.step("Prioritize threats", priority_text, step_type="strategy",
               metadata={"priority": [detail.to_dict() for detail in enemies]})

    draft.step("Position and dodge", " ".join(f"{detail.display_name}: {detail.profile.dodge}" for detail in enemies),
               step_type="maneuver",
               metadata={"dodges": [{"enemy": detail.display_name, "dodge": detail.profile.dodge} for detail in enemies]})

    stance_weapons = [format_display_name(name) for name in (primary, secondary, *stance.extras)]
    draft.step(
        "Adopt stance",
        f"{format_display_name(stance.name)} stance: {stance.description} Maintain {stance.engagement_distance}. "
        f"Favor {_join(stance_weapons)} for primary damage. {stance.squad_advice}",
        step_type="strategy",
        metadata={"stance": stance.name, "engagementDistance": stance.engagement_distance,
                  "preferredWeapons": {"primary": primary, "secondary": secondary, "extras": list(stance.extras)}},
    )

    if transitions:
        draft.step(
            "Plan stance transitions",
            "Monitor combat events and replan as needed. " + " ".join(
                f"Swap from {format_display_name(item.source)} to {format_display_name(item.destination)} "
                f"when {item.condition}." for item in transitions),
            step_type="adaptation",
            metadata={"transitions": [item.to_dict() for item in transitions], "replanTrigger": "combat_event"},
        )

    if alerts:
        draft.step(
            "Monitor weapon durability",
            "Inspect combat gear durability before each engagement. " + " ".join(
                f"{format_display_name(alert['item'])} {alert['level']} ({alert['current']:g}"
                f"{'/' + format(alert['max'], 'g') if alert['max'] else ''})." for alert in alerts),
            step_type="maintenance",
            metadata={"alerts": alerts},
        )
        if any(alert["level"] == "critical" for alert in alerts):
            draft.risk("Critical durability reported; swap or repair weapons before they break mid-fight.")
        else:
            draft.risk("Some weapons are at half durability; carry backups in case they fail mid-combat.")

    if health_threshold is not None:
        draft.note(f"Requested health threshold: {health_threshold}.")
    draft.step(
        "Stabilize when injured",
        "Use safety sub-plans when health thresholds are crossed. " + " ".join(p.describe() for p in protocols),
        step_type="contingency",
        metadata={"protocols": [p.to_dict() for p in protocols], "replan": "combat_update"},
    )

    conditions: list[str] = []
    if time_of_day == "night":
        conditions.append("Night visibility is low; carry torches and use shields against surprise hits.")
        if "skeleton" in enemy_types:
            conditions.append("Avoid open-field shootouts with skeletons at night; pull them into cover.")
        draft.risk("Nighttime reduces visibility and increases hostile spawn rates.")
    if time_of_day == "day" and "zombie" in enemy_types:
        conditions.append("Use daylight to weaken zombies in exposed areas when possible.")
    if storm:
        conditions.append("Thunderstorms spawn extra mobs and can charge creepers; limit time in open terrain.")
        draft.risk("Thunderstorms may summon charged creepers and lightning strikes.")
    elif "rain" in weather:
        if "blaze" in enemy_types:
            conditions.append("Rain hampers blazes; fight them outdoors to use the weather.")
        draft.risk("Rain reduces visibility and can slow movement on uneven terrain.")
    conditions.extend(hazards.advice)
    if conditions:
        draft.step("Adapt to conditions", " ".join(conditions), step_type="awareness",
                   metadata={"timeOfDay": time_of_day, "weather": weather or None, "hazards": hazards.hazards})

    if roles:
        parts = [f"Designate {leader} as squad lead to call focus targets."]
        if flankers:
            parts.append(f"{_join(flankers)} flank to split hostile attention.")
        if cover:
            parts.append(f"{_join(cover)} provide overwatch and cover fire.")
        parts.append(" ".join(f"{entry.name}: {format_display_name(entry.role)}, {entry.summary} ({entry.spacing})."
                              for entry in roles))
        draft.step("Coordinate squad", " ".join(parts), step_type="coordination",
                   metadata={"leader": leader, "flankers": flankers, "cover": cover,
                             "roles": [entry.to_dict() for entry in roles], "stance": stance.name})
        draft.note(f"Squad roles ({format_display_name(stance.name)} stance): "
                   + ", ".join(f"{entry.name}={format_display_name(entry.role)}" for entry in roles) + ".")

    if env_profile is not None:
        draft.step("Control the battlefield", env_profile.description, step_type="maneuver",
                   metadata={"environment": environment, "hazards": [env_profile.hazard, *hazards.hazards],
                             "counterItems": list(env_profile.counter_items)})
        draft.risk(env_profile.risk)
        draft.note(f"Battlefield control guidance: {env_profile.description}")

    engage = [f"Engage the {target} near {draft.target_description} using {tactic} tactics while keeping spacing."]
    if len(enemies) > 1:
        engage.append(f"Eliminate threats in priority order: {', '.join(detail.display_name for detail in enemies)}.")
    engage.append(f"Maintain {stance.engagement_distance} as part of the {format_display_name(stance.name)} stance.")
    draft.step("Engage", " ".join(engage),
               metadata={"enemyCount": enemy_count, "tactic": tactic,
                         "priorityOrder": [detail.name for detail in enemies]})

    if is_specified(support):
        draft.step("Coordinate support", f"Coordinate with {format_display_name(support)} for focus fire or healing.",
                   step_type="communication", metadata={"support": support})

    draft.step("Secure area", f"Light up the surroundings, clear remaining threats and collect drops from the {target}.",
               step_type="cleanup")
    draft.step("Fallback plan", f"If overwhelmed, {fallback} and regroup before another attempt.",
               step_type="contingency", metadata={"fallback": fallback})

    if enemy_count > 3:
        draft.risk("Multiple hostiles present; expect an extended fight.")
    if stance.name == "aggressive":
        draft.risk("Aggressive stance exposes the leader to burst damage if support lags.")
    if stance.name == "stealth":
        draft.risk("Breaking stealth early forfeits the ambush advantage.")
    for detail in enemies:
        draft.risk(detail.profile.risk)
    for hazard in hazards.hazards:
        draft.risk(HAZARD_RISKS.get(hazard, f"Environmental hazard: {format_display_name(hazard)} may disrupt combat."))

    if task.meta("lootPriority"):
        draft.note(f"Collect priority loot: {task.meta('lootPriority')}.")
    if time_of_day:
        draft.note(f"Time of day: {format_display_name(time_of_day)}.")
    if weather:
        draft.note(f"Weather: {format_display_name(weather)}.")
    if hazards.hazards:
        draft.note(f"Hazard flags: {', '.join(format_display_name(name) for name in hazards.hazards)}.")

    draft.use(*loadout, *potions, *counters, *(detail.name for detail in enemies), target)
    if is_specified(support):
        draft.use(support)
    draft.metadata.update({
        "threatOrder": [detail.name for detail in enemies],
        "stance": stance.name,
        "squadRoles": [entry.to_dict() for entry in roles],
        "stanceTransitions": [item.to_dict() for item in transitions],
        "healthProtocols": [p.to_dict() for p in protocols],
        "environment": environment,
        "hazards": hazards.hazards,
        "durabilityAlerts": alerts,
    })

    return draft.build(BASE_DURATION_MS + enemy_count * PER_ENEMY_MS)
