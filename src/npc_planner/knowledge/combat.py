"""Hostile mob profiles, stances, squad roles and battlefield environments."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from npc_planner.normalize import format_display_name, is_specified, normalize_item_name


@dataclass(frozen=True, slots=True)
class EnemyProfile:
    priority: int
    reason: str
    dodge: str
    risk: str
    counters: tuple[str, ...] = ()


DEFAULT_ENEMY = EnemyProfile(
    priority=4,
    reason="Standard hostile threat; monitor but lower urgency.",
    dodge="Circle strafe to reduce incoming hits and retreat if pressure mounts.",
    risk="Unknown enemy behavior; stay alert for special attacks.",
)

ENEMY_PROFILES: dict[str, EnemyProfile] = {
    "charged creeper": EnemyProfile(1, "Explosion is instantly lethal in close quarters.",
                                    "Pepper with ranged attacks and retreat before detonation.",
                                    "Charged creeper blast radius will obliterate armor and terrain.",
                                    ("blast protection armor", "bow")),
    "creeper": EnemyProfile(1, "Explodes for massive burst damage.",
                            "Keep 6-block distance, strike, then backpedal to avoid the fuse.",
                            "Creeper explosions can be fatal and destroy nearby structures.",
                            ("blast protection armor", "shield")),
    "wither skeleton": EnemyProfile(1, "Inflicts wither and high melee damage.",
                                    "Use shield blocks and strafe to avoid sweeping attacks.",
                                    "Wither effect drains health rapidly if multiple hits land.",
                                    ("milk bucket", "smite sword")),
    "ghast": EnemyProfile(1, "Fireballs deal splash damage and knockback over voids.",
                          "Strafe laterally and reflect fireballs with melee swings or arrows.",
                          "Fireball knockback can throw you into lava or off ledges.",
                          ("bow", "fire resistance potion")),
    "evoker": EnemyProfile(1, "Summons vexes and fang attacks if left alive.",
                           "Close distance quickly, circle around fangs and burst it down.",
                           "Vex summons overwhelm unprepared fighters quickly.",
                           ("milk bucket", "bow")),
    "wither": EnemyProfile(1, "Boss-level destruction and wither skull projectiles.",
                           "Use cover to block skulls, strafe constantly and drink milk to clear wither.",
                           "Wither explosions devastate terrain and health rapidly.",
                           ("milk bucket", "regeneration potion", "smite sword")),
    "elder guardian": EnemyProfile(1, "Mining fatigue beams hinder escape and combat.",
                                   "Break line of sight behind blocks to interrupt the laser.",
                                   "Mining fatigue prevents a quick retreat underwater.",
                                   ("water breathing potion", "milk bucket", "door")),
    "witch": EnemyProfile(1, "Throws harmful splash potions and heals itself.",
                          "Approach in zigzags to avoid potions and burst with melee or arrows.",
                          "Lingering poison and weakness potions prolong fights dangerously.",
                          ("milk bucket", "instant health potion")),
    "ravager": EnemyProfile(1, "Charge attacks break defenses and deal heavy damage.",
                            "Side-step charges and attack from the flanks after it lunges.",
                            "Charge knockback can launch fighters into hazards.",
                            ("shield", "strength potion")),
    "piglin brute": EnemyProfile(1, "Massive melee damage without cooldown.",
                                 "Use shields and sprint strafe to avoid consecutive hits.",
                                 "Two hits can defeat even armored fighters.",
                                 ("netherite armor", "shield")),
    "blaze": EnemyProfile(2, "Ranged fireballs ignite and stagger combatants.",
                          "Strafe between fireball volleys and use cover while closing in.",
                          "Sustained fire damage requires fire resistance or constant dodging.",
                          ("fire resistance potion", "bow")),
    "cave spider": EnemyProfile(2, "Applies poison on hit and moves unpredictably.",
                                "Block tunnel entries and backstep during leap attacks.",
                                "Poison stacks can be lethal without milk or regeneration.",
                                ("milk bucket", "instant health potion")),
    "enderman": EnemyProfile(2, "High damage teleporting strikes once provoked.",
                             "Fight under a two-block shelter and avoid prolonged eye contact.",
                             "Teleporting hits bypass shields if the fighter is exposed.",
                             ("carved pumpkin", "looting sword")),
    "guardian": EnemyProfile(2, "High ranged laser damage underwater.",
                             "Use cover pillars to reset the laser charge and strafe underwater.",
                             "Continuous beam damage stacks quickly without cover.",
                             ("depth strider boots", "water breathing potion", "door")),
    "skeleton": EnemyProfile(2, "Accurate ranged attacks chip health from afar.",
                             "Strafe side to side and close the gap to disable bow fire.",
                             "Arrow fire can knock you into hazards if ignored.",
                             ("shield", "projectile protection armor")),
    "pillager": EnemyProfile(2, "Crossbow bolts hit hard from range.",
                             "Use shield timing and strafe between reloads to flank them.",
                             "Bolts cause heavy knockback when fired in volleys.",
                             ("shield", "projectile protection armor")),
    "vindicator": EnemyProfile(2, "Axe swings deal burst damage through light armor.",
                               "Backstep out of swing range, then counterattack while it recovers.",
                               "Axe hits can drop health fast at close range.",
                               ("shield", "strength potion")),
    "stray": EnemyProfile(2, "Slowness arrows make dodging harder.",
                          "Use cover and shields, then rush before more arrows land.",
                          "Slowness makes retreat difficult in open biomes.",
                          ("shield", "milk bucket")),
    "hoglin": EnemyProfile(2, "Charges deal high knockback and damage.",
                           "Sidestep charges and counterattack while it recoils.",
                           "Knockback can send you into lava in the Nether.",
                           ("fire resistance potion", "shield")),
    "zoglin": EnemyProfile(2, "Aggressive knockback even against armored players.",
                           "Circle strafe and strike after it lunges past you.",
                           "Knockback can cause fall damage or lava spills.",
                           ("shield", "feather falling boots")),
    "spider": EnemyProfile(3, "Fast leaps can interrupt positioning.",
                           "Keep vertical advantage or backpedal during the leap windup.",
                           "Leap knockback can push you off ledges in caves.",
                           ("sweeping edge sword",)),
    "husk": EnemyProfile(3, "Applies hunger on hit.",
                         "Circle strafe to avoid swing range and counter when exposed.",
                         "Hunger drains food, reducing regeneration mid-fight.",
                         ("milk bucket",)),
    "drowned": EnemyProfile(3, "Can throw tridents for burst ranged damage.",
                            "Dive under trident arcs and close distance when they throw.",
                            "Trident hits can be lethal without armor.",
                            ("shield", "respiration helmet")),
    "phantom": EnemyProfile(3, "Aerial dives harass from above when sleep deprived.",
                            "Look up and strafe when they swoop, striking during the dive.",
                            "Repeated dives add chip damage while other threats engage.",
                            ("bow", "slow falling potion")),
    "zombie": EnemyProfile(4, "Slow melee threat but swarms overwhelm.",
                           "Kite backwards, using knockback to keep distance from the group.",
                           "Large zombie packs can corner you if spacing is lost.",
                           ("smite sword",)),
}


def enemy_profile(name: str) -> EnemyProfile:
    return ENEMY_PROFILES.get(normalize_item_name(name), DEFAULT_ENEMY)


@dataclass(frozen=True, slots=True)
class WeaponMatchup:
    weapon: str
    enemies: frozenset[str]
    reason: str


WEAPON_MATCHUPS: tuple[WeaponMatchup, ...] = (
    WeaponMatchup("smite sword", frozenset({"zombie", "husk", "drowned", "skeleton", "stray", "wither skeleton", "wither"}),
                  "Smite amplifies damage to undead foes."),
    WeaponMatchup("bane of arthropods sword", frozenset({"spider", "cave spider"}),
                  "Bane of Arthropods slows and bursts spider mobs."),
    WeaponMatchup("bow", frozenset({"creeper", "charged creeper"}),
                  "Ranged focus detonates creepers safely outside the blast radius."),
    WeaponMatchup("power bow", frozenset({"blaze", "ghast"}),
                  "Strong bows counter airborne fire mobs from range."),
    WeaponMatchup("impaling trident", frozenset({"guardian", "elder guardian"}),
                  "Impaling tridents shred guardians underwater."),
    WeaponMatchup("netherite axe", frozenset({"ravager", "piglin brute", "zoglin", "hoglin"}),
                  "High damage axes break through armored brutes quickly."),
    WeaponMatchup("crossbow", frozenset({"phantom"}),
                  "Crossbows pierce swooping phantoms during flight."),
)


@dataclass(frozen=True, slots=True)
class StanceProfile:
    name: str
    description: str
    engagement_distance: str
    primary: str
    secondary: str
    extras: tuple[str, ...]
    squad_advice: str


STANCE_PROFILES: dict[str, StanceProfile] = {
    "aggressive": StanceProfile(
        "aggressive",
        "Lead the charge and overwhelm targets with burst damage while keeping momentum.",
        "close-range pressure within 2-3 blocks", "axe", "shield", ("sword",),
        "Point leader rushes the highest priority threat while allies collapse from both flanks.",
    ),
    "defensive": StanceProfile(
        "defensive",
        "Hold ground with shield blocks and controlled counterattacks to mitigate incoming damage.",
        "tight formation within 3-4 blocks of allies", "sword", "shield", ("totem of undying",),
        "Leader anchors the line; flankers intercept threats targeting the backline.",
    ),
    "guard": StanceProfile(
        "guard",
        "Protect objectives by rotating between chokepoints and intercepting attackers before they breach.",
        "mid-range control between 4-5 blocks", "sword", "shield", ("crossbow",),
        "Leader calls rotations; one ally watches rear arcs while another provides cover fire.",
    ),
    "ranged": StanceProfile(
        "ranged",
        "Keep distance and wear down enemies with arrows or crossbow bolts while kiting.",
        "standoff range at 6-10 blocks", "bow", "sword", ("crossbow",),
        "Leader tags targets; flankers create crossfire while support keeps cover fire up.",
    ),
    "stealth": StanceProfile(
        "stealth",
        "Approach unseen, strike from cover, then disengage before the enemy can respond.",
        "ambush range within 4 blocks from concealment", "sword", "bow", ("potion of invisibility",),
        "Leader signals synchronized strikes while allies quietly cut off escape paths.",
    ),
}

SQUAD_ROLE_ORDER = ("leader", "tank", "dps", "healer", "scout")

SQUAD_ROLES: dict[str, tuple[str, str]] = {
    "leader": ("Calls focus targets, synchronizes stance swaps and keeps formation centered.",
               "midline with line of sight to every member"),
    "tank": ("Holds aggro up close, shielding allies and pinning priority mobs.",
             "front rank within shield bash range"),
    "dps": ("Keeps pressure on priority targets and pivots to new threats on command.",
            "offset flank providing burst windows"),
    "healer": ("Keeps regeneration, potions or totems ready and calls retreats when healing runs dry.",
               "protected backline within 5 blocks of the tank"),
    "scout": ("Screens for reinforcements, marks hazards and intercepts flankers.",
              "wide arcs 6-8 blocks out to spot ambushes"),
    "support": ("Provides support as needed.", "flexible positioning"),
}


@dataclass(frozen=True, slots=True)
class EnvironmentProfile:
    keywords: tuple[str, ...]
    description: str
    hazard: str
    risk: str
    counter_items: tuple[str, ...]

    def matches(self, environment: str) -> bool:
        return any(keyword in environment for keyword in self.keywords)


ENVIRONMENT_PROFILES: tuple[EnvironmentProfile, ...] = (
    EnvironmentProfile(
        ("nether",),
        "Use fireproof blocks for cover and keep fire resistance active while avoiding lava edges.",
        "Lava pools, fire damage and narrow ledges increase knockback danger.",
        "Nether terrain: lava pools and narrow ledges make knockback deadly.",
        ("fire resistance potion",),
    ),
    EnvironmentProfile(
        ("ocean", "underwater", "sea"),
        "Keep water breathing and night vision active while using blocks or doors to reset guardian lasers.",
        "Limited mobility and drowning risk if respiration expires.",
        "Underwater combat: limited mobility and drowning risk.",
        ("water breathing potion", "door", "night vision potion"),
    ),
    EnvironmentProfile(
        ("end",),
        "Place water buckets or scaffolding to prevent void falls and keep slow falling active near ledges.",
        "Void falls are lethal and endermen aggro easily on open platforms.",
        "End islands: void falls are lethal on open platforms.",
        ("slow falling potion", "water bucket"),
    ),
    EnvironmentProfile(
        ("cave", "ravine", "mine"),
        "Light choke points in the cave, clear drop hazards and fight from secure tunnels to avoid surprise attacks.",
        "Low visibility and uneven terrain enable ambushes.",
        "Cave hazard: low visibility and uneven terrain enable ambushes.",
        ("torch", "cobblestone"),
    ),
)


def environment_profile(environment: str) -> EnvironmentProfile | None:
    return next((profile for profile in ENVIRONMENT_PROFILES if profile.matches(environment)), None)


HAZARD_RISKS: dict[str, str] = {
    "fire": "Fire hazard present; keep fire resistance ready.",
    "lava": "Lava exposure nearby; carry blocks and avoid knockback toward edges.",
    "drowning": "Underwater combat risks drowning without respiration gear.",
    "poison": "Poison damage possible; keep milk ready.",
    "mining fatigue": "Mining fatigue beams can prevent emergency escapes; break line of sight often.",
    "knockback": "High knockback threats; anchor near solid walls to avoid being launched.",
    "lightning": "Lightning strikes likely during storms; avoid tall exposed structures.",
    "void fall": "Void exposure; any knockback could be fatal without slow falling.",
}

CRITICAL_DURABILITY = 0.25
LOW_DURABILITY = 0.5


@dataclass(slots=True)
class EnemyDetail:
    name: str
    profile: EnemyProfile
    explicit: bool = False

    @property
    def display_name(self) -> str:
        return format_display_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {"enemy": self.display_name, "priority": self.profile.priority, "reason": self.profile.reason}


def prioritize_enemies(enemy_types: Iterable[str], priority_targets: Iterable[str] = ()) -> list[EnemyDetail]:
    """Explicit priority targets first, then ascending profile priority, then display name."""
    explicit = [normalize_item_name(name) for name in priority_targets]
    explicit = [name for index, name in enumerate(explicit) if is_specified(name) and name not in explicit[:index]]
    ordered = [EnemyDetail(name, enemy_profile(name), explicit=True) for name in explicit]
    remaining = [EnemyDetail(name, enemy_profile(name)) for name in enemy_types if name not in explicit]
    remaining.sort(key=lambda detail: (detail.profile.priority, detail.display_name))
    return ordered + remaining


@dataclass(slots=True)
class SquadAssignment:
    name: str
    role: str

    @property
    def summary(self) -> str:
        return SQUAD_ROLES.get(self.role, SQUAD_ROLES["support"])[0]

    @property
    def spacing(self) -> str:
        return SQUAD_ROLES.get(self.role, SQUAD_ROLES["support"])[1]

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "role": self.role, "summary": self.summary, "spacing": self.spacing}


def _explicit_roles(raw: Any) -> dict[str, str]:
    roles: dict[str, str] = {}
    entries: list[tuple[Any, Any]] = []
    if isinstance(raw, Mapping):
        entries = list(raw.items())
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        for entry in raw:
            if isinstance(entry, Mapping):
                entries.append((entry.get("name") or entry.get("member"), entry.get("role")))
            elif isinstance(entry, str) and ":" in entry:
                name, role = entry.split(":", 1)
                entries.append((name, role))
    for name, role in entries:
        role_name = normalize_item_name(role)
        if isinstance(name, str) and name.strip() and role_name in SQUAD_ROLES:
            roles[format_display_name(name)] = role_name
    return roles


def assign_squad_roles(members: Sequence[str], explicit: Any = None, leader: str | None = None) -> list[SquadAssignment]:
    """Explicit roles first, then the default leader, then the remaining roles in order.

    Members left over once every role is taken become ``support``. A non-empty squad
    always ends up with exactly one leader.
    """
    names = [format_display_name(member) for member in members if isinstance(member, str) and member.strip()]
    if not names:
        return []
    requested = _explicit_roles(explicit)
    assigned: dict[str, str] = {}
    taken: set[str] = set()
    for name in names:
        role = requested.get(name)
        if role is None:
            continue
        if role == "leader" and "leader" in taken:
            continue
        assigned[name] = role
        taken.add(role)

    if "leader" not in taken:
        candidate = format_display_name(leader) if leader else names[0]
        if candidate not in names:
            candidate = next((name for name in names if name not in assigned), names[0])
        assigned[candidate] = "leader"
        taken.add("leader")

    for name in names:
        if name in assigned:
            continue
        role = next((role for role in SQUAD_ROLE_ORDER if role not in taken), "support")
        assigned[name] = role
        taken.add(role)
    return [SquadAssignment(name, assigned[name]) for name in names]


@dataclass(slots=True)
class StanceTransition:
    source: str
    destination: str
    condition: str
    rationale: str
    trigger: str = "combat_event"

    def to_dict(self) -> dict[str, str]:
        return {"from": self.source, "to": self.destination, "trigger": self.trigger,
                "condition": self.condition, "rationale": self.rationale}


def stance_transitions(initial: str, roles: Sequence[SquadAssignment], enemies: Iterable[str]) -> list[StanceTransition]:
    enemy_set = set(enemies)
    role_set = {assignment.role for assignment in roles}
    transitions: list[StanceTransition] = []
    if initial != "aggressive":
        transitions.append(StanceTransition(initial, "aggressive",
                                            "primary target health under 20% or enemy count reduced to one",
                                            "Finish remaining enemies quickly once they are weakened."))
    transitions.append(StanceTransition("aggressive", "defensive", "any ally health below 35% or shield breaks",
                                        "Stabilize the line and give healers time to recover."))
    if "healer" in role_set:
        transitions.append(StanceTransition(initial, "defensive",
                                            "the healer reports potion cooldowns or depleted healing",
                                            "Shift to a defensive stance while support replenishes."))
    if enemy_set & {"phantom", "ghast"}:
        transitions.append(StanceTransition(initial, "ranged", "airborne threats persist for more than 10 seconds",
                                            "Swap to ranged focus to clear aerial mobs."))
    if "tank" in role_set:
        transitions.append(StanceTransition("defensive", "guard",
                                            "the tank secures aggro and allies recover above 70% health",
                                            "Return to zone control once the frontline is stable."))
    return [transition for transition in transitions if transition.source != transition.destination]


@dataclass(slots=True)
class HealthProtocol:
    actor: str
    action: str
    threshold: float | None = None
    threshold_absolute: float | None = None
    follow_up: str = "replan_combat"

    def describe(self) -> str:
        if self.threshold_absolute is not None:
            return f"{self.actor} reacts if health drops below {round(self.threshold_absolute)}: {self.action}."
        return f"{self.actor} reacts if health falls to {round((self.threshold or 0) * 100)}%: {self.action}."

    def to_dict(self) -> dict[str, Any]:
        return {"actor": self.actor, "action": self.action, "threshold": self.threshold,
                "thresholdAbsolute": self.threshold_absolute, "followUp": self.follow_up}


def health_protocols(roles: Sequence[SquadAssignment], fallback: str,
                     allies: Sequence[Mapping[str, Any]] = ()) -> list[HealthProtocol]:
    protocols: list[HealthProtocol] = []
    frontline = next((entry for entry in roles if entry.role == "tank"), None) or \
        next((entry for entry in roles if entry.role == "leader"), None)
    if frontline is not None:
        protocols.append(HealthProtocol(frontline.name, "signal a defensive swap and raise shields", threshold=0.35))
    healer = next((entry for entry in roles if entry.role == "healer"), None)
    if healer is not None:
        protocols.append(HealthProtocol(healer.name, "deploy splash healing and call a retreat if cooldowns are empty",
                                        threshold=0.5, follow_up="retreat"))
    protocols.append(HealthProtocol("Squad", f"fall back to {fallback} if no healer responds",
                                    threshold=0.25, follow_up="retreat"))
    for ally in allies:
        max_health = ally.get("maxHealth")
        if isinstance(max_health, (int, float)) and not isinstance(max_health, bool) and max_health > 0:
            protocols.append(HealthProtocol(format_display_name(str(ally["name"])),
                                            "raise a shield wall and rotate to the rear",
                                            threshold_absolute=max_health * 0.3))
    return protocols


@dataclass(slots=True)
class BattlefieldHazards:
    hazards: list[str] = field(default_factory=list)
    advice: list[str] = field(default_factory=list)

    def add(self, hazard: str) -> None:
        if hazard not in self.hazards:
            self.hazards.append(hazard)


def collect_battlefield_hazards(environment: str, enemies: Iterable[str], flags: Iterable[str],
                                storm: bool) -> BattlefieldHazards:
    enemy_set = set(enemies)
    found = BattlefieldHazards()
    for flag in flags:
        found.add(flag)
    if "nether" in environment:
        found.add("fire")
        found.add("lava")
    if "end" in environment:
        found.add("void fall")
    if "ocean" in environment or "underwater" in environment:
        found.add("drowning")
    if "blaze" in enemy_set:
        found.add("fire")
        found.advice.append("Keep fire resistance handy; blaze volleys stack burn damage quickly.")
    if "witch" in enemy_set:
        found.add("poison")
        found.advice.append("Carry milk or honey to purge poison when witches connect.")
    if enemy_set & {"guardian", "elder guardian"}:
        found.add("mining fatigue")
    if enemy_set & {"hoglin", "ravager"}:
        found.add("knockback")
        found.advice.append("Brace near solid walls to prevent knockback launches from charging mobs.")
    if storm:
        found.add("lightning")
    return found


DEFAULT_GUARD_EQUIPMENT = ("sword", "shield", "armor")


@dataclass(frozen=True, slots=True)
class Fortification:
    kind: str
    name: str
    materials: tuple[str, ...]
    description: str
    minutes: int
    priority: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "name": self.name, "materials": list(self.materials),
                "description": self.description, "minutes": self.minutes, "priority": self.priority}


_LIGHTING = Fortification("lighting", "perimeter lighting", ("torch", "glowstone"),
                          "Perimeter lighting to prevent mob spawns", 5, 1)
_BASIC_WALL = Fortification("fortification", "basic barricade", ("cobblestone", "oak planks"),
                            "Simple wall or barricade for basic protection", 5, 2)
_REINFORCED_WALL = Fortification("fortification", "reinforced walls", ("stone bricks", "iron bars", "iron door"),
                                 "Reinforced walls with secure entry points", 15, 1)
_PERIMETER_WALL = Fortification("perimeter", "perimeter walls", ("cobblestone", "stone bricks"),
                                "Solid walls at least 3 blocks high to prevent mob entry", 0, 2)
_BELL_ALARM = Fortification("alarm", "bell", ("bell",), "Simple bell mechanism for manual alerts", 0, 3)
_REDSTONE_ALARM = Fortification("alarm", "redstone alarm", ("redstone", "note block", "observer"),
                                "Automated redstone alarm triggered by movement", 0, 2)


@dataclass(slots=True)
class DefensiveSetup:
    recommendations: list[Fortification]

    @property
    def minutes(self) -> int:
        return sum(entry.minutes for entry in self.recommendations)


def suggest_defensive_setup(threat_level: str = "medium", minutes_available: float = 15) -> DefensiveSetup:
    """Lighting always; walls and alarms scale with the threat level."""
    recommendations = [_LIGHTING]
    if threat_level in {"high", "extreme"}:
        if minutes_available >= 15:
            recommendations.append(_REINFORCED_WALL)
        recommendations.extend((_PERIMETER_WALL, _REDSTONE_ALARM))
    elif threat_level == "medium":
        recommendations.extend((_BASIC_WALL, _BELL_ALARM))
    else:
        recommendations.append(_BELL_ALARM)
    recommendations.sort(key=lambda entry: entry.priority)
    return DefensiveSetup(recommendations)
