"""Mining patterns and the heuristics that pick one."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from npc_planner.normalize import normalize_item_name

DEFAULT_SUPPORT_SUPPLIES = (
    {"name": "torch", "count": 32},
    {"name": "wood", "count": 16},
    {"name": "food", "count": 8},
)

STRIP_QUOTA = 192
SHAFT_MAX_DEPTH = 16
STAIRCASE_MAX_DEPTH = 40


@dataclass(frozen=True, slots=True)
class MiningStyle:
    id: str
    label: str
    method: str
    description: str
    rationale: str
    risk: str
    duration_modifier: int
    recommended_supplies: tuple[str, ...] = ()
    synonyms: tuple[str, ...] = field(default=())


MINING_STYLES: tuple[MiningStyle, ...] = (
    MiningStyle(
        id="strip",
        label="strip mine",
        method="branch",
        description="Carve long horizontal corridors with evenly spaced branches for broad coverage of ore veins.",
        rationale="Efficient for harvesting large volumes within a single depth layer.",
        risk="Long corridors may spawn mobs if left unlit.",
        duration_modifier=2500,
        recommended_supplies=("rails", "chest"),
        synonyms=("strip", "branch", "branch mine", "grid"),
    ),
    MiningStyle(
        id="staircase",
        label="staircase",
        method="staircase",
        description="Dig a descending stair pattern that exposes new layers while keeping a safe way back up.",
        rationale="Balanced approach for reaching new depths with a safe retreat route.",
        risk="Open stairwells can collect mobs if not sealed.",
        duration_modifier=1500,
        recommended_supplies=("ladder", "torch"),
        synonyms=("stair", "stair mine", "incline"),
    ),
    MiningStyle(
        id="quarry",
        label="quarry",
        method="quarry",
        description="Clear large surface layers in a square pattern, moving downward layer by layer.",
        rationale="Suited to surface-level bulk extraction and structured excavation.",
        risk="Open pits increase fall hazards; the perimeter must be secured.",
        duration_modifier=3000,
        recommended_supplies=("scaffolding", "chest"),
        synonyms=("pit", "open pit"),
    ),
    MiningStyle(
        id="vertical shaft",
        label="vertical shaft",
        method="shaft",
        description="Sink a narrow shaft straight down with ladders or a water column for fast access to deep layers.",
        rationale="Fastest way to reach deep ores when surface time is limited.",
        risk="Falling or lava breakthroughs pose high danger without safety stops.",
        duration_modifier=1800,
        recommended_supplies=("ladder", "water bucket"),
        synonyms=("vertical", "shaft", "drop shaft", "ladder shaft"),
    ),
)


def _build_lookup() -> dict[str, MiningStyle]:
    lookup: dict[str, MiningStyle] = {}
    for style in MINING_STYLES:
        for key in (style.id, style.label, style.method, *style.synonyms):
            lookup.setdefault(normalize_item_name(key), style)
    return lookup


STYLE_LOOKUP = _build_lookup()


@dataclass(slots=True)
class StyleChoice:
    style: MiningStyle
    source: str
    reasons: list[str]

    @property
    def rationale(self) -> str:
        return " ".join(self.reasons) or self.style.rationale


def lookup_style(hint: object) -> MiningStyle | None:
    return STYLE_LOOKUP.get(normalize_item_name(hint)) if hint else None


def choose_mining_style(
    *,
    explicit: object = None,
    preference: object = None,
    method: object = None,
    quantity: float | None = None,
    depth: float | None = None,
    hazards: Iterable[str] = (),
) -> StyleChoice:
    """Pick a mining style: explicit hints first, then quota, depth and hazard heuristics."""
    for source, hint in (("task", explicit), ("preference", preference), ("method", method)):
        style = lookup_style(hint)
        if style is not None:
            return StyleChoice(style, source, [])

    hazard_set = {normalize_item_name(hazard) for hazard in hazards}
    if quantity is not None and quantity >= STRIP_QUOTA:
        return StyleChoice(STYLE_LOOKUP["strip"], "heuristic",
                           [f"Large quota ({quantity:g}) benefits from strip mining coverage."])
    if depth is not None:
        if depth <= SHAFT_MAX_DEPTH:
            return StyleChoice(STYLE_LOOKUP["vertical shaft"], "heuristic",
                               [f"Deep target level (Y{depth:g}) favors a vertical shaft for speed."])
        if depth < STAIRCASE_MAX_DEPTH:
            return StyleChoice(STYLE_LOOKUP["staircase"], "heuristic",
                               [f"Moderate depth (Y{depth:g}) supports a staircase descent."])
    if hazard_set & {"surface", "ravine", "open pit"}:
        return StyleChoice(STYLE_LOOKUP["quarry"], "heuristic",
                           ["Surface exposure suggests an open quarry approach."])
    if hazard_set & {"gravel", "sand"}:
        return StyleChoice(STYLE_LOOKUP["staircase"], "heuristic",
                           ["Loose gravel calls for a controlled staircase dig."])
    return StyleChoice(STYLE_LOOKUP["staircase"], "default",
                       ["Defaulting to staircase for balanced access and safety."])
