"""
Advisor Prompts - Read-only state summaries for an advisory text provider.

The core never depends on the advice: it only exposes what the city
looks like right now, in a form a language model can read.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
import json
from typing import Any, TYPE_CHECKING

from ..catalog.structures import is_flood_protected
from ..engine_core.end_conditions import calculate_score, current_sea_level

if TYPE_CHECKING:
    from ..engine_core.state import GameState


SYSTEM_PROMPT = "You are a climate adviser specialised in coastal resilience."


@dataclass
class StateSummary:
    """What the advisor is told about the city."""
    turn: int
    year: int
    resources: dict[str, float]
    score: int
    sea_level_rise: float
    coastal_cells: int
    protected_coastal_cells: int
    flooded_cells: int
    structures: dict[str, int] = field(default_factory=dict)
    achievements: list[str] = field(default_factory=list)
    climate: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AdvisorPrompt:
    system: str
    user: str


def summarize_state(state: GameState) -> StateSummary:
    """Build a read-only summary of the state."""
    structures: dict[str, int] = {}
    for _, _, cell in state.iter_cells():
        if cell.structure is not None:
            structures[cell.structure] = structures.get(cell.structure, 0) + 1

    coast = state.coastal_cells()
    snapshot = state.environmental_snapshot
    return StateSummary(
        turn=state.turn,
        year=state.current_year,
        resources={k: round(v, 1) for k, v in state.resources().items()},
        score=calculate_score(state),
        sea_level_rise=round(current_sea_level(state), 3),
        coastal_cells=len(coast),
        protected_coastal_cells=sum(1 for cell in coast if is_flood_protected(cell)),
        flooded_cells=state.flooded_count(),
        structures=structures,
        achievements=list(state.achievements),
        climate=snapshot.to_dict() if snapshot is not None else None,
    )


def build_advisor_prompt(summary: StateSummary) -> AdvisorPrompt:
    """Turn a summary into the prompt sent to the advisory provider."""
    user = f"""
Current state of the city:
- Turn: {summary.turn} (year {summary.year})
- Resources: {json.dumps(summary.resources)}
- Score: {summary.score}
- Sea level rise: {summary.sea_level_rise:.2f} m
- Coast: {summary.protected_coastal_cells}/{summary.coastal_cells} cells protected, {summary.flooded_cells} flooded
- Structures: {json.dumps(summary.structures)}
- Climate data: {json.dumps(summary.climate)}

Act as an expert in climate and urban planning. Give a clear, structured
recommendation of what the player should do next to survive and protect
the coast.
""".strip()
    return AdvisorPrompt(system=SYSTEM_PROMPT, user=user)
