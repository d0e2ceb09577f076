"""
Structure catalog - placeable improvements and where they may go.

Placement rules are tagged values interpreted by can_place(), so the
catalog stays plain data.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import Cell


class PlacementRule(str, Enum):
    """Where a structure kind may be built."""
    ANY_CELL = "any_cell"
    DRY_COAST = "dry_coast"  # Coast cell that is not flooded


@dataclass(frozen=True)
class StructureKind:
    """
    Static catalog entry. Not part of saved state; cells reference
    structures by kind_id.
    """
    kind_id: str
    name: str
    cost: float
    effects: dict[str, float] = field(default_factory=dict)
    placement_rule: PlacementRule = PlacementRule.ANY_CELL
    protects_from_flood: bool = False
    icon: str = ""

    def can_place(self, cell: Cell) -> bool:
        return can_place(self.placement_rule, cell)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind_id": self.kind_id,
            "name": self.name,
            "cost": self.cost,
            "effects": dict(self.effects),
            "placement_rule": self.placement_rule.value,
            "protects_from_flood": self.protects_from_flood,
            "icon": self.icon,
        }


def can_place(rule: PlacementRule, cell: Cell) -> bool:
    """Evaluate a placement rule against a cell."""
    if rule == PlacementRule.ANY_CELL:
        return cell.type in ("land", "coast")
    if rule == PlacementRule.DRY_COAST:
        return cell.type == "coast" and not cell.flooded
    raise ValueError(f"Unhandled placement rule: {rule}")


STRUCTURES: dict[str, StructureKind] = {
    "residential": StructureKind(
        kind_id="residential",
        name="Residential Zone",
        cost=20,
        effects={"wellbeing": 10, "environment": -5},
        icon="🏠",
    ),
    "industrial": StructureKind(
        kind_id="industrial",
        name="Industrial Zone",
        cost=30,
        effects={"money": 15, "environment": -10},
        icon="🏭",
    ),
    "mangrove": StructureKind(
        kind_id="mangrove",
        name="Restored Mangrove",
        cost=15,
        effects={"environment": 15, "resilience": 5},
        placement_rule=PlacementRule.DRY_COAST,
        protects_from_flood=True,
        icon="🌿",
    ),
    "seawall": StructureKind(
        kind_id="seawall",
        name="Protective Seawall",
        cost=25,
        effects={"resilience": 10},
        placement_rule=PlacementRule.DRY_COAST,
        protects_from_flood=True,
        icon="🛡️",
    ),
}


def is_flood_protected(cell: Cell) -> bool:
    """True if the cell carries a structure that stops flooding."""
    if cell.structure is None:
        return False
    kind = STRUCTURES.get(cell.structure)
    return kind is not None and kind.protects_from_flood
