"""
Arrangement — immutable snapshot of a loaded vehicle.

Every change (placement run, manual move, removal, simulation tick)
produces a fresh Arrangement; nothing mutates one in place.  Because it
is frozen and hashable it doubles as the memo key for scoring.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from truckload.config import Placement, VehicleConfig, ZoneLayout
from truckload.simulator.validator import OverCapacityWarning, UnknownItemError


Position = Tuple[float, float, float]


@dataclass(frozen=True)
class Arrangement:
    """
    Placed items plus their loading order.

    Attributes:
        placements:       Placed items, in loading order.
        loading_sequence: Item ids in physical loading order.
        vehicle:          Vehicle envelope the items were placed in.
        zone_layout:      Temperature band layout used for placement.
        unplaced:         Ids of items that found no feasible position.
        infeasible:       (id, reason) for items that fit no orientation.
        warnings:         Over-capacity warnings raised while placing.
    """
    placements: Tuple[Placement, ...] = ()
    loading_sequence: Tuple[str, ...] = ()
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    zone_layout: ZoneLayout = field(default_factory=ZoneLayout)
    unplaced: Tuple[str, ...] = ()
    infeasible: Tuple[Tuple[str, str], ...] = ()
    warnings: Tuple[OverCapacityWarning, ...] = field(default=(), compare=False)

    # ── Queries ──────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.placements)

    def get(self, item_id: str) -> Placement:
        for p in self.placements:
            if p.item_id == item_id:
                return p
        raise UnknownItemError(item_id)

    def find(self, item_id: str) -> Optional[Placement]:
        for p in self.placements:
            if p.item_id == item_id:
                return p
        return None

    @property
    def item_ids(self) -> Tuple[str, ...]:
        return tuple(p.item_id for p in self.placements)

    @property
    def total_weight(self) -> float:
        return sum(p.weight for p in self.placements)

    @property
    def total_volume(self) -> float:
        return sum(p.volume for p in self.placements)

    @property
    def is_overweight(self) -> bool:
        return self.total_weight > self.vehicle.max_weight

    def positions(self) -> Dict[str, Position]:
        return {p.item_id: p.position for p in self.placements}

    # ── Fresh snapshots ──────────────────────────────────────────────────

    def with_position(self, item_id: str, position: Position) -> "Arrangement":
        """Copy with one item relocated (manual move)."""
        return self.with_positions({item_id: position})

    def with_positions(self, positions: Mapping[str, Position]) -> "Arrangement":
        """Copy with several items relocated at once."""
        known = set(self.item_ids)
        for item_id in positions:
            if item_id not in known:
                raise UnknownItemError(item_id)
        placements = tuple(
            p.moved_to(*positions[p.item_id]) if p.item_id in positions else p
            for p in self.placements
        )
        return replace(self, placements=placements)

    def without_item(self, item_id: str) -> "Arrangement":
        """Copy with *item_id* removed from the placements and the sequence."""
        self.get(item_id)
        return replace(
            self,
            placements=tuple(p for p in self.placements if p.item_id != item_id),
            loading_sequence=tuple(i for i in self.loading_sequence if i != item_id),
        )

    def to_dict(self) -> dict:
        return {
            "vehicle": self.vehicle.to_dict(),
            "placements": [p.to_dict() for p in self.placements],
            "loading_sequence": list(self.loading_sequence),
            "unplaced": list(self.unplaced),
            "infeasible": [{"item_id": i, "reason": r} for i, r in self.infeasible],
            "total_weight": self.total_weight,
            "overweight": self.is_overweight,
            "warnings": [str(w) for w in self.warnings],
        }
