"""
Load state — tracks what has been placed so far during a placement run.

The LoadState is the object exchanged between the planner and the
strategies.  It provides:

  Spatial queries:
    .get_height_at(box, zone)     — resting y for a footprint (gravity drop)
    .get_fill_rate()              — volumetric utilisation
    .band_placements(zone)        — placed boxes inside one temperature band

  Full state:
    .placed       — List[Placement] in loading order
    .load_counts  — item id → number of items resting directly on it

Bands never overlap, so every query is restricted to the band of the
item being placed.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from truckload.config import Placement, TemperatureZone, VehicleConfig, ZoneLayout
from truckload.simulator.geometry import Bounds, column_top


class LoadState:
    """
    Placement progress inside one vehicle.

    Placements are immutable, so the band lists share them with .placed.
    """

    __slots__ = ("vehicle", "layout", "placed", "load_counts", "_by_zone")

    def __init__(self, vehicle: VehicleConfig, layout: ZoneLayout) -> None:
        self.vehicle = vehicle
        self.layout = layout
        self.placed: List[Placement] = []
        self.load_counts: Dict[str, int] = {}
        self._by_zone: Dict[TemperatureZone, List[Placement]] = {z: [] for z in TemperatureZone}

    # ── Queries ──────────────────────────────────────────────────────────

    def band(self, zone: TemperatureZone) -> Tuple[float, float]:
        return self.layout.band(zone, self.vehicle)

    def band_placements(self, zone: TemperatureZone) -> List[Placement]:
        return self._by_zone[TemperatureZone(zone)]

    def get_height_at(self, box: Bounds, zone: TemperatureZone) -> float:
        """y at which a box with this footprint comes to rest."""
        return column_top(
            self.band_placements(zone), box.x_min, box.x_max, box.z_min, box.z_max,
        )

    def get_fill_rate(self) -> float:
        return sum(p.volume for p in self.placed) / self.vehicle.volume

    def get_weight(self) -> float:
        return sum(p.weight for p in self.placed)

    # ── State mutation (planner only, not for strategies) ────────────────

    def apply_placement(self, placement: Placement, supports: Tuple[str, ...] = ()) -> None:
        """Record a validated placement and charge its supporters' stack limits."""
        self.placed.append(placement)
        self._by_zone[placement.item.temperature_zone].append(placement)
        self.load_counts.setdefault(placement.item_id, 0)
        for sid in supports:
            self.load_counts[sid] = self.load_counts.get(sid, 0) + 1

    def __repr__(self) -> str:
        return (
            f"LoadState(items={len(self.placed)}, "
            f"fill={self.get_fill_rate():.1%}, "
            f"weight={self.get_weight():.0f}/{self.vehicle.max_weight:.0f})"
        )
