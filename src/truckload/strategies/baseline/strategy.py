"""
Baseline strategy — Bottom-Left-Fill over a regular grid.

Algorithm:
  1. For each allowed orientation of the item:
  2.   Scan grid positions: z from the band's deep end towards the door,
       x from the left wall to the right wall (step = placement.scan_step)
  3.   For each (x, z, orient): drop the item, validate it
  4.   Record the candidate with the lowest (y, z, x) key
  5. Return the best candidate, or None if nothing fits.

Kept for comparison with the extreme-point strategy; it ignores the
centreline anchor and fills from the left wall.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from truckload.config import Item, PlacementDecision
from truckload.simulator.load_state import LoadState
from truckload.strategies.base_strategy import BaseStrategy, register_strategy


def _scan(lo: float, hi: float, step: float) -> List[float]:
    """Grid values from lo to hi inclusive; hi is always included."""
    if hi < lo:
        return []
    values: List[float] = []
    v = lo
    while v < hi - 1e-9:
        values.append(v)
        v += step
    values.append(hi)
    return values


@register_strategy
class BaselineStrategy(BaseStrategy):
    """
    Bottom-Left-Fill baseline.

    Scans grid positions in each orientation and picks the lowest
    feasible placement (y → z → x priority).
    """

    name = "baseline"

    def decide_placement(
        self,
        item: Item,
        state: LoadState,
    ) -> Optional[PlacementDecision]:
        step = self.settings.placement.scan_step
        z0, z1 = state.band(item.temperature_zone)
        wall = state.vehicle.half_width

        best_key: Optional[Tuple[float, float, float, int]] = None
        best: Optional[PlacementDecision] = None

        for oidx, oriented in enumerate(self.orientations(item)):
            w, l = oriented.placed_width, oriented.placed_length
            for z_min in _scan(z0, z1 - l, step):
                for x_min in _scan(-wall, wall - w, step):
                    box = self.drop(oriented, x_min + w / 2.0, z_min + l / 2.0, state)
                    key = (round(box.y_min, 9), round(box.z_min, 9), round(box.x_min, 9), oidx)
                    if best_key is not None and key >= best_key:
                        continue
                    supports = self.try_candidate(oriented, box, state)
                    if supports is None:
                        continue
                    x, y, z = box.center
                    best_key = key
                    best = PlacementDecision(
                        x=x, y=y, z=z,
                        orientation_swapped=oriented.orientation_swapped,
                        reach_cost=self.reach_cost(box, z0),
                        supports=supports,
                    )
        return best
