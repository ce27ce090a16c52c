"""
Extreme Points strategy for vehicle loading.

Algorithm overview:
    Instead of scanning a grid, this strategy only evaluates "extreme
    points" (EPs): positions adjacent to the boxes already placed in the
    item's temperature band.  Candidate count stays around 10 per placed
    box, which keeps the search cheap for loads of a few hundred items.

    Initial anchors (empty band), all on the floor at the band's deep end:
      - Centre:     x = 0
      - Left wall:  x_min = -W/2
      - Right wall: x_max = +W/2

    For each placed box p, candidates are:
      - Right:      immediately beside p towards +x, same z start
      - Left:       immediately beside p towards -x, same z start
      - Door-side:  immediately behind p towards the door, aligned to p's
                    left edge, right edge, centre, and to both walls and
                    the centreline
      - Top:        on p, centred and aligned to p's deep-left corner

    Every candidate is tried in both footprint orientations (one for
    square items).  The item drops to the highest top face under its
    footprint.  Feasibility is delegated to the validator (bounds, band,
    overlap, anti-float, fragile/stack-limit supporters).

Ranking:
    Reach cost = (z_min - band deep end) + y_min + |x|, i.e. the Manhattan
    distance from the band's loading start.  Items are processed
    last-stop-first, so minimising reach cost packs earlier-loaded items
    deepest and keeps later stops near the door.
    Ties: (y, z, |x|, x, orientation index).

References:
    Crainic, T.G., Perboli, G., & Tadei, R. (2008).
    "Extreme Point-Based Heuristics for Three-Dimensional Bin Packing."
    INFORMS Journal on Computing, 20(3), 368-384.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from truckload.config import Item, PlacementDecision
from truckload.simulator.load_state import LoadState
from truckload.strategies.base_strategy import BaseStrategy, register_strategy

logger = logging.getLogger(__name__)


# Decimal places used to de-duplicate candidate points.
POINT_PRECISION: int = 9


@register_strategy
class ExtremePointsStrategy(BaseStrategy):
    """
    Extreme Points heuristic ranked by reach cost.

    Attributes:
        name: Strategy identifier for the registry ("extreme_points").
    """

    name: str = "extreme_points"

    def decide_placement(
        self,
        item: Item,
        state: LoadState,
    ) -> Optional[PlacementDecision]:
        """
        Find the cheapest feasible extreme-point placement for *item*.

        Steps:
            1. For each orientation, generate EPs from the band's boxes.
            2. Drop the item at every EP and validate it.
            3. Return the feasible candidate with the lowest ranking key.
        """
        z0, _ = state.band(item.temperature_zone)

        best_key: Optional[Tuple[float, ...]] = None
        best: Optional[PlacementDecision] = None
        evaluated = 0

        for oidx, oriented in enumerate(self.orientations(item)):
            for x_c, z_c in self._generate_extreme_points(oriented, state):
                box = self.drop(oriented, x_c, z_c, state)
                evaluated += 1
                supports = self.try_candidate(oriented, box, state)
                if supports is None:
                    continue
                cost = self.reach_cost(box, z0)
                key = (cost, box.y_min, box.z_min, abs(x_c), x_c, oidx)
                if best_key is None or key < best_key:
                    x, y, z = box.center
                    best_key = key
                    best = PlacementDecision(
                        x=x, y=y, z=z,
                        orientation_swapped=oriented.orientation_swapped,
                        reach_cost=cost, supports=supports,
                    )

        logger.debug(
            "%s: %d candidates evaluated, best=%s", item.id, evaluated,
            None if best is None else (round(best.x, 3), round(best.y, 3), round(best.z, 3)),
        )
        return best

    # ── Extreme point generation ──────────────────────────────────────────

    def _generate_extreme_points(
        self, oriented: Item, state: LoadState,
    ) -> List[Tuple[float, float]]:
        """
        Candidate (x, z) centroids for *oriented* in its band.

        Points whose footprint would leave the vehicle width or the band
        are filtered out.  Duplicates are removed, first occurrence wins.
        """
        zone = oriented.temperature_zone
        z0, z1 = state.band(zone)
        hw = oriented.placed_width / 2.0
        hl = oriented.placed_length / 2.0
        wall = state.vehicle.half_width

        raw: List[Tuple[float, float]] = [
            (0.0, z0 + hl),
            (-wall + hw, z0 + hl),
            (wall - hw, z0 + hl),
        ]
        for p in state.band_placements(zone):
            # Right and left neighbours, flush with p's deep face
            raw.append((p.x_max + hw, p.z_min + hl))
            raw.append((p.x_min - hw, p.z_min + hl))
            # Door-side of p
            behind = p.z_max + hl
            raw.append((p.x_min + hw, behind))
            raw.append((p.x_max - hw, behind))
            raw.append((p.x, behind))
            raw.append((-wall + hw, behind))
            raw.append((wall - hw, behind))
            raw.append((0.0, behind))
            # On top of p
            raw.append((p.x, p.z))
            raw.append((p.x_min + hw, p.z_min + hl))

        seen: Set[Tuple[float, float]] = set()
        points: List[Tuple[float, float]] = []
        eps = 10 ** -POINT_PRECISION
        for x_c, z_c in raw:
            if x_c - hw < -wall - eps or x_c + hw > wall + eps:
                continue
            if z_c - hl < z0 - eps or z_c + hl > z1 + eps:
                continue
            key = (round(x_c, POINT_PRECISION), round(z_c, POINT_PRECISION))
            if key in seen:
                continue
            seen.add(key)
            points.append((x_c, z_c))
        return points
