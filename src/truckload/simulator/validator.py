"""
Placement validator — constraint checking and the engine's error taxonomy.

Two entry points:

  validate_candidate()  — raises on the first violated constraint for a
                          proposed placement (used by the strategies).
  audit_arrangement()   — collects every violation in an existing
                          arrangement (used after manual edits); never
                          raises, never corrects.

Checks (candidate):
  1. Bounds    — box must lie inside the vehicle on x, y and z
  2. Zone      — z-extent must lie inside the item's temperature band
  3. Overlap   — no strict interior overlap with a placed box
  4. Floating  — a stacked box needs ≥ min_support_ratio of its base supported
  5. Stacking  — supporters must not be fragile and must have stack_limit room
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from truckload.config import Item, Placement, VehicleConfig, ZoneLayout
from truckload.settings import DEFAULT_SETTINGS
from truckload.simulator.collision import detect_collisions, sorted_pairs, support_map
from truckload.simulator.geometry import (
    SUPPORT_TOLERANCE,
    Bounds,
    bounds_of,
    on_floor,
    overlaps,
    rests_on,
    support_ratio,
    within_band,
    within_envelope,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for placement validation errors."""


class InfeasibleItemError(PlacementError):
    """Item cannot fit its band of the vehicle under any orientation."""

    def __init__(self, item_id: str, reason: str):
        super().__init__(f"Item {item_id} is infeasible: {reason}")
        self.item_id = item_id
        self.reason = reason


class OutOfBoundsError(PlacementError):
    """Box extends outside the vehicle envelope."""


class ZoneViolationError(PlacementError):
    """Box leaves the band reserved for its temperature zone."""


class OverlapError(PlacementError):
    """Box would intersect an already-placed box."""


class FloatingError(PlacementError):
    """Box would float in mid-air (insufficient base support)."""


class StackingViolationError(PlacementError):
    """Box would rest on a fragile item or one whose stack limit is reached."""


class SimulationRunningError(PlacementError):
    """Manual repositioning requested while the dynamics validator is running."""


class UnknownItemError(PlacementError, KeyError):
    """No item with the given id exists in the arrangement."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Unknown item id: {self.item_id!r}"


class OverCapacityWarning(UserWarning):
    """Arrangement is overweight or some items could not be placed."""


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

# Slack for float comparisons against walls and band edges.
EPS = 1e-9


# ─────────────────────────────────────────────────────────────────────────────
# Candidate validation
# ─────────────────────────────────────────────────────────────────────────────

def _expand(b: Bounds, eps: float) -> Bounds:
    return Bounds(b.x_min + eps, b.y_min + eps, b.z_min + eps,
                  b.x_max - eps, b.y_max - eps, b.z_max - eps)


def validate_candidate(
    item: Item,
    box: Bounds,
    placed: Sequence[Placement],
    vehicle: VehicleConfig,
    layout: ZoneLayout,
    load_counts: Dict[str, int],
    min_support_ratio: float = DEFAULT_SETTINGS.placement.min_support_ratio,
    tolerance: float = SUPPORT_TOLERANCE,
) -> Tuple[str, ...]:
    """
    Validate a proposed placement of *item* occupying *box*.

    Args:
        item:              The item in the orientation being tried.
        box:               Candidate bounds.
        placed:            Boxes already placed in the vehicle.
        vehicle:           Vehicle envelope.
        layout:            Temperature band layout.
        load_counts:       item id → number of items already resting on it.
        min_support_ratio: Minimum supported base fraction when stacked.
        tolerance:         Support detection tolerance (ft).

    Returns:
        Ids of the supporting items.  A box within tolerance of the floor
        can still rest on a thin item, so its supporters are checked too.

    Raises:
        OutOfBoundsError:       box extends outside the vehicle.
        ZoneViolationError:     box leaves the item's band.
        OverlapError:           box intersects a placed box.
        FloatingError:          too little of the base is supported.
        StackingViolationError: a supporter is fragile or full.
    """
    # ── 1. Bounds ────────────────────────────────────────────────────────
    if not within_envelope(_expand(box, EPS), vehicle):
        raise OutOfBoundsError(
            f"{item.id} at x=[{box.x_min:.2f},{box.x_max:.2f}] "
            f"y=[{box.y_min:.2f},{box.y_max:.2f}] z=[{box.z_min:.2f},{box.z_max:.2f}] "
            f"leaves the {vehicle.width}×{vehicle.height}×{vehicle.length} envelope"
        )

    # ── 2. Zone band ─────────────────────────────────────────────────────
    z0, z1 = layout.band(item.temperature_zone, vehicle)
    if not within_band(_expand(box, EPS), z0, z1):
        raise ZoneViolationError(
            f"{item.id} z=[{box.z_min:.2f},{box.z_max:.2f}] outside "
            f"{item.temperature_zone.value} band [{z0:.2f},{z1:.2f}]"
        )

    # ── 3. Overlap ───────────────────────────────────────────────────────
    for p in placed:
        if overlaps(box, p):
            raise OverlapError(f"{item.id} would intersect {p.item_id}")

    # ── 4. Anti-float ────────────────────────────────────────────────────
    supporters = [p for p in placed if rests_on(box, p, tolerance)]
    ratio = 1.0 if on_floor(box, tolerance) else support_ratio(box, supporters)
    if ratio < min_support_ratio:
        raise FloatingError(
            f"Only {ratio:.0%} of {item.id}'s base is supported at y={box.y_min:.2f} "
            f"(need ≥{min_support_ratio:.0%})"
        )

    # ── 5. Stacking ──────────────────────────────────────────────────────
    for p in supporters:
        if p.item.fragile:
            raise StackingViolationError(f"{item.id} would rest on fragile {p.item_id}")
        if load_counts.get(p.item_id, 0) >= p.item.stack_limit:
            raise StackingViolationError(
                f"{item.id} would exceed stack limit {p.item.stack_limit} of {p.item_id}"
            )
    return tuple(sorted(p.item_id for p in supporters))


def check_fits(item: Item, vehicle: VehicleConfig, layout: ZoneLayout) -> None:
    """
    Raise InfeasibleItemError when *item* cannot fit its band under any
    footprint orientation, ignoring every other item.
    """
    z0, z1 = layout.band(item.temperature_zone, vehicle)
    band_length = z1 - z0
    if band_length <= 0:
        raise InfeasibleItemError(item.id, f"{item.temperature_zone.value} band is empty")
    if item.height > vehicle.height + EPS:
        raise InfeasibleItemError(
            item.id, f"height {item.height} exceeds vehicle height {vehicle.height}",
        )
    for w, l in ((item.width, item.length), (item.length, item.width)):
        if w <= vehicle.width + EPS and l <= band_length + EPS:
            return
    raise InfeasibleItemError(
        item.id,
        f"footprint {item.width}×{item.length} does not fit "
        f"{vehicle.width}×{band_length:.2f} {item.temperature_zone.value} band",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Post-hoc audit
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConstraintViolation:
    """
    A constraint broken by an existing arrangement.

    Attributes:
        kind:     "overlap", "envelope", "zone", "fragile" or "stacking".
        item_ids: Items involved.
        message:  Human-readable description.
    """
    kind: str
    item_ids: Tuple[str, ...]
    message: str = ""

    def to_dict(self) -> dict:
        return {"kind": self.kind, "item_ids": list(self.item_ids), "message": self.message}


def audit_arrangement(
    arrangement,
    layout: Optional[ZoneLayout] = None,
    tolerance: float = SUPPORT_TOLERANCE,
) -> List[ConstraintViolation]:
    """
    Every constraint violation present in *arrangement*.

    Violations are reported, never corrected.  The result is ordered by
    kind and then by item id, so identical arrangements audit identically.
    """
    layout = layout or arrangement.zone_layout
    vehicle: VehicleConfig = arrangement.vehicle
    placements = arrangement.placements
    violations: List[ConstraintViolation] = []

    for a, b in sorted_pairs(detect_collisions(placements)):
        violations.append(ConstraintViolation("overlap", (a, b), f"{a} intersects {b}"))

    for p in placements:
        if not within_envelope(_expand(bounds_of(p), EPS), vehicle):
            violations.append(ConstraintViolation(
                "envelope", (p.item_id,), f"{p.item_id} extends outside the vehicle",
            ))
        z0, z1 = layout.band(p.item.temperature_zone, vehicle)
        if not within_band(_expand(bounds_of(p), EPS), z0, z1):
            violations.append(ConstraintViolation(
                "zone", (p.item_id,),
                f"{p.item_id} ({p.item.temperature_zone.value}) outside band [{z0:.2f},{z1:.2f}]",
            ))

    smap = support_map(placements, tolerance)
    for p in placements:
        above = sorted(smap.above.get(p.item_id, ()))
        if p.item.fragile and above:
            violations.append(ConstraintViolation(
                "fragile", (p.item_id, *above),
                f"fragile {p.item_id} carries {', '.join(above)}",
            ))
        if len(above) > p.item.stack_limit:
            violations.append(ConstraintViolation(
                "stacking", (p.item_id, *above),
                f"{p.item_id} carries {len(above)} items (limit {p.item.stack_limit})",
            ))

    order = {"overlap": 0, "envelope": 1, "zone": 2, "fragile": 3, "stacking": 4}
    violations.sort(key=lambda v: (order[v.kind], v.item_ids))
    if violations:
        logger.debug("audit found %d violation(s)", len(violations))
    return violations
