"""
Geometry kernel — axis-aligned bounding-box math.

Pure functions, no state.  Every other component builds on these:

  Scalar tests:
    overlaps(a, b)            — strict interior overlap on all three axes
    within_envelope(p, v)     — fully inside the vehicle
    within_band(p, z0, z1)    — z-extent inside a temperature band
    rests_on(upper, lower)    — support relation (tolerance applies)
    near_contact(a, b)        — faces within tolerance, not overlapping

  Measures:
    footprint(p)              — (x_extent, z_extent)
    footprint_overlap_area()  — shared x/z area of two boxes
    support_ratio(box, below)  — supported fraction of a base
    volume(p)

  Vectorised (numpy):
    bounds_array(placements)  — (n, 6) array of [x0, y0, z0, x1, y1, z1]
    pairwise_overlap_matrix() — boolean (n, n) strict-overlap matrix

Overlap tests ignore penetration below OVERLAP_EPS (float noise); support
detection and near-contact use the coarser SUPPORT_TOLERANCE.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from truckload.config import Item, Placement, VehicleConfig


# Distance (ft) within which a bottom face counts as resting on a top face.
SUPPORT_TOLERANCE: float = 0.05

# Penetration depth (ft) below which two boxes count as touching.  Far
# below any physical dimension; absorbs float noise from x ± w/2.
OVERLAP_EPS: float = 1e-9


# ─────────────────────────────────────────────────────────────────────────────
# Bounds
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box given by its min and max corner."""
    x_min: float
    y_min: float
    z_min: float
    x_max: float
    y_max: float
    z_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def length(self) -> float:
        return self.z_max - self.z_min

    @property
    def center(self) -> Tuple[float, float, float]:
        return (
            (self.x_min + self.x_max) / 2.0,
            (self.y_min + self.y_max) / 2.0,
            (self.z_min + self.z_max) / 2.0,
        )

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.x_min, self.y_min, self.z_min, self.x_max, self.y_max, self.z_max)


BoxLike = Union[Bounds, Placement]


def bounds_of(box: BoxLike) -> Bounds:
    """Bounds of a placement (bounds pass through unchanged)."""
    if isinstance(box, Bounds):
        return box
    return Bounds(box.x_min, box.y_min, box.z_min, box.x_max, box.y_max, box.z_max)


def bounds_at(item: Item, x: float, y: float, z: float) -> Bounds:
    """Bounds of *item* (in its current orientation) centred at (x, y, z)."""
    hw = item.placed_width / 2.0
    hh = item.height / 2.0
    hl = item.placed_length / 2.0
    return Bounds(x - hw, y - hh, z - hl, x + hw, y + hh, z + hl)


# ─────────────────────────────────────────────────────────────────────────────
# Scalar tests
# ─────────────────────────────────────────────────────────────────────────────

def _interval_overlap(a0: float, a1: float, b0: float, b1: float) -> float:
    """Length of the shared part of [a0, a1] and [b0, b1] (0 if disjoint)."""
    return max(0.0, min(a1, b1) - max(a0, b0))


def overlaps(a: BoxLike, b: BoxLike) -> bool:
    """
    True iff the boxes intersect on all three axes simultaneously.

    Touching faces are not an overlap.
    """
    a, b = bounds_of(a), bounds_of(b)
    e = OVERLAP_EPS
    return (
        a.x_min < b.x_max - e and b.x_min < a.x_max - e
        and a.y_min < b.y_max - e and b.y_min < a.y_max - e
        and a.z_min < b.z_max - e and b.z_min < a.z_max - e
    )


def footprint(box: BoxLike) -> Tuple[float, float]:
    """(x_extent, z_extent) of the box on the floor plane."""
    b = bounds_of(box)
    return (b.width, b.length)


def footprint_overlap_area(a: BoxLike, b: BoxLike) -> float:
    """Area of the shared x/z footprint of two boxes."""
    a, b = bounds_of(a), bounds_of(b)
    return (
        _interval_overlap(a.x_min, a.x_max, b.x_min, b.x_max)
        * _interval_overlap(a.z_min, a.z_max, b.z_min, b.z_max)
    )


def volume(box: BoxLike) -> float:
    b = bounds_of(box)
    return b.width * b.height * b.length


def within_envelope(box: BoxLike, vehicle: VehicleConfig) -> bool:
    """True iff the box lies fully inside the vehicle on x, y and z."""
    b = bounds_of(box)
    return (
        b.x_min >= -vehicle.half_width and b.x_max <= vehicle.half_width
        and b.y_min >= 0.0 and b.y_max <= vehicle.height
        and b.z_min >= -vehicle.half_length and b.z_max <= vehicle.half_length
    )


def within_band(box: BoxLike, z0: float, z1: float) -> bool:
    """True iff the z-extent of the box lies inside [z0, z1]."""
    b = bounds_of(box)
    return b.z_min >= z0 and b.z_max <= z1


def rests_on(
    upper: BoxLike, lower: BoxLike, tolerance: float = SUPPORT_TOLERANCE,
) -> bool:
    """
    Support relation: *upper*'s bottom face sits at *lower*'s top face
    (within *tolerance*) and their footprints share a positive area.
    """
    u, l = bounds_of(upper), bounds_of(lower)
    if abs(u.y_min - l.y_max) > tolerance:
        return False
    return footprint_overlap_area(u, l) > OVERLAP_EPS


def support_ratio(box: BoxLike, supporters: Iterable[BoxLike]) -> float:
    """Fraction of *box*'s base covered by the top faces of *supporters*."""
    b = bounds_of(box)
    area = b.width * b.length
    if area <= 0:
        return 0.0
    covered = sum(footprint_overlap_area(b, s) for s in supporters)
    return min(1.0, covered / area)


def on_floor(box: BoxLike, tolerance: float = SUPPORT_TOLERANCE) -> bool:
    return bounds_of(box).y_min <= tolerance


def near_contact(
    a: BoxLike, b: BoxLike, tolerance: float = SUPPORT_TOLERANCE,
) -> bool:
    """
    True when two boxes do not overlap but face each other across a gap
    no wider than *tolerance*: projections overlap on two axes and the
    gap on the remaining axis is within the tolerance.
    """
    a, b = bounds_of(a), bounds_of(b)
    if overlaps(a, b):
        return False
    e = OVERLAP_EPS
    ox = _interval_overlap(a.x_min, a.x_max, b.x_min, b.x_max) > e
    oy = _interval_overlap(a.y_min, a.y_max, b.y_min, b.y_max) > e
    oz = _interval_overlap(a.z_min, a.z_max, b.z_min, b.z_max) > e
    gx = max(a.x_min - b.x_max, b.x_min - a.x_max)
    gy = max(a.y_min - b.y_max, b.y_min - a.y_max)
    gz = max(a.z_min - b.z_max, b.z_min - a.z_max)
    return (
        (oy and oz and -e <= gx <= tolerance)
        or (ox and oz and -e <= gy <= tolerance)
        or (ox and oy and -e <= gz <= tolerance)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Vectorised helpers
# ─────────────────────────────────────────────────────────────────────────────

def bounds_array(boxes: Iterable[BoxLike]) -> np.ndarray:
    """(n, 6) float array of [x_min, y_min, z_min, x_max, y_max, z_max] rows."""
    rows = [bounds_of(b).as_tuple() for b in boxes]
    if not rows:
        return np.zeros((0, 6), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)


def pairwise_overlap_matrix(arr: np.ndarray) -> np.ndarray:
    """
    Boolean (n, n) matrix, True where rows i and j overlap strictly.

    The diagonal is always False.
    """
    n = arr.shape[0]
    if n == 0:
        return np.zeros((0, 0), dtype=bool)
    lo = arr[:, :3]
    hi = arr[:, 3:]
    # lo_i < hi_j and lo_j < hi_i on every axis
    hit = np.all(
        (lo[:, None, :] < hi[None, :, :] - OVERLAP_EPS)
        & (lo[None, :, :] < hi[:, None, :] - OVERLAP_EPS),
        axis=2,
    )
    np.fill_diagonal(hit, False)
    return hit


def column_top(
    boxes: Sequence[BoxLike], x_min: float, x_max: float, z_min: float, z_max: float,
) -> float:
    """
    Highest top face among *boxes* whose footprint overlaps the given
    x/z rectangle — the y at which a dropped box would come to rest.
    """
    top = 0.0
    probe = Bounds(x_min, 0.0, z_min, x_max, 0.0, z_max)
    for box in boxes:
        b = bounds_of(box)
        if b.y_max > top and footprint_overlap_area(probe, b) > OVERLAP_EPS:
            top = b.y_max
    return top
