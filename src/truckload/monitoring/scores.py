"""Score triple (stability / safety / optimization) for an arrangement.

All functions are pure: the same Arrangement and settings always give the
same ScoreReport, and the report itself is immutable.  ``score()`` is
memoised on the (frozen, hashable) arrangement and settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

import numpy as np

from truckload.settings import DEFAULT_SETTINGS, EngineSettings, ScoringSettings
from truckload.simulator.arrangement import Arrangement
from truckload.simulator.collision import chain_above, support_map

logger = logging.getLogger(__name__)

# Upper bound of every score.
MAX_SCORE = 100.0


@dataclass(frozen=True)
class SafetyCheck:
    """One binary entry of the safety checklist.

    Attributes:
        id: Stable check identifier.
        description: What the check verifies.
        passed: Whether the arrangement satisfies it.
        details: Offending items or values when it fails.
    """

    id: str
    description: str
    passed: bool
    details: str = ""

    @property
    def status(self) -> str:
        return "pass" if self.passed else "fail"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "description": self.description,
                "status": self.status, "details": self.details}


@dataclass(frozen=True)
class CrushWarning:
    """An item carrying more than its advisory crush capacity.

    Attributes:
        item_id: Item under load.
        load: Weight resting on it, directly or transitively (lb).
        capacity: ``crush_load_ratio * weight * (1 - crush_factor)`` (lb).
    """

    item_id: str
    load: float
    capacity: float

    def to_dict(self) -> dict[str, Any]:
        return {"item_id": self.item_id, "load": self.load, "capacity": self.capacity}


@dataclass(frozen=True)
class ScoreReport:
    """Score triple plus the diagnostics that produced it.

    Attributes:
        stability: Centre-of-gravity score, 0-100.
        safety: Average of the binary safety checks, 0-100.
        optimization: Volume/weight utilisation blend, 0-100.
        checks: Every safety check, in a fixed order.
        center_of_gravity: Weighted centroid, or None when empty.
        volume_utilization: Percent of the vehicle volume used.
        weight_utilization: Percent of the payload limit used.
        crush_warnings: Advisory overload findings (never change a score).
    """

    stability: float
    safety: float
    optimization: float
    checks: tuple[SafetyCheck, ...] = ()
    center_of_gravity: Optional[tuple[float, float, float]] = None
    volume_utilization: float = 0.0
    weight_utilization: float = 0.0
    crush_warnings: tuple[CrushWarning, ...] = field(default=())

    @property
    def failed_checks(self) -> tuple[str, ...]:
        return tuple(c.id for c in self.checks if not c.passed)

    def as_triple(self) -> tuple[float, float, float]:
        return (self.stability, self.safety, self.optimization)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Example:
            >>> ScoreReport(100.0, 100.0, 0.0).to_dict()["failed_checks"]
            []
        """
        return {
            "stability": round(self.stability, 2),
            "safety": round(self.safety, 2),
            "optimization": round(self.optimization, 2),
            "failed_checks": list(self.failed_checks),
            "checks": [c.to_dict() for c in self.checks],
            "center_of_gravity": list(self.center_of_gravity) if self.center_of_gravity else None,
            "volume_utilization": round(self.volume_utilization, 4),
            "weight_utilization": round(self.weight_utilization, 4),
            "crush_warnings": [w.to_dict() for w in self.crush_warnings],
        }


# ─────────────────────────────────────────────────────────────────────────────
# Individual scores
# ─────────────────────────────────────────────────────────────────────────────

def _clamp(value: float) -> float:
    return max(0.0, min(MAX_SCORE, value))


def center_of_gravity(arrangement: Arrangement) -> Optional[tuple[float, float, float]]:
    """Weight-averaged centroid of all placed items, or None when empty."""
    if not arrangement.placements:
        return None
    pos = np.array([p.position for p in arrangement.placements], dtype=np.float64)
    w = np.array([p.weight for p in arrangement.placements], dtype=np.float64)
    cog = (pos * w[:, None]).sum(axis=0) / w.sum()
    return (float(cog[0]), float(cog[1]), float(cog[2]))


def stability_score(arrangement: Arrangement, scoring: Optional[ScoringSettings] = None) -> float:
    """Stability from the centre of gravity.

    Starts at 100 and subtracts ``lateral * |cog.x| / (W/2)``,
    ``longitudinal * |cog.z| / (L/2)`` and ``height * cog.y / H``,
    clamped to [0, 100].  An empty arrangement scores 100.

    Example:
        >>> stability_score(Arrangement())
        100.0
    """
    scoring = scoring or DEFAULT_SETTINGS.scoring
    cog = center_of_gravity(arrangement)
    if cog is None:
        return MAX_SCORE
    v = arrangement.vehicle
    penalty = (
        scoring.lateral_penalty * min(1.0, abs(cog[0]) / v.half_width)
        + scoring.longitudinal_penalty * min(1.0, abs(cog[2]) / v.half_length)
        + scoring.height_penalty * min(1.0, max(0.0, cog[1]) / v.height)
    )
    return _clamp(MAX_SCORE - penalty)


def utilization(arrangement: Arrangement) -> tuple[float, float]:
    """(volume %, weight %) of the vehicle, unclamped."""
    v = arrangement.vehicle
    return (
        arrangement.total_volume / v.volume * 100.0,
        arrangement.total_weight / v.max_weight * 100.0,
    )


def optimization_score(arrangement: Arrangement) -> float:
    """``0.5 * min(vol%, 100) + 0.5 * min(weight%, 100)``; 0 when empty."""
    if not arrangement.placements:
        return 0.0
    vol_pct, weight_pct = utilization(arrangement)
    return _clamp(0.5 * min(vol_pct, MAX_SCORE) + 0.5 * min(weight_pct, MAX_SCORE))


def safety_checks(arrangement: Arrangement) -> tuple[SafetyCheck, ...]:
    """The four binary checks, in a fixed order."""
    smap = support_map(arrangement)
    v = arrangement.vehicle

    total = arrangement.total_weight
    weight = SafetyCheck(
        "weight_limit", "Total weight within vehicle limit",
        total <= v.max_weight,
        "" if total <= v.max_weight else f"{total:.0f} lb > {v.max_weight:.0f} lb",
    )

    loaded_fragile = sorted(
        p.item_id for p in arrangement.placements
        if p.item.fragile and smap.above.get(p.item_id)
    )
    fragile = SafetyCheck(
        "fragile_unloaded", "Nothing rests on a fragile item",
        not loaded_fragile, ", ".join(loaded_fragile),
    )

    over_limit = sorted(
        f"{p.item_id} ({smap.load_count(p.item_id)}/{p.item.stack_limit})"
        for p in arrangement.placements
        if smap.load_count(p.item_id) > p.item.stack_limit
    )
    stacking = SafetyCheck(
        "stack_limits", "No item carries more than its stack limit",
        not over_limit, ", ".join(over_limit),
    )

    # Bands are contiguous, so both ends in the item's band means all of it is.
    layout = arrangement.zone_layout
    mixed = []
    for p in arrangement.placements:
        ends = {layout.zone_at(p.z_min + 1e-9, v), layout.zone_at(p.z_max - 1e-9, v)}
        if ends != {p.item.temperature_zone}:
            mixed.append(p.item_id)
    zones = SafetyCheck(
        "zone_segregation", "Every item stays inside its own temperature band",
        not mixed, ", ".join(sorted(mixed)),
    )
    return (weight, fragile, stacking, zones)


def safety_score(checks: tuple[SafetyCheck, ...]) -> float:
    """Plain average of the binary checks (100 pass / 0 fail)."""
    if not checks:
        return MAX_SCORE
    return sum(MAX_SCORE if c.passed else 0.0 for c in checks) / len(checks)


def crush_warnings(
    arrangement: Arrangement, scoring: Optional[ScoringSettings] = None,
) -> tuple[CrushWarning, ...]:
    """Items whose load above exceeds their advisory crush capacity."""
    scoring = scoring or DEFAULT_SETTINGS.scoring
    weights = {p.item_id: p.weight for p in arrangement.placements}
    smap = support_map(arrangement)
    found = []
    for p in arrangement.placements:
        chain = chain_above(p.item_id, smap)
        load = sum(weights[i] for i in chain if i != p.item_id)
        if load <= 0:
            continue
        capacity = scoring.crush_load_ratio * p.weight * (1.0 - p.item.crush_factor)
        if load > capacity:
            found.append(CrushWarning(p.item_id, load, capacity))
    return tuple(sorted(found, key=lambda w: w.item_id))


# ─────────────────────────────────────────────────────────────────────────────
# Combined
# ─────────────────────────────────────────────────────────────────────────────

@lru_cache(maxsize=256)
def _score_cached(arrangement: Arrangement, settings: EngineSettings) -> ScoreReport:
    checks = safety_checks(arrangement)
    vol_pct, weight_pct = utilization(arrangement)
    report = ScoreReport(
        stability=stability_score(arrangement, settings.scoring),
        safety=safety_score(checks),
        optimization=optimization_score(arrangement),
        checks=checks,
        center_of_gravity=center_of_gravity(arrangement),
        volume_utilization=vol_pct,
        weight_utilization=weight_pct,
        crush_warnings=crush_warnings(arrangement, settings.scoring),
    )
    if report.failed_checks:
        logger.debug("safety checks failed: %s", ", ".join(report.failed_checks))
    return report


def score(arrangement: Arrangement, settings: Optional[EngineSettings] = None) -> ScoreReport:
    """Compute the score triple and diagnostics for *arrangement*."""
    return _score_cached(arrangement, settings or DEFAULT_SETTINGS)


def clear_score_cache() -> None:
    _score_cached.cache_clear()
