"""Monitoring module for truckload.

Provides the score triple (stability, safety, optimization) and its
diagnostics for an arrangement.
"""

from .scores import (
    CrushWarning,
    SafetyCheck,
    ScoreReport,
    center_of_gravity,
    clear_score_cache,
    crush_warnings,
    optimization_score,
    safety_checks,
    safety_score,
    score,
    stability_score,
)

__all__ = [
    "CrushWarning",
    "SafetyCheck",
    "ScoreReport",
    "center_of_gravity",
    "clear_score_cache",
    "crush_warnings",
    "optimization_score",
    "safety_checks",
    "safety_score",
    "score",
    "stability_score",
]
