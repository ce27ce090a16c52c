"""
Engine settings — tuneable constants for placement, scoring and dynamics.

Every section is a frozen pydantic model so a settings object can be
hashed (the score memo is keyed on it) and shared between components.
Settings are usually built in code with defaults, or loaded from YAML:

    settings = load_settings("configs/default_settings.yaml")
    arrangement = place(items, vehicle, settings)

Only the values that change behaviour live here; the domain objects
themselves (items, vehicle) are plain dataclasses in ``truckload.config``.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from truckload.config import ZoneLayout


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PlacementSettings(_Section):
    """Placement optimizer knobs."""
    strategy: str = "extreme_points"
    # Bottom face within this distance of a top face counts as resting on it.
    support_tolerance: float = Field(0.05, gt=0)
    # Minimum supported fraction of a stacked item's base (anti-float).
    min_support_ratio: float = Field(0.30, ge=0, le=1)
    # Grid step for the baseline scan strategy (ft).
    scan_step: float = Field(0.5, gt=0)
    allow_rotation: bool = True


class ZoneSettings(_Section):
    """Band fractions of the length axis, front to rear."""
    frozen: float = Field(1.0 / 3.0, ge=0)
    cold: float = Field(1.0 / 3.0, ge=0)
    regular: float = Field(1.0 / 3.0, ge=0)

    @model_validator(mode="after")
    def _covers_full_length(self) -> "ZoneSettings":
        total = self.frozen + self.cold + self.regular
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"zone fractions must sum to 1, got {total:.6f}")
        return self

    def layout(self) -> ZoneLayout:
        return ZoneLayout(
            frozen_fraction=self.frozen,
            cold_fraction=self.cold,
            regular_fraction=self.regular,
        )


class ScoringSettings(_Section):
    """Penalty caps of the stability score and the crush advisory."""
    lateral_penalty: float = Field(20.0, ge=0)
    longitudinal_penalty: float = Field(20.0, ge=0)
    height_penalty: float = Field(30.0, ge=0)
    # An item bears up to ratio × own weight × (1 - crush_factor).
    crush_load_ratio: float = Field(4.0, gt=0)


class ForceProfile(_Section):
    """Scenario magnitudes, in multiples of g."""
    acceleration: float = Field(0.4, ge=0)
    braking: float = Field(0.8, ge=0)
    turning: float = Field(0.5, ge=0)
    gravity: float = Field(1.0, ge=0)


class DynamicsSettings(_Section):
    """Explicit Euler integrator used by the dynamics validator."""
    time_step: float = Field(1.0 / 60.0, gt=0)
    gravity: float = Field(32.174, gt=0)          # ft/s²
    weight_baseline: float = Field(100.0, gt=0)   # lb per unit of mass
    fragile_factor: float = Field(1.2, ge=1)
    # Lateral jitter (in g) per foot of height above the floor.
    jitter_scale: float = Field(0.01, ge=0)
    friction: float = Field(0.35, ge=0)
    linear_damping: float = Field(0.4, ge=0)
    angular_damping: float = Field(0.4, ge=0)
    contact_tolerance: float = Field(0.05, gt=0)
    seed: int = 0
    forces: ForceProfile = Field(default_factory=ForceProfile)


class EngineSettings(_Section):
    """Top-level settings object passed to the planner, scorer and validator."""
    placement: PlacementSettings = Field(default_factory=PlacementSettings)
    zones: ZoneSettings = Field(default_factory=ZoneSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    dynamics: DynamicsSettings = Field(default_factory=DynamicsSettings)

    @property
    def zone_layout(self) -> ZoneLayout:
        return self.zones.layout()

    def to_dict(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_dict(cls, d: dict) -> "EngineSettings":
        return cls.model_validate(d or {})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineSettings":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)


DEFAULT_SETTINGS = EngineSettings()


def load_settings(path: Union[str, Path, None] = None) -> EngineSettings:
    """Load settings from a YAML file, or return the defaults when *path* is None."""
    if path is None:
        return DEFAULT_SETTINGS
    return EngineSettings.from_yaml(path)
