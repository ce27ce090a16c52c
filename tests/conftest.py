"""
Shared fixtures for the truckload test-suite.

Run with:
    python -m pytest tests/ -v
"""

import os
import sys

import pytest

# Ensure the src/ layout is importable without installing the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from truckload.config import Item, Placement, TemperatureZone, VehicleConfig, ZoneLayout
from truckload.settings import EngineSettings, ZoneSettings
from truckload.simulator.arrangement import Arrangement


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_item(item_id, width=2.0, height=2.0, length=2.0, weight=50.0, **kwargs):
    """Item with 2 ft cube defaults."""
    return Item(id=item_id, width=width, height=height, length=length, weight=weight, **kwargs)


def make_placement(item_id, x, y, z, width=2.0, height=2.0, length=2.0, weight=50.0,
                   sequence=0, **kwargs):
    """Placement of a fresh item centred at (x, y, z)."""
    item = make_item(item_id, width, height, length, weight, **kwargs)
    return Placement(item=item, x=x, y=y, z=z, sequence=sequence)


def make_arrangement(placements, vehicle=None, layout=None):
    """Arrangement in loading order of *placements*."""
    placements = tuple(placements)
    return Arrangement(
        placements=placements,
        loading_sequence=tuple(p.item_id for p in placements),
        vehicle=vehicle or VehicleConfig(),
        zone_layout=layout or ZoneLayout(),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def trailer():
    """Default 8 × 28 × 9 ft trailer, 34 000 lb."""
    return VehicleConfig()


@pytest.fixture
def small_vehicle():
    """8 × 20 × 8 ft box truck with a 30 000 lb limit."""
    return VehicleConfig(width=8.0, length=20.0, height=8.0, max_weight=30000.0)


@pytest.fixture
def single_band_settings():
    """Whole length reserved for the regular zone."""
    return EngineSettings(zones=ZoneSettings(frozen=0.0, cold=0.0, regular=1.0))


@pytest.fixture
def cube():
    """A 2 ft, 50 lb regular item."""
    return make_item("cube")


@pytest.fixture
def frozen_cube():
    return make_item("frozen-cube", temperature_zone=TemperatureZone.FROZEN)
