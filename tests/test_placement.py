"""
Tests for the placement optimizer (planner + strategies).

Tests cover:
- Every strategy produces arrangements with no overlap, inside the
  envelope and inside the right temperature band
- Stack limits and fragile items are respected
- Last stop loads deepest (LIFO by destination)
- Determinism: same input -> same arrangement
- Single-item, overweight, stack-limit and infeasible-item scenarios
- Registry lookup
"""

import warnings

import pytest

from conftest import make_item
from truckload.config import TemperatureZone, VehicleConfig, ZoneLayout
from truckload.dataset.generator import generate_sample_cargo
from truckload.monitoring.scores import score
from truckload.settings import EngineSettings, PlacementSettings, ZoneSettings
from truckload.simulator.collision import detect_collisions, resting_on, supports_of
from truckload.simulator.geometry import Bounds, within_band, within_envelope
from truckload.simulator.planner import LoadPlanner, order_items, place
from truckload.simulator.validator import (
    InfeasibleItemError,
    OverCapacityWarning,
    check_fits,
)
from truckload.strategies import STRATEGY_REGISTRY, get_strategy


STRATEGIES = ["extreme_points", "baseline"]


def settings_for(strategy, **zones):
    zone_settings = ZoneSettings(**zones) if zones else ZoneSettings()
    return EngineSettings(placement=PlacementSettings(strategy=strategy), zones=zone_settings)


def shrunk(p, eps=1e-9):
    """Bounds of *p* pulled in by float noise on every side."""
    return Bounds(p.x_min + eps, p.y_min + eps, p.z_min + eps,
                  p.x_max - eps, p.y_max - eps, p.z_max - eps)


def place_quietly(items, vehicle=None, settings=None):
    """place() with over-capacity warnings suppressed."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", OverCapacityWarning)
        return place(items, vehicle, settings)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mixed_cargo():
    """40 mixed items over three zones and four stops."""
    return generate_sample_cargo(40, seed=42)


# ---------------------------------------------------------------------------
# Structural invariants
# ---------------------------------------------------------------------------

class TestInvariants:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_no_overlaps(self, strategy, mixed_cargo):
        arr = place_quietly(mixed_cargo, settings=settings_for(strategy))
        assert len(arr) > 0
        assert detect_collisions(arr) == frozenset(), f"{strategy} produced overlaps"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_inside_envelope_and_band(self, strategy, mixed_cargo):
        arr = place_quietly(mixed_cargo, settings=settings_for(strategy))
        bands = arr.zone_layout.bands(arr.vehicle)
        for p in arr.placements:
            assert within_envelope(shrunk(p), arr.vehicle), f"{p.item_id} leaves the vehicle"
            z0, z1 = bands[p.item.temperature_zone]
            assert within_band(p, z0 - 1e-9, z1 + 1e-9), f"{p.item_id} leaves its band"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_stack_limits_and_fragile(self, strategy, mixed_cargo):
        arr = place_quietly(mixed_cargo, settings=settings_for(strategy))
        for p in arr.placements:
            above = resting_on(p.item_id, arr)
            assert len(above) <= p.item.stack_limit, f"{p.item_id} overloaded"
            if p.item.fragile:
                assert not above, f"fragile {p.item_id} carries {sorted(above)}"

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_every_item_accounted_for(self, strategy, mixed_cargo):
        arr = place_quietly(mixed_cargo, settings=settings_for(strategy))
        ids = {i.id for i in mixed_cargo}
        assert set(arr.item_ids) | set(arr.unplaced) == ids
        assert not set(arr.item_ids) & set(arr.unplaced)

    def test_sequence_matches_placements(self, mixed_cargo):
        arr = place_quietly(mixed_cargo)
        assert arr.loading_sequence == arr.item_ids
        assert [p.sequence for p in arr.placements] == list(range(len(arr)))

    def test_stacked_items_are_supported(self, mixed_cargo):
        arr = place_quietly(mixed_cargo)
        for p in arr.placements:
            if p.y_min > 0.05:
                assert supports_of(p.item_id, arr), f"{p.item_id} floats"

    def test_deterministic(self, mixed_cargo):
        a = place_quietly(mixed_cargo)
        b = place_quietly(list(reversed(mixed_cargo)))
        assert a == b

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            place([make_item("a"), make_item("a")])


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

class TestOrdering:
    def test_zone_partition_then_destination(self):
        items = [
            make_item("reg-1", destination=1),
            make_item("frz-1", temperature_zone=TemperatureZone.FROZEN, destination=1),
            make_item("reg-3", destination=3),
            make_item("cold-2", temperature_zone="cold", destination=2),
        ]
        assert [i.id for i in order_items(items)] == ["frz-1", "cold-2", "reg-3", "reg-1"]

    def test_heavier_first_within_stop(self):
        items = [make_item("light", weight=10.0), make_item("heavy", weight=90.0)]
        assert [i.id for i in order_items(items)] == ["heavy", "light"]

    def test_last_stop_loaded_deepest(self, single_band_settings):
        # Full-width, tall items cannot stack, so they queue towards the door.
        items = [
            make_item(f"stop-{d}", width=8.0, height=5.0, length=2.0, destination=d)
            for d in (1, 2, 3)
        ]
        arr = place(items, VehicleConfig(), single_band_settings)
        z = {p.item_id: p.z for p in arr.placements}
        assert z["stop-3"] < z["stop-2"] < z["stop-1"]
        assert arr.loading_sequence == ("stop-3", "stop-2", "stop-1")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_single_item_in_empty_vehicle(self, small_vehicle):
        arr = place([make_item("solo")], small_vehicle)
        assert len(arr) == 1
        z0, _ = ZoneLayout().band(TemperatureZone.REGULAR, small_vehicle)
        p = arr.get("solo")
        assert p.x == pytest.approx(0.0)
        assert p.y == pytest.approx(1.0)
        assert p.z == pytest.approx(z0 + 1.0)

        expected = 100.0 - 20.0 * abs(p.z) / 10.0 - 30.0 * 1.0 / 8.0
        report = score(arr)
        assert report.stability == pytest.approx(expected)
        assert report.stability == pytest.approx(87.5833, abs=1e-3)
        assert report.safety == 100.0
        assert report.optimization > 0.0

    def test_overweight_load(self, small_vehicle):
        items = [make_item("heavy-a", weight=20000.0), make_item("heavy-b", weight=20000.0)]
        with pytest.warns(OverCapacityWarning, match="exceeds"):
            arr = place(items, small_vehicle)
        assert len(arr) == 2
        assert arr.is_overweight
        assert arr.warnings
        report = score(arr)
        assert report.failed_checks == ("weight_limit",)
        assert report.safety == pytest.approx(75.0)

    def test_zero_stack_limit_forces_floor(self, single_band_settings):
        vehicle = VehicleConfig(width=2.0, length=6.0, height=8.0)
        items = [make_item("A", stack_limit=0, destination=2), make_item("B", destination=1)]
        arr = place(items, vehicle, single_band_settings)
        assert arr.get("B").y == pytest.approx(1.0)
        assert resting_on("A", arr) == frozenset()
        assert supports_of("B", arr) == frozenset()

    def test_zero_stack_limit_without_floor_space(self, single_band_settings):
        vehicle = VehicleConfig(width=2.0, length=2.0, height=8.0)
        items = [make_item("A", stack_limit=0, destination=2), make_item("B", destination=1)]
        with pytest.warns(OverCapacityWarning, match="could not be placed"):
            arr = place(items, vehicle, single_band_settings)
        assert arr.item_ids == ("A",)
        assert arr.unplaced == ("B",)

    def test_fragile_item_carries_nothing(self, single_band_settings):
        vehicle = VehicleConfig(width=2.0, length=2.0, height=8.0)
        items = [make_item("glass", fragile=True, destination=2), make_item("B", destination=1)]
        with pytest.warns(OverCapacityWarning):
            arr = place(items, vehicle, single_band_settings)
        assert "B" in arr.unplaced

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_thin_fragile_tray_carries_nothing(self, strategy):
        vehicle = VehicleConfig(width=2.0, length=2.0, height=8.0)
        tray = make_item("tray", height=0.04, fragile=True, stack_limit=0, destination=2)
        items = [tray, make_item("B", destination=1)]
        with pytest.warns(OverCapacityWarning):
            arr = place(items, vehicle, settings_for(strategy, frozen=0.0, cold=0.0, regular=1.0))
        assert arr.item_ids == ("tray",), f"{strategy} stacked B on the tray"
        assert arr.unplaced == ("B",)
        assert score(arr).failed_checks == ()

    def test_thin_mat_counts_as_supporter(self, single_band_settings):
        vehicle = VehicleConfig(width=2.0, length=2.0, height=8.0)
        items = [make_item("mat", height=0.04, stack_limit=1, destination=2),
                 make_item("B", destination=1)]
        arr = place(items, vehicle, single_band_settings)
        assert arr.get("B").y == pytest.approx(1.04)
        assert supports_of("B", arr) == {"mat"}
        assert resting_on("mat", arr) == {"B"}

    def test_stacks_when_allowed(self, single_band_settings):
        vehicle = VehicleConfig(width=2.0, length=2.0, height=8.0)
        items = [make_item("A", destination=2), make_item("B", destination=1)]
        arr = place(items, vehicle, single_band_settings)
        assert arr.get("B").y == pytest.approx(3.0)
        assert supports_of("B", arr) == {"A"}

    def test_rotation_used_when_needed(self, single_band_settings):
        item = make_item("plank", width=10.0, height=1.0, length=3.0)
        arr = place([item], VehicleConfig(), single_band_settings)
        p = arr.get("plank")
        assert p.item.orientation_swapped
        assert p.width == pytest.approx(3.0)
        assert p.length == pytest.approx(10.0)

    def test_no_rotation_when_disabled(self):
        settings = EngineSettings(
            placement=PlacementSettings(allow_rotation=False),
            zones=ZoneSettings(frozen=0.0, cold=0.0, regular=1.0),
        )
        with pytest.warns(OverCapacityWarning):
            arr = place([make_item("plank", width=10.0, height=1.0, length=3.0)],
                        VehicleConfig(), settings)
        assert arr.unplaced == ("plank",)

    def test_supplied_orientation_kept_when_rotation_disabled(self):
        settings = EngineSettings(
            placement=PlacementSettings(allow_rotation=False),
            zones=ZoneSettings(frozen=0.0, cold=0.0, regular=1.0),
        )
        plank = make_item("plank", width=10.0, height=1.0, length=3.0, orientation_swapped=True)
        arr = place([plank], VehicleConfig(), settings)
        p = arr.get("plank")
        assert p.item.orientation_swapped
        assert p.width == pytest.approx(3.0)
        assert p.length == pytest.approx(10.0)


class TestInfeasible:
    def test_oversized_item_recorded(self):
        items = [make_item("huge", width=10.0, length=10.0), make_item("ok")]
        with pytest.warns(OverCapacityWarning):
            arr = place(items)
        assert arr.item_ids == ("ok",)
        assert "huge" in arr.unplaced
        assert [i for i, _ in arr.infeasible] == ["huge"]

    def test_empty_band_is_infeasible(self, single_band_settings):
        frozen = make_item("ice", temperature_zone=TemperatureZone.FROZEN)
        with pytest.raises(InfeasibleItemError, match="band is empty"):
            check_fits(frozen, VehicleConfig(), single_band_settings.zone_layout)

    def test_too_tall(self):
        with pytest.raises(InfeasibleItemError) as exc_info:
            check_fits(make_item("tower", height=12.0), VehicleConfig(), ZoneLayout())
        assert exc_info.value.item_id == "tower"
        assert "height" in exc_info.value.reason


# ---------------------------------------------------------------------------
# Planner bookkeeping and registry
# ---------------------------------------------------------------------------

class TestPlanner:
    def test_summary(self, mixed_cargo):
        planner = LoadPlanner()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", OverCapacityWarning)
            arr = planner.place(mixed_cargo)
        summary = planner.get_summary()
        assert summary["items_total"] == len(mixed_cargo)
        assert summary["items_placed"] == len(arr)
        assert summary["items_rejected"] == len(arr.unplaced)
        assert 0.0 < summary["fill_rate"] <= 1.0
        assert summary["total_weight"] == pytest.approx(arr.total_weight)

    def test_step_log(self, cube):
        planner = LoadPlanner()
        planner.place([cube])
        log = planner.get_step_log()
        assert len(log) == 1
        assert log[0].success
        assert log[0].to_dict()["placement"]["item_id"] == "cube"

    def test_each_run_replaces_previous(self, cube):
        planner = LoadPlanner()
        planner.place([cube, make_item("other")])
        arr = planner.place([cube])
        assert arr.item_ids == ("cube",)
        assert planner.get_summary()["items_total"] == 1


class TestRegistry:
    def test_strategies_registered(self):
        for name in STRATEGIES:
            assert name in STRATEGY_REGISTRY
            assert get_strategy(name).name == name

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            get_strategy("does_not_exist")
