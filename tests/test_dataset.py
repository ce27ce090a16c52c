"""
Tests for cargo generators, manifest import and settings loading.
"""

import json
import os

import pytest
import yaml
from pydantic import ValidationError

from truckload.config import Item, TemperatureZone
from truckload.dataset.generator import generate_identical, generate_sample_cargo, generate_uniform
from truckload.dataset.loader import load_manifest, parse_manifest
from truckload.settings import DEFAULT_SETTINGS, EngineSettings, ZoneSettings, load_settings


CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "configs")


class TestGenerators:
    def test_sample_cargo_is_seeded(self):
        assert generate_sample_cargo(25, seed=5) == generate_sample_cargo(25, seed=5)
        assert generate_sample_cargo(25, seed=5) != generate_sample_cargo(25, seed=6)

    def test_sample_cargo_properties(self):
        items = generate_sample_cargo(200, stops=3, seed=1)
        assert [i.id for i in items[:2]] == ["box-001", "box-002"]
        assert len({i.id for i in items}) == 200
        for item in items:
            assert 10.0 <= item.weight <= 500.0
            assert 1 <= item.destination <= 3
            assert 0.0 <= item.crush_factor <= 0.5
            assert item.width <= 7.5 and item.length <= 27.5
            if item.fragile:
                assert item.stack_limit == 0
            else:
                assert 1 <= item.stack_limit <= 4
        assert {i.temperature_zone for i in items} == set(TemperatureZone)

    def test_sample_cargo_rejects_zero_stops(self):
        with pytest.raises(ValueError):
            generate_sample_cargo(5, stops=0)

    def test_uniform_bounds(self):
        items = generate_uniform(50, min_dim=1.0, max_dim=2.0, seed=3)
        for item in items:
            for dim in (item.width, item.height, item.length):
                assert 1.0 <= dim <= 2.0
            assert item.temperature_zone is TemperatureZone.REGULAR

    def test_identical(self):
        items = generate_identical(4, width=1.0)
        assert len(items) == 4
        assert {(i.width, i.height, i.length, i.weight) for i in items} == {(1.0, 2.0, 2.0, 50.0)}

    def test_saved_dataset_loads_back(self, tmp_path):
        path = tmp_path / "sample.json"
        items = generate_sample_cargo(10, seed=9, save_path=str(path))
        with open(path) as f:
            data = json.load(f)
        assert data["generator"] == "sample_cargo"
        assert data["item_count"] == 10
        loaded, vehicle = load_manifest(path)
        assert vehicle is None
        assert loaded == items


class TestManifest:
    def test_yaml_with_camel_case(self, tmp_path):
        path = tmp_path / "manifest.yaml"
        path.write_text(yaml.safe_dump({
            "vehicle": {"width": 8, "length": 20, "height": 8, "maxWeight": 30000},
            "items": [
                {"id": "A1", "width": 2, "height": 2, "length": 3, "weight": 80,
                 "temperatureZone": "Frozen", "isFragile": True, "stackLimit": 0,
                 "destination": "Stop 3"},
                {"id": 7, "width": 1, "height": 1, "length": 1, "weight": 5},
            ],
        }))
        items, vehicle = load_manifest(path)
        assert vehicle.max_weight == 30000
        assert vehicle.length == 20
        first, second = items
        assert first.temperature_zone is TemperatureZone.FROZEN
        assert first.fragile and first.stack_limit == 0
        assert first.destination == 3
        assert second.id == "7"
        assert second.destination == 1

    def test_quantity_expands(self):
        items, _ = parse_manifest([
            {"id": "B", "width": 1, "height": 1, "length": 1, "weight": 5, "quantity": 3},
        ])
        assert [i.id for i in items] == ["B-1", "B-2", "B-3"]
        assert all(isinstance(i, Item) for i in items)

    def test_duplicate_ids_rejected(self):
        line = {"id": "A", "width": 1, "height": 1, "length": 1, "weight": 5}
        with pytest.raises(ValidationError, match="duplicate"):
            parse_manifest({"items": [line, dict(line)]})

    @pytest.mark.parametrize("field, value", [
        ("width", 0),
        ("weight", -5),
        ("destination", "somewhere"),
        ("temperature_zone", "ambient"),
        ("crush_factor", 1.5),
    ])
    def test_invalid_lines(self, field, value):
        line = {"id": "A", "width": 1, "height": 1, "length": 1, "weight": 5, field: value}
        with pytest.raises(ValidationError):
            parse_manifest([line])

    def test_empty_manifest(self):
        assert parse_manifest({}) == ([], None)


class TestSettings:
    def test_default_yaml_matches_defaults(self):
        settings = load_settings(os.path.join(CONFIG_DIR, "default_settings.yaml"))
        assert settings.placement == DEFAULT_SETTINGS.placement
        assert settings.scoring == DEFAULT_SETTINGS.scoring
        assert settings.dynamics == DEFAULT_SETTINGS.dynamics
        assert settings.zones.regular == pytest.approx(DEFAULT_SETTINGS.zones.regular)

    def test_none_returns_defaults(self):
        assert load_settings() is DEFAULT_SETTINGS

    def test_partial_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("placement:\n  strategy: baseline\ndynamics:\n  friction: 0.5\n")
        settings = EngineSettings.from_yaml(path)
        assert settings.placement.strategy == "baseline"
        assert settings.dynamics.friction == 0.5
        assert settings.scoring == DEFAULT_SETTINGS.scoring

    def test_zone_fractions_must_cover_length(self):
        with pytest.raises(ValidationError, match="sum to 1"):
            ZoneSettings(frozen=0.5, cold=0.5, regular=0.5)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings.from_dict({"placement": {"stratgey": "baseline"}})

    def test_frozen_and_hashable(self):
        settings = EngineSettings()
        with pytest.raises(ValidationError):
            settings.placement.strategy = "baseline"
        assert hash(settings) == hash(EngineSettings())

    def test_round_trip_dict(self):
        settings = EngineSettings(zones=ZoneSettings(frozen=0.2, cold=0.3, regular=0.5))
        assert EngineSettings.from_dict(settings.to_dict()) == settings
        layout = settings.zone_layout
        assert layout.frozen_fraction == 0.2
