"""
Tests for LoadSession: edits, loading plan and the simulation lock.
"""

import pytest

from conftest import make_item
from truckload.simulator.scenarios import ConstantScenarioPolicy, ForceScenario
from truckload.simulator.session import LoadSession
from truckload.simulator.validator import SimulationRunningError, UnknownItemError


@pytest.fixture
def session(single_band_settings):
    s = LoadSession(settings=single_band_settings)
    s.load([
        make_item("a", destination=3, name="Crate A"),
        make_item("b", destination=2),
        make_item("c", destination=1),
    ])
    return s


class TestEdits:
    def test_load_places_everything(self, session):
        assert set(session.arrangement.item_ids) == {"a", "b", "c"}
        assert session.collisions() == frozenset()
        assert session.audit() == []
        assert session.scores.safety == 100.0

    def test_move_returns_violations(self, session):
        target = session.arrangement.get("a").position
        violations = session.move_item("b", target)
        assert [v.kind for v in violations] == ["overlap"]
        assert violations[0].item_ids == ("a", "b")
        assert session.arrangement.get("b").position == target
        assert session.collisions() == {frozenset({"a", "b"})}

    def test_clean_move(self, session):
        assert session.move_item("c", (3.0, 1.0, 12.0)) == []
        assert session.arrangement.get("c").position == (3.0, 1.0, 12.0)

    def test_move_outside_vehicle(self, session):
        violations = session.move_item("c", (0.0, 1.0, 20.0))
        assert {v.kind for v in violations} == {"envelope", "zone"}

    def test_move_unknown_item(self, session):
        with pytest.raises(UnknownItemError):
            session.move_item("ghost", (0.0, 1.0, 0.0))
        with pytest.raises(KeyError):
            session.move_item("ghost", (0.0, 1.0, 0.0))

    def test_remove_item_keeps_positions(self, session):
        before = session.arrangement.positions()
        arr = session.remove_item("b")
        assert "b" not in arr.item_ids
        assert "b" not in arr.loading_sequence
        assert [i.id for i in session.items] == ["a", "c"]
        for item_id in ("a", "c"):
            assert arr.get(item_id).position == before[item_id]

    def test_remove_unknown_item(self, session):
        with pytest.raises(UnknownItemError):
            session.remove_item("ghost")

    def test_add_items_replans(self, session):
        arr = session.add_items([make_item("d", destination=4)])
        assert arr.loading_sequence[0] == "d"
        assert len(arr) == 4


class TestLoadingPlan:
    def test_plan_follows_sequence(self, session):
        plan = session.loading_plan()
        assert [s.item_id for s in plan] == list(session.arrangement.loading_sequence)
        assert [s.step for s in plan] == [1, 2, 3]
        assert plan[0].item_id == "a"

    def test_step_description(self, session):
        step = session.loading_plan()[0]
        text = step.describe()
        assert text.startswith("1. Crate A (stop 3, regular)")
        assert "floor" in text
        assert step.to_dict()["rests_on"] == []


class TestSimulationLock:
    def test_edits_rejected_while_simulating(self, session):
        session.start_simulation()
        assert session.is_simulating
        with pytest.raises(SimulationRunningError):
            session.move_item("a", (0.0, 1.0, 0.0))
        with pytest.raises(SimulationRunningError):
            session.remove_item("a")
        with pytest.raises(SimulationRunningError):
            session.load([make_item("z")])
        session.stop_simulation()
        assert not session.is_simulating
        assert session.move_item("c", (3.0, 1.0, 12.0)) == []

    def test_live_positions_and_adoption(self, session):
        session.start_simulation(ConstantScenarioPolicy(ForceScenario.ACCELERATING))
        for _ in range(30):
            snap = session.tick()
        assert session.arrangement.positions() == snap.positions
        final = session.stop_simulation()
        assert session.arrangement.positions() == final.positions

    def test_stop_when_idle(self, session):
        assert session.stop_simulation() is None
        assert session.tick() is None
