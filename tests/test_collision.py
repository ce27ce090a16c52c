"""
Tests for the collision detector and the support relation.
"""

import pytest

from conftest import make_arrangement, make_placement
from truckload.simulator.collision import (
    chain_above,
    collisions_for,
    detect_collisions,
    is_grounded,
    near_contacts,
    resting_chain,
    resting_on,
    sorted_pairs,
    support_map,
    supports_of,
)


@pytest.fixture
def tower():
    """
    base (floor) carries mid, mid carries top; side stands beside base.

        [top ]
        [mid ]
        [base][side]
    """
    return make_arrangement([
        make_placement("base", 0.0, 1.0, 0.0, weight=100.0),
        make_placement("side", 2.0, 1.0, 0.0),
        make_placement("mid", 0.0, 3.0, 0.0, weight=40.0),
        make_placement("top", 0.0, 5.0, 0.0, weight=10.0),
    ])


class TestDetectCollisions:
    def test_clean_arrangement_has_none(self, tower):
        assert detect_collisions(tower) == frozenset()

    def test_single_overlap(self):
        arr = make_arrangement([
            make_placement("a", 0.0, 1.0, 0.0),
            make_placement("b", 1.0, 1.0, 0.0),
            make_placement("c", 5.0, 1.0, 0.0),
        ])
        assert detect_collisions(arr) == {frozenset({"a", "b"})}

    def test_accepts_plain_sequence(self):
        boxes = [make_placement("a", 0.0, 1.0, 0.0), make_placement("b", 0.5, 1.0, 0.5)]
        assert detect_collisions(boxes) == {frozenset({"a", "b"})}

    def test_fewer_than_two_items(self):
        assert detect_collisions([]) == frozenset()
        assert detect_collisions([make_placement("a", 0.0, 1.0, 0.0)]) == frozenset()

    def test_deterministic(self):
        boxes = [make_placement(f"b{i}", i * 1.5, 1.0, 0.0) for i in range(6)]
        assert detect_collisions(boxes) == detect_collisions(list(boxes))

    def test_sorted_pairs(self):
        pairs = frozenset({frozenset({"b", "a"}), frozenset({"c", "a"})})
        assert sorted_pairs(pairs) == [("a", "b"), ("a", "c")]


class TestCollisionsFor:
    def test_ids_overlapping_one_item(self):
        arr = make_arrangement([
            make_placement("a", 0.0, 1.0, 0.0),
            make_placement("b", 1.0, 1.0, 0.0),
            make_placement("c", -1.0, 1.0, 0.0),
        ])
        assert collisions_for("a", arr) == {"b", "c"}
        assert collisions_for("b", arr) == {"a"}

    def test_unknown_id(self, tower):
        with pytest.raises(KeyError):
            collisions_for("ghost", tower)


class TestSupport:
    def test_supports_of(self, tower):
        assert supports_of("base", tower) == frozenset()
        assert supports_of("mid", tower) == {"base"}
        assert supports_of("top", tower) == {"mid"}

    def test_resting_on(self, tower):
        assert resting_on("base", tower) == {"mid"}
        assert resting_on("mid", tower) == {"top"}
        assert resting_on("top", tower) == frozenset()
        assert resting_on("side", tower) == frozenset()

    def test_bridge_item_has_two_supporters(self, tower):
        arr = make_arrangement(list(tower.placements[:2]) + [
            make_placement("bridge", 1.0, 3.0, 0.0, width=2.0),
        ])
        assert supports_of("bridge", arr) == {"base", "side"}
        assert resting_on("base", arr) == {"bridge"}
        assert resting_on("side", arr) == {"bridge"}

    def test_item_near_floor_rests_on_thin_item(self):
        arr = make_arrangement([
            make_placement("tray", 0.0, 0.02, 0.0, height=0.04),
            make_placement("box", 0.0, 1.04, 0.0),
        ])
        assert supports_of("box", arr) == {"tray"}
        assert resting_on("tray", arr) == {"box"}
        assert support_map(arr).load_count("tray") == 1
        assert is_grounded("box", arr)

    def test_support_map_matches_scalar_queries(self, tower):
        smap = support_map(tower)
        for item_id in tower.item_ids:
            assert smap.below[item_id] == supports_of(item_id, tower)
            assert smap.above[item_id] == resting_on(item_id, tower)
        assert smap.load_count("base") == 1
        assert smap.load_count("top") == 0

    def test_resting_chain(self, tower):
        assert resting_chain("base", tower) == {"base", "mid", "top"}
        assert resting_chain("top", tower) == {"top"}
        assert chain_above("mid", support_map(tower)) == {"mid", "top"}

    def test_resting_chain_unknown_id(self, tower):
        with pytest.raises(KeyError):
            resting_chain("ghost", tower)

    def test_is_grounded(self, tower):
        floating = make_arrangement(list(tower.placements) + [
            make_placement("hover", 3.0, 4.0, 3.0),
        ])
        assert is_grounded("base", floating)
        assert is_grounded("top", floating)
        assert not is_grounded("hover", floating)


class TestNearContacts:
    def test_touching_neighbours(self, tower):
        pairs = near_contacts(tower)
        assert frozenset({"base", "side"}) in pairs
        assert frozenset({"base", "mid"}) in pairs
        assert frozenset({"mid", "top"}) in pairs
        assert frozenset({"base", "top"}) not in pairs

    def test_gap_outside_tolerance(self):
        boxes = [make_placement("a", 0.0, 1.0, 0.0), make_placement("b", 2.2, 1.0, 0.0)]
        assert near_contacts(boxes) == frozenset()
        assert near_contacts(boxes, tolerance=0.25) == {frozenset({"a", "b"})}
