"""
Collision detector — overlap and support queries over a set of placements.

Queried by the placement strategies (candidate checks), by manual edits
and by the dynamics validator on every tick.  All functions are
side-effect free and deterministic for identical input.

Every query accepts either an Arrangement (anything with a
``placements`` attribute) or a plain sequence of Placement objects.

Queries:
    detect_collisions(src)        — unordered id pairs that overlap
    collisions_for(item_id, src)  — ids overlapping one item
    supports_of(item_id, src)     — ids directly beneath an item
    resting_on(item_id, src)      — ids resting directly on top of an item
    support_map(src)              — both relations for every item at once
    resting_chain(item_id, src)   — item + everything transitively above it
    near_contacts(src)            — pairs facing each other within tolerance
    is_grounded(item_id, src)     — on the floor or resting on something
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple

import numpy as np

from truckload.config import Placement
from truckload.simulator.geometry import (
    SUPPORT_TOLERANCE,
    bounds_array,
    near_contact,
    on_floor,
    overlaps,
    pairwise_overlap_matrix,
    rests_on,
)


Pair = FrozenSet[str]


def _placements(src) -> Sequence[Placement]:
    return getattr(src, "placements", src)


def _find(item_id: str, placements: Sequence[Placement]) -> Placement:
    for p in placements:
        if p.item_id == item_id:
            return p
    raise KeyError(item_id)


# ─────────────────────────────────────────────────────────────────────────────
# Overlaps
# ─────────────────────────────────────────────────────────────────────────────

def detect_collisions(src) -> FrozenSet[Pair]:
    """
    All unordered pairs of item ids whose bounding boxes overlap.

    O(n²) pairwise test, vectorised with numpy; fine for the expected
    tens to a few hundred items.
    """
    placements = _placements(src)
    if len(placements) < 2:
        return frozenset()
    hit = pairwise_overlap_matrix(bounds_array(placements))
    rows, cols = np.nonzero(np.triu(hit, k=1))
    return frozenset(
        frozenset((placements[i].item_id, placements[j].item_id))
        for i, j in zip(rows.tolist(), cols.tolist())
    )


def collisions_for(item_id: str, src) -> FrozenSet[str]:
    """Ids of items overlapping *item_id*."""
    placements = _placements(src)
    target = _find(item_id, placements)
    return frozenset(
        p.item_id for p in placements
        if p.item_id != item_id and overlaps(target, p)
    )


def sorted_pairs(pairs: FrozenSet[Pair]) -> List[Tuple[str, str]]:
    """Pairs as sorted tuples in a stable order (for logs and reports)."""
    return sorted(tuple(sorted(pair)) for pair in pairs)


# ─────────────────────────────────────────────────────────────────────────────
# Support relation
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SupportMap:
    """
    Support relation for a whole arrangement.

    Attributes:
        below: item id → ids it rests on.
        above: item id → ids resting on it.
    """
    below: Dict[str, FrozenSet[str]]
    above: Dict[str, FrozenSet[str]]

    def load_count(self, item_id: str) -> int:
        """Number of items resting directly on *item_id*."""
        return len(self.above.get(item_id, frozenset()))


def support_map(src, tolerance: float = SUPPORT_TOLERANCE) -> SupportMap:
    """Compute the support relation in both directions."""
    placements = _placements(src)
    below: Dict[str, Set[str]] = {p.item_id: set() for p in placements}
    above: Dict[str, Set[str]] = {p.item_id: set() for p in placements}
    for upper in placements:
        for lower in placements:
            if lower.item_id == upper.item_id:
                continue
            if rests_on(upper, lower, tolerance):
                below[upper.item_id].add(lower.item_id)
                above[lower.item_id].add(upper.item_id)
    return SupportMap(
        below={k: frozenset(v) for k, v in below.items()},
        above={k: frozenset(v) for k, v in above.items()},
    )


def supports_of(item_id: str, src, tolerance: float = SUPPORT_TOLERANCE) -> FrozenSet[str]:
    """Ids of the items directly beneath *item_id* (the ones it rests on)."""
    placements = _placements(src)
    upper = _find(item_id, placements)
    return frozenset(
        p.item_id for p in placements
        if p.item_id != item_id and rests_on(upper, p, tolerance)
    )


def resting_on(item_id: str, src, tolerance: float = SUPPORT_TOLERANCE) -> FrozenSet[str]:
    """Ids of the items resting directly on top of *item_id*."""
    placements = _placements(src)
    lower = _find(item_id, placements)
    return frozenset(
        p.item_id for p in placements
        if p.item_id != item_id and rests_on(p, lower, tolerance)
    )


def resting_chain(item_id: str, src, tolerance: float = SUPPORT_TOLERANCE) -> FrozenSet[str]:
    """*item_id* plus every item transitively resting on it."""
    return chain_above(item_id, support_map(src, tolerance))


def chain_above(item_id: str, smap: SupportMap) -> FrozenSet[str]:
    """resting_chain() over a precomputed support map."""
    if item_id not in smap.above:
        raise KeyError(item_id)
    seen: Set[str] = {item_id}
    stack = [item_id]
    while stack:
        current = stack.pop()
        for upper in smap.above[current]:
            if upper not in seen:
                seen.add(upper)
                stack.append(upper)
    return frozenset(seen)


def is_grounded(item_id: str, src, tolerance: float = SUPPORT_TOLERANCE) -> bool:
    """True when the item is on the floor or resting on another item."""
    placements = _placements(src)
    if on_floor(_find(item_id, placements), tolerance):
        return True
    return bool(supports_of(item_id, placements, tolerance))


# ─────────────────────────────────────────────────────────────────────────────
# Contacts
# ─────────────────────────────────────────────────────────────────────────────

def near_contacts(src, tolerance: float = SUPPORT_TOLERANCE) -> FrozenSet[Pair]:
    """Unordered pairs whose faces are within *tolerance* without overlapping."""
    placements = _placements(src)
    pairs: Set[Pair] = set()
    for i, a in enumerate(placements):
        for b in placements[i + 1:]:
            if near_contact(a, b, tolerance):
                pairs.add(frozenset((a.item_id, b.item_id)))
    return frozenset(pairs)
