"""
Strategy interface — abstract base class for all placement strategies.

A strategy receives one item (already partitioned and sorted by the
planner) and the current LoadState, and proposes a PlacementDecision
(centroid + orientation).  The planner re-validates every decision
before committing it, so a strategy can never corrupt an arrangement.

Creating a strategy
~~~~~~~~~~~~~~~~~~~
1. Create ``strategies/my_strategy/strategy.py``
2. Subclass ``BaseStrategy``, set ``name``, implement ``decide_placement()``
3. Decorate with ``@register_strategy``
4. Import the module in ``strategies/__init__.py``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

from truckload.config import Item, Orientation, PlacementDecision
from truckload.settings import DEFAULT_SETTINGS, EngineSettings
from truckload.simulator.geometry import Bounds, bounds_at
from truckload.simulator.load_state import LoadState
from truckload.simulator.validator import PlacementError, validate_candidate


class BaseStrategy(ABC):
    """
    Abstract base for placement strategies.

    Each call to ``decide_placement()`` receives the current LoadState and
    proposes WHERE to put the item inside its own temperature band.
    """

    name: str = "unnamed"

    def __init__(self) -> None:
        self._settings: EngineSettings = DEFAULT_SETTINGS

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def on_run_start(self, settings: EngineSettings) -> None:
        """Called once before the first item.  Override to initialise state."""
        self._settings = settings

    def on_run_end(self, summary: dict) -> None:
        """Called after the last item.  Override for cleanup."""
        pass

    @abstractmethod
    def decide_placement(
        self,
        item: Item,
        state: LoadState,
    ) -> Optional[PlacementDecision]:
        """
        Propose a placement for *item* given the current load state.

        Args:
            item:  The item to place (nominal orientation).
            state: Placement progress.  Read-only, do NOT mutate.

        Returns:
            ``PlacementDecision`` or ``None`` if the item fits nowhere.
        """
        ...

    # ── Shared helpers ────────────────────────────────────────────────────

    def orientations(self, item: Item) -> List[Item]:
        """
        Footprint variants to try.  With rotation disabled the item keeps
        the orientation it was supplied in.
        """
        if not self.settings.placement.allow_rotation:
            return [item]
        return Orientation.get_flat(item)

    def drop(self, oriented: Item, x: float, z: float, state: LoadState) -> Bounds:
        """Bounds of *oriented* centred at (x, z) after falling onto the stack."""
        probe = bounds_at(oriented, x, oriented.height / 2.0, z)
        y_min = state.get_height_at(probe, oriented.temperature_zone)
        return bounds_at(oriented, x, y_min + oriented.height / 2.0, z)

    @staticmethod
    def reach_cost(box: Bounds, band_start: float) -> float:
        """
        Manhattan distance of *box* from the band's loading start: the
        deep (cab-side) end of the band, on the floor, on the centreline.
        """
        x_c = (box.x_min + box.x_max) / 2.0
        return round((box.z_min - band_start) + box.y_min + abs(x_c), 9)

    def try_candidate(
        self, oriented: Item, box: Bounds, state: LoadState,
    ) -> Optional[Tuple[str, ...]]:
        """Supporting ids when *box* is feasible, else None."""
        try:
            return validate_candidate(
                oriented, box,
                state.band_placements(oriented.temperature_zone),
                state.vehicle, state.layout, state.load_counts,
                min_support_ratio=self.settings.placement.min_support_ratio,
                tolerance=self.settings.placement.support_tolerance,
            )
        except PlacementError:
            return None


# ─────────────────────────────────────────────────────────────────────────────
# Strategy registry
# ─────────────────────────────────────────────────────────────────────────────

STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {}


def register_strategy(cls: Type[BaseStrategy]) -> Type[BaseStrategy]:
    """Class decorator — registers a strategy in the global registry."""
    STRATEGY_REGISTRY[cls.name] = cls
    return cls


def get_strategy(name: str) -> BaseStrategy:
    """Look up a strategy by name and return a new instance."""
    if name not in STRATEGY_REGISTRY:
        available = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise ValueError(f"Unknown strategy '{name}'.  Available: [{available}]")
    return STRATEGY_REGISTRY[name]()
