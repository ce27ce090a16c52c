"""
Load planner — the central authority for item placement.

Data flow:
  1. Items are partitioned by temperature zone and sorted
     (destination desc, weight desc, volume desc, id asc).
  2. Each item is checked against its band (InfeasibleItemError when it
     fits no orientation; recorded, placement continues).
  3. The strategy reads the LoadState and returns a PlacementDecision.
  4. The planner re-validates the decision, commits it, logs the step.
  5. Items the strategy cannot place are recorded as unplaced and an
     OverCapacityWarning is emitted.

Usage:
    planner = LoadPlanner(settings)
    arrangement = planner.place(items, vehicle)
    planner.get_summary()   # placed / rejected / fill rate / timing

    # or, one-shot
    arrangement = place(items, vehicle)

Every call to place() is a batch recompute that fully replaces the
previous result.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from truckload.config import ZONE_ORDER, Item, Placement, PlacementDecision, VehicleConfig
from truckload.settings import DEFAULT_SETTINGS, EngineSettings
from truckload.simulator.arrangement import Arrangement
from truckload.simulator.geometry import bounds_at
from truckload.simulator.load_state import LoadState
from truckload.simulator.validator import (
    InfeasibleItemError,
    OverCapacityWarning,
    PlacementError,
    check_fits,
    validate_candidate,
)
from truckload.strategies import get_strategy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# StepRecord -- immutable log entry for each placement attempt
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepRecord:
    """
    Log of a single placement attempt (success or rejection).

    Frozen so it can be safely examined without risk of mutation.
    """
    step: int
    item: Item
    success: bool
    placement: Optional[Placement] = None
    rejection_reason: str = ""
    infeasible: bool = False
    fill_rate_after: float = 0.0
    reach_cost: float = 0.0
    elapsed_ms: float = 0.0

    def to_dict(self) -> dict:
        d = {
            "step": self.step,
            "item_id": self.item.id,
            "item_dims": [self.item.width, self.item.height, self.item.length],
            "zone": self.item.temperature_zone.value,
            "destination": self.item.destination,
            "success": self.success,
            "fill_rate_after": round(self.fill_rate_after, 6),
            "elapsed_ms": round(self.elapsed_ms, 3),
        }
        if self.success and self.placement is not None:
            d["placement"] = self.placement.to_dict()
            d["reach_cost"] = round(self.reach_cost, 6)
        else:
            d["rejection_reason"] = self.rejection_reason
            d["infeasible"] = self.infeasible
        return d


def sort_key(item: Item) -> Tuple:
    """Last stop first, then heavy, then large, then id for determinism."""
    return (-item.destination, -item.weight, -item.volume, item.id)


def order_items(items: Iterable[Item]) -> List[Item]:
    """Partition by zone (front band first) and sort every partition."""
    ordered: List[Item] = []
    for zone in ZONE_ORDER:
        ordered.extend(sorted((i for i in items if i.temperature_zone == zone), key=sort_key))
    return ordered


# ---------------------------------------------------------------------------
# LoadPlanner
# ---------------------------------------------------------------------------

class LoadPlanner:
    """
    Greedy placement of a batch of items into one vehicle.

    Public interface
    ~~~~~~~~~~~~~~~~
    place(items, vehicle)   -> Arrangement
    get_step_log()          -> List[StepRecord]
    get_summary()           -> dict
    """

    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self._settings = settings or DEFAULT_SETTINGS
        self._state: Optional[LoadState] = None
        self._step_log: List[StepRecord] = []

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # -- Public: placement ---------------------------------------------------

    def place(self, items: Sequence[Item], vehicle: Optional[VehicleConfig] = None) -> Arrangement:
        """
        Place *items* into *vehicle* and return the resulting Arrangement.

        Never raises for capacity or weight; those are flagged on the
        arrangement (``unplaced``, ``infeasible``, ``warnings``).
        """
        vehicle = vehicle or VehicleConfig()
        ids = [i.id for i in items]
        if len(set(ids)) != len(ids):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            raise ValueError(f"Duplicate item ids: {dupes}")

        layout = self._settings.zone_layout
        self._state = LoadState(vehicle, layout)
        self._step_log = []

        allow_rotation = self._settings.placement.allow_rotation
        strategy = get_strategy(self._settings.placement.strategy)
        strategy.on_run_start(self._settings)

        unplaced: List[str] = []
        infeasible: List[Tuple[str, str]] = []
        caught: List[OverCapacityWarning] = []

        for item in order_items(items):
            t0 = time.perf_counter()
            nominal = item.rotated(False) if allow_rotation else item
            try:
                check_fits(nominal, vehicle, layout)
            except InfeasibleItemError as e:
                logger.warning("%s", e)
                infeasible.append((item.id, e.reason))
                unplaced.append(item.id)
                self._log_rejection(item, t0, e.reason, infeasible=True)
                continue

            decision = strategy.decide_placement(nominal, self._state)
            placement = None
            if decision is not None:
                placement = self._attempt_placement(nominal, decision, t0)
            if placement is None:
                unplaced.append(item.id)
                if decision is None:
                    self._log_rejection(item, t0, "No feasible position in band")

        strategy.on_run_end(self.get_summary())

        if unplaced:
            caught.append(self._warn(
                f"{len(unplaced)} item(s) could not be placed: {', '.join(unplaced)}"
            ))
        if self._state.get_weight() > vehicle.max_weight:
            caught.append(self._warn(
                f"Total weight {self._state.get_weight():.0f} lb exceeds "
                f"limit {vehicle.max_weight:.0f} lb"
            ))

        placements = tuple(self._state.placed)
        arrangement = Arrangement(
            placements=placements,
            loading_sequence=tuple(p.item_id for p in placements),
            vehicle=vehicle,
            zone_layout=layout,
            unplaced=tuple(unplaced),
            infeasible=tuple(infeasible),
            warnings=tuple(caught),
        )
        summary = self.get_summary()
        logger.info(
            "placed %d/%d items (fill %.1f%%, %.0f/%.0f lb) in %.1f ms",
            summary["items_placed"], summary["items_total"],
            summary["fill_rate"] * 100, summary["total_weight"], vehicle.max_weight,
            summary["computation_time_ms"],
        )
        return arrangement

    # -- Public: logs & summary ----------------------------------------------

    def get_step_log(self) -> List[StepRecord]:
        """Return a copy of the full step log."""
        return list(self._step_log)

    def get_summary(self) -> dict:
        """
        Summary of the last run.

        Keys: items_total, items_placed, items_rejected, items_infeasible,
              fill_rate, total_weight, computation_time_ms.
        """
        placed = [r for r in self._step_log if r.success]
        state = self._state
        return {
            "items_total": len(self._step_log),
            "items_placed": len(placed),
            "items_rejected": len(self._step_log) - len(placed),
            "items_infeasible": sum(1 for r in self._step_log if r.infeasible),
            "fill_rate": state.get_fill_rate() if state is not None else 0.0,
            "total_weight": state.get_weight() if state is not None else 0.0,
            "computation_time_ms": round(sum(r.elapsed_ms for r in self._step_log), 2),
        }

    # -- Private helpers -----------------------------------------------------

    def _attempt_placement(
        self, item: Item, decision: PlacementDecision, t0: float,
    ) -> Optional[Placement]:
        state = self._state
        oriented = item.rotated(decision.orientation_swapped)
        box = bounds_at(oriented, decision.x, decision.y, decision.z)
        try:
            supports = validate_candidate(
                oriented, box,
                state.band_placements(oriented.temperature_zone),
                state.vehicle, state.layout, state.load_counts,
                min_support_ratio=self._settings.placement.min_support_ratio,
                tolerance=self._settings.placement.support_tolerance,
            )
        except PlacementError as e:
            self._log_rejection(item, t0, str(e))
            return None

        placement = Placement(
            item=oriented, x=decision.x, y=decision.y, z=decision.z,
            sequence=len(state.placed),
        )
        state.apply_placement(placement, supports)
        self._step_log.append(StepRecord(
            step=len(self._step_log), item=item, success=True, placement=placement,
            fill_rate_after=state.get_fill_rate(), reach_cost=decision.reach_cost,
            elapsed_ms=(time.perf_counter() - t0) * 1000,
        ))
        logger.debug("placed %s at (%.3f, %.3f, %.3f)%s", item.id,
                     placement.x, placement.y, placement.z,
                     " rotated" if oriented.orientation_swapped else "")
        return placement

    def _log_rejection(self, item: Item, t0: float, reason: str, infeasible: bool = False) -> None:
        self._step_log.append(StepRecord(
            step=len(self._step_log), item=item, success=False,
            rejection_reason=reason, infeasible=infeasible,
            fill_rate_after=self._state.get_fill_rate() if self._state else 0.0,
            elapsed_ms=(time.perf_counter() - t0) * 1000,
        ))
        if not infeasible:
            logger.warning("could not place %s: %s", item.id, reason)

    @staticmethod
    def _warn(message: str) -> OverCapacityWarning:
        warning = OverCapacityWarning(message)
        logger.warning("%s", message)
        warnings.warn(warning, stacklevel=3)
        return warning


def place(
    items: Sequence[Item],
    vehicle: Optional[VehicleConfig] = None,
    settings: Optional[EngineSettings] = None,
) -> Arrangement:
    """Place *items* into *vehicle* with a fresh LoadPlanner."""
    return LoadPlanner(settings).place(items, vehicle)
