"""
Load session — the boundary collaborators talk to.

Holds the current item list, the latest Arrangement and the dynamics
validator for one vehicle.  Every mutation goes through an explicit
method and replaces the arrangement with a fresh snapshot; callers
re-read ``arrangement`` / ``scores`` when they need to redraw.

While a simulation runs the validator is the only writer of positions:
manual moves, removals and re-placements raise SimulationRunningError
until stop_simulation().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from truckload.config import Item, VehicleConfig
from truckload.monitoring.scores import ScoreReport, score
from truckload.settings import DEFAULT_SETTINGS, EngineSettings
from truckload.simulator.arrangement import Arrangement, Position
from truckload.simulator.collision import detect_collisions, supports_of
from truckload.simulator.dynamics import DynamicsValidator, SimulationSnapshot
from truckload.simulator.planner import LoadPlanner
from truckload.simulator.scenarios import ScenarioPolicy
from truckload.simulator.validator import (
    ConstraintViolation,
    SimulationRunningError,
    UnknownItemError,
    audit_arrangement,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadingStep:
    """One instruction of the loading plan."""
    step: int
    item_id: str
    name: str
    destination: int
    zone: str
    position: Position
    orientation_swapped: bool
    rests_on: Tuple[str, ...] = ()

    def describe(self) -> str:
        where = "floor" if not self.rests_on else "on " + ", ".join(self.rests_on)
        turned = ", turned 90°" if self.orientation_swapped else ""
        label = self.name or self.item_id
        x, y, z = self.position
        return (f"{self.step}. {label} (stop {self.destination}, {self.zone}) "
                f"at x={x:.2f} z={z:.2f}, {where}{turned}")

    def to_dict(self) -> dict:
        return {
            "step": self.step, "item_id": self.item_id, "name": self.name,
            "destination": self.destination, "zone": self.zone,
            "position": list(self.position),
            "orientation_swapped": self.orientation_swapped,
            "rests_on": list(self.rests_on),
        }


class LoadSession:
    """
    Items, arrangement and simulation for one vehicle.

    Public interface
    ~~~~~~~~~~~~~~~~
    load(items) / add_items(items) / remove_item(id) / move_item(id, pos)
    arrangement / scores / collisions() / loading_plan()
    start_simulation(policy) / tick(dt) / stop_simulation() / is_simulating
    """

    def __init__(
        self,
        vehicle: Optional[VehicleConfig] = None,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        self.vehicle = vehicle or VehicleConfig()
        self.settings = settings or DEFAULT_SETTINGS
        self._planner = LoadPlanner(self.settings)
        self._validator = DynamicsValidator(self.settings)
        self._items: List[Item] = []
        self._arrangement = Arrangement(vehicle=self.vehicle, zone_layout=self.settings.zone_layout)

    # -- Queries -------------------------------------------------------------

    @property
    def items(self) -> List[Item]:
        return list(self._items)

    @property
    def arrangement(self) -> Arrangement:
        """Current arrangement (live simulated positions while simulating)."""
        if self.is_simulating:
            return self._validator.arrangement
        return self._arrangement

    @property
    def scores(self) -> ScoreReport:
        return score(self.arrangement, self.settings)

    @property
    def is_simulating(self) -> bool:
        return self._validator.is_running

    @property
    def planner(self) -> LoadPlanner:
        return self._planner

    def collisions(self):
        return detect_collisions(self.arrangement)

    def audit(self) -> List[ConstraintViolation]:
        return audit_arrangement(self.arrangement)

    def loading_plan(self) -> List[LoadingStep]:
        """Per-item loading instructions in physical loading order."""
        arrangement = self.arrangement
        steps: List[LoadingStep] = []
        for n, item_id in enumerate(arrangement.loading_sequence, start=1):
            p = arrangement.get(item_id)
            steps.append(LoadingStep(
                step=n, item_id=item_id, name=p.item.name,
                destination=p.item.destination,
                zone=p.item.temperature_zone.value,
                position=p.position,
                orientation_swapped=p.item.orientation_swapped,
                rests_on=tuple(sorted(supports_of(item_id, arrangement))),
            ))
        return steps

    # -- Mutations -----------------------------------------------------------

    def load(self, items: Iterable[Item]) -> Arrangement:
        """Replace the item list and place it from scratch."""
        self._ensure_idle("load")
        self._items = list(items)
        self._arrangement = self._planner.place(self._items, self.vehicle)
        return self._arrangement

    def add_items(self, items: Iterable[Item]) -> Arrangement:
        """Append items and re-place the whole list (batch recompute)."""
        return self.load(self._items + list(items))

    def remove_item(self, item_id: str) -> Arrangement:
        """Drop an item; remaining positions are kept, the sequence shrinks."""
        self._ensure_idle("remove_item")
        if not any(i.id == item_id for i in self._items):
            raise UnknownItemError(item_id)
        self._items = [i for i in self._items if i.id != item_id]
        arrangement = self._arrangement
        if arrangement.find(item_id) is not None:
            arrangement = arrangement.without_item(item_id)
        self._arrangement = replace(
            arrangement,
            unplaced=tuple(i for i in arrangement.unplaced if i != item_id),
            infeasible=tuple(e for e in arrangement.infeasible if e[0] != item_id),
        )
        logger.info("removed %s", item_id)
        return self._arrangement

    def move_item(self, item_id: str, position: Position) -> List[ConstraintViolation]:
        """
        Relocate one placed item by hand.

        The move is applied even when it breaks a constraint; the
        violations found by the audit are returned for display.
        """
        self._ensure_idle("move_item")
        self._arrangement = self._arrangement.with_position(item_id, tuple(float(c) for c in position))
        violations = audit_arrangement(self._arrangement)
        if violations:
            logger.warning("manual move of %s left %d violation(s)", item_id, len(violations))
        return violations

    # -- Simulation ----------------------------------------------------------

    def start_simulation(self, policy: Optional[ScenarioPolicy] = None) -> SimulationSnapshot:
        return self._validator.start(self._arrangement, policy)

    def tick(self, dt: Optional[float] = None) -> Optional[SimulationSnapshot]:
        return self._validator.tick(dt)

    def stop_simulation(self) -> Optional[SimulationSnapshot]:
        """Stop the validator and keep the simulated positions."""
        was_running = self.is_simulating
        final = self._validator.stop()
        if was_running and self._validator.arrangement is not None:
            self._arrangement = self._validator.arrangement
        return final

    def _ensure_idle(self, operation: str) -> None:
        if self.is_simulating:
            raise SimulationRunningError(
                f"{operation} rejected: a simulation is running, call stop_simulation() first"
            )
