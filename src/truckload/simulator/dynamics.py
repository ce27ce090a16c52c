"""
Dynamics validator — stress-tests a static arrangement with vehicle motion.

State machine:  IDLE ──start()──▶ RUNNING ──stop()──▶ IDLE

While RUNNING, every tick():
  1. The injected ScenarioPolicy picks one ForceScenario (none,
     accelerating, braking, left turn, right turn).  Gravity is always on.
  2. Each item gets  gravity·(w/baseline) + scenario·(w/baseline),
     ×fragile_factor for fragile items, plus lateral jitter proportional
     to its height above the floor (seeded numpy generator).
  3. Explicit Euler step:
       - grounded items slide only when the horizontal load exceeds the
         friction coefficient (in g); sliding is braked by kinetic friction
       - unsupported items fall until they land on the floor or a top face
       - linear damping, wall clamping
     The collision detector then runs on the moved arrangement: every new
     overlapping pair increments collision_count and the items involved
     revert to their pre-tick positions.  Newly formed near contacts
     increment contact_count.
  4. Stability is recomputed and appended to the history.

The validator never raises while ticking: an idle tick() returns the
last snapshot unchanged.  Rising collision counts and falling stability
are the signal of an unsafe arrangement.

Usage:
    validator = DynamicsValidator(settings)
    validator.start(arrangement, ScriptedScenarioPolicy([(BRAKING, 60)]))
    for _ in range(60):
        snap = validator.tick()
    final = validator.stop()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from truckload.monitoring.scores import stability_score
from truckload.settings import DEFAULT_SETTINGS, EngineSettings
from truckload.simulator.arrangement import Arrangement, Position
from truckload.simulator.collision import (
    Pair,
    detect_collisions,
    near_contacts,
    sorted_pairs,
    support_map,
)
from truckload.simulator.geometry import OVERLAP_EPS, footprint_overlap_area, on_floor
from truckload.simulator.scenarios import (
    ConstantScenarioPolicy,
    ForceScenario,
    ScenarioPolicy,
    inertial_acceleration,
)

logger = logging.getLogger(__name__)


Vec3 = Tuple[float, float, float]

GRAVITY_FLAG = "gravity"


class DynamicsPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class SimulationState:
    """
    Vehicle-level simulation state.  Reset on start() and stop().

    Attributes:
        velocity:         Vehicle velocity (ft/s); forward is -z.
        angular_velocity: Vehicle yaw rate (rad/s) about +y.
        active_forces:    Forces applied this tick ("gravity" + scenario).
        collision_count:  New overlapping pairs seen since start().
        contact_count:    Newly formed near contacts since start().
        tick:             Ticks advanced since start().
        elapsed:          Simulated seconds since start().
    """
    velocity: Vec3 = (0.0, 0.0, 0.0)
    angular_velocity: Vec3 = (0.0, 0.0, 0.0)
    active_forces: FrozenSet[str] = frozenset()
    collision_count: int = 0
    contact_count: int = 0
    tick: int = 0
    elapsed: float = 0.0

    def to_dict(self) -> dict:
        return {
            "velocity": list(self.velocity),
            "angular_velocity": list(self.angular_velocity),
            "active_forces": sorted(self.active_forces),
            "collision_count": self.collision_count,
            "contact_count": self.contact_count,
            "tick": self.tick,
            "elapsed": round(self.elapsed, 6),
        }


@dataclass(frozen=True)
class SimulationSnapshot:
    """
    Observable result of one tick.

    Attributes:
        tick:           Tick index (0 = the state right after start()).
        scenario:       Scenario applied during this tick.
        arrangement:    Item positions after the tick.
        state:          Vehicle-level state after the tick.
        stability:      Stability score of ``arrangement``.
        new_collisions: Pairs that collided this tick (already resolved).
        total_force:    Sum of applied force magnitudes (lbf).
        running:        False for the snapshot returned by stop().
    """
    tick: int
    scenario: ForceScenario
    arrangement: Arrangement
    state: SimulationState
    stability: float
    new_collisions: Tuple[Tuple[str, str], ...] = ()
    total_force: float = 0.0
    running: bool = True

    @property
    def positions(self) -> Dict[str, Position]:
        return self.arrangement.positions()

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "scenario": self.scenario.value,
            "positions": {k: list(v) for k, v in self.positions.items()},
            "state": self.state.to_dict(),
            "stability": round(self.stability, 4),
            "new_collisions": [list(p) for p in self.new_collisions],
            "total_force": round(self.total_force, 3),
            "running": self.running,
        }


class DynamicsValidator:
    """
    Discrete-time stress test of an arrangement.

    Public interface
    ~~~~~~~~~~~~~~~~
    start(arrangement, policy)  -> SimulationSnapshot  (tick 0)
    tick(dt=None)               -> SimulationSnapshot
    stop()                      -> SimulationSnapshot  (final)
    arrangement / state / phase / is_running / stability_history
    """

    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self._settings = settings or DEFAULT_SETTINGS
        self._phase = DynamicsPhase.IDLE
        self._arrangement: Optional[Arrangement] = None
        self._policy: Optional[ScenarioPolicy] = None
        self._state = SimulationState()
        self._vel = np.zeros((0, 3))
        self._rng = np.random.default_rng(self._settings.dynamics.seed)
        self._contacts: FrozenSet[Pair] = frozenset()
        self._history: List[float] = []
        self._last: Optional[SimulationSnapshot] = None

    # -- Public: properties --------------------------------------------------

    @property
    def phase(self) -> DynamicsPhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._phase is DynamicsPhase.RUNNING

    @property
    def arrangement(self) -> Optional[Arrangement]:
        """Latest positions (kept after stop())."""
        return self._arrangement

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def stability_history(self) -> List[float]:
        return list(self._history)

    @property
    def last_snapshot(self) -> Optional[SimulationSnapshot]:
        return self._last

    # -- Public: control -----------------------------------------------------

    def start(
        self, arrangement: Arrangement, policy: Optional[ScenarioPolicy] = None,
    ) -> SimulationSnapshot:
        """Enter RUNNING with a fresh simulation state."""
        if self.is_running:
            logger.debug("start() while running; restarting")
        dyn = self._settings.dynamics
        self._policy = policy or ConstantScenarioPolicy(ForceScenario.NONE)
        self._policy.reset()
        self._arrangement = arrangement
        self._vel = np.zeros((len(arrangement.placements), 3))
        self._rng = np.random.default_rng(dyn.seed)
        self._contacts = near_contacts(arrangement, dyn.contact_tolerance)
        self._state = SimulationState(active_forces=frozenset({GRAVITY_FLAG}))
        stability = stability_score(arrangement, self._settings.scoring)
        self._history = [stability]
        self._phase = DynamicsPhase.RUNNING
        self._last = SimulationSnapshot(
            tick=0, scenario=ForceScenario.NONE, arrangement=arrangement,
            state=self._state, stability=stability,
        )
        logger.info("dynamics started: %d items, stability %.2f",
                    len(arrangement.placements), stability)
        return self._last

    def stop(self) -> Optional[SimulationSnapshot]:
        """
        Leave RUNNING.  Positions stay where the last tick left them;
        forces and the simulation state are discarded.  Returns the final
        snapshot (None if the validator was never started).
        """
        if not self.is_running:
            return self._last
        self._phase = DynamicsPhase.IDLE
        final = replace(self._last, running=False)
        logger.info(
            "dynamics stopped after %d ticks: %d collisions, %d contacts, stability %.2f",
            final.state.tick, final.state.collision_count,
            final.state.contact_count, final.stability,
        )
        self._last = final
        self._policy = None
        self._state = SimulationState()
        self._vel = np.zeros_like(self._vel)
        return final

    def tick(self, dt: Optional[float] = None) -> Optional[SimulationSnapshot]:
        """Advance one step; a no-op returning the last snapshot while idle."""
        if not self.is_running:
            return self._last
        dyn = self._settings.dynamics
        dt = dyn.time_step if dt is None else float(dt)
        if not dt > 0:
            return self._last

        scenario = self._policy.next_scenario()
        arrangement = self._arrangement
        placements = arrangement.placements
        n = len(placements)

        if n == 0:
            return self._advance(scenario, dt, arrangement, (), 0, 0.0)

        start_pos = np.array([p.position for p in placements], dtype=np.float64)
        pos, total_force = self._integrate(scenario, dt, start_pos)

        # ── Collision resolution ─────────────────────────────────────────
        ids = [p.item_id for p in placements]
        index = {item_id: i for i, item_id in enumerate(ids)}
        existing = detect_collisions(arrangement)
        first_round: FrozenSet[Pair] = frozenset()
        moved = self._moved(arrangement, ids, pos)
        while True:
            fresh = detect_collisions(moved) - existing
            if not fresh:
                break
            if not first_round:
                first_round = fresh
            for pair in fresh:
                for item_id in pair:
                    i = index[item_id]
                    pos[i] = start_pos[i]
                    self._vel[i] = 0.0
            moved = self._moved(arrangement, ids, pos)
        if first_round:
            logger.debug("tick %d: %d new collision(s) under %s",
                         self._state.tick + 1, len(first_round), scenario.value)

        # ── Contacts ─────────────────────────────────────────────────────
        contacts = near_contacts(moved, dyn.contact_tolerance)
        new_contacts = len(contacts - self._contacts)
        self._contacts = contacts

        return self._advance(
            scenario, dt, moved, sorted_pairs(first_round), new_contacts, total_force,
        )

    # -- Private: physics ----------------------------------------------------

    def _integrate(self, scenario: ForceScenario, dt: float, start_pos: np.ndarray):
        """One Euler step for every item; returns (positions, total force)."""
        dyn = self._settings.dynamics
        g = dyn.gravity
        mu = dyn.friction
        tol = dyn.contact_tolerance
        arrangement = self._arrangement
        placements = arrangement.placements
        n = len(placements)

        half = np.array([[p.width / 2.0, p.height / 2.0, p.length / 2.0] for p in placements])
        weights = np.array([p.weight for p in placements], dtype=np.float64)
        factor = np.array([dyn.fragile_factor if p.item.fragile else 1.0 for p in placements])
        mass = weights / dyn.weight_baseline

        smap = support_map(arrangement, tol)
        grounded = np.array([
            on_floor(p, tol) or bool(smap.below[p.item_id]) for p in placements
        ])

        # Horizontal load in g: scenario plus height-scaled jitter.
        load = np.tile(inertial_acceleration(scenario, dyn.forces), (n, 1))
        y_min = start_pos[:, 1] - half[:, 1]
        jitter = self._rng.uniform(-0.5, 0.5, size=(n, 2)) * (y_min * dyn.jitter_scale)[:, None]
        load[:, 0] += jitter[:, 0]
        load[:, 2] += jitter[:, 1]
        load *= factor[:, None]
        horiz = np.hypot(load[:, 0], load[:, 2])

        # F = m·a in baseline units, summed as a diagnostic (lbf).
        total_force = float(np.sum(
            mass * dyn.weight_baseline * np.sqrt((dyn.forces.gravity * factor) ** 2 + horiz ** 2)
        ))

        # Grounded items slide only with the load in excess of friction.
        safe = np.where(horiz > 0, horiz, 1.0)
        excess = np.where(grounded & (horiz <= mu), 0.0,
                          np.where(grounded, (horiz - mu) / safe, 1.0))
        acc = np.zeros((n, 3))
        acc[:, 0] = load[:, 0] * excess * g
        acc[:, 2] = load[:, 2] * excess * g
        acc[:, 1] = np.where(grounded, 0.0, -dyn.forces.gravity * g)

        vel = self._vel
        vel[:, 1] = np.where(grounded, 0.0, vel[:, 1])
        vel += acc * dt

        # Kinetic friction brakes grounded items that are no longer pushed.
        held = grounded & (horiz <= mu)
        speed = np.hypot(vel[:, 0], vel[:, 2])
        brake = np.where(held, np.minimum(speed, mu * g * dt), 0.0)
        keep = np.where(speed > 0, (speed - brake) / np.where(speed > 0, speed, 1.0), 0.0)
        vel[:, 0] *= keep
        vel[:, 2] *= keep

        vel *= max(0.0, 1.0 - dyn.linear_damping * dt)
        pos = start_pos + vel * dt

        # Falling items land on the floor or the highest top face beneath.
        for i in np.nonzero(~grounded)[0]:
            p = placements[i]
            landing = 0.0
            for j, q in enumerate(placements):
                if j == i or q.y_max > y_min[i] + tol:
                    continue
                probe = p.moved_to(pos[i, 0], pos[i, 1], pos[i, 2])
                if footprint_overlap_area(probe, q) > OVERLAP_EPS:
                    landing = max(landing, q.y_max)
            if pos[i, 1] - half[i, 1] <= landing:
                pos[i, 1] = landing + half[i, 1]
                vel[i, 1] = 0.0

        # Walls, floor and ceiling.
        v = arrangement.vehicle
        lo = np.column_stack([-v.half_width + half[:, 0], half[:, 1], -v.half_length + half[:, 2]])
        hi = np.column_stack([v.half_width - half[:, 0], v.height - half[:, 1], v.half_length - half[:, 2]])
        clamped = np.clip(pos, lo, np.maximum(lo, hi))
        vel[clamped != pos] = 0.0
        return clamped, total_force

    def _advance(
        self,
        scenario: ForceScenario,
        dt: float,
        arrangement: Arrangement,
        new_collisions: Tuple[Tuple[str, str], ...],
        new_contacts: int,
        total_force: float,
    ) -> SimulationSnapshot:
        """Publish the tick: vehicle motion, counters, stability, snapshot."""
        dyn = self._settings.dynamics
        forces = dyn.forces
        g = dyn.gravity
        prev = self._state

        speed = -prev.velocity[2]
        yaw = prev.angular_velocity[1]
        if scenario is ForceScenario.ACCELERATING:
            speed += forces.acceleration * g * dt
        elif scenario is ForceScenario.BRAKING:
            speed = max(0.0, speed - forces.braking * g * dt)
        if scenario is ForceScenario.LEFT_TURN:
            yaw += forces.turning * dt
        elif scenario is ForceScenario.RIGHT_TURN:
            yaw -= forces.turning * dt
        else:
            yaw *= max(0.0, 1.0 - dyn.angular_damping * dt)

        active = {GRAVITY_FLAG}
        if scenario is not ForceScenario.NONE:
            active.add(scenario.value)

        self._state = SimulationState(
            velocity=(0.0, 0.0, -speed),
            angular_velocity=(0.0, yaw, 0.0),
            active_forces=frozenset(active),
            collision_count=prev.collision_count + len(new_collisions),
            contact_count=prev.contact_count + new_contacts,
            tick=prev.tick + 1,
            elapsed=prev.elapsed + dt,
        )
        self._arrangement = arrangement
        stability = stability_score(arrangement, self._settings.scoring)
        self._history.append(stability)
        self._last = SimulationSnapshot(
            tick=self._state.tick, scenario=scenario, arrangement=arrangement,
            state=self._state, stability=stability,
            new_collisions=tuple(new_collisions), total_force=total_force,
        )
        return self._last

    @staticmethod
    def _moved(arrangement: Arrangement, ids: List[str], pos: np.ndarray) -> Arrangement:
        return arrangement.with_positions(
            {item_id: (float(pos[i, 0]), float(pos[i, 1]), float(pos[i, 2]))
             for i, item_id in enumerate(ids)}
        )
