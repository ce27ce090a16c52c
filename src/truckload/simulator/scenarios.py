"""
Force scenarios and the policies that choose them tick by tick.

A scenario is the vehicle manoeuvre active during one tick.  They are
mutually exclusive; gravity is always applied on top by the validator.

Policies are injected into DynamicsValidator.start():

    ConstantScenarioPolicy(ForceScenario.BRAKING)
    ScriptedScenarioPolicy([(ForceScenario.ACCELERATING, 60),
                            (ForceScenario.BRAKING, 30)], loop=True)
    RandomScenarioPolicy(seed=7, hold_ticks=120)
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from truckload.settings import ForceProfile


class ForceScenario(str, Enum):
    """Vehicle manoeuvre active during a tick."""
    NONE = "none"
    ACCELERATING = "accelerating"
    BRAKING = "braking"
    LEFT_TURN = "left_turn"
    RIGHT_TURN = "right_turn"


# Manoeuvres a random policy draws from.
MANOEUVRES: Tuple[ForceScenario, ...] = (
    ForceScenario.ACCELERATING,
    ForceScenario.BRAKING,
    ForceScenario.LEFT_TURN,
    ForceScenario.RIGHT_TURN,
)


def inertial_acceleration(scenario: ForceScenario, forces: ForceProfile) -> np.ndarray:
    """
    Horizontal acceleration (in g) the scenario imposes on loose cargo,
    in vehicle coordinates.

    The cab is at -z.  Speeding up pushes cargo towards the door (+z),
    braking pushes it towards the cab (-z).  A left turn throws cargo to
    the right wall (+x), a right turn to the left wall (-x).
    """
    scenario = ForceScenario(scenario)
    if scenario is ForceScenario.ACCELERATING:
        return np.array([0.0, 0.0, forces.acceleration])
    if scenario is ForceScenario.BRAKING:
        return np.array([0.0, 0.0, -forces.braking])
    if scenario is ForceScenario.LEFT_TURN:
        return np.array([forces.turning, 0.0, 0.0])
    if scenario is ForceScenario.RIGHT_TURN:
        return np.array([-forces.turning, 0.0, 0.0])
    return np.zeros(3)


# ─────────────────────────────────────────────────────────────────────────────
# Policies
# ─────────────────────────────────────────────────────────────────────────────

class ScenarioPolicy(ABC):
    """Chooses the scenario for each successive tick."""

    @abstractmethod
    def next_scenario(self) -> ForceScenario:
        """Scenario for the next tick."""
        ...

    def reset(self) -> None:
        """Rewind to the first tick.  Called by DynamicsValidator.start()."""
        pass


class ConstantScenarioPolicy(ScenarioPolicy):
    """The same scenario on every tick."""

    def __init__(self, scenario: ForceScenario = ForceScenario.NONE) -> None:
        self.scenario = ForceScenario(scenario)

    def next_scenario(self) -> ForceScenario:
        return self.scenario


class ScriptedScenarioPolicy(ScenarioPolicy):
    """
    A fixed sequence of (scenario, ticks) steps.

    After the last step the policy yields NONE, or starts over when
    *loop* is set.
    """

    def __init__(self, steps: Iterable[Tuple[ForceScenario, int]], loop: bool = False) -> None:
        self.steps: List[Tuple[ForceScenario, int]] = []
        for scenario, ticks in steps:
            if ticks < 0:
                raise ValueError(f"Step duration must be >= 0 ticks, got {ticks}")
            self.steps.append((ForceScenario(scenario), int(ticks)))
        self.loop = loop
        self._timeline: List[ForceScenario] = [s for s, n in self.steps for _ in range(n)]
        self._cursor = 0

    def next_scenario(self) -> ForceScenario:
        if not self._timeline:
            return ForceScenario.NONE
        if self._cursor >= len(self._timeline):
            if not self.loop:
                return ForceScenario.NONE
            self._cursor = 0
        scenario = self._timeline[self._cursor]
        self._cursor += 1
        return scenario

    def reset(self) -> None:
        self._cursor = 0


class RandomScenarioPolicy(ScenarioPolicy):
    """
    Draws a manoeuvre at random and holds it for *hold_ticks* ticks.

    Seeded, so a given seed always produces the same drive.  The default
    hold is two seconds at 60 ticks per second.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        hold_ticks: int = 120,
        choices: Sequence[ForceScenario] = MANOEUVRES,
    ) -> None:
        if hold_ticks < 1:
            raise ValueError(f"hold_ticks must be >= 1, got {hold_ticks}")
        if not choices:
            raise ValueError("choices must not be empty")
        self.seed = seed
        self.hold_ticks = hold_ticks
        self.choices = tuple(ForceScenario(c) for c in choices)
        self._rng = random.Random(seed)
        self._current = ForceScenario.NONE
        self._remaining = 0

    def next_scenario(self) -> ForceScenario:
        if self._remaining == 0:
            self._current = self._rng.choice(self.choices)
            self._remaining = self.hold_ticks
        self._remaining -= 1
        return self._current

    def reset(self) -> None:
        self._rng = random.Random(self.seed)
        self._current = ForceScenario.NONE
        self._remaining = 0
