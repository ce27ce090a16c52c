"""
truckload — cargo placement, load scoring and transport stress simulation.

    from truckload import Item, VehicleConfig, place, score

    arrangement = place(items, VehicleConfig(width=8, length=28, height=9))
    report = score(arrangement)
    report.stability, report.safety, report.optimization
"""

from truckload.config import (
    Item,
    Orientation,
    Placement,
    PlacementDecision,
    TemperatureZone,
    VehicleConfig,
    ZoneLayout,
)
from truckload.settings import DEFAULT_SETTINGS, EngineSettings, load_settings
from truckload.simulator.arrangement import Arrangement
from truckload.simulator.collision import (
    collisions_for,
    detect_collisions,
    near_contacts,
    resting_chain,
    resting_on,
    support_map,
    supports_of,
)
from truckload.simulator.validator import (
    ConstraintViolation,
    InfeasibleItemError,
    OverCapacityWarning,
    PlacementError,
    SimulationRunningError,
    UnknownItemError,
    audit_arrangement,
)
from truckload.simulator.planner import LoadPlanner, place
from truckload.monitoring.scores import ScoreReport, SafetyCheck, score, stability_score
from truckload.simulator.scenarios import (
    ConstantScenarioPolicy,
    ForceScenario,
    RandomScenarioPolicy,
    ScenarioPolicy,
    ScriptedScenarioPolicy,
)
from truckload.simulator.dynamics import (
    DynamicsPhase,
    DynamicsValidator,
    SimulationSnapshot,
    SimulationState,
)
from truckload.simulator.session import LoadingStep, LoadSession

__version__ = "0.1.0"

__all__ = [
    "Arrangement", "ConstantScenarioPolicy", "ConstraintViolation",
    "DEFAULT_SETTINGS", "DynamicsPhase", "DynamicsValidator", "EngineSettings",
    "ForceScenario", "InfeasibleItemError", "Item", "LoadPlanner", "LoadSession",
    "LoadingStep", "Orientation", "OverCapacityWarning", "Placement",
    "PlacementDecision", "PlacementError", "RandomScenarioPolicy", "SafetyCheck",
    "ScenarioPolicy", "ScoreReport", "ScriptedScenarioPolicy",
    "SimulationRunningError", "SimulationSnapshot", "SimulationState",
    "TemperatureZone", "UnknownItemError", "VehicleConfig", "ZoneLayout",
    "audit_arrangement", "collisions_for", "detect_collisions", "load_settings",
    "near_contacts", "place", "resting_chain", "resting_on", "score",
    "stability_score", "support_map", "supports_of",
]
