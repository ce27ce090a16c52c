"""
strategies -- pluggable placement strategy interface.

Public API:
    from truckload.strategies.base_strategy import BaseStrategy, get_strategy, register_strategy
    from truckload.strategies.extreme_points import ExtremePointsStrategy
"""

from truckload.strategies.base_strategy import BaseStrategy, get_strategy, register_strategy, STRATEGY_REGISTRY
import truckload.strategies.extreme_points  # registers ExtremePointsStrategy
import truckload.strategies.baseline  # registers BaselineStrategy

__all__ = [
    "BaseStrategy", "get_strategy", "register_strategy", "STRATEGY_REGISTRY",
]
