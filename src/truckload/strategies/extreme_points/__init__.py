from truckload.strategies.extreme_points.strategy import ExtremePointsStrategy

__all__ = ["ExtremePointsStrategy"]
