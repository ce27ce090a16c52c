from truckload.strategies.baseline.strategy import BaselineStrategy

__all__ = ["BaselineStrategy"]
