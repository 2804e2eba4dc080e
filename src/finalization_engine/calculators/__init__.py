"""Finalization calculation engine."""

from finalization_engine.calculators.engine import CollectedData, FinalizationEngine
from finalization_engine.calculators.hours_aggregator import HoursAggregator
from finalization_engine.calculators.leave_calculator import LeavePayCalculator

__all__ = [
    "CollectedData",
    "FinalizationEngine",
    "HoursAggregator",
    "LeavePayCalculator",
]
