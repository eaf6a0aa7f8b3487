"""Aggregators summarising parsed events."""

from .base import Aggregator, IAggregator
from .pause_time import PauseStatistics, PauseTimeAggregator
from .safepoint import SafepointAggregator

__all__ = [
    "Aggregator",
    "IAggregator",
    "PauseStatistics",
    "PauseTimeAggregator",
    "SafepointAggregator",
]
