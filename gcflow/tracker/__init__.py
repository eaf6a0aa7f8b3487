"""Runtime tracking."""

from .time_tracker import TimeTracker

__all__ = ["TimeTracker"]
