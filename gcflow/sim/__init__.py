"""Synthetic log generation."""

from .sim import GCLogSim, ISim

__all__ = ["GCLogSim", "ISim"]
