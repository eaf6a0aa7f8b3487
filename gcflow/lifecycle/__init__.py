"""Deployment lifecycle module."""

from .latch import CountDownLatch
from .unit import DeployableUnit, IDeployableUnit

__all__ = ["CountDownLatch", "DeployableUnit", "IDeployableUnit"]
