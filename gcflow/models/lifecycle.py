"""Deployment lifecycle data models."""

from dataclasses import dataclass
from enum import Enum

from .timestamp import EPOCH, DateTimeStamp


class UnitState(str, Enum):
    """Lifecycle of a deployable unit."""

    UNDEPLOYED = "undeployed"
    DEPLOYING = "deploying"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Phase(str, Enum):
    """Orchestrator run phases, in order."""

    INIT = "init"
    DEPLOYING_SOURCE = "deploying_source"
    DEPLOYING_SELF = "deploying_self"
    DEPLOYING_PARSERS = "deploying_parsers"
    DEPLOYING_AGGREGATORS = "deploying_aggregators"
    PUBLISHING = "publishing"
    AWAITING_COMPLETION = "awaiting_completion"
    SHUTDOWN = "shutdown"


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    runtime_duration: DateTimeStamp = EPOCH
    error: Exception | None = None
    events_published: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None
