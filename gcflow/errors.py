"""Exception hierarchy for the pipeline."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import DateTimeStamp


class GCFlowError(Exception):
    """Base class for all pipeline errors."""


class LogSourceError(GCFlowError):
    """Raised when a log source cannot be opened or is misused."""


class LogSourceReadError(LogSourceError):
    """Raised when a log source fails while being read.

    The termination event has already been published when this is raised,
    so downstream units still finish. ``partial_duration`` is filled in by
    the orchestrator once the run has drained.
    """

    def __init__(self, message: str, lines_published: int = 0):
        super().__init__(message)
        self.lines_published = lines_published
        self.partial_duration: "DateTimeStamp | None" = None


class DeploymentError(GCFlowError):
    """Raised when a unit fails to reach the ready state."""

    def __init__(self, message: str, unit: str | None = None, phase: str | None = None):
        super().__init__(message)
        self.unit = unit
        self.phase = phase


class PipelineStallError(GCFlowError):
    """Raised when units do not complete within the completion timeout."""

    def __init__(self, message: str, pending: list[str]):
        super().__init__(message)
        self.pending = pending


class OrchestratorError(GCFlowError):
    """Raised when the orchestrator is used out of order."""


class CodecError(GCFlowError):
    """Raised when a wire message cannot be encoded or decoded."""
