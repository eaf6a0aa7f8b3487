"""GC log event pipeline."""

__version__ = "0.1.0"

from .aggregators import Aggregator, PauseTimeAggregator, SafepointAggregator
from .app import IOrchestrator, Orchestrator, aggregate_data_source
from .config import PipelineSettings
from .errors import (
    CodecError,
    DeploymentError,
    GCFlowError,
    LogSourceError,
    LogSourceReadError,
    OrchestratorError,
    PipelineStallError,
)
from .event_bus import EventBus, IEventBus, JVMEventCodec
from .event_source import EventSource
from .io import GCLogFile, RotatingGCLogFile, SingleGCLogFile
from .models import EPOCH, Channel, DateTimeStamp, JVMEvent, JVMTermination, RunResult
from .parsers import LogFileParser, all_parsers
from .tracker import TimeTracker

__all__ = [
    "__version__",
    # Pipeline
    "Orchestrator",
    "IOrchestrator",
    "aggregate_data_source",
    "PipelineSettings",
    "RunResult",
    # Components
    "IEventBus",
    "EventBus",
    "JVMEventCodec",
    "EventSource",
    "TimeTracker",
    "LogFileParser",
    "all_parsers",
    "Aggregator",
    "PauseTimeAggregator",
    "SafepointAggregator",
    # Log sources
    "GCLogFile",
    "SingleGCLogFile",
    "RotatingGCLogFile",
    # Models
    "Channel",
    "DateTimeStamp",
    "EPOCH",
    "JVMEvent",
    "JVMTermination",
    # Errors
    "GCFlowError",
    "LogSourceError",
    "LogSourceReadError",
    "DeploymentError",
    "PipelineStallError",
    "OrchestratorError",
    "CodecError",
]
