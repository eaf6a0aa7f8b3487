"""Core data models for gcflow."""

from .channels import GC_OUTBOXES, Channel, channel_name
from .events import (
    AnyJVMEvent,
    ApplicationConcurrentTime,
    ApplicationStoppedTime,
    ConcurrentPhase,
    GCPause,
    JVMEvent,
    JVMTermination,
    SurvivorRecord,
)
from .lifecycle import Phase, RunResult, UnitState
from .timestamp import EPOCH, DateTimeStamp

__all__ = [
    # Time
    "DateTimeStamp",
    "EPOCH",
    # Events
    "JVMEvent",
    "AnyJVMEvent",
    "GCPause",
    "ConcurrentPhase",
    "SurvivorRecord",
    "ApplicationStoppedTime",
    "ApplicationConcurrentTime",
    "JVMTermination",
    # Channels
    "Channel",
    "GC_OUTBOXES",
    "channel_name",
    # Lifecycle
    "UnitState",
    "Phase",
    "RunResult",
]
