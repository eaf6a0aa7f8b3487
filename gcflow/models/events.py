"""Typed JVM events produced by the parsers."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .timestamp import EPOCH, DateTimeStamp


class JVMEvent(BaseModel):
    """Base for every event published on a parser outbox."""

    model_config = ConfigDict(frozen=True)

    kind: str
    timestamp: DateTimeStamp
    duration: float = 0.0  # seconds


class GCPause(JVMEvent):
    """A stop-the-world collection."""

    kind: Literal["gc_pause"] = "gc_pause"
    collector: str  # "PSYoungGen", "G1", "CMS", "ZGC", ...
    pause_type: str  # "Young", "Full", "Mixed", "Remark", "Initial Mark", ...
    cause: str | None = None
    heap_before_kb: int | None = None
    heap_after_kb: int | None = None
    heap_total_kb: int | None = None
    young_before_kb: int | None = None
    young_after_kb: int | None = None
    young_total_kb: int | None = None
    old_before_kb: int | None = None
    old_after_kb: int | None = None
    old_total_kb: int | None = None


class ConcurrentPhase(JVMEvent):
    """A collector phase that runs alongside the application."""

    kind: Literal["concurrent_phase"] = "concurrent_phase"
    collector: str
    phase: str
    cpu_time: float | None = None


class SurvivorRecord(JVMEvent):
    """Tenuring distribution printed after a young collection."""

    kind: Literal["survivor_record"] = "survivor_record"
    desired_survivor_size: int  # bytes
    calculated_threshold: int
    max_threshold: int
    bytes_at_age: tuple[int, ...] = ()  # index 0 is age 1


class ApplicationStoppedTime(JVMEvent):
    """Time application threads spent at a safepoint."""

    kind: Literal["application_stopped"] = "application_stopped"
    time_to_stop: float | None = None


class ApplicationConcurrentTime(JVMEvent):
    """Time application threads ran between safepoints."""

    kind: Literal["application_concurrent"] = "application_concurrent"


class JVMTermination(JVMEvent):
    """End of stream on a channel."""

    kind: Literal["termination"] = "termination"
    timestamp: DateTimeStamp = EPOCH


AnyJVMEvent = Annotated[
    Union[
        GCPause,
        ConcurrentPhase,
        SurvivorRecord,
        ApplicationStoppedTime,
        ApplicationConcurrentTime,
        JVMTermination,
    ],
    Field(discriminator="kind"),
]
