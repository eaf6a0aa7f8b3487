"""Safepoint and application time totals."""

from ..models import (
    ApplicationConcurrentTime,
    ApplicationStoppedTime,
    Channel,
    JVMEvent,
)
from .base import Aggregator


class SafepointAggregator(Aggregator):
    """Time the application spent stopped versus running."""

    DEFAULT_CHANNELS = (Channel.JVM_EVENT_PARSER_OUTBOX,)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.stopped_count = 0
        self.stopped_time = 0.0
        self.time_to_safepoint = 0.0
        self.concurrent_time = 0.0

    def aggregate(self, event: JVMEvent) -> None:
        if isinstance(event, ApplicationStoppedTime):
            self.stopped_count += 1
            self.stopped_time += event.duration
            self.time_to_safepoint += event.time_to_stop or 0.0
        elif isinstance(event, ApplicationConcurrentTime):
            self.concurrent_time += event.duration

    @property
    def stopped_fraction(self) -> float:
        """Share of observed time spent at safepoints."""
        observed = self.stopped_time + self.concurrent_time
        return self.stopped_time / observed if observed else 0.0

    def summary(self) -> list[tuple[str, str]]:
        return [
            ("Safepoints", str(self.stopped_count)),
            ("Stopped time", f"{self.stopped_time:.3f}s"),
            ("Time to safepoint", f"{self.time_to_safepoint:.3f}s"),
            ("Application time", f"{self.concurrent_time:.3f}s"),
            ("Stopped", f"{self.stopped_fraction:.2%}"),
        ]
