"""Pause time statistics per collector."""

import statistics
from dataclasses import dataclass, field

from ..models import GC_OUTBOXES, GCPause, JVMEvent
from .base import Aggregator


@dataclass
class PauseStatistics:
    """Pause durations of one collector, in seconds."""

    durations: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.durations)

    @property
    def total(self) -> float:
        return sum(self.durations)

    @property
    def max(self) -> float:
        return max(self.durations, default=0.0)

    @property
    def mean(self) -> float:
        return statistics.mean(self.durations) if self.durations else 0.0


class PauseTimeAggregator(Aggregator):
    """Counts and sums stop-the-world pauses by collector."""

    DEFAULT_CHANNELS = GC_OUTBOXES

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._by_collector: dict[str, PauseStatistics] = {}

    @property
    def collectors(self) -> dict[str, PauseStatistics]:
        return dict(self._by_collector)

    @property
    def total_pause_time(self) -> float:
        return sum(stats.total for stats in self._by_collector.values())

    @property
    def pause_count(self) -> int:
        return sum(stats.count for stats in self._by_collector.values())

    def aggregate(self, event: JVMEvent) -> None:
        if isinstance(event, GCPause):
            self._by_collector.setdefault(event.collector, PauseStatistics()).durations.append(
                event.duration
            )

    def summary(self) -> list[tuple[str, str]]:
        rows = [
            ("Pauses", str(self.pause_count)),
            ("Total pause time", f"{self.total_pause_time:.3f}s"),
        ]
        for collector, stats in sorted(self._by_collector.items()):
            rows.append(
                (
                    collector,
                    f"{stats.count} pauses, total {stats.total:.3f}s, "
                    f"max {stats.max * 1000:.2f}ms, mean {stats.mean * 1000:.2f}ms",
                )
            )
        return rows
