"""Parser for G1 logs, unified (JDK 9+) and legacy (JDK 8) formats."""

import re
from typing import Any

from ..models import Channel, ConcurrentPhase, DateTimeStamp, GCPause, JVMEvent
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds, to_kb

# Young pause subtypes printed in the first parenthesis on JDK 10+
YOUNG_SUBTYPES = {"Normal", "Concurrent Start", "Prepare Mixed", "Mixed", "Initial Mark"}


class G1GCParser(LogFileParser):
    """G1 pauses and concurrent cycles."""

    OUTBOX = Channel.G1GC_PARSER_OUTBOX

    UNIFIED_PAUSE_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Pause\s+(?P<type>Young|Mixed|Full|Remark|Cleanup)"
        r"(?:\s+\((?P<phase>[^()]*)\))?"
        r"(?:\s+\((?P<cause>(?:[^()]|\([^()]*\))*)\))?\s+"
        r"(?P<before>[\d.]+)(?P<before_unit>[BKMG])->"
        r"(?P<after>[\d.]+)(?P<after_unit>[BKMG])"
        r"\((?P<total>[\d.]+)(?P<total_unit>[BKMG])\)\s+"
        r"(?P<pause>\d+[.,]\d+)ms"
    )
    UNIFIED_CONCURRENT_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Concurrent (?P<phase>Cycle|Mark Cycle|Undo Cycle)\s+"
        r"(?P<duration>\d+[.,]\d+)ms"
    )

    LEGACY_PAUSE_PATTERN: re.Pattern[str] = re.compile(
        r"^\[GC pause \((?P<cause>[^)]+)\)\s+"
        r"(?:\((?P<type>young|mixed)\)\s*)?"
        r"(?:\((?P<mark>initial-mark)\)\s*)?,?\s+"
        r"(?P<pause>\d+[.,]\d+)\s+secs\]"
    )
    LEGACY_FULL_PATTERN: re.Pattern[str] = re.compile(
        r"^\[Full GC \((?P<cause>(?:[^()]|\([^()]*\))*)\)\s+"
        r"(?P<before>[\d.]+)(?P<before_unit>[BKMG])->"
        r"(?P<after>[\d.]+)(?P<after_unit>[BKMG])"
        r"\((?P<total>[\d.]+)(?P<total_unit>[BKMG])\),\s+"
        r"(?P<pause>\d+[.,]\d+)\s+secs\]"
    )
    LEGACY_HEAP_PATTERN: re.Pattern[str] = re.compile(
        r"Heap:\s+(?P<before>[\d.]+)(?P<before_unit>[BKMG])\([\d.]+[BKMG]\)->"
        r"(?P<after>[\d.]+)(?P<after_unit>[BKMG])\((?P<total>[\d.]+)(?P<total_unit>[BKMG])\)"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # Legacy pause waiting for its "Heap:" detail line
        self._pending: dict[str, Any] | None = None

    def parse(self, line: str) -> list[JVMEvent]:
        decoration = parse_decoration(line)
        if decoration is None:
            # Legacy detail lines carry no decoration
            if "Heap:" in line and self._pending is not None:
                return self._complete_pending(line)
            return []

        body = decoration.body
        if body.startswith("GC("):
            if "Pause" in body and (match := self.UNIFIED_PAUSE_PATTERN.match(body)):
                return [self._unified_pause(decoration.timestamp, match)]
            if "Concurrent" in body and (match := self.UNIFIED_CONCURRENT_PATTERN.match(body)):
                return [
                    ConcurrentPhase(
                        timestamp=decoration.timestamp,
                        duration=parse_seconds(match.group("duration")) / 1000.0,
                        collector="G1",
                        phase=f"Concurrent {match.group('phase')}",
                    )
                ]
            return []

        if body.startswith("[GC pause") and (match := self.LEGACY_PAUSE_PATTERN.match(body)):
            events = self.flush()
            pause_type = (match.group("type") or "young").capitalize()
            if match.group("mark"):
                pause_type = f"{pause_type} (initial-mark)"
            self._pending = {
                "timestamp": decoration.timestamp,
                "duration": parse_seconds(match.group("pause")),
                "pause_type": pause_type,
                "cause": match.group("cause"),
            }
            return events

        if body.startswith("[Full GC") and (match := self.LEGACY_FULL_PATTERN.match(body)):
            events = self.flush()
            events.append(
                GCPause(
                    timestamp=decoration.timestamp,
                    duration=parse_seconds(match.group("pause")),
                    collector="G1",
                    pause_type="Full",
                    cause=match.group("cause"),
                    **self._heap_fields(match),
                )
            )
            return events

        return []

    def flush(self) -> list[JVMEvent]:
        if self._pending is None:
            return []
        pending, self._pending = self._pending, None
        return [GCPause(collector="G1", **pending)]

    def _complete_pending(self, line: str) -> list[JVMEvent]:
        match = self.LEGACY_HEAP_PATTERN.search(line)
        if not match:
            return []
        pending, self._pending = self._pending, None
        return [GCPause(collector="G1", **pending, **self._heap_fields(match))]

    def _unified_pause(self, timestamp: DateTimeStamp, match: re.Match[str]) -> GCPause:
        pause_type = match.group("type")
        phase = match.group("phase")
        cause = match.group("cause")
        if cause is None and phase is not None and phase not in YOUNG_SUBTYPES:
            # JDK 9 prints the cause alone: "Pause Young (G1 Evacuation Pause)"
            phase, cause = None, phase
        if pause_type == "Young" and phase == "Mixed":
            pause_type = "Mixed"

        return GCPause(
            timestamp=timestamp,
            duration=parse_seconds(match.group("pause")) / 1000.0,
            collector="G1",
            pause_type=pause_type,
            cause=cause,
            **self._heap_fields(match),
        )

    @staticmethod
    def _heap_fields(match: re.Match[str]) -> dict[str, int]:
        return {
            "heap_before_kb": to_kb(match.group("before"), match.group("before_unit")),
            "heap_after_kb": to_kb(match.group("after"), match.group("after_unit")),
            "heap_total_kb": to_kb(match.group("total"), match.group("total_unit")),
        }
