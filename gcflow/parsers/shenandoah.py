"""Parser for Shenandoah unified logging."""

import re
from typing import Any

from ..models import Channel, ConcurrentPhase, GCPause, JVMEvent
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds, to_kb


class ShenandoahParser(LogFileParser):
    """Shenandoah pauses and concurrent phases."""

    OUTBOX = Channel.SHENANDOAH_PARSER_OUTBOX

    PAUSE_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Pause (?P<phase>(?:Init|Final) [A-Za-z ]+?|Degenerated GC|Full)"
        r"(?:\s+\((?P<detail>(?:[^()]|\([^()]*\))*)\))?\s+"
        r"(?:(?P<before>\d+)(?P<before_unit>[BKMG])->(?P<after>\d+)(?P<after_unit>[BKMG])"
        r"\((?P<total>\d+)(?P<total_unit>[BKMG])\)\s+)?"
        r"(?P<duration>\d+[.,]\d+)ms"
    )
    CONCURRENT_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Concurrent (?P<phase>[a-z][a-z ]*?)"
        r"(?:\s+\((?P<detail>[^()]*)\))?\s+"
        r"(?:\d+[BKMG]->\d+[BKMG]\(\d+[BKMG]\)\s+)?"
        r"(?P<duration>\d+[.,]\d+)ms"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # "Pause Full" is shared with G1; only trust it once the log names Shenandoah
        self._confirmed = False

    def parse(self, line: str) -> list[JVMEvent]:
        if "Using Shenandoah" in line:
            self._confirmed = True
            return []
        if "GC(" not in line:
            return []
        decoration = parse_decoration(line)
        if decoration is None:
            return []
        body = decoration.body

        if match := self.PAUSE_PATTERN.match(body):
            heap = {}
            if match.group("before") is not None:
                heap = {
                    "heap_before_kb": to_kb(match.group("before"), match.group("before_unit")),
                    "heap_after_kb": to_kb(match.group("after"), match.group("after_unit")),
                    "heap_total_kb": to_kb(match.group("total"), match.group("total_unit")),
                }
            phase = match.group("phase")
            if phase == "Full" and not self._confirmed:
                return []
            pause_type = "Full" if phase == "Full" else f"Pause {phase}"
            return [
                GCPause(
                    timestamp=decoration.timestamp,
                    duration=parse_seconds(match.group("duration")) / 1000.0,
                    collector="Shenandoah",
                    pause_type=pause_type,
                    cause=match.group("detail"),
                    **heap,
                )
            ]
        if match := self.CONCURRENT_PATTERN.match(body):
            return [
                ConcurrentPhase(
                    timestamp=decoration.timestamp,
                    duration=parse_seconds(match.group("duration")) / 1000.0,
                    collector="Shenandoah",
                    phase=f"Concurrent {match.group('phase')}",
                )
            ]
        return []
