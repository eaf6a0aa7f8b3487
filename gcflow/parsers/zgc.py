"""Parser for ZGC unified logging."""

import re

from ..models import Channel, ConcurrentPhase, GCPause, JVMEvent
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds


class ZGCParser(LogFileParser):
    """ZGC pause and concurrent phase timings from gc,phases."""

    OUTBOX = Channel.ZGC_PARSER_OUTBOX

    PAUSE_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Pause (?P<phase>Mark Start|Mark End|Relocate Start)\s+"
        r"(?P<duration>\d+[.,]\d+)ms"
    )
    CONCURRENT_PATTERN: re.Pattern[str] = re.compile(
        r"^GC\((?P<gc_id>\d+)\)\s+Concurrent (?P<phase>Mark|Mark Free|Mark Continue|"
        r"Process Non-Strong References|Reset Relocation Set|Select Relocation Set|"
        r"Prepare Relocation Set|Relocate)\s+(?P<duration>\d+[.,]\d+)ms"
    )

    def parse(self, line: str) -> list[JVMEvent]:
        if "GC(" not in line:
            return []
        decoration = parse_decoration(line)
        if decoration is None:
            return []

        if match := self.PAUSE_PATTERN.match(decoration.body):
            return [
                GCPause(
                    timestamp=decoration.timestamp,
                    duration=parse_seconds(match.group("duration")) / 1000.0,
                    collector="ZGC",
                    pause_type=f"Pause {match.group('phase')}",
                )
            ]
        if match := self.CONCURRENT_PATTERN.match(decoration.body):
            return [
                ConcurrentPhase(
                    timestamp=decoration.timestamp,
                    duration=parse_seconds(match.group("duration")) / 1000.0,
                    collector="ZGC",
                    phase=f"Concurrent {match.group('phase')}",
                )
            ]
        return []
