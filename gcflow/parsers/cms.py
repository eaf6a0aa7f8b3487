"""Parser for the CMS tenured pool: initial mark, remark and concurrent phases."""

import re

from ..models import Channel, ConcurrentPhase, GCPause, JVMEvent
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds


class CMSTenuredPoolParser(LogFileParser):
    """CMS old generation cycle."""

    OUTBOX = Channel.CMS_TENURED_POOL_PARSER_OUTBOX

    INITIAL_MARK_PATTERN: re.Pattern[str] = re.compile(
        r"^\[GC \((?P<cause>CMS Initial Mark)\)\s+"
        r"\[1 CMS-initial-mark:\s+(?P<old_used>\d+)K\((?P<old_total>\d+)K\)\]\s+"
        r"(?P<heap_used>\d+)K\((?P<heap_total>\d+)K\),\s+(?P<pause>\d+[.,]\d+)\s+secs\]"
    )
    REMARK_PATTERN: re.Pattern[str] = re.compile(
        r"^\[GC \((?P<cause>CMS Final Remark)\).*?"
        r"\[1 CMS-remark:\s+(?P<old_used>\d+)K\((?P<old_total>\d+)K\)\]\s+"
        r"(?P<heap_used>\d+)K\((?P<heap_total>\d+)K\),\s+(?P<pause>\d+[.,]\d+)\s+secs\]"
    )
    CONCURRENT_PATTERN: re.Pattern[str] = re.compile(
        r"^\[CMS-concurrent-(?P<phase>[a-z-]+):\s+"
        r"(?P<cpu>\d+[.,]\d+)/(?P<wall>\d+[.,]\d+)\s+secs\]"
    )

    def parse(self, line: str) -> list[JVMEvent]:
        if "CMS" not in line:
            return []
        decoration = parse_decoration(line)
        if decoration is None:
            return []
        body = decoration.body

        if "CMS-concurrent-" in body:
            if match := self.CONCURRENT_PATTERN.match(body):
                return [
                    ConcurrentPhase(
                        timestamp=decoration.timestamp,
                        duration=parse_seconds(match.group("wall")),
                        collector="CMS",
                        phase=match.group("phase"),
                        cpu_time=parse_seconds(match.group("cpu")),
                    )
                ]
            return []

        for pause_type, pattern in (
            ("Initial Mark", self.INITIAL_MARK_PATTERN),
            ("Remark", self.REMARK_PATTERN),
        ):
            if match := pattern.match(body):
                old_used = int(match.group("old_used"))
                heap_used = int(match.group("heap_used"))
                return [
                    GCPause(
                        timestamp=decoration.timestamp,
                        duration=parse_seconds(match.group("pause")),
                        collector="CMS",
                        pause_type=pause_type,
                        cause=match.group("cause"),
                        heap_before_kb=heap_used,
                        heap_after_kb=heap_used,
                        heap_total_kb=int(match.group("heap_total")),
                        old_before_kb=old_used,
                        old_after_kb=old_used,
                        old_total_kb=int(match.group("old_total")),
                    )
                ]
        return []
