"""Safepoint and application-time parser."""

import re

from ..models import (
    ApplicationConcurrentTime,
    ApplicationStoppedTime,
    Channel,
    JVMEvent,
)
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds


class JVMEventParser(LogFileParser):
    """Parses -XX:+PrintGCApplicationStoppedTime and safepoint logging."""

    OUTBOX = Channel.JVM_EVENT_PARSER_OUTBOX

    STOPPED_PATTERN: re.Pattern[str] = re.compile(
        r"Total time for which application threads were stopped:\s+"
        r"(?P<stopped>\d+[.,]\d+) seconds"
        r"(?:, Stopping threads took:\s+(?P<ttsp>\d+[.,]\d+) seconds)?"
    )
    # JDK 17+ [safepoint] summary line
    SAFEPOINT_PATTERN: re.Pattern[str] = re.compile(
        r'Safepoint "(?P<operation>[^"]+)", Time since last: \d+ ns, '
        r"Reaching safepoint: (?P<reaching>\d+) ns, "
        r"(?:Cleanup: \d+ ns, )?At safepoint: \d+ ns, Total: (?P<total>\d+) ns"
    )
    APPLICATION_TIME_PATTERN: re.Pattern[str] = re.compile(
        r"Application time:\s+(?P<seconds>\d+[.,]\d+) seconds"
    )

    def parse(self, line: str) -> list[JVMEvent]:
        if "stopped" in line:
            match = self.STOPPED_PATTERN.search(line)
            if match and (decoration := parse_decoration(line)):
                ttsp = match.group("ttsp")
                return [
                    ApplicationStoppedTime(
                        timestamp=decoration.timestamp,
                        duration=parse_seconds(match.group("stopped")),
                        time_to_stop=parse_seconds(ttsp) if ttsp else None,
                    )
                ]
        elif "Safepoint" in line:
            match = self.SAFEPOINT_PATTERN.search(line)
            if match and (decoration := parse_decoration(line)):
                return [
                    ApplicationStoppedTime(
                        timestamp=decoration.timestamp,
                        duration=int(match.group("total")) / 1e9,
                        time_to_stop=int(match.group("reaching")) / 1e9,
                    )
                ]
        elif "Application time" in line:
            match = self.APPLICATION_TIME_PATTERN.search(line)
            if match and (decoration := parse_decoration(line)):
                return [
                    ApplicationConcurrentTime(
                        timestamp=decoration.timestamp,
                        duration=parse_seconds(match.group("seconds")),
                    )
                ]
        return []
