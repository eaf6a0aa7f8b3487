"""Parser for the tenuring distribution of the survivor spaces."""

import re
from typing import Any

from ..models import EPOCH, Channel, DateTimeStamp, JVMEvent, SurvivorRecord
from .base import LogFileParser
from .decorators import parse_decoration


class SurvivorMemoryPoolParser(LogFileParser):
    """Survivor occupancy by object age (-XX:+PrintTenuringDistribution, gc+age)."""

    OUTBOX = Channel.SURVIVOR_MEMORY_POOL_PARSER_OUTBOX

    DESIRED_SIZE_PATTERN: re.Pattern[str] = re.compile(
        r"Desired survivor size (?P<size>\d+) bytes, new threshold (?P<threshold>\d+) "
        r"\(max(?: threshold)? (?P<max>\d+)\)"
    )
    AGE_PATTERN: re.Pattern[str] = re.compile(
        r"(?:^|\s)-\s+age\s+(?P<age>\d+):\s+(?P<bytes>\d+) bytes,\s+\d+ total"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # Age lines are undecorated in legacy logs; they inherit the last stamp seen
        self._last_timestamp: DateTimeStamp = EPOCH
        self._pending: dict[str, Any] | None = None

    def parse(self, line: str) -> list[JVMEvent]:
        decoration = parse_decoration(line)
        body = line
        if decoration is not None:
            self._last_timestamp = decoration.timestamp
            body = decoration.body

        if "Desired survivor size" in body:
            match = self.DESIRED_SIZE_PATTERN.search(body)
            if match:
                events = self.flush()
                self._pending = {
                    "timestamp": self._last_timestamp,
                    "desired_survivor_size": int(match.group("size")),
                    "calculated_threshold": int(match.group("threshold")),
                    "max_threshold": int(match.group("max")),
                    "ages": {},
                }
                return events

        if self._pending is None or "Age table" in body:
            return []
        if match := self.AGE_PATTERN.search(body):
            self._pending["ages"][int(match.group("age"))] = int(match.group("bytes"))
            return []
        return self.flush()

    def flush(self) -> list[JVMEvent]:
        if self._pending is None:
            return []
        pending, self._pending = self._pending, None
        ages: dict[int, int] = pending.pop("ages")
        oldest = max(ages, default=0)
        return [
            SurvivorRecord(
                **pending,
                bytes_at_age=tuple(ages.get(age, 0) for age in range(1, oldest + 1)),
            )
        ]
