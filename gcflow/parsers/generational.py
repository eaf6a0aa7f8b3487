"""Parser for legacy generational collector logs (Parallel, ParNew, Serial)."""

import re

from ..models import Channel, GCPause, JVMEvent
from .base import LogFileParser
from .decorators import parse_decoration, parse_seconds

YOUNG_POOL_COLLECTORS = {
    "PSYoungGen": "Parallel",
    "ParNew": "ParNew",
    "DefNew": "Serial",
}


class GenerationalHeapParser(LogFileParser):
    """Young and full collections with a young generation pool breakdown."""

    OUTBOX = Channel.GENERATIONAL_HEAP_PARSER_OUTBOX

    COLLECTION_PATTERN: re.Pattern[str] = re.compile(
        r"^\[(?P<type>Full GC|GC)(?:\s+\((?P<cause>(?:[^()]|\([^()]*\))*)\))?"
        r".*?\[(?P<young_pool>PSYoungGen|ParNew|DefNew):\s+"
        r"(?P<young_before>\d+)K->(?P<young_after>\d+)K\((?P<young_total>\d+)K\)"
        r".*?\]\s+(?P<heap_before>\d+)K->(?P<heap_after>\d+)K\((?P<heap_total>\d+)K\)"
        r".*?,\s+(?P<pause>\d+[.,]\d+)\s+secs\]"
    )

    OLD_POOL_PATTERN: re.Pattern[str] = re.compile(
        r"\[(?:ParOldGen|PSOldGen|Tenured|CMS):\s+"
        r"(?P<before>\d+)K->(?P<after>\d+)K\((?P<total>\d+)K\)"
    )

    def parse(self, line: str) -> list[JVMEvent]:
        # Substring guard: only run regexes on collection lines
        if "GC" not in line or "K->" not in line:
            return []
        decoration = parse_decoration(line)
        if decoration is None:
            return []
        match = self.COLLECTION_PATTERN.search(decoration.body)
        if not match:
            return []

        young_before = int(match.group("young_before"))
        young_after = int(match.group("young_after"))
        young_total = int(match.group("young_total"))
        heap_before = int(match.group("heap_before"))
        heap_after = int(match.group("heap_after"))
        heap_total = int(match.group("heap_total"))

        if old := self.OLD_POOL_PATTERN.search(decoration.body):
            old_before = int(old.group("before"))
            old_after = int(old.group("after"))
            old_total = int(old.group("total"))
        else:
            old_before = heap_before - young_before
            old_after = heap_after - young_after
            old_total = heap_total - young_total
            if min(old_before, old_after, old_total) < 0:
                old_before = old_after = old_total = None

        return [
            GCPause(
                timestamp=decoration.timestamp,
                duration=parse_seconds(match.group("pause")),
                collector=YOUNG_POOL_COLLECTORS[match.group("young_pool")],
                pause_type="Full" if match.group("type") == "Full GC" else "Young",
                cause=match.group("cause"),
                heap_before_kb=heap_before,
                heap_after_kb=heap_after,
                heap_total_kb=heap_total,
                young_before_kb=young_before,
                young_after_kb=young_after,
                young_total_kb=young_total,
                old_before_kb=old_before,
                old_after_kb=old_after,
                old_total_kb=old_total,
            )
        ]
