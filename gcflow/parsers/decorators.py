"""Parsing of the time decorations that prefix GC log lines."""

import re
from dataclasses import dataclass
from datetime import datetime

from ..models import DateTimeStamp

# 2023-01-01T10:00:00.000+0000: 1.234: [GC ...
LEGACY_DATE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[.,]\d{3}[+-]\d{4}):\s*"
)
LEGACY_UPTIME = re.compile(r"^(?P<uptime>\d+[.,]\d+):\s*")

# [2023-01-01T10:00:00.000+0000][1.234s][info][gc] GC(0) ...
UNIFIED_PREFIX = re.compile(r"^(?P<tags>(?:\[[^\]]*\])+)\s*")
BRACKET = re.compile(r"\[([^\]]*)\]")
UNIFIED_UPTIME_SECONDS = re.compile(r"^(\d+[.,]\d+)s$")
UNIFIED_UPTIME_MILLIS = re.compile(r"^(\d+)ms$")
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[.,]\d{3}[+-]\d{2}:?\d{2}$")

SIZE_UNITS_KB = {"B": 1 / 1024, "K": 1, "M": 1024, "G": 1024 * 1024}


@dataclass(frozen=True)
class Decoration:
    """A line split into its time decoration and the remaining text."""

    timestamp: DateTimeStamp
    body: str


def parse_date(text: str) -> datetime:
    """Parse an ISO decoration date. Raises ValueError for impossible dates."""
    text = text.replace(",", ".")
    if text[-3] == ":":
        text = text[:-3] + text[-2:]
    return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S.%f%z")


def parse_seconds(text: str) -> float:
    """Parse a decimal that may use a comma separator (locale-dependent JVM output)."""
    return float(text.replace(",", "."))


def to_kb(value: str, unit: str) -> int:
    """Convert a JVM size such as ``24.0`` ``M`` to whole KiB."""
    return int(round(float(value) * SIZE_UNITS_KB[unit.upper()]))


def parse_decoration(line: str) -> Decoration | None:
    """Return the decoration of a legacy or unified line.

    None when the line is undecorated or its date does not exist.
    """
    if line.startswith("["):
        return _parse_unified(line)

    date_time = None
    rest = line
    if match := LEGACY_DATE.match(rest):
        try:
            date_time = parse_date(match.group("date"))
        except ValueError:
            return None
        rest = rest[match.end():]

    uptime = None
    if match := LEGACY_UPTIME.match(rest):
        uptime = parse_seconds(match.group("uptime"))
        rest = rest[match.end():]

    if date_time is None and uptime is None:
        return None
    return Decoration(DateTimeStamp(uptime=uptime, date_time=date_time), rest)


def _parse_unified(line: str) -> Decoration | None:
    match = UNIFIED_PREFIX.match(line)
    if not match:
        return None

    date_time = None
    uptime = None
    for tag in BRACKET.findall(match.group("tags")):
        tag = tag.strip()
        if ISO_DATE.match(tag):
            try:
                date_time = parse_date(tag)
            except ValueError:
                return None
        elif seconds := UNIFIED_UPTIME_SECONDS.match(tag):
            uptime = parse_seconds(seconds.group(1))
        elif millis := UNIFIED_UPTIME_MILLIS.match(tag):
            uptime = int(millis.group(1)) / 1000.0

    if date_time is None and uptime is None:
        return None
    return Decoration(DateTimeStamp(uptime=uptime, date_time=date_time), line[match.end():])
