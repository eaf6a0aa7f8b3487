"""GC log dialect parsers."""

from .base import ILogFileParser, LogFileParser
from .cms import CMSTenuredPoolParser
from .decorators import Decoration, parse_decoration
from .g1 import G1GCParser
from .generational import GenerationalHeapParser
from .jvm_event_parser import JVMEventParser
from .shenandoah import ShenandoahParser
from .survivor import SurvivorMemoryPoolParser
from .zgc import ZGCParser


def all_parsers() -> list[LogFileParser]:
    """One instance of every dialect parser."""
    return [
        JVMEventParser(),
        GenerationalHeapParser(),
        CMSTenuredPoolParser(),
        G1GCParser(),
        ZGCParser(),
        ShenandoahParser(),
        SurvivorMemoryPoolParser(),
    ]


__all__ = [
    "ILogFileParser",
    "LogFileParser",
    "Decoration",
    "parse_decoration",
    "JVMEventParser",
    "GenerationalHeapParser",
    "CMSTenuredPoolParser",
    "G1GCParser",
    "ZGCParser",
    "ShenandoahParser",
    "SurvivorMemoryPoolParser",
    "all_parsers",
]
