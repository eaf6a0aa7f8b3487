"""Log source readers."""

from .log_file import GCLogFile, RotatingGCLogFile, SingleGCLogFile

__all__ = ["GCLogFile", "SingleGCLogFile", "RotatingGCLogFile"]
