"""Log line publisher."""

from .event_source import EventSource

__all__ = ["EventSource"]
