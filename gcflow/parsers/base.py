"""Base class for GC log dialect parsers."""

from abc import ABC, abstractmethod
from typing import Any, Protocol

from ..event_bus import Subscription
from ..lifecycle import DeployableUnit
from ..logging_config import get_logger
from ..models import Channel, JVMEvent, JVMTermination, channel_name

logger = get_logger(__name__)


class ILogFileParser(Protocol):
    """A deployable unit turning raw lines into typed events."""

    @property
    def outbox(self) -> str:
        """Channel the parser publishes events to."""
        ...

    def parse(self, line: str) -> list[JVMEvent]:
        """Events recognised in one raw line (may be empty)."""
        ...

    def flush(self) -> list[JVMEvent]:
        """Events still pending when the stream ends."""
        ...


class LogFileParser(DeployableUnit, ABC):
    """Subscribes to the inbox, parses each line, publishes to its outbox.

    ``parse`` and ``flush`` run on the parser's worker thread when it is
    deployed as a worker, and are never called concurrently, so subclasses
    may keep per-stream state without locking.
    """

    OUTBOX: Channel | str = ""

    def __init__(self, inbox: Channel | str = Channel.PARSER_INBOX, name: str | None = None):
        super().__init__(name)
        if not self.OUTBOX:
            raise TypeError(f"{type(self).__name__} does not declare an OUTBOX")
        self._inbox = channel_name(inbox)
        self._subscription: Subscription | None = None
        self._lines_seen = 0
        self._events_emitted = 0
        self._parse_errors = 0

    @property
    def inbox(self) -> str:
        return self._inbox

    @property
    def outbox(self) -> str:
        return channel_name(self.OUTBOX)

    @property
    def lines_seen(self) -> int:
        return self._lines_seen

    @property
    def events_emitted(self) -> int:
        return self._events_emitted

    @property
    def parse_errors(self) -> int:
        return self._parse_errors

    async def _start(self) -> None:
        """Subscribe to the inbox."""
        self._subscription = self.subscribe(self._inbox, self._handle_line)

    async def _handle_line(self, message: Any) -> None:
        if isinstance(message, JVMTermination):
            await self._terminate()
            return
        if self.is_complete() or not isinstance(message, str):
            return

        self._mark_running()
        self._lines_seen += 1
        try:
            events = await self.run_in_worker(self.parse, message)
        except Exception:
            self._parse_errors += 1
            logger.exception("%s could not parse line: %.200s", self.name, message)
            return
        self._emit(events)

    async def _terminate(self) -> None:
        if self.is_complete():
            return
        try:
            events = await self.run_in_worker(self.flush)
        except Exception:
            logger.exception("%s failed while flushing pending events", self.name)
            events = []
        self._emit(events)

        self.send(self.outbox, JVMTermination())
        if self._subscription is not None:
            self._subscription.cancel()
        self._mark_completed()
        logger.info(
            "%s finished: %s lines, %s events, %s parse errors",
            self.name,
            self._lines_seen,
            self._events_emitted,
            self._parse_errors,
        )

    def _emit(self, events: list[JVMEvent]) -> None:
        for event in events:
            self.send(self.outbox, event)
        self._events_emitted += len(events)

    @abstractmethod
    def parse(self, line: str) -> list[JVMEvent]:
        """Events recognised in one raw line."""

    def flush(self) -> list[JVMEvent]:
        return []
