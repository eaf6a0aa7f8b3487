"""Base class for event aggregators."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Protocol

from ..event_bus import MessageHandler, Subscription
from ..lifecycle import DeployableUnit
from ..logging_config import get_logger
from ..models import Channel, JVMEvent, JVMTermination, channel_name

logger = get_logger(__name__)


class IAggregator(Protocol):
    """A deployable unit that summarises the events of one or more channels."""

    @property
    def channels(self) -> list[str]:
        """Channels the aggregator consumes."""
        ...

    def aggregate(self, event: JVMEvent) -> None:
        """Fold one event into the summary."""
        ...

    def summary(self) -> list[tuple[str, str]]:
        """Label/value rows describing the result."""
        ...


class Aggregator(DeployableUnit, ABC):
    """Consumes typed events until every channel has terminated.

    Subclasses implement ``aggregate``. The aggregator completes once a
    termination event has been seen on each of its channels.
    """

    DEFAULT_CHANNELS: tuple[Channel | str, ...] = ()

    def __init__(
        self,
        channels: Iterable[Channel | str] | None = None,
        name: str | None = None,
    ):
        super().__init__(name)
        if channels is None:
            channels = self.DEFAULT_CHANNELS
        names = [channel_name(c) for c in channels]
        # Keep the first occurrence of each channel
        self._channels = list(dict.fromkeys(names))
        if not self._channels:
            raise ValueError(f"{self.name} needs at least one channel")
        self._open_channels = set(self._channels)
        self._channel_subscriptions: dict[str, Subscription] = {}
        self._events_seen = 0

    @property
    def channels(self) -> list[str]:
        return list(self._channels)

    @property
    def events_seen(self) -> int:
        return self._events_seen

    async def _start(self) -> None:
        for channel in self._channels:
            self._channel_subscriptions[channel] = self.subscribe(
                channel, self._handler_for(channel)
            )

    def _handler_for(self, channel: str) -> MessageHandler:
        async def handle(message: Any) -> None:
            await self._receive(channel, message)

        handle.__name__ = f"handle[{channel}]"
        return handle

    async def _receive(self, channel: str, message: Any) -> None:
        if isinstance(message, JVMTermination):
            self._terminate(channel)
            return
        if not isinstance(message, JVMEvent):
            logger.debug("%s ignoring %s on %s", self.name, type(message).__name__, channel)
            return

        self._mark_running()
        self._events_seen += 1
        try:
            self.aggregate(message)
        except Exception:
            logger.exception("%s failed to aggregate %s", self.name, message.kind)

    def _terminate(self, channel: str) -> None:
        if channel not in self._open_channels:
            return
        self._open_channels.discard(channel)
        subscription = self._channel_subscriptions.pop(channel, None)
        if subscription is not None:
            subscription.cancel()

        if not self._open_channels:
            self._mark_completed()
            logger.info("%s complete after %s events", self.name, self._events_seen)

    @abstractmethod
    def aggregate(self, event: JVMEvent) -> None:
        """Fold one event into the summary."""

    def summary(self) -> list[tuple[str, str]]:
        return []
