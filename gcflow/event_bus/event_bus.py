"""EventBus implementation for channel-based pub/sub messaging."""

import asyncio
import threading
from typing import Any, Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import Channel, channel_name
from .codec import JVMEventCodec

logger = get_logger(__name__)


MessageHandler = Callable[[Any], Awaitable[None]]

_STOP = object()


class IEventBus(Protocol):
    """In-memory pub/sub over named channels."""

    def subscribe(
        self, channel: Channel | str, handler: MessageHandler, name: str | None = None
    ) -> "Subscription":
        """Register a handler; it sees every later message on the channel, in order."""
        ...

    def publish(self, channel: Channel | str, message: Any) -> int:
        """Queue message for every current subscriber of channel."""
        ...

    async def close(self) -> None:
        """Stop delivery and drop undelivered messages."""
        ...


class Subscription:
    """A handler with its own ordered inbound queue and delivery task."""

    def __init__(
        self,
        bus: "EventBus",
        channel: str,
        handler: MessageHandler,
        name: str,
    ):
        self.channel = channel
        self.name = name
        self._bus = bus
        self._handler = handler
        self._queue: asyncio.Queue = asyncio.Queue()
        self._active = True
        self._task = asyncio.get_running_loop().create_task(
            self._deliver(), name=f"deliver[{channel}:{name}]"
        )

    @property
    def active(self) -> bool:
        return self._active

    def pending(self) -> int:
        """Messages queued but not yet handled."""
        return self._queue.qsize()

    def offer(self, message: Any) -> None:
        if self._active:
            self._queue.put_nowait(message)

    async def _deliver(self) -> None:
        codec = self._bus.codec
        while True:
            message = await self._queue.get()
            if message is _STOP or not self._active:
                break
            try:
                if codec is not None:
                    message = codec.decode(message)
                await self._handler(message)
            except Exception:
                # Contained: one failing handler never stops the channel
                logger.exception(
                    "Error in handler %s on channel %s", self.name, self.channel
                )

    def cancel(self) -> None:
        """Revoke the subscription. Safe to call from inside the handler."""
        if not self._active:
            return
        self._active = False
        self._bus._remove(self)
        self._queue.put_nowait(_STOP)

    async def close(self) -> None:
        """Revoke and wait for the delivery task to finish."""
        self.cancel()
        if self._task is asyncio.current_task() or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class EventBus:
    """In-memory pub/sub event bus with one delivery queue per subscriber."""

    def __init__(self, codec: JVMEventCodec | None = None):
        self.codec = codec
        self._subscribers: dict[str, list[Subscription]] = {}
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(
        self, channel: Channel | str, handler: MessageHandler, name: str | None = None
    ) -> Subscription:
        """Subscribe a handler to a channel."""
        if self._closed:
            raise RuntimeError("EventBus is closed")

        loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = loop

        key = channel_name(channel)
        subscription = Subscription(
            self, key, handler, name or getattr(handler, "__qualname__", "handler")
        )
        with self._lock:
            self._subscribers.setdefault(key, []).append(subscription)
        logger.debug("Subscribed %s to channel %s", subscription.name, key)
        return subscription

    def publish(self, channel: Channel | str, message: Any) -> int:
        """Publish message to a channel. Returns the number of subscribers reached."""
        if self._closed:
            logger.warning("Dropping message for %s: bus is closed", channel_name(channel))
            return 0

        key = channel_name(channel)
        payload = self.codec.encode(message) if self.codec is not None else message

        with self._lock:
            subscribers = list(self._subscribers.get(key, ()))

        if self._loop is not None and not self._on_loop_thread():
            self._loop.call_soon_threadsafe(self._fan_out, subscribers, payload)
        else:
            self._fan_out(subscribers, payload)
        return len(subscribers)

    def subscriber_count(self, channel: Channel | str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel_name(channel), ()))

    def channels(self) -> list[str]:
        with self._lock:
            return [name for name, subs in self._subscribers.items() if subs]

    async def close(self) -> None:
        """Stop all delivery tasks. Idempotent."""
        if self._closed:
            return
        self._closed = True

        with self._lock:
            subscriptions = [s for subs in self._subscribers.values() for s in subs]
            self._subscribers.clear()

        dropped = sum(s.pending() for s in subscriptions)
        if dropped:
            logger.warning("EventBus closed with %s undelivered messages", dropped)

        await asyncio.gather(*(s.close() for s in subscriptions), return_exceptions=True)
        logger.debug("EventBus closed")

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(subscription.channel)
            if subs and subscription in subs:
                subs.remove(subscription)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    @staticmethod
    def _fan_out(subscribers: list[Subscription], payload: Any) -> None:
        for subscription in subscribers:
            subscription.offer(payload)
