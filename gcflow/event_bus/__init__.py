"""EventBus module."""

from .codec import JVMEventCodec
from .event_bus import EventBus, IEventBus, MessageHandler, Subscription

__all__ = ["EventBus", "IEventBus", "JVMEventCodec", "MessageHandler", "Subscription"]
