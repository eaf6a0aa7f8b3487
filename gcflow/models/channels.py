"""Well-known EventBus channel names."""

from enum import Enum


class Channel(str, Enum):
    """EventBus channels: the shared inbox and one outbox per parser family."""

    PARSER_INBOX = "PARSER"
    JVM_EVENT_PARSER_OUTBOX = "JVMEventParser"
    SURVIVOR_MEMORY_POOL_PARSER_OUTBOX = "SurvivorMemoryPoolParser"
    GENERATIONAL_HEAP_PARSER_OUTBOX = "GenerationalHeapParser"
    CMS_TENURED_POOL_PARSER_OUTBOX = "CMSTenuredPoolParser"
    G1GC_PARSER_OUTBOX = "G1GCParser"
    ZGC_PARSER_OUTBOX = "ZGCParser"
    SHENANDOAH_PARSER_OUTBOX = "ShenandoahParser"


GC_OUTBOXES: tuple[Channel, ...] = (
    Channel.GENERATIONAL_HEAP_PARSER_OUTBOX,
    Channel.CMS_TENURED_POOL_PARSER_OUTBOX,
    Channel.G1GC_PARSER_OUTBOX,
    Channel.ZGC_PARSER_OUTBOX,
    Channel.SHENANDOAH_PARSER_OUTBOX,
)


def channel_name(channel: "Channel | str") -> str:
    """Plain string form of a channel."""
    return channel.value if isinstance(channel, Channel) else str(channel)
