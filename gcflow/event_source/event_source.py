"""Reads a log source and publishes its lines onto the bus."""

import asyncio
from itertools import islice
from typing import Iterator

from ..config import DEFAULT_READ_BATCH_SIZE
from ..errors import LogSourceReadError
from ..io import GCLogFile
from ..lifecycle import DeployableUnit
from ..logging_config import get_logger
from ..models import Channel, JVMTermination, channel_name

logger = get_logger(__name__)


def _read_batch(lines: Iterator[str], size: int) -> tuple[list[str], Exception | None]:
    """Up to ``size`` lines, plus the error that cut the batch short, if any."""
    batch: list[str] = []
    try:
        for line in islice(lines, size):
            batch.append(line)
    except Exception as e:
        return batch, e
    return batch, None


class EventSource(DeployableUnit):
    """Publishes every raw line of a log source, then one termination event.

    Lines are read on a worker thread in batches so a slow disk or a large
    archive never blocks the event loop. The source does no parsing.
    """

    def __init__(
        self,
        channel: Channel | str = Channel.PARSER_INBOX,
        read_batch_size: int = DEFAULT_READ_BATCH_SIZE,
        name: str | None = None,
    ):
        super().__init__(name)
        if read_batch_size < 1:
            raise ValueError(f"read_batch_size must be positive, got {read_batch_size}")
        self._channel = channel_name(channel)
        self._batch_size = read_batch_size
        self._published = False
        self._lines_published = 0

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def lines_published(self) -> int:
        return self._lines_published

    async def publish(self, log_source: GCLogFile) -> int:
        """Publish all lines of ``log_source``. Returns the number of lines."""
        bus = self.event_bus
        if self._published:
            logger.warning("%s has already published %s; ignoring", self.name, log_source)
            return 0
        self._published = True
        self._mark_running()
        logger.info("Publishing %s on %s", log_source, self._channel)

        failure: Exception | None = None
        try:
            try:
                lines = await asyncio.to_thread(log_source.open)
            except Exception as e:
                failure = e
                lines = iter(())

            while failure is None:
                batch, failure = await asyncio.to_thread(_read_batch, lines, self._batch_size)
                for line in batch:
                    bus.publish(self._channel, line)
                self._lines_published += len(batch)
                if len(batch) < self._batch_size:
                    break
                await asyncio.sleep(0)
        finally:
            bus.publish(self._channel, JVMTermination())
            log_source.close()
            self._mark_completed()

        if failure is not None:
            logger.error(
                "Reading %s failed after %s lines: %s", log_source, self._lines_published, failure
            )
            raise LogSourceReadError(
                f"Could not read {log_source.path}: {failure}",
                lines_published=self._lines_published,
            ) from failure

        logger.info("Published %s lines from %s", self._lines_published, log_source)
        return self._lines_published
