"""Consumer that follows the latest point in time seen in a channel."""

from typing import Any

from ..lifecycle import DeployableUnit
from ..logging_config import get_logger
from ..models import EPOCH, Channel, DateTimeStamp, JVMEvent, JVMTermination, channel_name

logger = get_logger(__name__)


class TimeTracker(DeployableUnit):
    """Keeps the end time (timestamp + duration) of the latest event on its mailbox.

    The value is written only by this unit's handler and is final once the
    tracker has completed.
    """

    def __init__(
        self,
        mailbox: Channel | str = Channel.JVM_EVENT_PARSER_OUTBOX,
        name: str | None = None,
    ):
        super().__init__(name)
        self._mailbox = channel_name(mailbox)
        self._latest = EPOCH

    @property
    def mailbox(self) -> str:
        return self._mailbox

    @property
    def latest_event_time(self) -> DateTimeStamp:
        return self._latest

    async def _start(self) -> None:
        self.subscribe(self._mailbox, self._handle_event)

    async def _handle_event(self, message: Any) -> None:
        try:
            if isinstance(message, JVMTermination):
                self._mark_completed()
                logger.info("%s finished at %s", self.name, self._latest)
                return
            if not isinstance(message, JVMEvent):
                return

            self._mark_running()
            candidate = message.timestamp.add(message.duration)
            if candidate.after(self._latest):
                self._latest = candidate
        except Exception:
            logger.exception("%s could not track %r", self.name, message)
