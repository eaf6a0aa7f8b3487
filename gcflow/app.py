"""Pipeline bootstrap: deploys units in phases, publishes, waits, tears down."""

import asyncio
from typing import Iterable, Protocol, Sequence

from .aggregators import Aggregator
from .config import PipelineSettings
from .errors import DeploymentError, LogSourceReadError, OrchestratorError, PipelineStallError
from .event_bus import EventBus, JVMEventCodec
from .event_source import EventSource
from .io import GCLogFile
from .lifecycle import CountDownLatch, DeployableUnit
from .logging_config import get_logger
from .models import Channel, DateTimeStamp, Phase, RunResult, channel_name
from .parsers import LogFileParser
from .tracker import TimeTracker

logger = get_logger(__name__)


class IOrchestrator(Protocol):
    """Runs one log source through parsers and aggregators."""

    async def run(self, log_source: GCLogFile) -> RunResult:
        """Deploy, publish, wait for completion and shut down."""
        ...

    async def shutdown(self) -> None:
        """Undeploy everything in reverse order. Never raises."""
        ...


class Orchestrator:
    """Owns the lifecycle of every unit taking part in a run.

    Units are deployed phase by phase and no phase starts before every unit
    of the previous one is ready, so nothing is published before all
    subscribers are listening.
    """

    def __init__(
        self,
        parsers: Iterable[LogFileParser],
        aggregators: Iterable[Aggregator],
        mailbox: Channel | str = Channel.JVM_EVENT_PARSER_OUTBOX,
        settings: PipelineSettings | None = None,
    ):
        self._parsers = list(parsers)
        self._aggregators = list(aggregators)
        self._mailbox = channel_name(mailbox)
        self._settings = settings or PipelineSettings.from_env()

        # Components (created in run())
        self._phase = Phase.INIT
        self._event_bus: EventBus | None = None
        self._event_source: EventSource | None = None
        self._time_tracker: TimeTracker | None = None
        self._deployed: list[DeployableUnit] = []
        self._started = False
        self._shut_down = False

    async def run(self, log_source: GCLogFile) -> RunResult:
        """Run the pipeline over ``log_source``. Can be called once."""
        if self._started or self._shut_down:
            raise OrchestratorError("Orchestrator can only run once")
        self._started = True

        try:
            # 1. Bus and the units owned by the orchestrator
            self._enter(Phase.INIT)
            codec = JVMEventCodec() if self._settings.wire_codec else None
            self._event_bus = EventBus(codec=codec)
            self._event_source = EventSource(
                Channel.PARSER_INBOX, read_batch_size=self._settings.read_batch_size
            )
            self._time_tracker = TimeTracker(self._mailbox)

            # 2-5. Deployment barriers
            await self._deploy_phase(Phase.DEPLOYING_SOURCE, [self._event_source])
            await self._deploy_phase(Phase.DEPLOYING_SELF, [self._time_tracker])
            await self._deploy_phase(Phase.DEPLOYING_PARSERS, self._parsers, worker=True)
            await self._deploy_phase(Phase.DEPLOYING_AGGREGATORS, self._aggregators)
            self._check_channels()

            # 6. Publication
            self._enter(Phase.PUBLISHING)
            error: LogSourceReadError | None = None
            try:
                published = await self._event_source.publish(log_source)
            except LogSourceReadError as e:
                error = e
                published = e.lines_published

            # 7. Completion barrier
            self._enter(Phase.AWAITING_COMPLETION)
            await self._await_completion()

            duration = self._time_tracker.latest_event_time
            if error is not None:
                error.partial_duration = duration
            logger.info("Run finished: %s lines, runtime %s", published, duration)
            return RunResult(runtime_duration=duration, error=error, events_published=published)
        finally:
            # 8. Teardown
            await self.shutdown()

    async def shutdown(self) -> None:
        """Undeploy units in reverse deployment order and close the bus."""
        if self._shut_down:
            return
        self._shut_down = True
        self._enter(Phase.SHUTDOWN)

        for unit in reversed(self._deployed):
            try:
                await unit.undeploy()
            except Exception:
                logger.exception("Failed to undeploy %s", unit.name)
        self._deployed.clear()

        if self._event_bus is not None:
            await self._event_bus.close()
        logger.info("Pipeline shut down")

    async def _deploy_phase(
        self, phase: Phase, units: Sequence[DeployableUnit], worker: bool = False
    ) -> None:
        """Deploy ``units`` concurrently and wait until all of them are ready."""
        self._enter(phase)
        barrier = CountDownLatch(len(units))
        if not units:
            return

        async def deploy(unit: DeployableUnit) -> None:
            await unit.deploy(self.event_bus, worker=worker)
            await unit.await_deployment()
            barrier.count_down()

        # Registered before deploying so a partial phase is still torn down
        self._deployed.extend(units)
        tasks = {
            asyncio.create_task(deploy(unit), name=f"deploy[{unit.name}]"): unit
            for unit in units
        }
        done, pending = await asyncio.wait(
            tasks,
            timeout=self._settings.deployment_timeout,
            return_when=asyncio.FIRST_EXCEPTION,
        )
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            if task.cancelled() or task.exception() is None:
                continue
            exc = task.exception()
            if isinstance(exc, DeploymentError):
                exc.phase = phase.value
                raise exc
            raise DeploymentError(
                f"{tasks[task].name} failed to deploy: {exc}",
                unit=tasks[task].name,
                phase=phase.value,
            ) from exc

        if pending:
            names = sorted(tasks[task].name for task in pending)
            raise DeploymentError(
                f"{', '.join(names)} not ready within {self._settings.deployment_timeout}s",
                unit=names[0],
                phase=phase.value,
            )

        await barrier.wait()
        logger.info("%s: %s units ready", phase.value, len(units))

    def _fed_channels(self) -> set[str]:
        """Channels that will receive a termination event during the run."""
        fed = {channel_name(Channel.PARSER_INBOX)}
        changed = True
        while changed:
            changed = False
            for parser in self._parsers:
                if parser.inbox in fed and parser.outbox not in fed:
                    fed.add(parser.outbox)
                    changed = True
        return fed

    def _check_channels(self) -> None:
        """Each channel has one terminating producer and every consumed channel is fed."""
        producers = {channel_name(Channel.PARSER_INBOX): self.event_source.name}
        for parser in self._parsers:
            if parser.outbox in producers:
                raise DeploymentError(
                    f"{parser.name} publishes to {parser.outbox}, "
                    f"which {producers[parser.outbox]} already publishes to",
                    unit=parser.name,
                    phase=Phase.DEPLOYING_PARSERS.value,
                )
            producers[parser.outbox] = parser.name

        fed = self._fed_channels()
        for aggregator in self._aggregators:
            missing = [c for c in aggregator.channels if c not in fed]
            if missing:
                raise DeploymentError(
                    f"{aggregator.name} consumes channels no deployed parser publishes: "
                    f"{', '.join(missing)}",
                    unit=aggregator.name,
                    phase=Phase.DEPLOYING_AGGREGATORS.value,
                )

    async def _await_completion(self) -> None:
        units: list[DeployableUnit] = list(self._aggregators)
        if self._mailbox in self._fed_channels():
            units.append(self.time_tracker)
        barrier = CountDownLatch(len(units))

        async def watch(unit: DeployableUnit) -> None:
            await unit.await_completion()
            barrier.count_down()

        watchers = [asyncio.create_task(watch(unit)) for unit in units]
        try:
            await barrier.wait(self._settings.completion_timeout)
        except asyncio.TimeoutError:
            pending = [unit.name for unit in units if not unit.is_complete()]
            raise PipelineStallError(
                f"{', '.join(pending)} did not complete within "
                f"{self._settings.completion_timeout}s",
                pending=pending,
            ) from None
        finally:
            for watcher in watchers:
                watcher.cancel()
            await asyncio.gather(*watchers, return_exceptions=True)

    def _enter(self, phase: Phase) -> None:
        self._phase = phase
        logger.info("Phase %s", phase.value)

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def event_bus(self) -> EventBus:
        """Get the bus of the current run."""
        if not self._event_bus:
            raise RuntimeError("Orchestrator not started")
        return self._event_bus

    @property
    def event_source(self) -> EventSource:
        if not self._event_source:
            raise RuntimeError("Orchestrator not started")
        return self._event_source

    @property
    def time_tracker(self) -> TimeTracker:
        if not self._time_tracker:
            raise RuntimeError("Orchestrator not started")
        return self._time_tracker

    async def __aenter__(self) -> "Orchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()


async def aggregate_data_source(
    data_source: GCLogFile,
    parsers: Iterable[LogFileParser],
    aggregators: Iterable[Aggregator],
    mailbox: Channel | str = Channel.JVM_EVENT_PARSER_OUTBOX,
    settings: PipelineSettings | None = None,
) -> DateTimeStamp:
    """Run ``data_source`` through the pipeline and return the runtime duration.

    Raises LogSourceReadError (with ``partial_duration`` set) when the source
    could not be read to the end.
    """
    async with Orchestrator(parsers, aggregators, mailbox, settings) as orchestrator:
        result = await orchestrator.run(data_source)
    if result.error is not None:
        raise result.error
    return result.runtime_duration
