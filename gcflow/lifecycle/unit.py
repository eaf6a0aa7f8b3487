"""Base class for units the orchestrator deploys."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Protocol, TypeVar

from ..errors import DeploymentError
from ..event_bus import IEventBus, MessageHandler, Subscription
from ..logging_config import get_logger
from ..models import Channel, UnitState
from .latch import CountDownLatch

logger = get_logger(__name__)

T = TypeVar("T")


class IDeployableUnit(Protocol):
    """A worker with its own deploy/ready/undeploy lifecycle."""

    @property
    def name(self) -> str:
        """Unit identifier used in logs and errors."""
        ...

    async def deploy(self, event_bus: IEventBus, worker: bool = False) -> None:
        """Subscribe to channels and enter READY."""
        ...

    async def await_deployment(self, timeout: float | None = None) -> None:
        """Block until READY."""
        ...

    async def undeploy(self) -> None:
        """Revoke subscriptions and release resources."""
        ...


class DeployableUnit:
    """Lifecycle bookkeeping shared by the event source, parsers and aggregators.

    Subclasses override ``_start`` to subscribe (no I/O) and ``_stop`` to
    release anything extra. The ready and completion signals are one-shot, so
    a unit can be deployed only once.
    """

    def __init__(self, name: str | None = None):
        self._name = name or type(self).__name__
        self._state = UnitState.UNDEPLOYED
        self._event_bus: IEventBus | None = None
        self._ready = CountDownLatch(1)
        self._completed = CountDownLatch(1)
        self._subscriptions: list[Subscription] = []
        self._executor: ThreadPoolExecutor | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> UnitState:
        return self._state

    @property
    def event_bus(self) -> IEventBus:
        """Get the bus this unit was deployed on."""
        if self._event_bus is None:
            raise RuntimeError(f"{self._name} not deployed")
        return self._event_bus

    async def deploy(self, event_bus: IEventBus, worker: bool = False) -> None:
        """Run setup and enter READY.

        With ``worker`` set, CPU-bound work passed to ``run_in_worker`` runs on
        a dedicated thread instead of the event loop.
        """
        if self._event_bus is not None:
            raise DeploymentError(
                f"{self._name} has already been deployed", unit=self._name
            )

        self._state = UnitState.DEPLOYING
        self._event_bus = event_bus
        if worker:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=self._name
            )

        try:
            await self._start()
        except Exception as e:
            self._state = UnitState.FAILED
            await self._release()
            raise DeploymentError(
                f"{self._name} failed to deploy: {e}", unit=self._name
            ) from e

        self._state = UnitState.READY
        self._ready.count_down()
        logger.info("%s deployed%s", self._name, " as worker" if worker else "")

    async def await_deployment(self, timeout: float | None = None) -> None:
        await self._ready.wait(timeout)

    async def await_completion(self, timeout: float | None = None) -> None:
        await self._completed.wait(timeout)

    def is_ready(self) -> bool:
        return self._ready.is_open()

    def is_complete(self) -> bool:
        return self._completed.is_open()

    async def undeploy(self) -> None:
        """Stop and release. Idempotent."""
        if self._state is UnitState.UNDEPLOYED:
            return
        try:
            await self._stop()
        finally:
            await self._release()
            self._state = UnitState.UNDEPLOYED
            logger.debug("%s undeployed", self._name)

    def subscribe(self, channel: Channel | str, handler: MessageHandler) -> Subscription:
        subscription = self.event_bus.subscribe(
            channel, handler, name=f"{self._name}.{handler.__name__}"
        )
        self._subscriptions.append(subscription)
        return subscription

    def send(self, channel: Channel | str, message: Any) -> int:
        return self.event_bus.publish(channel, message)

    async def run_in_worker(self, fn: Callable[..., T], *args: Any) -> T:
        """Call fn on the unit's worker thread, or inline when not a worker."""
        if self._executor is None:
            return fn(*args)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    def _mark_running(self) -> None:
        if self._state is UnitState.READY:
            self._state = UnitState.RUNNING

    def _mark_completed(self) -> None:
        if self._state in (UnitState.READY, UnitState.RUNNING):
            self._state = UnitState.COMPLETED
        self._completed.count_down()

    async def _start(self) -> None:
        """Subscribe to channels. Must not perform I/O."""

    async def _stop(self) -> None:
        """Release subclass resources."""

    async def _release(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            await subscription.close()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name} {self._state.value}>"
