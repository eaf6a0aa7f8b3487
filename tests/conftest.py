"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gcflow.config import PipelineSettings  # noqa: E402
from gcflow.event_bus import EventBus  # noqa: E402
from gcflow.models import JVMTermination  # noqa: E402
from gcflow.sim import GCLogSim  # noqa: E402

GCFLOW_ENV = (
    "GCFLOW_DEPLOYMENT_TIMEOUT",
    "GCFLOW_COMPLETION_TIMEOUT",
    "GCFLOW_READ_BATCH_SIZE",
    "GCFLOW_WIRE_CODEC",
    "LOG_LEVEL",
)


class Collector:
    """Records every message delivered to it; ``done`` is set on termination."""

    def __init__(self):
        self.messages = []
        self.done = asyncio.Event()

    async def __call__(self, message):
        self.messages.append(message)
        if isinstance(message, JVMTermination):
            self.done.set()

    @property
    def lines(self):
        return [m for m in self.messages if isinstance(m, str)]

    @property
    def terminations(self):
        return [m for m in self.messages if isinstance(m, JVMTermination)]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep tests independent of the caller's environment and log files."""
    for name in GCFLOW_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GCFLOW_LOG_FILE", str(tmp_path / "logs" / "gcflow.log"))


@pytest_asyncio.fixture
async def event_bus():
    """Create an EventBus that is closed after the test."""
    bus = EventBus()
    yield bus
    await bus.close()


@pytest.fixture
def collector():
    """Factory for message collectors."""
    return Collector


@pytest.fixture
def settings():
    """Settings with short timeouts for tests."""
    return PipelineSettings(deployment_timeout=5.0, completion_timeout=60.0, read_batch_size=250)


@pytest.fixture
def sim():
    """Deterministic synthetic log writer."""
    return GCLogSim(seed=42)


@pytest.fixture
def wait_until():
    """Await a condition with a deadline."""

    async def wait(predicate, timeout: float = 5.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError(f"condition not met within {timeout}s")
            await asyncio.sleep(0.01)

    return wait
