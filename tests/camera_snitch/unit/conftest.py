"""Shared fixtures for unit tests.

Provides a small-window configuration, a scriptable detector and a mocked
BrokerPublisher for exercising the coordinator without a broker or devices.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from camera_snitch.mqtt.client import BrokerPublisher
from camera_snitch.structs import CameraState, PublishResult, RawSignal, SnitchEnv


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now: float = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class QueueDetector:
    """StateDetector whose signals are pushed by the test."""

    name: str = "queue"

    def __init__(self) -> None:
        self.signals: asyncio.Queue[RawSignal] = asyncio.Queue()
        self.started: bool = False
        self.closed: bool = False

    async def start(self) -> None:
        self.started = True

    async def next_signal(self) -> RawSignal:
        return await self.signals.get()

    def push(self, state: CameraState, observed_at: float) -> None:
        self.signals.put_nowait(RawSignal(state=state, observed_at=observed_at))

    def close(self) -> None:
        self.closed = True


async def wait_forever() -> None:
    _ = await asyncio.Event().wait()


@pytest.fixture
def env() -> SnitchEnv:
    """Configuration with short intervals so loop tests finish quickly."""
    return SnitchEnv(
        mqtt_host="broker.test",
        mqtt_port=1883,
        mqtt_throttle=0,
        mqtt_conn_delay=0.01,
        debounce=0.3,
        idle_interval=0.02,
        poll_interval=0.05,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def detector() -> QueueDetector:
    return QueueDetector()


@pytest.fixture
def mock_publisher(env: SnitchEnv) -> MagicMock:
    """BrokerPublisher mock whose publishes succeed and whose inbound stream is silent."""
    publisher: MagicMock = MagicMock(spec=BrokerPublisher)
    publisher.is_connected = True
    publisher.connect = AsyncMock()
    publisher.disconnect = AsyncMock()
    publisher.publish_discovery = AsyncMock(return_value=PublishResult(ok=True, topic=env.config_topic))
    publisher.publish_state = AsyncMock(return_value=PublishResult(ok=True, topic=env.state_topic))
    publisher.next_message = AsyncMock(side_effect=wait_forever)
    publisher.set_connected = MagicMock()
    return publisher
