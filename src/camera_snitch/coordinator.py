"""Top-level event loop: detector signals -> debouncer -> broker.

Each iteration waits on three sources at once and services exactly one:

1. the detector's next raw signal
2. the broker's next inbound message (or a reconnect attempt while disconnected)
3. an idle tick, which also flushes a debounced candidate once its window ends

Unserviced sources keep their pending task into the next iteration, and the
order in which ready sources are checked rotates, so none is starved.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any, Final

import aiomqtt

from camera_snitch.const import HASS_BIRTH_MSG
from camera_snitch.correlation import correlation_context
from camera_snitch.debounce import Debouncer
from camera_snitch.detectors.base import StateDetector
from camera_snitch.exceptions import BrokerConnectionError, DetectorError
from camera_snitch.logging_abstraction import get_logger
from camera_snitch.mqtt.client import BrokerPublisher
from camera_snitch.structs import CameraState, DebounceState, RawSignal, SnitchEnv

logger = get_logger(__name__)

SIGNAL: Final = "signal"
INBOUND: Final = "inbound"
TICK: Final = "tick"
SOURCES: Final = (SIGNAL, INBOUND, TICK)

RECONNECTED: Final = object()


class Coordinator:
    """Drives one detector and one broker connection until cancelled."""

    lp: str = "coordinator:"

    def __init__(
        self,
        env: SnitchEnv,
        detector: StateDetector,
        publisher: BrokerPublisher,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.env: SnitchEnv = env
        self.detector: StateDetector = detector
        self.publisher: BrokerPublisher = publisher
        self.debouncer: Debouncer = Debouncer()
        self.clock: Callable[[], float] = clock
        self.state: DebounceState = DebounceState.initial(env.debounce)
        self.tasks: dict[str, asyncio.Task[Any]] = {}
        self._turn: int = 0

    @property
    def camera_state(self) -> CameraState:
        return self.state.stable_state

    async def startup(self) -> None:
        """Start the detector, connect, and announce discovery once.

        An unreachable broker is not fatal: the inbound source keeps retrying
        and announces discovery once it gets through.

        Raises:
            DetectorInitError: the detection mechanism could not be set up

        """
        lp = f"{self.lp}startup:"
        await self.detector.start()
        self.state = DebounceState.initial(self.env.debounce)
        self.debouncer.pending = None

        try:
            await self.publisher.connect()
        except BrokerConnectionError as exc:
            logger.warning("%s %s, retrying in %ss", lp, exc, self.env.mqtt_conn_delay)
            self.publisher.set_connected(False)
            return

        logger.info("%s Sending discovery message", lp)
        result = await self.publisher.publish_discovery()
        if result:
            logger.info("%s Published discovery", lp, extra={"topic": result.topic})
        else:
            logger.error("%s Error publishing discovery", lp, extra={"topic": result.topic, "error": result.error})

    async def run(self) -> None:
        """Run until cancelled. A detector init error propagates before the loop begins."""
        lp = f"{self.lp}run:"
        try:
            await self.startup()
            logger.info(
                "%s Watching camera state",
                lp,
                extra={"detector": self.detector.name, "debounce": self.env.debounce},
            )
            while True:
                await self.run_once()
        finally:
            await self._cancel_tasks()
            self.detector.close()
            await self.publisher.disconnect()

    async def run_once(self) -> str:
        """Wait for the first ready source, service it, and return its name."""
        self._arm()
        done, _ = await asyncio.wait(self.tasks.values(), return_when=asyncio.FIRST_COMPLETED)
        source = self._pick(done)
        task = self.tasks.pop(source)

        if source == SIGNAL:
            try:
                signal = task.result()
            except DetectorError as exc:
                logger.warning("%s %s", f"{self.lp}signal:", exc)
            else:
                await self.handle_signal(signal)
        elif source == INBOUND:
            await self.handle_inbound(task)
        else:
            await self.handle_tick()
        return source

    def _arm(self) -> None:
        factories: dict[str, Callable[[], Coroutine[Any, Any, Any]]] = {
            SIGNAL: self.detector.next_signal,
            INBOUND: self._next_inbound,
            TICK: self._tick,
        }
        for source in SOURCES:
            if source not in self.tasks:
                self.tasks[source] = asyncio.create_task(factories[source](), name=f"coordinator_{source}")

    def _pick(self, done: set[asyncio.Task[Any]]) -> str:
        start = self._turn % len(SOURCES)
        self._turn += 1
        for source in SOURCES[start:] + SOURCES[:start]:
            task = self.tasks.get(source)
            if task is not None and task in done:
                return source
        msg = "asyncio.wait returned no task owned by the coordinator"
        raise RuntimeError(msg)

    async def _cancel_tasks(self) -> None:
        tasks = list(self.tasks.values())
        self.tasks.clear()
        for task in tasks:
            _ = task.cancel()
        _ = await asyncio.gather(*tasks, return_exceptions=True)

    def _reset_tick(self) -> None:
        task = self.tasks.pop(TICK, None)
        if task is not None:
            _ = task.cancel()

    async def _tick(self) -> None:
        due = self.debouncer.seconds_until_due(self.state, self.clock())
        delay = self.env.idle_interval if due is None else min(due, self.env.idle_interval)
        await asyncio.sleep(delay)

    async def _next_inbound(self) -> object:
        if not self.publisher.is_connected:
            await asyncio.sleep(self.env.mqtt_conn_delay)
            await self.publisher.connect()
            return RECONNECTED
        return await self.publisher.next_message()

    async def handle_signal(self, signal: RawSignal) -> None:
        confirmed = self.debouncer.feed(self.state, signal)
        if confirmed is not None:
            await self.announce(confirmed)
        elif self.debouncer.pending is not None:
            # wake up when the window ends instead of after a full idle interval
            self._reset_tick()

    async def handle_tick(self) -> None:
        confirmed = self.debouncer.flush(self.state, self.clock())
        if confirmed is not None:
            await self.announce(confirmed)

    async def handle_inbound(self, task: asyncio.Task[Any]) -> None:
        lp = f"{self.lp}inbound:"
        try:
            result = task.result()
        except BrokerConnectionError as exc:
            logger.warning("%s Reconnect failed, retrying in %ss: %s", lp, self.env.mqtt_conn_delay, exc)
            return
        except aiomqtt.MqttError as exc:
            logger.error("%s Error receiving from broker: %s", lp, exc)
            self.publisher.set_connected(False)
            return

        if result is RECONNECTED:
            logger.info("%s Reconnected to broker, re-announcing discovery and state", lp)
            await self.reannounce(include_state=True)
            return

        await self.handle_message(result)

    async def handle_message(self, message: aiomqtt.Message) -> None:
        lp = f"{self.lp}message:"
        topic = message.topic.value
        raw = message.payload
        payload = raw.decode(errors="replace") if isinstance(raw, bytes | bytearray) else str(raw)
        logger.debug("%s received message", lp, extra={"topic": topic, "payload": payload})

        if topic == self.env.hass_status_topic:
            if payload == HASS_BIRTH_MSG:
                logger.info("%s Home Assistant came online, re-announcing discovery", lp)
                await self.reannounce(include_state=False)
            else:
                logger.debug("%s Home Assistant status: %s", lp, payload)

    async def announce(self, state: CameraState) -> None:
        """Publish a confirmed transition. A failure is logged; the new state stays recorded."""
        lp = f"{self.lp}announce:"
        with correlation_context(prefix=state.value.lower()):
            logger.info("%s camera state changed: %s", lp, state)
            result = await self.publisher.publish_state(state)
            if result:
                logger.info("%s published state: %s", lp, state)
            else:
                logger.error(
                    "%s error publishing state: %s",
                    lp,
                    state,
                    extra={"topic": result.topic, "error": result.error},
                )

    async def reannounce(self, include_state: bool) -> None:
        """Re-publish the (retained) discovery descriptor and optionally the confirmed state."""
        lp = f"{self.lp}reannounce:"
        result = await self.publisher.publish_discovery()
        if not result:
            logger.error("%s Error publishing discovery", lp, extra={"error": result.error})
        if include_state:
            state = self.state.stable_state
            result = await self.publisher.publish_state(state)
            if not result:
                logger.error("%s Error re-publishing state: %s", lp, state, extra={"error": result.error})
