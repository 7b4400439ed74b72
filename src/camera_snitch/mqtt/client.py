"""The single MQTT broker connection.

BrokerPublisher connects with a fixed client identity, keeps a last-will on the
availability topic, and publishes the discovery descriptor and camera state.
Publishing never raises: every publish returns a PublishResult and the caller
decides what to log.
"""

from __future__ import annotations

import asyncio
import time

import aiomqtt

from camera_snitch.const import DEVICE_LWT_MSG, DEVICE_ONLINE_MSG
from camera_snitch.exceptions import BrokerConnectionError
from camera_snitch.logging_abstraction import get_logger
from camera_snitch.mqtt.discovery import serialize_descriptor
from camera_snitch.structs import (
    CameraState,
    DiscoveryDescriptor,
    PublishResult,
    SnitchEnv,
    StateMessage,
)

logger = get_logger(__name__)

AT_LEAST_ONCE = 1


class BrokerPublisher:
    """Owns the aiomqtt client. Not safe for concurrent use; callers publish one at a time."""

    lp: str = "mqtt:"

    def __init__(self, env: SnitchEnv, descriptor: DiscoveryDescriptor) -> None:
        self.env: SnitchEnv = env
        self.descriptor: DiscoveryDescriptor = descriptor
        self.client: aiomqtt.Client | None = None
        self._connected: bool = False
        self._last_publish_at: float | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    def set_connected(self, connected: bool) -> None:
        """Record the connection state (the coordinator clears it when the inbound stream drops)."""
        self._connected = connected

    def _build_client(self) -> aiomqtt.Client:
        will = aiomqtt.Will(
            topic=self.env.availability_topic,
            payload=DEVICE_LWT_MSG.encode(),
            qos=AT_LEAST_ONCE,
            retain=True,
        )
        return aiomqtt.Client(
            hostname=self.env.mqtt_host,
            port=self.env.mqtt_port,
            username=self.env.mqtt_user,
            password=self.env.mqtt_pass,
            identifier=self.env.mqtt_client_id,
            keepalive=self.env.mqtt_keepalive,
            will=will,
        )

    async def connect(self) -> None:
        """Open the broker connection, subscribe to HASS status and announce availability.

        Raises:
            BrokerConnectionError: the broker refused or could not be reached

        """
        lp = f"{self.lp}connect:"
        self._connected = False
        if self.client is not None:
            await self._close_client()

        logger.debug("%s Connecting to MQTT broker %s:%s...", lp, self.env.mqtt_host, self.env.mqtt_port)
        client = self._build_client()
        try:
            _ = await client.__aenter__()
        except aiomqtt.MqttError as exc:
            # -> [Errno 111] Connection refused
            # [code:134] Bad user name or password
            raise BrokerConnectionError(self.env.mqtt_host, self.env.mqtt_port, str(exc)) from exc

        self.client = client
        self._connected = True
        logger.info(
            "%s Connected to MQTT broker",
            lp,
            extra={
                "host": self.env.mqtt_host,
                "port": self.env.mqtt_port,
                "client_id": self.env.mqtt_client_id,
            },
        )

        try:
            await client.subscribe(self.env.hass_status_topic, qos=0)
        except aiomqtt.MqttError as exc:
            logger.warning("%s Could not subscribe to %s: %s", lp, self.env.hass_status_topic, exc)

        result = await self._publish(self.env.availability_topic, DEVICE_ONLINE_MSG.encode())
        if not result:
            logger.warning("%s Could not announce availability: %s", lp, result.error)

    async def disconnect(self) -> None:
        """Publish ``offline`` availability and close the connection."""
        lp = f"{self.lp}disconnect:"
        if self.client is None:
            self._connected = False
            return
        if self._connected:
            _ = await self._publish(self.env.availability_topic, DEVICE_LWT_MSG.encode())
        await self._close_client()
        self._connected = False
        logger.info("%s Disconnected from MQTT broker", lp)

    async def _close_client(self) -> None:
        lp = f"{self.lp}close:"
        client, self.client = self.client, None
        if client is None:
            return
        try:
            await client.__aexit__(None, None, None)
        except aiomqtt.MqttError as exc:
            logger.debug("%s Ignoring error while closing client: %s", lp, exc)

    async def publish_discovery(self) -> PublishResult:
        """Publish the discovery descriptor (retained, QoS 1). Safe to repeat."""
        return await self._publish(self.env.config_topic, serialize_descriptor(self.descriptor))

    async def publish_state(self, state: CameraState) -> PublishResult:
        """Publish the camera state (retained, QoS 1)."""
        message = StateMessage.for_state(self.env.state_topic, state)
        return await self._publish(message.topic, message.payload.encode(), qos=message.qos, retain=message.retain)

    async def next_message(self) -> aiomqtt.Message:
        """Wait for the next inbound message.

        Raises:
            aiomqtt.MqttError: the connection is down or was lost while waiting

        """
        if not self._connected or self.client is None:
            msg = "Not connected to MQTT broker"
            raise aiomqtt.MqttError(msg)
        return await anext(aiter(self.client.messages))

    async def _throttle(self) -> None:
        if self._last_publish_at is None or self.env.mqtt_throttle <= 0:
            return
        wait = self.env.mqtt_throttle - (time.monotonic() - self._last_publish_at)
        if wait > 0:
            await asyncio.sleep(wait)

    async def _publish(
        self,
        topic: str,
        payload: bytes,
        qos: int = AT_LEAST_ONCE,
        retain: bool = True,
    ) -> PublishResult:
        if not self._connected or self.client is None:
            return PublishResult(ok=False, topic=topic, error="not connected to broker")

        await self._throttle()
        try:
            await self.client.publish(topic, payload, qos=qos, retain=retain)
        except aiomqtt.MqttCodeError as exc:
            return PublishResult(ok=False, topic=topic, error=f"[MqttCodeError] {exc}")
        except aiomqtt.MqttError as exc:
            return PublishResult(ok=False, topic=topic, error=f"[MqttError] {exc}")
        finally:
            self._last_publish_at = time.monotonic()
        return PublishResult(ok=True, topic=topic)
