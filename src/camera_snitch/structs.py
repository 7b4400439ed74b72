"""Core data structures for camera-snitch."""

from __future__ import annotations

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from camera_snitch.const import (
    DEFAULT_CLIENT_ID,
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_DETECTOR,
    DEFAULT_DEVICE_CLASS,
    DEFAULT_DEVICE_GLOB,
    DEFAULT_DEVICE_NAME,
    DEFAULT_HASS_TOPIC,
    DEFAULT_IDLE_INTERVAL,
    DEFAULT_KEEPALIVE,
    DEFAULT_MQTT_CONN_DELAY,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_NAME,
    DEFAULT_OBJECT_ID,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_THROTTLE_INTERVAL,
    ENV_PREFIX,
    PAYLOAD_OFF,
    PAYLOAD_ON,
)
from camera_snitch.exceptions import ConfigError


class CameraState(StrEnum):
    """Whether any capture device is held open. The value is the MQTT payload."""

    ON = PAYLOAD_ON
    OFF = PAYLOAD_OFF


@dataclass(frozen=True, slots=True)
class RawSignal:
    """A candidate state as observed by a detector.

    ``observed_at`` is a :func:`time.monotonic` timestamp.
    """

    state: CameraState
    observed_at: float

    @classmethod
    def now(cls, state: CameraState) -> RawSignal:
        return cls(state=state, observed_at=time.monotonic())


@dataclass(slots=True)
class DebounceState:
    """Last confirmed state and when it was confirmed.

    Owned by the coordinator; only :class:`camera_snitch.debounce.Debouncer`
    mutates it.
    """

    window: float
    stable_state: CameraState
    last_transition_at: float

    @classmethod
    def initial(cls, window: float) -> DebounceState:
        """Start as OFF with the window already elapsed, so the first ON publishes at once."""
        return cls(window=window, stable_state=CameraState.OFF, last_transition_at=float("-inf"))


@dataclass(frozen=True, slots=True)
class StateMessage:
    """One retained, at-least-once state publish."""

    topic: str
    payload: str
    qos: int = 1
    retain: bool = True

    @classmethod
    def for_state(cls, topic: str, state: CameraState) -> StateMessage:
        return cls(topic=topic, payload=state.value)


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of a single broker publish. Publishing never raises; callers inspect this."""

    ok: bool
    topic: str
    error: str | None = None

    def __bool__(self) -> bool:
        return self.ok


class DiscoveryDevice(BaseModel):
    """The ``device`` block of a Home Assistant discovery payload."""

    model_config = ConfigDict(frozen=True)

    identifiers: list[str]
    name: str
    sw_version: str
    model: str
    manufacturer: str


class DiscoveryDescriptor(BaseModel):
    """Home Assistant MQTT discovery payload for the camera binary_sensor."""

    model_config = ConfigDict(frozen=True)

    name: str
    device: DiscoveryDevice
    state_topic: str
    device_class: str
    payload_on: str = PAYLOAD_ON
    payload_off: str = PAYLOAD_OFF
    availability_topic: str | None = None


class SnitchEnv(BaseModel):
    """Runtime configuration.

    Built from CAMERA_SNITCH_* environment variables (see :meth:`from_environ`)
    and CLI overrides. Validation failures surface as :class:`ConfigError`.
    """

    model_config = ConfigDict(frozen=True)

    mqtt_host: str = Field(DEFAULT_MQTT_HOST, min_length=1)
    mqtt_port: int = Field(DEFAULT_MQTT_PORT, ge=1, le=65535)
    mqtt_user: str | None = None
    mqtt_pass: str | None = None
    mqtt_client_id: str = Field(DEFAULT_CLIENT_ID, min_length=1)
    mqtt_keepalive: int = Field(DEFAULT_KEEPALIVE, gt=0)
    mqtt_throttle: float = Field(DEFAULT_THROTTLE_INTERVAL, ge=0)
    mqtt_conn_delay: float = Field(DEFAULT_MQTT_CONN_DELAY, gt=0)
    hass_topic: str = Field(DEFAULT_HASS_TOPIC, min_length=1)
    object_id: str = Field(DEFAULT_OBJECT_ID, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(DEFAULT_NAME, min_length=1)
    device_name: str = Field(DEFAULT_DEVICE_NAME, min_length=1)
    device_class: str = DEFAULT_DEVICE_CLASS
    debounce: float = Field(DEFAULT_DEBOUNCE_SECONDS, ge=0)
    idle_interval: float = Field(DEFAULT_IDLE_INTERVAL, gt=0)
    poll_interval: float = Field(DEFAULT_POLL_INTERVAL, gt=0)
    device_glob: str = Field(DEFAULT_DEVICE_GLOB, min_length=1)
    detector: Literal["watch", "poll"] = DEFAULT_DETECTOR

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        overrides: Mapping[str, object] | None = None,
    ) -> SnitchEnv:
        """Read CAMERA_SNITCH_<FIELD> variables, apply non-None overrides, validate.

        Empty variables count as unset.

        Raises:
            ConfigError: if any value fails validation

        """
        environ = os.environ if environ is None else environ
        raw: dict[str, object] = {}
        for field_name in cls.model_fields:
            value = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if value:
                raw[field_name] = value
        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigError(problems) from exc

    @property
    def base_topic(self) -> str:
        return f"{self.hass_topic}/binary_sensor/{self.object_id}"

    @property
    def state_topic(self) -> str:
        return f"{self.base_topic}/state"

    @property
    def config_topic(self) -> str:
        return f"{self.base_topic}/config"

    @property
    def availability_topic(self) -> str:
        return f"{self.base_topic}/availability"

    @property
    def hass_status_topic(self) -> str:
        return f"{self.hass_topic}/status"
