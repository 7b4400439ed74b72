"""Home Assistant MQTT discovery payload for the camera binary_sensor."""

from __future__ import annotations

import json

from camera_snitch.const import CAMERA_SNITCH_VERSION, MANUFACTURER, MODEL, PAYLOAD_OFF, PAYLOAD_ON
from camera_snitch.structs import DiscoveryDescriptor, DiscoveryDevice, SnitchEnv


def build_discovery_descriptor(env: SnitchEnv) -> DiscoveryDescriptor:
    """Build the descriptor published to ``<prefix>/binary_sensor/<object_id>/config``."""
    return DiscoveryDescriptor(
        name=env.name,
        device=DiscoveryDevice(
            identifiers=[env.object_id],
            name=env.device_name,
            sw_version=CAMERA_SNITCH_VERSION,
            model=MODEL,
            manufacturer=MANUFACTURER,
        ),
        state_topic=env.state_topic,
        device_class=env.device_class,
        payload_on=PAYLOAD_ON,
        payload_off=PAYLOAD_OFF,
        availability_topic=env.availability_topic,
    )


def serialize_descriptor(descriptor: DiscoveryDescriptor) -> bytes:
    """JSON payload for the config topic. Unset optional keys are omitted."""
    return json.dumps(descriptor.model_dump(exclude_none=True)).encode()
