"""Constants and environment-derived settings for camera-snitch."""

import os

from camera_snitch import __version__

__all__ = [
    "CAMERA_SNITCH_DEBUG",
    "CAMERA_SNITCH_LOG_CORRELATION_ENABLED",
    "CAMERA_SNITCH_LOG_FORMAT",
    "CAMERA_SNITCH_LOG_HUMAN_OUTPUT",
    "CAMERA_SNITCH_LOG_JSON_FILE",
    "CAMERA_SNITCH_VERSION",
    "COORDINATOR_TASK_NAME",
    "DEFAULT_CLIENT_ID",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_DETECTOR",
    "DEFAULT_DEVICE_CLASS",
    "DEFAULT_DEVICE_GLOB",
    "DEFAULT_DEVICE_NAME",
    "DEFAULT_HASS_TOPIC",
    "DEFAULT_IDLE_INTERVAL",
    "DEFAULT_KEEPALIVE",
    "DEFAULT_MQTT_CONN_DELAY",
    "DEFAULT_MQTT_HOST",
    "DEFAULT_MQTT_PORT",
    "DEFAULT_NAME",
    "DEFAULT_OBJECT_ID",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_THROTTLE_INTERVAL",
    "DEVICE_LWT_MSG",
    "DEVICE_ONLINE_MSG",
    "ENV_PREFIX",
    "HASS_BIRTH_MSG",
    "MANUFACTURER",
    "MODEL",
    "PAYLOAD_OFF",
    "PAYLOAD_ON",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
ENV_PREFIX = "CAMERA_SNITCH_"
CAMERA_SNITCH_VERSION: str = __version__

CAMERA_SNITCH_DEBUG = os.environ.get("CAMERA_SNITCH_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
CAMERA_SNITCH_LOG_FORMAT: str = os.environ.get("CAMERA_SNITCH_LOG_FORMAT", "human")  # "json", "human", or "both"
CAMERA_SNITCH_LOG_JSON_FILE: str = os.environ.get("CAMERA_SNITCH_LOG_JSON_FILE", "/var/log/camera_snitch.json")
CAMERA_SNITCH_LOG_HUMAN_OUTPUT: str = os.environ.get("CAMERA_SNITCH_LOG_HUMAN_OUTPUT", "stdout")
CAMERA_SNITCH_LOG_CORRELATION_ENABLED: bool = (
    os.environ.get("CAMERA_SNITCH_LOG_CORRELATION_ENABLED", "true").casefold() in YES_ANSWER
)

# Broker defaults
DEFAULT_MQTT_HOST = "localhost"
DEFAULT_MQTT_PORT = 1883
DEFAULT_CLIENT_ID = "camera-snitch"
DEFAULT_KEEPALIVE = 30
DEFAULT_THROTTLE_INTERVAL = 0.1
DEFAULT_MQTT_CONN_DELAY = 10

# Home Assistant discovery defaults
DEFAULT_HASS_TOPIC = "homeassistant"
DEFAULT_OBJECT_ID = "officecamera"
DEFAULT_NAME = "OfficeCamera"
DEFAULT_DEVICE_NAME = "Office Camera"
DEFAULT_DEVICE_CLASS = "connectivity"
MANUFACTURER = "camera-snitch"
MODEL = "Custom Binary Sensor"
PAYLOAD_ON = "ON"
PAYLOAD_OFF = "OFF"
HASS_BIRTH_MSG = "online"
DEVICE_ONLINE_MSG = "online"
DEVICE_LWT_MSG = "offline"

# Detection defaults
DEFAULT_DETECTOR = "watch"
DEFAULT_DEVICE_GLOB = "/dev/video*"
DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_IDLE_INTERVAL = 5.0
DEFAULT_POLL_INTERVAL = 5.0

COORDINATOR_TASK_NAME = "Coordinator_RUN"
