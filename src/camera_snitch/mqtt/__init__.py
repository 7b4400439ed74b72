"""MQTT side of camera-snitch.

- client.py: BrokerPublisher, the single broker connection
- discovery.py: Home Assistant discovery descriptor
"""

from .client import BrokerPublisher
from .discovery import build_discovery_descriptor, serialize_descriptor

__all__ = [
    "BrokerPublisher",
    "build_discovery_descriptor",
    "serialize_descriptor",
]
