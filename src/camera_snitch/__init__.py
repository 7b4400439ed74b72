"""Report webcam usage to Home Assistant over MQTT."""

__version__ = "0.2.0"
