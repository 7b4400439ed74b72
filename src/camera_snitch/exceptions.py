"""Exception hierarchy for camera-snitch.

Startup errors (``ConfigError``, ``DetectorInitError``) abort the process.
Everything else, including ``BrokerConnectionError``, is logged by the
coordinator and retried or absorbed.
"""

from __future__ import annotations


class CameraSnitchError(Exception):
    """Base class for all camera-snitch errors."""


class ConfigError(CameraSnitchError):
    """Configuration could not be parsed or failed validation.

    Attributes:
        reason: Human readable description of what was rejected

    """

    def __init__(self, reason: str) -> None:
        """Initialize config error with reason."""
        self.reason: str = reason
        super().__init__(f"Invalid configuration: {reason}")


class DetectorError(CameraSnitchError):
    """A state detector could not produce a signal.

    Attributes:
        detector: Name of the detector strategy that failed
        reason: Specific failure reason

    """

    def __init__(self, detector: str, reason: str) -> None:
        """Initialize detector error with strategy name and reason."""
        self.detector: str = detector
        self.reason: str = reason
        super().__init__(f"{detector} detector failed: {reason}")


class DetectorInitError(DetectorError):
    """The detection mechanism itself could not be set up (fatal).

    Raised when:
    - The inotify instance cannot be created
    - The configured detector strategy is unknown

    """


class BrokerConnectionError(CameraSnitchError):
    """Connecting to the MQTT broker failed.

    Attributes:
        host: Broker host
        port: Broker port
        reason: Error reported by the MQTT client

    """

    def __init__(self, host: str, port: int, reason: str) -> None:
        """Initialize connection error with broker address and reason."""
        self.host: str = host
        self.port: int = port
        self.reason: str = reason
        super().__init__(f"Could not connect to MQTT broker {host}:{port}: {reason}")
