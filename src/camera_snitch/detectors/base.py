"""The detector interface shared by the watch and poll strategies."""

from __future__ import annotations

import glob
from typing import Protocol, runtime_checkable

from camera_snitch.structs import RawSignal


@runtime_checkable
class StateDetector(Protocol):
    """Produces raw camera state candidates.

    ``next_signal`` suspends until the next candidate is available. Transient
    failures are handled inside the detector; only a
    :class:`~camera_snitch.exceptions.DetectorInitError` from ``start`` is fatal.
    """

    name: str

    async def start(self) -> None:
        """Set up the detection mechanism."""
        ...

    async def next_signal(self) -> RawSignal:
        """Wait for and return the next candidate."""
        ...

    def close(self) -> None:
        """Release OS resources."""
        ...


def find_devices(pattern: str) -> list[str]:
    """Device nodes matching ``pattern``, sorted. An empty list is a normal result."""
    return sorted(glob.glob(pattern))
