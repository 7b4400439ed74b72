"""Camera state detectors.

- watch.py: inotify OPEN / CLOSE events on the device nodes (default)
- poll.py: periodic ``lsof`` over the device nodes
"""

from camera_snitch.detectors.base import StateDetector, find_devices
from camera_snitch.detectors.poll import PollDetector
from camera_snitch.detectors.watch import WatchDetector
from camera_snitch.exceptions import DetectorInitError
from camera_snitch.structs import SnitchEnv

__all__ = [
    "PollDetector",
    "StateDetector",
    "WatchDetector",
    "build_detector",
    "find_devices",
]


def build_detector(env: SnitchEnv) -> StateDetector:
    """Instantiate the detector strategy selected by ``env.detector``."""
    if env.detector == "watch":
        return WatchDetector(env.device_glob)
    if env.detector == "poll":
        return PollDetector(env.device_glob, env.poll_interval)
    raise DetectorInitError(str(env.detector), "unknown detector strategy")
