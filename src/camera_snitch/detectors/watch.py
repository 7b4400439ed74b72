"""Event-driven detection via inotify open/close events on the device nodes."""

from __future__ import annotations

import asyncio
import time

from inotify_simple import INotify, flags

from camera_snitch.detectors.base import find_devices
from camera_snitch.exceptions import DetectorInitError
from camera_snitch.logging_abstraction import get_logger
from camera_snitch.structs import CameraState, RawSignal

logger = get_logger(__name__)

WATCH_FLAGS = flags.OPEN | flags.CLOSE_WRITE | flags.CLOSE_NOWRITE
CLOSE_FLAGS = flags.CLOSE_WRITE | flags.CLOSE_NOWRITE


def state_for_mask(mask: int) -> CameraState | None:
    """Map an inotify event mask to a candidate state (None for events we don't track)."""
    if mask & flags.OPEN:
        return CameraState.ON
    if mask & CLOSE_FLAGS:
        return CameraState.OFF
    return None


class WatchDetector:
    """Watches every node matching the glob for OPEN and CLOSE_(NO)WRITE.

    The inotify descriptor is registered with the running event loop, so
    waiting for activity is an ordinary suspension point. Matching zero nodes
    is allowed: the detector then simply never produces a signal.
    """

    lp: str = "detector:watch:"
    name: str = "watch"

    def __init__(self, device_glob: str) -> None:
        self.device_glob: str = device_glob
        self.inotify: INotify | None = None
        self.watches: dict[int, str] = {}
        self._signals: asyncio.Queue[RawSignal] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None

    async def start(self) -> None:
        lp = f"{self.lp}start:"
        try:
            self.inotify = INotify()
        except OSError as exc:
            raise DetectorInitError(self.name, f"could not create inotify instance: {exc}") from exc

        for path in find_devices(self.device_glob):
            try:
                wd = self.inotify.add_watch(path, WATCH_FLAGS)
            except OSError as exc:
                logger.warning("%s Cannot watch %s: %s", lp, path, exc)
                continue
            self.watches[wd] = path

        if self.watches:
            logger.info(
                "%s Watching %d device(s)",
                lp,
                len(self.watches),
                extra={"devices": ", ".join(self.watches.values())},
            )
        else:
            logger.warning(
                "%s No devices match %s, camera will be reported OFF",
                lp,
                self.device_glob,
            )

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(self.inotify.fileno(), self._on_readable)

    def _on_readable(self) -> None:
        lp = f"{self.lp}read:"
        assert self.inotify is not None, "inotify must be initialized"
        try:
            events = self.inotify.read(timeout=0)
        except OSError as exc:
            logger.warning("%s inotify read failed, will retry on next event: %s", lp, exc)
            return

        observed_at = time.monotonic()
        for event in events:
            if event.mask & flags.IGNORED:
                path = self.watches.pop(event.wd, None)
                logger.info("%s Watch on %s was removed (device gone?)", lp, path)
                continue
            state = state_for_mask(event.mask)
            if state is None:
                continue
            logger.debug(
                "%s %s on %s",
                lp,
                "open" if state is CameraState.ON else "close",
                self.watches.get(event.wd, event.wd),
            )
            self._signals.put_nowait(RawSignal(state=state, observed_at=observed_at))

    async def next_signal(self) -> RawSignal:
        return await self._signals.get()

    def close(self) -> None:
        if self.inotify is None:
            return
        if self._loop is not None and not self._loop.is_closed():
            _ = self._loop.remove_reader(self.inotify.fileno())
        self.inotify.close()
        self.inotify = None
        self.watches.clear()
