"""Polling detection: ask lsof which processes hold a device node open.

Inferior to :mod:`camera_snitch.detectors.watch`: an open shorter than the
poll interval goes unnoticed. Kept for systems without inotify.
"""

from __future__ import annotations

import asyncio
import shutil

from camera_snitch.detectors.base import find_devices
from camera_snitch.exceptions import DetectorError
from camera_snitch.logging_abstraction import get_logger
from camera_snitch.structs import CameraState, RawSignal

logger = get_logger(__name__)


class PollDetector:
    """Runs ``lsof -t <devices>`` every ``interval`` seconds.

    Any PID in the output means ON. A failed lsof run is logged and retried at
    the next interval rather than ending the process.
    """

    lp: str = "detector:poll:"
    name: str = "poll"

    def __init__(self, device_glob: str, interval: float, lsof: str = "lsof") -> None:
        self.device_glob: str = device_glob
        self.interval: float = interval
        self.lsof: str = lsof
        self._polled_once: bool = False

    async def start(self) -> None:
        lp = f"{self.lp}start:"
        if shutil.which(self.lsof) is None:
            logger.warning("%s %s not found on PATH, every poll will fail until it is installed", lp, self.lsof)
        logger.info("%s Polling %s every %ss", lp, self.device_glob, self.interval)

    async def next_signal(self) -> RawSignal:
        lp = f"{self.lp}next:"
        while True:
            if self._polled_once:
                await asyncio.sleep(self.interval)
            self._polled_once = True
            try:
                state = await self.check_camera_state()
            except DetectorError as exc:
                logger.warning("%s %s, retrying in %ss", lp, exc, self.interval)
                continue
            return RawSignal.now(state)

    async def check_camera_state(self) -> CameraState:
        """Run lsof once against the matching device nodes.

        Raises:
            DetectorError: lsof could not be run or did not finish in time

        """
        lp = f"{self.lp}check:"
        paths = find_devices(self.device_glob)
        if not paths:
            return CameraState.OFF

        try:
            proc = await asyncio.create_subprocess_exec(
                self.lsof,
                "-t",
                *paths,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise DetectorError(self.name, f"could not run {self.lsof}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.interval)
        except TimeoutError as exc:
            proc.kill()
            _ = await proc.wait()
            raise DetectorError(self.name, f"{self.lsof} did not finish within {self.interval}s") from exc

        pids = stdout.decode(errors="replace").split()
        logger.debug(
            "%s lsof exit=%s",
            lp,
            proc.returncode,
            extra={"pids": ",".join(pids) or "-", "stderr": stderr.decode(errors="replace").strip() or "-"},
        )
        return CameraState.ON if pids else CameraState.OFF

    def close(self) -> None:
        pass
