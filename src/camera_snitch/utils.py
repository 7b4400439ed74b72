"""Process signal handling."""

from __future__ import annotations

import asyncio
import signal

from camera_snitch.logging_abstraction import get_logger

logger = get_logger(__name__)


def signal_handler(signum: int, task: asyncio.Task[None]) -> None:
    """Cancel the coordinator task; its cleanup publishes ``offline`` and disconnects."""
    logger.info("camera-snitch: Intercepted signal: %s (%s)", signal.Signals(signum).name, signum)
    if not task.done():
        logger.debug("camera-snitch: Cancelling task: %s", task.get_name())
        _ = task.cancel()


def install_signal_handlers(loop: asyncio.AbstractEventLoop, task: asyncio.Task[None]) -> None:
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, signal_handler, signum, task)
    logger.debug("Signal handlers configured for SIGINT & SIGTERM")
