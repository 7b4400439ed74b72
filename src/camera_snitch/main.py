"""Command line entry point for the camera-snitch daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import dotenv
import uvloop

from camera_snitch.const import CAMERA_SNITCH_DEBUG, CAMERA_SNITCH_VERSION, COORDINATOR_TASK_NAME
from camera_snitch.coordinator import Coordinator
from camera_snitch.correlation import correlation_context
from camera_snitch.detectors import build_detector
from camera_snitch.exceptions import CameraSnitchError
from camera_snitch.logging_abstraction import get_logger, quiet_foreign_loggers, set_global_level
from camera_snitch.mqtt import BrokerPublisher, build_discovery_descriptor
from camera_snitch.structs import SnitchEnv
from camera_snitch.utils import install_signal_handlers

logger = get_logger(__name__)


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="camera-snitch",
        description="Report webcam usage to Home Assistant over MQTT",
    )
    _ = parser.add_argument("--mqtt-host", dest="mqtt_host", help="MQTT broker host")
    _ = parser.add_argument("--mqtt-port", dest="mqtt_port", type=int, help="MQTT broker port")
    _ = parser.add_argument(
        "--detector",
        choices=("watch", "poll"),
        help="watch: inotify on the device nodes (default), poll: periodic lsof",
    )
    _ = parser.add_argument("--device-glob", dest="device_glob", help="Device nodes to watch (default /dev/video*)")
    _ = parser.add_argument("--debounce", type=float, help="Seconds a new state must wait after the last change")
    _ = parser.add_argument(
        "--loop-duration",
        dest="poll_interval",
        type=float,
        help="Seconds between polls for the poll detector",
    )
    _ = parser.add_argument("--env", help="Path to an environment file", default=None, type=Path)
    _ = parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {CAMERA_SNITCH_VERSION}")
    return parser.parse_args(argv)


def load_env_file(env_file: Path) -> bool:
    """Load ``env_file`` into os.environ. Returns False if nothing was loaded."""
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return False
    loaded_any = dotenv.load_dotenv(env_path, override=True)
    if loaded_any:
        logger.info("Environment variables loaded", extra={"source": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})
    return loaded_any


def build_env(args: argparse.Namespace) -> SnitchEnv:
    """Environment settings with CLI flags layered on top.

    Raises:
        ConfigError: a value failed validation

    """
    overrides = {
        "mqtt_host": args.mqtt_host,
        "mqtt_port": args.mqtt_port,
        "detector": args.detector,
        "device_glob": args.device_glob,
        "debounce": args.debounce,
        "poll_interval": args.poll_interval,
    }
    return SnitchEnv.from_environ(overrides=overrides)


async def run_daemon(env: SnitchEnv) -> None:
    """Run the coordinator until SIGINT/SIGTERM."""
    detector = build_detector(env)
    publisher = BrokerPublisher(env, build_discovery_descriptor(env))
    coordinator = Coordinator(env, detector, publisher)

    task = asyncio.create_task(coordinator.run(), name=COORDINATOR_TASK_NAME)
    install_signal_handlers(asyncio.get_running_loop(), task)
    try:
        await task
    except asyncio.CancelledError:
        if not task.cancelled():
            raise
        logger.info("camera-snitch cancelled, shutting down...")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``camera-snitch`` console script."""
    with correlation_context():
        logger.info("Starting camera-snitch", extra={"version": CAMERA_SNITCH_VERSION})
        args = parse_cli(argv)
        quiet_foreign_loggers()

        if args.env:
            _ = load_env_file(args.env)
        if args.debug or CAMERA_SNITCH_DEBUG:
            set_global_level(logging.DEBUG)
            logger.info("Debug logging enabled")

        loop = uvloop.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            env = build_env(args)
            logger.info(
                "Configuration loaded",
                extra={
                    "mqtt_host": env.mqtt_host,
                    "mqtt_port": env.mqtt_port,
                    "detector": env.detector,
                    "debounce": env.debounce,
                },
            )
            loop.run_until_complete(run_daemon(env))
        except CameraSnitchError as e:
            logger.exception("Fatal startup error", extra={"error": str(e)})
            return 1
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        finally:
            loop.close()
            logger.info("camera-snitch shutdown complete")
        return 0
