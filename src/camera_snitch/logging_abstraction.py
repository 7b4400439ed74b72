"""Logging for camera-snitch.

Human-readable lines on stdout (or stderr / a file), optionally mirrored as
JSON lines to a file. Every record carries the current correlation ID and any
structured context passed through ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from typing_extensions import override

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "SnitchLogger",
    "get_logger",
    "quiet_foreign_loggers",
    "set_global_level",
]

_NO_CORRELATION = "[------------]"


def _context_of(record: logging.LogRecord) -> Mapping[str, object] | None:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        return cast("Mapping[str, object]", extra_data)
    return None


def _correlation_of_current_context() -> str | None:
    # Imported lazily so const/correlation can log at import time
    from camera_snitch.const import CAMERA_SNITCH_LOG_CORRELATION_ENABLED
    from camera_snitch.correlation import get_correlation_id

    if not CAMERA_SNITCH_LOG_CORRELATION_ENABLED:
        return None
    return get_correlation_id()


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": _correlation_of_current_context(),
        }

        context = _context_of(record)
        if context:
            log_data["context"] = dict(context)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``timestamp level [module:line] [corr] > message | key=value``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = _correlation_of_current_context()
        record.correlation_id = f"[{correlation_id[-12:]}]" if correlation_id else _NO_CORRELATION

        formatted = super().format(record)
        context = _context_of(record)
        if context:
            formatted = f"{formatted} | " + " | ".join(f"{k}={v}" for k, v in context.items())
        return formatted


class SnitchLogger:
    """Thin wrapper over :class:`logging.Logger` that accepts structured context.

    ``logger.info("published", extra={"topic": t})`` attaches ``topic`` to the
    record; the formatters render it as ``| topic=...`` or as a JSON ``context``
    object.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        """Initialize SnitchLogger.

        Args:
            name: Logger name (typically module name)
            log_format: "json", "human", or "both"
            json_file: Path for JSON output (None disables it)
            human_output: "stdout", "stderr", or a file path

        """
        from camera_snitch.const import CAMERA_SNITCH_DEBUG

        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format
        self.logger.setLevel(logging.DEBUG if CAMERA_SNITCH_DEBUG else logging.INFO)
        self.logger.propagate = False

        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(self, json_file: str | Path | None, human_output: str | None) -> None:
        level = self.logger.level

        if self.log_format in ("json", "both") and json_file:
            try:
                json_path = Path(json_file)
                json_path.parent.mkdir(parents=True, exist_ok=True)
                json_handler = logging.FileHandler(json_path, mode="a")
            except OSError as e:
                print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
            else:
                json_handler.setFormatter(JSONFormatter())
                json_handler.setLevel(level)
                self.logger.addHandler(json_handler)

        if self.log_format in ("human", "both"):
            target = human_output or "stdout"
            human_handler: logging.Handler
            if target == "stdout":
                human_handler = logging.StreamHandler(sys.stdout)
            elif target == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(target)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {target}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stdout)

            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(level)
            self.logger.addHandler(human_handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=payload)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        payload = {"extra_data": dict(extra)} if extra else None
        self.logger.exception(msg, *args, extra=payload)

    def set_level(self, level: int) -> None:
        """Set the level of the logger and all of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


_loggers: dict[str, SnitchLogger] = {}


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> SnitchLogger:
    """Get or create the SnitchLogger for ``name``.

    Unset arguments fall back to the CAMERA_SNITCH_LOG_* environment settings.
    """
    if name in _loggers:
        return _loggers[name]

    from camera_snitch.const import (
        CAMERA_SNITCH_LOG_FORMAT,
        CAMERA_SNITCH_LOG_HUMAN_OUTPUT,
        CAMERA_SNITCH_LOG_JSON_FILE,
    )

    _loggers[name] = snitch_logger = SnitchLogger(
        name=name,
        log_format=log_format or CAMERA_SNITCH_LOG_FORMAT,
        json_file=json_file or CAMERA_SNITCH_LOG_JSON_FILE,
        human_output=human_output or CAMERA_SNITCH_LOG_HUMAN_OUTPUT,
    )
    return snitch_logger


def set_global_level(level: int) -> None:
    """Apply ``level`` to every SnitchLogger created so far."""
    for snitch_logger in _loggers.values():
        snitch_logger.set_level(level)


def quiet_foreign_loggers() -> None:
    """Silence chatty third-party loggers (the MQTT client logs every packet at DEBUG)."""
    for name in ("mqtt", "aiomqtt"):
        foreign = logging.getLogger(name)
        foreign.setLevel(logging.ERROR)
        foreign.propagate = False
