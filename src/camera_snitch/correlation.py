"""
Correlation IDs for following one detection through the pipeline.

Every confirmed transition (and the process lifecycle itself) runs inside a
correlation scope, so the detector, debounce and publish log lines for the same
camera change share an ID. Backed by contextvars, so it is safe across awaits.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "camera_snitch_correlation_id",
    default=None,
)


def generate_correlation_id(prefix: str | None = None) -> str:
    """
    Generate a new correlation ID.

    Args:
        prefix: Optional tag prepended as ``<prefix>-`` (e.g. ``"on"`` for a transition to ON)

    Returns:
        UUID4 hex string, optionally prefixed
    """
    corr_id = uuid.uuid4().hex
    return f"{prefix}-{corr_id}" if prefix else corr_id


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    prefix: str | None = None,
) -> Generator[str, None, None]:
    """
    Scope a correlation ID, restoring the previous one on exit.

    Args:
        correlation_id: Specific ID to use (None to generate one)
        prefix: Prefix for a generated ID

    Yields:
        The correlation ID active inside the block
    """
    token = _correlation_id.set(correlation_id or generate_correlation_id(prefix))
    try:
        yield _correlation_id.get() or ""
    finally:
        _correlation_id.reset(token)
