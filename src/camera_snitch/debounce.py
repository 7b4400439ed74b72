"""Debounce raw detector signals into confirmed camera state transitions.

Opening a capture device tends to come with a burst of open/close pairs within
milliseconds (the driver probing formats, a browser enumerating cameras). A
transition is only confirmed once the window has elapsed since the previous
confirmed transition and the candidate differs from the confirmed state.
"""

from __future__ import annotations

from camera_snitch.logging_abstraction import get_logger
from camera_snitch.structs import CameraState, DebounceState, RawSignal

logger = get_logger(__name__)


def decide(
    candidate: CameraState,
    elapsed: float,
    window: float,
    stable_state: CameraState,
) -> CameraState | None:
    """Return ``candidate`` if it should become the confirmed state, else None."""
    if candidate == stable_state:
        return None
    if elapsed < window:
        return None
    return candidate


class Debouncer:
    """Feeds signals through :func:`decide` and tracks the unconfirmed tail of a burst.

    ``pending`` holds the latest candidate that differed from the confirmed state
    but arrived inside the window. The coordinator re-submits it with
    :meth:`flush` once the window has run out, so the final state of a burst is
    not lost when no further device events follow.
    """

    lp: str = "debounce:"

    def __init__(self) -> None:
        self.pending: RawSignal | None = None

    def feed(self, state: DebounceState, signal: RawSignal) -> CameraState | None:
        """Apply one signal; on confirmation update ``state`` and return the new state."""
        lp = f"{self.lp}feed:"
        elapsed = signal.observed_at - state.last_transition_at
        confirmed = decide(signal.state, elapsed, state.window, state.stable_state)

        if confirmed is not None:
            logger.debug(
                "%s confirmed %s -> %s after %.3fs",
                lp,
                state.stable_state,
                confirmed,
                elapsed,
            )
            state.stable_state = confirmed
            state.last_transition_at = signal.observed_at
            self.pending = None
        elif signal.state == state.stable_state:
            self.pending = None
        else:
            logger.debug(
                "%s holding %s, %.3fs left in window",
                lp,
                signal.state,
                state.window - elapsed,
            )
            self.pending = signal
        return confirmed

    def flush(self, state: DebounceState, now: float) -> CameraState | None:
        """Re-evaluate the pending candidate as if it had been observed at ``now``."""
        if self.pending is None:
            return None
        return self.feed(state, RawSignal(state=self.pending.state, observed_at=now))

    def seconds_until_due(self, state: DebounceState, now: float) -> float | None:
        """Seconds until the pending candidate could be confirmed, or None if nothing is pending."""
        if self.pending is None:
            return None
        return max(0.0, state.window - (now - state.last_transition_at))
