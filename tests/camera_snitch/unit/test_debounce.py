"""
Unit tests for the debouncer.

Covers the pure decide() gate and the Debouncer's handling of bursts,
repeated signals and the pending tail of a burst.
"""

import pytest

from camera_snitch.debounce import Debouncer, decide
from camera_snitch.structs import CameraState, DebounceState, RawSignal

ON = CameraState.ON
OFF = CameraState.OFF
WINDOW = 0.3


def signal(state: CameraState, at: float) -> RawSignal:
    return RawSignal(state=state, observed_at=at)


class TestDecide:
    """Tests for the decide() gate"""

    def test_confirms_when_window_elapsed_and_state_differs(self):
        assert decide(ON, elapsed=0.3, window=WINDOW, stable_state=OFF) is ON

    def test_rejects_inside_window(self):
        assert decide(ON, elapsed=0.29, window=WINDOW, stable_state=OFF) is None

    @pytest.mark.parametrize("elapsed", [0.0, 0.3, 3600.0])
    def test_rejects_same_state_regardless_of_elapsed(self, elapsed):
        assert decide(OFF, elapsed=elapsed, window=WINDOW, stable_state=OFF) is None

    def test_zero_window_confirms_immediately(self):
        assert decide(OFF, elapsed=0.0, window=0.0, stable_state=ON) is OFF


class TestDebouncerFeed:
    """Tests for Debouncer.feed"""

    def test_first_signal_after_initial_state_confirms(self):
        """Initial state pretends a window has passed, so the first ON publishes at once"""
        state = DebounceState.initial(WINDOW)
        debouncer = Debouncer()

        assert debouncer.feed(state, signal(ON, 100.0)) is ON
        assert state.stable_state is ON
        assert state.last_transition_at == 100.0

    def test_burst_inside_window_yields_no_transition(self):
        """On@0, Off@50ms, On@120ms right after a transition to Off"""
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=0.0)
        debouncer = Debouncer()

        results = [debouncer.feed(state, signal(s, t)) for s, t in [(ON, 0.0), (OFF, 0.05), (ON, 0.12)]]

        assert results == [None, None, None]
        assert state.stable_state is OFF
        assert state.last_transition_at == 0.0
        assert debouncer.pending == signal(ON, 0.12)

    def test_burst_tail_confirms_once_window_elapses(self):
        """Exactly one ON once the window has passed"""
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=0.0)
        debouncer = Debouncer()
        for s, t in [(ON, 0.0), (OFF, 0.05), (ON, 0.12)]:
            _ = debouncer.feed(state, signal(s, t))

        assert debouncer.flush(state, now=0.2) is None
        assert debouncer.flush(state, now=0.3) is ON
        assert debouncer.flush(state, now=0.6) is None
        assert state.stable_state is ON
        assert debouncer.pending is None

    def test_burst_ending_on_confirmed_state_clears_pending(self):
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=0.0)
        debouncer = Debouncer()
        _ = debouncer.feed(state, signal(ON, 0.05))
        _ = debouncer.feed(state, signal(OFF, 0.1))

        assert debouncer.pending is None
        assert debouncer.flush(state, now=1.0) is None
        assert state.stable_state is OFF

    def test_same_state_does_not_reset_timer(self):
        """Prior Off, signal Off -> no publish, no timer reset"""
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=5.0)
        debouncer = Debouncer()

        assert debouncer.feed(state, signal(OFF, 50.0)) is None
        assert state.last_transition_at == 5.0

    def test_repeated_signals_confirm_only_once(self):
        """Holding ON for many windows never re-announces ON"""
        state = DebounceState.initial(WINDOW)
        debouncer = Debouncer()

        confirmed = [debouncer.feed(state, signal(ON, t * WINDOW)) for t in range(50)]

        assert confirmed.count(ON) == 1
        assert confirmed[0] is ON

    def test_at_most_one_transition_per_window(self):
        state = DebounceState.initial(WINDOW)
        debouncer = Debouncer()
        timeline = [(ON, 0.0), (OFF, 0.1), (ON, 0.15), (OFF, 0.2), (ON, 0.25), (OFF, 0.31), (ON, 0.4)]

        confirmed = [c for s, t in timeline if (c := debouncer.feed(state, signal(s, t))) is not None]

        assert confirmed == [ON, OFF]
        assert state.last_transition_at == 0.31


class TestSecondsUntilDue:
    """Tests for Debouncer.seconds_until_due"""

    def test_none_without_pending(self):
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=0.0)
        assert Debouncer().seconds_until_due(state, now=0.1) is None

    def test_remaining_window_with_pending(self):
        state = DebounceState(window=WINDOW, stable_state=OFF, last_transition_at=0.0)
        debouncer = Debouncer()
        _ = debouncer.feed(state, signal(ON, 0.1))

        assert debouncer.seconds_until_due(state, now=0.1) == pytest.approx(0.2)
        assert debouncer.seconds_until_due(state, now=5.0) == 0.0
