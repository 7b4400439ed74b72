"""
Unit tests for PollDetector.

asyncio.create_subprocess_exec is patched so no lsof binary is needed.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from camera_snitch.detectors.poll import PollDetector
from camera_snitch.exceptions import DetectorError
from camera_snitch.structs import CameraState

DEVICES = ["/dev/video0", "/dev/video1"]


def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.wait = AsyncMock(return_value=returncode)
    proc.kill = MagicMock()
    proc.returncode = returncode
    return proc


class TestCheckCameraState:
    """Tests for PollDetector.check_camera_state"""

    @pytest.mark.asyncio
    async def test_no_devices_is_off_without_running_lsof(self):
        detector = PollDetector("/dev/video*", interval=0.05)
        with (
            patch("camera_snitch.detectors.poll.find_devices", return_value=[]),
            patch("camera_snitch.detectors.poll.asyncio.create_subprocess_exec") as mock_exec,
        ):
            state = await detector.check_camera_state()

        assert state is CameraState.OFF
        mock_exec.assert_not_called()

    @pytest.mark.asyncio
    async def test_pids_in_output_is_on(self):
        detector = PollDetector("/dev/video*", interval=0.05)
        proc = make_process(stdout=b"4242\n4243\n")
        with (
            patch("camera_snitch.detectors.poll.find_devices", return_value=DEVICES),
            patch(
                "camera_snitch.detectors.poll.asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                return_value=proc,
            ) as mock_exec,
        ):
            state = await detector.check_camera_state()

        assert state is CameraState.ON
        assert mock_exec.await_args.args == ("lsof", "-t", *DEVICES)

    @pytest.mark.asyncio
    async def test_empty_output_is_off(self):
        """lsof exits 1 with no output when nothing holds the files open"""
        detector = PollDetector("/dev/video*", interval=0.05)
        proc = make_process(stdout=b"", returncode=1)
        with (
            patch("camera_snitch.detectors.poll.find_devices", return_value=DEVICES),
            patch(
                "camera_snitch.detectors.poll.asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                return_value=proc,
            ),
        ):
            state = await detector.check_camera_state()

        assert state is CameraState.OFF

    @pytest.mark.asyncio
    async def test_missing_lsof_raises_detector_error(self):
        detector = PollDetector("/dev/video*", interval=0.05, lsof="no-such-lsof")
        with (
            patch("camera_snitch.detectors.poll.find_devices", return_value=DEVICES),
            patch(
                "camera_snitch.detectors.poll.asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                side_effect=FileNotFoundError(2, "No such file or directory"),
            ),
            pytest.raises(DetectorError) as exc_info,
        ):
            _ = await detector.check_camera_state()

        assert exc_info.value.detector == "poll"
        assert "no-such-lsof" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_slow_lsof_is_killed(self):
        detector = PollDetector("/dev/video*", interval=0.01)
        proc = make_process()

        async def hang():
            await asyncio.sleep(10)

        proc.communicate = AsyncMock(side_effect=hang)
        with (
            patch("camera_snitch.detectors.poll.find_devices", return_value=DEVICES),
            patch(
                "camera_snitch.detectors.poll.asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                return_value=proc,
            ),
            pytest.raises(DetectorError, match="did not finish"),
        ):
            _ = await detector.check_camera_state()

        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()


class TestNextSignal:
    """Tests for PollDetector.next_signal"""

    @pytest.mark.asyncio
    async def test_first_poll_is_immediate(self):
        detector = PollDetector("/dev/video*", interval=60)
        with (
            patch.object(detector, "check_camera_state", new_callable=AsyncMock, return_value=CameraState.ON),
            patch("camera_snitch.detectors.poll.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            signal = await detector.next_signal()

        assert signal.state is CameraState.ON
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_later_polls_wait_for_interval(self):
        detector = PollDetector("/dev/video*", interval=5)
        with (
            patch.object(detector, "check_camera_state", new_callable=AsyncMock, return_value=CameraState.OFF),
            patch("camera_snitch.detectors.poll.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            _ = await detector.next_signal()
            _ = await detector.next_signal()

        mock_sleep.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_failed_poll_is_retried(self):
        """A transient lsof failure is logged and the next interval tries again"""
        detector = PollDetector("/dev/video*", interval=5)
        check = AsyncMock(side_effect=[DetectorError("poll", "could not run lsof"), CameraState.ON])
        with (
            patch.object(detector, "check_camera_state", check),
            patch("camera_snitch.detectors.poll.asyncio.sleep", new_callable=AsyncMock),
            patch("camera_snitch.detectors.poll.logger") as mock_logger,
        ):
            signal = await detector.next_signal()

        assert signal.state is CameraState.ON
        assert check.await_count == 2
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_start_warns_when_lsof_missing(self):
        detector = PollDetector("/dev/video*", interval=5, lsof="no-such-lsof")
        with (
            patch("camera_snitch.detectors.poll.shutil.which", return_value=None),
            patch("camera_snitch.detectors.poll.logger") as mock_logger,
        ):
            await detector.start()

        mock_logger.warning.assert_called_once()
