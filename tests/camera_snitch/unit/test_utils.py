import asyncio
import signal

import pytest

from camera_snitch.utils import signal_handler


class TestSignalHandler:
    @pytest.mark.asyncio
    async def test_cancels_running_task(self):
        task = asyncio.create_task(asyncio.sleep(10), name="Coordinator_RUN")

        signal_handler(signal.SIGTERM, task)

        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_finished_task_is_left_alone(self):
        task = asyncio.create_task(asyncio.sleep(0))
        await task

        signal_handler(signal.SIGINT, task)

        assert not task.cancelled()
