"""Tests for the tracked background task set."""

import asyncio
import logging

from lectio.services.background import BackgroundTaskSet


async def _fail():
    raise RuntimeError("profile upsert failed")


class TestBackgroundTaskSet:
    async def test_finished_task_is_released(self):
        tasks = BackgroundTaskSet()

        task = tasks.spawn(asyncio.sleep(0), name="insights-done")
        assert len(tasks) == 1
        await task

        assert len(tasks) == 0

    async def test_failed_task_is_logged(self, caplog):
        tasks = BackgroundTaskSet()

        with caplog.at_level(logging.ERROR, logger="lectio.services.background"):
            tasks.spawn(_fail(), name="insights-broken")
            await tasks.drain(timeout=1)

        assert len(tasks) == 0
        assert "Background task insights-broken failed" in caplog.text
        assert "profile upsert failed" in caplog.text

    async def test_drain_cancels_tasks_past_the_timeout(self, caplog):
        tasks = BackgroundTaskSet()
        finished = tasks.spawn(asyncio.sleep(0), name="quick")
        stuck = tasks.spawn(asyncio.sleep(10), name="stuck")

        with caplog.at_level(logging.INFO, logger="lectio.services.background"):
            await tasks.drain(timeout=0.05)

        assert finished.done() and not finished.cancelled()
        assert stuck.cancelled()
        assert len(tasks) == 0
        assert "Waiting for 2 background task(s)" in caplog.text
        assert "Cancelled 1 background task(s) still running at shutdown" in caplog.text
        assert "Background task stuck failed" not in caplog.text

    async def test_drain_with_nothing_running(self, caplog):
        tasks = BackgroundTaskSet()

        with caplog.at_level(logging.INFO, logger="lectio.services.background"):
            await tasks.drain(timeout=0)

        assert "Waiting for" not in caplog.text
