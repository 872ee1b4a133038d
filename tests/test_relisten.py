"""
Tests for the relisten timer and scheduler.
"""

import asyncio

import pytest

from jarvis_framework.utils.relisten import RelistenScheduler


class TestRelistenScheduler:

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        fired = []

        async def callback(timer):
            fired.append(timer)

        scheduler = RelistenScheduler(0.01)
        timer = scheduler.arm(callback)
        assert scheduler.is_armed

        await asyncio.sleep(0.05)

        assert fired == [timer]
        assert timer.fired
        assert not scheduler.is_armed

    @pytest.mark.asyncio
    async def test_cancel_prevents_firing(self):
        fired = []

        async def callback(timer):
            fired.append(timer)

        scheduler = RelistenScheduler(0.01)
        timer = scheduler.arm(callback)

        assert scheduler.cancel() is True
        assert scheduler.cancel() is False
        await asyncio.sleep(0.05)

        assert fired == []
        assert timer.cancelled

    @pytest.mark.asyncio
    async def test_rearm_replaces_previous(self):
        fired = []

        async def callback(timer):
            fired.append(timer)

        scheduler = RelistenScheduler(0.01)
        first = scheduler.arm(callback)
        second = scheduler.arm(callback)
        await asyncio.sleep(0.05)

        assert first.cancelled
        assert fired == [second]
        assert scheduler.current is second

    @pytest.mark.asyncio
    async def test_cancel_after_fire_marks_timer(self):
        """Cancelling a fired timer still flags it, so a late callback can tell."""
        async def callback(timer):
            pass

        scheduler = RelistenScheduler(0)
        timer = scheduler.arm(callback)
        await asyncio.sleep(0.01)
        assert timer.fired

        assert timer.cancel() is True
        assert timer.cancelled
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_callback_runs_in_owner_task(self):
        """An owner-supplied spawner receives the callback so it can cancel it."""
        spawned = []

        def spawn(coro):
            task = asyncio.ensure_future(coro)
            spawned.append(task)
            return task

        started = asyncio.Event()
        gate = asyncio.Event()

        async def callback(timer):
            started.set()
            await gate.wait()

        scheduler = RelistenScheduler(0, spawn=spawn)
        scheduler.arm(callback)
        await asyncio.wait_for(started.wait(), timeout=1)

        assert len(spawned) == 1
        spawned[0].cancel()
        with pytest.raises(asyncio.CancelledError):
            await spawned[0]

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            RelistenScheduler(-1)
