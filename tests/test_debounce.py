"""Tests for the trailing-edge debouncer."""

import asyncio

import pytest

from bunchy.debounce import Debouncer, State

WAIT = 0.05


class TestDebouncer:
    @pytest.mark.asyncio
    async def test_burst_collapses_into_one_call(self):
        received = []

        async def func(value):
            received.append(value)

        debouncer = Debouncer(func, WAIT)
        for value in range(5):
            debouncer.trigger(value)
            await asyncio.sleep(WAIT / 5)
        assert received == []
        assert debouncer.state is State.PENDING

        await asyncio.wait_for(debouncer.join(), timeout=1)
        assert received == [4]
        assert debouncer.calls == 1
        assert debouncer.state is State.IDLE

    @pytest.mark.asyncio
    async def test_separate_bursts_each_run(self):
        received = []

        async def func(value):
            received.append(value)

        debouncer = Debouncer(func, WAIT)
        debouncer.trigger("a")
        await asyncio.wait_for(debouncer.join(), timeout=1)
        debouncer.trigger("b")
        await asyncio.wait_for(debouncer.join(), timeout=1)
        assert received == ["a", "b"]

    @pytest.mark.asyncio
    async def test_trigger_while_running_runs_exactly_once_more(self):
        release = asyncio.Event()
        started = asyncio.Event()
        active = 0
        peak = 0
        received = []

        async def func(value):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            received.append(value)
            started.set()
            if len(received) == 1:
                await release.wait()
            active -= 1

        debouncer = Debouncer(func, WAIT)
        debouncer.trigger("first")
        await asyncio.wait_for(started.wait(), timeout=1)
        assert debouncer.state is State.RUNNING

        debouncer.trigger("second")
        debouncer.trigger("third")
        assert debouncer.state is State.RUNNING_PENDING
        await asyncio.sleep(WAIT * 2)
        assert received == ["first"]

        release.set()
        await asyncio.wait_for(debouncer.join(), timeout=1)
        assert received == ["first", "third"]
        assert debouncer.calls == 2
        assert peak == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_calls(self):
        received = []

        async def func(value):
            received.append(value)
            if value == "bad":
                raise RuntimeError("compile error")

        debouncer = Debouncer(func, WAIT)
        debouncer.trigger("bad")
        await asyncio.wait_for(debouncer.join(), timeout=1)
        debouncer.trigger("good")
        await asyncio.wait_for(debouncer.join(), timeout=1)
        assert received == ["bad", "good"]
        assert debouncer.state is State.IDLE

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_call(self):
        received = []

        async def func():
            received.append(True)

        debouncer = Debouncer(func, WAIT)
        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(WAIT * 2)
        assert received == []
        assert debouncer.state is State.IDLE
