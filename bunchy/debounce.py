"""Trailing-edge debounce for bursts of file change triggers."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEBOUNCE_WAIT = 1.0


class State(Enum):
    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"
    RUNNING_PENDING = "running+pending"


class Debouncer:
    """Collapse rapid triggers into one delayed call.

    Every trigger while pending restarts the wait window and replaces the
    arguments, so only the last trigger of a burst is invoked. A trigger that
    arrives while the call is running is remembered; once the call settles a
    fresh window is armed and exactly one more call follows.
    """

    def __init__(
        self,
        func: Callable[..., Awaitable[object]],
        wait: float = DEBOUNCE_WAIT,
        name: str | None = None,
    ):
        self.func = func
        self.wait = wait
        self.name = name or getattr(func, "__name__", "debounced")
        self.state = State.IDLE
        self.calls = 0
        self._args: tuple = ()
        self._kwargs: dict = {}
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()

    def _transition(self, state: State):
        logger.debug("%s: %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    def _arm(self):
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.wait, self._fire)

    def trigger(self, *args, **kwargs):
        self._args, self._kwargs = args, kwargs
        self._idle.clear()
        if self.state in (State.IDLE, State.PENDING):
            self._arm()
            self._transition(State.PENDING)
        elif self.state is State.RUNNING:
            self._transition(State.RUNNING_PENDING)

    def _fire(self):
        self._timer = None
        self._transition(State.RUNNING)
        args, kwargs = self._args, self._kwargs
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._invoke(args, kwargs))

    async def _invoke(self, args: tuple, kwargs: dict):
        try:
            await self.func(*args, **kwargs)
        except Exception:
            logger.exception("Debounced call %s failed", self.name)
        finally:
            self.calls += 1
            self._task = None
            if self.state is State.RUNNING_PENDING:
                self._arm()
                self._transition(State.PENDING)
            elif self.state is State.RUNNING:
                self._transition(State.IDLE)
                self._idle.set()

    def cancel(self):
        """Drop a pending call and stop a running one."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        task, self._task = self._task, None
        self._transition(State.IDLE)
        if task is not None:
            task.cancel()
        self._idle.set()

    async def join(self):
        """Wait until no call is pending or running."""
        await self._idle.wait()
