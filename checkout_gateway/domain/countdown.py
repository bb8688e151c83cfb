"""Cancellable one-second countdown running on the event loop"""

import asyncio
from typing import Awaitable, Callable


class Countdown:
    """
    Visible cooldown timer.

    Ticks once per second, reporting the remaining seconds through on_tick,
    and calls on_expire when it reaches zero. cancel() stops it immediately
    and on_expire is never called afterwards.
    """

    def __init__(
        self,
        seconds: int,
        on_tick: Callable[[int], None] | None = None,
        on_expire: Callable[[], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.remaining = max(int(seconds), 0)
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._sleep = sleep
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self.remaining > 0:
            await self._sleep(1)
            self.remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self.remaining)
        if self._on_expire is not None:
            self._on_expire()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for expiry or cancellation; cancelling the waiter leaves the countdown running"""
        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
