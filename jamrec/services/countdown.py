"""One-second countdown driving the recording window."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


def reminder_text(remaining: int) -> Optional[str]:
    """Chat reminder for a countdown value, or None if this tick is silent."""
    if remaining < 0:
        return None
    if remaining % 60 == 0:
        return f"recording time remaining: {remaining // 60} minutes."
    if remaining <= 30 and remaining % 10 == 0:
        return f"recording time remaining: {remaining} seconds."
    return None


class Countdown:
    """Async iterator yielding a decreasing value once per interval.

    Starting from ``total`` it sleeps, applies ``step`` and yields the result,
    finishing after the first value at or below zero. With the defaults that
    is 601 ticks: 600, 599, ..., 0.
    """

    def __init__(self,
                 total: int = 601,
                 interval: float = 1.0,
                 step: Callable[[int], int] = lambda n: n - 1):
        self.total = total
        self.interval = interval
        self.step = step
        self.ticks = 0

    def __aiter__(self):
        return self._tick()

    async def _tick(self):
        value = self.total
        while value > 0:
            await asyncio.sleep(self.interval)
            value = self.step(value)
            self.ticks += 1
            yield value

    async def run(self, on_tick: Callable[[int], Union[None, Awaitable[None]]]) -> int:
        """Consume every tick, calling ``on_tick`` for each value.

        Returns the number of ticks emitted. Cancel the awaiting task to stop
        early.
        """
        async for value in self:
            result = on_tick(value)
            if asyncio.iscoroutine(result):
                await result
        logger.debug(f"Countdown finished after {self.ticks} ticks")
        return self.ticks
