"""Bounded polling of remote state."""

import asyncio
import logging
from typing import Awaitable, Callable

from ..errors import PollTimeoutError

logger = logging.getLogger(__name__)


async def poll_for(description: str,
                   check: Callable[[], Awaitable[bool]],
                   attempts: int = 10,
                   interval: float = 0.25) -> None:
    """Await ``check()`` until it is truthy or ``attempts`` run out.

    Sleeps ``interval`` seconds after every miss, including the last one, so
    a poll that never succeeds takes ``attempts * interval`` seconds.

    Raises:
        PollTimeoutError: If no attempt succeeded
        RemoteCallError: Propagated from ``check`` unchanged
    """
    for attempt in range(1, attempts + 1):
        if await check():
            logger.debug(f"Observed {description} after {attempt} attempt(s)")
            return
        await asyncio.sleep(interval)
    raise PollTimeoutError(description)
