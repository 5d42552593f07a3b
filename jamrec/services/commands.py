"""Chat command recognition on top of the feed topic."""

import asyncio
import logging
import re
from typing import Set

from pubsub import pub

from ..models.events import ChatMessage, GojamEvent

logger = logging.getLogger(__name__)

# Command must be the last token, optionally after a ">" quoting marker.
START_PATTERN = re.compile(r"(?:^|\s)>?\s*/start\s*$")
STOP_PATTERN = re.compile(r"(?:^|\s)>?\s*/stop\s*$")


def is_start_command(text: str) -> bool:
    return START_PATTERN.search(text) is not None


def is_stop_command(text: str) -> bool:
    return STOP_PATTERN.search(text) is not None


class CommandMatcher:
    """Splits chat messages from the feed into start and stop commands.

    Start commands are queued in arrival order until the main loop asks for
    them. Stop commands only count while someone is waiting for one.
    """

    def __init__(self, topic: str):
        """Initialize command matcher.

        Args:
            topic: Pub/sub topic carrying GojamEvent frames
        """
        self.topic = topic
        self.start_queue: "asyncio.Queue[ChatMessage]" = asyncio.Queue()
        self._stop_waiters: Set[asyncio.Future] = set()

        pub.subscribe(self._on_event, topic)
        logger.info(f"CommandMatcher subscribed to {topic}")

    def _on_event(self, event: GojamEvent) -> None:
        """Handle feed event."""
        message = event.newChatMessage
        if message is None:
            return

        if is_start_command(message.message):
            logger.info(f"Start command received: {message.id}")
            self.start_queue.put_nowait(message)
        elif is_stop_command(message.message):
            logger.info(f"Stop command received: {message.id}")
            for waiter in list(self._stop_waiters):
                if not waiter.done():
                    waiter.set_result(message)

    async def next_start(self) -> ChatMessage:
        """Wait for the next start command."""
        return await self.start_queue.get()

    async def wait_for_stop(self) -> ChatMessage:
        """Wait for a stop command posted after this call."""
        waiter = asyncio.get_running_loop().create_future()
        self._stop_waiters.add(waiter)
        try:
            return await waiter
        finally:
            self._stop_waiters.discard(waiter)

    def close(self) -> None:
        if pub.isSubscribed(self._on_event, self.topic):
            pub.unsubscribe(self._on_event, self.topic)
