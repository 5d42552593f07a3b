"""Server-Sent-Events client for the gojam live feed."""

import json
import logging
from typing import AsyncIterable, AsyncIterator, Optional

import aiohttp
from pydantic import ValidationError

from ..errors import EventFeedError
from ..models.events import GojamEvent
from .publisher import EventPublisher

logger = logging.getLogger(__name__)


async def parse_sse_lines(lines: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Turn a stream of raw SSE lines into the data payload of each frame.

    Multiple ``data:`` lines of one frame are joined with newlines; a blank
    line ends the frame. Comment lines and other fields are ignored.
    """
    data_lines = []
    async for raw in lines:
        line = raw.decode('utf-8', errors='replace').rstrip('\r\n')
        if not line:
            if data_lines:
                yield '\n'.join(data_lines)
                data_lines = []
            continue
        if line.startswith(':'):
            continue
        field, _, value = line.partition(':')
        if value.startswith(' '):
            value = value[1:]
        if field == 'data':
            data_lines.append(value)
    if data_lines:
        yield '\n'.join(data_lines)


class EventFeed:
    """Subscribes to the live feed and publishes every decoded frame."""

    def __init__(self,
                 url: str,
                 publisher: EventPublisher,
                 session: Optional[aiohttp.ClientSession] = None):
        """Initialize event feed.

        Args:
            url: Full URL of the events endpoint
            publisher: Publisher receiving decoded events
            session: Optional shared aiohttp session
        """
        self.url = url
        self.publisher = publisher
        self._session = session
        self.frames_received = 0

    async def run(self) -> None:
        """Consume the feed until it fails.

        Never returns normally: a transport error, a bad status or the server
        closing the stream all raise EventFeedError.
        """
        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession()
        try:
            logger.info(f"Connecting to event feed at {self.url}")
            timeout = aiohttp.ClientTimeout(total=None, sock_read=None)
            async with session.get(self.url,
                                   headers={"Accept": "text/event-stream"},
                                   timeout=timeout) as response:
                if response.status != 200:
                    raise EventFeedError(f"Event feed returned HTTP {response.status}")
                logger.info("Event feed connected")
                async for data in parse_sse_lines(response.content):
                    self.handle_frame(data)
        except aiohttp.ClientError as e:
            raise EventFeedError(f"Event feed transport error: {e}") from e
        finally:
            if owns_session:
                await session.close()

        raise EventFeedError("Event feed closed by server")

    def handle_frame(self, data: str) -> Optional[GojamEvent]:
        """Decode one frame and publish it. Undecodable frames are skipped."""
        self.frames_received += 1
        try:
            event = GojamEvent.model_validate(json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Skipping undecodable event frame: {e}")
            return None

        self.publisher.publish_event(event)
        return event
