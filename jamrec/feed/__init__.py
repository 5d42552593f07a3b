"""Live event feed ingestion."""

from .publisher import EventPublisher, EVENTS_TOPIC
from .event_feed import EventFeed, parse_sse_lines

__all__ = [
    'EventPublisher',
    'EVENTS_TOPIC',
    'EventFeed',
    'parse_sse_lines',
]
