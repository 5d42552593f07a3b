"""Event publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import GojamEvent

logger = logging.getLogger(__name__)

EVENTS_TOPIC = "gojam.events"


class EventPublisher:
    """Publishes decoded feed events using pubsub.pub."""

    def __init__(self, topic: str = EVENTS_TOPIC):
        """Initialize event publisher.

        Args:
            topic: Pub/sub topic name for feed events
        """
        self.topic = topic
        logger.info(f"EventPublisher initialized with topic: {topic}")

    def publish_event(self, event: GojamEvent) -> None:
        """Publish a feed event to the pub/sub topic.

        Args:
            event: GojamEvent to publish
        """
        pub.sendMessage(self.topic, event=event)
        if event.newChatMessage is not None:
            logger.debug(f"Published chat message: {event.newChatMessage.id}")
