"""Process-lifetime de-duplication of start commands."""

import logging
from typing import Optional, Set

from ..models.events import ChatMessage

logger = logging.getLogger(__name__)


class Deduplicator:
    """Remembers every message id that has triggered a session.

    The set grows for the whole life of the process and is never pruned;
    feed ids are unique and deployments are short-lived.
    """

    def __init__(self, seen_ids: Optional[Set[str]] = None):
        self.seen_ids: Set[str] = seen_ids if seen_ids is not None else set()

    def accept(self, message: ChatMessage) -> bool:
        """Record the message id. Returns False if it was already seen."""
        if message.id in self.seen_ids:
            logger.debug(f"Ignoring already processed message: {message.id}")
            return False
        self.seen_ids.add(message.id)
        return True
