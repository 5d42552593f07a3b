"""Main application entry point for jamrec."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional, Set

from . import __version__
from .config import JamRecConfig
from .errors import EventFeedError
from .feed import EventFeed, EventPublisher, EVENTS_TOPIC
from .models.events import ChatMessage
from .models.session import new_session_id
from .services.commands import CommandMatcher
from .services.deduplicator import Deduplicator
from .services.remote_client import RemoteControlClient
from .services.session_controller import SessionController
from .services.upload_pipeline import UploadPipeline
from .storage.cleanup import CleanupSweeper

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        # Load configuration
        self.config = JamRecConfig(config_path)
        # Command line level wins over config
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.seen_ids: Set[str] = set()
        self.loop_pause_seconds = 1.0

    def init(self) -> None:
        """Build the service graph. Must run inside the event loop."""
        logger.info("Initializing services...")

        self.publisher = EventPublisher(EVENTS_TOPIC)
        self.matcher = CommandMatcher(EVENTS_TOPIC)
        self.deduplicator = Deduplicator(self.seen_ids)
        self.client = RemoteControlClient(self.config)
        self.uploader = UploadPipeline(self.config, self.client)
        self.controller = SessionController(self.config, self.client, self.matcher, self.uploader)
        self.sweeper = CleanupSweeper(self.config.get_recording_prefix(),
                                      float(self.config.get('cleanup.max_age_seconds', 3600)))
        self.feed = EventFeed(f"{self.config.get_gojam_url()}/events", self.publisher)

        if not self.uploader.is_configured:
            logger.warning("Upload endpoint not configured, recordings will not be uploaded")

    async def handle_start(self, message: ChatMessage) -> Optional[str]:
        """Run a session for one start command unless it was already seen.

        Returns:
            The session id, or None if the message was a duplicate
        """
        if not self.deduplicator.accept(message):
            return None

        session_id = new_session_id()
        logger.info(f"Recording session {session_id}")
        try:
            await self.controller.run(session_id)
        except Exception as e:
            logger.error(f"Error recording session {session_id}: {e}", exc_info=True)
        return session_id

    async def serve_sessions(self) -> None:
        """Wait for start commands and record one session at a time, forever."""
        while True:
            try:
                message = await self.matcher.next_start()
                await self.handle_start(message)
            finally:
                self.sweeper.sweep()
            await asyncio.sleep(self.loop_pause_seconds)

    async def run_forever(self) -> None:
        """Run the feed and the session loop until the feed fails."""
        self.init()
        self.sweeper.sweep()
        feed_task = asyncio.ensure_future(self.feed.run())
        loop_task = asyncio.ensure_future(self.serve_sessions())
        try:
            done, pending = await asyncio.wait({feed_task, loop_task},
                                               return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                task.result()
        finally:
            for task in (feed_task, loop_task):
                task.cancel()
            await asyncio.gather(feed_task, loop_task, return_exceptions=True)
            self.cleanup()
            await self.client.close()

    def cleanup(self) -> None:
        self.matcher.close()


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging from config: console always, file when configured."""
    log_file_path = config.get('logging.file_path')

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_formatter = logging.Formatter('[%(asctime)s] %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info(f"jamrec v{__version__} starting up")
    if log_file_path:
        logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for jamrec."""
    parser = argparse.ArgumentParser(
        description="jamrec - record Jamulus sessions on /start and /stop chat commands",
        epilog="Environment variables override values from the config file."
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (optional)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"jamrec v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.config.get_api_key()
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(server.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except EventFeedError as e:
        logger.error(f"Event feed failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
