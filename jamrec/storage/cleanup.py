"""Age-based removal of old recording directories."""

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Deletes session directories older than a fixed age."""

    def __init__(self, root: str, max_age_seconds: float = 3600):
        """Initialize cleanup sweeper.

        Args:
            root: Directory holding one subdirectory per session
            max_age_seconds: Subdirectories modified longer ago than this are removed
        """
        self.root = Path(root)
        self.max_age_seconds = max_age_seconds

    def list_directories(self) -> List[Path]:
        """List immediate subdirectories of the root."""
        directories = []
        for path in self.root.iterdir():
            try:
                if path.is_dir():
                    directories.append(path)
            except OSError as e:
                logger.error(f"Error checking if {path} is a directory: {e}")
        return directories

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove stale session directories.

        Args:
            now: Current Unix time (defaults to time.time())

        Returns:
            Number of directories removed
        """
        logger.info("Checking for old recording folders to clean up")
        try:
            directories = self.list_directories()
        except OSError as e:
            logger.error(f"Error cleaning up recording folders: {e}")
            return 0

        cutoff_time = (time.time() if now is None else now) - self.max_age_seconds
        removed = 0

        for directory in directories:
            try:
                if directory.stat().st_mtime < cutoff_time:
                    logger.info(f"Removing old recording folder: {directory}")
                    shutil.rmtree(directory)
                    removed += 1
            except OSError as e:
                logger.error(f"Error processing directory {directory}: {e}")

        return removed
