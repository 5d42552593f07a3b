"""Exception types raised across jamrec."""

from typing import Optional


class JamRecError(Exception):
    """Base class for all jamrec errors."""


class EventFeedError(JamRecError):
    """The live event feed failed or ended. Fatal for the process."""


class RemoteCallError(JamRecError):
    """An RPC call or chat post against the server failed."""

    def __init__(self, method: str, message: str, status: Optional[int] = None):
        self.method = method
        self.status = status
        super().__init__(f"{method} failed: {message}")


class PollTimeoutError(JamRecError):
    """A bounded poll never observed the state it was waiting for."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Timed out waiting for {description}")


class UploadError(JamRecError):
    """A single upload attempt failed."""
