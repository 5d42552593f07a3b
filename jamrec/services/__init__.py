"""Services layer for jamrec session orchestration."""

from .commands import CommandMatcher, is_start_command, is_stop_command
from .countdown import Countdown, reminder_text
from .deduplicator import Deduplicator
from .polling import poll_for
from .remote_client import RemoteControlClient
from .session_controller import SessionController
from .upload_pipeline import UploadPipeline

__all__ = [
    "CommandMatcher",
    "is_start_command",
    "is_stop_command",
    "Countdown",
    "reminder_text",
    "Deduplicator",
    "poll_for",
    "RemoteControlClient",
    "SessionController",
    "UploadPipeline",
]
