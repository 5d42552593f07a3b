"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from uuid6 import uuid7


class SessionState(Enum):
    """Lifecycle of a single recording session."""
    IDLE = "idle"
    SET_DIRECTORY = "set_directory"
    AWAIT_DIRECTORY_SET = "await_directory_set"
    START_REQUESTED = "start_requested"
    AWAIT_ENABLED = "await_enabled"
    RECORDING = "recording"
    STOP_REQUESTED = "stop_requested"
    AWAIT_DISABLED = "await_disabled"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SessionInfo:
    """Outcome of a recording session."""
    session_id: str
    directory: str
    state: SessionState = SessionState.IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    stopped_early: bool = False
    upload_url: Optional[str] = None
    error: Optional[str] = None


def new_session_id(now: Optional[datetime] = None) -> str:
    """Build a filesystem-safe session id such as ``2025-04-12T19-30-8f3a2b1c9d0e``.

    Local time to the minute, followed by the last group of a UUIDv7 so two
    sessions started in the same minute never collide.
    """
    now = now or datetime.now()
    return f"{now.strftime('%Y-%m-%dT%H-%M')}-{str(uuid7()).split('-')[-1]}"
