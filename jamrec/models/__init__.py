"""Data models for the jamrec application."""

from .events import ChatMessage, ConnectedClient, GojamEvent
from .recorder import RecorderStatus, UploadResponse
from .session import SessionState, SessionInfo, new_session_id

__all__ = [
    "ChatMessage",
    "ConnectedClient",
    "GojamEvent",
    "RecorderStatus",
    "UploadResponse",
    "SessionState",
    "SessionInfo",
    "new_session_id",
]
