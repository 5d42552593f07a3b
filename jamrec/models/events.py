"""Event models decoded from the gojam push feed."""

from typing import List, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A chat line posted on the server."""
    id: str
    message: str
    timestamp: str


class ConnectedClient(BaseModel):
    """A musician currently connected to the server."""
    name: str = ""
    city: str = ""
    country: int = 0
    skillLevel: int = 0
    instrument: int = 0


class GojamEvent(BaseModel):
    """One frame of the live feed."""
    newChatMessage: Optional[ChatMessage] = None
    levels: List[float] = Field(default_factory=list)
    clients: List[ConnectedClient] = Field(default_factory=list)
