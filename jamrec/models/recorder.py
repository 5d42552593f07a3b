"""Models for the remote recorder and the upload endpoint."""

from typing import Optional
from pydantic import BaseModel


class RecorderStatus(BaseModel):
    """Result of jamulusserver/getRecorderStatus."""
    initialised: bool = False
    errorMessage: Optional[str] = None
    enabled: bool = False
    recordingDirectory: str = ""


class UploadResponse(BaseModel):
    """JSON body returned by the upload endpoint."""
    url: Optional[str] = None
