"""JSON-RPC gateway and chat client for the Jamulus server."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import JamRecConfig
from ..errors import RemoteCallError
from ..models.recorder import RecorderStatus

logger = logging.getLogger(__name__)


class RemoteControlClient:
    """Invokes recorder RPCs through the API gateway and posts chat lines."""

    def __init__(self, config: JamRecConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize remote control client.

        Args:
            config: Application configuration
            session: Optional aiohttp session (created lazily otherwise)
        """
        self.gateway_url = config.get_gateway_url()
        self.chat_url = f"{config.get_gojam_url()}/chat"
        self.api_key = config.get_api_key()
        self.debug = bool(config.get('gateway.debug', False))
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RemoteControlClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a jamulusserver RPC method and return its result.

        Raises:
            RemoteCallError: On transport errors, timeouts or a non-2xx response
        """
        params = params or {}
        url = f"{self.gateway_url}/rpc/jamulusserver/{method}"
        try:
            async with self.session.post(url,
                                         headers={"x-api-key": self.api_key},
                                         json={"params": params}) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    raise RemoteCallError(method, f"HTTP {response.status} - {error_text}",
                                          status=response.status)
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError(method, str(e) or type(e).__name__) from e

        if not isinstance(body, dict) or "result" not in body:
            raise RemoteCallError(method, f"malformed response: {body!r}")

        result = body["result"]
        if self.debug:
            logger.debug(f"{method} {params} {result}")
        return result

    async def set_recording_directory(self, recording_directory: str) -> str:
        return await self.rpc("setRecordingDirectory", {"recordingDirectory": recording_directory})

    async def get_recorder_status(self) -> RecorderStatus:
        result = await self.rpc("getRecorderStatus")
        return RecorderStatus.model_validate(result)

    async def start_recording(self) -> str:
        return await self.rpc("startRecording")

    async def stop_recording(self) -> str:
        return await self.rpc("stopRecording")

    async def send_chat(self, message: str) -> None:
        """Post a chat line to the server.

        Raises:
            RemoteCallError: If the chat service rejects or cannot be reached
        """
        try:
            async with self.session.post(self.chat_url, json={"message": message}) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    raise RemoteCallError("chat", f"HTTP {response.status} - {error_text}",
                                          status=response.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError("chat", str(e) or type(e).__name__) from e
        logger.debug(f"Chat sent: {message}")
