"""Archive and upload of a finished recording session."""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, List, Optional

import aiohttp
from pydantic import ValidationError

from ..config import JamRecConfig
from ..errors import RemoteCallError, UploadError
from ..models.recorder import UploadResponse
from .remote_client import RemoteControlClient

logger = logging.getLogger(__name__)

UPLOAD_SUCCESS_MARKER = "Upload successful"
ARCHIVE_COMMAND = ["zip", "-r", "-1", "-", "."]
CHUNK_SIZE = 64 * 1024


class UploadPipeline:
    """Waits for the recorder's manifest, zips the session and PUTs it.

    Upload problems never propagate: after the configured number of attempts
    the pipeline reports the failure to chat and returns None.
    """

    def __init__(self,
                 config: JamRecConfig,
                 client: RemoteControlClient,
                 session: Optional[aiohttp.ClientSession] = None):
        """Initialize upload pipeline.

        Args:
            config: Application configuration
            client: Client used for chat notices
            session: Optional aiohttp session for the PUT request
        """
        self.config = config
        self.client = client
        self.endpoint_url = config.get('upload.endpoint_url')
        self.endpoint_key = config.get('upload.endpoint_key')
        self.manifest_pattern = config.get('upload.manifest_pattern', '*.lof')
        self.manifest_attempts = int(config.get('upload.manifest_attempts', 30))
        self.manifest_interval = float(config.get('upload.manifest_interval', 1.0))
        self.attempts = int(config.get('upload.attempts', 3))
        self.backoff_seconds = float(config.get('upload.backoff_seconds', 2.0))
        self.archive_command = list(ARCHIVE_COMMAND)
        self._session = session
        self._sleep = asyncio.sleep

    @property
    def is_configured(self) -> bool:
        return self.config.is_upload_configured()

    async def upload(self, session_id: str, directory: str) -> Optional[str]:
        """Upload the session directory.

        Returns:
            The recording URL, UPLOAD_SUCCESS_MARKER if the endpoint returned
            no URL, or None when skipped or permanently failed
        """
        if not self.is_configured:
            logger.info("Upload endpoint not configured, skipping upload")
            return None

        logger.info(f"Preparing to upload recording from {directory}")

        if not await self.wait_for_manifest(directory):
            logger.warning("No manifest file found after waiting, upload may be incomplete")

        for attempt in range(1, self.attempts + 1):
            try:
                logger.info(f"Upload attempt {attempt}/{self.attempts}")
                return await self._upload_once(session_id, directory)
            except (UploadError, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
                logger.error(f"Upload attempt {attempt} failed: {e}")
                if attempt == self.attempts:
                    logger.error("All upload attempts failed")
                    await self._notify("unable to upload recording after multiple attempts")
                    return None
                await self._notify("unable to upload recording, retrying...")
                await self._sleep(self.backoff_seconds * attempt)

        return None

    def find_manifests(self, directory: str) -> List[Path]:
        return list(Path(directory).rglob(self.manifest_pattern))

    async def wait_for_manifest(self, directory: str) -> bool:
        """Poll for a manifest file anywhere under the directory."""
        for _ in range(self.manifest_attempts):
            try:
                if self.find_manifests(directory):
                    logger.info("Found manifest file, recording is ready for upload")
                    return True
            except OSError as e:
                logger.warning(f"Error checking for manifest file: {e}")
            await self._sleep(self.manifest_interval)
        return False

    def upload_url(self, session_id: str) -> str:
        return f"{self.endpoint_url}?path=multitrack/{session_id}.zip"

    async def _upload_once(self, session_id: str, directory: str) -> str:
        process = await asyncio.create_subprocess_exec(
            *self.archive_command,
            cwd=directory,
            stdout=asyncio.subprocess.PIPE,
        )
        try:
            result = await self._put(self.upload_url(session_id), self._stream(process.stdout))
        except BaseException:
            self._kill(process)
            raise
        finally:
            returncode = await process.wait()
            if returncode > 0:
                logger.warning(f"Archive process exited with status {returncode}")

        if result.url:
            await self._notify(f"recording is available at: {result.url}")
            return result.url

        logger.info("Upload successful but URL not found in response")
        return UPLOAD_SUCCESS_MARKER

    async def _stream(self, stdout: asyncio.StreamReader) -> AsyncIterator[bytes]:
        while True:
            chunk = await stdout.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    async def _put(self, url: str, body: AsyncIterator[bytes]) -> UploadResponse:
        """Stream the archive to the endpoint and decode its JSON reply."""
        headers = {
            "Content-Type": "application/zip",
            "Authorization": f"Bearer {self.endpoint_key}",
        }
        owns_session = self._session is None
        session = self._session or aiohttp.ClientSession()
        try:
            async with session.put(url, headers=headers, data=body,
                                   timeout=aiohttp.ClientTimeout(total=None)) as response:
                if response.status < 200 or response.status >= 300:
                    raise UploadError(f"Upload failed with status {response.status}")
                payload = await response.json(content_type=None)
        finally:
            if owns_session:
                await session.close()

        logger.info("Upload successful")
        try:
            return UploadResponse.model_validate(payload if isinstance(payload, dict) else {})
        except ValidationError as e:
            raise UploadError(f"Unexpected upload response: {e}") from e

    def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def _notify(self, message: str) -> None:
        try:
            await self.client.send_chat(message)
        except RemoteCallError as e:
            logger.error(f"Error sending chat message: {e}")
