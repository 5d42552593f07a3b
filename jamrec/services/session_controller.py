"""Recording session state machine.

A session walks the recorder through set-directory, start, a timed recording
window and stop, then hands the directory to the upload pipeline:

    IDLE -> SET_DIRECTORY -> AWAIT_DIRECTORY_SET -> START_REQUESTED
         -> AWAIT_ENABLED -> RECORDING -> STOP_REQUESTED -> AWAIT_DISABLED
         -> UPLOADING -> COMPLETED

Any RPC failure or poll timeout before UPLOADING moves the session to FAILED,
posts a generic notice to chat and re-raises to the caller. The recording
window ends when the countdown reaches zero or a /stop command arrives,
whichever happens first.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from ..config import JamRecConfig
from ..errors import RemoteCallError
from ..models.session import SessionInfo, SessionState
from .commands import CommandMatcher
from .countdown import Countdown, reminder_text
from .polling import poll_for
from .remote_client import RemoteControlClient
from .upload_pipeline import UploadPipeline

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "An error occurred while recording..."
NO_UPLOAD_WARNING = "WARNING: upload endpoint not set, recording will not be uploaded"


class SessionController:
    """Drives one recording session at a time against the remote recorder."""

    def __init__(self,
                 config: JamRecConfig,
                 client: RemoteControlClient,
                 matcher: CommandMatcher,
                 uploader: UploadPipeline):
        """Initialize session controller.

        Args:
            config: Application configuration
            client: Remote control client for RPCs and chat
            matcher: Command matcher providing /stop commands
            uploader: Pipeline that receives the finished recording
        """
        self.client = client
        self.matcher = matcher
        self.uploader = uploader

        self.directory_prefix = config.get_recording_prefix()
        self.upload_endpoint_set = bool(config.get('upload.endpoint_url'))
        self.poll_attempts = int(config.get('session.poll_attempts', 10))
        self.poll_interval = float(config.get('session.poll_interval', 0.25))
        self.countdown_ticks = int(config.get('session.countdown_ticks', 601))
        self.tick_interval = float(config.get('session.tick_interval', 1.0))

        self.state = SessionState.IDLE
        self.current_session_id: Optional[str] = None
        self._reminders: Set[asyncio.Task] = set()

    def session_directory(self, session_id: str) -> str:
        return f"{self.directory_prefix.rstrip('/')}/{session_id}"

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session {self.current_session_id}: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, session_id: str) -> SessionInfo:
        """Record one session to completion.

        Returns:
            SessionInfo describing the completed session

        Raises:
            RemoteCallError: If an RPC or awaited chat post failed
            PollTimeoutError: If the recorder never reached an awaited state
        """
        self.current_session_id = session_id
        self.state = SessionState.IDLE
        info = SessionInfo(session_id=session_id,
                           directory=self.session_directory(session_id),
                           started_at=datetime.now())
        try:
            await self._record(info)
        except Exception as e:
            self._transition(SessionState.FAILED)
            info.state = SessionState.FAILED
            info.error = str(e)
            try:
                await self.client.send_chat(FAILURE_NOTICE)
            except RemoteCallError as notice_error:
                logger.error(f"Error sending failure notice: {notice_error}")
            raise
        finally:
            await self._drain_reminders()
            info.finished_at = datetime.now()
            self.current_session_id = None

        return info

    async def _record(self, info: SessionInfo) -> None:
        directory = info.directory

        self._transition(SessionState.SET_DIRECTORY)
        logger.info(f"Starting recording session in {directory}")
        await self.client.send_chat("starting recording session...")
        await self.client.set_recording_directory(directory)
        logger.info("Recording directory change requested")

        self._transition(SessionState.AWAIT_DIRECTORY_SET)
        await self._poll("recording directory to be set",
                         lambda status: status.recordingDirectory == directory)
        logger.info("Recording directory set")

        self._transition(SessionState.START_REQUESTED)
        await self.client.start_recording()
        logger.info("Recording start requested")

        self._transition(SessionState.AWAIT_ENABLED)
        await self._poll("recording to start", lambda status: status.enabled)

        self._transition(SessionState.RECORDING)
        await self.client.send_chat(f"your recording id is: {info.session_id}")
        if not self.upload_endpoint_set:
            await self.client.send_chat(NO_UPLOAD_WARNING)
        info.stopped_early = await self._await_end_of_recording()

        self._transition(SessionState.STOP_REQUESTED)
        await self.client.stop_recording()

        self._transition(SessionState.AWAIT_DISABLED)
        await self._poll("recording to stop", lambda status: not status.enabled)
        await self.client.send_chat("recording stopped")

        self._transition(SessionState.UPLOADING)
        info.upload_url = await self.uploader.upload(info.session_id, directory)
        logger.info(f"Upload result for {info.session_id}: {info.upload_url}")

        self._transition(SessionState.COMPLETED)
        info.state = SessionState.COMPLETED

    async def _poll(self, description: str, predicate) -> None:
        async def check() -> bool:
            return predicate(await self.client.get_recorder_status())

        await poll_for(description, check,
                       attempts=self.poll_attempts,
                       interval=self.poll_interval)

    async def _await_end_of_recording(self) -> bool:
        """Race the countdown against a /stop command.

        Returns:
            True if a stop command ended the recording early
        """
        countdown = Countdown(total=self.countdown_ticks, interval=self.tick_interval)
        timer = asyncio.ensure_future(countdown.run(self._on_tick))
        stop = asyncio.ensure_future(self.matcher.wait_for_stop())
        try:
            done, _ = await asyncio.wait({timer, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (timer, stop):
                if not task.done():
                    task.cancel()
            await asyncio.gather(timer, stop, return_exceptions=True)

        if stop in done and not stop.cancelled():
            logger.info(f"Stop command received after {countdown.ticks} ticks")
            return True

        timer.result()
        await self._drain_reminders()
        logger.info("Recording window elapsed")
        return False

    def _on_tick(self, remaining: int) -> None:
        text = reminder_text(remaining)
        if text is None:
            return
        task = asyncio.ensure_future(self._send_reminder(text))
        self._reminders.add(task)
        task.add_done_callback(self._reminders.discard)

    async def _send_reminder(self, text: str) -> None:
        try:
            await self.client.send_chat(text)
        except Exception as e:
            logger.error(f"Error sending chat message: {e}")

    async def _drain_reminders(self) -> None:
        if self._reminders:
            await asyncio.gather(*list(self._reminders), return_exceptions=True)
