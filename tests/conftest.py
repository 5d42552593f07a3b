"""Pytest configuration and fixtures for jamrec tests."""

import asyncio
import logging
import uuid
from typing import List, Optional

import pytest
from pubsub import pub

from jamrec.config import JamRecConfig
from jamrec.errors import RemoteCallError
from jamrec.models.events import ChatMessage, GojamEvent
from jamrec.models.recorder import RecorderStatus


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests using real sockets or subprocesses")


@pytest.fixture
def make_config(tmp_path):
    """Build a JamRecConfig with fast timings and a temporary recording root."""
    def _make(environ: Optional[dict] = None) -> JamRecConfig:
        env = {
            "API_GATEWAY_API_KEY": "test-key",
            "RECORDING_DIRECTORY_PREFIX": str(tmp_path / "recordings"),
        }
        env.update(environ or {})
        config = JamRecConfig(environ=env)
        config.set("session.poll_interval", 0.001)
        config.set("session.tick_interval", 0)
        config.set("session.countdown_ticks", 5)
        return config
    return _make


@pytest.fixture
def topic():
    """A fresh pub/sub topic name per test."""
    return f"testevents_{uuid.uuid4().hex}"


def chat_event(message_id: str, text: str) -> GojamEvent:
    return GojamEvent(newChatMessage=ChatMessage(id=message_id,
                                                 message=text,
                                                 timestamp="2025-01-01T00:00:00Z"))


@pytest.fixture
def publish_chat(topic):
    """Publish a chat message on the test topic."""
    def _publish(message_id: str, text: str) -> None:
        pub.sendMessage(topic, event=chat_event(message_id, text))
    return _publish


@pytest.fixture
def wait_until():
    """Yield to the loop until predicate() is true."""
    async def _wait(predicate, timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached in time")
            await asyncio.sleep(0.001)
    return _wait


class FakeRemoteClient:
    """In-memory stand-in for RemoteControlClient that behaves like the recorder."""

    def __init__(self):
        self.status = RecorderStatus(initialised=True, enabled=False, recordingDirectory="")
        self.chat: List[str] = []
        self.calls: List[str] = []
        self.apply_directory = True
        self.apply_start = True
        self.apply_stop = True
        self.failing_methods = set()
        self.failing_chat_prefix: Optional[str] = None

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failing_methods:
            raise RemoteCallError(method, "simulated failure", status=500)

    async def set_recording_directory(self, recording_directory: str) -> str:
        self._record("setRecordingDirectory")
        if self.apply_directory:
            self.status.recordingDirectory = recording_directory
        return "ok"

    async def get_recorder_status(self) -> RecorderStatus:
        self._record("getRecorderStatus")
        return self.status.model_copy()

    async def start_recording(self) -> str:
        self._record("startRecording")
        if self.apply_start:
            self.status.enabled = True
        return "acknowledged"

    async def stop_recording(self) -> str:
        self._record("stopRecording")
        if self.apply_stop:
            self.status.enabled = False
        return "acknowledged"

    async def send_chat(self, message: str) -> None:
        if self.failing_chat_prefix and message.startswith(self.failing_chat_prefix):
            raise RemoteCallError("chat", "simulated chat failure")
        self.chat.append(message)


@pytest.fixture
def fake_client():
    return FakeRemoteClient()
