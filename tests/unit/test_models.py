"""Unit tests for wire and session models."""

import re
from datetime import datetime

import pytest

from jamrec.models import GojamEvent, RecorderStatus, SessionInfo, SessionState, new_session_id


@pytest.mark.unit
class TestModels:

    def test_event_with_chat_message(self):
        event = GojamEvent.model_validate({
            "newChatMessage": {"id": "m1", "message": "<b>Ann</b> /start", "timestamp": "t"},
            "levels": [0, 3, 9],
            "clients": [{"name": "Ann", "city": "Oslo", "country": 160,
                         "skillLevel": 2, "instrument": 1, "extra": "ignored"}],
        })

        assert event.newChatMessage.id == "m1"
        assert event.levels == [0, 3, 9]
        assert event.clients[0].city == "Oslo"

    def test_event_without_optional_parts(self):
        event = GojamEvent.model_validate({})

        assert event.newChatMessage is None
        assert event.levels == []
        assert event.clients == []

    def test_recorder_status_optional_error(self):
        status = RecorderStatus.model_validate({
            "initialised": True, "enabled": False, "recordingDirectory": "/rec/a",
        })

        assert status.errorMessage is None
        assert status.recordingDirectory == "/rec/a"

    def test_session_info_defaults(self):
        info = SessionInfo(session_id="s", directory="/rec/s")

        assert info.state is SessionState.IDLE
        assert info.upload_url is None
        assert info.stopped_early is False


@pytest.mark.unit
class TestSessionId:

    def test_format(self):
        session_id = new_session_id(datetime(2025, 4, 12, 19, 30, 59))

        assert re.fullmatch(r"2025-04-12T19-30-[0-9a-f]{12}", session_id)
        assert ":" not in session_id

    def test_unique_within_same_minute(self):
        now = datetime(2025, 4, 12, 19, 30)
        ids = {new_session_id(now) for _ in range(50)}

        assert len(ids) == 50
