"""Unit tests for UploadPipeline retry and manifest logic."""

from unittest.mock import AsyncMock, call

import pytest

from jamrec.errors import UploadError
from jamrec.services.upload_pipeline import UploadPipeline


@pytest.fixture
def upload_config(make_config):
    return make_config({"UPLOAD_ENDPOINT_URL": "https://up.example/put",
                        "UPLOAD_ENDPOINT_KEY": "secret"})


@pytest.fixture
def session_dir(tmp_path):
    directory = tmp_path / "recordings" / "s1"
    (directory / "Jam-20250101").mkdir(parents=True)
    (directory / "Jam-20250101" / "Jam-20250101.lof").write_text("manifest")
    return directory


def make_pipeline(config, client, outcomes):
    pipeline = UploadPipeline(config, client)
    pipeline._upload_once = AsyncMock(side_effect=outcomes)
    pipeline._sleep = AsyncMock()
    return pipeline


@pytest.mark.unit
class TestUploadPipeline:

    @pytest.mark.asyncio
    async def test_skipped_when_not_configured(self, make_config, fake_client, session_dir):
        pipeline = make_pipeline(make_config(), fake_client, ["never"])

        assert pipeline.is_configured is False
        assert await pipeline.upload("s1", str(session_dir)) is None
        pipeline._upload_once.assert_not_awaited()
        assert fake_client.chat == []

    @pytest.mark.asyncio
    async def test_key_alone_is_not_configured(self, make_config, fake_client, session_dir):
        config = make_config({"UPLOAD_ENDPOINT_KEY": "secret"})
        pipeline = make_pipeline(config, fake_client, ["never"])

        assert await pipeline.upload("s1", str(session_dir)) is None
        pipeline._upload_once.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, upload_config, fake_client, session_dir):
        pipeline = make_pipeline(upload_config, fake_client, ["https://cdn.example/s1.zip"])

        result = await pipeline.upload("s1", str(session_dir))

        assert result == "https://cdn.example/s1.zip"
        pipeline._sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt_with_linear_backoff(self, upload_config, fake_client, session_dir):
        pipeline = make_pipeline(upload_config, fake_client, [
            UploadError("Upload failed with status 502"),
            OSError("broken pipe"),
            "https://cdn.example/s1.zip",
        ])

        result = await pipeline.upload("s1", str(session_dir))

        assert result == "https://cdn.example/s1.zip"
        assert pipeline._upload_once.await_count == 3
        assert pipeline._sleep.await_args_list == [call(2.0), call(4.0)]
        assert sum(c.args[0] for c in pipeline._sleep.await_args_list) == 6.0
        assert fake_client.chat == ["unable to upload recording, retrying..."] * 2

    @pytest.mark.asyncio
    async def test_permanent_failure_returns_none(self, upload_config, fake_client, session_dir):
        pipeline = make_pipeline(upload_config, fake_client, [UploadError("a"), UploadError("b"), UploadError("c")])

        result = await pipeline.upload("s1", str(session_dir))

        assert result is None
        assert pipeline._upload_once.await_count == 3
        assert pipeline._sleep.await_args_list == [call(2.0), call(4.0)]
        assert fake_client.chat[-1] == "unable to upload recording after multiple attempts"

    @pytest.mark.asyncio
    async def test_missing_manifest_still_uploads(self, upload_config, fake_client, tmp_path):
        empty_dir = tmp_path / "recordings" / "empty"
        empty_dir.mkdir(parents=True)
        pipeline = make_pipeline(upload_config, fake_client, ["Upload successful"])

        result = await pipeline.upload("empty", str(empty_dir))

        assert result == "Upload successful"
        assert pipeline._sleep.await_count == 30
        assert all(c == call(1.0) for c in pipeline._sleep.await_args_list)
        pipeline._upload_once.assert_awaited_once_with("empty", str(empty_dir))

    @pytest.mark.asyncio
    async def test_chat_failure_does_not_escape(self, upload_config, fake_client, session_dir):
        fake_client.failing_chat_prefix = "unable to upload"
        pipeline = make_pipeline(upload_config, fake_client, [UploadError("a"), UploadError("b"), UploadError("c")])

        assert await pipeline.upload("s1", str(session_dir)) is None

    def test_configured_state_follows_config(self, upload_config, fake_client):
        pipeline = UploadPipeline(upload_config, fake_client)
        assert pipeline.is_configured is True

        upload_config.set('upload.endpoint_key', None)

        assert upload_config.is_upload_configured() is False
        assert pipeline.is_configured is False

    def test_finds_nested_manifest(self, upload_config, fake_client, session_dir):
        pipeline = UploadPipeline(upload_config, fake_client)

        assert [p.name for p in pipeline.find_manifests(str(session_dir))] == ["Jam-20250101.lof"]

    def test_upload_url(self, upload_config, fake_client):
        pipeline = UploadPipeline(upload_config, fake_client)

        assert pipeline.upload_url("2025-01-01T10-00-abc") == \
            "https://up.example/put?path=multitrack/2025-01-01T10-00-abc.zip"
