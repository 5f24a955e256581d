"""
Tests for bot.py handlers with mocked Telegram objects.

Covers:
  - handle_photo(): success renders results, failure renders error banner
  - handle_photo(): non-image document rejected, live camera closed
  - handle_photo(): rate limit checked before any download
  - handle_photo(): a newer photo supersedes a running analysis ("Skipped")
  - cmd_camera(): clears previous result, reports camera errors
  - cmd_snap(): requires a live camera, analyzes the snapshot
  - cmd_cancel(): closes the camera
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

import bot
from analysis import AnalysisResult, AnalysisStatus
from camera import CameraCaptureController
from errors import DeviceUnavailable, NoResultsError, PermissionDenied
from image_encoder import ImageFile
from search_backends.base import VideoSuggestion

CHAT_ID = 42
USER_ID = 7


class FakeStream:
    def __init__(self):
        import numpy as np
        self.frame = np.zeros((8, 8, 3), dtype=np.uint8)
        self.released = False

    def read(self):
        return True, self.frame

    def release(self):
        self.released = True


def make_result() -> AnalysisResult:
    return AnalysisResult(
        "glass jar",
        [VideoSuggestion("Jar lamp", "Maker", "How to.", "https://www.youtube.com/embed/abc")],
    )


def make_analyzer(result=None, side_effect=None) -> MagicMock:
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value=result or make_result(), side_effect=side_effect)
    return analyzer


def make_update(photo: bool = True, document=None):
    loading_msg = MagicMock()
    loading_msg.edit_text = AsyncMock()

    message = MagicMock()
    message.photo = [MagicMock(file_id="small"), MagicMock(file_id="large")] if photo else []
    message.document = document
    message.reply_text = AsyncMock(return_value=loading_msg)

    update = MagicMock()
    update.message = message
    update.effective_chat.id = CHAT_ID
    update.effective_user.id = USER_ID
    return update, loading_msg


def make_context(analyzer, camera=None):
    tg_file = MagicMock()
    tg_file.download_as_bytearray = AsyncMock(return_value=bytearray(b"\xff\xd8\xff\xe0photo"))

    context = MagicMock()
    context.bot.get_file = AsyncMock(return_value=tg_file)
    context.bot_data = {
        bot.ANALYZER_KEY: analyzer,
        bot.CAMERA_KEY: camera or CameraCaptureController(open_stream=lambda device: FakeStream()),
    }
    return context


@pytest.mark.asyncio
class TestHandlePhoto:
    async def test_success_renders_results(self):
        analyzer = make_analyzer()
        update, loading = make_update()
        await bot.handle_photo(update, make_context(analyzer))

        image = analyzer.analyze.await_args.args[0]
        assert image.mime_type == "image/jpeg"
        assert image.source == b"\xff\xd8\xff\xe0photo"
        text = loading.edit_text.await_args.args[0]
        assert "glass jar" in text
        assert bot.get_session(CHAT_ID).status is AnalysisStatus.SUCCEEDED

    async def test_largest_photo_size_downloaded(self):
        update, _ = make_update()
        context = make_context(make_analyzer())
        await bot.handle_photo(update, context)
        context.bot.get_file.assert_awaited_once_with("large")

    async def test_failure_renders_error_banner(self):
        analyzer = make_analyzer(side_effect=NoResultsError("upcycling jar"))
        update, loading = make_update()
        await bot.handle_photo(update, make_context(analyzer))

        text = loading.edit_text.await_args.args[0]
        assert "Error" in text
        assert "No YouTube videos found for this item" in text
        assert bot.get_session(CHAT_ID).status is AnalysisStatus.FAILED

    async def test_image_document_accepted(self):
        document = MagicMock(mime_type="image/png", file_id="doc", file_name="jar.png")
        analyzer = make_analyzer()
        update, _ = make_update(photo=False, document=document)
        await bot.handle_photo(update, make_context(analyzer))

        image = analyzer.analyze.await_args.args[0]
        assert image.mime_type == "image/png"
        assert image.name == "jar.png"

    async def test_non_image_document_rejected(self):
        document = MagicMock(mime_type="application/pdf", file_id="doc", file_name="x.pdf")
        analyzer = make_analyzer()
        update, _ = make_update(photo=False, document=document)
        await bot.handle_photo(update, make_context(analyzer))

        analyzer.analyze.assert_not_awaited()
        update.message.reply_text.assert_awaited_once()
        assert "select an image first" in update.message.reply_text.await_args.args[0]

    async def test_live_camera_closed_when_photo_sent(self):
        camera = CameraCaptureController(open_stream=lambda device: FakeStream())
        camera.open()
        update, _ = make_update()
        await bot.handle_photo(update, make_context(make_analyzer(), camera))
        assert not camera.is_live

    async def test_rate_limited(self):
        for _ in range(bot.RATE_MAX_REQUESTS):
            bot._is_rate_limited(USER_ID)
        analyzer = make_analyzer()
        update, _ = make_update()
        context = make_context(analyzer)
        await bot.handle_photo(update, context)
        analyzer.analyze.assert_not_awaited()
        context.bot.get_file.assert_not_awaited()
        assert "Slow Down" in update.message.reply_text.await_args.args[0]

    async def test_newer_photo_supersedes_running_analysis(self):
        first_started = asyncio.Event()
        release_first = asyncio.Event()
        newer = AnalysisResult("tin can", make_result().video_suggestions)

        async def analyze(image):
            if not first_started.is_set():
                first_started.set()
                await release_first.wait()
                return make_result()
            return newer

        analyzer = MagicMock()
        analyzer.analyze = AsyncMock(side_effect=analyze)
        context = make_context(analyzer)

        first_update, first_loading = make_update()
        second_update, second_loading = make_update()

        first = asyncio.create_task(bot.handle_photo(first_update, context))
        await asyncio.wait_for(first_started.wait(), timeout=2)
        await bot.handle_photo(second_update, context)
        release_first.set()
        await asyncio.wait_for(first, timeout=2)

        assert analyzer.analyze.await_count == 2
        assert "tin can" in second_loading.edit_text.await_args.args[0]
        assert "Skipped" in first_loading.edit_text.await_args.args[0]
        session = bot.get_session(CHAT_ID)
        assert session.status is AnalysisStatus.SUCCEEDED
        assert session.result.item_name == "tin can"


@pytest.mark.asyncio
class TestCameraCommands:
    async def test_camera_opens_and_clears_previous_result(self):
        session = bot.get_session(CHAT_ID)
        session.status = AnalysisStatus.SUCCEEDED
        session.result = make_result()

        context = make_context(make_analyzer())
        update, _ = make_update()
        await bot.cmd_camera(update, context)

        assert context.bot_data[bot.CAMERA_KEY].is_live
        assert session.result is None
        assert session.status is AnalysisStatus.IDLE
        assert "Camera is live" in update.message.reply_text.await_args.args[0]

    async def test_camera_permission_denied_reported(self):
        def deny(device):
            raise PermissionDenied()
        context = make_context(make_analyzer(), CameraCaptureController(open_stream=deny))
        update, _ = make_update()
        await bot.cmd_camera(update, context)
        assert "permission was denied" in update.message.reply_text.await_args.args[0]

    async def test_camera_unavailable_reported(self):
        def broken(device):
            raise DeviceUnavailable()
        context = make_context(make_analyzer(), CameraCaptureController(open_stream=broken))
        update, _ = make_update()
        await bot.cmd_camera(update, context)
        assert "Could not open camera" in update.message.reply_text.await_args.args[0]

    async def test_snap_requires_live_camera(self):
        analyzer = make_analyzer()
        update, _ = make_update()
        await bot.cmd_snap(update, make_context(analyzer))
        analyzer.analyze.assert_not_awaited()
        assert "/camera first" in update.message.reply_text.await_args.args[0]

    async def test_snap_analyzes_snapshot_and_closes_camera(self):
        analyzer = make_analyzer()
        context = make_context(analyzer)
        camera = context.bot_data[bot.CAMERA_KEY]
        camera.open()

        update, loading = make_update()
        await bot.cmd_snap(update, context)

        image = analyzer.analyze.await_args.args[0]
        assert isinstance(image, ImageFile)
        assert image.name == "snapshot.jpg"
        assert image.mime_type == "image/jpeg"
        assert not camera.is_live
        assert "glass jar" in loading.edit_text.await_args.args[0]

    async def test_cancel_closes_camera(self):
        context = make_context(make_analyzer())
        camera = context.bot_data[bot.CAMERA_KEY]
        camera.open()
        stream = camera.stream

        update, _ = make_update()
        await bot.cmd_cancel(update, context)
        assert not camera.is_live
        assert stream.released is True
