"""
bot.py — Telegram bot handlers.

All visual formatting is delegated to style.py.
Analysis state is kept in-memory per chat_id (AnalysisSession).

Input sources are mutually exclusive: sending a photo/image file or running
/camera clears the chat's previous result and error. Updates are handled
concurrently, so a new photo can arrive while an older one is still being
analyzed; the older run's outcome is then dropped.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque

from telegram import LinkPreviewOptions, Message, Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

import style
from analysis import AnalysisSession, AnalysisStatus, UpcycleAnalyzer
from camera import CameraCaptureController
from errors import CameraError
from image_encoder import ImageFile

logger = logging.getLogger(__name__)

ANALYZER_KEY = "analyzer"
CAMERA_KEY   = "camera"

_NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


# ── Session ────────────────────────────────────────────────────────────────────

_sessions: dict[int, AnalysisSession] = {}


def get_session(chat_id: int) -> AnalysisSession:
    if chat_id not in _sessions:
        _sessions[chat_id] = AnalysisSession()
    return _sessions[chat_id]


# ── Rate limiter ───────────────────────────────────────────────────────────────
RATE_MAX_REQUESTS = 5
RATE_WINDOW_SECS  = 60
_rate_buckets: dict[int, deque] = defaultdict(deque)


def _is_rate_limited(user_id: int) -> bool:
    now    = time.monotonic()
    bucket = _rate_buckets[user_id]
    while bucket and now - bucket[0] > RATE_WINDOW_SECS:
        bucket.popleft()
    if len(bucket) >= RATE_MAX_REQUESTS:
        return True
    bucket.append(now)
    return False


def _analyzer(context: ContextTypes.DEFAULT_TYPE) -> UpcycleAnalyzer:
    return context.bot_data[ANALYZER_KEY]


def _camera(context: ContextTypes.DEFAULT_TYPE) -> CameraCaptureController:
    return context.bot_data[CAMERA_KEY]


# ── Handlers ───────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.welcome(), parse_mode="MarkdownV2")


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.help_text(), parse_mode="MarkdownV2")


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """A photo, or a document with an image/* MIME type."""
    message = update.message

    if message.photo:
        file_id   = message.photo[-1].file_id
        name      = "photo.jpg"
        mime_type = "image/jpeg"   # Telegram re-encodes photos as JPEG
    else:
        document = message.document
        if not document or not (document.mime_type or "").startswith("image/"):
            await message.reply_text(style.select_image_first(), parse_mode="MarkdownV2")
            return
        file_id   = document.file_id
        name      = document.file_name or "image"
        mime_type = document.mime_type

    if _is_rate_limited(update.effective_user.id):
        await message.reply_text(
            style.error_rate_limited(RATE_MAX_REQUESTS, RATE_WINDOW_SECS),
            parse_mode="MarkdownV2",
        )
        return

    session = get_session(update.effective_chat.id)
    session.reset()

    camera = _camera(context)
    if camera.is_live:
        await asyncio.to_thread(camera.close)

    tg_file     = await context.bot.get_file(file_id)
    image_bytes = bytes(await tg_file.download_as_bytearray())
    image = ImageFile(name=name, mime_type=mime_type, source=image_bytes)
    await _analyze_and_render(message, session, _analyzer(context), image)


async def cmd_camera(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_session(update.effective_chat.id)
    session.reset()

    try:
        await asyncio.to_thread(_camera(context).open)
    except CameraError as exc:
        logger.warning("Camera open failed: %s", exc)
        await update.message.reply_text(style.error_banner(str(exc)), parse_mode="MarkdownV2")
        return

    await update.message.reply_text(style.camera_live(), parse_mode="MarkdownV2")


async def cmd_snap(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    camera = _camera(context)
    if not camera.is_live:
        await update.message.reply_text(style.camera_not_open(), parse_mode="MarkdownV2")
        return

    if _is_rate_limited(update.effective_user.id):
        await update.message.reply_text(
            style.error_rate_limited(RATE_MAX_REQUESTS, RATE_WINDOW_SECS),
            parse_mode="MarkdownV2",
        )
        return

    try:
        image = await asyncio.to_thread(camera.capture_frame)
    except CameraError as exc:
        logger.warning("Snapshot failed: %s", exc)
        await update.message.reply_text(style.error_banner(str(exc)), parse_mode="MarkdownV2")
        return

    session = get_session(update.effective_chat.id)
    await _analyze_and_render(update.message, session, _analyzer(context), image)


async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await asyncio.to_thread(_camera(context).close)
    await update.message.reply_text(style.camera_closed(), parse_mode="MarkdownV2")


async def handle_non_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.not_a_photo(), parse_mode="MarkdownV2")


async def _analyze_and_render(
    message: Message,
    session: AnalysisSession,
    analyzer: UpcycleAnalyzer,
    image: ImageFile,
) -> None:
    msg = await message.reply_text(style.loading_analysis(), parse_mode="MarkdownV2")

    current = await session.run(analyzer, image)
    if not current:
        await msg.edit_text(style.superseded(), parse_mode="MarkdownV2")
        return

    if session.status is AnalysisStatus.SUCCEEDED:
        await msg.edit_text(
            style.results_page(session.result),
            parse_mode="MarkdownV2",
            link_preview_options=_NO_PREVIEW,
        )
    else:
        await msg.edit_text(style.error_banner(session.error or ""), parse_mode="MarkdownV2")


# ── App factory ────────────────────────────────────────────────────────────────

async def _post_shutdown(application: Application) -> None:
    camera = application.bot_data.get(CAMERA_KEY)
    if camera is not None:
        camera.close()
        logger.info("Camera released.")


def build_application(
    token: str,
    analyzer: UpcycleAnalyzer,
    camera: CameraCaptureController,
) -> Application:
    app = (
        Application.builder()
        .token(token)
        .concurrent_updates(True)
        .post_shutdown(_post_shutdown)
        .build()
    )
    app.bot_data[ANALYZER_KEY] = analyzer
    app.bot_data[CAMERA_KEY]   = camera

    app.add_handler(CommandHandler("start",  cmd_start))
    app.add_handler(CommandHandler("help",   cmd_help))
    app.add_handler(CommandHandler("camera", cmd_camera))
    app.add_handler(CommandHandler("snap",   cmd_snap))
    app.add_handler(CommandHandler("cancel", cmd_cancel))
    app.add_handler(MessageHandler(filters.PHOTO | filters.Document.ALL, handle_photo))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND,      handle_non_photo))
    return app
