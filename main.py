"""
main.py — Single entry point.

Loads configuration once, wires the vision provider, the video search backend
and the host camera into the analyzer, and runs the Telegram bot with polling
in one asyncio event loop.
"""
import asyncio
import logging
import signal
import sys
from pathlib import Path

import config
from analysis import UpcycleAnalyzer
from bot import build_application
from camera import CameraCaptureController
from providers.gemini_provider import GeminiProvider
from video_search import build_backend

# Log file lives in DATA_DIR so a single Docker volume mount captures it.
_data_dir = Path(config.DATA_DIR)
_data_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(str(_data_dir / "bot.log"), encoding="utf-8"),
    ],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_analyzer() -> UpcycleAnalyzer:
    provider = GeminiProvider(config.require("GOOGLE_API_KEY"), config.GEMINI_MODEL)
    backend  = build_backend(config.require("YOUTUBE_API_KEY"))
    logger.info("Vision provider: %s  ·  Search backend: %s", provider.full_name, backend.name)
    return UpcycleAnalyzer(provider, backend, max_results=config.MAX_VIDEOS)


async def run() -> None:
    analyzer = build_analyzer()
    camera   = CameraCaptureController(
        device=config.CAMERA_DEVICE,
        jpeg_quality=config.CAMERA_JPEG_QUALITY,
    )
    ptb_app = build_application(config.require("TELEGRAM_BOT_TOKEN"), analyzer, camera)

    stop_event = asyncio.Event()

    def _stop(*_):
        logger.info("Shutdown signal received.")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _stop)
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler for all signals
            pass

    async with ptb_app:
        await ptb_app.start()
        await ptb_app.updater.start_polling(
            allowed_updates=["message"],
            drop_pending_updates=True,
        )
        logger.info("✅ Bot is running. Press Ctrl+C to stop.")

        try:
            await stop_event.wait()
        except (KeyboardInterrupt, SystemExit):
            pass

        logger.info("Shutting down…")
        await ptb_app.updater.stop()
        await ptb_app.stop()

    logger.info("Goodbye.")


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
