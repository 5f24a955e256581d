"""
camera.py — host camera capture for the /camera → /snap flow.

Lifecycle:
    CLOSED ──open()──▶ OPENING ──granted──▶ LIVE ──capture_frame() / close()──▶ CLOSED
                          └──denied / unavailable──▶ CLOSED

Only one stream is ever held. open() releases the previous stream before
acquiring a new one, capture_frame() releases it on every exit path, and the
controller works as a context manager so an abrupt teardown still frees the
device.

Handlers call the controller from worker threads, so every state change runs
under one lock. A /camera that arrives during a /snap read waits for the read
to finish and then opens a fresh stream that stays live.

The stream opener is injectable: the default one wraps cv2.VideoCapture, tests
pass a fake.
"""
from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from typing import Any, Callable, Optional

import cv2

from errors import CameraStateError, DeviceUnavailable, PermissionDenied
from image_encoder import ImageFile

logger = logging.getLogger(__name__)

SNAPSHOT_NAME = "snapshot.jpg"
SNAPSHOT_MIME = "image/jpeg"

StreamOpener = Callable[[int], Any]


class CameraState(str, Enum):
    CLOSED  = "closed"
    OPENING = "opening"
    LIVE    = "live"


def open_opencv_stream(device: int) -> "cv2.VideoCapture":
    """Open /dev/video<device> (or the platform equivalent) through OpenCV."""
    dev_path = f"/dev/video{device}"
    if os.path.exists(dev_path) and not os.access(dev_path, os.R_OK | os.W_OK):
        raise PermissionDenied()

    capture = cv2.VideoCapture(device)
    if not capture.isOpened():
        capture.release()
        raise DeviceUnavailable()
    return capture


def stop_stream(stream: Any) -> None:
    """Release every resource held by a stream handle."""
    try:
        stream.release()
    except Exception as exc:
        logger.warning("Camera stream release failed: %s", exc)


class CameraCaptureController:

    def __init__(
        self,
        device: int = 0,
        jpeg_quality: int = 95,
        open_stream: Optional[StreamOpener] = None,
    ) -> None:
        self._device       = device
        self._jpeg_quality = jpeg_quality
        self._open_stream  = open_stream or open_opencv_stream
        self._stream: Any  = None
        self._state        = CameraState.CLOSED
        self._lock         = threading.Lock()

    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def stream(self) -> Any:
        """The live stream handle for a preview surface, or None."""
        return self._stream

    @property
    def is_live(self) -> bool:
        return self._state is CameraState.LIVE

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def open(self) -> Any:
        """
        Acquire the camera and go LIVE.
        Raises PermissionDenied or DeviceUnavailable; the state is CLOSED after either.
        """
        with self._lock:
            self._release()
            self._state = CameraState.OPENING
            try:
                stream = self._open_stream(self._device)
            except (PermissionDenied, DeviceUnavailable):
                self._state = CameraState.CLOSED
                raise
            except PermissionError as exc:
                self._state = CameraState.CLOSED
                raise PermissionDenied() from exc
            except Exception as exc:
                self._state = CameraState.CLOSED
                logger.error("Error opening camera %d: %s", self._device, exc)
                raise DeviceUnavailable() from exc

            self._stream = stream
            self._state  = CameraState.LIVE
        logger.info("Camera %d is live", self._device)
        return stream

    def capture_frame(self) -> ImageFile:
        """Grab the current frame as a JPEG snapshot and close the camera."""
        with self._lock:
            if self._state is not CameraState.LIVE:
                raise CameraStateError(f"Cannot capture while camera is {self._state.value}")
            stream = self._stream

            try:
                ok, frame = stream.read()
                if not ok or frame is None:
                    raise DeviceUnavailable("Camera returned no frame")

                # Frames come at the stream's native resolution; encode as-is
                height, width = frame.shape[:2]
                ok, buf = cv2.imencode(
                    ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality],
                )
                if not ok:
                    raise DeviceUnavailable("Could not encode camera frame")
            finally:
                self._close_stream(stream)

        logger.info("Captured %dx%d snapshot (%d bytes)", width, height, len(buf))
        return ImageFile(name=SNAPSHOT_NAME, mime_type=SNAPSHOT_MIME, source=buf.tobytes())

    def close(self) -> None:
        """Stop the stream and go CLOSED. Safe to call in any state."""
        with self._lock:
            if self._stream is not None:
                logger.info("Closing camera %d", self._device)
            self._release()
            self._state = CameraState.CLOSED

    def _close_stream(self, stream: Any) -> None:
        # Only the stream that was read from; a newer one stays live
        if self._stream is stream:
            self._stream = None
            self._state  = CameraState.CLOSED
        stop_stream(stream)

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stop_stream(stream)

    # ── Context manager ───────────────────────────────────────────────────────

    def __enter__(self) -> "CameraCaptureController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
