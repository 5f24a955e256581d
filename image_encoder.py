"""
image_encoder.py — turns a user-supplied image into a transfer-ready payload.

An ImageFile is whatever the user handed us (Telegram download, path on disk,
camera snapshot). encode() reads it off the event loop and returns an
ImagePayload: base64 data without any data-URI envelope, plus the MIME type.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from errors import ImageReadError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[^;,]*)(?:;[^,]*)?,", re.IGNORECASE)


@dataclass(frozen=True)
class ImageFile:
    """A binary image plus its declared MIME type (may be empty)."""
    name: str
    mime_type: str
    source: Union[bytes, Path]

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageFile":
        path = Path(path)
        mime, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, mime_type=mime or "", source=path)

    async def read(self) -> bytes:
        if isinstance(self.source, (bytes, bytearray)):
            return bytes(self.source)
        return await asyncio.to_thread(self.source.read_bytes)


@dataclass(frozen=True)
class ImagePayload:
    data: str          # base64, no "data:...;base64," prefix
    mime_type: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImagePayload":
        """Build a payload from a data URI such as canvas.toDataURL() output."""
        match = _DATA_URI.match(uri)
        if not match:
            raise ValueError("Not a data URI")
        return cls(data=uri[match.end():], mime_type=match.group("mime") or "image/jpeg")


def sniff_mime_type(image_bytes: bytes) -> str:
    """Guess an image MIME type from its magic bytes, defaulting to JPEG."""
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"GIF8":
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


async def encode(file: ImageFile) -> ImagePayload:
    """
    Read *file* and return its base64 payload and MIME type.
    Raises ImageReadError if the file cannot be read.
    """
    try:
        raw = await file.read()
    except OSError as exc:
        logger.error("Could not read image %s: %s", file.name, exc)
        raise ImageReadError(f"Could not read image {file.name}") from exc

    mime = file.mime_type or sniff_mime_type(raw)
    logger.debug("Encoded %s (%s, %d bytes)", file.name, mime, len(raw))
    return ImagePayload(data=base64.b64encode(raw).decode("ascii"), mime_type=mime)
