"""
Google Gemini vision provider — uses the google-genai SDK.

Sends the identification prompt plus the inlined image as a single user turn
and reads the first text part of the first candidate.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import aiohttp
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from errors import UpstreamError
from image_encoder import ImagePayload
from providers.base import (
    EMPTY_RESPONSE, IDENTIFY_PROMPT,
    IdentificationResult, VisionProvider, parse_identification,
)

logger = logging.getLogger(__name__)


class GeminiProvider(VisionProvider):

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", client: Optional[Any] = None):
        self.name     = "google"
        self.model_id = model
        self._client  = client or genai.Client(api_key=api_key)

    def build_contents(self, payload: ImagePayload) -> list[genai_types.Content]:
        return [
            genai_types.Content(
                role="user",
                parts=[
                    genai_types.Part.from_text(text=IDENTIFY_PROMPT),
                    genai_types.Part.from_bytes(data=payload.to_bytes(), mime_type=payload.mime_type),
                ],
            )
        ]

    async def identify(self, payload: ImagePayload) -> IdentificationResult:
        t0 = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_id,
                contents=self.build_contents(payload),
            )
        except genai_errors.APIError as exc:
            detail = json.dumps(exc.details) if exc.details is not None else str(exc)
            logger.error("[%s] API error %s: %s", self.full_name, exc.code, detail[:300])
            raise UpstreamError("Gemini", exc.code, detail) from exc
        except (httpx.HTTPError, aiohttp.ClientError) as exc:
            # Transport failures; the SDK talks over httpx, or aiohttp when installed
            logger.error("[%s] Request failed: %s", self.full_name, exc)
            raise UpstreamError("Gemini", None, str(exc) or type(exc).__name__) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = first_text(response)
        result = parse_identification(raw, self.full_name)
        logger.info("[%s] Identified '%s' in %dms", self.full_name, result.item_name, latency_ms)
        return result


def first_text(response: Any) -> str:
    """Text of the first part of the first candidate, or "{}" when absent."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return EMPTY_RESPONSE
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return EMPTY_RESPONSE
    return getattr(parts[0], "text", None) or EMPTY_RESPONSE
