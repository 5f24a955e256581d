"""
Shared types and base class for vision providers that identify waste items.
"""
from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from errors import ItemNotIdentified, MalformedResponse
from image_encoder import ImagePayload

logger = logging.getLogger(__name__)

# ── Prompt (shared across all providers) ──────────────────────────────────────

IDENTIFY_PROMPT = """
Analyze this image and identify the waste item shown.
Respond ONLY in raw JSON like:
{"itemName": "plastic bottle"}
Do not include any code fences, markdown, or explanations.
"""

# Response text used when the model returns no text part at all
EMPTY_RESPONSE = "{}"

# ``` optionally followed by a language tag (```json, ```JSON, ```js …)
_FENCE = re.compile(r"```[a-z0-9_+-]*\s*", re.IGNORECASE)


# ── Shared result type ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class IdentificationResult:
    item_name: str


def cleanup_json_text(raw: str) -> str:
    """
    Strip markdown code fences and surrounding whitespace from model output.
    Idempotent: clean JSON comes back unchanged.
    """
    return _FENCE.sub("", raw).strip()


def parse_identification(raw: str, provider_name: str) -> IdentificationResult:
    """
    Parse {"itemName": ...} from a model response, fenced or not.
    Raises MalformedResponse on invalid JSON, ItemNotIdentified when itemName is missing/empty.
    """
    text = cleanup_json_text(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", provider_name, raw[:300])
        raise MalformedResponse(raw) from exc

    item_name = data.get("itemName") if isinstance(data, dict) else None
    if not isinstance(item_name, str) or not item_name.strip():
        logger.warning("[%s] No itemName in response: %s", provider_name, text[:300])
        raise ItemNotIdentified()
    return IdentificationResult(item_name=item_name.strip())


# ── Abstract base ──────────────────────────────────────────────────────────────

class VisionProvider(ABC):
    """Base class all vision providers must implement."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.0-flash"

    @abstractmethod
    async def identify(self, payload: ImagePayload) -> IdentificationResult:
        """Identify the waste item in *payload*. Single round trip, no retries."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
