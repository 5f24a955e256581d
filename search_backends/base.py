"""
Abstract base for video search backends.
Every backend returns the same VideoSuggestion list — the rest of the app
doesn't care which backend is active.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

EMBED_BASE = "https://www.youtube.com/embed/"

DESCRIPTION_LIMIT       = 200
DESCRIPTION_PLACEHOLDER = "Upcycling tutorial video."

# Tried in order; the first match wins.
_LINK_PATTERNS = (
    re.compile(r"[?&]v=([^&#]+)"),                  # https://www.youtube.com/watch?v=ID
    re.compile(r"youtu\.be/([^?&#/]+)"),            # https://youtu.be/ID
    re.compile(r"youtube\.com/embed/([^?&#/]+)"),   # https://www.youtube.com/embed/ID
)


@dataclass(frozen=True)
class VideoSuggestion:
    title: str
    channel: str
    description: str    # at most DESCRIPTION_LIMIT chars
    embed_url: str


def embed_url(video_id: str) -> str:
    return f"{EMBED_BASE}{video_id}"


def trim_description(description: Optional[str]) -> str:
    if not description:
        return DESCRIPTION_PLACEHOLDER
    return description[:DESCRIPTION_LIMIT]


def normalize_embed_url(link: Optional[str]) -> Optional[str]:
    """
    Resolve watch / short-share / embed links to the canonical embed URL.
    Links that match none of the known shapes are returned unchanged.
    """
    if not link:
        return link
    for pattern in _LINK_PATTERNS:
        match = pattern.search(link)
        if match:
            return embed_url(match.group(1))
    return link


def is_embed_url(link: Optional[str]) -> bool:
    return bool(link) and "youtube.com/embed/" in link


class SearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    async def search(self, query: str, max_results: int) -> list[VideoSuggestion]:
        """
        Search for embeddable videos matching `query`.
        Returns up to max_results VideoSuggestion objects, newest first.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...
