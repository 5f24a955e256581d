"""
YouTube Data API v3 search backend.

Docs: https://developers.google.com/youtube/v3/docs/search/list

Every call asks for embeddable videos only, newest first, so that each
result can be played inline. Quota cost is 100 units per search call.
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from errors import UpstreamError
from search_backends.base import SearchBackend, VideoSuggestion, embed_url, trim_description

logger = logging.getLogger(__name__)

# ── API constants ──────────────────────────────────────────────────────────────
SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"


class YouTubeBackend(SearchBackend):

    def __init__(self, api_key: str) -> None:
        self._key = api_key

    @property
    def name(self) -> str:
        return "YouTube Data API v3"

    async def search(self, query: str, max_results: int = 5) -> list[VideoSuggestion]:
        params = {
            "part":            "snippet",
            "type":            "video",
            "maxResults":      str(max_results),
            "q":               query,
            "order":           "date",
            "videoEmbeddable": "true",
            "key":             self._key,
        }

        raw_items = await self._fetch(params)
        logger.info("YouTube returned %d items for query '%s'", len(raw_items), query)

        videos: list[VideoSuggestion] = []
        for raw in raw_items[:max_results]:
            video = self._parse_item(raw)
            if video:
                videos.append(video)
        return videos

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _fetch(self, params: dict) -> list:
        """Single HTTP call to the search endpoint. Returns raw item list (may be empty)."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(SEARCH_URL, params=params) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        logger.error("YouTube error %d: %s", resp.status, text[:300])
                        raise UpstreamError("YouTube", resp.status, text[:500])
                    data = await resp.json()
        except aiohttp.ClientError as exc:
            logger.error("YouTube request failed: %s", exc)
            raise UpstreamError("YouTube", None, str(exc)) from exc
        return data.get("items") or []

    # ── Parser ────────────────────────────────────────────────────────────────

    def _parse_item(self, raw: dict) -> Optional[VideoSuggestion]:
        if not raw or not isinstance(raw, dict):
            return None
        video_id = (raw.get("id") or {}).get("videoId")
        if not video_id:
            logger.warning("Skipping YouTube hit without videoId: %s", raw.get("id"))
            return None

        snippet = raw.get("snippet") or {}
        return VideoSuggestion(
            title=snippet.get("title", ""),
            channel=snippet.get("channelTitle", ""),
            description=trim_description(snippet.get("description")),
            embed_url=embed_url(video_id),
        )
