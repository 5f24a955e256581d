"""
video_search.py — public interface for upcycling video recommendations.

The rest of the app imports only from here:
  from video_search import recommend, build_backend, VideoSuggestion
"""
from __future__ import annotations

import logging

from errors import NoResultsError
from search_backends.base import SearchBackend, VideoSuggestion

logger = logging.getLogger(__name__)

__all__ = ["VideoSuggestion", "build_backend", "recommend", "search_query"]

QUERY_PREFIX = "upcycling "


def build_backend(api_key: str) -> SearchBackend:
    from search_backends.youtube_backend import YouTubeBackend
    return YouTubeBackend(api_key=api_key)


def search_query(item_name: str) -> str:
    return QUERY_PREFIX + item_name


async def recommend(
    item_name: str,
    backend: SearchBackend,
    max_results: int = 5,
) -> list[VideoSuggestion]:
    """
    Find upcycling tutorials for *item_name*, in the order the backend returns them.
    Raises NoResultsError when nothing comes back; UpstreamError propagates from the backend.
    """
    query  = search_query(item_name)
    videos = await backend.search(query, max_results)
    if not videos:
        logger.info("[%s] No videos for '%s'", backend.name, query)
        raise NoResultsError(query)
    logger.info("[%s] '%s' → %d videos", backend.name, query, len(videos))
    return videos
