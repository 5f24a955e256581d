"""
Tests for video_search.py.

Covers:
  - search_query(): "upcycling " prefix
  - recommend(): passes query + cap to the backend, keeps order, NoResultsError on empty
  - build_backend(): YouTube backend with the given key
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from errors import NoResultsError, UpstreamError
from search_backends.base import SearchBackend, VideoSuggestion
from search_backends.youtube_backend import YouTubeBackend
from video_search import build_backend, recommend, search_query


def make_video(video_id: str) -> VideoSuggestion:
    return VideoSuggestion(
        title=f"Video {video_id}",
        channel="Channel",
        description="desc",
        embed_url=f"https://www.youtube.com/embed/{video_id}",
    )


def make_backend(videos=None, side_effect=None) -> MagicMock:
    backend = MagicMock(spec=SearchBackend)
    backend.name = "fake"
    backend.search = AsyncMock(return_value=videos, side_effect=side_effect)
    return backend


def test_search_query_prefix():
    assert search_query("glass jar") == "upcycling glass jar"


def test_build_backend_returns_youtube():
    backend = build_backend("key123")
    assert isinstance(backend, YouTubeBackend)
    assert backend.name == "YouTube Data API v3"


@pytest.mark.asyncio
class TestRecommend:
    async def test_queries_backend_with_prefix_and_cap(self):
        backend = make_backend([make_video("a")])
        await recommend("tin can", backend, max_results=5)
        backend.search.assert_awaited_once_with("upcycling tin can", 5)

    async def test_keeps_backend_order(self):
        videos = [make_video(v) for v in ("c", "a", "b")]
        backend = make_backend(videos)
        assert await recommend("tin can", backend) == videos

    async def test_no_results_raises(self):
        backend = make_backend([])
        with pytest.raises(NoResultsError) as exc_info:
            await recommend("mystery object", backend)
        assert exc_info.value.query == "upcycling mystery object"

    async def test_upstream_error_propagates(self):
        backend = make_backend(side_effect=UpstreamError("YouTube", 500, "oops"))
        with pytest.raises(UpstreamError):
            await recommend("jar", backend)
