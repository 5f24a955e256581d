"""
Shared pytest fixtures.

Every test gets a clean bot session table and rate limiter so tests are
fully isolated from each other.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def clean_bot_state():
    """Reset the per-chat sessions and rate-limit buckets kept in bot.py."""
    import bot
    bot._sessions.clear()
    bot._rate_buckets.clear()
    yield
    bot._sessions.clear()
    bot._rate_buckets.clear()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A few bytes that look like the start of a JPEG file."""
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body\xff\xd9"
