"""
analysis.py — the photo → item → videos pipeline.

UpcycleAnalyzer.analyze() runs encode → identify → recommend and stops at the
first failure. AnalysisSession wraps it with the state a chat sees
(idle / in progress / succeeded / failed).

In-flight calls are never cancelled. Each run gets a generation number; when
a newer run starts, or the session is reset by a new photo or /camera, an
older run's eventual result or error is dropped instead of overwriting the
newer state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from errors import UpcycleError
from image_encoder import ImageFile, encode
from providers.base import VisionProvider
from search_backends.base import SearchBackend, VideoSuggestion
from video_search import recommend

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    item_name: str
    video_suggestions: list[VideoSuggestion] = field(default_factory=list)


class UpcycleAnalyzer:

    def __init__(self, provider: VisionProvider, backend: SearchBackend, max_results: int = 5) -> None:
        self.provider    = provider
        self.backend     = backend
        self.max_results = max_results

    async def analyze(self, image: ImageFile) -> AnalysisResult:
        payload        = await encode(image)
        identification = await self.provider.identify(payload)
        videos         = await recommend(identification.item_name, self.backend, self.max_results)
        return AnalysisResult(item_name=identification.item_name, video_suggestions=videos)


def describe_failure(exc: BaseException) -> str:
    """The one place an analysis error becomes a sentence for the user."""
    if isinstance(exc, UpcycleError):
        reason = str(exc).rstrip(". ")
    else:
        reason = "Something went wrong"
    return f"Failed to analyze image. {reason}. Please try again."


# ── Session state ──────────────────────────────────────────────────────────────

class AnalysisStatus(str, Enum):
    IDLE        = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED   = "succeeded"
    FAILED      = "failed"


@dataclass
class AnalysisSession:
    status: AnalysisStatus          = AnalysisStatus.IDLE
    result: Optional[AnalysisResult] = None
    error: Optional[str]            = None
    generation: int                 = 0

    @property
    def in_progress(self) -> bool:
        return self.status is AnalysisStatus.IN_PROGRESS

    def reset(self) -> None:
        """A new input source was chosen: forget the last result and error."""
        self.generation += 1
        self.status = AnalysisStatus.IDLE
        self.result = None
        self.error  = None

    async def run(self, analyzer: UpcycleAnalyzer, image: ImageFile) -> bool:
        """
        Analyze *image* and record the outcome.
        Returns False when the run was superseded before it finished.
        """
        self.generation += 1
        token = self.generation
        self.status = AnalysisStatus.IN_PROGRESS
        self.result = None
        self.error  = None

        try:
            result = await analyzer.analyze(image)
        except UpcycleError as exc:
            if token != self.generation:
                logger.info("Dropping stale failure from run %d: %s", token, exc)
                return False
            logger.warning("Analysis failed: %s", exc)
            self.status = AnalysisStatus.FAILED
            self.error  = describe_failure(exc)
            return True
        except Exception as exc:
            if token != self.generation:
                logger.info("Dropping stale failure from run %d: %s", token, exc)
                return False
            logger.exception("Unexpected error analysing image")
            self.status = AnalysisStatus.FAILED
            self.error  = describe_failure(exc)
            return True

        if token != self.generation:
            logger.info("Dropping stale result from run %d ('%s')", token, result.item_name)
            return False
        self.status = AnalysisStatus.SUCCEEDED
        self.result = result
        return True
