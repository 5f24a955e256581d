"""
errors.py — every failure an analysis attempt can end with.

Components raise these categorised errors; only analysis.describe_failure()
and style.py turn them into user-facing text.
"""
from __future__ import annotations

from typing import Optional


class UpcycleError(Exception):
    """Base class. str(exc) is a short human-readable reason."""


class ImageReadError(UpcycleError, OSError):
    """The local image could not be read."""


# ── Camera ────────────────────────────────────────────────────────────────────

class CameraError(UpcycleError):
    pass


class PermissionDenied(CameraError):
    def __init__(self, message: str = "Camera permission was denied. Please allow camera access") -> None:
        super().__init__(message)


class DeviceUnavailable(CameraError):
    def __init__(self, message: str = "Could not open camera. It might be in use or not available") -> None:
        super().__init__(message)


class CameraStateError(CameraError):
    """Operation not valid in the controller's current state."""


# ── Upstream services ─────────────────────────────────────────────────────────

class UpstreamError(UpcycleError):
    """A vendor endpoint answered with a non-success status (or not at all)."""

    def __init__(self, service: str, status: Optional[int], detail: str = "") -> None:
        self.service = service
        self.status  = status
        self.detail  = detail
        if detail:
            message = f"{service} API failed: {detail}"
        else:
            message = f"{service} API failed"
        super().__init__(message)


class MalformedResponse(UpcycleError):
    def __init__(self, raw: str, service: str = "Gemini") -> None:
        self.raw = raw
        super().__init__(f"Failed to parse {service} JSON response")


class ItemNotIdentified(UpcycleError):
    def __init__(self) -> None:
        super().__init__("Could not identify the waste item")


class NoResultsError(UpcycleError):
    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__("No YouTube videos found for this item")
