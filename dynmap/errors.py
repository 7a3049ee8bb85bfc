"""Exception hierarchy for the Dynmap client."""

from __future__ import annotations

from typing import Optional


class DynmapError(Exception):
    """Base class for every error raised by this package."""


# ── Recoverable (poll cycles keep going) ─────────────────────────────

class TransportError(DynmapError):
    """Network, HTTP status or decoding failure for a single request."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class PayloadError(DynmapError):
    """A response decoded fine but does not have the expected shape."""


# ── Fatal during bootstrap ───────────────────────────────────────────

class BootstrapParseError(DynmapError):
    """The bootstrap document or server configuration could not be understood."""


class AuthRequiredError(DynmapError):
    """The server requires a login before exposing its configuration."""


class NotReadyError(DynmapError):
    """An operation needed the bootstrap to have completed successfully."""


# ── Tracking misuse ──────────────────────────────────────────────────

class TrackingError(DynmapError):
    def __init__(self, message: str, world: Optional[str] = None):
        super().__init__(message)
        self.world = world


class UnknownWorldError(TrackingError):
    pass


class AlreadyTrackedError(TrackingError):
    pass


class NotTrackedError(TrackingError):
    pass
