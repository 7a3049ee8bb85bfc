"""
Dynmap Live - client for a Dynmap server's public HTTP/JSON API.

Layers:
  api/      - Pure API pieces (transport, bootstrap discovery, wire models)
  tracker/  - Event emitter, player table, per-world poll loop
  client    - ``Dynmap`` facade tying bootstrap and tracking together
  watch     - Command-line watcher for the script workflow
"""

from .client import Dynmap
from .errors import (
    AlreadyTrackedError,
    AuthRequiredError,
    BootstrapParseError,
    DynmapError,
    NotReadyError,
    NotTrackedError,
    PayloadError,
    TrackingError,
    TransportError,
    UnknownWorldError,
)

__all__ = [
    "Dynmap",
    "DynmapError",
    "TransportError",
    "PayloadError",
    "BootstrapParseError",
    "AuthRequiredError",
    "NotReadyError",
    "TrackingError",
    "UnknownWorldError",
    "AlreadyTrackedError",
    "NotTrackedError",
]
