"""Shared utilities."""

from __future__ import annotations

import time

API_TIMEOUT = 30.0

# World name Dynmap reports for players hidden from every map
HIDDEN_WORLD = "-some-other-bogus-world-"


def now_ms() -> int:
    """Current wall-clock time in milliseconds, as Dynmap expects in URLs."""
    return int(time.time() * 1000)


def join_url(base: str, path: str) -> str:
    """
    Join a server-relative path onto the map's base URL.

    Absolute URLs are returned unchanged, so servers that publish their
    endpoints on another host keep working.
    """
    if path.startswith(("http://", "https://")):
        return path
    return base.rstrip("/") + "/" + path.lstrip("/")


def render_template(
    template: str,
    world: str | None = None,
    timestamp: int | None = None,
) -> str:
    """Substitute ``{world}`` and ``{timestamp}`` placeholders in an endpoint."""
    url = template
    if world is not None:
        url = url.replace("{world}", world)
    if timestamp is not None:
        url = url.replace("{timestamp}", str(timestamp))
    return url
