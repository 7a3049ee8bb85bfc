"""
HTTP transport for the Dynmap web API.

Dynmap serves four kinds of resources:
  GET standalone/config.js            -- plain-text bootstrap document
  GET <configuration>                 -- JSON server configuration
  GET <update>/<world>/<timestamp>    -- JSON player/world update
  GET <markers>_markers_/marker_<world>.json -- JSON marker sets

No retries or backoff here: a failed poll simply waits for its next tick.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from ..errors import DynmapError, TransportError
from .utils import API_TIMEOUT

logger = logging.getLogger(__name__)

USER_AGENT = "dynmap-live/0.1"


class Transport(Protocol):
    """
    Anything that can fetch a URL and return parsed JSON or raw text.

    ``fetch`` should raise ``TransportError`` on failure. Other exceptions
    are tolerated: callers go through ``fetch_url``, which wraps them.
    """

    async def fetch(self, url: str, *, json: bool = True) -> Any:
        ...

    async def close(self) -> None:
        ...


async def fetch_url(transport: Transport, url: str, *, json: bool = True) -> Any:
    """Fetch through ``transport``, reporting any failure as a ``DynmapError``."""
    try:
        return await transport.fetch(url, json=json)
    except DynmapError:
        raise
    except Exception as e:
        raise TransportError(f"Request to {url} failed: {e!r}", url=url) from e


class HttpTransport:
    """``Transport`` backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout: float = API_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT, **(headers or {})},
        )

    async def fetch(self, url: str, *, json: bool = True) -> Any:
        """Issue a GET and return parsed JSON (or text when ``json=False``)."""
        logger.debug("GET %s", url)
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code} for {url}", url=url
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        if not json:
            return resp.text
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url}", url=url) from e

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
