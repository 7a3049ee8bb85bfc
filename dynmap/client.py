"""
Dynmap client - bootstrap once, then track worlds and stream player events.

Usage::

    async with await Dynmap.connect("https://map.example.org/") as dynmap:
        dynmap.on("playerAdded", lambda p: print("joined", p.account))
        dynmap.track()
        await asyncio.sleep(60)

Construction must happen inside a running event loop: the bootstrap runs
as a detached task and reports failures through the ``error`` event.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from pydantic import ValidationError

from .api.bootstrap import DEFAULT_CONFIG_PATH, Session, fetch_session
from .api.http import HttpTransport, Transport, fetch_url
from .api.models import Endpoints, MarkerSet, Player, ServerConfig, World
from .api.utils import API_TIMEOUT, join_url, now_ms, render_template
from .errors import (
    AlreadyTrackedError,
    DynmapError,
    NotReadyError,
    NotTrackedError,
    PayloadError,
    UnknownWorldError,
)
from .tracker.events import ERROR, READY, UPDATE, EventEmitter
from .tracker.players import PlayerTable
from .tracker.poller import TrackingHandle

logger = logging.getLogger(__name__)


class Dynmap(EventEmitter):
    """
    A Dynmap server.

    Tracking and on-demand queries are only valid once the ``ready`` event
    has fired (or ``wait_ready`` has returned).
    """

    def __init__(
        self,
        url: str,
        config_path: str = DEFAULT_CONFIG_PATH,
        *,
        transport: Optional[Transport] = None,
        timeout: float = API_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        poll_interval: Optional[float] = None,
    ):
        """
        Args:
            url: Base URL of the map, e.g. ``http://dynmap.starcatcher.us/``
            config_path: Location of the bootstrap document under ``url``
            transport: Custom transport; defaults to an ``HttpTransport``
            timeout: Request timeout for the default transport (seconds)
            headers: Extra request headers for the default transport
            poll_interval: Override the server's update rate (seconds)
        """
        super().__init__()
        self.url = url
        self.config_path = config_path
        self.poll_interval = poll_interval

        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpTransport(timeout=timeout, headers=headers)

        self._session: Optional[Session] = None
        self._bootstrap_error: Optional[BaseException] = None
        self._players = PlayerTable()
        self._tracking: dict[str, TrackingHandle] = {}
        self.markers: dict[str, dict[str, Any]] = {}
        self.server_time: Optional[int] = None

        self._bootstrap = asyncio.get_running_loop().create_task(
            self._init(), name="dynmap-bootstrap"
        )

    @classmethod
    async def connect(cls, url: str, **kwargs: Any) -> "Dynmap":
        """Create a client and wait until it is ready."""
        dynmap = cls(url, **kwargs)
        try:
            await dynmap.wait_ready()
        except BaseException:
            await dynmap.close()
            raise
        return dynmap

    async def __aenter__(self) -> "Dynmap":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── Bootstrap ────────────────────────────────────────────────────

    async def _init(self) -> None:
        try:
            session = await fetch_session(self._transport, self.url, self.config_path)
        except DynmapError as e:
            self._bootstrap_error = e
            logger.error("Bootstrap of %s failed: %s", self.url, e)
            self.emit(ERROR, e)
            return

        self._session = session
        logger.info("Dynmap %s ready (%d worlds)", self.url, len(session.worlds))
        self.emit(READY)
        self.on(UPDATE, self._record_server_time)

    def _record_server_time(self, update: dict[str, Any]) -> None:
        if "servertime" in update:
            self.server_time = update["servertime"]

    async def wait_ready(self) -> None:
        """Wait for bootstrap; re-raises its error if it failed."""
        if self._bootstrap.cancelled():
            raise NotReadyError("Bootstrap was cancelled before completing")
        try:
            await asyncio.shield(self._bootstrap)
        except asyncio.CancelledError:
            if self._bootstrap.cancelled():
                raise NotReadyError("Bootstrap was cancelled before completing") from None
            raise
        if self._bootstrap_error is not None:
            raise self._bootstrap_error

    @property
    def is_ready(self) -> bool:
        return self._session is not None

    def _require_session(self) -> Session:
        if self._session is None:
            if self._bootstrap_error is not None:
                raise NotReadyError(f"Bootstrap failed: {self._bootstrap_error}")
            raise NotReadyError("Dynmap client is not ready yet")
        return self._session

    # ── Discovered state ─────────────────────────────────────────────

    @property
    def worlds(self) -> dict[str, World]:
        return dict(self._session.worlds) if self._session else {}

    @property
    def default_world(self) -> Optional[str]:
        return self._session.default_world if self._session else None

    @property
    def endpoints(self) -> Optional[Endpoints]:
        return self._session.endpoints if self._session else None

    @property
    def config(self) -> Optional[ServerConfig]:
        return self._session.config if self._session else None

    @property
    def update_interval(self) -> Optional[float]:
        """Seconds between poll cycles."""
        if self.poll_interval is not None:
            return self.poll_interval
        if self._session is None:
            return None
        return self._session.update_rate / 1000

    @property
    def players(self) -> dict[str, Player]:
        return self._players.snapshot()

    @property
    def tracking(self) -> dict[str, TrackingHandle]:
        return dict(self._tracking)

    # ── Tracking ─────────────────────────────────────────────────────

    def track(self, world: Optional[str] = None) -> TrackingHandle:
        """Start polling ``world`` (default world when omitted)."""
        session = self._require_session()
        world = world if world is not None else session.default_world
        if world not in session.worlds:
            raise UnknownWorldError(f"No such world: {world}", world=world)
        if world in self._tracking:
            raise AlreadyTrackedError(f"Already tracking world {world}", world=world)

        handle = TrackingHandle(
            world,
            self.update_interval,
            transport=self._transport,
            base_url=self.url,
            update_template=session.endpoints.update,
            players=self._players,
            emitter=self,
        )
        self._tracking[world] = handle
        handle.start()
        logger.info("Tracking %s every %.2fs", world, handle.interval)
        return handle

    def untrack(self, world: str) -> None:
        """Stop polling ``world``; clears players once nothing is tracked."""
        handle = self._tracking.pop(world, None)
        if handle is None:
            raise NotTrackedError(f"World {world} is not being tracked", world=world)
        handle.cancel()
        logger.info("Stopped tracking %s", world)
        if not self._tracking:
            self._players.clear()

    # ── On-demand queries ────────────────────────────────────────────

    async def get_server_time(self, world: Optional[str] = None) -> int:
        """
        Fetch the server time directly.

        Only needed when no world is tracked; otherwise ``server_time`` is
        refreshed by every poll.
        """
        session = self._require_session()
        world = world if world is not None else session.default_world
        path = render_template(session.endpoints.update, world=world, timestamp=now_ms())
        body = await fetch_url(self._transport, join_url(self.url, path))
        if not isinstance(body, dict) or "servertime" not in body:
            raise PayloadError(f"No servertime in update for {world}")
        self.server_time = body["servertime"]
        return self.server_time

    async def get_markers(self, world: str) -> dict[str, dict[str, Any]]:
        """Fetch the marker sets of ``world``, replacing the cached ones."""
        session = self._require_session()
        if world not in session.worlds:
            raise UnknownWorldError(f"No such world: {world}", world=world)
        path = session.endpoints.markers + "_markers_/marker_" + world + ".json"
        body = await fetch_url(self._transport, join_url(self.url, path))
        try:
            marker_set = MarkerSet.model_validate(body)
        except ValidationError as e:
            raise PayloadError(f"Malformed marker file for {world}: {e}") from e
        self.markers = marker_set.sets
        return self.markers

    # ── Shutdown ─────────────────────────────────────────────────────

    async def close(self) -> None:
        """Stop every poll, cancel a pending bootstrap, release the transport."""
        handles = list(self._tracking.values())
        for world in list(self._tracking):
            self.untrack(world)
        for handle in handles:
            await handle.wait_closed()

        if not self._bootstrap.done():
            self._bootstrap.cancel()
            await asyncio.gather(self._bootstrap, return_exceptions=True)

        if self._owns_transport:
            await self._transport.close()
