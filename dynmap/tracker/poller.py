"""
Per-world poll loop.

Each tracked world gets one ``TrackingHandle`` owning an asyncio task that
repeats the cycle:

  fetch update -> diff player table -> emit raw update -> emit lifecycle

A failed fetch emits ``error`` and waits for the next tick; the loop only
ends when the handle is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..api.http import Transport, fetch_url
from ..api.utils import join_url, now_ms, render_template
from ..errors import DynmapError, PayloadError
from .events import ERROR, UPDATE, EventEmitter
from .players import PlayerTable, parse_players

logger = logging.getLogger(__name__)


class TrackingHandle:
    """The repeating poll for one world."""

    def __init__(
        self,
        world: str,
        interval: float,
        *,
        transport: Transport,
        base_url: str,
        update_template: str,
        players: PlayerTable,
        emitter: EventEmitter,
    ):
        self.world = world
        self.interval = interval  # seconds
        self.last_update: Optional[int] = None  # ms timestamp of last good cycle
        self.cycles = 0
        self.failures = 0

        self._transport = transport
        self._base_url = base_url
        self._update_template = update_template
        self._players = players
        self._emitter = emitter
        self._task: Optional[asyncio.Task] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def update_url(self, timestamp: int) -> str:
        path = render_template(self._update_template, world=self.world, timestamp=timestamp)
        return join_url(self._base_url, path)

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self._task is not None:
            return
        self._active = True
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"dynmap-poll-{self.world}"
        )

    def cancel(self) -> None:
        """Stop future cycles. Safe to call more than once."""
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        """Wait for a cancelled loop to unwind."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval
        while self._active:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            await self.run_cycle()
            next_tick += self.interval
            # Skip ticks missed during a slow fetch instead of bursting
            now = loop.time()
            if self.interval > 0 and next_tick < now:
                missed = int((now - next_tick) // self.interval) + 1
                next_tick += missed * self.interval

    # ── Cycle ────────────────────────────────────────────────────────

    async def run_cycle(self) -> bool:
        """
        Run one fetch-diff-emit cycle.

        Returns True if the cycle's result was applied, False if it failed
        or was discarded because the world was untracked meanwhile.
        """
        if not self._active:
            return False

        timestamp = now_ms()
        url = self.update_url(timestamp)
        try:
            update = await fetch_url(self._transport, url)
            if not isinstance(update, dict):
                raise PayloadError(f"Update for {self.world} is not a JSON object")
            raw_players = update.get("players")
            if not isinstance(raw_players, (list, dict)):
                raise PayloadError(f"Update for {self.world} has no player list")
            try:
                players = parse_players(raw_players)
            except (ValidationError, TypeError) as e:
                raise PayloadError(f"Malformed players in update for {self.world}: {e}") from e
        except DynmapError as e:
            if not self._active:
                return False
            self.failures += 1
            logger.warning("Poll of %s failed: %s", self.world, e)
            self._emitter.emit(ERROR, e)
            return False

        if not self._active:
            logger.debug("Discarding update for untracked world %s", self.world)
            return False

        self._apply(update, players, timestamp)
        return True

    def _apply(self, update: dict[str, Any], players: list, timestamp: int) -> None:
        # Table write completes before any listener runs.
        events = self._players.apply(players)
        self.cycles += 1
        self.last_update = timestamp

        self._emitter.emit(UPDATE, update)
        for kind, player in events:
            if not self._active:
                break
            self._emitter.emit(kind, player)
