"""
Minimal listener-based event emitter.

Listeners run in registration order, synchronously inside ``emit``.
Coroutine functions are accepted too: their coroutine is scheduled as a
task on the running loop and not awaited.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# ── Event names ──────────────────────────────────────────────────────

READY = "ready"
ERROR = "error"
UPDATE = "update"
PLAYER_ADDED = "playerAdded"
PLAYER_UPDATE = "playerUpdate"
PLAYER_REMOVED = "playerRemoved"

Listener = Callable[..., Any]


class EventEmitter:

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: str, listener: Listener) -> Listener:
        """Register ``listener`` for ``event``."""
        self._listeners.setdefault(event, []).append((listener, False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""
        self._listeners.setdefault(event, []).append((listener, True))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Remove every registration of ``listener`` for ``event``."""
        remaining = [
            entry for entry in self._listeners.get(event, [])
            if entry[0] is not listener
        ]
        if remaining:
            self._listeners[event] = remaining
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for ``event``. Returns False if there were none."""
        entries = self._listeners.get(event, [])
        if not entries:
            if event == ERROR:
                err = args[0] if args else None
                logger.error("Unhandled error event: %s", err)
            return False

        if any(once for _, once in entries):
            self._listeners[event] = [entry for entry in entries if not entry[1]]
            if not self._listeners[event]:
                del self._listeners[event]

        for listener, _ in list(entries):
            try:
                result = listener(*args)
            except Exception:
                logger.exception("Listener for %r raised", event)
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)
        return True

    def _schedule(self, event: str, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish(event, t))

    def _finish(self, event: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async listener for %r raised: %s", event, exc, exc_info=exc)
