"""
Test helpers: an in-memory Dynmap server behind ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio

import httpx

from dynmap import Dynmap
from dynmap.api.http import HttpTransport

BASE_URL = "http://map.test/"

BOOTSTRAP = """
var config = {
  url : {
    configuration: '/up/config',
    update: '/up/world/{world}/{timestamp}',
    sendmessage: '/up/sendmessage',
    login: '/up/login',
    register: '/up/register',
    markers: '/tiles/'
  }
};
"""


class FakeDynmap:
    """Scripted Dynmap server. Update responses are served from a queue."""

    def __init__(self) -> None:
        self.bootstrap = BOOTSTRAP
        self.config = {
            "defaultworld": "world1",
            "worlds": [{"name": "world1", "title": "Overworld"}],
            "updaterate": 3000,
        }
        self.updates: list = []
        self.markers: dict = {}
        self.requests: list[httpx.Request] = []
        self.gate: asyncio.Event | None = None

    def transport(self) -> HttpTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HttpTransport(client=client)

    def paths(self, prefix: str = "") -> list[str]:
        return [r.url.path for r in self.requests if r.url.path.startswith(prefix)]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/standalone/config.js":
            return httpx.Response(200, text=self.bootstrap)
        if path == "/up/config":
            if isinstance(self.config, int):
                return httpx.Response(self.config)
            return httpx.Response(200, json=self.config)
        if path.startswith("/up/world/"):
            if self.gate is not None:
                await self.gate.wait()
            item = self.updates.pop(0) if self.updates else {"servertime": 0, "players": []}
            if isinstance(item, Exception):
                raise item
            if isinstance(item, int):
                return httpx.Response(item)
            return httpx.Response(200, json=item)
        if path.startswith("/tiles/_markers_/marker_"):
            world = path[len("/tiles/_markers_/marker_"):-len(".json")]
            if world in self.markers:
                return httpx.Response(200, json=self.markers[world])
        return httpx.Response(404)


class Recorder:
    """Collects (event, payload) pairs from a client."""

    def __init__(self, dynmap: Dynmap, *events: str) -> None:
        self.events: list[tuple[str, object]] = []
        for event in events:
            dynmap.on(event, self._make(event))

    def _make(self, event: str):
        return lambda *args: self.events.append((event, args[0] if args else None))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


async def connect(server: FakeDynmap, **kwargs) -> Dynmap:
    kwargs.setdefault("poll_interval", 3600)
    return await Dynmap.connect(BASE_URL, transport=server.transport(), **kwargs)


def player(account: str, world: str = "world1", **extra) -> dict:
    return {"account": account, "name": account, "world": world, "x": 1, "y": 64, "z": -3, **extra}
