"""Tests for on-demand server time and marker queries."""

import asyncio

import pytest

from dynmap import Dynmap, NotReadyError, PayloadError, TransportError, UnknownWorldError

from helpers import BASE_URL, connect

MARKERS = {
    "timestamp": 1700000000,
    "sets": {
        "markers": {
            "label": "Markers",
            "markers": {"spawn": {"label": "Spawn", "x": 0, "y": 64, "z": 0}},
        },
        "towns": {"label": "Towns", "markers": {}, "areas": {}},
    },
}


def test_get_markers_unknown_world_skips_transport(server):
    async def scenario():
        dynmap = await connect(server)
        before = len(server.requests)
        with pytest.raises(UnknownWorldError):
            await dynmap.get_markers("mars")
        assert len(server.requests) == before
        await dynmap.close()

    asyncio.run(scenario())


def test_get_markers_replaces_cache(server):
    server.markers["world1"] = MARKERS

    async def scenario():
        dynmap = await connect(server)
        dynmap.markers = {"stale": {}}
        sets = await dynmap.get_markers("world1")
        assert set(sets) == {"markers", "towns"}
        assert dynmap.markers is sets
        assert sets["markers"]["markers"]["spawn"]["label"] == "Spawn"
        await dynmap.close()

    asyncio.run(scenario())
    assert server.paths("/tiles/") == ["/tiles/_markers_/marker_world1.json"]


def test_get_markers_transport_error_propagates(server):
    async def scenario():
        dynmap = await connect(server)
        # No marker file served for world1 -> 404
        with pytest.raises(TransportError):
            await dynmap.get_markers("world1")
        assert dynmap.markers == {}
        await dynmap.close()

    asyncio.run(scenario())


def test_get_markers_malformed(server):
    server.markers["world1"] = {"sets": ["not", "a", "mapping"]}

    async def scenario():
        dynmap = await connect(server)
        with pytest.raises(PayloadError):
            await dynmap.get_markers("world1")
        await dynmap.close()

    asyncio.run(scenario())


def test_get_server_time(server):
    server.updates.append({"servertime": 6000, "players": []})

    async def scenario():
        dynmap = await connect(server)
        assert await dynmap.get_server_time("world1") == 6000
        assert dynmap.server_time == 6000
        # No tracking state is touched
        assert dynmap.tracking == {}
        await dynmap.close()

    asyncio.run(scenario())


def test_get_server_time_errors_propagate(server):
    server.updates.append(502)
    server.updates.append({"players": []})

    async def scenario():
        dynmap = await connect(server)
        with pytest.raises(TransportError):
            await dynmap.get_server_time()
        with pytest.raises(PayloadError):
            await dynmap.get_server_time()
        assert dynmap.server_time is None
        await dynmap.close()

    asyncio.run(scenario())


def test_queries_require_ready(server):
    server.bootstrap = "nothing here"

    async def scenario():
        dynmap = Dynmap(BASE_URL, transport=server.transport())
        dynmap.on("error", lambda e: None)
        await asyncio.gather(dynmap.wait_ready(), return_exceptions=True)
        with pytest.raises(NotReadyError, match="Bootstrap failed"):
            await dynmap.get_markers("world1")
        with pytest.raises(NotReadyError):
            await dynmap.get_server_time("world1")
        await dynmap.close()

    asyncio.run(scenario())
