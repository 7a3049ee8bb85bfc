"""
Pydantic models for Dynmap payloads.

Dynmap versions and plugins add fields freely, so every model keeps
unknown keys as extras instead of rejecting them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .utils import HIDDEN_WORLD


class World(BaseModel):
    """A map world as listed in the server configuration."""
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str
    title: str = ""


class Endpoints(BaseModel):
    """Endpoint templates published by the bootstrap document."""
    configuration: str
    update: str  # contains {world} and {timestamp}
    markers: str
    login: str
    tiles: Optional[str] = None


class ServerConfig(BaseModel):
    """The JSON configuration document (``up/configuration``)."""
    model_config = ConfigDict(extra="allow")

    error: Optional[str] = None
    title: str = ""
    defaultworld: str = ""
    updaterate: int = 2000  # milliseconds
    worlds: list[World] = Field(default_factory=list)


class Player(BaseModel):
    """
    One player entry from an update payload.

    ``visible`` is derived, not sent by the server: it is False when the
    server reports the hidden-world sentinel instead of a real world.
    """
    model_config = ConfigDict(extra="allow")

    account: str
    name: str = ""
    world: str = ""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    health: Optional[float] = None
    armor: Optional[float] = None
    type: str = "player"
    visible: bool = True

    @classmethod
    def from_update(cls, raw: dict[str, Any]) -> "Player":
        player = cls.model_validate(raw)
        player.visible = player.world != HIDDEN_WORLD
        return player


class MarkerSet(BaseModel):
    """Marker file for one world: group id -> group contents."""
    model_config = ConfigDict(extra="allow")

    sets: dict[str, dict[str, Any]] = Field(default_factory=dict)
    timestamp: Optional[int] = None
