"""
Player table and snapshot diffing.

The table is keyed by account name and shared by every tracked world.
Applying a snapshot mutates the table in one synchronous step and returns
the lifecycle events it implies, additions/updates first, removals last.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from ..api.models import Player
from .events import PLAYER_ADDED, PLAYER_REMOVED, PLAYER_UPDATE

logger = logging.getLogger(__name__)

PlayerEvent = tuple[str, Player]


def parse_players(raw_players: Any) -> list[Player]:
    """Turn the ``players`` array of an update payload into models."""
    if isinstance(raw_players, dict):
        raw_players = list(raw_players.values())
    return [Player.from_update(raw) for raw in raw_players or []]


class PlayerTable:

    def __init__(self) -> None:
        self._players: dict[str, Player] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, account: object) -> bool:
        return account in self._players

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players.values()))

    def get(self, account: str) -> Player | None:
        return self._players.get(account)

    def snapshot(self) -> dict[str, Player]:
        """Copy of the table, safe to hold across poll cycles."""
        return dict(self._players)

    def clear(self) -> None:
        if self._players:
            logger.debug("Clearing %d players", len(self._players))
        self._players.clear()

    def apply(self, players: Iterable[Player]) -> list[PlayerEvent]:
        """Replace the table contents with ``players`` and report the diff."""
        events: list[PlayerEvent] = []
        seen: set[str] = set()

        for player in players:
            kind = PLAYER_UPDATE if player.account in self._players else PLAYER_ADDED
            self._players[player.account] = player
            seen.add(player.account)
            events.append((kind, player))

        for account in [a for a in self._players if a not in seen]:
            events.append((PLAYER_REMOVED, self._players.pop(account)))

        return events
