"""Tests for the player table diff."""

import pytest
from pydantic import ValidationError

from dynmap.api.models import Player
from dynmap.tracker.players import PlayerTable, parse_players

from helpers import player


def _accounts(events):
    return [(kind, p.account) for kind, p in events]


def test_apply_reports_lifecycle():
    table = PlayerTable()
    first = table.apply(parse_players([player("a"), player("b")]))
    assert _accounts(first) == [("playerAdded", "a"), ("playerAdded", "b")]

    second = table.apply(parse_players([player("b")]))
    assert _accounts(second) == [("playerUpdate", "b"), ("playerRemoved", "a")]
    assert "a" not in table
    assert len(table) == 1


def test_removed_payload_is_last_known_record():
    table = PlayerTable()
    table.apply(parse_players([player("a", x=5)]))
    table.apply(parse_players([player("a", x=9)]))
    [(kind, removed)] = table.apply([])
    assert kind == "playerRemoved"
    assert removed.x == 9


def test_removed_exactly_once():
    table = PlayerTable()
    table.apply(parse_players([player("a")]))
    removals = [
        kind
        for snapshot in ([], [], [])
        for kind, _ in table.apply(snapshot)
    ]
    assert removals == ["playerRemoved"]


def test_visibility_sentinel():
    [hidden, shown] = parse_players([
        player("a", world="-some-other-bogus-world-"),
        player("b", world="world1"),
    ])
    assert hidden.visible is False
    assert shown.visible is True


def test_extra_fields_kept():
    p = Player.from_update(player("a", sort=2, customField="x"))
    assert p.model_extra["customField"] == "x"
    assert p.type == "player"


def test_players_as_mapping():
    players = parse_players({"0": player("a"), "1": player("b")})
    assert [p.account for p in players] == ["a", "b"]


def test_player_without_account_rejected():
    with pytest.raises(ValidationError):
        parse_players([{"world": "world1"}])


def test_clear_and_snapshot():
    table = PlayerTable()
    table.apply(parse_players([player("a")]))
    snap = table.snapshot()
    table.clear()
    assert len(table) == 0
    assert list(snap) == ["a"]
    assert table.get("a") is None
