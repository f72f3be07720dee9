"""Tests for the overlay push server's control surface and encoding."""

from __future__ import annotations

import json

import pytest

from conquest import notifications
from conquest.models import Phase
from conquest.overlay import OverlayServer
from conquest.view import encode_event, format_announcement, format_state


@pytest.fixture
def overlay(game):
    return OverlayServer(game, host="127.0.0.1", port=0)


def test_control_packets_drive_the_game(overlay, game):
    overlay.handle_packet({"type": "createDummyTeams"})
    assert game.state.phase == Phase.RESULTS

    overlay.handle_packet({"type": "generateMap"})
    assert game.state.phase == Phase.MAP

    overlay.handle_packet({"type": "resetGame"})
    assert game.state.phase == Phase.IDLE


def test_unknown_or_malformed_packets_are_ignored(overlay, game, recorder):
    overlay.handle_packet({"type": "dropTables"})
    overlay.handle_packet(["startApplications"])
    overlay.handle_packet({"kind": "startApplications"})

    assert game.state.phase == Phase.IDLE
    assert recorder.events == []


def test_rejected_control_action_leaves_state(overlay, game):
    overlay.handle_packet({"type": "generateMap"})
    assert game.state.phase == Phase.IDLE


def test_broadcast_without_clients_is_a_no_op(overlay):
    overlay(notifications.GAME_STATE, {"phase": "idle"})
    assert overlay.clients == {}


def test_encoded_events_are_stable_json():
    encoded = encode_event(notifications.UPDATE_VOTES, {"b": "x", "a": "y"})
    assert encoded == '{"data":{"a":"y","b":"x"},"event":"updateVotes"}'
    assert json.loads(encoded)["event"] == "updateVotes"


def test_state_embeds_render_for_every_phase(game, timer):
    assert format_state(game.snapshot()).title
    game.start_applications()
    game.handle_chat("alice", "!run Foxes Go")
    assert "1 application" in format_state(game.snapshot()).description
    game.create_dummy_teams()
    assert len(format_state(game.snapshot()).fields) == 6
    game.generate_map()
    assert "GoldBee is picking" in format_state(game.snapshot()).footer.text


def test_only_selected_events_are_announced(game):
    assert format_announcement(notifications.CHAT_MESSAGE, {"user": "a", "message": "b"}) is None
    assert format_announcement(notifications.UPDATE_VOTES, {}) is None
    embed = format_announcement(
        notifications.CLAIM_ERROR,
        {"leader": "GoldBee", "cell": "A1", "row": 0, "col": 0, "reason": "water"},
    )
    assert "water" in embed.description
