"""End-to-end tests of the game orchestrator's phase machine."""

from __future__ import annotations

from conquest import notifications
from conquest.identity import normalize
from conquest.models import Phase
from conquest.view import encode_event


def open_applications(game, entries):
    game.start_applications()
    for user, team, slogan in entries:
        game.handle_chat(user, f"!run {team} {slogan}")


def roster(count):
    return [(f"cand{i}", f"Team{i}", f"Slogan {i}") for i in range(count)]


def dry_map(game):
    for row in game.state.draft.grid:
        for cell in row:
            cell.terrain = "land"
            cell.resource = None


def test_start_applications_arms_phase_timer(game, timer, recorder):
    result = game.start_applications()

    assert result.success
    assert game.state.phase == Phase.APPLICATIONS
    assert timer.label == "applications"
    assert timer.delay == 30
    assert game.state.phase_deadline == 1030.0
    assert game.state.timer_end_time == 1_700_000_030_000
    assert recorder.named(notifications.GAME_STATE)[-1]["phase"] == "applications"


def test_taken_team_name_is_rejected_through_chat(game, recorder):
    open_applications(game, [("alice", "Foxes", "Go team"), ("bob", "Foxes", "No way")])

    assert [(c.participant_id, c.team_name) for c in game.state.candidates] == [("alice", "Foxes")]
    updates = recorder.named(notifications.UPDATE_CANDIDATES)
    assert len(updates) == 1
    assert updates[0] == [{"username": "alice", "teamName": "Foxes", "teamSlogan": "Go team"}]


def test_every_chat_line_is_forwarded(game, recorder):
    game.handle_chat("viewer", "hello there")
    assert recorder.named(notifications.CHAT_MESSAGE) == [{"user": "viewer", "message": "hello there"}]


def test_out_of_phase_commands_change_nothing(game, recorder):
    open_applications(game, [("alice", "Foxes", "Go")])
    game.handle_chat("viewer", "!vote alice")
    game.handle_chat("alice", "!claim A1")

    assert game.state.ballots == {}
    assert recorder.named(notifications.UPDATE_VOTES) == []
    assert recorder.named(notifications.CLAIM_ERROR) == []


def test_applications_timer_selects_twelve_of_fifteen(game, timer):
    open_applications(game, roster(15))
    timer.fire()

    assert game.state.phase == Phase.SELECTION
    ids = [c.participant_id for c in game.state.selected_candidates]
    assert len(ids) == 12
    assert len(set(ids)) == 12
    assert set(ids) <= {c.participant_id for c in game.state.candidates}
    assert not timer.armed


def test_selection_waits_for_admin(game, timer):
    open_applications(game, roster(3))
    assert not game.start_election().success

    game.end_phase()
    assert game.state.phase == Phase.SELECTION
    assert not timer.armed

    result = game.start_election()
    assert result.success
    assert game.state.phase == Phase.VOTING
    assert timer.label == "voting"


def test_full_election_forms_teams_and_rebels(game, timer, recorder):
    open_applications(game, roster(7))
    timer.fire()
    game.start_election()
    selected = [c.participant_id for c in game.state.selected_candidates]

    plan = {selected[0]: 3, selected[1]: 2, selected[2]: 1, selected[3]: 1, selected[4]: 1}
    voter = 0
    for target, votes in plan.items():
        for _ in range(votes):
            voter += 1
            game.handle_chat(f"viewer{voter}", f"!vote {target.upper()}")

    # Finalists may not vote, by name or number
    game.handle_chat(selected[5], "!vote 1")
    assert normalize(selected[5]) not in {normalize(v) for v in game.state.ballots}
    assert len(recorder.named(notifications.UPDATE_VOTES)) == 8

    timer.fire()

    assert game.state.phase == Phase.RESULTS
    assert [t.leader_id for t in game.state.teams] == selected[:5]
    assert [len(t.members) for t in game.state.teams] == [3, 2, 1, 1, 1]
    assert game.state.rebels.leaders == selected[5:]
    assert game.state.rebels.members == []
    assert all(t.color for t in game.state.teams)


def test_vote_by_number_uses_selection_order(game, timer):
    open_applications(game, roster(4))
    timer.fire()
    game.start_election()
    second = game.state.selected_candidates[1].participant_id

    game.handle_chat("viewer", "!vote 2")
    assert game.state.ballots == {"viewer": second.lower()}


def test_end_phase_force_ends_voting(game, timer):
    open_applications(game, roster(2))
    game.end_phase()
    game.start_election()

    result = game.end_phase()
    assert result.success
    assert game.state.phase == Phase.RESULTS
    assert not timer.armed
    assert not game.end_phase().success


def test_generate_map_without_teams_fails_cleanly(game, recorder):
    before = game.snapshot()
    result = game.generate_map()

    assert not result.success
    assert game.snapshot() == before
    assert recorder.events == []


def test_dummy_teams_respect_formation_rules(game):
    result = game.create_dummy_teams()

    assert result.success
    assert game.state.phase == Phase.RESULTS
    assert len(game.state.teams) == 5
    leaders = [t.leader_id for t in game.state.teams]
    assert len(set(leaders)) == 5
    assert game.state.rebels.leaders == ["LoneCrow", "GreyRat"]

    members = [m for t in game.state.teams for m in t.members] + game.state.rebels.members
    assert len(members) == len(set(members))
    assert not set(members) & set(leaders + game.state.rebels.leaders)


def test_generate_map_starts_draft_with_smallest_team(game, timer, recorder):
    game.create_dummy_teams()
    result = game.generate_map()

    assert result.success
    assert game.state.phase == Phase.MAP
    draft = game.state.draft
    assert draft.picking_order == ["GoldBee", "IronWolf", "BlueJay", "GreenOak", "RedFox"]
    assert draft.current_picker == "GoldBee"
    assert draft.turn_deadline == 1015.0
    assert timer.label == "turn:GoldBee"
    assert timer.delay == 15

    generated = recorder.named(notifications.MAP_GENERATED)
    assert len(generated) == 1
    assert generated[0]["pickingOrder"] == draft.picking_order
    assert recorder.named(notifications.PICKING_UPDATE)[-1]["currentPicker"] == "GoldBee"


def test_claim_by_current_picker_advances_turn(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()
    dry_map(game)

    game.handle_chat("goldbee", "!claim C4")

    assert game.state.draft.grid[3][2].owner == "GoldBee"
    assert game.state.draft.current_picker == "IronWolf"
    assert timer.label == "turn:IronWolf"
    success = recorder.named(notifications.CLAIM_SUCCESS)
    assert success == [{"leader": "GoldBee", "cell": "C4", "row": 3, "col": 2, "auto": False}]
    assert recorder.named(notifications.CELL_CLAIMED) == success
    assert recorder.named(notifications.GAME_STATE)[-1]["draft"]["currentPicker"] == "IronWolf"


def test_claim_by_someone_else_is_ignored(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()
    epoch = timer.epoch

    game.handle_chat("RedFox", "!claim A1")
    game.handle_chat("viewer01", "!claim A1")

    assert game.state.draft.grid[0][0].owner is None
    assert game.state.draft.current_picker == "GoldBee"
    assert recorder.named(notifications.CLAIM_ERROR) == []
    assert timer.epoch == epoch


def test_failed_claims_emit_error_and_keep_turn(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()
    dry_map(game)
    game.state.draft.grid[0][0].terrain = "water"
    game.state.draft.grid[1][1].owner = "RedFox"
    epoch = timer.epoch

    game.handle_chat("GoldBee", "!claim A1")
    game.handle_chat("GoldBee", "!claim B2")

    errors = recorder.named(notifications.CLAIM_ERROR)
    assert [(e["leader"], e["cell"], e["reason"]) for e in errors] == [
        ("GoldBee", "A1", "water"),
        ("GoldBee", "B2", "already claimed"),
    ]
    assert game.state.draft.current_picker == "GoldBee"
    assert game.state.draft.grid[1][1].owner == "RedFox"
    assert timer.epoch == epoch


def test_second_claim_on_same_cell_loses(game):
    game.create_dummy_teams()
    game.generate_map()
    dry_map(game)

    game.handle_chat("GoldBee", "!claim D2")
    result_owner = game.state.draft.grid[1][3].owner
    game.handle_chat("IronWolf", "!claim D2")

    assert result_owner == "GoldBee"
    assert game.state.draft.grid[1][3].owner == "GoldBee"
    assert game.state.draft.current_picker == "IronWolf"


def test_timeouts_assign_remaining_cells_without_double_assignment(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()
    grid = game.state.draft.grid
    for row in grid:
        for cell in row:
            cell.terrain = "water"
    grid[0][0].terrain = "land"
    grid[4][4].terrain = "mountain"

    timer.fire()
    assigned = recorder.named(notifications.CLAIM_SUCCESS)
    assert len(assigned) == 1
    assert assigned[0]["leader"] == "GoldBee"
    assert assigned[0]["auto"] is True
    assert game.state.draft.current_picker == "IronWolf"

    timer.fire()
    timer.fire()  # nothing left for BlueJay; their turn is skipped

    first = (assigned[0]["row"], assigned[0]["col"])
    other = (4, 4) if first == (0, 0) else (0, 0)
    owners = {(c.row, c.col): c.owner for row in grid for c in row if c.owner}
    assert owners == {first: "GoldBee", other: "IronWolf"}
    assert len(recorder.named(notifications.CLAIM_SUCCESS)) == 2
    assert game.state.draft.current_picker == "GreenOak"


def test_draft_completes_once_and_stays_in_map_phase(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()

    for _ in range(5):
        timer.fire()

    assert game.state.draft.complete
    assert game.state.draft.picking_order == []
    assert game.state.phase == Phase.MAP
    assert not timer.armed
    assert len(recorder.named(notifications.TURN_COMPLETE)) == 1

    game.handle_chat("RedFox", "!claim A1")
    assert recorder.named(notifications.CLAIM_ERROR) == []


def test_claiming_a_resource_credits_the_team(game):
    game.create_dummy_teams()
    game.generate_map()
    dry_map(game)
    game.state.draft.grid[2][0].resource = "iron"

    game.handle_chat("GoldBee", "!claim A3")

    team = next(t for t in game.state.teams if t.leader_id == "GoldBee")
    assert team.resources == {"wood": 0, "iron": 1, "clay": 0}


def test_reset_cancels_timers_and_ignores_stale_timeouts(game, timer, recorder):
    game.create_dummy_teams()
    game.generate_map()
    old_draft = game.state.draft

    result = game.reset()

    assert result.success
    assert not timer.armed
    assert game.state.phase == Phase.IDLE
    assert recorder.named(notifications.GAME_RESET) == [{}]
    assert recorder.named(notifications.GAME_STATE)[-1]["phase"] == "idle"

    count = len(recorder.events)
    game._on_turn_timeout(old_draft, "GoldBee")
    assert len(recorder.events) == count
    assert all(c.owner is None for row in old_draft.grid for c in row)


def test_restarting_applications_replaces_state(game, timer):
    game.create_dummy_teams()
    game.generate_map()

    game.start_applications()

    assert game.state.phase == Phase.APPLICATIONS
    assert game.state.teams == []
    assert game.state.draft is None
    assert timer.label == "applications"


def test_state_broadcast_is_byte_identical_without_mutation(game):
    game.create_dummy_teams()
    game.generate_map()

    first = encode_event(notifications.GAME_STATE, game.snapshot())
    second = encode_event(notifications.GAME_STATE, game.snapshot())
    assert first == second


def test_chat_errors_never_escape(game, monkeypatch):
    game.start_applications()

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(game, "apply", broken)
    game.handle_chat("alice", "!run Foxes Go")
    assert game.state.candidates == []


def test_listener_failures_do_not_stop_the_game(game):
    def broken_listener(event, payload):
        raise RuntimeError("overlay down")

    game.notifier.subscribe(broken_listener)
    result = game.start_applications()

    assert result.success
    assert game.state.phase == Phase.APPLICATIONS
