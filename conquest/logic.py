"""Core game orchestration for Chat Conquest."""

import logging
import random
from dataclasses import replace
from typing import Callable, Optional

from . import notifications
from .applications import ApplicationRegistry, select_finalists
from .config import APPLICATION_SECONDS, TURN_SECONDS, VOTING_SECONDS
from .draft import DraftEngine
from .election import cast_vote, form_teams, tally
from .mapgen import draft_order, generate_grid
from .models import (
    ActionResult,
    ApplyCommand,
    Candidate,
    ClaimCommand,
    ClaimResult,
    DraftState,
    GameState,
    Phase,
    VoteCommand,
    VoteTarget,
)
from .notifications import NotificationManager
from .parser import cell_label, parse_command
from .scheduler import GameTimer
from .timeutils import display_end_time, monotonic, wall_clock_ms
from .view import candidates_payload, state_payload

logger = logging.getLogger(__name__)

# (leader, team name, slogan, number of voters)
DUMMY_FINALISTS = [
    ("RedFox", "Foxes", "Quick and clever", 4),
    ("BlueJay", "Jays", "Sky is the limit", 3),
    ("GreenOak", "Oaks", "Rooted and ready", 3),
    ("GoldBee", "Bees", "Busy winning", 2),
    ("IronWolf", "Wolves", "Strength in the pack", 2),
    ("LoneCrow", "Crows", "Nobody's team", 1),
    ("GreyRat", "Rats", "Down with the crown", 1),
]


class GameOrchestrator:
    """Owns the game state and sequences every phase.

    All methods are synchronous and run on the event loop, so chat
    commands, admin actions and timer callbacks never interleave.
    """

    def __init__(
        self,
        notifier: NotificationManager,
        timer: Optional[GameTimer] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = monotonic,
        wall_clock: Callable[[], int] = wall_clock_ms,
    ):
        self.notifier = notifier
        self.timer = timer or GameTimer()
        self.rng = rng or random.SystemRandom()
        self.clock = clock
        self.wall_clock = wall_clock
        self.state = GameState()

    # Broadcasting

    def snapshot(self) -> dict:
        return state_payload(self.state)

    def broadcast_state(self) -> None:
        self.notifier.emit(notifications.GAME_STATE, self.snapshot())

    def _deadline(self, seconds: float):
        return self.clock() + seconds, display_end_time(seconds, self.wall_clock())

    # Chat ingestion

    def handle_chat(self, sender_id: str, text: str) -> None:
        """Process one chat line. Never raises."""
        try:
            self.notifier.emit(notifications.CHAT_MESSAGE, {"user": sender_id, "message": text})
            command = parse_command(text, sender_id, self.state.phase)
            if isinstance(command, ApplyCommand):
                self.apply(sender_id, command)
            elif isinstance(command, VoteCommand):
                self.vote(sender_id, command.target)
            elif isinstance(command, ClaimCommand):
                self.claim(sender_id, command)
        except Exception as e:
            logger.exception(f"Error handling chat from {sender_id}: {e}")

    def apply(self, sender_id: str, command: ApplyCommand) -> bool:
        if self.state.phase != Phase.APPLICATIONS:
            return False
        registry = ApplicationRegistry(self.state.candidates)
        if not registry.apply(sender_id, command.team_name, command.slogan, self.clock()):
            return False
        self.notifier.emit(notifications.UPDATE_CANDIDATES, candidates_payload(self.state.candidates))
        return True

    def vote(self, sender_id: str, target: VoteTarget) -> bool:
        if self.state.phase != Phase.VOTING:
            return False
        if not cast_vote(sender_id, target, self.state.selected_candidates, self.state.ballots):
            return False
        self.notifier.emit(notifications.UPDATE_VOTES, dict(self.state.ballots))
        return True

    def claim(self, sender_id: str, command: ClaimCommand) -> Optional[ClaimResult]:
        draft = self.state.draft
        if self.state.phase != Phase.MAP or draft is None or draft.complete:
            return None
        row, col = command.position
        engine = DraftEngine(draft, self.rng)
        result = engine.claim(sender_id, row, col)
        if result is None:
            return None

        if not result.success:
            self.notifier.emit(notifications.CLAIM_ERROR, {
                "leader": result.leader_id,
                "cell": cell_label(row, col),
                "row": row,
                "col": col,
                "reason": result.reason,
            })
            return result

        self._record_claim(result)
        self._advance(engine)
        return result

    # Admin-triggered transitions

    def start_applications(self) -> ActionResult:
        self.timer.cancel()
        deadline, end_time = self._deadline(APPLICATION_SECONDS)
        self.state = GameState(
            phase=Phase.APPLICATIONS,
            phase_deadline=deadline,
            timer_end_time=end_time,
        )
        self.timer.arm(APPLICATION_SECONDS, self.end_applications, "applications")
        logger.info(f"Applications open for {APPLICATION_SECONDS}s")
        self.broadcast_state()
        return ActionResult(True, f"Applications are open for {APPLICATION_SECONDS} seconds.")

    def end_applications(self) -> ActionResult:
        if self.state.phase != Phase.APPLICATIONS:
            return ActionResult(False, "Applications are not open.")
        self.timer.cancel()
        finalists = select_finalists(self.state.candidates, self.rng)
        self.state = replace(
            self.state,
            phase=Phase.SELECTION,
            selected_candidates=finalists,
            phase_deadline=0.0,
            timer_end_time=0,
        )
        logger.info(f"Selected {len(finalists)} finalists from {len(self.state.candidates)} applications")
        self.broadcast_state()
        return ActionResult(True, f"{len(finalists)} finalists selected.")

    def start_election(self) -> ActionResult:
        if self.state.phase != Phase.SELECTION:
            return ActionResult(False, "Finalists have not been selected yet.")
        deadline, end_time = self._deadline(VOTING_SECONDS)
        self.state = replace(
            self.state,
            phase=Phase.VOTING,
            ballots={},
            phase_deadline=deadline,
            timer_end_time=end_time,
        )
        self.timer.arm(VOTING_SECONDS, self.end_voting, "voting")
        logger.info(f"Voting open for {VOTING_SECONDS}s on {len(self.state.selected_candidates)} finalists")
        self.broadcast_state()
        return ActionResult(True, f"Voting is open for {VOTING_SECONDS} seconds.")

    def end_voting(self) -> ActionResult:
        if self.state.phase != Phase.VOTING:
            return ActionResult(False, "Voting is not open.")
        self.timer.cancel()
        result = tally(self.state.selected_candidates, self.state.ballots)
        teams, rebels = form_teams(result, self.state.ballots, self.rng)
        self.state = replace(
            self.state,
            phase=Phase.RESULTS,
            teams=teams,
            rebels=rebels,
            phase_deadline=0.0,
            timer_end_time=0,
        )
        self.broadcast_state()
        return ActionResult(True, f"{len(teams)} teams formed.")

    def end_phase(self) -> ActionResult:
        """Force-end the running timed phase."""
        if self.state.phase == Phase.APPLICATIONS:
            return self.end_applications()
        if self.state.phase == Phase.VOTING:
            return self.end_voting()
        return ActionResult(False, f"There is no timed phase running ({self.state.phase.value}).")

    def generate_map(self) -> ActionResult:
        if not self.state.teams:
            return ActionResult(False, "Teams must be formed before generating a map.")
        if self.state.phase not in (Phase.RESULTS, Phase.MAP):
            return ActionResult(False, "The map can only be generated after the election results.")

        self.timer.cancel()
        grid = generate_grid(self.rng)
        order = draft_order(self.state.teams)
        draft = DraftState(picking_order=order, grid=grid)
        teams = [replace(t, resources=dict.fromkeys(t.resources, 0)) for t in self.state.teams]
        self.state = replace(self.state, phase=Phase.MAP, teams=teams, draft=draft)

        payload = self.snapshot()
        self.notifier.emit(notifications.MAP_GENERATED, {
            "map": payload["map"],
            "pickingOrder": list(order),
        })
        logger.info(f"Map generated; draft order {order}")
        DraftEngine(draft, self.rng).start()
        self._begin_turn()
        self.broadcast_state()
        return ActionResult(True, f"Map generated. {order[0]} picks first.")

    def reset(self) -> ActionResult:
        self.timer.cancel()
        self.state = GameState()
        logger.info("Game reset")
        self.notifier.emit(notifications.GAME_RESET, {})
        self.broadcast_state()
        return ActionResult(True, "The game has been reset.")

    def create_dummy_teams(self) -> ActionResult:
        """Jump straight to results with a fixed roster, for testing."""
        self.timer.cancel()
        now = self.clock()
        finalists = [
            Candidate(leader, name, slogan, now)
            for leader, name, slogan, _ in DUMMY_FINALISTS
        ]
        ballots = {}
        voter = 0
        for leader, _, _, votes in DUMMY_FINALISTS:
            for _ in range(votes):
                voter += 1
                ballots[f"viewer{voter:02d}"] = leader.lower()

        result = tally(finalists, ballots)
        teams, rebels = form_teams(result, ballots, self.rng)
        self.state = GameState(
            phase=Phase.RESULTS,
            candidates=finalists,
            selected_candidates=[replace(c) for c in finalists],
            ballots=ballots,
            teams=teams,
            rebels=rebels,
        )
        logger.info("Created dummy teams")
        self.broadcast_state()
        return ActionResult(True, f"Created {len(teams)} dummy teams and a rebel faction.")

    # Draft turns

    def _team_for(self, leader_id: str):
        for team in self.state.teams:
            if team.leader_id == leader_id:
                return team
        return None

    def _record_claim(self, result: ClaimResult) -> None:
        cell = self.state.draft.grid[result.row][result.col]
        team = self._team_for(result.leader_id)
        if team and cell.resource:
            team.resources[cell.resource] += 1

        payload = {
            "leader": result.leader_id,
            "cell": cell_label(result.row, result.col),
            "row": result.row,
            "col": result.col,
            "auto": result.auto,
        }
        self.notifier.emit(notifications.CELL_CLAIMED, payload)
        self.notifier.emit(notifications.CLAIM_SUCCESS, payload)

    def _begin_turn(self) -> None:
        draft = self.state.draft
        picker = draft.current_picker
        if picker is None:
            self.timer.cancel()
            draft.turn_deadline = 0.0
            draft.turn_end_time = 0
            logger.info("Territory draft complete")
            self.notifier.emit(notifications.TURN_COMPLETE, {"pickingOrder": []})
            return

        draft.turn_deadline, draft.turn_end_time = self._deadline(TURN_SECONDS)
        self.timer.arm(TURN_SECONDS, lambda: self._on_turn_timeout(draft, picker), f"turn:{picker}")
        self.notifier.emit(notifications.PICKING_UPDATE, {
            "currentPicker": picker,
            "pickingOrder": list(draft.picking_order),
            "turnEndTime": draft.turn_end_time,
        })

    def _advance(self, engine: DraftEngine) -> None:
        turn = engine.advance()
        logger.info(f"{turn.finished_picker}'s turn is over; next: {turn.next_picker}")
        self._begin_turn()
        self.broadcast_state()

    def _on_turn_timeout(self, draft: DraftState, picker: str) -> None:
        if self.state.draft is not draft or draft.current_picker != picker:
            logger.debug(f"Ignoring stale turn timeout for {picker}")
            return
        logger.info(f"{picker} ran out of time")
        engine = DraftEngine(draft, self.rng)
        result = engine.auto_assign()
        if result:
            self._record_claim(result)
        self._advance(engine)
