"""State serialization for the overlay and embed formatting for Discord."""

import json
from typing import Any, Dict, List, Optional

import discord

from .models import Candidate, DraftState, GameState, MapCell, Phase, RebelFaction, Team
from . import notifications
from .parser import cell_label

PHASE_TITLES = {
    Phase.IDLE: "Waiting for the next round",
    Phase.APPLICATIONS: "Applications are open",
    Phase.SELECTION: "Finalists selected",
    Phase.VOTING: "Voting is open",
    Phase.RESULTS: "Election results",
    Phase.MAP: "Territory draft",
}

TERRAIN_ICONS = {"water": "🌊", "land": "🟩", "mountain": "⛰️", "desert": "🟨"}


def candidate_payload(candidate: Candidate) -> Dict[str, Any]:
    return {
        "username": candidate.participant_id,
        "teamName": candidate.team_name,
        "teamSlogan": candidate.team_slogan,
    }


def candidates_payload(candidates: List[Candidate]) -> List[Dict[str, Any]]:
    return [candidate_payload(c) for c in candidates]


def team_payload(team: Team) -> Dict[str, Any]:
    return {
        "leader": team.leader_id,
        "teamName": team.team_name,
        "teamSlogan": team.team_slogan,
        "members": list(team.members),
        "color": team.color,
        "score": team.score,
        "wins": team.wins,
        "resources": dict(team.resources),
        "voteCount": team.vote_count,
    }


def rebels_payload(rebels: Optional[RebelFaction]) -> Optional[Dict[str, Any]]:
    if rebels is None:
        return None
    return {
        "leaders": list(rebels.leaders),
        "members": list(rebels.members),
        "color": rebels.color,
        "score": rebels.score,
        "wins": rebels.wins,
        "resources": dict(rebels.resources),
    }


def cell_payload(cell: MapCell) -> Dict[str, Any]:
    return {
        "row": cell.row,
        "col": cell.col,
        "label": cell_label(cell.row, cell.col),
        "terrain": cell.terrain,
        "resource": cell.resource,
        "owner": cell.owner,
    }


def grid_payload(grid: List[List[MapCell]]) -> List[List[Dict[str, Any]]]:
    return [[cell_payload(cell) for cell in row] for row in grid]


def draft_payload(draft: DraftState) -> Dict[str, Any]:
    return {
        "pickingOrder": list(draft.picking_order),
        "currentPicker": draft.current_picker,
        "turnEndTime": draft.turn_end_time,
        "complete": draft.complete,
    }


def state_payload(state: GameState) -> Dict[str, Any]:
    """Full snapshot of the game, as broadcast on every phase change."""
    return {
        "phase": state.phase.value,
        "candidates": candidates_payload(state.candidates),
        "selectedCandidates": candidates_payload(state.selected_candidates),
        "votes": dict(state.ballots),
        "teams": [team_payload(t) for t in state.teams],
        "rebels": rebels_payload(state.rebels),
        "map": grid_payload(state.draft.grid) if state.draft else None,
        "draft": draft_payload(state.draft) if state.draft else None,
        "timerEndTime": state.timer_end_time,
    }


def encode_event(event: str, payload: Any) -> str:
    """Stable JSON encoding: identical inputs give identical bytes."""
    return json.dumps({"event": event, "data": payload}, sort_keys=True, separators=(",", ":"))


def format_grid(grid: List[List[Dict[str, Any]]]) -> str:
    header = "⬛" + "".join(f" {chr(ord('A') + i)}" for i in range(len(grid)))
    lines = [header]
    for index, row in enumerate(grid):
        icons = "".join("🚩" if cell["owner"] else TERRAIN_ICONS.get(cell["terrain"], "❔") for cell in row)
        lines.append(f"{index + 1} {icons}")
    return "\n".join(lines)


def format_state(payload: Dict[str, Any]) -> discord.Embed:
    """Summary embed for the /gamestate command."""
    phase = Phase(payload["phase"])
    embed = discord.Embed(title=f"⚔️ {PHASE_TITLES[phase]}", color=0x800080)

    if phase == Phase.APPLICATIONS:
        embed.description = f"{len(payload['candidates'])} application(s) so far. Type `!run <TeamName> <slogan>` to apply!"
    elif phase in (Phase.SELECTION, Phase.VOTING):
        lines = [
            f"**{i}.** {c['username']} - *{c['teamName']}* {c['teamSlogan']}"
            for i, c in enumerate(payload["selectedCandidates"], start=1)
        ]
        embed.description = "\n".join(lines) or "No finalists."
        if phase == Phase.VOTING:
            embed.set_footer(text=f"{len(payload['votes'])} vote(s) cast. Type `!vote <number or name>`.")
    elif phase in (Phase.RESULTS, Phase.MAP):
        for team in payload["teams"]:
            embed.add_field(
                name=f"{team['teamName']} (led by {team['leader']})",
                value=f"{len(team['members'])} member(s), {team['voteCount']} vote(s)",
                inline=False,
            )
        rebels = payload["rebels"]
        if rebels:
            embed.add_field(
                name="🏴 Rebels",
                value=f"Leaders: {', '.join(rebels['leaders'])}\n{len(rebels['members'])} member(s)",
                inline=False,
            )
        draft = payload["draft"]
        if draft:
            embed.description = format_grid(payload["map"])
            if draft["complete"]:
                embed.set_footer(text="The territory draft is complete.")
            else:
                embed.set_footer(text=f"{draft['currentPicker']} is picking. Type `!claim C4`.")
    else:
        embed.description = "An admin will open applications soon."
    return embed


def format_announcement(event: str, payload: Any) -> Optional[discord.Embed]:
    """Channel embed for the events worth announcing in chat."""
    if event == notifications.GAME_STATE:
        phase = Phase(payload["phase"])
        if phase in (Phase.IDLE, Phase.MAP):
            return None
        return format_state(payload)

    if event == notifications.MAP_GENERATED:
        embed = discord.Embed(title="🗺️ The map has been revealed", color=0x2e8b57)
        embed.description = format_grid(payload["map"])
        embed.add_field(name="Draft order", value=" → ".join(payload["pickingOrder"]) or "-", inline=False)
        return embed

    if event == notifications.PICKING_UPDATE:
        return discord.Embed(
            title=f"🎯 {payload['currentPicker']}, pick a cell!",
            description=f"Type `!claim <cell>`. Still to pick after you: {len(payload['pickingOrder']) - 1}",
            color=0x0099ff,
        )

    if event == notifications.CELL_CLAIMED:
        how = "was assigned" if payload["auto"] else "claimed"
        return discord.Embed(
            description=f"🚩 **{payload['leader']}** {how} **{payload['cell']}**",
            color=0x00ff00,
        )

    if event == notifications.CLAIM_ERROR:
        return format_error(f"{payload['leader']} cannot claim {payload['cell']}: {payload['reason']}")

    if event == notifications.TURN_COMPLETE:
        return discord.Embed(title="🏁 The territory draft is complete!", color=0xffd700)

    if event == notifications.GAME_RESET:
        return discord.Embed(title="🔄 The game has been reset", color=0x808080)

    return None


def format_error(message: str) -> discord.Embed:
    """Format an error message."""
    return discord.Embed(title="❌ Error", description=message, color=0xff0000)


def format_success(message: str) -> discord.Embed:
    """Format a success message."""
    return discord.Embed(title="✅ Success", description=message, color=0x00ff00)
