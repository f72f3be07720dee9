"""Turns raw chat lines into typed game commands."""

import logging
import re
from typing import Optional, Union

from .config import GRID_SIZE
from .models import ApplyCommand, ClaimCommand, Phase, VoteCommand, VoteTarget

logger = logging.getLogger(__name__)

Command = Union[ApplyCommand, VoteCommand, ClaimCommand]

RUN_PREFIX = "!run "
VOTE_PREFIX = "!vote "
CLAIM_PREFIX = "!claim "

_LAST_COLUMN = chr(ord("A") + GRID_SIZE - 1)
CELL_PATTERN = re.compile(
    rf"^([A-{_LAST_COLUMN}])\s*-?\s*([1-{GRID_SIZE}])$", re.IGNORECASE
)

PREFIX_PHASES = {
    RUN_PREFIX: Phase.APPLICATIONS,
    VOTE_PREFIX: Phase.VOTING,
    CLAIM_PREFIX: Phase.MAP,
}


def cell_label(row: int, col: int) -> str:
    """Zero-based (row, col) to the chat form, e.g. (3, 2) -> "C4"."""
    return f"{chr(ord('A') + col)}{row + 1}"


def parse_cell(text: str) -> Optional[ClaimCommand]:
    match = CELL_PATTERN.match(text.strip())
    if not match:
        return None
    return ClaimCommand(col_letter=match.group(1).upper(), row=int(match.group(2)))


def parse_command(text: str, sender_id: str, phase: Phase) -> Optional[Command]:
    """Parse a chat line for the given phase.

    Returns None for anything that is not a well-formed command for the
    current phase; callers never surface that to the sender.
    """
    for prefix, valid_phase in PREFIX_PHASES.items():
        if text.startswith(prefix):
            break
    else:
        return None

    if phase != valid_phase:
        logger.debug(f"Ignoring {prefix.strip()} from {sender_id} during {phase.value}")
        return None

    body = text[len(prefix):].strip()

    if prefix == RUN_PREFIX:
        parts = body.split(None, 1)
        if not parts:
            return None
        slogan = parts[1].strip() if len(parts) > 1 else ""
        return ApplyCommand(team_name=parts[0], slogan=slogan)

    if prefix == VOTE_PREFIX:
        parts = body.split()
        if not parts:
            return None
        raw = parts[0]
        if raw.isascii() and raw.isdigit():
            return VoteCommand(VoteTarget.by_index(int(raw), raw))
        return VoteCommand(VoteTarget.by_id(raw))

    claim = parse_cell(body)
    if claim is None:
        logger.debug(f"Malformed claim from {sender_id}: {body!r}")
    return claim
