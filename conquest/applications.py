"""Candidate intake during the applications phase."""

import logging
import random
from dataclasses import replace
from typing import List, Optional

from .config import FINALIST_LIMIT
from .identity import normalize, same
from .models import Candidate

logger = logging.getLogger(__name__)


class ApplicationRegistry:
    """Holds applications, one per participant, with unique team names.

    Operates on the candidate list it is given so the orchestrator's
    GameState stays the single owner of the data.
    """

    def __init__(self, candidates: List[Candidate]):
        self.candidates = candidates

    def get(self, participant_id: str) -> Optional[Candidate]:
        for candidate in self.candidates:
            if same(candidate.participant_id, participant_id):
                return candidate
        return None

    def team_name_owner(self, team_name: str) -> Optional[Candidate]:
        key = normalize(team_name)
        for candidate in self.candidates:
            if normalize(candidate.team_name) == key:
                return candidate
        return None

    def apply(self, participant_id: str, team_name: str, slogan: str, now: float) -> bool:
        """Insert or update an application. Returns False when rejected."""
        team_name = team_name.strip()
        if not team_name:
            logger.debug(f"Rejected application from {participant_id}: empty team name")
            return False

        owner = self.team_name_owner(team_name)
        if owner and not same(owner.participant_id, participant_id):
            logger.debug(
                f"Rejected application from {participant_id}: "
                f"team name {team_name!r} belongs to {owner.participant_id}"
            )
            return False

        existing = self.get(participant_id)
        if existing:
            existing.team_name = team_name
            existing.team_slogan = slogan.strip()
            existing.applied_at = now
        else:
            self.candidates.append(Candidate(
                participant_id=participant_id,
                team_name=team_name,
                team_slogan=slogan.strip(),
                applied_at=now,
            ))
        logger.info(f"{participant_id} applied to lead {team_name!r}")
        return True


def select_finalists(
    candidates: List[Candidate],
    rng: random.Random,
    limit: int = FINALIST_LIMIT,
) -> List[Candidate]:
    """Uniformly sample up to `limit` candidates without replacement."""
    chosen = rng.sample(list(candidates), min(limit, len(candidates)))
    return [replace(candidate) for candidate in chosen]
