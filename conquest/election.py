"""Vote counting, leader ranking and team/rebel formation."""

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import LEADER_COUNT, REBEL_COLOR, TEAM_COLORS
from .identity import contains, find_key, normalize
from .models import Candidate, RebelFaction, TargetKind, Team, VoteTarget

logger = logging.getLogger(__name__)


@dataclass
class TallyResult:
    """Finalists split by vote rank."""
    leaders: List[Candidate]
    rejected: List[Candidate]
    counts: Dict[str, int]  # normalized participant id -> votes

    def votes_for(self, candidate: Candidate) -> int:
        return self.counts.get(normalize(candidate.participant_id), 0)


def resolve_target(target: VoteTarget, selected: List[Candidate]) -> Optional[str]:
    """Map a ballot target onto a finalist id, or None if it names nobody."""
    raw = target.raw
    if target.kind == TargetKind.BY_INDEX and 1 <= target.index <= len(selected):
        raw = selected[target.index - 1].participant_id

    key = normalize(raw)
    for candidate in selected:
        if normalize(candidate.participant_id) == key:
            return candidate.participant_id
    return None


def cast_vote(
    voter_id: str,
    target: VoteTarget,
    selected: List[Candidate],
    ballots: Dict[str, str],
) -> bool:
    """Record or overwrite a ballot. Returns False when the vote is ignored."""
    if contains((c.participant_id for c in selected), voter_id):
        logger.debug(f"Ignoring vote from finalist {voter_id}")
        return False

    resolved = resolve_target(target, selected)
    if resolved is None:
        logger.debug(f"Ignoring vote from {voter_id} for unknown target {target.raw!r}")
        return False

    previous = find_key(ballots, voter_id)
    if previous is not None:
        del ballots[previous]
    ballots[voter_id] = resolved.lower()
    return True


def tally(selected: List[Candidate], ballots: Dict[str, str]) -> TallyResult:
    """Count ballots and split finalists into leaders and rejected.

    Ties keep the original selection order.
    """
    counts = {normalize(c.participant_id): 0 for c in selected}
    for target in ballots.values():
        key = normalize(target)
        if key in counts:
            counts[key] += 1

    ranked = sorted(selected, key=lambda c: -counts[normalize(c.participant_id)])
    cut = min(LEADER_COUNT, len(ranked))
    return TallyResult(leaders=ranked[:cut], rejected=ranked[cut:], counts=counts)


def _voters_for(targets: List[str], ballots: Dict[str, str], excluded: List[str]) -> List[str]:
    keys = {normalize(t) for t in targets}
    return [
        voter for voter, target in ballots.items()
        if normalize(target) in keys and not contains(excluded, voter)
    ]


def team_color(index: int, rng: random.Random) -> str:
    if index < len(TEAM_COLORS):
        return TEAM_COLORS[index]
    return rng.choice(TEAM_COLORS)


def form_teams(
    result: TallyResult,
    ballots: Dict[str, str],
    rng: random.Random,
) -> Tuple[List[Team], Optional[RebelFaction]]:
    """Build the leader teams and, if anyone was rejected, the rebel faction."""
    finalists = [c.participant_id for c in result.leaders + result.rejected]

    teams = []
    for index, leader in enumerate(result.leaders):
        teams.append(Team(
            leader_id=leader.participant_id,
            team_name=leader.team_name,
            team_slogan=leader.team_slogan,
            members=_voters_for([leader.participant_id], ballots, finalists),
            color=team_color(index, rng),
            vote_count=result.votes_for(leader),
        ))

    rebels = None
    if result.rejected:
        rejected_ids = [c.participant_id for c in result.rejected]
        rebels = RebelFaction(
            leaders=rejected_ids,
            members=_voters_for(rejected_ids, ballots, finalists),
            color=REBEL_COLOR,
        )

    logger.info(
        f"Formed {len(teams)} teams"
        + (f" and a rebel faction of {len(rebels.leaders)} leaders" if rebels else "")
    )
    return teams, rebels
