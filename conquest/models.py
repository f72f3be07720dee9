"""Data models for the Chat Conquest game."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Phase(str, Enum):
    """The single authoritative game phase."""
    IDLE = "idle"
    APPLICATIONS = "applications"
    SELECTION = "selection"
    VOTING = "voting"
    RESULTS = "results"
    MAP = "map"


@dataclass
class Candidate:
    """A viewer applying to lead a team."""
    participant_id: str
    team_name: str
    team_slogan: str
    applied_at: float  # monotonic seconds


def empty_resources() -> Dict[str, int]:
    return {"wood": 0, "iron": 0, "clay": 0}


@dataclass
class Team:
    """A team headed by an elected leader."""
    leader_id: str
    team_name: str
    team_slogan: str
    members: List[str] = field(default_factory=list)  # never contains the leader
    color: str = ""
    score: int = 0
    wins: int = 0
    resources: Dict[str, int] = field(default_factory=empty_resources)
    vote_count: int = 0


@dataclass
class RebelFaction:
    """Rejected finalists and everyone who voted for them."""
    leaders: List[str] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    color: str = ""
    score: int = 0
    wins: int = 0
    resources: Dict[str, int] = field(default_factory=empty_resources)


@dataclass
class MapCell:
    """One square of the territory grid, (row, col) zero-based."""
    row: int
    col: int
    terrain: str
    resource: Optional[str] = None
    owner: Optional[str] = None

    @property
    def claimable(self) -> bool:
        return self.terrain != "water" and self.owner is None


@dataclass
class DraftState:
    """Turn order and timing for the territory draft."""
    picking_order: List[str]
    grid: List[List[MapCell]]
    current_picker: Optional[str] = None
    turn_deadline: float = 0.0  # monotonic seconds
    turn_end_time: int = 0  # wall-clock epoch milliseconds, for display

    @property
    def complete(self) -> bool:
        return self.current_picker is None


@dataclass
class GameState:
    """Aggregate root, owned and mutated only by the orchestrator."""
    phase: Phase = Phase.IDLE
    candidates: List[Candidate] = field(default_factory=list)
    selected_candidates: List[Candidate] = field(default_factory=list)
    ballots: Dict[str, str] = field(default_factory=dict)
    teams: List[Team] = field(default_factory=list)
    rebels: Optional[RebelFaction] = None
    draft: Optional[DraftState] = None
    phase_deadline: float = 0.0  # monotonic seconds
    timer_end_time: int = 0  # wall-clock epoch milliseconds, for display


# Parsed chat commands

@dataclass(frozen=True)
class ApplyCommand:
    team_name: str
    slogan: str


class TargetKind(str, Enum):
    BY_INDEX = "by_index"
    BY_ID = "by_id"


@dataclass(frozen=True)
class VoteTarget:
    """A ballot target: a 1-based finalist number or a participant id."""
    kind: TargetKind
    raw: str
    index: Optional[int] = None

    @classmethod
    def by_index(cls, index: int, raw: str) -> "VoteTarget":
        return cls(TargetKind.BY_INDEX, raw, index)

    @classmethod
    def by_id(cls, raw: str) -> "VoteTarget":
        return cls(TargetKind.BY_ID, raw)


@dataclass(frozen=True)
class VoteCommand:
    target: VoteTarget


@dataclass(frozen=True)
class ClaimCommand:
    col_letter: str
    row: int  # 1-based, as typed in chat

    @property
    def position(self):
        """Zero-based (row, col)."""
        return self.row - 1, ord(self.col_letter.upper()) - ord("A")


@dataclass
class ActionResult:
    """Result of an admin-triggered game action."""
    success: bool
    message: str


@dataclass
class ClaimResult:
    """Outcome of a claim attempt by the current picker."""
    success: bool
    leader_id: str
    row: int
    col: int
    reason: Optional[str] = None
    auto: bool = False


@dataclass
class TurnResult:
    """Outcome of advancing the draft by one turn."""
    finished_picker: str
    next_picker: Optional[str]
    remaining: List[str]

    @property
    def complete(self) -> bool:
        return self.next_picker is None
