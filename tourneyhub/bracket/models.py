"""Data models for brackets, matches and entrants."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional, TypedDict, Union

from tourneyhub.core.types import FirestoreDocument


class EntrantKind(str, Enum):
    """Whether an entrant occupies a bracket slot as a team or as a player."""

    TEAM = "team"
    SOLO = "solo"


class MatchStatus(str, Enum):
    """Lifecycle of a match."""

    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Entrant:
    """A team or player eligible to occupy a bracket slot."""

    entity_id: str
    kind: EntrantKind
    display_name: str
    registration_id: str
    user_id: Optional[str] = None


class _Bye:
    """Padding slot with no entrant behind it."""

    _instance: Optional[_Bye] = None

    def __new__(cls) -> _Bye:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BYE"


BYE = _Bye()

Slot = Union[Entrant, _Bye]


class Scores(TypedDict, total=False):
    """Reported score of a match."""

    team1Score: int
    team2Score: int


class Match(FirestoreDocument, total=False):
    """A match document in Firestore."""

    tournamentId: str
    round: int
    position: int
    team1Id: str
    team1Name: str
    team2Id: str
    team2Name: str
    status: str
    winnerId: str
    winnerName: str
    scores: Scores
    isBye: bool
    completedAt: Any


class BracketRound(TypedDict):
    """Ordered match ids of one round."""

    roundNumber: int
    matches: list[str]


class Bracket(FirestoreDocument, total=False):
    """A bracket document in Firestore."""

    tournamentId: str
    type: str
    rounds: list[BracketRound]
    isLocked: bool
    totalEntrants: int


@dataclass
class GenerateBracketResult:
    """Outcome of generating a bracket."""

    bracketId: str
    totalEntrants: int
    totalMatches: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the API response."""
        return asdict(self)
