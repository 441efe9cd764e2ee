"""Data models for tournaments."""

from __future__ import annotations

from typing import Any, TypedDict

from tourneyhub.core.types import FirestoreDocument


class PrizeDistribution(TypedDict, total=False):
    """Share of the prize pool awarded to a finishing position."""

    position: int
    amount: float
    percentage: float


class Room(TypedDict, total=False):
    """In-game room credentials, hidden until the reveal window opens."""

    id: str
    password: str
    visibleFrom: Any
    revealed: bool


class Stats(TypedDict):
    """Cumulative tournament stats kept on user and team documents."""

    tournamentsJoined: int
    tournamentsWon: int
    totalEarnings: float


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    title: str
    description: str
    gameType: str
    organizerId: str
    organizerName: str
    status: str
    maxTeams: int
    entryFee: float
    prizePool: float
    prizeDistribution: list[PrizeDistribution]
    room: Room
    winnerId: str
    winnerName: str


def empty_stats() -> Stats:
    """Return a zeroed stats map."""
    return Stats(tournamentsJoined=0, tournamentsWon=0, totalEarnings=0)
