"""Data models for the tournament blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Literal, Mapping, Optional

from fantabeach.core.constants import PLACEHOLDER_PAIR_ID, PROGRESSION_BEST_OF


class Phase(str, Enum):
    """Competition stage of a match."""

    QUALIFICATION = "qualification"
    POOLS = "pools"
    MAIN_DRAW = "main_draw"


class MatchStatus(str, Enum):
    """Lifecycle state of a match."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DayBucket(str, Enum):
    """Tournament day a match is played on."""

    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


KNOCKOUT_PHASES = frozenset({Phase.QUALIFICATION, Phase.MAIN_DRAW})

ChangeAction = Literal["created", "updated"]

# Completed and cancelled are terminal.
STATUS_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.SCHEDULED: frozenset(
        {MatchStatus.LIVE, MatchStatus.COMPLETED, MatchStatus.CANCELLED}
    ),
    MatchStatus.LIVE: frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED}),
    MatchStatus.COMPLETED: frozenset(),
    MatchStatus.CANCELLED: frozenset(),
}


def can_transition(current: MatchStatus, target: MatchStatus) -> bool:
    """Return True when ``current`` may move forward to ``target``."""
    return target in STATUS_TRANSITIONS[current]


def is_placeholder_pair_id(pair_id: Optional[str]) -> bool:
    """Return True when the pair id does not name a real pair yet."""
    return pair_id is None or not pair_id.strip() or pair_id == PLACEHOLDER_PAIR_ID


def normalize_pair_id(pair_id: Optional[str]) -> Optional[str]:
    """Map every placeholder spelling to None."""
    return None if is_placeholder_pair_id(pair_id) else pair_id


def isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    """Serialize an optional datetime for the JSON API."""
    return value.isoformat() if value is not None else None


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class SetScore:
    """Points of both sides in one set."""

    set_number: int
    pair_a_score: int
    pair_b_score: int

    def to_dict(self) -> dict[str, int]:
        return {
            "setNumber": self.set_number,
            "pairAScore": self.pair_a_score,
            "pairBScore": self.pair_b_score,
        }


@dataclass
class Match:
    """A contest between two pairs within one tournament.

    Pair ids are ``None`` while the side is still undecided. ``round`` and
    ``slot`` identify the match within its (tournament, phase).
    """

    id: str
    tournament_id: str
    phase: Phase
    round: int
    slot: int
    day: DayBucket = DayBucket.FRIDAY
    status: MatchStatus = MatchStatus.SCHEDULED
    pair_a_id: Optional[str] = None
    pair_b_id: Optional[str] = None
    set_scores: list[SetScore] = field(default_factory=list)
    winner_pair_id: Optional[str] = None
    scheduled_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    best_of: int = PROGRESSION_BEST_OF

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def key(self) -> tuple[str, Phase, int, int]:
        return (self.tournament_id, self.phase, self.round, self.slot)

    @property
    def pair_ids(self) -> tuple[Optional[str], Optional[str]]:
        return (self.pair_a_id, self.pair_b_id)

    def copy(self) -> Match:
        """Return an independent copy of the match."""
        return replace(self, set_scores=list(self.set_scores))

    def sets_won(self) -> tuple[int, int]:
        """Count sets won by side A and side B. Tied sets count for nobody."""
        won_a = won_b = 0
        for s in self.set_scores:
            if s.pair_a_score > s.pair_b_score:
                won_a += 1
            elif s.pair_b_score > s.pair_a_score:
                won_b += 1
        return won_a, won_b

    def majority_winner_pair_id(self) -> Optional[str]:
        """Return the side with more sets won, or None on a tie."""
        won_a, won_b = self.sets_won()
        if won_a == won_b:
            return None
        return self.pair_a_id if won_a > won_b else self.pair_b_id

    def decided_winner_pair_id(self) -> Optional[str]:
        """Explicit winner, falling back to the set majority."""
        return self.winner_pair_id or self.majority_winner_pair_id()

    def loser_pair_id(self) -> Optional[str]:
        winner = self.decided_winner_pair_id()
        if winner is None:
            return None
        if winner == self.pair_a_id:
            return self.pair_b_id
        if winner == self.pair_b_id:
            return self.pair_a_id
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "phase": self.phase.value,
            "day": self.day.value,
            "round": self.round,
            "slot": self.slot,
            "status": self.status.value,
            "bestOf": self.best_of,
            "pairAId": self.pair_a_id,
            "pairBId": self.pair_b_id,
            "setScores": [s.to_dict() for s in self.set_scores],
            "winnerPairId": self.winner_pair_id,
            "scheduledAt": isoformat(self.scheduled_at),
            "completedAt": isoformat(self.completed_at),
        }


@dataclass(frozen=True)
class BracketNode:
    """One visual cell of the bracket, backed by a match."""

    id: str
    tournament_id: str
    phase: Phase
    round: int
    slot: int
    match_id: str
    label: str
    pair_a_id: Optional[str] = None
    pair_b_id: Optional[str] = None
    winner_pair_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "phase": self.phase.value,
            "round": self.round,
            "slot": self.slot,
            "matchId": self.match_id,
            "label": self.label,
            "pairAId": self.pair_a_id,
            "pairBId": self.pair_b_id,
            "winnerPairId": self.winner_pair_id,
        }


@dataclass(frozen=True)
class BracketEdge:
    """Advancement relation from a node to the node its winner feeds."""

    id: str
    from_node_id: str
    to_node_id: str
    outcome: str = "winner"

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "fromNodeId": self.from_node_id,
            "toNodeId": self.to_node_id,
            "outcome": self.outcome,
        }


@dataclass(frozen=True)
class BracketData:
    """Derived bracket of a tournament. Never persisted."""

    tournament_id: str
    nodes: tuple[BracketNode, ...]
    edges: tuple[BracketEdge, ...]
    updated_at: datetime.datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "tournamentId": self.tournament_id,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "updatedAt": isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class Registration:
    """A user's registration to a tournament."""

    user_id: str
    registered_at: datetime.datetime


@dataclass
class Tournament:
    """The part of a tournament record the engine reads."""

    id: str
    season_id: str = ""
    name: str = ""
    registrations: list[Registration] = field(default_factory=list)

    def registration_for(self, user_id: str) -> Optional[Registration]:
        for registration in self.registrations:
            if registration.user_id == user_id:
                return registration
        return None


@dataclass
class FantasyTeam:
    """A user's roster for one tournament. Starters and reserves are ordered."""

    id: str
    user_id: str
    tournament_id: str
    roster_player_ids: list[str] = field(default_factory=list)
    starters: list[str] = field(default_factory=list)
    reserves: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScoringConfig:
    """Point multiplier and win bonuses of a tournament."""

    tournament_id: str
    base_point_multiplier: float = 1.0
    bonus_win_20: float = 0.0
    bonus_win_21: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tournamentId": self.tournament_id,
            "basePointMultiplier": self.base_point_multiplier,
            "bonusWin20": self.bonus_win_20,
            "bonusWin21": self.bonus_win_21,
        }


@dataclass(frozen=True)
class UserScoreTotal:
    """Points of one user's team in one scoring run."""

    user_id: str
    total_points: float
    counted_players: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "totalPoints": self.total_points,
            "countedPlayers": list(self.counted_players),
        }


@dataclass(frozen=True)
class ProgressionChange:
    """A match created or updated by progression."""

    action: ChangeAction
    after: Match
    before: Optional[Match] = None


@dataclass(frozen=True)
class ProgressionResult:
    """New match list plus the changes that produced it."""

    matches: list[Match]
    changes: list[ProgressionChange]


class PairLookup:
    """Resolve pair ids to player ids.

    Placeholder and unknown pairs resolve to no players.
    """

    def __init__(self, pairs: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        self._pairs: dict[str, tuple[str, ...]] = {
            pair_id: tuple(players) for pair_id, players in (pairs or {}).items()
        }

    @classmethod
    def coerce(cls, pairs: PairLookup | Mapping[str, Iterable[str]] | None) -> PairLookup:
        if isinstance(pairs, PairLookup):
            return pairs
        return cls(pairs)

    def players_for(self, pair_id: Optional[str]) -> tuple[str, ...]:
        if is_placeholder_pair_id(pair_id):
            return ()
        return self._pairs.get(pair_id, ())  # type: ignore[arg-type]

    def __contains__(self, pair_id: object) -> bool:
        return pair_id in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)
