"""Data models for the league blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from fantabeach.tournament.models import UserScoreTotal, isoformat


@dataclass(frozen=True)
class League:
    """A season-wide competition between fantasy team owners."""

    id: str
    season_id: str
    name: str = ""


@dataclass(frozen=True)
class ScoringRunTotals:
    """The totals of one scoring run of one tournament."""

    tournament_id: str
    finished_at: datetime.datetime
    totals: tuple[UserScoreTotal, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LeaderboardRow:
    """One ranked row of a league leaderboard."""

    league_id: str
    user_id: str
    display_name: str
    rank: int
    total_points: float
    tie_breaker_score: float
    last_updated: datetime.datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "leagueId": self.league_id,
            "userId": self.user_id,
            "displayName": self.display_name,
            "rank": self.rank,
            "totalPoints": self.total_points,
            "tieBreakerScore": self.tie_breaker_score,
            "lastUpdated": isoformat(self.last_updated),
        }
