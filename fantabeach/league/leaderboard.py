"""Season leaderboards built from the latest scoring run of each tournament."""

from __future__ import annotations

import datetime
from typing import Iterable, Mapping, Optional

from fantabeach.tournament.models import utcnow

from .models import League, LeaderboardRow, ScoringRunTotals


def latest_runs(runs: Iterable[ScoringRunTotals]) -> dict[str, ScoringRunTotals]:
    """Keep the most recently finished run per tournament."""
    latest: dict[str, ScoringRunTotals] = {}
    for run in runs:
        current = latest.get(run.tournament_id)
        if current is None or run.finished_at > current.finished_at:
            latest[run.tournament_id] = run
    return latest


def recompute_league_rows(
    league: League,
    runs: Iterable[ScoringRunTotals],
    display_names: Optional[Mapping[str, str]] = None,
    now: Optional[datetime.datetime] = None,
) -> list[LeaderboardRow]:
    """Rank users by their summed points over the season's latest runs.

    ``runs`` must already be limited to the tournaments of the league's
    season. Ties on total points go to the better single-tournament total,
    then to the user id.
    """
    display_names = display_names or {}
    now = now or utcnow()

    totals: dict[str, float] = {}
    best: dict[str, float] = {}
    for run in latest_runs(runs).values():
        for result in run.totals:
            totals[result.user_id] = totals.get(result.user_id, 0.0) + result.total_points
            best[result.user_id] = max(best.get(result.user_id, result.total_points), result.total_points)

    ordered = sorted(totals, key=lambda uid: (-totals[uid], -best[uid], uid))
    return [
        LeaderboardRow(
            league_id=league.id,
            user_id=user_id,
            display_name=display_names.get(user_id, user_id),
            rank=rank,
            total_points=totals[user_id],
            tie_breaker_score=best[user_id],
            last_updated=now,
        )
        for rank, user_id in enumerate(ordered, start=1)
    ]
