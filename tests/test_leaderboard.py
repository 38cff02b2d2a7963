"""Tests for league leaderboard computation."""

from __future__ import annotations

import unittest

from fantabeach.league.leaderboard import latest_runs, recompute_league_rows
from fantabeach.league.models import League, ScoringRunTotals
from fantabeach.tournament.models import UserScoreTotal

from tests.helpers import T0, at


def run(tournament_id, finished_at, **totals):
    return ScoringRunTotals(
        tournament_id=tournament_id,
        finished_at=finished_at,
        totals=tuple(UserScoreTotal(user_id=u, total_points=p) for u, p in totals.items()),
    )


class LeaderboardTestCase(unittest.TestCase):
    """Test case for recompute_league_rows."""

    def setUp(self):
        self.league = League(id="l1", season_id="s1", name="Summer")

    def test_latest_run_per_tournament(self):
        """Test that only the newest run of each tournament is kept."""
        old = run("t1", at(10), u1=5)
        new = run("t1", at(20), u1=7)
        other = run("t2", at(5), u1=1)
        self.assertEqual(latest_runs([new, old, other]), {"t1": new, "t2": other})

    def test_sums_across_tournaments(self):
        """Test that totals add up over the season's tournaments."""
        rows = recompute_league_rows(
            self.league,
            [run("t1", at(10), u1=40, u2=30), run("t2", at(20), u1=10, u2=30)],
            now=T0,
        )

        self.assertEqual([r.user_id for r in rows], ["u2", "u1"])
        self.assertEqual([r.rank for r in rows], [1, 2])
        self.assertEqual(rows[0].total_points, 60)
        self.assertEqual(rows[0].last_updated, T0)
        self.assertEqual(rows[0].league_id, "l1")

    def test_superseded_runs_ignored(self):
        """Test that an older run of the same tournament is not double counted."""
        rows = recompute_league_rows(
            self.league, [run("t1", at(10), u1=40), run("t1", at(20), u1=25)], now=T0
        )
        self.assertEqual(rows[0].total_points, 25)

    def test_tie_break_on_best_tournament(self):
        """Test that equal totals go to the better single-tournament score."""
        rows = recompute_league_rows(
            self.league,
            [run("t1", at(10), u1=30, u2=50), run("t2", at(20), u1=30, u2=10)],
            now=T0,
        )
        self.assertEqual([r.user_id for r in rows], ["u2", "u1"])
        self.assertEqual(rows[0].tie_breaker_score, 50)
        self.assertEqual(rows[1].tie_breaker_score, 30)

    def test_full_tie_falls_back_to_user_id(self):
        """Test that a complete tie is ordered by user id."""
        rows = recompute_league_rows(
            self.league, [run("t1", at(10), zed=10, amy=10)], now=T0
        )
        self.assertEqual([r.user_id for r in rows], ["amy", "zed"])

    def test_display_names(self):
        """Test display name lookup with user id fallback."""
        rows = recompute_league_rows(
            self.league,
            [run("t1", at(10), u1=10, u2=5)],
            display_names={"u1": "Anna"},
            now=T0,
        )
        self.assertEqual([r.display_name for r in rows], ["Anna", "u2"])

    def test_no_runs(self):
        """Test that a season without runs has an empty leaderboard."""
        self.assertEqual(recompute_league_rows(self.league, [], now=T0), [])

    def test_to_dict(self):
        """Test the JSON shape of a row."""
        (row,) = recompute_league_rows(self.league, [run("t1", at(10), u1=10)], now=T0)
        self.assertEqual(
            row.to_dict(),
            {
                "leagueId": "l1",
                "userId": "u1",
                "displayName": "u1",
                "rank": 1,
                "totalPoints": 10,
                "tieBreakerScore": 10,
                "lastUpdated": T0.isoformat(),
            },
        )


if __name__ == "__main__":
    unittest.main()
