"""Tests for fantasy point calculation."""

from __future__ import annotations

import unittest

from fantabeach.tournament.models import MatchStatus, PairLookup
from fantabeach.tournament.scoring import (
    calculate_player_points_by_match,
    compute_tournament_totals,
    compute_winner,
    select_counted_players,
)

from tests.helpers import (
    at,
    make_config,
    make_match,
    make_team,
    make_tournament,
)

PAIRS = {
    "p1": ["alice", "bea"],
    "p2": ["carla", "dana"],
    "p3": ["eva", "fede"],
    "p4": ["gina", "ilaria"],
}


class MatchPointsTestCase(unittest.TestCase):
    """Test case for per-match point attribution."""

    def test_split_sets_base_points_only(self):
        """Test that a one-all result earns base points and no bonus."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2",
            scores=((21, 15), (18, 21)), completed_at=at(10),
        )
        config = make_config(bonus_20=6, bonus_21=3)

        points = calculate_player_points_by_match(match, PAIRS, config)

        self.assertEqual(
            points, {"alice": 39.0, "bea": 39.0, "carla": 36.0, "dana": 36.0}
        )

    def test_two_set_sweep_bonus(self):
        """Test that a 2-0 win earns the sweep bonus."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2",
            scores=((21, 15), (21, 18)), completed_at=at(10),
        )
        points = calculate_player_points_by_match(
            match, PAIRS, make_config(bonus_20=6, bonus_21=3)
        )
        self.assertEqual(points["alice"], 48.0)
        self.assertEqual(points["carla"], 33.0)

    def test_three_set_win_bonus(self):
        """Test that a 2-1 win earns the three-set bonus and ignores the third set."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2",
            scores=((21, 15), (18, 21), (15, 10)), completed_at=at(10),
        )
        points = calculate_player_points_by_match(
            match, PAIRS, make_config(bonus_20=6, bonus_21=3)
        )
        self.assertEqual(points["alice"], 42.0)
        self.assertEqual(points["carla"], 36.0)

    def test_multiplier(self):
        """Test that the multiplier scales base points but not bonuses."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2",
            scores=((21, 15), (21, 18)), completed_at=at(10),
        )
        points = calculate_player_points_by_match(
            match, PAIRS, make_config(multiplier=0.5, bonus_20=6)
        )
        self.assertEqual(points["alice"], 27.0)
        self.assertEqual(points["dana"], 16.5)

    def test_explicit_winner(self):
        """Test that the recorded winner decides the bonus."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2",
            scores=((21, 15), (18, 21)), completed_at=at(10), winner="p2",
        )
        points = calculate_player_points_by_match(
            match, PAIRS, make_config(bonus_20=6, bonus_21=3)
        )
        self.assertEqual(points["carla"], 39.0)
        self.assertEqual(points["alice"], 39.0)

    def test_placeholder_pair_has_no_players(self):
        """Test that an undecided side is credited to nobody."""
        match = make_match(
            "m1", pair_a="p1", pair_b="__TBD__",
            scores=((21, 0),), completed_at=at(10),
        )
        points = calculate_player_points_by_match(match, PAIRS, make_config())
        self.assertEqual(set(points), {"alice", "bea"})

    def test_pair_lookup(self):
        """Test placeholder and unknown pair lookups."""
        lookup = PairLookup(PAIRS)
        self.assertEqual(lookup.players_for("p1"), ("alice", "bea"))
        self.assertEqual(lookup.players_for(""), ())
        self.assertEqual(lookup.players_for(None), ())
        self.assertEqual(lookup.players_for("__TBD__"), ())
        self.assertEqual(lookup.players_for("unknown"), ())

    def test_compute_winner(self):
        """Test majority winner derivation."""
        match = make_match(
            "m1", pair_a="p1", pair_b="p2", scores=((15, 21), (21, 19), (10, 15))
        )
        self.assertEqual(compute_winner(match), "p2")
        match.set_scores = match.set_scores[:2]
        self.assertIsNone(compute_winner(match))


class CountedPlayersTestCase(unittest.TestCase):
    """Test case for starter and reserve substitution."""

    def test_starters_who_played(self):
        """Test that starters who played are counted in order."""
        team = make_team("u1", ["a", "b"], ["r1"])
        self.assertEqual(select_counted_players(team, {"a", "b", "r1"}), ["a", "b"])

    def test_reserve_substitutes_once(self):
        """Test that a reserve replaces at most one starter."""
        team = make_team("u1", ["a", "b", "c"], ["r1", "r2"])
        counted = select_counted_players(team, {"a", "r1"})
        self.assertEqual(counted, ["a", "r1"])

    def test_reserves_used_in_order(self):
        """Test that the first eligible unused reserve is picked."""
        team = make_team("u1", ["a", "b"], ["r1", "r2", "r3"])
        self.assertEqual(select_counted_players(team, {"r2", "r3"}), ["r2", "r3"])

    def test_no_reserve_drops_slot(self):
        """Test that a starter without a replacement is dropped."""
        team = make_team("u1", ["a", "b"], [])
        self.assertEqual(select_counted_players(team, {"b"}), ["b"])


class TournamentTotalsTestCase(unittest.TestCase):
    """Test case for compute_tournament_totals."""

    def setUp(self):
        self.config = make_config(bonus_20=6, bonus_21=3)
        self.early = make_match(
            "m1", round=1, slot=1, pair_a="p1", pair_b="p2",
            scores=((21, 15), (21, 18)), completed_at=at(60),
        )
        self.late = make_match(
            "m2", round=1, slot=2, pair_a="p3", pair_b="p4",
            scores=((21, 10), (21, 12)), completed_at=at(180),
        )

    def test_reserve_points_counted_once(self):
        """Test that the substituting reserve's points are counted in place of the starter."""
        tournament = make_tournament({"u1": at(0)})
        team = make_team("u1", ["alice", "zoe"], ["eva", "fede"])

        (total,) = compute_tournament_totals(
            tournament, [team], [self.early, self.late], PAIRS, self.config
        )

        self.assertEqual(total.counted_players, ("alice", "eva"))
        self.assertEqual(total.total_points, 48.0 + 48.0)

    def test_registration_cutoff_is_per_team(self):
        """Test that a late registration excludes earlier matches for that team only."""
        tournament = make_tournament({"early": at(0), "late": at(120)})
        teams = [
            make_team("early", ["alice"]),
            make_team("late", ["alice"]),
        ]

        totals = {
            t.user_id: t
            for t in compute_tournament_totals(
                tournament, teams, [self.early, self.late], PAIRS, self.config
            )
        }

        self.assertEqual(totals["early"].total_points, 48.0)
        self.assertEqual(totals["early"].counted_players, ("alice",))
        self.assertEqual(totals["late"].total_points, 0.0)
        self.assertEqual(totals["late"].counted_players, ())

    def test_cutoff_is_inclusive(self):
        """Test that a match completed at the registration time counts."""
        tournament = make_tournament({"u1": at(60)})
        (total,) = compute_tournament_totals(
            tournament, [make_team("u1", ["alice"])], [self.early], PAIRS, self.config
        )
        self.assertEqual(total.total_points, 48.0)

    def test_unregistered_team_has_no_cutoff(self):
        """Test that a team without a registration sees every match."""
        tournament = make_tournament()
        (total,) = compute_tournament_totals(
            tournament, [make_team("u1", ["alice"])], [self.early], PAIRS, self.config
        )
        self.assertEqual(total.total_points, 48.0)

    def test_only_completed_matches_scored(self):
        """Test that open or undated matches earn nothing."""
        live = make_match(
            "m3", pair_a="p1", pair_b="p2", scores=((21, 15), (21, 18))
        )
        live.status = MatchStatus.LIVE
        undated = make_match(
            "m4", pair_a="p1", pair_b="p2", scores=((21, 15), (21, 18))
        )
        undated.status = MatchStatus.COMPLETED
        tournament = make_tournament({"u1": at(0)})

        (total,) = compute_tournament_totals(
            tournament, [make_team("u1", ["alice"])], [live, undated], PAIRS, self.config
        )

        self.assertEqual(total.total_points, 0.0)

    def test_sorted_descending_with_stable_ties(self):
        """Test the ordering of totals."""
        tournament = make_tournament({"u1": at(0), "u2": at(0), "u3": at(0)})
        teams = [
            make_team("u1", ["carla"]),
            make_team("u2", ["alice"]),
            make_team("u3", ["dana"]),
        ]

        totals = compute_tournament_totals(
            tournament, teams, [self.early], PAIRS, self.config
        )

        self.assertEqual([t.user_id for t in totals], ["u2", "u1", "u3"])
        self.assertEqual(totals[1].total_points, totals[2].total_points)

    def test_other_tournament_teams_skipped(self):
        """Test that teams of another tournament are ignored."""
        tournament = make_tournament({"u1": at(0)})
        teams = [make_team("u1", ["alice"]), make_team("u2", ["alice"], tournament_id="t2")]
        totals = compute_tournament_totals(
            tournament, teams, [self.early], PAIRS, self.config
        )
        self.assertEqual([t.user_id for t in totals], ["u1"])


if __name__ == "__main__":
    unittest.main()
