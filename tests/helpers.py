"""Builders and base test cases shared by the test suite."""

from __future__ import annotations

import datetime
import unittest

from fantabeach import create_app, models
from fantabeach.extensions import db
from fantabeach.tournament.models import (
    FantasyTeam,
    Match,
    MatchStatus,
    Phase,
    Registration,
    ScoringConfig,
    SetScore,
    Tournament,
)

T0 = datetime.datetime(2024, 6, 7, 9, 0, tzinfo=datetime.timezone.utc)


def at(minutes: int) -> datetime.datetime:
    """Return a timestamp ``minutes`` after the first match day starts."""
    return T0 + datetime.timedelta(minutes=minutes)


def sets(*scores: tuple[int, int]) -> list[SetScore]:
    return [SetScore(i, a, b) for i, (a, b) in enumerate(scores, start=1)]


def make_match(
    match_id: str,
    phase: Phase = Phase.MAIN_DRAW,
    round: int = 1,
    slot: int = 1,
    pair_a: str | None = None,
    pair_b: str | None = None,
    scores: tuple = (),
    completed_at: datetime.datetime | None = None,
    winner: str | None = None,
    tournament_id: str = "t1",
) -> Match:
    """Build an engine match; passing ``completed_at`` marks it completed."""
    set_scores = sets(*scores)
    match = Match(
        id=match_id,
        tournament_id=tournament_id,
        phase=phase,
        round=round,
        slot=slot,
        pair_a_id=pair_a,
        pair_b_id=pair_b,
        set_scores=set_scores,
        scheduled_at=T0,
    )
    if completed_at is not None:
        match.status = MatchStatus.COMPLETED
        match.completed_at = completed_at
        match.winner_pair_id = winner or match.majority_winner_pair_id()
    return match


def make_tournament(registrations=None, tournament_id="t1") -> Tournament:
    return Tournament(
        id=tournament_id,
        season_id="s1",
        registrations=[
            Registration(user_id=user_id, registered_at=registered_at)
            for user_id, registered_at in (registrations or {}).items()
        ],
    )


def make_team(user_id, starters, reserves=(), tournament_id="t1") -> FantasyTeam:
    return FantasyTeam(
        id=f"team_{user_id}",
        user_id=user_id,
        tournament_id=tournament_id,
        roster_player_ids=list(starters) + list(reserves),
        starters=list(starters),
        reserves=list(reserves),
    )


def make_config(multiplier=1.0, bonus_20=0.0, bonus_21=0.0) -> ScoringConfig:
    return ScoringConfig(
        tournament_id="t1",
        base_point_multiplier=multiplier,
        bonus_win_20=bonus_20,
        bonus_win_21=bonus_21,
    )


class IdSequence:
    """Deterministic id factory for progression tests."""

    def __init__(self, prefix="new"):
        self.prefix = prefix
        self.count = 0

    def __call__(self):
        self.count += 1
        return f"{self.prefix}_{self.count}"


class AppTestCase(unittest.TestCase):
    """Base test case with an application and an in-memory database."""

    def setUp(self):
        """Set up the app, the test client and an empty schema."""
        self.app = create_app(
            {"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

    def tearDown(self):
        """Drop the schema and pop the app context."""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def seed_tournament(self, tournament_id="t1", season_id="s1", **config):
        """Add a tournament with its scoring config."""
        db.session.add(models.Tournament(id=tournament_id, season_id=season_id))
        db.session.add(
            models.ScoringConfig(
                tournament_id=tournament_id,
                base_point_multiplier=config.get("multiplier", 1.0),
                bonus_win_20=config.get("bonus_20", 0.0),
                bonus_win_21=config.get("bonus_21", 0.0),
            )
        )
        db.session.commit()

    def seed_entry(self, pair_id, player_a, player_b, tournament_id="t1"):
        db.session.add(
            models.Entry(
                pair_id=pair_id,
                tournament_id=tournament_id,
                player_a_id=player_a,
                player_b_id=player_b,
            )
        )
        db.session.commit()

    def seed_match(self, match: Match):
        db.session.add(models.Match.from_engine(match))
        db.session.commit()

    def seed_registration(self, user_id, registered_at, tournament_id="t1"):
        db.session.add(
            models.Registration(
                tournament_id=tournament_id,
                user_id=user_id,
                registered_at=registered_at,
            )
        )
        db.session.commit()

    def seed_team(self, team: FantasyTeam, created_at=None):
        db.session.add(
            models.FantasyTeam(
                id=team.id,
                user_id=team.user_id,
                tournament_id=team.tournament_id,
                roster_player_ids=team.roster_player_ids,
                starters=team.starters,
                reserves=team.reserves,
                created_at=created_at or T0,
            )
        )
        db.session.commit()

    def seed_league(self, league_id="l1", season_id="s1"):
        db.session.add(models.League(id=league_id, season_id=season_id, name=league_id))
        db.session.commit()
