"""Service layer for league leaderboards."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from flask import current_app

from fantabeach import models
from fantabeach.audit import write_audit
from fantabeach.core.constants import AUDIT_LEAGUE_RECOMPUTE, SYSTEM_ACTOR
from fantabeach.errors import NotFoundError
from fantabeach.extensions import db
from fantabeach.tournament.models import utcnow

from .leaderboard import recompute_league_rows

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from .models import ScoringRunTotals


class LeagueService:
    """Handles business logic and data access for leagues."""

    @staticmethod
    def get_league(league_id: str, session: Session | None = None) -> models.League:
        if session is None:
            session = db.session
        league = session.get(models.League, league_id)
        if league is None:
            raise NotFoundError("League not found.")
        return league

    @staticmethod
    def _season_runs(session: Session, season_id: str) -> list[ScoringRunTotals]:
        """Completed scoring runs of every tournament in the season."""
        tournament_ids = [
            t.id
            for t in session.query(models.Tournament.id).filter(
                models.Tournament.season_id == season_id
            )
        ]
        return [
            r.to_run_totals()
            for r in session.query(models.ScoringRun).filter(
                models.ScoringRun.tournament_id.in_(tournament_ids),
                models.ScoringRun.status == "completed",
            )
        ]

    @staticmethod
    def _replace_rows(
        session: Session,
        league: models.League,
        runs: list[ScoringRunTotals],
        now: datetime.datetime,
    ) -> list[models.LeaderboardEntry]:
        rows = recompute_league_rows(league.to_engine(), runs, now=now)
        session.query(models.LeaderboardEntry).filter(
            models.LeaderboardEntry.league_id == league.id
        ).delete(synchronize_session=False)
        entries = [models.LeaderboardEntry.from_row(row) for row in rows]
        session.add_all(entries)
        return entries

    @staticmethod
    def recompute_season(
        season_id: str, session: Session | None = None
    ) -> dict[str, int]:
        """Rebuild the leaderboard of every league in a season.

        Rows are staged on the session; the caller commits them together with
        the scoring run that triggered the rebuild. Returns the number of
        rows written per league.
        """
        if session is None:
            session = db.session

        leagues = (
            session.query(models.League)
            .filter(models.League.season_id == season_id)
            .order_by(models.League.id)
            .all()
        )
        if not leagues:
            return {}

        runs = LeagueService._season_runs(session, season_id)
        now = utcnow()
        written = {}
        for league in leagues:
            written[league.id] = len(
                LeagueService._replace_rows(session, league, runs, now)
            )

        current_app.logger.info(
            f"Leaderboards rebuilt for season {season_id}: {written}"
        )
        return written

    @staticmethod
    def recompute_league(
        league_id: str, actor: str = SYSTEM_ACTOR, session: Session | None = None
    ) -> list[models.LeaderboardEntry]:
        """Rebuild one league's leaderboard on operator request."""
        if session is None:
            session = db.session
        league = LeagueService.get_league(league_id, session)

        entries = LeagueService._replace_rows(
            session, league, LeagueService._season_runs(session, league.season_id), utcnow()
        )
        write_audit(
            session,
            actor,
            AUDIT_LEAGUE_RECOMPUTE,
            "league",
            league_id,
            after=[e.to_dict() for e in entries],
        )
        session.commit()
        current_app.logger.info(
            f"Leaderboard of league {league_id} rebuilt: {len(entries)} row(s)."
        )
        return entries

    @staticmethod
    def get_leaderboard(
        league_id: str, session: Session | None = None
    ) -> list[models.LeaderboardEntry]:
        """Return the stored leaderboard of a league ordered by rank."""
        if session is None:
            session = db.session
        LeagueService.get_league(league_id, session)
        return (
            session.query(models.LeaderboardEntry)
            .filter(models.LeaderboardEntry.league_id == league_id)
            .order_by(models.LeaderboardEntry.rank)
            .all()
        )
