"""Service layer for tournament business logic.

The services load a consistent snapshot from the database, hand it to the
pure engine functions and write the results back in a single commit.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from fantabeach import models
from fantabeach.audit import write_audit
from fantabeach.core.constants import (
    AUDIT_MATCH_COMPLETE,
    AUDIT_MATCH_CREATE,
    AUDIT_MATCH_UPDATE,
    AUDIT_PROGRESSION_PREFIX,
    AUDIT_SCORING_CONFIG_UPDATE,
    AUDIT_SCORING_RECALCULATE,
    DEFAULT_SCORING_RUN_HISTORY_LIMIT,
    SYSTEM_ACTOR,
)
from fantabeach.errors import DuplicateResourceError, NotFoundError, ValidationError
from fantabeach.extensions import db

from .bracket import build_bracket
from .models import (
    DayBucket,
    Match,
    MatchStatus,
    Phase,
    can_transition,
    is_placeholder_pair_id,
    normalize_pair_id,
    utcnow,
)
from .progression import advance, new_match_id
from .scoring import compute_tournament_totals
from .utils import (
    fetch_tournament_matches,
    get_pair_lookup,
    load_engine_matches,
    parse_datetime,
    parse_set_scores,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from .models import BracketData


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def get_tournament(tournament_id: str, session: Session | None = None) -> models.Tournament:
        """Fetch a tournament row or raise NotFoundError."""
        if session is None:
            session = db.session
        tournament = session.get(models.Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament not found.")
        return tournament

    @staticmethod
    def list_matches(tournament_id: str, session: Session | None = None) -> list[Match]:
        """List the tournament's matches ordered by phase, round and slot."""
        if session is None:
            session = db.session
        TournamentService.get_tournament(tournament_id, session)
        return load_engine_matches(session, tournament_id)

    @staticmethod
    def create_match(
        tournament_id: str,
        data: dict[str, Any],
        actor: str = SYSTEM_ACTOR,
        session: Session | None = None,
    ) -> Match:
        """Create a match at a free (phase, round, slot) position."""
        if session is None:
            session = db.session
        TournamentService.get_tournament(tournament_id, session)

        phase = Phase(data["phase"])
        existing = (
            session.query(models.Match)
            .filter_by(
                tournament_id=tournament_id,
                phase=phase.value,
                round=data["round"],
                slot=data["slot"],
            )
            .first()
        )
        if existing is not None:
            raise DuplicateResourceError(
                f"A {phase.value} match already exists at round {data['round']}, "
                f"slot {data['slot']}."
            )

        match = Match(
            id=new_match_id(),
            tournament_id=tournament_id,
            phase=phase,
            day=DayBucket(data.get("day") or DayBucket.FRIDAY.value),
            round=data["round"],
            slot=data["slot"],
            pair_a_id=normalize_pair_id(data.get("pairAId")),
            pair_b_id=normalize_pair_id(data.get("pairBId")),
            scheduled_at=parse_datetime(data.get("scheduledAt")) or utcnow(),
        )
        session.add(models.Match.from_engine(match))
        write_audit(
            session, actor, AUDIT_MATCH_CREATE, "match", match.id, after=match.to_dict()
        )
        session.commit()
        return match

    @staticmethod
    def update_match(
        match_id: str,
        data: dict[str, Any],
        actor: str = SYSTEM_ACTOR,
        session: Session | None = None,
    ) -> Match:
        """Edit the schedule, pairings or status of an open match.

        Only the keys present in ``data`` are applied. Status may only move
        forward; results are recorded through ``complete_match``.
        """
        if session is None:
            session = db.session

        row = session.get(models.Match, match_id)
        if row is None:
            raise NotFoundError("Match not found.")

        before = row.to_engine()
        if before.is_completed or before.status == MatchStatus.CANCELLED:
            raise ValidationError(f"Cannot edit a {before.status.value} match.")

        updated = before.copy()
        if "status" in data and data["status"]:
            status = MatchStatus(data["status"])
            if status == MatchStatus.COMPLETED:
                raise ValidationError("Use the complete endpoint to record a result.")
            if status != before.status and not can_transition(before.status, status):
                raise ValidationError(
                    f"Cannot move a match from {before.status.value} to {status.value}."
                )
            updated.status = status
        if "day" in data and data["day"]:
            updated.day = DayBucket(data["day"])
        if "scheduledAt" in data:
            updated.scheduled_at = parse_datetime(data["scheduledAt"])
        if "pairAId" in data:
            updated.pair_a_id = normalize_pair_id(data["pairAId"])
        if "pairBId" in data:
            updated.pair_b_id = normalize_pair_id(data["pairBId"])

        row.day = updated.day.value
        row.apply_engine(updated)
        write_audit(
            session,
            actor,
            AUDIT_MATCH_UPDATE,
            "match",
            match_id,
            before=before.to_dict(),
            after=updated.to_dict(),
        )
        session.commit()
        current_app.logger.info(f"Match {match_id} updated by {actor}.")
        return updated

    @staticmethod
    def complete_match(
        match_id: str,
        raw_set_scores: Any,
        actor: str = SYSTEM_ACTOR,
        session: Session | None = None,
    ) -> Match:
        """Record a match result and advance its winner and loser.

        The completed match, every progression change and their audit entries
        are committed together.
        """
        if session is None:
            session = db.session

        row = session.get(models.Match, match_id)
        if row is None:
            raise NotFoundError("Match not found.")

        before = row.to_engine()
        if before.is_completed:
            raise ValidationError("Match is already completed.")
        if before.status == MatchStatus.CANCELLED:
            raise ValidationError("Cannot complete a cancelled match.")
        if is_placeholder_pair_id(before.pair_a_id) or is_placeholder_pair_id(
            before.pair_b_id
        ):
            raise ValidationError("Match pairings are incomplete.")

        set_scores = parse_set_scores(raw_set_scores)
        winner = replace(before, set_scores=set_scores).majority_winner_pair_id()
        if not winner:
            raise ValidationError("Cannot complete match without a winner.")

        now = utcnow()
        completed = replace(
            before,
            set_scores=set_scores,
            winner_pair_id=winner,
            status=MatchStatus.COMPLETED,
            completed_at=now,
        )

        rows = {
            r.id: r
            for r in fetch_tournament_matches(session, before.tournament_id, for_update=True)
        }
        result = advance(
            [r.to_engine() for r in rows.values()], completed, now=now
        )

        row.apply_engine(completed)
        for change in result.changes:
            if change.action == "created":
                session.add(models.Match.from_engine(change.after))
            else:
                rows[change.after.id].apply_engine(change.after)
            write_audit(
                session,
                actor,
                f"{AUDIT_PROGRESSION_PREFIX}.{change.action}",
                "match",
                change.after.id,
                before=change.before.to_dict() if change.before else None,
                after=change.after.to_dict(),
            )
        write_audit(
            session,
            actor,
            AUDIT_MATCH_COMPLETE,
            "match",
            match_id,
            before=before.to_dict(),
            after=completed.to_dict(),
        )

        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            current_app.logger.warning(
                f"Progression conflict while completing match {match_id}: {e}"
            )
            raise DuplicateResourceError(
                "Another result changed this bracket at the same time. Please retry."
            ) from e

        current_app.logger.info(
            f"Match {match_id} completed; {len(result.changes)} progression change(s)."
        )
        return completed

    @staticmethod
    def get_bracket(tournament_id: str, session: Session | None = None) -> BracketData:
        """Build the bracket from the current matches. Nothing is cached."""
        if session is None:
            session = db.session
        TournamentService.get_tournament(tournament_id, session)
        return build_bracket(tournament_id, load_engine_matches(session, tournament_id))

    @staticmethod
    def rebuild_bracket(tournament_id: str, session: Session | None = None) -> BracketData:
        """Rebuild the bracket on operator request."""
        bracket = TournamentService.get_bracket(tournament_id, session)
        current_app.logger.info(
            f"Bracket rebuilt for {tournament_id}: "
            f"{len(bracket.nodes)} nodes, {len(bracket.edges)} edges."
        )
        return bracket

    @staticmethod
    def get_scoring_config(
        tournament_id: str, session: Session | None = None
    ) -> models.ScoringConfig:
        if session is None:
            session = db.session
        config = session.get(models.ScoringConfig, tournament_id)
        if config is None:
            raise NotFoundError("Scoring config not found.")
        return config

    @staticmethod
    def update_scoring_config(
        tournament_id: str,
        data: dict[str, Any],
        actor: str = SYSTEM_ACTOR,
        session: Session | None = None,
    ) -> models.ScoringConfig:
        """Replace the multiplier and bonuses used by later scoring runs."""
        if session is None:
            session = db.session
        config = TournamentService.get_scoring_config(tournament_id, session)
        before = config.to_dict()

        config.base_point_multiplier = data["basePointMultiplier"]
        config.bonus_win_20 = data["bonusWin20"]
        config.bonus_win_21 = data["bonusWin21"]
        config.updated_at = utcnow()

        write_audit(
            session,
            actor,
            AUDIT_SCORING_CONFIG_UPDATE,
            "scoring_config",
            tournament_id,
            before=before,
            after=config.to_dict(),
        )
        session.commit()
        return config

    @staticmethod
    def recalculate_scoring(
        tournament_id: str,
        actor: str = SYSTEM_ACTOR,
        session: Session | None = None,
    ) -> models.ScoringRun:
        """Recompute every team's total and refresh the season's leaderboards."""
        from fantabeach.league.services import LeagueService

        if session is None:
            session = db.session
        tournament_row = TournamentService.get_tournament(tournament_id, session)
        config = TournamentService.get_scoring_config(tournament_id, session)

        started_at = utcnow()
        teams = (
            session.query(models.FantasyTeam)
            .filter(models.FantasyTeam.tournament_id == tournament_id)
            .order_by(models.FantasyTeam.created_at, models.FantasyTeam.id)
            .all()
        )
        totals = compute_tournament_totals(
            tournament_row.to_engine(),
            [t.to_engine() for t in teams],
            load_engine_matches(session, tournament_id),
            get_pair_lookup(session, tournament_id),
            config.to_engine(),
        )

        run = models.ScoringRun(
            id=f"run_{uuid.uuid4().hex}",
            tournament_id=tournament_id,
            status="completed",
            triggered_by=actor,
            started_at=started_at,
            finished_at=utcnow(),
            totals_by_user=[t.to_dict() for t in totals],
        )
        session.add(run)
        session.flush()

        LeagueService.recompute_season(tournament_row.season_id, session=session)
        write_audit(
            session,
            actor,
            AUDIT_SCORING_RECALCULATE,
            "tournament",
            tournament_id,
            after=run.to_dict(),
        )
        session.commit()
        current_app.logger.info(
            f"Scoring run {run.id} for {tournament_id}: {len(totals)} team(s) scored."
        )
        return run

    @staticmethod
    def list_scoring_runs(
        tournament_id: str, limit: Optional[int] = None, session: Session | None = None
    ) -> list[models.ScoringRun]:
        """Return the tournament's scoring runs, newest first."""
        if session is None:
            session = db.session
        if limit is None:
            limit = current_app.config.get(
                "SCORING_RUN_HISTORY_LIMIT", DEFAULT_SCORING_RUN_HISTORY_LIMIT
            )
        TournamentService.get_tournament(tournament_id, session)
        return (
            session.query(models.ScoringRun)
            .filter(models.ScoringRun.tournament_id == tournament_id)
            .order_by(models.ScoringRun.finished_at.desc(), models.ScoringRun.id.desc())
            .limit(limit)
            .all()
        )
