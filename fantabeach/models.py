"""Database tables of the host application.

Each row converts to and from the plain values the tournament engine works
on, so the engine never sees a session or a query.
"""

import datetime

from sqlalchemy import UniqueConstraint

from fantabeach.extensions import db
from fantabeach.league import models as league_models
from fantabeach.tournament import models as engine


def aware(value):
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=datetime.timezone.utc)


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class Tournament(db.Model):
    __tablename__ = "tournaments"

    id = db.Column(db.String(64), primary_key=True)
    season_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    registrations = db.relationship(
        "Registration",
        backref="tournament",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Registration.registered_at",
    )

    def to_engine(self):
        return engine.Tournament(
            id=self.id,
            season_id=self.season_id,
            name=self.name,
            registrations=[r.to_engine() for r in self.registrations],
        )

    def __repr__(self):
        return f"<Tournament {self.id}>"


class Registration(db.Model):
    __tablename__ = "registrations"

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = db.Column(db.String(64), nullable=False)
    registered_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (UniqueConstraint("tournament_id", "user_id"),)

    def to_engine(self):
        return engine.Registration(
            user_id=self.user_id, registered_at=aware(self.registered_at)
        )


class Entry(db.Model):
    """A pair on a tournament's entry list."""

    __tablename__ = "entries"

    pair_id = db.Column(db.String(64), primary_key=True)
    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_a_id = db.Column(db.String(64), nullable=False)
    player_b_id = db.Column(db.String(64), nullable=False)

    @property
    def player_ids(self):
        return [self.player_a_id, self.player_b_id]


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(db.String(64), primary_key=True)
    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phase = db.Column(db.String(32), nullable=False)
    day = db.Column(db.String(16), nullable=False)
    round = db.Column(db.Integer, nullable=False)
    slot = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False)
    best_of = db.Column(db.Integer, nullable=False, default=3)
    pair_a_id = db.Column(db.String(64))
    pair_b_id = db.Column(db.String(64))
    set_scores = db.Column(db.JSON, nullable=False, default=list)
    winner_pair_id = db.Column(db.String(64))
    scheduled_at = db.Column(db.DateTime(timezone=True))
    completed_at = db.Column(db.DateTime(timezone=True))

    __table_args__ = (UniqueConstraint("tournament_id", "phase", "round", "slot"),)

    def to_engine(self):
        return engine.Match(
            id=self.id,
            tournament_id=self.tournament_id,
            phase=engine.Phase(self.phase),
            day=engine.DayBucket(self.day),
            round=self.round,
            slot=self.slot,
            status=engine.MatchStatus(self.status),
            best_of=self.best_of,
            pair_a_id=engine.normalize_pair_id(self.pair_a_id),
            pair_b_id=engine.normalize_pair_id(self.pair_b_id),
            set_scores=[
                engine.SetScore(
                    set_number=s["setNumber"],
                    pair_a_score=s["pairAScore"],
                    pair_b_score=s["pairBScore"],
                )
                for s in self.set_scores or []
            ],
            winner_pair_id=self.winner_pair_id,
            scheduled_at=aware(self.scheduled_at),
            completed_at=aware(self.completed_at),
        )

    def apply_engine(self, match):
        """Copy the mutable state of an engine match onto this row."""
        self.status = match.status.value
        self.best_of = match.best_of
        self.pair_a_id = match.pair_a_id
        self.pair_b_id = match.pair_b_id
        self.set_scores = [s.to_dict() for s in match.set_scores]
        self.winner_pair_id = match.winner_pair_id
        self.scheduled_at = match.scheduled_at
        self.completed_at = match.completed_at

    @classmethod
    def from_engine(cls, match):
        row = cls(
            id=match.id,
            tournament_id=match.tournament_id,
            phase=match.phase.value,
            day=match.day.value,
            round=match.round,
            slot=match.slot,
        )
        row.apply_engine(match)
        return row

    def __repr__(self):
        return f"<Match {self.id} {self.phase} R{self.round} M{self.slot}>"


class FantasyTeam(db.Model):
    __tablename__ = "fantasy_teams"

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    roster_player_ids = db.Column(db.JSON, nullable=False, default=list)
    starters = db.Column(db.JSON, nullable=False, default=list)
    reserves = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_engine(self):
        return engine.FantasyTeam(
            id=self.id,
            user_id=self.user_id,
            tournament_id=self.tournament_id,
            roster_player_ids=list(self.roster_player_ids or []),
            starters=list(self.starters or []),
            reserves=list(self.reserves or []),
        )


class ScoringConfig(db.Model):
    __tablename__ = "scoring_configs"

    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    base_point_multiplier = db.Column(db.Float, nullable=False, default=1.0)
    bonus_win_20 = db.Column(db.Float, nullable=False, default=0.0)
    bonus_win_21 = db.Column(db.Float, nullable=False, default=0.0)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_engine(self):
        return engine.ScoringConfig(
            tournament_id=self.tournament_id,
            base_point_multiplier=self.base_point_multiplier,
            bonus_win_20=self.bonus_win_20,
            bonus_win_21=self.bonus_win_21,
        )

    def to_dict(self):
        payload = self.to_engine().to_dict()
        payload["updatedAt"] = engine.isoformat(aware(self.updated_at))
        return payload


class ScoringRun(db.Model):
    __tablename__ = "scoring_runs"

    id = db.Column(db.String(64), primary_key=True)
    tournament_id = db.Column(
        db.String(64),
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = db.Column(db.String(16), nullable=False, default="completed")
    triggered_by = db.Column(db.String(64), nullable=False)
    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=False)
    totals_by_user = db.Column(db.JSON, nullable=False, default=list)

    def totals(self):
        return tuple(
            engine.UserScoreTotal(
                user_id=t["userId"],
                total_points=t["totalPoints"],
                counted_players=tuple(t["countedPlayers"]),
            )
            for t in self.totals_by_user or []
        )

    def to_run_totals(self):
        return league_models.ScoringRunTotals(
            tournament_id=self.tournament_id,
            finished_at=aware(self.finished_at),
            totals=self.totals(),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "status": self.status,
            "triggeredBy": self.triggered_by,
            "startedAt": engine.isoformat(aware(self.started_at)),
            "finishedAt": engine.isoformat(aware(self.finished_at)),
            "totalsByUser": list(self.totals_by_user or []),
        }


class League(db.Model):
    __tablename__ = "leagues"

    id = db.Column(db.String(64), primary_key=True)
    season_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, default="")

    def to_engine(self):
        return league_models.League(
            id=self.id,
            season_id=self.season_id,
            name=self.name,
        )


class LeaderboardEntry(db.Model):
    __tablename__ = "leaderboard_entries"

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(
        db.String(64),
        db.ForeignKey("leagues.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.String(64), nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    rank = db.Column(db.Integer, nullable=False)
    total_points = db.Column(db.Float, nullable=False)
    tie_breaker_score = db.Column(db.Float, nullable=False)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False)

    @classmethod
    def from_row(cls, row):
        return cls(
            league_id=row.league_id,
            user_id=row.user_id,
            display_name=row.display_name,
            rank=row.rank,
            total_points=row.total_points,
            tie_breaker_score=row.tie_breaker_score,
            last_updated=row.last_updated,
        )

    def to_dict(self):
        return league_models.LeaderboardRow(
            league_id=self.league_id,
            user_id=self.user_id,
            display_name=self.display_name,
            rank=self.rank,
            total_points=self.total_points,
            tie_breaker_score=self.tie_breaker_score,
            last_updated=aware(self.last_updated),
        ).to_dict()


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    actor_user_id = db.Column(db.String(64), nullable=False)
    action = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.String(64), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    before = db.Column(db.JSON)
    after = db.Column(db.JSON)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
