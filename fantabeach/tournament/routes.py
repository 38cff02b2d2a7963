"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request

from fantabeach.audit import list_audit_logs
from fantabeach.core.constants import (
    DEFAULT_AUDIT_LOG_LIMIT,
    MAX_AUDIT_LOG_LIMIT,
    SYSTEM_ACTOR,
)
from fantabeach.errors import ValidationError
from fantabeach.extensions import db

from . import bp
from .forms import MatchForm, MatchUpdateForm, ScoringConfigForm
from .services import TournamentService


def _actor() -> str:
    """Identity recorded in the audit log for this request."""
    return request.headers.get("X-Actor-Id") or SYSTEM_ACTOR


def _form_errors(form: Any) -> ValidationError:
    return ValidationError("Invalid request payload.", details=form.errors)


def _audit_log_limit() -> int:
    limit = request.args.get("limit", DEFAULT_AUDIT_LOG_LIMIT, type=int)
    return max(1, min(limit, MAX_AUDIT_LOG_LIMIT))


@bp.route("/tournaments/<string:tournament_id>/matches", methods=["GET"])
def list_matches(tournament_id: str) -> Any:
    """List all matches of a tournament."""
    matches = TournamentService.list_matches(tournament_id)
    return jsonify([m.to_dict() for m in matches])


@bp.route("/tournaments/<string:tournament_id>/matches", methods=["POST"])
def create_match(tournament_id: str) -> Any:
    """Create a match in a tournament."""
    form = MatchForm()
    if not form.validate_on_submit():
        raise _form_errors(form)
    match = TournamentService.create_match(tournament_id, form.data, actor=_actor())
    return jsonify(match.to_dict()), 201


@bp.route("/matches/<string:match_id>", methods=["PATCH"])
def update_match(match_id: str) -> Any:
    """Edit the schedule, pairings or status of an open match."""
    form = MatchUpdateForm()
    if not form.validate_on_submit():
        raise _form_errors(form)
    payload = request.get_json(silent=True) or {}
    data = {k: v for k, v in form.data.items() if k in payload}
    match = TournamentService.update_match(match_id, data, actor=_actor())
    return jsonify(match.to_dict())


@bp.route("/matches/<string:match_id>/complete", methods=["POST"])
def complete_match(match_id: str) -> Any:
    """Record a match result and run progression."""
    payload = request.get_json(silent=True) or {}
    match = TournamentService.complete_match(
        match_id, payload.get("setScores"), actor=_actor()
    )
    return jsonify(match.to_dict())


@bp.route("/tournaments/<string:tournament_id>/bracket", methods=["GET"])
def get_bracket(tournament_id: str) -> Any:
    """Return the bracket derived from the current matches."""
    return jsonify(TournamentService.get_bracket(tournament_id).to_dict())


@bp.route("/tournaments/<string:tournament_id>/bracket/rebuild", methods=["POST"])
def rebuild_bracket(tournament_id: str) -> Any:
    """Rebuild the bracket from the current matches."""
    return jsonify(TournamentService.rebuild_bracket(tournament_id).to_dict())


@bp.route("/tournaments/<string:tournament_id>/scoring-config", methods=["GET"])
def get_scoring_config(tournament_id: str) -> Any:
    """Return the current scoring configuration."""
    return jsonify(TournamentService.get_scoring_config(tournament_id).to_dict())


@bp.route("/tournaments/<string:tournament_id>/scoring-config", methods=["PUT"])
def update_scoring_config(tournament_id: str) -> Any:
    """Update the scoring configuration."""
    form = ScoringConfigForm()
    if not form.validate_on_submit():
        raise _form_errors(form)
    config = TournamentService.update_scoring_config(
        tournament_id, form.data, actor=_actor()
    )
    return jsonify(config.to_dict())


@bp.route("/tournaments/<string:tournament_id>/scoring/recalculate", methods=["POST"])
def recalculate_scoring(tournament_id: str) -> Any:
    """Run a scoring recalculation."""
    run = TournamentService.recalculate_scoring(tournament_id, actor=_actor())
    return jsonify(run.to_dict()), 201


@bp.route("/tournaments/<string:tournament_id>/scoring/runs", methods=["GET"])
def list_scoring_runs(tournament_id: str) -> Any:
    """List the tournament's scoring runs, newest first."""
    runs = TournamentService.list_scoring_runs(tournament_id)
    return jsonify([r.to_dict() for r in runs])


@bp.route("/audit-logs", methods=["GET"])
def audit_logs() -> Any:
    """List recent audit entries, optionally for one entity."""
    entries = list_audit_logs(
        db.session,
        entity_type=request.args.get("entityType"),
        entity_id=request.args.get("entityId"),
        limit=_audit_log_limit(),
    )
    return jsonify(
        [
            {
                "id": e.id,
                "actorUserId": e.actor_user_id,
                "action": e.action,
                "entityType": e.entity_type,
                "entityId": e.entity_id,
                "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                "before": e.before,
                "after": e.after,
            }
            for e in entries
        ]
    )
