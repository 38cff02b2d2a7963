"""Routes for the league blueprint."""

from flask import jsonify, request

from fantabeach.core.constants import SYSTEM_ACTOR

from . import bp
from .services import LeagueService


@bp.route("/<string:league_id>/leaderboard", methods=["GET"])
def leaderboard(league_id):
    """Return the league's leaderboard."""
    entries = LeagueService.get_leaderboard(league_id)
    return jsonify([e.to_dict() for e in entries])


@bp.route("/<string:league_id>/recompute", methods=["POST"])
def recompute(league_id):
    """Rebuild the league's leaderboard from the season's scoring runs."""
    actor = request.headers.get("X-Actor-Id") or SYSTEM_ACTOR
    entries = LeagueService.recompute_league(league_id, actor=actor)
    return jsonify([e.to_dict() for e in entries])
