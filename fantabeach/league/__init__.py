"""The league blueprint."""

from flask import Blueprint

bp = Blueprint("league", __name__, url_prefix="/admin/leagues")

from . import routes  # noqa: E402

__all__ = ["routes"]
