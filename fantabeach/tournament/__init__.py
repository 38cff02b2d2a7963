"""The tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/admin")

from . import routes  # noqa: E402

__all__ = ["routes"]
