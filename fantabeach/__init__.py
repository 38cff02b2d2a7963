"""Initialize the Flask app and its extensions."""

import os

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import DEFAULT_SCORING_RUN_HISTORY_LIMIT
from .extensions import db


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        SQLALCHEMY_DATABASE_URI=os.environ.get("DATABASE_URL")
        or "sqlite:///" + os.path.join(app.instance_path, "fantabeach.sqlite"),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SCORING_RUN_HISTORY_LIMIT=int(
            os.environ.get("SCORING_RUN_HISTORY_LIMIT")
            or DEFAULT_SCORING_RUN_HISTORY_LIMIT
        ),
        LOG_LEVEL=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Ensure the instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Initialize extensions
    db.init_app(app)

    # Register blueprints
    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import league as league_bp

    app.register_blueprint(league_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.route("/health")
    def health_check():
        """Liveness check for load balancers."""
        return "OK", 200

    @app.cli.command("init-db")
    def init_db_command():
        """Create the database tables."""
        from . import models  # noqa: F401

        db.create_all()
        app.logger.info("Initialized the database.")

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
