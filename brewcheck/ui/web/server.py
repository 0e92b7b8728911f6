"""
Web API server — Flask app factory.

Exposes the validator over HTTP so editors and CI jobs can check
records without shelling out.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify

from brewcheck import __version__
from brewcheck.core.models import CheckSettings

logger = logging.getLogger(__name__)


def create_app(settings: CheckSettings | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Validator settings used by every request.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.config["CHECK_SETTINGS"] = settings or CheckSettings()
    app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024  # 2 MB body limit

    from brewcheck.ui.web.routes_formula import formula_bp

    app.register_blueprint(formula_bp, url_prefix="/api")

    @app.route("/api/health")
    def health():  # type: ignore[no-untyped-def]
        return jsonify({"status": "ok", "version": __version__})

    logger.info("Web API app created")
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting web API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
