"""Flask application factory for the roadmap web interface."""

import logging

from flask import Flask


def create_app() -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    app.config["SECRET_KEY"] = "jiragit-roadmap-local-dev"

    if app.debug:
        logging.basicConfig(level=logging.DEBUG)

    from jiragit_roadmap.web.routes import bp
    app.register_blueprint(bp)

    return app
