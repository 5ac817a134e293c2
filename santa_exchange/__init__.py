from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db, login_manager, migrate, csrf
from .services.permutations import MAX_ATTEMPTS


def create_app(test_config: Mapping[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///secretsanta.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SANTA_MAX_ATTEMPTS"] = int(os.environ.get("SANTA_MAX_ATTEMPTS", MAX_ATTEMPTS))
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    # Module loggers under santa_exchange.* propagate to the root/Flask handlers.
    logging.getLogger(__name__).setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    from .cli import santa_cli
    from .views.auth import auth_bp
    from .views.assignments import assignments_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(assignments_bp)
    app.register_blueprint(santa_cli)

    @app.errorhandler(HTTPException)
    def json_http_error(e: HTTPException):
        return jsonify(message=e.description), e.code

    return app
