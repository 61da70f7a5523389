# backend/sms/__init__.py
from __future__ import annotations

import logging
from typing import Mapping

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def _allowed_origins(raw) -> set[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    return {origin.strip() for origin in raw or () if origin and origin.strip()}


def create_app(test_config: Mapping | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        # Overrides must land before db.init_app reads the database URI
        app.config.from_mapping(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.receives import receives_bp
    from .routes.sales import sales_bp
    from .routes.returns import returns_bp
    from .routes.issues import issues_bp
    from .routes.reports import reports_bp
    from .routes.users import users_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(receives_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(returns_bp)
    app.register_blueprint(issues_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(users_bp)

    allowed_origins = _allowed_origins(app.config.get("CORS_ALLOWED_ORIGINS"))

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
