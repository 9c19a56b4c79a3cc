# backend/pharmatrack/__init__.py
import logging
import time

from flask import Flask, g, request

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.customers import customers_bp
    from .routes.medicines import medicines_bp
    from .routes.sales import sales_bp
    from .routes.credits import credits_bp
    from .routes.dashboard import dashboard_bp
    from .routes.settings import settings_bp
    from .routes.subscription import subscription_bp
    from .routes.export import export_bp
    from .routes.status import status_bp
    from .routes.users import users_bp
    from .routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(medicines_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(credits_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(subscription_bp)
    app.register_blueprint(export_bp)
    app.register_blueprint(status_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)

    @app.before_request
    def start_request():
        # Identity is bound per request by require_auth
        for name in ("current_user", "current_user_id", "shop_id", "role"):
            g.pop(name, None)
        g.request_started_at = time.perf_counter()

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in set(app.config["CORS_ORIGINS"]):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, Idempotency-Key"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.after_request
    def log_request(response):
        started = getattr(g, "request_started_at", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        app.logger.info(
            "%s %s -> %s (%.1f ms) shop=%s",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
            getattr(g, "shop_id", None),
        )
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
