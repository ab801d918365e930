# backend/storefront/__init__.py
import logging
import os

from flask import Flask, request

from .config import Config
from .extensions import db, migrate, LOCAL_CACHE_KEY


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config is not None:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Settings fallback cache (memory only when no filename is configured)
    from .services.local_cache import LocalCache
    cache_name = app.config.get("LOCAL_CACHE_FILENAME")
    cache_path = os.path.join(app.instance_path, cache_name) if cache_name else None
    app.extensions[LOCAL_CACHE_KEY] = LocalCache(cache_path)

    # Register blueprints
    from .routes.catalog import catalog_bp
    from .routes.cart import cart_bp
    from .routes.orders import orders_bp
    from .routes.settings import settings_bp

    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(settings_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in set(app.config.get("CORS_ALLOWED_ORIGINS") or []):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
