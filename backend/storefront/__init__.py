# backend/storefront/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate
from .errors import register_error_handlers


def create_app(config_object: type[Config] | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory.

    Configuration is fixed here, before extensions are initialised:
    config_object (default Config) first, then any explicit overrides.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper()))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.client import client_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(client_bp)

    register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
