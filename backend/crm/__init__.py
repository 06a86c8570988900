# backend/crm/__init__.py
import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config, engine_options
from .extensions import db, migrate


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", engine_options(app.config))

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger("crm").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.backup import backup_bp
    from .routes.receipts import receipts_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(backup_bp)
    app.register_blueprint(receipts_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in set(app.config.get("CORS_ORIGINS", [])):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"success": False, "error": "Route not found"}), 404

    @app.errorhandler(Exception)
    def unhandled_error(error):
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "error": error.description}), error.code
        from .routes._envelope import error_response
        app.logger.exception("Unhandled error")
        return error_response(error, 500)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
