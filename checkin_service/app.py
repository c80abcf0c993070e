"""
Check-in Service: Flask application
Registration codes: issue (admin), redeem (attendee), scan (door staff).
"""

import logging
from datetime import datetime, timezone

from flask import Flask, jsonify
from flasgger import Swagger
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from checkin_service.config import load_config
from checkin_service.exceptions import CheckinError
from checkin_service.extensions import BLOCKLIST, db, jwt
from checkin_service.models import CodeRecord
from checkin_service.routes import admin_bp, public_bp

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    @app.errorhandler(CheckinError)
    def handle_checkin_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        logger.exception("Storage error")
        db.session.rollback()
        return jsonify({
            "success": False,
            "error_code": "STORAGE_ERROR",
            "message": "Internal server error",
        }), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "success": False,
            "error_code": error.name.upper().replace(" ", "_"),
            "message": error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error")
        db.session.rollback()
        return jsonify({
            "success": False,
            "error_code": "INTERNAL_ERROR",
            "message": "Internal server error",
        }), 500


def validate_config(config):
    max_length = CodeRecord.__table__.c.code.type.length
    length = config["CODE_LENGTH"]
    if isinstance(length, bool) or not isinstance(length, int) or not 1 <= length <= max_length:
        raise ValueError(f"CODE_LENGTH must be an integer between 1 and {max_length}, got {length!r}")


def create_app(overrides=None):
    app = Flask(__name__)

    # Configuration
    app.config.update(load_config())
    if overrides:
        app.config.update(overrides)
    validate_config(app.config)

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_in_blocklist(jwt_header, jwt_payload):
        return jwt_payload['jti'] in BLOCKLIST

    cors_origin = app.config["CORS_ORIGIN"]
    CORS(
        app,
        origins=cors_origin,
        methods=["GET", "POST"],
        supports_credentials=cors_origin != "*",
    )

    swagger_config = {
        "headers": [],
        "specs": [
            {
                "endpoint": 'apispec_1',
                "route": '/apispec_1.json',
                "rule_filter": lambda rule: True,  # all in
                "model_filter": lambda tag: True,  # all in
            }
        ],
        "static_url_path": "/flasgger_static",
        "swagger_ui": True,
        "specs_route": "/apidocs/"
    }
    Swagger(app, config=swagger_config)

    # Register Blueprints
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(public_bp)

    register_error_handlers(app)

    # --- Health check ---------------------------------------------------
    @app.route("/health")
    def health():
        try:
            db.session.execute(text('SELECT 1'))
        except SQLAlchemyError as e:
            logger.error("Health check failed: %s", e)
            return jsonify({"service": "checkin-service", "status": "unhealthy", "error": str(e)}), 503
        return jsonify({
            "service": "checkin-service",
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    with app.app_context():
        db.create_all()

    return app


def main():
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.run(host='0.0.0.0', port=app.config["PORT"])


if __name__ == '__main__':
    main()
