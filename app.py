"""Application factory."""

import json
import logging
import os
import uuid

from flask import Flask, g, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

from config import Config
from extensions import cors, jwt, limiter, migrate
from mail import AbstractMailer
from models import db
from routes.common import get_current_user
from routes.guest_api import guest_api_bp
from routes.guest_site import guest_site_bp
from services import get_services, init_app as init_guest_services
from services.errors import GuestError, StorageError, TermsNotAgreed
from utils.responses import error, fail


def create_app(config_class: type[Config] = Config, mailer: AbstractMailer | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    log_level = app.config.get("LOG_LEVEL", "INFO")
    for logger_name in (app.logger.name, "services", "mail"):
        logging.getLogger(logger_name).setLevel(log_level)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    cors.init_app(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )
    limiter.init_app(app)

    # Guest services, built once from the configuration
    init_guest_services(app, mailer=mailer)

    # Blueprints
    app.register_blueprint(guest_api_bp, url_prefix="/api/guest")
    app.register_blueprint(guest_site_bp, url_prefix="/s/<site_slug>/guest")

    # Health
    @app.route("/health", methods=["GET"])
    @limiter.exempt
    def health_check():
        return jsonify({"status": "ok"})

    _register_request_hooks(app)
    _register_error_handlers(app)

    return app


def _register_request_hooks(app: Flask) -> None:
    """Register the request id and the terms agreement check."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.before_request
    def _check_terms_agreement():
        if request.endpoint in (None, "static", "health_check"):
            return None

        target = get_services(app).terms.check(
            get_current_user(), request.path, request.script_root
        )
        if target is None:
            return None
        if request.path.startswith("/api/"):
            exc = TermsNotAgreed()
            return fail(exc.code, exc.message, exc.http_status, {"redirect_url": target})
        return redirect(target, code=302)

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.errorhandler(GuestError)
    def _handle_guest_error(exc: GuestError):
        db.session.rollback()
        if isinstance(exc, StorageError) and exc.http_status >= 500:
            app.logger.exception("Storage failure", exc_info=exc)
            return error(exc.message, exc.http_status, exc.code)
        return fail(exc.code, exc.message, exc.http_status)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = exc.get_response()
        payload = {
            "status": "fail" if (exc.code or 500) < 500 else "error",
            "error": getattr(exc, "name", "Error"),
            "detail": exc.description,
            "message": exc.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):  # pragma: no cover
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error", exc_info=exc)
        payload = {
            "status": "error",
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred.",
            "message": "An unexpected error occurred.",
            "request_id": request_id,
        }
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
