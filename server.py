import os
import logging

import click
from flask import Flask, request, jsonify
from flask_cors import CORS

from app_config import Config
from extensions import limiter
from middleware import RequestIdMiddleware, RequestIdFilter
from models import db, Profile
from routes import auth_bp, booking_bp, geocode_bp, orders_bp, email_bp, webhook_bp, pages_bp
from services import init_services

_startup_logger = logging.getLogger("routeplanner.startup")

_CRITICAL_ENV_VARS = [
    "JWT_SECRET",
    "SECRET_KEY",
    "DATABASE_URL",
]

_RECOMMENDED_ENV_VARS = [
    "ADMIN_EMAIL",
    "PUBLIC_BASE_URL",
    "CORS_ORIGINS",
]

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def _configure_logging(app):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_routeplanner", False):
            root.removeHandler(existing)
    handler._routeplanner = True
    root.addHandler(handler)
    root.setLevel(app.config.get("LOG_LEVEL", "INFO").upper())


def _init_sentry():
    """Sentry error monitoring (optional -- only active when SENTRY_DSN is set)."""
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )
    return True


def _check_environment(app, sentry_enabled):
    if app.testing or os.environ.get("FLASK_ENV", "development") == "development":
        return

    missing_critical = [v for v in _CRITICAL_ENV_VARS if not os.environ.get(v)]
    missing_recommended = [v for v in _RECOMMENDED_ENV_VARS if not os.environ.get(v)]
    if missing_critical:
        _startup_logger.critical(
            "MISSING CRITICAL ENV VARS (app may not work correctly): %s",
            ", ".join(missing_critical),
        )
    if missing_recommended:
        _startup_logger.warning("Missing recommended env vars: %s", ", ".join(missing_recommended))
    if app.config["PAYMENT_PROVIDER"] == "mock":
        _startup_logger.warning("PAYMENT_PROVIDER is 'mock' -- no real payments will be taken.")
    if not sentry_enabled:
        _startup_logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")


def _cors_origins(app):
    origins = app.config.get("CORS_ORIGINS") or "*"
    if origins == "*":
        return origins
    return [o.strip() for o in origins.split(",") if o.strip()]


def create_app(config_object=None):
    """Flask application factory"""
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024

    _configure_logging(app)
    _check_environment(app, _init_sentry())

    # Extensions
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": _cors_origins(app)}})
    limiter.init_app(app)
    init_services(app)
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    # Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(geocode_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(email_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(pages_bp)

    _register_handlers(app)
    _register_cli(app)

    @app.route("/api/health", methods=["GET"])
    @limiter.exempt
    def health_check():
        """Health check endpoint (exempt from rate limiting)"""
        return jsonify({"status": "ok", "message": "Route planner server is running"}), 200

    with app.app_context():
        db.create_all()

    return app


def _register_handlers(app):
    @app.errorhandler(429)
    def ratelimit_handler(e):
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "retry_after": retry_after_seconds,
        }), 429

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not found"}), 404
        return e

    @app.errorhandler(405)
    def method_not_allowed(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Method not allowed"}), 405
        return e

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error("Unhandled error on %s %s", request.method, request.path)
        if request.path.startswith("/api/"):
            return jsonify({"error": "Internal server error"}), 500
        return "Internal server error", 500

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.path.startswith("/api/"):
            response.headers["Content-Security-Policy"] = "default-src 'none'"
        else:
            # Pages load map tiles and talk to the JSON API
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; img-src 'self' data: https:; "
                "style-src 'self' 'unsafe-inline'; connect-src 'self'"
            )
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def _register_cli(app):
    @app.cli.command("init-db")
    def cli_init_db():
        """Create all database tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("promote-admin")
    @click.argument("email")
    def cli_promote_admin(email):
        """Give the profile with EMAIL the admin role."""
        profile = Profile.query.filter_by(email=email.strip().lower()).first()
        if profile is None:
            raise click.ClickException("No profile with email {}".format(email))
        profile.role = "admin"
        db.session.commit()
        click.echo("{} is now an admin.".format(profile.email))


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.config["DEBUG"])
