import os
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask, jsonify
from .extensions import db, migrate, login_manager, mail
from .config import Config
from .security import load_user_from_token

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.main import main_bp
from .blueprints.auth import auth_bp
from .blueprints.tasks import tasks_bp
from .blueprints.employees import employees_bp
from .blueprints.organizations import organizations_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
        environment=os.getenv("ENV", "development"),
        release=os.getenv("GIT_COMMIT", None),
        send_default_pii=False,
    )
    app.logger.info("Sentry initialized.")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    # app.logger is the "tasktrack" logger, so service modules propagate into it
    app.logger.setLevel(level)

    # Drop handlers left by a previous create_app() in the same process
    for h in [h for h in app.logger.handlers if getattr(h, "_tasktrack", False)]:
        app.logger.removeHandler(h)
        h.close()

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "tasktrack.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.VerboseJSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Stream to stdout as well (useful on dev/heroku/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    for handler in (file_handler, stream_handler):
        handler._tasktrack = True
        app.logger.addHandler(handler)

    app.logger.info("Logging initialized.")

def _init_auth(app):
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        return load_user_from_token(header[len("Bearer "):].strip())

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            "status": "fail",
            "error": "Unauthorized",
            "message": "You are not logged in! Please log in to get access.",
        }), 401

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    # instance/config.py overrides for deployments
    if config_object is None:
        app.config.from_pyfile("config.py", silent=True)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    _init_auth(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(tasks_bp, url_prefix="/api/tasks")
    app.register_blueprint(employees_bp, url_prefix="/api/employees")
    app.register_blueprint(organizations_bp, url_prefix="/api/organizations")

    return app
