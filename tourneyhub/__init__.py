"""Initialize the Flask app and its background workers."""

import datetime
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import ROOM_REVEAL_INTERVAL_SECONDS, ROOM_REVEAL_LEAD_MINUTES


def _env_flag(name, default="false"):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the first credentials found."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # Then a credentials file next to the package (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    project_id = json.load(f).get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = app.config.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            app.logger.info("Firebase app already initialized.")


def _start_background_work(app):
    """Start the opt-in event worker, match watcher and room reveal scheduler."""
    from .tasks.events import watch_completed_matches
    from .tasks.scheduler import PeriodicTask
    from .tournament.rooms import RoomRevealService

    events = app.extensions["match_events"]
    if app.config["MATCH_EVENT_WORKER_ENABLED"]:
        events.start()

    if app.config["MATCH_WATCHER_ENABLED"]:
        app.extensions["match_watch"] = watch_completed_matches(
            firestore.client(), events
        )

    if app.config["ROOM_REVEAL_SCHEDULER_ENABLED"]:
        lead = datetime.timedelta(minutes=app.config["ROOM_REVEAL_LEAD_MINUTES"])
        task = PeriodicTask(
            app,
            "room-reveal",
            app.config["ROOM_REVEAL_INTERVAL_SECONDS"],
            lambda: RoomRevealService.sweep(firestore.client(), lead=lead),
        )
        task.start()
        app.extensions["room_reveal"] = task


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        LOG_LEVEL=os.environ.get("LOG_LEVEL") or "INFO",
        FIREBASE_PROJECT_ID=os.environ.get("FIREBASE_PROJECT_ID"),
        ROOM_REVEAL_LEAD_MINUTES=int(
            os.environ.get("ROOM_REVEAL_LEAD_MINUTES") or ROOM_REVEAL_LEAD_MINUTES
        ),
        ROOM_REVEAL_INTERVAL_SECONDS=int(
            os.environ.get("ROOM_REVEAL_INTERVAL_SECONDS")
            or ROOM_REVEAL_INTERVAL_SECONDS
        ),
        ROOM_REVEAL_SCHEDULER_ENABLED=_env_flag("ROOM_REVEAL_SCHEDULER_ENABLED"),
        MATCH_WATCHER_ENABLED=_env_flag("MATCH_WATCHER_ENABLED"),
        MATCH_EVENT_WORKER_ENABLED=_env_flag("MATCH_EVENT_WORKER_ENABLED", "true"),
        TASK_TOKEN=os.environ.get("TASK_TOKEN"),
    )

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Register blueprints
    from . import registration as registration_bp

    app.register_blueprint(registration_bp.bp)

    from . import bracket as bracket_bp

    app.register_blueprint(bracket_bp.bp)

    from . import match as match_bp

    app.register_blueprint(match_bp.bp)

    from . import admin as admin_bp

    app.register_blueprint(admin_bp.bp)

    from . import tasks as tasks_bp

    app.register_blueprint(tasks_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    from .match.progression import ProgressionService

    app.extensions["match_events"] = tasks_bp.MatchEventQueue(
        lambda event: ProgressionService.process_event(firestore.client(), event)
    )
    if not app.config.get("TESTING"):
        _start_background_work(app)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
