"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

import logging
import os

from flask import Flask

from ..services.config_service import apply_default_configs
from .error_handlers import register_error_handlers
from .extensions import csrf_protect, db, login_manager, migrate, scheduler
from .logging_config import setup_logging
from .module_registry import register_default_modules


def configure_logging(app: Flask) -> None:
    """Configure application logging if no handlers are present."""

    if not app.logger.handlers:
        app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.propagate = False

    setup_logging(
        app,
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        log_dir=app.config.get("LOG_DIR"),
        json_format=bool(app.config.get("LOG_JSON", False)),
    )


def _scheduler_allowed(app: Flask) -> bool:
    # The reloader parent process must not run background jobs.
    return not app.debug or os.environ.get("WERKZEUG_RUN_MAIN") == "true"


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    apply_default_configs(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf_protect.init_app(app)
    register_error_handlers(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        from ..models import User

        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        from .error_handlers import error_response

        return error_response("Login required", "UNAUTHORIZED", 401)

    if app.config.get("SYNC_WORKER_ENABLED") and _scheduler_allowed(app):
        from apscheduler.schedulers import SchedulerAlreadyRunningError

        try:
            scheduler.init_app(app)
            if not scheduler.running:
                scheduler.start()
        except SchedulerAlreadyRunningError:
            app.logger.info("Scheduler already running, skipping re-initialisation.")


def register_blueprints(app: Flask) -> None:
    """Register all default blueprints with the app."""

    register_default_modules(app, csrf=csrf_protect)


def _import_module_models() -> None:
    # Module-owned tables must be imported before create_all().
    from ..modules.daily import models as daily_models  # noqa: F401
    from ..modules.gamification import models as gamification_models  # noqa: F401
    from ..modules.sync import models as sync_models  # noqa: F401
    from ..modules.user_dictionary import models as user_dictionary_models  # noqa: F401


def initialize_database(app: Flask) -> None:
    """Create database tables and ensure the default data exists."""

    from ..modules.gamification.interface import seed_default_rewards

    _import_module_models()
    db.create_all()
    seed_default_rewards()


def initialize_sync_worker(app: Flask) -> None:
    """Attach the sync worker to the app and start it when enabled."""

    from ..modules.sync.interface import init_worker

    start = bool(app.config.get("SYNC_WORKER_ENABLED")) and _scheduler_allowed(app)
    init_worker(app, start=start)
    if start:
        app.logger.info("Registered content sync worker (every %ss).", app.config.get("SYNC_WORKER_POLL_SECONDS"))
