# File: lexistack_app/config.py
# PURPOSE: application settings read from environment variables (.env is loaded first).

import os

from dotenv import load_dotenv

# Project root: this file lives in <repo>/lexistack_app/
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

load_dotenv(os.path.join(BASE_DIR, '.env'))

# Default SQLite database for development, under database/ at the root
DATABASE_PATH = os.path.join(BASE_DIR, "database", "lexistack.db")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_int(name: str, default: int, minimum: int = None) -> int:
    try:
        value = int(os.environ.get(name, default))
    except (TypeError, ValueError):
        value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


class Config:
    """
    Configuration class for the Flask application.
    """
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a_very_secret_key_for_lexistack'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Server "day" used for streaks and the hard word of the day
    SERVER_TIMEZONE = os.environ.get('SERVER_TIMEZONE', 'UTC')

    # Content sync from the external pipeline
    SYNC_SHARED_SECRET = os.environ.get('SYNC_SHARED_SECRET', '')
    SYNC_MAX_CLOCK_SKEW_SECONDS = _env_int('SYNC_MAX_CLOCK_SKEW_SECONDS', 300, minimum=1)
    SYNC_WORKER_ENABLED = _env_bool('SYNC_WORKER_ENABLED', True)
    SYNC_WORKER_POLL_SECONDS = _env_int('SYNC_WORKER_POLL_SECONDS', 3, minimum=1)
    SYNC_JOB_LEASE_SECONDS = _env_int('SYNC_JOB_LEASE_SECONDS', 600, minimum=1)
    SYNC_JOB_MAX_ATTEMPTS = _env_int('SYNC_JOB_MAX_ATTEMPTS', 3, minimum=1)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'logs')

    # Make sure the database directory exists at startup
    db_dir = os.path.dirname(DATABASE_PATH)
    if not os.path.exists(db_dir):
        os.makedirs(db_dir)
