from flask import Blueprint

# Signed server-to-server channel for the content pipeline; exempt from CSRF.
sync_api_bp = Blueprint(
    'sync_api',
    __name__,
    url_prefix='/api/internal/dictionary-upserts'
)

from . import routes  # noqa: E402,F401
