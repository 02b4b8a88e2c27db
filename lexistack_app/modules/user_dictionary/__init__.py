from flask import Blueprint

user_dictionary_api_bp = Blueprint(
    'user_dictionary_api',
    __name__,
    url_prefix='/api/user-dictionary'
)

from . import routes, events  # noqa: E402,F401
