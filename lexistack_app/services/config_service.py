"""Runtime configuration lookups backed by ``app.config``."""

from __future__ import annotations

import copy
from typing import Any

from flask import Flask, current_app, has_app_context

from ..core.defaults import DEFAULT_APP_CONFIGS


def apply_default_configs(app: Flask) -> None:
    """Copy ``DEFAULT_APP_CONFIGS`` into ``app.config`` where no value is set yet."""

    for key, value in DEFAULT_APP_CONFIGS.items():
        if key not in app.config:
            app.config[key] = copy.deepcopy(value)


def get_runtime_config(key: str, default: Any = None) -> Any:
    """Read a setting from current_app, falling back to the built-in default."""

    if default is None:
        default = DEFAULT_APP_CONFIGS.get(key)
    if has_app_context():
        return current_app.config.get(key, default)
    return default
