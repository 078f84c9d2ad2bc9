from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from constants import CONFIG_DEFAULTS
from helpers import parse_bool, parse_float, parse_int

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _coerce(default, raw):
    if isinstance(default, bool):
        return parse_bool(raw)
    if isinstance(default, int):
        value = parse_int(raw)
        return default if value is None else value
    if isinstance(default, float):
        value = parse_float(raw)
        return default if value is None else value
    return raw


def load_config(app, overrides: dict | None = None):
    """Populate ``app.config`` from the environment on top of the defaults.

    Values in ``overrides`` win over both and are applied as given.
    """
    load_dotenv(PROJECT_ROOT / ".env")
    for key, default in CONFIG_DEFAULTS.items():
        raw = os.environ.get(key)
        app.config[key] = default if raw is None else _coerce(default, raw)
    if overrides:
        app.config.update(overrides)
    app.config.setdefault("ELASTICSEARCH_AVAILABLE", False)
    return app.config
