"""Configuration for the finance engine, its CLI and its web API.

All values can be overridden with environment variables and are read once at
import time.
"""

from __future__ import annotations

import logging
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer; got {raw!r}") from exc


CURRENCY_SYMBOL = os.environ.get("FINANCE_CURRENCY_SYMBOL", "Rs")
TREND_MONTHS = _int_env("FINANCE_TREND_MONTHS", 12)
TOP_EXPENSES = _int_env("FINANCE_TOP_EXPENSES", 5)
HISTORY_MONTHS = _int_env("FINANCE_HISTORY_MONTHS", 6)
LOG_LEVEL = os.environ.get("FINANCE_LOG_LEVEL", "WARNING").upper()

DATABASE_URL = os.environ.get("FINANCE_DATABASE_URL", "sqlite:///finance_records.sqlite3")
SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Set up root logging for the command line and the web server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
