"""
Logging utilities for the Dynamic Table CRUD API.

All modules obtain their logger through get_logger() so that a single
handler configured by setup_logging() controls output for the whole app.
"""

import logging

from app.utils.config_utils import get_config

APP_LOGGER_NAME = "app"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: logging.Handler | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a logger that lives under the application logger hierarchy.

    Args:
        name: Usually the caller's __name__. Names outside the "app"
            namespace are nested under it.

    Returns:
        A configured logging.Logger instance
    """
    if not name or name == APP_LOGGER_NAME:
        return logging.getLogger(APP_LOGGER_NAME)
    if name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def setup_logging() -> None:
    """Attach a single stream handler to the application logger."""
    global _handler

    config = get_config()
    level_name = str(config.get("logging.level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)

    # Avoid duplicate handlers when the app is started more than once in-process
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if _handler not in app_logger.handlers:
        app_logger.addHandler(_handler)

    app_logger.propagate = True
