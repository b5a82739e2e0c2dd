"""
Logging setup for applications embedding the SDK.

The SDK itself only logs through module loggers; configure_logging() is
an opt-in helper that installs a root handler.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import ClientSettings


def configure_logging(settings: ClientSettings | None = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Client settings (loaded from environment if omitted)
    """
    settings = settings or ClientSettings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
