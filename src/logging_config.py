from __future__ import annotations

import logging

from src.config import LoggingSettings

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(settings: LoggingSettings, *, verbose: bool = False) -> None:
    """Configure process-wide logging once at CLI startup."""

    level_name = "DEBUG" if verbose else settings.level.upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=DEFAULT_LOG_FORMAT,
        force=True,
    )
