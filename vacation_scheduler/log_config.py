"""Process-wide logging setup."""

import logging

from vacation_scheduler.config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from ``LOG_LEVEL``.

    Unknown level names fall back to INFO.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
