"""Logging configuration for the cache service and maintenance script."""

import logging
import sys

from school_cache.core.config import get_settings

# Libraries that log every connectivity probe request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: int | None = None) -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO, unless an
    explicit level is passed (the maintenance script does). Output goes to
    stdout.
    """
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
