"""
Logging setup.

Configures the loguru logger for the indexer process.
Sets up the stderr sink and optional file rotation.
"""

import sys

from loguru import logger

from chainmirror.config.settings import settings


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure logger sinks.

    Args:
        level: Log level (default: LOG_LEVEL setting)
        log_file: Optional file sink path (default: LOG_FILE setting)
    """
    level = level or settings.log_level
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.info(f"Starting chainmirror indexer (log level {level})...")
