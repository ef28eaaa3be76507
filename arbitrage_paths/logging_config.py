"""
Logging configuration for cleaner CLI output.

Usage:
    from arbitrage_paths import logging_config
    logging_config.setup()
"""

import logging
import sys

PACKAGE_LOGGER = "arbitrage_paths"


def _package_loggers():
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(PACKAGE_LOGGER) and isinstance(logger, logging.Logger):
            yield logger


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    - Applies the level to every package logger created so far
    - Quiets the aiosqlite worker thread chatter
    """

    root = logging.getLogger()
    root.setLevel(level)

    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for logger in _package_loggers():
        logger.setLevel(level)
        # Module loggers carry their own handler from get_logger()
        logger.propagate = False


def setup_minimal():
    """
    Only warnings and errors.
    Good for long discovery runs where only problems matter.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging, including per-flush timings.
    """
    setup(level=logging.DEBUG)


def setup_from_name(level_name: str):
    """Configure logging from a level name such as "INFO" or "debug"."""
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        level = logging.INFO
    setup(level=level)
