"""
Logging configuration for cleaner output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import os
import sys

NOISY_LOGGERS = ("aiohttp.access", "ccxt", "urllib3", "redis")
APP_LOGGERS = ("__main__", "swap_sleuth", "dex", "cex")


def level_from_env(default=logging.INFO):
    """Resolve LOG_LEVEL (name or number) to a logging level."""
    raw = os.getenv("LOG_LEVEL")
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup(level=None):
    """
    Configure logging for cleaner, more readable output.

    - Suppresses verbose HTTP and client library logs
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    """
    if level is None:
        level = level_from_env()

    # Root logger - minimal format
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_minimal():
    """
    Even more minimal logging - only warnings and errors.
    Good for production or when you only care about problems.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows everything including HTTP access logs.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("aiohttp.access").setLevel(logging.INFO)
