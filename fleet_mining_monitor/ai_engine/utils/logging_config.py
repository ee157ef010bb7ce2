"""
Logging configuration for the AI mining engine.

Every engine module logs through the ``ai_engine`` logger or one of its
children, so a single console handler and a daily log file cover the whole
package. ``FLEET_MINING_LOG_DIR`` moves the log files and
``FLEET_MINING_LOG_LEVEL`` overrides the default INFO level.
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime

from .constants import BASE_DIR

ROOT_LOGGER_NAME = "ai_engine"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Create logs directory
LOGS_DIR = Path(os.environ.get("FLEET_MINING_LOG_DIR", BASE_DIR / "logs"))
os.makedirs(LOGS_DIR, exist_ok=True)


def resolve_level(level=None):
    """
    Turn a level name or number into a logging level.

    Falls back to ``FLEET_MINING_LOG_LEVEL`` and then INFO; unknown names
    resolve to INFO as well.
    """
    if level is None:
        level = os.environ.get("FLEET_MINING_LOG_LEVEL", logging.INFO)
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(name=None, level=None, log_to_file=True):
    """
    Set up logging configuration.

    Args:
        name: Logger name (defaults to root logger if None)
        level: Logging level, name or number (defaults to the environment)
        log_to_file: Also write to the daily file in LOGS_DIR

    Returns:
        Configured logger
    """
    level = resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = []
    console_handler = logging.StreamHandler(sys.stdout)
    handlers.append(console_handler)

    if log_to_file:
        # One log file per day
        log_filename = f"ai_engine_{datetime.now().strftime('%Y%m%d')}.log"
        handlers.append(logging.FileHandler(LOGS_DIR / log_filename))

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)

    return logger


def get_logger(name):
    """Child of the engine logger, e.g. ``get_logger(__name__)`` inside ai_engine."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# Create default logger
logger = setup_logging(ROOT_LOGGER_NAME)
