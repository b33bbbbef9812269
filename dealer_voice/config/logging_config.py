"""
Logging setup for the relay and API.

All modules log through the ``dealer_voice`` logger. Its level, and whether
records are also written to a rotating file, come from Settings
(``LOG_LEVEL``, ``LOG_DIR``, ``LOG_TO_FILE``); callers may override the level.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "dealer_voice.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def _file_handler(log_dir: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT
    )
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: Optional[str] = None, settings: Optional[Settings] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        level: Level name such as "debug"; defaults to ``settings.log_level``
        settings: Source of the log level and file options; the cached
            Settings when omitted

    Returns:
        logging.Logger: The configured ``dealer_voice`` logger
    """
    settings = settings or get_settings()
    level_name = (level or settings.log_level).upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Reconfiguring replaces the previous handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.log_to_file:
        try:
            logger.addHandler(_file_handler(Path(settings.log_dir), formatter))
        except OSError as e:
            logger.warning(f"Could not set up file logging: {e}")

    logger.propagate = False
    logger.debug(f"Logging configured at {level_name}")
    return logger
