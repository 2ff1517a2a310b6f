"""
Logging setup for AirDraw.

Console output plus a rotating file in ~/.airdraw/logs/.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from airdraw.core.config import LoggingConfig

ROOT_LOGGER_NAME = "airdraw"


def get_log_directory(config: LoggingConfig) -> Path:
    log_dir = Path(config.directory).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Configure and return the application logger.

    Safe to call more than once: existing handlers are replaced.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if config.debug else logging.INFO)
    logger.handlers.clear()

    detailed_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    simple_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if config.debug else logging.INFO)
    console_handler.setFormatter(simple_format)
    logger.addHandler(console_handler)

    if config.log_to_file:
        log_path = get_log_directory(config) / config.filename
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_format)
        logger.addHandler(file_handler)
        logger.debug("Logging to file: %s", log_path)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    base_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if name:
        return base_logger.getChild(name)
    return base_logger
