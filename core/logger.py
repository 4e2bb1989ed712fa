"""
======================================================
Centralized logging configuration for the query layer.
======================================================

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where those records go and how they look:
- Console output with ANSI colours and an emoji per level
- Optional UTF-8 log file
- Level taken from the ``QUERY_LOG_LEVEL`` environment variable by default

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='queries.log')
    >>> logger = get_logger(__name__)
    >>> logger.debug("Rendered SELECT on users")
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Console formatter adding ANSI colours and emoji indicators.

    Attributes:
        COLORS: Dict mapping level names to ANSI colour codes
        EMOJI: Dict mapping level names to emoji indicators
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    EMOJI = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️ ',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥'
    }

    def format(self, record):
        # Work on a copy so file handlers sharing the record stay uncoloured
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        record.emoji = self.EMOJI.get(levelname, '')
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        return super().format(record)


def _level(name: Optional[str]) -> int:
    """Translate a level name into its numeric value (INFO when unknown)."""
    if not name:
        return logging.INFO
    return getattr(logging, name.upper(), logging.INFO)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(_level(level))
    return logger


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> None:
    """Configure the root logger with console and/or file handlers.

    Replaces any handlers already installed on the root logger, so it is
    safe to call again to reconfigure.

    Args:
        log_level: Level name; defaults to $QUERY_LOG_LEVEL or INFO
        log_file: Optional log file name (e.g., 'queries.log')
        log_dir: Directory for the log file (defaults to 'logs/')
        console_output: If True, log to stdout
        use_colors: If True, colour console output
    """
    level = _level(log_level or os.getenv('QUERY_LOG_LEVEL'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if use_colors:
            console_handler.setFormatter(
                ColoredFormatter('%(emoji)s ' + DEFAULT_FORMAT, datefmt=DATE_FORMAT)
            )
        else:
            console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)


def get_module_logger(module_name: str) -> logging.Logger:
    """Shorthand for ``get_logger(module_name)``."""
    return get_logger(module_name)


def _init_default_logging():
    """Install console logging when nothing else configured the root logger."""
    if not logging.getLogger().handlers:
        setup_logging(console_output=True, use_colors=True)


# Auto-initialize on import
_init_default_logging()
