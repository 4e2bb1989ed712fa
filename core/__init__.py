"""
================================================
Core infrastructure package for the query layer.
================================================

Centralized configuration and logging used by the sql/ and db/ packages.

Modules:
    config: Connection settings loaded from environment variables
    logger: Centralized logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'get_module_logger', 'config', 'Config', 'DatabaseConfig']

from core.config import Config, DatabaseConfig, config
from core.logger import get_logger, get_module_logger, setup_logging
