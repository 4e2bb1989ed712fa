"""
=============================================
Configuration management for the query layer.
=============================================

Loads connection settings from environment variables (.env file) and
provides a centralized Config singleton for application-wide access.

The configuration system ensures:
- Single source of truth for connection settings
- Type conversion of numeric values
- Secure handling of credentials (never logged)

Example:
    >>> from core.config import config
    >>>
    >>> # SQLAlchemy URL for the configured database
    >>> url = config.get_connection_url()
    >>>
    >>> # Access individual settings
    >>> print(f"Host: {config.db_host}, Driver: {config.db_driver}")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

# Short driver names mapped to SQLAlchemy dialect+DBAPI names
DRIVER_DIALECTS = {
    'mysql': 'mysql+pymysql',
    'pgsql': 'postgresql+psycopg2',
}


def resolve_dialect(driver: str) -> str:
    """Map a short driver name to a SQLAlchemy drivername.

    Unknown names are returned unchanged so any installed SQLAlchemy
    dialect can be used directly (e.g. 'sqlite').
    """
    return DRIVER_DIALECTS.get(driver, driver)


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        driver: Short driver name ('mysql', 'pgsql') or SQLAlchemy drivername
        host: Database server hostname or IP address
        port: Database server port number (None uses the driver default)
        user: Database username
        password: Database password
        database: Database (schema) name
    """

    driver: str
    host: str
    port: Optional[int]
    user: str
    password: str
    database: str

    def get_connection_url(self) -> URL:
        """Get the SQLAlchemy URL for these settings.

        Returns:
            SQLAlchemy URL object (password is kept out of its string form)
        """
        return URL.create(
            drivername=resolve_dialect(self.driver),
            username=self.user or None,
            password=self.password or None,
            host=self.host or None,
            port=self.port,
            database=self.database or None
        )

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: driver, host, port, user, password, database
        """
        return {
            'driver': self.driver,
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database
        }


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with database connection settings

    Example:
        >>> config = Config()
        >>> print(f"Connecting to {config.db_host}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        port = os.getenv('DB_PORT', '')
        self.db = DatabaseConfig(
            driver=os.getenv('DB_DRIVER', 'mysql'),
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(port) if port else None,
            user=os.getenv('DB_USER', ''),
            password=os.getenv('DB_PASSWORD', ''),
            database=os.getenv('DB_NAME', '')
        )

    @property
    def db_driver(self) -> str:
        """Get the short driver name."""
        return self.db.driver

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> Optional[int]:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_url(self) -> URL:
        """Get the SQLAlchemy URL for the configured database."""
        return self.db.get_connection_url()

    def get_connection_params(self) -> dict:
        """Get database connection parameters.

        Returns:
            Dictionary with keys: driver, host, port, user, password, database
        """
        return self.db.get_connection_params()


# Global configuration instance
config = Config()
