"""
==============================
Database connectivity package.
==============================

Provides the connection handle queries execute on and a small factory that
creates queries bound to it.

Modules:
    connection: SQLAlchemy-backed Connection with failure classification
    factory: DB query factory holding one Connection
"""

__version__ = "0.1.0"
__all__ = [
    'Connection',
    'ConfigurationError',
    'DatabaseConnectionError',
    'DB',
]

from .connection import ConfigurationError, Connection, DatabaseConnectionError
from .factory import DB
