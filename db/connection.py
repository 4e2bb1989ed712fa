"""
=================================================
Database connection handling for query execution.
=================================================

Wraps one SQLAlchemy connection (the handle) and gives queries the small
surface they need: prepare a statement, run it with bindings, report the
last driver error and manage transactions.

Connection failures are never raised. ``establish()`` records them and
callers check ``failed()`` / ``failed_because()``. Well-known driver codes
get a friendly message:

    - 2002, 2003: the database host could not be reached (socket, TCP)
    - 1045: bad username/password combination
    - 1049: the database does not exist

Any other code yields an empty friendly message next to the raw error.
Missing connection parameters are a programming error and raise
:class:`ConfigurationError` straight away.

Outside an explicit transaction every statement is committed as soon as it
has run.

Example:
    >>> from db.connection import Connection
    >>>
    >>> connection = Connection('localhost', 'app', 'secret', 'shop').establish()
    >>> if connection.failed():
    ...     print(connection.failed_because()['message'])
    >>>
    >>> connection.start_transaction()
    >>> Query('delete', connection).from_('carts').where('expired = 1').execute()
    >>> connection.commit()
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection as SAConnection, CursorResult, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from core.config import DatabaseConfig, config, resolve_dialect

logger = logging.getLogger(__name__)

FRIENDLY_MESSAGES = {
    2002: "Failed to make a connection to the database host server.",
    2003: "Failed to make a connection to the database host server.",
    1045: "Failed to make a connection to the database because of a bad username/password combo.",
    1049: "Failed to connect to the database, because the database doesn't exist.",
}

ErrorInfo = Tuple[Optional[str], Optional[Any], Optional[str]]


class ConfigurationError(Exception):
    """Exception raised when required connection parameters are missing."""
    pass


class DatabaseConnectionError(Exception):
    """Exception raised when an operation needs a handle that is not established."""
    pass


def define_friendly_message(code: Any) -> str:
    """Return the friendly message for a driver error code ('' if unknown)."""
    try:
        return FRIENDLY_MESSAGES.get(int(code), "")
    except (TypeError, ValueError):
        return ""


def error_details(exc: Exception) -> ErrorInfo:
    """Split an exception into (sqlstate, driver code, message).

    DBAPI errors wrapped by SQLAlchemy are unwrapped: MySQL drivers carry
    ``(code, message)`` in ``args``, psycopg2 exposes ``pgcode``/``pgerror``.
    """
    orig = exc.orig if isinstance(exc, DBAPIError) and exc.orig is not None else exc

    sqlstate = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
    driver_code = getattr(orig, 'errno', None)
    message = getattr(orig, 'pgerror', None)

    args = getattr(orig, 'args', ())
    if driver_code is None and len(args) >= 2 and isinstance(args[0], int):
        driver_code = args[0]
        message = message or str(args[1])

    return sqlstate, driver_code, (message or str(orig)).strip()


class Connection:
    """A single database handle plus its failure state.

    Attributes:
        driver: Short driver name ('mysql', 'pgsql') or SQLAlchemy drivername
        host: Database server hostname
        username: Login name
        name: Database (schema) name
        port: Server port (None uses the driver default)
    """

    def __init__(
        self,
        host: str = "",
        username: str = "",
        password: str = "",
        name: str = "",
        port: Optional[int] = None,
        driver: str = "mysql",
        **engine_options
    ):
        """
        Args:
            host: Database server hostname
            username: Login name
            password: Login password
            name: Database (schema) name
            port: Server port
            driver: Short driver name or SQLAlchemy drivername
            **engine_options: Extra keyword arguments for create_engine()
        """
        self.host = host
        self.username = username
        self.password = password
        self.name = name
        self.port = port
        self.driver = driver
        self.engine_options = engine_options

        self._engine: Optional[Engine] = None
        self._handle: Optional[SAConnection] = None
        self._transaction = None
        self._failure: Dict[str, Any] = {}
        self._last_error: ErrorInfo = (None, None, None)
        self._last_result: Optional[CursorResult] = None

    @classmethod
    def from_config(cls, db_config: Optional[DatabaseConfig] = None, **engine_options) -> 'Connection':
        """Build a Connection from DatabaseConfig (defaults to the global config)."""
        db_config = db_config or config.db
        return cls(
            host=db_config.host,
            username=db_config.user,
            password=db_config.password,
            name=db_config.database,
            port=db_config.port,
            driver=db_config.driver,
            **engine_options
        )

    def set_driver(self, driver: str) -> 'Connection':
        self.driver = driver
        return self

    def get_driver(self) -> str:
        return self.driver

    def driver_name(self) -> str:
        return self.driver

    def _validate_parameters(self) -> None:
        if not self.driver:
            raise ConfigurationError("Invalid database driver defined.")
        if not self.host:
            raise ConfigurationError("Invalid database host defined.")
        if not self.username:
            raise ConfigurationError("Invalid database username defined.")
        if not self.name:
            raise ConfigurationError("Invalid database name defined.")

    def get_url(self) -> URL:
        return URL.create(
            drivername=resolve_dialect(self.driver),
            username=self.username,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name
        )

    def establish(self) -> 'Connection':
        """Open the handle.

        Returns:
            self, whether or not the connection succeeded

        Raises:
            ConfigurationError: If driver, host, username or name is missing
        """
        self._validate_parameters()
        self._failure = {}

        logger.info(f"Connecting to {self.driver} database '{self.name}' at {self.host}")
        try:
            self._engine = create_engine(self.get_url(), **self.engine_options)
            self._handle = self._engine.connect()
        except SQLAlchemyError as e:
            self._handle = None
            self.fail(e)
            logger.error(f"❌ Connection to {self.host}/{self.name} failed: {self._failure['exception']['message']}")
            return self

        logger.info(f"✅ Connected to {self.host}/{self.name}")
        return self

    def fail(self, exc: Exception) -> 'Connection':
        """Record ``exc`` as the connection failure."""
        sqlstate, driver_code, message = error_details(exc)
        self._last_error = (sqlstate, driver_code, message)
        self._failure = {
            'message': define_friendly_message(driver_code),
            'exception': {
                'message': message,
                'code': driver_code
            }
        }
        return self

    def failed(self) -> bool:
        return bool(self._failure)

    def failed_because(self) -> Dict[str, Any]:
        return self._failure

    def is_established(self) -> bool:
        return self._handle is not None

    def get(self) -> Optional[SAConnection]:
        """Return the SQLAlchemy connection, or None when not established."""
        return self._handle

    def raw_handle(self) -> SAConnection:
        if self._handle is None:
            raise DatabaseConnectionError("No connection to the database.")
        return self._handle

    # Statement execution

    def prepare(self, sql: str) -> Optional[TextClause]:
        """Turn SQL text into an executable statement, or None on failure."""
        try:
            return text(sql)
        except SQLAlchemyError as e:
            self._last_error = error_details(e)
            logger.error(f"❌ Failed to prepare statement: {self._last_error[2]}")
            return None

    def bind_and_run(self, statement: TextClause, bindings: Mapping[str, Any]) -> Optional[CursorResult]:
        """Run ``statement`` with ``bindings`` (keys with or without a leading ':').

        Returns:
            The SQLAlchemy result, or None when the driver reported an error
        """
        handle = self.raw_handle()
        parameters = {name.lstrip(':'): value for name, value in bindings.items()}
        try:
            result = handle.execute(statement, parameters)
        except SQLAlchemyError as e:
            self._last_error = error_details(e)
            if self._transaction is None and handle.in_transaction():
                handle.rollback()
            return None

        if self._transaction is None:
            handle.commit()
        self._last_error = (None, None, None)
        self._last_result = result
        return result

    def last_error(self) -> ErrorInfo:
        """(sqlstate, driver code, message) of the last failed operation."""
        return self._last_error

    def last_insert_id(self) -> Any:
        if self._last_result is None:
            return None
        return self._last_result.lastrowid

    # Transactions

    def start_transaction(self) -> 'Connection':
        handle = self.raw_handle()
        if handle.in_transaction():
            handle.commit()
        self._transaction = handle.begin()
        return self

    def commit(self) -> 'Connection':
        if self._transaction is not None:
            self._transaction.commit()
            self._transaction = None
        return self

    def roll_back(self) -> 'Connection':
        if self._transaction is not None:
            self._transaction.rollback()
            self._transaction = None
        return self

    begin_transaction = start_transaction
    rollback = roll_back

    def close(self) -> None:
        """Close the handle and dispose of the engine."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._transaction = None
