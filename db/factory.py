"""
====================================
Query factory bound to a connection.
====================================

:class:`DB` owns one :class:`~db.connection.Connection` and hands out
queries already wired to it.

Example:
    >>> from db.factory import DB
    >>>
    >>> db = DB().connect('localhost', 'app', 'secret', 'shop')
    >>> rows = db.query('select').from_('products').limit(10).execute().fetch()
    >>> db.disconnect()
"""

import logging
from typing import Callable, Optional, Union

from core.config import config
from db.connection import Connection
from sql.query import Query, QueryType

logger = logging.getLogger(__name__)


class DB:
    """Connection holder and query factory.

    Attributes:
        query_count: Number of queries created through query()
    """

    def __init__(self, placeholder_source: Optional[Callable[[], int]] = None):
        """
        Args:
            placeholder_source: Number source passed on to every created Query
        """
        self._connection: Optional[Connection] = None
        self._placeholder_source = placeholder_source
        self.query_count = 0

    def connect(
        self,
        host: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None,
        **connection_options
    ) -> 'DB':
        """Establish the connection unless one is already held.

        Arguments left as None fall back to the configured settings.
        Check ``get_connection().failed()`` afterwards.
        """
        if self._connection is None:
            self._connection = Connection(
                host=host if host is not None else config.db_host,
                username=username if username is not None else config.db_user,
                password=password if password is not None else config.db_password,
                name=name if name is not None else config.db_name,
                **{'port': config.db_port, 'driver': config.db_driver, **connection_options}
            ).establish()
        return self

    def disconnect(self) -> None:
        """Close and forget the connection."""
        if self._connection is not None:
            self._connection.close()
            logger.info("Disconnected from the database")
        self._connection = None

    def get_connection(self) -> Optional[Connection]:
        return self._connection

    def query(self, type: Union[str, QueryType] = QueryType.SELECT) -> Query:
        """Create a query of ``type`` bound to the held connection."""
        self.query_count += 1
        return Query(type, self._connection, placeholder_source=self._placeholder_source)
