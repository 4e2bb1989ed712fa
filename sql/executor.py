"""
=====================================
Query execution against a Connection.
=====================================

:class:`QueryExecutor` runs a rendered query on the query's connection and
keeps what came back: the result for ``fetch()``/``count()``/``id()`` or the
failure details for ``failed_because()``.

Failures are recorded, not raised. After ``execute()`` callers check
``failed()``:

    >>> query.execute()
    >>> if query.failed():
    ...     reason = query.failed_because()   # {'message': ..., 'code': ...}

Missing connection, preparation errors and execution errors all produce the
same ``{'message', 'code'}`` shape. Nothing is retried.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from sql.query import Query

logger = logging.getLogger(__name__)

NO_CONNECTION_MESSAGE = "No connection to the database."


class QueryStateError(Exception):
    """Exception raised when results are requested before a successful execute()."""
    pass


class QueryExecutor:
    """Executes one Query and holds its latest outcome.

    Attributes:
        query: The query being executed
        failure: {'message': ..., 'code': ...} of the last failed run, else None
    """

    def __init__(self, query: 'Query'):
        self.query = query
        self.failure: Optional[Dict[str, Any]] = None
        self._result = None

    def execute(self) -> bool:
        """Render and run the query.

        Each call renders again and replaces the previous outcome.

        Returns:
            True when the statement ran, False when a failure was recorded
        """
        self.failure = None
        self._result = None

        statement = self.query.render()
        connection = self.query.connection

        if connection is None or not connection.is_established():
            logger.error(f"❌ {NO_CONNECTION_MESSAGE} Skipped {self.query.type.name} on '{self.query.table_name}'")
            self._fail(NO_CONNECTION_MESSAGE, 0)
            return False

        prepared = connection.prepare(statement.sql)
        if prepared is None:
            self._fail_from(connection, "prepare")
            return False

        result = connection.bind_and_run(prepared, statement.values)
        if result is None:
            self._fail_from(connection, "execute")
            return False

        self._result = result
        logger.debug(f"Executed {self.query.type.name} on '{self.query.table_name}'")
        return True

    def _fail_from(self, connection, stage: str) -> None:
        sqlstate, driver_code, message = connection.last_error()
        self._fail(message, sqlstate if sqlstate else driver_code)
        logger.error(f"❌ Failed to {stage} {self.query.type.name} on '{self.query.table_name}': {message}")

    def _fail(self, message: Optional[str], code: Any) -> None:
        self.failure = {'message': message, 'code': code}

    def _require_result(self):
        if self._result is None:
            raise QueryStateError("The query has not been executed successfully")
        return self._result

    def fetch(self) -> List[Dict[str, Any]]:
        result = self._require_result()
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]

    def count(self) -> int:
        return self._require_result().rowcount

    def id(self) -> Any:
        self._require_result()
        return self.query.connection.last_insert_id()
