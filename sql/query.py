"""
===========================
Chainable query descriptor.
===========================

A :class:`Query` describes one SQL statement. It is created for a single
statement type, configured through chained calls, rendered by the renderer
matching its connection's driver and optionally executed on that
connection.

Query types:
- select, count: projection, FROM, JOINs, WHERE (or MATCH ... AGAINST),
  ORDER BY, LIMIT
- insert, insert ignore: INTO, column list, VALUES rows or UNIONed sub-selects
- update: table, SET assignments, WHERE, LIMIT
- delete: FROM, WHERE, LIMIT
- verbatim: caller-supplied SQL, only its terminator is normalised

Single-valued settings (table, columns, where, order_by, limit) are last
write wins; joins, set(), values() and select() append.

Example:
    >>> from sql.query import Query
    >>>
    >>> query = (
    ...     Query('select', connection)
    ...     .from_('users u')
    ...     .columns(['u.id', 'u.email'])
    ...     .join('left', 'profiles as p', 'p.user_id = u.id')
    ...     .where('u.status = :status', {':status': 'active'})
    ...     .order_by('u.id', 'desc')
    ...     .limit(20, 10)
    ... )
    >>> query.get()
    'SELECT u.id, u.email FROM users u LEFT JOIN profiles AS p ON p.user_id = u.id WHERE u.status = :status ORDER BY u.id DESC LIMIT 20, 10;'
    >>> if query.execute().failed():
    ...     print(query.failed_because()['message'])
    ... else:
    ...     rows = query.fetch()
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from sql.binder import ParameterBinder
from sql.executor import QueryExecutor, QueryStateError
from sql.renderers import DEFAULT_DRIVER, RenderedStatement, RendererFactory, StatementRenderer

if TYPE_CHECKING:
    from db.connection import Connection

__all__ = ['Query', 'QueryType', 'QueryStateError']


class QueryType(Enum):
    """Statement types a Query can describe."""

    SELECT = 'select'
    INSERT = 'insert'
    INSERT_IGNORE = 'insert ignore'
    UPDATE = 'update'
    DELETE = 'delete'
    COUNT = 'count'
    VERBATIM = 'verbatim'

    @classmethod
    def parse(cls, value: Union[str, 'QueryType']) -> 'QueryType':
        """Accept a QueryType or its name in any case ('INSERT IGNORE', 'insert_ignore')."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('_', ' ')
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown query type: '{value}'") from None


class Query:
    """Mutable description of one SQL statement.

    Attributes:
        type: Statement type, fixed at construction
        raw_sql: Raw SQL for verbatim queries
        table_name: Target table
        column_names: Projection (select/count) or insert column list
        clause: WHERE body, or the MATCH column list for full-text search
        bound_values: Placeholder name to value
        ordering: (column, direction) or None
        limit_values: Row count, (offset, count) or None
        joins: (join type, table, ON expression) triples
        sets: (column, token) pairs for UPDATE
        rows: Rows of tokens for INSERT ... VALUES
        against_clause: AGAINST (...) body when full-text search is active
        driver: Driver name selecting the renderer
    """

    def __init__(
        self,
        type: Union[str, QueryType],
        connection: Optional['Connection'] = None,
        renderer: Optional[StatementRenderer] = None,
        placeholder_source: Optional[Callable[[], int]] = None
    ):
        """
        Args:
            type: Statement type ('select', 'insert ignore', QueryType.UPDATE, ...)
            connection: Connection to execute on; its driver selects the renderer
            renderer: Explicit renderer overriding the driver lookup
            placeholder_source: Number source for generated placeholder names
        """
        self.type = QueryType.parse(type)
        self.connection = connection
        self.driver = connection.get_driver() if connection is not None else DEFAULT_DRIVER
        self.renderer = renderer or RendererFactory.create(self.driver)

        self.raw_sql = ""
        self.table_name = ""
        self.column_names: List[str] = []
        self.clause = ""
        self.bound_values: Dict[str, Any] = {}
        self.ordering: Optional[Tuple[str, str]] = None
        self.limit_values: Optional[Union[int, Tuple[int, int]]] = None
        self.joins: List[Tuple[str, str, str]] = []
        self.sets: List[Tuple[str, str]] = []
        self.rows: List[List[str]] = []
        self.against_clause = ""

        self._binder = ParameterBinder(self.bound_values, source=placeholder_source)
        self._delayed = False
        self._sub_selects: List['Query'] = []
        self._executor = QueryExecutor(self)

    def __repr__(self) -> str:
        return f"<Query {self.type.name} table={self.table_name!r} driver={self.driver!r}>"

    # Configuration

    def sql(self, sql: str, parameters: Optional[Dict[str, Any]] = None) -> 'Query':
        """Define the SQL and parameters of a verbatim query."""
        self.raw_sql = sql
        self.bound_values.clear()
        self.bound_values.update(parameters or {})
        return self

    def into(self, table: str) -> 'Query':
        self.table_name = table
        return self

    def from_(self, table: str) -> 'Query':
        self.table_name = table
        return self

    def table(self, table: str) -> 'Query':
        self.table_name = table
        return self

    def columns(self, columns: Optional[Sequence[str]] = None) -> 'Query':
        self.column_names = list(columns or [])
        return self

    def where(self, clause: str = "", parameters: Optional[Dict[str, Any]] = None) -> 'Query':
        """Define the WHERE body and merge its parameters.

        Bindings already on the query win over ``parameters`` on a name clash.
        """
        merged = {**(parameters or {}), **self.bound_values}
        self.bound_values.clear()
        self.bound_values.update(merged)
        self.clause = clause
        return self

    def where_match(self, columns: Optional[Sequence[str]] = None) -> 'Query':
        """Use ``columns`` as the MATCH column list for full-text search."""
        self.clause = ",".join(columns or [])
        return self

    def against(self, text: str, natural_language: bool = True) -> 'Query':
        """Search the where_match() columns for ``text``."""
        self.against_clause = ":against IN NATURAL LANGUAGE MODE" if natural_language else ":against"
        self.bound_values[":against"] = text
        return self

    def order_by(self, column: str, direction: str = "ASC") -> 'Query':
        self.ordering = (column, direction)
        return self

    def limit(self, start: int, amount: Optional[int] = None) -> 'Query':
        """Limit to ``start`` rows, or ``amount`` rows from offset ``start``.

        An ``amount`` of None or 0 means no offset: ``limit(5, 0)`` is ``LIMIT 5``.
        """
        self.limit_values = (start, amount) if amount else start
        return self

    def join(self, join_type: str, table: str, on: str) -> 'Query':
        self.joins.append((join_type, table, on))
        return self

    def set(self, column: str, value: Any) -> 'Query':
        """Add an UPDATE assignment; SQLLiteral values are written verbatim."""
        self.sets.append((column, self._binder.token(value)))
        return self

    def values(self, values: Optional[Sequence[Any]] = None) -> 'Query':
        """Add one row of INSERT values; SQLLiteral cells are written verbatim."""
        self.rows.append([self._binder.token(value) for value in (values or [])])
        return self

    def select(self, query: 'Query') -> 'Query':
        """Add a SELECT whose rows feed this INSERT (UNIONed with the others)."""
        self._sub_selects.append(query)
        return self

    def selects(self) -> List['Query']:
        return self._sub_selects

    def make_delayed(self) -> 'Query':
        """Render inserts as INSERT DELAYED."""
        self._delayed = True
        return self

    def delayed(self) -> bool:
        return self._delayed

    # Rendering

    def render(self) -> RenderedStatement:
        """Render into an immutable statement; the query itself is not modified."""
        return self.renderer.render(self)

    def get(self, values: bool = False) -> Union[str, Dict[str, Any]]:
        """Return the rendered SQL, or {'query': sql, 'values': bindings} when ``values``."""
        statement = self.render()
        if values:
            return {'query': statement.sql, 'values': dict(statement.values)}
        return statement.sql

    def get_parameters(self) -> Dict[str, Any]:
        return self.bound_values

    # Execution

    def execute(self) -> 'Query':
        """Render and run the statement; check failed() afterwards."""
        self._executor.execute()
        return self

    def failed(self) -> bool:
        return self._executor.failure is not None

    def failed_because(self) -> Optional[Dict[str, Any]]:
        """Return {'message': ..., 'code': ...} for the last failure, else None."""
        return self._executor.failure

    def fetch(self) -> List[Dict[str, Any]]:
        """All result rows as column name to value dicts."""
        return self._executor.fetch()

    def count(self) -> int:
        """Number of rows affected or returned by the last execution."""
        return self._executor.count()

    def id(self) -> Any:
        """Auto-generated id of the last executed insert."""
        return self._executor.id()
