"""
======================================
Statement renderers for Query objects.
======================================

A renderer turns a :class:`~sql.query.Query` into SQL text plus the values
bound to its placeholders. Nothing here talks to a database; rendering is a
pure function of the query's fields.

Every statement is assembled the same way: an ordered list of optional
clause fragments, empty fragments dropped, the rest joined with single
spaces, then terminated with one ``;``.

Renderers:
- StatementRenderer: abstract base, dispatches on the query type
- MySQLRenderer: MySQL-flavoured statements (the default dialect)

Dialects are looked up through :class:`RendererFactory` so a new dialect
only needs a subclass and a registration:

    >>> @RendererFactory.register('sqlite')
    ... class SQLiteRenderer(MySQLRenderer):
    ...     def insert_keyword(self, query, ignore):
    ...         return 'INSERT OR IGNORE' if ignore else 'INSERT'

Example:
    >>> from sql.query import Query
    >>> query = Query('select').from_('users').where('id = :id', {':id': 1})
    >>> statement = MySQLRenderer().render(query)
    >>> statement.sql
    'SELECT * FROM users WHERE id = :id;'
    >>> dict(statement.values)
    {':id': 1}
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Type

if TYPE_CHECKING:
    from sql.query import Query

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = 'mysql'


class RenderError(Exception):
    """Exception raised when a query cannot be rendered."""
    pass


@dataclass(frozen=True)
class RenderedStatement:
    """Immutable result of rendering a query.

    Attributes:
        sql: Complete statement terminated by a single ';'
        values: Placeholder name to value, read-only, in binding order
        dialect: Name of the renderer that produced the statement
    """

    sql: str
    values: Mapping[str, Any] = field(default_factory=dict)
    dialect: str = DEFAULT_DRIVER

    # values is a read-only mapping, which is not hashable
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, 'values', MappingProxyType(dict(self.values)))

    @property
    def parameters(self) -> Dict[str, Any]:
        """Bindings keyed without the leading ':' (SQLAlchemy's bind style)."""
        return {name.lstrip(':'): value for name, value in self.values.items()}


def join_fragments(fragments: Iterable[Optional[str]]) -> str:
    """Drop empty fragments and join the rest with single spaces."""
    return " ".join(fragment for fragment in fragments if fragment)


class StatementRenderer(ABC):
    """Base renderer: dispatches on query type and assembles clauses.

    Dialects must implement where_clause() and limit_clause(); the other
    clause methods may be overridden.
    """

    dialect_name: ClassVar[str] = ''

    def render(self, query: 'Query') -> RenderedStatement:
        """Render ``query`` into a statement.

        Args:
            query: Query to render; it is not modified

        Returns:
            RenderedStatement with SQL text and bound values

        Raises:
            RenderError: If the query type has no builder
        """
        builders: Dict[str, Callable[['Query'], RenderedStatement]] = {
            'select': self.build_select,
            'count': self.build_count,
            'insert': self.build_insert,
            'insert ignore': self.build_insert_ignore,
            'update': self.build_update,
            'delete': self.build_delete,
            'verbatim': self.build_verbatim,
        }
        builder = builders.get(query.type.value)
        if builder is None:
            raise RenderError(f"No builder for query type '{query.type.value}'")

        statement = builder(query)
        logger.debug(
            f"Rendered {query.type.name} on '{query.table_name}' "
            f"with {len(statement.values)} binding(s): {sorted(statement.values)}"
        )
        return statement

    def statement(self, sql: str, values: Mapping[str, Any]) -> RenderedStatement:
        return RenderedStatement(sql=sql, values=values, dialect=self.dialect_name)

    # Statement builders

    def build_select(self, query: 'Query') -> RenderedStatement:
        fragments = [self.projection(query)] + self.read_clauses(query)
        return self.statement(f"SELECT {join_fragments(fragments)};", query.bound_values)

    def build_count(self, query: 'Query') -> RenderedStatement:
        fragments = [f"COUNT({self.projection(query)})"] + self.read_clauses(query)
        return self.statement(f"SELECT {join_fragments(fragments)};", query.bound_values)

    def build_update(self, query: 'Query') -> RenderedStatement:
        fragments = [
            query.table_name,
            f"SET {self.sets_clause(query)}" if query.sets else "",
            f"WHERE {query.clause}" if query.clause else "",
            self.limit_clause(query),
        ]
        return self.statement(f"UPDATE {join_fragments(fragments)};", query.bound_values)

    def build_delete(self, query: 'Query') -> RenderedStatement:
        fragments = [
            f"FROM {query.table_name}" if query.table_name else "",
            f"WHERE {query.clause}" if query.clause else "",
            self.limit_clause(query),
        ]
        return self.statement(f"DELETE {join_fragments(fragments)};", query.bound_values)

    def build_insert(self, query: 'Query', ignore: bool = False) -> RenderedStatement:
        values = dict(query.bound_values)
        if query.selects():
            source = self.union_clause(query, values)
        else:
            source = self.values_clause(query)

        fragments = [
            f"INTO {query.table_name}" if query.table_name else "",
            f"({', '.join(query.column_names)})" if query.column_names else "*",
            source,
        ]
        keyword = self.insert_keyword(query, ignore)
        return self.statement(f"{keyword} {join_fragments(fragments)};", values)

    def build_insert_ignore(self, query: 'Query') -> RenderedStatement:
        return self.build_insert(query, ignore=True)

    def build_verbatim(self, query: 'Query') -> RenderedStatement:
        return self.statement(f"{query.raw_sql.rstrip(';')};", query.bound_values)

    # Clause helpers

    def read_clauses(self, query: 'Query') -> List[str]:
        """Clauses shared by SELECT and COUNT, in statement order."""
        return [
            f"FROM {query.table_name}" if query.table_name else "",
            self.joins_clause(query),
            self.where_clause(query),
            self.order_clause(query),
            self.limit_clause(query),
        ]

    def projection(self, query: 'Query') -> str:
        return ", ".join(query.column_names) if query.column_names else "*"

    def joins_clause(self, query: 'Query') -> str:
        return " ".join(
            f"{join_type.upper()} JOIN {table.replace(' as ', ' AS ')} ON {on}"
            for join_type, table, on in query.joins
        )

    @abstractmethod
    def where_clause(self, query: 'Query') -> str:
        """Render the WHERE clause (empty when there is no predicate)."""

    def order_clause(self, query: 'Query') -> str:
        if not query.ordering:
            return ""
        column, direction = query.ordering
        return f"ORDER BY {column} {direction.upper()}"

    @abstractmethod
    def limit_clause(self, query: 'Query') -> str:
        """Render the LIMIT clause (empty when no limit is set)."""

    def sets_clause(self, query: 'Query') -> str:
        return ", ".join(f"{column} = {token}" for column, token in query.sets)

    def values_clause(self, query: 'Query') -> str:
        if not query.rows:
            return ""
        rows = ", ".join(f"({', '.join(row)})" for row in query.rows)
        return f"VALUES {rows}"

    def union_clause(self, query: 'Query', values: Dict[str, Any]) -> str:
        """Render the sub-selects joined with UNION.

        Bindings of every sub-select are merged into ``values`` in sub-select
        order; a sub-select's value wins over an outer binding of the same name.
        """
        rendered = []
        for select in query.selects():
            statement = self.render(select)
            rendered.append(statement.sql.rstrip(';'))
            values.update(statement.values)
        return " UNION ".join(rendered)

    def insert_keyword(self, query: 'Query', ignore: bool) -> str:
        keyword = "INSERT"
        if query.delayed():
            keyword += " DELAYED"
        if ignore:
            keyword += " IGNORE"
        return keyword


class MySQLRenderer(StatementRenderer):
    """Renders MySQL statements (``LIMIT offset, count``, ``MATCH ... AGAINST``)."""

    dialect_name = 'mysql'

    def where_clause(self, query: 'Query') -> str:
        if query.against_clause:
            return f"WHERE MATCH ({query.clause}) AGAINST ({query.against_clause})"
        if query.clause:
            return f"WHERE {query.clause}"
        return ""

    def limit_clause(self, query: 'Query') -> str:
        if not query.limit_values:
            return ""
        if isinstance(query.limit_values, tuple):
            offset, amount = query.limit_values
            return f"LIMIT {int(offset)}, {int(amount)}"
        return f"LIMIT {int(query.limit_values)}"


class RendererFactory:
    """Registry mapping driver names to renderer classes.

    Unknown drivers fall back to the default (MySQL) renderer.

    Example:
        >>> renderer = RendererFactory.create('mysql')
    """

    _renderers: ClassVar[Dict[str, Type[StatementRenderer]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[Type[StatementRenderer]], Type[StatementRenderer]]:
        """Decorator registering a renderer class under ``name``."""

        def decorator(renderer_cls: Type[StatementRenderer]) -> Type[StatementRenderer]:
            if inspect.isabstract(renderer_cls):
                raise TypeError(f"Renderer {renderer_cls.__name__} does not implement every clause method")
            cls._renderers[name] = renderer_cls
            return renderer_cls

        return decorator

    @classmethod
    def create(cls, name: Optional[str] = None) -> StatementRenderer:
        """Instantiate the renderer for driver ``name``."""
        renderer_cls = cls._renderers.get(name or DEFAULT_DRIVER)
        if renderer_cls is None:
            logger.debug(f"No renderer registered for driver '{name}', using {DEFAULT_DRIVER}")
            renderer_cls = cls._renderers[DEFAULT_DRIVER]
        return renderer_cls()

    @classmethod
    def registered_drivers(cls) -> List[str]:
        return sorted(cls._renderers)


RendererFactory.register(DEFAULT_DRIVER)(MySQLRenderer)
