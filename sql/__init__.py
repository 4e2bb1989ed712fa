"""
=============================================
SQL statement building and execution package.
=============================================

Queries are described with chained calls, rendered into a single SQL
statement plus its bindings and optionally executed on a connection.

The package is organised by concern:
    - binder.py: placeholder generation and SQLLiteral values
    - query.py: the chainable Query descriptor and QueryType
    - renderers.py: dialect renderers and the RendererFactory registry
    - executor.py: running a Query and recording its outcome

Architecture:
    - Rendering is pure: a Query renders to an immutable RenderedStatement
    - Renderers are selected once per Query from its connection's driver
    - Failures while executing are recorded on the Query, never raised

Example:
    >>> from sql import Query, SQLLiteral
    >>>
    >>> query = (
    ...     Query('update')
    ...     .table('users')
    ...     .set('email', 'new@example.com')
    ...     .set('updated_at', SQLLiteral('NOW()'))
    ...     .where('id = :id', {':id': 7})
    ... )
    >>> statement = query.render()
"""

__version__ = "0.1.0"
__all__ = [
    'ParameterBinder', 'SQLLiteral',
    'Query', 'QueryType', 'QueryStateError',
    'MySQLRenderer', 'RenderedStatement', 'RenderError', 'RendererFactory', 'StatementRenderer',
    'QueryExecutor',
]

from .binder import ParameterBinder, SQLLiteral
from .executor import QueryExecutor, QueryStateError
from .query import Query, QueryType
from .renderers import (
    MySQLRenderer,
    RenderedStatement,
    RenderError,
    RendererFactory,
    StatementRenderer,
)
