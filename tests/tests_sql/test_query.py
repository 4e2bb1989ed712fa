"""
=============================
Pytest suite for sql/query.py
=============================

Sections:
---------
1. Unit tests - chained configuration calls
2. Integration tests - renderer selection from the connection driver
3. Edge case tests - parameter merging and type parsing

Available markers:
------------------
unit, integration, edge_case

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_query.py -v
By category:        pytest tests/tests_sql/test_query.py -m unit
"""

import pytest

from sql.binder import SQLLiteral
from sql.query import Query, QueryType
from sql.renderers import MySQLRenderer, RendererFactory

# ====================
# Mock Helper Classes
# ====================

class FakeConnection:
    """Connection stand-in exposing only the driver name."""
    def __init__(self, driver='mysql'):
        self.driver = driver

    def get_driver(self):
        return self.driver


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_sql_defines_verbatim_statement_and_parameters():
    query = Query('verbatim').sql('SELECT * FROM t WHERE id = :id', {':id': 3})

    assert query.raw_sql == 'SELECT * FROM t WHERE id = :id'
    assert query.get_parameters() == {':id': 3}


@pytest.mark.unit
@pytest.mark.parametrize('method', ['into', 'from_', 'table'])
def test_table_setters(method):
    """into(), from_() and table() all define the target table."""
    query = Query('select')

    assert getattr(query, method)('table') is query
    assert query.table_name == 'table'


@pytest.mark.unit
def test_columns():
    query = Query('select').columns(['column1', 'column2'])

    assert query.column_names == ['column1', 'column2']


@pytest.mark.unit
def test_where_sets_clause_and_parameters():
    query = Query('select').where('id = :id', {':id': 1})

    assert query.clause == 'id = :id'
    assert query.get_parameters() == {':id': 1}


@pytest.mark.unit
def test_order_by():
    query = Query('select').order_by('id', 'asc')

    assert query.ordering == ('id', 'asc')


@pytest.mark.unit
def test_limit_single_and_pair():
    assert Query('select').limit(5).limit_values == 5
    assert Query('select').limit(1, 5).limit_values == (1, 5)
    assert Query('select').limit(5, 0).limit_values == 5


@pytest.mark.unit
def test_join_appends():
    query = (
        Query('select')
        .join('inner', 'table', 'table.a = table1.b')
        .join('left', 'other', 'other.c = table.c')
    )

    assert query.joins == [
        ('inner', 'table', 'table.a = table1.b'),
        ('left', 'other', 'other.c = table.c'),
    ]


@pytest.mark.unit
def test_set_binds_values_and_keeps_literals(counter):
    query = (
        Query('update', placeholder_source=counter)
        .set('name', 'Bob')
        .set('seen_at', SQLLiteral('NOW()'))
    )

    assert query.sets == [('name', ':v1'), ('seen_at', 'NOW()')]
    assert query.bound_values == {':v1': 'Bob'}


@pytest.mark.unit
def test_values_appends_rows(counter):
    query = (
        Query('insert', placeholder_source=counter)
        .values([1, SQLLiteral('DEFAULT')])
        .values([2, 'x'])
    )

    assert query.rows == [[':v1', 'DEFAULT'], [':v2', ':v3']]
    assert query.bound_values == {':v1': 1, ':v2': 2, ':v3': 'x'}


@pytest.mark.unit
def test_where_match_and_against():
    query = Query('select').where_match(['title', 'body']).against('python')

    assert query.clause == 'title,body'
    assert query.against_clause == ':against IN NATURAL LANGUAGE MODE'
    assert query.bound_values == {':against': 'python'}


@pytest.mark.unit
def test_against_without_natural_language_mode():
    query = Query('select').against('+python -java', natural_language=False)

    assert query.against_clause == ':against'


@pytest.mark.unit
def test_make_delayed_and_selects():
    inner = Query('select').from_('a')
    query = Query('insert').make_delayed().select(inner)

    assert query.delayed() is True
    assert query.selects() == [inner]
    assert Query('insert').delayed() is False


@pytest.mark.unit
def test_get_with_values(counter):
    query = Query('insert', placeholder_source=counter).into('t').columns(['a']).values(['x'])

    assert query.get() == 'INSERT INTO t (a) VALUES (:v1);'
    assert query.get(values=True) == {
        'query': 'INSERT INTO t (a) VALUES (:v1);',
        'values': {':v1': 'x'},
    }


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_default_driver_without_connection():
    query = Query('select')

    assert query.driver == 'mysql'
    assert isinstance(query.renderer, MySQLRenderer)


@pytest.mark.integration
def test_driver_taken_from_connection(monkeypatch):
    """The connection's driver picks the registered renderer."""

    class OtherRenderer(MySQLRenderer):
        dialect_name = 'other'

    monkeypatch.setitem(RendererFactory._renderers, 'other', OtherRenderer)

    query = Query('select', FakeConnection('other'))

    assert query.driver == 'other'
    assert isinstance(query.renderer, OtherRenderer)
    assert query.from_('t').render().dialect == 'other'


@pytest.mark.integration
def test_unregistered_driver_falls_back_to_mysql():
    query = Query('select', FakeConnection('pgsql'))

    assert query.driver == 'pgsql'
    assert isinstance(query.renderer, MySQLRenderer)


@pytest.mark.integration
def test_explicit_renderer_wins():
    renderer = MySQLRenderer()

    assert Query('select', FakeConnection('other'), renderer=renderer).renderer is renderer


# ==================
# 3. EDGE CASE TESTS
# ==================

@pytest.mark.edge_case
def test_where_keeps_existing_bindings_on_name_clash():
    query = Query('select').sql('ignored', {':id': 1}).where('id = :id', {':id': 2, ':x': 3})

    assert query.bound_values == {':id': 1, ':x': 3}


@pytest.mark.edge_case
def test_where_is_last_write_wins_for_clause():
    query = Query('select').where('a = :a', {':a': 1}).where('b = :b', {':b': 2})

    assert query.clause == 'b = :b'
    assert query.bound_values == {':a': 1, ':b': 2}


@pytest.mark.edge_case
def test_where_keeps_generated_bindings(counter):
    """Values bound by set() survive a later where()."""
    query = Query('update', placeholder_source=counter).set('a', 5).where('id = :id', {':id': 2})

    assert query.bound_values == {':id': 2, ':v1': 5}


@pytest.mark.edge_case
@pytest.mark.parametrize('raw, expected', [
    ('SELECT', QueryType.SELECT),
    ('insert ignore', QueryType.INSERT_IGNORE),
    ('INSERT_IGNORE', QueryType.INSERT_IGNORE),
    (' Verbatim ', QueryType.VERBATIM),
    (QueryType.COUNT, QueryType.COUNT),
])
def test_query_type_parsing(raw, expected):
    assert Query(raw).type is expected


@pytest.mark.edge_case
def test_unknown_query_type_rejected():
    with pytest.raises(ValueError, match="Unknown query type"):
        Query('merge')


@pytest.mark.edge_case
def test_columns_none_means_all():
    query = Query('select').columns(['a']).columns()

    assert query.column_names == []
