"""
==============================
Pytest suite for db/factory.py
==============================

Sections:
---------
1. Unit tests - connect/disconnect and query creation
2. Integration tests - created queries render with the shared number source

Available markers:
------------------
unit, integration

How to Execute:
---------------
All tests:          pytest tests/tests_db/test_factory.py -v
"""

from unittest.mock import MagicMock, patch

import pytest

from db.factory import DB
from sql.query import Query, QueryType

# ====================
# Mock Helper Classes
# ====================

class FakeConfig:
    """Mock config object for testing."""
    def __init__(self):
        self.db_driver = 'mysql'
        self.db_host = 'localhost'
        self.db_port = 3306
        self.db_user = 'app'
        self.db_password = 'secret123'
        self.db_name = 'shop'


# ====================
# Fixtures
# ====================

@pytest.fixture
def mock_connection_cls():
    """Patch Connection so establish() never opens a real handle."""
    with patch('db.factory.Connection') as connection_cls:
        instance = MagicMock()
        instance.get_driver.return_value = 'mysql'
        connection_cls.return_value.establish.return_value = instance
        yield connection_cls


@pytest.fixture
def mock_config():
    with patch('db.factory.config', FakeConfig()):
        yield


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_connect_establishes_once(mock_connection_cls, mock_config):
    db = DB().connect('db.local', 'app', 'pw', 'shop')
    first = db.get_connection()

    db.connect('other', 'app', 'pw', 'shop')

    assert db.get_connection() is first
    mock_connection_cls.assert_called_once_with(
        host='db.local', username='app', password='pw', name='shop', port=3306, driver='mysql'
    )


@pytest.mark.unit
def test_connect_falls_back_to_config(mock_connection_cls, mock_config):
    DB().connect()

    mock_connection_cls.assert_called_once_with(
        host='localhost', username='app', password='secret123', name='shop', port=3306, driver='mysql'
    )


@pytest.mark.unit
def test_connect_options_override_config(mock_connection_cls, mock_config):
    DB().connect('h', 'u', 'p', 'n', driver='pgsql', port=5432)

    _, kwargs = mock_connection_cls.call_args
    assert kwargs['driver'] == 'pgsql'
    assert kwargs['port'] == 5432


@pytest.mark.unit
def test_disconnect(mock_connection_cls, mock_config):
    db = DB().connect('h', 'u', 'p', 'n')
    connection = db.get_connection()

    db.disconnect()

    connection.close.assert_called_once()
    assert db.get_connection() is None


@pytest.mark.unit
def test_disconnect_without_connection():
    db = DB()

    db.disconnect()

    assert db.get_connection() is None


@pytest.mark.unit
def test_query_is_bound_and_counted(mock_connection_cls, mock_config):
    db = DB().connect('h', 'u', 'p', 'n')

    query = db.query('update')
    db.query()

    assert isinstance(query, Query)
    assert query.type is QueryType.UPDATE
    assert query.connection is db.get_connection()
    assert db.query_count == 2


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_query_without_connection_fails_on_execute():
    query = DB().query('select').from_('t').execute()

    assert query.failed_because() == {'message': 'No connection to the database.', 'code': 0}


@pytest.mark.integration
def test_queries_share_placeholder_source(counter):
    db = DB(placeholder_source=counter)

    first = db.query('update').table('a').set('x', 1)
    second = db.query('update').table('b').set('y', 2)

    assert first.get() == 'UPDATE a SET x = :v1;'
    assert second.get() == 'UPDATE b SET y = :v2;'
