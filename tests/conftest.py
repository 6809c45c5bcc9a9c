"""
Pytest configuration and shared fixtures
"""
import pytest
from unittest.mock import Mock
from pathlib import Path
import tempfile

from schema_crud.connectors.sqlite import SQLiteConnector
from schema_crud.core.config import DatabaseConfig, TypeFamilies
from schema_crud.core.database import Database
from schema_crud.models.schema import ColumnSchema, KeyRole, TableSchema


SQLITE_SCHEMA = [
    """
    CREATE TABLE countries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name VARCHAR(40) NOT NULL,
        code CHAR(2)
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name VARCHAR(20) NOT NULL,
        email VARCHAR(50) NOT NULL,
        age INT,
        birthday DATE,
        country_id INTEGER REFERENCES countries(id)
    )
    """,
]


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_postgres_config():
    """Sample PostgreSQL configuration"""
    return DatabaseConfig(
        type="postgresql",
        host="localhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
        schema="public"
    )


@pytest.fixture
def sample_mysql_config():
    """Sample MySQL configuration"""
    return DatabaseConfig(
        type="mysql",
        host="localhost",
        port=3306,
        database="testdb",
        username="testuser",
        password="testpass"
    )


@pytest.fixture
def sample_sqlserver_config():
    """Sample SQL Server configuration"""
    return DatabaseConfig(
        type="sqlserver",
        host="db.internal",
        port=1433,
        database="shop",
        username="sa",
        password="secret"
    )


@pytest.fixture
def mysql_families():
    """Default MySQL type families"""
    return TypeFamilies.for_dialect('mysql')


@pytest.fixture
def users_columns():
    """Columns of a users table as a connector would describe them"""
    return [
        ColumnSchema.from_raw('id', 'int(11)', nullable=False, key_role=KeyRole.PRIMARY),
        ColumnSchema.from_raw('name', 'varchar(20)', nullable=False),
        ColumnSchema.from_raw('email', 'varchar(50)', nullable=False),
        ColumnSchema.from_raw('age', 'int', nullable=True),
        ColumnSchema.from_raw('birthday', 'date', nullable=True),
        ColumnSchema.from_raw('country_id', 'int', nullable=True, key_role=KeyRole.FOREIGN),
    ]


@pytest.fixture
def users_schema(users_columns):
    """Column name -> ColumnSchema for the users table"""
    return TableSchema.from_columns('users', users_columns, {'country_id': 'countries'}).columns_by_name


@pytest.fixture
def mock_connector(users_columns):
    """Mock connector exposing a users table and a countries table"""
    countries = [
        ColumnSchema.from_raw('id', 'int', nullable=False, key_role=KeyRole.PRIMARY),
        ColumnSchema.from_raw('name', 'varchar(40)', nullable=False),
    ]

    connector = Mock()
    connector.config = {'type': 'mysql', 'database': 'testdb'}
    connector.driver_errors = (RuntimeError,)
    connector.is_connected = True
    connector.require_connection = Mock()
    connector.get_all_tables = Mock(return_value=['countries', 'users'])
    connector.describe_columns = Mock(
        side_effect=lambda table: {'users': users_columns, 'countries': countries}[table]
    )
    connector.get_referenced_table = Mock(
        side_effect=lambda table, column: 'countries' if column == 'country_id' else None
    )
    return connector


@pytest.fixture
def sqlite_connector():
    """Connected in-memory SQLite database with the users/countries schema"""
    connector = SQLiteConnector({'type': 'sqlite', 'database': ':memory:'})
    connector.connect()
    for statement in SQLITE_SCHEMA:
        connector.connection.execute(statement)
    yield connector
    connector.disconnect()


@pytest.fixture
def db(sqlite_connector):
    """Database facade over the in-memory SQLite schema"""
    return Database(sqlite_connector)
