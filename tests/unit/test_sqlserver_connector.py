"""
Unit tests for the SQL Server connector

pyodbc needs the system ODBC library at import time, so the module is
skipped where it cannot be loaded.
"""
import pytest
from unittest.mock import MagicMock, patch

pytest.importorskip('pyodbc')

from schema_crud.connectors.sqlserver import DEFAULT_ODBC_DRIVER, SQLServerConnector  # noqa: E402
from schema_crud.core.query_builder import Dialect  # noqa: E402
from schema_crud.models.schema import KeyRole  # noqa: E402


def cursor_returning(columns, rows):
    """Mock pyodbc cursor with a fixed result set"""
    cursor = MagicMock()
    cursor.description = [(name,) for name in columns]
    cursor.fetchall.return_value = rows
    return cursor


class TestSQLServerConnector:
    """Test SQL Server connector"""

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_connect(self, mock_connect, sample_sqlserver_config):
        """Test the ODBC connection string"""
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())
        connector.connect()

        assert connector.connection == mock_conn
        assert mock_connect.call_args.args[0] == (
            f"DRIVER={{{DEFAULT_ODBC_DRIVER}}};"
            "SERVER=db.internal,1433;"
            "DATABASE=shop;"
            "UID=sa;"
            "PWD=secret"
        )
        assert mock_connect.call_args.kwargs['autocommit'] is True
        assert connector.dialect is Dialect.SQLSERVER

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_connect_with_custom_driver(self, mock_connect, sample_sqlserver_config):
        """Test a configured ODBC driver and no port"""
        config = sample_sqlserver_config.to_connector_config()
        config.update(port=None, odbc_driver='ODBC Driver 17 for SQL Server')

        SQLServerConnector(config).connect()

        connection_string = mock_connect.call_args.args[0]
        assert connection_string.startswith("DRIVER={ODBC Driver 17 for SQL Server};SERVER=db.internal;")

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_describe_columns(self, mock_connect, sample_sqlserver_config):
        """Test key roles and (max) lengths"""
        mock_conn = MagicMock()
        mock_conn.cursor.side_effect = [
            cursor_returning(['column_name'], [('id',)]),
            cursor_returning(['column_name', 'referenced_table'], [('team_id', 'teams')]),
            cursor_returning(
                ['column_name', 'data_type', 'max_length', 'is_nullable'],
                [
                    ('id', 'int', None, 'NO'),
                    ('name', 'nvarchar', 100, 'NO'),
                    ('bio', 'nvarchar', -1, 'YES'),
                    ('team_id', 'int', None, 'YES'),
                ]
            ),
        ]
        mock_connect.return_value = mock_conn

        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())
        connector.connect()
        columns = {col.name: col for col in connector.describe_columns('users')}

        assert columns['id'].key_role is KeyRole.PRIMARY
        assert columns['team_id'].key_role is KeyRole.FOREIGN
        assert columns['name'].key_role is KeyRole.NONE
        assert columns['name'].raw_type == 'nvarchar(100)'
        assert columns['name'].max_length == 100
        assert columns['name'].nullable is False
        assert columns['bio'].raw_type == 'nvarchar'
        assert columns['bio'].max_length == 0

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_get_referenced_table(self, mock_connect, sample_sqlserver_config):
        """Test the lookup through sys.foreign_key_columns"""
        mock_cursor = cursor_returning(['column_name', 'referenced_table'], [('team_id', 'teams')])
        mock_conn = MagicMock()
        mock_conn.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_conn

        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())
        connector.connect()

        assert connector.get_referenced_table('users', 'team_id') == 'teams'
        assert connector.get_referenced_table('users', 'name') is None
        query, params = mock_cursor.execute.call_args.args
        assert 'sys.foreign_key_columns' in query
        assert params == ('dbo.users',)

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_transaction_toggles_autocommit(self, mock_connect, sample_sqlserver_config):
        """Test begin/commit/rollback"""
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())
        connector.connect()

        connector.begin_transaction()
        assert mock_conn.autocommit is False
        connector.commit_transaction()
        mock_conn.commit.assert_called_once()
        assert mock_conn.autocommit is True

        connector.begin_transaction()
        connector.rollback_transaction()
        mock_conn.rollback.assert_called_once()
        assert mock_conn.autocommit is True

    @patch('schema_crud.connectors.sqlserver.pyodbc.connect')
    def test_prepared_statement_uses_qmark(self, mock_connect, sample_sqlserver_config):
        """Test named placeholders reach the driver as positional values"""
        mock_cursor = MagicMock()
        mock_cursor.rowcount = 1
        mock_conn = MagicMock()
        mock_conn.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_conn

        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())
        connector.connect()
        with connector.prepare("UPDATE users SET name = :name WHERE id = :id") as statement:
            statement.execute({'id': 3, 'name': 'Ana'})

        mock_cursor.execute.assert_called_once_with("UPDATE users SET name = ? WHERE id = ?", ['Ana', 3])
        assert statement.row_count == 1

    def test_insert_returning_adds_output_clause(self, sample_sqlserver_config):
        """Test the generated key is read from OUTPUT INSERTED"""
        connector = SQLServerConnector(sample_sqlserver_config.to_connector_config())

        sql = connector.insert_returning("INSERT INTO users (name) VALUES (:name_0), (:name_1)", 'id')

        assert sql == "INSERT INTO users (name) OUTPUT INSERTED.id VALUES (:name_0), (:name_1)"
        assert connector.returns_inserted_keys is True
