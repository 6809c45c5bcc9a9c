"""
Unit tests for the schema catalog
"""
import pytest
from unittest.mock import Mock

from schema_crud.core.exceptions import (
    ConnectionNotSet, SchemaIntrospectionError, StatementExecutionFailed, UnknownTable
)
from schema_crud.handlers.schema_catalog import SchemaCatalog
from schema_crud.models.schema import ColumnSchema, KeyRole


class TestLoadSchema:
    """Test schema scanning"""

    def test_loads_tables_columns_and_keys(self, mock_connector):
        """Test a full scan"""
        catalog = SchemaCatalog(mock_connector)
        catalog.load_schema()

        assert catalog.table_names == {'users', 'countries'}
        assert catalog.columns_of('users') == ['name', 'email', 'age', 'birthday', 'country_id']
        assert catalog.primary_key_of('users') == 'id'
        assert catalog.foreign_keys_of('users') == {'country_id': 'countries'}
        assert catalog.first_non_key_column('users') == 'name'
        assert catalog.first_non_key_column('countries') == 'name'

    def test_unresolved_foreign_key_becomes_plain(self, mock_connector):
        """Test an indexed column with no declared reference"""
        mock_connector.get_referenced_table = Mock(return_value=None)
        catalog = SchemaCatalog(mock_connector)
        catalog.load_schema()

        assert catalog.foreign_keys_of('users') == {}
        column = catalog.column_details_of('users')['country_id']
        assert column.key_role is KeyRole.NONE

    def test_failed_scan_keeps_previous_catalog(self, mock_connector, users_columns):
        """Test atomic refresh"""
        catalog = SchemaCatalog(mock_connector)
        catalog.load_schema()

        mock_connector.get_all_tables = Mock(return_value=['countries', 'users', 'orders'])
        mock_connector.describe_columns = Mock(side_effect=[
            [ColumnSchema.from_raw('id', 'int', key_role=KeyRole.PRIMARY)],
            users_columns,
            RuntimeError("connection lost"),
        ])

        with pytest.raises(SchemaIntrospectionError) as exc_info:
            catalog.load_schema()

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert catalog.table_names == {'users', 'countries'}
        assert catalog.columns_of('countries') == ['name']

    def test_statement_errors_are_wrapped(self, mock_connector):
        """Test adapter statement failures during the scan"""
        mock_connector.get_all_tables = Mock(side_effect=StatementExecutionFailed("boom"))
        with pytest.raises(SchemaIntrospectionError):
            SchemaCatalog(mock_connector).load_schema()

    def test_requires_connection(self, mock_connector):
        """Test scan without a connection"""
        mock_connector.require_connection = Mock(side_effect=ConnectionNotSet())
        with pytest.raises(ConnectionNotSet):
            SchemaCatalog(mock_connector).load_schema()


class TestAccessors:
    """Test catalog reads"""

    @pytest.mark.parametrize('accessor', [
        'columns_of', 'primary_key_of', 'foreign_keys_of', 'first_non_key_column', 'get_table'
    ])
    def test_unknown_table(self, mock_connector, accessor):
        """Test reads of a table that was not scanned"""
        catalog = SchemaCatalog(mock_connector)
        catalog.load_schema()
        with pytest.raises(UnknownTable, match="Table orders does not exist"):
            getattr(catalog, accessor)('orders')

    def test_to_dict(self, mock_connector):
        """Test catalog serialization"""
        catalog = SchemaCatalog(mock_connector)
        catalog.load_schema()
        users = catalog.to_dict()['users']
        assert users['primary_key'] == 'id'
        assert users['columns'][1] == {
            'name': 'name',
            'raw_type': 'varchar(20)',
            'type_name': 'varchar',
            'max_length': 20,
            'nullable': False,
            'key_role': 'none'
        }
