"""
Cached schema metadata for the connected database
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Set

from schema_crud.connectors.base import BaseConnector
from schema_crud.core.exceptions import (
    SchemaIntrospectionError, StatementError, UnknownTable
)
from schema_crud.models.schema import ColumnSchema, KeyRole, TableSchema

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """
    Tables, columns and keys of one database, scanned once and cached.

    ``load_schema`` replaces the whole catalog in one step; a failed scan
    leaves the previously loaded tables in place. Readers must not run
    concurrently with a reload.
    """

    def __init__(self, connector: BaseConnector):
        self.connector = connector
        self._tables: Dict[str, TableSchema] = {}

    @property
    def table_names(self) -> Set[str]:
        return set(self._tables)

    @property
    def tables(self) -> Dict[str, TableSchema]:
        return dict(self._tables)

    def load_schema(self) -> None:
        """
        Scan every table of the database and replace the cached metadata

        Raises:
            ConnectionNotSet: the connector has no live connection
            SchemaIntrospectionError: any introspection query failed
        """
        self.connector.require_connection()
        failures = (StatementError,) + tuple(self.connector.driver_errors)

        tables: Dict[str, TableSchema] = {}
        try:
            for table_name in self.connector.get_all_tables():
                tables[table_name] = self._load_table(table_name)
        except failures as e:
            logger.error(f"Schema load failed: {e}")
            raise SchemaIntrospectionError(f"Failed to load schema: {e}") from e

        self._tables = tables
        logger.info(f"Loaded schema for {len(tables)} tables")

    def _load_table(self, table_name: str) -> TableSchema:
        columns: List[ColumnSchema] = []
        foreign_keys: Dict[str, str] = {}

        for column in self.connector.describe_columns(table_name):
            if column.is_foreign_key:
                referenced = self.connector.get_referenced_table(table_name, column.name)
                if referenced:
                    foreign_keys[column.name] = referenced
                else:
                    # Indexed but not a declared reference
                    column = replace(column, key_role=KeyRole.NONE)
            columns.append(column)

        logger.debug(f"Loaded {len(columns)} columns for {table_name}")
        return TableSchema.from_columns(table_name, columns, foreign_keys)

    def get_table(self, table_name: str) -> TableSchema:
        """
        Raises:
            UnknownTable: the table was not seen by the last load
        """
        try:
            return self._tables[table_name]
        except KeyError:
            raise UnknownTable(table_name) from None

    def has_table(self, table_name: str) -> bool:
        return table_name in self._tables

    def columns_of(self, table_name: str) -> List[str]:
        """Column names except the primary key, in declared order"""
        return list(self.get_table(table_name).columns)

    def column_details_of(self, table_name: str) -> Dict[str, ColumnSchema]:
        return dict(self.get_table(table_name).columns_by_name)

    def primary_key_of(self, table_name: str) -> Optional[str]:
        return self.get_table(table_name).primary_key

    def foreign_keys_of(self, table_name: str) -> Dict[str, str]:
        """Foreign-key column -> referenced table"""
        return dict(self.get_table(table_name).foreign_keys)

    def first_non_key_column(self, table_name: str) -> Optional[str]:
        return self.get_table(table_name).first_non_key_column()

    def to_dict(self) -> dict:
        return {name: table.to_dict() for name, table in self._tables.items()}
