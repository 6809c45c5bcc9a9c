"""
SQL Server connector implementation
"""
import logging
from typing import Dict, List, Optional

import pyodbc

from schema_crud.connectors.base import BaseConnector
from schema_crud.core.query_builder import Dialect
from schema_crud.models.schema import ColumnSchema, KeyRole
from schema_crud.utils.params import QMARK

logger = logging.getLogger(__name__)

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


class SQLServerConnector(BaseConnector):
    """SQL Server database connector (pyodbc)"""

    param_style = QMARK
    driver_errors = (pyodbc.Error,)
    dialect = Dialect.SQLSERVER
    returns_inserted_keys = True
    # @@IDENTITY also sees identities created by triggers; inserts made
    # through insert_returning() read the key from OUTPUT instead
    LAST_INSERT_ID_SQL = "SELECT @@IDENTITY"

    def connect(self) -> 'SQLServerConnector':
        """Establish connection to SQL Server"""
        host = self.config.get('host', 'localhost')
        if self.config.get('port'):
            host = f"{host},{self.config['port']}"

        connection_string = (
            f"DRIVER={{{self.config.get('odbc_driver') or DEFAULT_ODBC_DRIVER}}};"
            f"SERVER={host};"
            f"DATABASE={self.config['database']};"
            f"UID={self.config.get('username', '')};"
            f"PWD={self.config.get('password', '')}"
        )
        try:
            self.connection = pyodbc.connect(connection_string, autocommit=True)
            logger.info(f"Connected to SQL Server at {host}")
            return self

        except pyodbc.Error as e:
            logger.error(f"Failed to connect to SQL Server: {e}")
            raise

    @property
    def schema(self) -> str:
        return self.config.get('schema') or 'dbo'

    def insert_returning(self, sql: str, primary_key: str) -> str:
        """Add an OUTPUT clause ahead of the VALUES list"""
        return sql.replace(") VALUES ", f") OUTPUT INSERTED.{primary_key} VALUES ", 1)

    def get_all_tables(self) -> List[str]:
        """Retrieve all tables from the database"""
        query = """
            SELECT TABLE_NAME AS table_name
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = ?
            AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
        """
        return [row['table_name'] for row in self._fetch_all(query, (self.schema,))]

    def describe_columns(self, table_name: str) -> List[ColumnSchema]:
        """Get column information for a table"""
        query = """
            SELECT
                COLUMN_NAME AS column_name,
                DATA_TYPE AS data_type,
                CHARACTER_MAXIMUM_LENGTH AS max_length,
                IS_NULLABLE AS is_nullable
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
            ORDER BY ORDINAL_POSITION
        """
        primary_keys = self.get_primary_keys(table_name)
        foreign_keys = self._foreign_key_map(table_name)

        columns = []
        for row in self._fetch_all(query, (self.schema, table_name)):
            raw_type = row['data_type']
            # -1 marks (max) types, which are unbounded
            if row['max_length'] and row['max_length'] > 0:
                raw_type = f"{raw_type}({row['max_length']})"

            if row['column_name'] in primary_keys:
                key_role = KeyRole.PRIMARY
            elif row['column_name'] in foreign_keys:
                key_role = KeyRole.FOREIGN
            else:
                key_role = KeyRole.NONE

            columns.append(ColumnSchema.from_raw(
                name=row['column_name'],
                raw_type=raw_type,
                nullable=row['is_nullable'] == 'YES',
                key_role=key_role
            ))
        return columns

    def get_primary_keys(self, table_name: str) -> List[str]:
        """Get primary key columns"""
        query = """
            SELECT kcu.COLUMN_NAME AS column_name
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
            JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
                ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
                AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
            WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
            AND tc.TABLE_SCHEMA = ?
            AND tc.TABLE_NAME = ?
            ORDER BY kcu.ORDINAL_POSITION
        """
        return [row['column_name'] for row in self._fetch_all(query, (self.schema, table_name))]

    def get_referenced_table(self, table_name: str, column_name: str) -> Optional[str]:
        """Look the column up in the table's foreign-key constraints"""
        return self._foreign_key_map(table_name).get(column_name)

    def _foreign_key_map(self, table_name: str) -> Dict[str, str]:
        query = """
            SELECT
                COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS column_name,
                OBJECT_NAME(fkc.referenced_object_id) AS referenced_table
            FROM sys.foreign_key_columns fkc
            WHERE fkc.parent_object_id = OBJECT_ID(?)
        """
        foreign_keys: Dict[str, str] = {}
        for row in self._fetch_all(query, (f"{self.schema}.{table_name}",)):
            foreign_keys.setdefault(row['column_name'], row['referenced_table'])
        return foreign_keys

    def begin_transaction(self) -> None:
        """Begin transaction"""
        self.require_connection()
        self.connection.autocommit = False

    def commit_transaction(self) -> None:
        """Commit transaction"""
        self.connection.commit()
        self.connection.autocommit = True

    def rollback_transaction(self) -> None:
        """Rollback transaction"""
        self.connection.rollback()
        self.connection.autocommit = True
