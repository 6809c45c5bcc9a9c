"""
PostgreSQL connector implementation
"""
import logging
from typing import Dict, List, Optional

import psycopg2

from schema_crud.connectors.base import BaseConnector
from schema_crud.models.schema import ColumnSchema, KeyRole
from schema_crud.utils.params import PYFORMAT

logger = logging.getLogger(__name__)


class PostgreSQLConnector(BaseConnector):
    """PostgreSQL database connector"""

    param_style = PYFORMAT
    driver_errors = (psycopg2.Error,)
    returns_inserted_keys = True
    LAST_INSERT_ID_SQL = "SELECT lastval()"

    def connect(self) -> 'PostgreSQLConnector':
        """Establish connection to PostgreSQL"""
        try:
            connection = psycopg2.connect(
                host=self.config.get('host', 'localhost'),
                port=self.config.get('port') or 5432,
                database=self.config['database'],
                user=self.config.get('username', ''),
                password=self.config.get('password', ''),
                sslmode=self.config.get('ssl_mode') or 'prefer'
            )
            # Statements commit on their own outside begin_transaction()
            connection.autocommit = True
            self.connection = connection

            logger.info(f"Connected to PostgreSQL at {self.config.get('host')}:{self.config.get('port')}")
            return self

        except psycopg2.Error as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

    @property
    def schema(self) -> str:
        return self.config.get('schema') or 'public'

    def insert_returning(self, sql: str, primary_key: str) -> str:
        return f"{sql} RETURNING {primary_key}"

    def get_all_tables(self) -> List[str]:
        """Retrieve all tables from the database"""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        return [row['table_name'] for row in self._fetch_all(query, (self.schema,))]

    def describe_columns(self, table_name: str) -> List[ColumnSchema]:
        """Get column information for a table"""
        query = """
            SELECT
                column_name,
                udt_name,
                character_maximum_length,
                is_nullable
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
        """
        primary_keys = self.get_primary_keys(table_name)
        foreign_keys = self._foreign_key_map(table_name)

        columns = []
        for row in self._fetch_all(query, (self.schema, table_name)):
            raw_type = row['udt_name']
            if row['character_maximum_length']:
                raw_type = f"{raw_type}({row['character_maximum_length']})"

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
            SELECT a.attname
            FROM pg_index i
            JOIN pg_attribute a ON a.attrelid = i.indrelid AND a.attnum = ANY(i.indkey)
            WHERE i.indrelid = %s::regclass
            AND i.indisprimary
        """
        full_table_name = f'"{self.schema}"."{table_name}"'
        return [row['attname'] for row in self._fetch_all(query, (full_table_name,))]

    def get_referenced_table(self, table_name: str, column_name: str) -> Optional[str]:
        """Look the column up in the table's foreign-key constraints"""
        return self._foreign_key_map(table_name).get(column_name)

    def _foreign_key_map(self, table_name: str) -> Dict[str, str]:
        query = """
            SELECT kcu.column_name, ccu.table_name AS referenced_table
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            JOIN information_schema.constraint_column_usage ccu
                ON ccu.constraint_name = tc.constraint_name
                AND ccu.constraint_schema = tc.table_schema
            WHERE tc.constraint_type = 'FOREIGN KEY'
            AND tc.table_schema = %s
            AND tc.table_name = %s
        """
        foreign_keys: Dict[str, str] = {}
        for row in self._fetch_all(query, (self.schema, table_name)):
            foreign_keys.setdefault(row['column_name'], row['referenced_table'])
        return foreign_keys

    def begin_transaction(self) -> None:
        """Begin transaction"""
        self.require_connection()
        # psycopg2 opens the transaction implicitly on the next statement
        self.connection.autocommit = False

    def commit_transaction(self) -> None:
        """Commit transaction"""
        self.connection.commit()
        self.connection.autocommit = True

    def rollback_transaction(self) -> None:
        """Rollback transaction"""
        self.connection.rollback()
        self.connection.autocommit = True
