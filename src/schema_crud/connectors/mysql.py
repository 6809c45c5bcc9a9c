"""
MySQL connector implementation
"""
import logging
import re
from typing import Any, List, Optional

import mysql.connector
from mysql.connector import Error as MySQLError

from schema_crud.connectors.base import BaseConnector
from schema_crud.models.schema import ColumnSchema, KeyRole
from schema_crud.utils.params import PYFORMAT

logger = logging.getLogger(__name__)


class MySQLConnector(BaseConnector):
    """MySQL database connector"""

    param_style = PYFORMAT
    driver_errors = (MySQLError,)
    backslash_escapes = True
    LAST_INSERT_ID_SQL = "SELECT LAST_INSERT_ID()"

    def connect(self) -> 'MySQLConnector':
        """Establish connection to MySQL"""
        try:
            self.connection = mysql.connector.connect(
                host=self.config.get('host', 'localhost'),
                port=self.config.get('port') or 3306,
                database=self.config['database'],
                user=self.config.get('username', ''),
                password=self.config.get('password', ''),
                charset=self.config.get('charset') or 'utf8mb4',
                autocommit=True
            )
            logger.info(f"Connected to MySQL at {self.config.get('host')}:{self.config.get('port')}")
            return self

        except MySQLError as e:
            logger.error(f"Failed to connect to MySQL: {e}")
            raise

    def new_cursor(self):
        # Buffered so a statement never leaves unread rows on the connection
        self.require_connection()
        return self.connection.cursor(buffered=True)

    def get_all_tables(self) -> List[str]:
        """Retrieve all tables from the database"""
        query = """
            SELECT table_name AS table_name
            FROM information_schema.tables
            WHERE table_schema = %s
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        rows = self._fetch_all(query, (self.config['database'],))
        return [row['table_name'] for row in rows]

    def describe_columns(self, table_name: str) -> List[ColumnSchema]:
        """Describe table columns; MUL keys are candidates for foreign keys"""
        query = """
            SELECT
                column_name AS column_name,
                column_type AS column_type,
                is_nullable AS is_nullable,
                column_key AS column_key
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
        """
        key_roles = {'PRI': KeyRole.PRIMARY, 'MUL': KeyRole.FOREIGN}

        columns = []
        for row in self._fetch_all(query, (self.config['database'], table_name)):
            columns.append(ColumnSchema.from_raw(
                name=row['column_name'],
                raw_type=_as_text(row['column_type']),
                nullable=row['is_nullable'] == 'YES',
                key_role=key_roles.get(row['column_key'], KeyRole.NONE)
            ))
        return columns

    def get_referenced_table(self, table_name: str, column_name: str) -> Optional[str]:
        """Find the referenced table in the table's CREATE TABLE statement"""
        rows = self._fetch_all(f"SHOW CREATE TABLE `{table_name}`")
        if not rows:
            return None

        definition = _as_text(rows[0].get('Create Table', ''))
        pattern = (
            r"CONSTRAINT `[^`]+` FOREIGN KEY \(`" + re.escape(column_name) +
            r"`\) REFERENCES `([^`]+)` \(`[^`]+`\)"
        )
        match = re.search(pattern, definition)
        return match.group(1) if match else None

    def begin_transaction(self) -> None:
        """Begin transaction"""
        self.require_connection()
        self.connection.start_transaction()

    def commit_transaction(self) -> None:
        """Commit transaction"""
        self.connection.commit()

    def rollback_transaction(self) -> None:
        """Rollback transaction"""
        self.connection.rollback()


def _as_text(value: Any) -> str:
    # information_schema columns may come back as bytes depending on server settings
    if isinstance(value, (bytes, bytearray)):
        return value.decode('utf-8')
    return value or ''
