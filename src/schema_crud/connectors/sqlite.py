"""
SQLite connector implementation
"""
import logging
import sqlite3
from typing import Dict, List, Optional

from schema_crud.connectors.base import BaseConnector
from schema_crud.models.schema import ColumnSchema, KeyRole
from schema_crud.utils.params import NAMED

logger = logging.getLogger(__name__)


class SQLiteConnector(BaseConnector):
    """SQLite database connector; ``database`` is the file path or ``:memory:``"""

    param_style = NAMED
    driver_errors = (sqlite3.Error,)
    LAST_INSERT_ID_SQL = "SELECT last_insert_rowid()"

    def connect(self) -> 'SQLiteConnector':
        """Open the database file"""
        database = self.config.get('database')
        if not database:
            raise ValueError("Database file is required for SQLite")

        try:
            # Autocommit; transactions are opened explicitly with BEGIN
            self.connection = sqlite3.connect(database, isolation_level=None)
            self.connection.execute("PRAGMA foreign_keys = ON")
            logger.info(f"Connected to SQLite database {database}")
            return self

        except sqlite3.Error as e:
            logger.error(f"Failed to connect to SQLite: {e}")
            raise

    def get_all_tables(self) -> List[str]:
        """Retrieve all tables from the database"""
        query = """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
            AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """
        return [row['name'] for row in self._fetch_all(query)]

    def describe_columns(self, table_name: str) -> List[ColumnSchema]:
        """Read PRAGMA table_info; columns in a foreign key are marked FOREIGN"""
        foreign_keys = self._foreign_key_map(table_name)

        columns = []
        for row in self._fetch_all(f"PRAGMA table_info('{table_name}')"):
            if row['pk']:
                key_role = KeyRole.PRIMARY
            elif row['name'] in foreign_keys:
                key_role = KeyRole.FOREIGN
            else:
                key_role = KeyRole.NONE

            columns.append(ColumnSchema.from_raw(
                name=row['name'],
                raw_type=row['type'] or '',
                # an INTEGER PRIMARY KEY is a rowid alias and never null
                nullable=not row['notnull'] and not row['pk'],
                key_role=key_role
            ))
        return columns

    def get_referenced_table(self, table_name: str, column_name: str) -> Optional[str]:
        """Look the column up in PRAGMA foreign_key_list"""
        return self._foreign_key_map(table_name).get(column_name)

    def _foreign_key_map(self, table_name: str) -> Dict[str, str]:
        foreign_keys: Dict[str, str] = {}
        for row in self._fetch_all(f"PRAGMA foreign_key_list('{table_name}')"):
            foreign_keys.setdefault(row['from'], row['table'])
        return foreign_keys

    def begin_transaction(self) -> None:
        """Begin transaction"""
        self.require_connection()
        self.connection.execute("BEGIN")

    def commit_transaction(self) -> None:
        """Commit transaction"""
        self.connection.execute("COMMIT")

    def rollback_transaction(self) -> None:
        """Rollback transaction"""
        self.connection.execute("ROLLBACK")
