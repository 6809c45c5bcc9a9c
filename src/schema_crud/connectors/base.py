"""
Base connector interface for database operations
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from schema_crud.core.exceptions import (
    ConnectionNotSet, StatementExecutionFailed, StatementPreparationFailed
)
from schema_crud.core.query_builder import Dialect
from schema_crud.models.schema import ColumnSchema
from schema_crud.utils.params import NAMED, bind, compile_named

logger = logging.getLogger(__name__)


class PreparedStatement:
    """
    A statement compiled for one connector.

    SQL is written with ``:name`` placeholders; the statement rewrites them
    to the driver's paramstyle and binds values by name on ``execute``.
    """

    def __init__(self, connector: 'BaseConnector', sql: str):
        self.connector = connector
        self.sql = sql
        self.driver_sql, self._order = compile_named(
            sql, connector.param_style, connector.backslash_escapes
        )
        self.row_count = -1
        try:
            self.cursor = connector.new_cursor()
        except connector.driver_errors as e:
            raise StatementPreparationFailed(str(e), sql) from e

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Execute with the given named parameters

        Raises:
            UnknownParameter: a placeholder has no value
            StatementExecutionFailed: the driver rejected the statement
        """
        logger.debug(f"Executing: {self.sql}")
        try:
            if self._order:
                bound = bind(self._order, params or {}, self.connector.param_style, self.sql)
                self.cursor.execute(self.driver_sql, bound)
            else:
                self.cursor.execute(self.driver_sql)
        except self.connector.driver_errors as e:
            logger.error(f"Statement failed: {e}", extra={'sql': self.sql})
            raise StatementExecutionFailed(str(e), self.sql) from e

        self.row_count = self.cursor.rowcount
        return True

    def fetch_rows(self) -> List[Dict[str, Any]]:
        """All remaining rows as column -> value dictionaries, in column order"""
        if self.cursor.description is None:
            return []
        columns = [description[0] for description in self.cursor.description]
        try:
            rows = self.cursor.fetchall()
        except self.connector.driver_errors as e:
            raise StatementExecutionFailed(str(e), self.sql) from e
        return [dict(zip(columns, row)) for row in rows]

    def fetch_one(self) -> Optional[Dict[str, Any]]:
        """First row, or None when the result set is empty"""
        rows = self.fetch_rows()
        return rows[0] if rows else None

    def close(self) -> None:
        try:
            self.cursor.close()
        except self.connector.driver_errors as e:
            logger.debug(f"Error closing cursor: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class BaseConnector(ABC):
    """Abstract base class for database connectors"""

    # DB-API paramstyle the driver expects
    param_style: str = NAMED
    # Exceptions the driver raises for failed statements
    driver_errors: Tuple[type, ...] = ()
    dialect: Dialect = Dialect.GENERIC
    # Backslash escapes quotes inside string literals
    backslash_escapes: bool = False
    # Generated keys come back from the INSERT itself, see insert_returning()
    returns_inserted_keys: bool = False
    LAST_INSERT_ID_SQL: str = ""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.connection = None

    @abstractmethod
    def connect(self) -> 'BaseConnector':
        """Establish connection to the database"""
        pass

    def disconnect(self) -> None:
        """Close database connection"""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
            logger.info(f"Disconnected from {self.config.get('type', 'database')}")

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def require_connection(self) -> None:
        if self.connection is None:
            raise ConnectionNotSet()

    def new_cursor(self):
        """Driver cursor used for one statement"""
        self.require_connection()
        return self.connection.cursor()

    def prepare(self, sql: str) -> PreparedStatement:
        """
        Prepare a statement written with ``:name`` placeholders

        Raises:
            ConnectionNotSet: no live connection
            StatementPreparationFailed: empty statement or driver refusal
        """
        self.require_connection()
        if not sql or not sql.strip():
            raise StatementPreparationFailed("empty statement", sql)
        return PreparedStatement(self, sql)

    def last_insert_id(self) -> Optional[int]:
        """Id generated by the most recent insert on this connection"""
        with self.prepare(self.LAST_INSERT_ID_SQL) as statement:
            statement.execute()
            row = statement.fetch_one()
        value = next(iter(row.values())) if row else None
        return int(value) if value is not None else None

    def insert_returning(self, sql: str, primary_key: str) -> str:
        """
        INSERT statement rewritten to return the generated ``primary_key`` values

        Only used when ``returns_inserted_keys`` is set.
        """
        raise NotImplementedError(f"{type(self).__name__} reports ids through last_insert_id()")

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run an introspection query written in the driver's own paramstyle"""
        cursor = self.new_cursor()
        try:
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            columns = [description[0] for description in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    @abstractmethod
    def get_all_tables(self) -> List[str]:
        """
        Retrieve list of all tables in the database

        Returns:
            List of table names
        """
        pass

    @abstractmethod
    def describe_columns(self, table_name: str) -> List[ColumnSchema]:
        """
        Describe the columns of a table in declared order

        Primary-key columns are marked PRIMARY; columns that take part in a
        foreign key are marked FOREIGN.

        Args:
            table_name: Name of the table

        Returns:
            List of ColumnSchema objects
        """
        pass

    @abstractmethod
    def get_referenced_table(self, table_name: str, column_name: str) -> Optional[str]:
        """
        Table referenced by a foreign-key column

        Args:
            table_name: Name of the table holding the column
            column_name: Name of the foreign-key column

        Returns:
            Referenced table name, or None if no reference is declared
        """
        pass

    @abstractmethod
    def begin_transaction(self) -> None:
        """Begin a database transaction"""
        pass

    @abstractmethod
    def commit_transaction(self) -> None:
        """Commit the current transaction"""
        pass

    @abstractmethod
    def rollback_transaction(self) -> None:
        """Rollback the current transaction"""
        pass

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()
        return False
