"""
Error taxonomy for the data-access layer
"""
from typing import Optional


class DataAccessError(Exception):
    """Base class for every error raised by schema_crud"""


class ConnectionNotSet(DataAccessError):
    """Raised when an operation needs a live connection and none is set"""

    def __init__(self, message: str = "Database connection is not set"):
        super().__init__(message)


class UnknownTable(DataAccessError, KeyError):
    """Raised when a table was not seen during the last schema load"""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table {table} does not exist")

    def __str__(self) -> str:
        return self.args[0]


class MissingPrimaryKey(DataAccessError):
    """Raised when an id-keyed operation targets a table without a primary key"""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table {table} has no primary key")


class InvalidRecordId(DataAccessError, ValueError):
    """Raised when a record id is not numeric"""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"The id {record_id!r} must be numeric")


class RecordNotFound(DataAccessError):
    """Raised when no row matches the requested primary key"""

    def __init__(self, table: str, record_id):
        self.table = table
        self.record_id = record_id
        super().__init__(f"No record found in {table} with id {record_id}")


class ArityMismatch(DataAccessError):
    """Raised when the number of positional values does not match a table"""

    def __init__(self, table: str, expected: int, received: int):
        self.table = table
        self.expected = expected
        self.received = received
        super().__init__(
            f"Table {table} expects {expected} values (every column except "
            f"the primary key), received {received}"
        )


class ValidationFailed(DataAccessError):
    """Raised when a row does not satisfy its column constraints"""

    def __init__(self, reason: str, result=None):
        self.reason = reason
        self.result = result
        super().__init__(reason)


class UnsupportedMethod(DataAccessError, ValueError):
    """Raised when a descriptor carries no method or an unknown one"""


class MissingField(DataAccessError, ValueError):
    """Raised when a descriptor lacks a field its method requires"""


class SchemaIntrospectionError(DataAccessError):
    """Raised when the schema scan fails; the previous catalog stays in place"""


class StatementError(DataAccessError):
    """Common base for driver-reported statement failures"""

    def __init__(self, message: str, detail: Optional[str] = None,
                 sql: Optional[str] = None):
        self.detail = detail
        self.sql = sql
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StatementPreparationFailed(StatementError):
    """Raised when a statement cannot be prepared"""

    def __init__(self, detail: Optional[str] = None, sql: Optional[str] = None):
        super().__init__("Query preparation failed", detail, sql)


class UnknownParameter(StatementPreparationFailed):
    """Raised when a statement references a parameter that was not supplied"""

    def __init__(self, name: str, sql: Optional[str] = None):
        self.name = name
        super().__init__(f"parameter :{name} was not supplied", sql)


class StatementExecutionFailed(StatementError):
    """Raised when the driver reports an error while executing a statement"""

    def __init__(self, detail: Optional[str] = None, sql: Optional[str] = None):
        super().__init__("Query execution failed", detail, sql)


class TransactionFailed(DataAccessError):
    """
    Raised after a transaction was rolled back.

    The failure that triggered the rollback is available as ``__cause__``.
    """

    def __init__(self, message: str, statement_index: Optional[int] = None):
        self.statement_index = statement_index
        super().__init__(f"Transaction failed: {message}")
