"""
CRUD facade over the schema catalog, query builder and validator
"""
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from schema_crud.connectors.base import BaseConnector
from schema_crud.connectors.factory import ConnectorFactory
from schema_crud.core.config import Config, TypeFamilies
from schema_crud.core.exceptions import (
    ArityMismatch, ConnectionNotSet, DataAccessError, InvalidRecordId,
    MissingField, MissingPrimaryKey, RecordNotFound, TransactionFailed,
    ValidationFailed
)
from schema_crud.core.query_builder import build, insert_parameters
from schema_crud.handlers.schema_catalog import SchemaCatalog
from schema_crud.handlers.validator import ConstraintValidator, is_number
from schema_crud.models.descriptor import Method, QueryDescriptor
from schema_crud.models.keywords import Keyword
from schema_crud.models.schema import KeyRole
from schema_crud.models.validation import ValidationResult
from schema_crud.utils.params import parameter_names

logger = logging.getLogger(__name__)

Query = Union[str, QueryDescriptor, Mapping[str, Any]]
Rows = List[Dict[str, Any]]


class Database:
    """
    Schema-aware access to one connected database.

    The schema is scanned when the object is created; call
    ``reload_schema`` after DDL changes. Values in parameter mappings may
    be ``Keyword`` members, which are replaced by their computed value
    right before the statement is bound.
    """

    def __init__(self, connector: BaseConnector, type_families: Optional[TypeFamilies] = None,
                 json_output: bool = False):
        if connector is None or not connector.is_connected:
            raise ConnectionNotSet()

        self.connector = connector
        self.type_families = type_families or TypeFamilies.for_dialect(
            connector.config.get('type', '')
        )
        self.validator = ConstraintValidator(self.type_families)
        self.catalog = SchemaCatalog(connector)
        self.json_output = json_output
        self._in_transaction = False

        self.catalog.load_schema()

    @classmethod
    def from_config(cls, config: Config) -> "Database":
        """Create the connector for ``config.database``, connect and load the schema"""
        connector = ConnectorFactory.create_connector(
            config.database.type,
            config.database.to_connector_config()
        )
        connector.connect()
        try:
            return cls(connector, config.get_type_families(),
                       json_output=config.output.json_output)
        except DataAccessError:
            connector.disconnect()
            raise

    def close(self) -> None:
        self.connector.disconnect()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def dialect(self):
        return self.connector.dialect

    def reload_schema(self) -> None:
        self.catalog.load_schema()

    def set_json_output(self, enabled: bool) -> None:
        """Return result sets as JSON strings instead of lists of dicts"""
        self.json_output = enabled

    # Plain statements

    def execute(self, query: Query, params: Optional[Mapping[str, Any]] = None) -> int:
        """
        Run a statement that returns no rows

        Returns:
            Number of affected rows as reported by the driver
        """
        sql = self._to_sql(query)
        with self._run(sql, params) as statement:
            return statement.row_count

    def select(self, query: Query, params: Optional[Mapping[str, Any]] = None):
        """
        Run a query and fetch every row

        Args:
            query: SQL text with ``:name`` placeholders, or a SELECT descriptor
            params: Values for the placeholders

        Returns:
            List of column -> value dicts, or its JSON text when json output is on
        """
        return self._format(self._fetch(self._to_sql(query), params))

    def fetch_one(self, query: Query, params: Optional[Mapping[str, Any]] = None):
        """First row of a query, or None"""
        rows = self._fetch(self._to_sql(query), params)
        return self._format(rows[0] if rows else None)

    # Id-keyed operations

    def select_one(self, table: str, record_id: Any):
        """Row of ``table`` whose primary key equals ``record_id``, or None"""
        return self._format(self._find(table, record_id))

    def insert_one(self, table: str, values: Sequence[Any]) -> Any:
        """
        Insert one row given the values of every non-primary-key column

        Args:
            table: Table name
            values: Values in the table's declared column order, primary key excluded

        Returns:
            Primary key generated for the new row

        Raises:
            UnknownTable, ArityMismatch, ValidationFailed
        """
        self.connector.require_connection()
        row = self._positional_row(table, values)
        return self._insert(table, [row])

    def insert_rows(self, table: str, rows: Sequence[Mapping[str, Any]]) -> Any:
        """
        Insert several rows in one statement

        Every row must name the same columns. Returns the id the database
        reports as last inserted.
        """
        self.connector.require_connection()
        self.catalog.get_table(table)
        if not rows:
            raise MissingField("At least one row is required")

        fields = set(rows[0])
        for row in rows[1:]:
            if set(row) != fields:
                raise MissingField("Every row must have the same fields")
        return self._insert(table, [dict(row) for row in rows])

    def update_one(self, table: str, values: Sequence[Any], record_id: Any) -> int:
        """
        Replace every non-primary-key column of the row with id ``record_id``

        Raises:
            UnknownTable, MissingPrimaryKey, InvalidRecordId, RecordNotFound,
            ArityMismatch, ValidationFailed
        """
        self.connector.require_connection()
        primary_key = self._primary_key(table)
        self._check_record_id(record_id)
        row = self._positional_row(table, values)

        if self._find(table, record_id) is None:
            raise RecordNotFound(table, record_id)

        row = self._resolve_row(row)
        self._validate_or_raise(table, row)

        sql = build(QueryDescriptor(
            Method.UPDATE, table, fields=list(row), where=f"{primary_key} = :{primary_key}"
        ), self.dialect)
        return self.execute(sql, {**row, primary_key: record_id})

    def delete_one(self, table: str, record_id: Any) -> int:
        """Delete the row whose primary key equals ``record_id``"""
        self.connector.require_connection()
        primary_key = self._primary_key(table)
        self._check_record_id(record_id)

        sql = build(QueryDescriptor(
            Method.DELETE, table, where=f"{primary_key} = :{primary_key}"
        ), self.dialect)
        return self.execute(sql, {primary_key: record_id})

    # Descriptor-driven writes

    def update(self, table: str, data: Mapping[str, Any], where: Optional[str] = None,
               params: Optional[Mapping[str, Any]] = None,
               joins: Optional[List[str]] = None) -> int:
        """
        Set the columns in ``data`` on every row matching ``where``

        Without ``where`` every row of the table is updated.

        SET values are bound under their column names, so ``params`` may not
        reuse a name from ``data``.

        Raises:
            UnknownTable, MissingField, ValidationFailed
        """
        self.connector.require_connection()
        self.catalog.get_table(table)
        if not data:
            raise MissingField("Fields must be a non-empty list")

        shared = [name for name in data if name in (params or {})]
        if shared:
            raise MissingField(
                f"Parameters {shared} are both updated columns and condition values"
            )

        row = self._resolve_row(data)
        self._validate_or_raise(table, row)

        sql = build(QueryDescriptor(
            Method.UPDATE, table, fields=list(row), joins=list(joins or []), where=where
        ), self.dialect)
        return self.execute(sql, {**(params or {}), **row})

    def delete(self, table: str, where: Optional[str] = None,
               params: Optional[Mapping[str, Any]] = None,
               order_by: Optional[str] = None, limit: Any = None) -> int:
        """Delete the rows matching ``where``; returns the affected row count"""
        self.connector.require_connection()
        self.catalog.get_table(table)

        sql = build(QueryDescriptor(
            Method.DELETE, table, where=where, order_by=order_by, limit=limit
        ), self.dialect)
        return self.execute(sql, params)

    # Derived reads

    def simple_select(self, table: str):
        """
        Every plain column of ``table`` plus a display label for each foreign key

        Each foreign key is LEFT JOINed to its referenced table and that
        table's first plain column is selected in its place. When the
        referenced table has no such column the key itself is selected.
        """
        schema = self.catalog.get_table(table)

        fields = [f"{table}.{name}" for name in schema.columns
                  if schema.columns_by_name[name].key_role is KeyRole.NONE]
        joins = []
        used_aliases = {table}

        for column, referenced in schema.foreign_keys.items():
            label = None
            referenced_pk = None
            if self.catalog.has_table(referenced):
                label = self.catalog.first_non_key_column(referenced)
                referenced_pk = self.catalog.primary_key_of(referenced)

            if not label or not referenced_pk:
                fields.append(f"{table}.{column}")
                continue

            alias = referenced
            if alias in used_aliases:
                alias = f"{referenced}_{column}"
            used_aliases.add(alias)

            target = referenced if alias == referenced else f"{referenced} AS {alias}"
            joins.append(f"LEFT JOIN {target} ON {table}.{column} = {alias}.{referenced_pk}")
            fields.append(f"{alias}.{label} AS {column}_{label}")

        sql = build(QueryDescriptor(Method.SELECT, table, fields=fields, joins=joins),
                    self.dialect)
        return self.select(sql)

    def count_from_table(self, table: str, condition: Optional[str] = None,
                         params: Optional[Mapping[str, Any]] = None) -> int:
        """Number of rows in ``table``, optionally only those matching ``condition``"""
        self.catalog.get_table(table)
        sql = build(QueryDescriptor(
            Method.SELECT, table, fields=["COUNT(*) AS total"], where=condition
        ), self.dialect)
        rows = self._fetch(sql, params)
        return int(rows[0]['total']) if rows else 0

    # Transactions

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run the block inside one transaction

        Commits when the block finishes, rolls back and raises
        TransactionFailed when it raises. Transactions do not nest.
        """
        self.connector.require_connection()
        if self._in_transaction:
            raise TransactionFailed("a transaction is already open")

        try:
            self.connector.begin_transaction()
        except self.connector.driver_errors as e:
            raise TransactionFailed(f"could not begin: {e}") from e

        self._in_transaction = True
        try:
            yield self
            self.connector.commit_transaction()
        except TransactionFailed:
            self._rollback()
            raise
        except Exception as e:
            self._rollback()
            raise TransactionFailed(str(e)) from e
        finally:
            self._in_transaction = False

    def execute_transaction(self, statements: Sequence[Query],
                            params: Union[Mapping[str, Any],
                                          Sequence[Mapping[str, Any]], None] = None) -> bool:
        """
        Execute statements in order inside a single transaction

        Args:
            statements: SQL texts or descriptors
            params: One mapping shared by every statement, or one mapping per statement

        Returns:
            True once every statement ran and the transaction committed;
            False for an empty batch

        Raises:
            TransactionFailed: a statement failed and nothing was committed;
                ``statement_index`` names the failing statement
        """
        if not statements:
            return False

        if params is None or isinstance(params, Mapping):
            per_statement = [params] * len(statements)
        else:
            per_statement = list(params)
            if len(per_statement) != len(statements):
                raise MissingField("One parameter mapping is required per statement")

        with self.transaction():
            for index, (query, values) in enumerate(zip(statements, per_statement)):
                try:
                    self.execute(query, values)
                except DataAccessError as e:
                    raise TransactionFailed(
                        f"statement {index} failed: {e}", statement_index=index
                    ) from e

        logger.info(f"Committed transaction of {len(statements)} statements")
        return True

    def _rollback(self) -> None:
        try:
            self.connector.rollback_transaction()
            logger.warning("Transaction rolled back")
        except self.connector.driver_errors as e:
            logger.error(f"Rollback failed: {e}")

    # Helpers exposed to callers

    def validate(self, table: str, row: Mapping[str, Any]) -> ValidationResult:
        """Check ``row`` against the column metadata of ``table``"""
        return self.validator.validate(row, self.catalog.column_details_of(table))

    def last_insert_id(self) -> Optional[int]:
        """Id the connection reports for its most recent insert"""
        return self.connector.last_insert_id()

    # Internals

    def _to_sql(self, query: Query) -> str:
        if isinstance(query, str):
            return query
        return build(query, self.dialect)

    @contextmanager
    def _run(self, sql: str, params: Optional[Mapping[str, Any]]):
        values = self._bind_values(sql, params)
        statement = self.connector.prepare(sql)
        try:
            statement.execute(values)
            yield statement
        finally:
            statement.close()

    def _fetch(self, sql: str, params: Optional[Mapping[str, Any]]) -> Rows:
        with self._run(sql, params) as statement:
            return statement.fetch_rows()

    def _bind_values(self, sql: str, params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        # Only referenced names are bound; a missing one fails at bind time
        params = params or {}
        return {
            name: self._resolve(params[name])
            for name in parameter_names(sql, self.connector.backslash_escapes)
            if name in params
        }

    def _resolve(self, value: Any) -> Any:
        if isinstance(value, Keyword):
            return value.resolve(last_insert_id=self.connector.last_insert_id)
        return value

    def _resolve_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        return {column: self._resolve(value) for column, value in row.items()}

    def _format(self, result):
        if self.json_output:
            return json.dumps(result, default=str)
        return result

    def _positional_row(self, table: str, values: Sequence[Any]) -> Dict[str, Any]:
        columns = self.catalog.columns_of(table)
        if len(values) != len(columns):
            raise ArityMismatch(table, len(columns), len(values))
        return dict(zip(columns, values))

    def _primary_key(self, table: str) -> str:
        primary_key = self.catalog.primary_key_of(table)
        if not primary_key:
            raise MissingPrimaryKey(table)
        return primary_key

    @staticmethod
    def _check_record_id(record_id: Any) -> None:
        if not is_number(record_id):
            raise InvalidRecordId(record_id)

    def _validate_or_raise(self, table: str, row: Mapping[str, Any]) -> None:
        result = self.validate(table, row)
        if not result.ok:
            raise ValidationFailed(result.reason, result)

    def _find(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        self.connector.require_connection()
        primary_key = self._primary_key(table)
        self._check_record_id(record_id)

        sql = build(QueryDescriptor(
            Method.SELECT, table, where=f"{primary_key} = :{primary_key}", limit=1
        ), self.dialect)
        rows = self._fetch(sql, {primary_key: record_id})
        return rows[0] if rows else None

    def _insert(self, table: str, rows: List[Dict[str, Any]]) -> Any:
        rows = [self._resolve_row(row) for row in rows]
        for row in rows:
            self._validate_or_raise(table, {**row, **self._omitted_required(table, row)})

        fields = list(rows[0])
        sql = build(QueryDescriptor(
            Method.INSERT, table, fields=fields, row_count=len(rows)
        ), self.dialect)
        values = insert_parameters(fields, rows)

        if not self.connector.returns_inserted_keys:
            self.execute(sql, values)
            record_id = self.connector.last_insert_id()
        else:
            record_id = self._insert_returning(table, sql, values)
        logger.debug(f"Inserted {len(rows)} rows into {table}, last id {record_id}",
                     extra={'table': table})
        return record_id

    def _omitted_required(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        # Non-nullable columns left out of an insert are checked as empty
        details = self.catalog.column_details_of(table)
        return {
            name: None for name in self.catalog.columns_of(table)
            if name not in row and not details[name].nullable
        }

    def _insert_returning(self, table: str, sql: str, values: Mapping[str, Any]) -> Any:
        # Tables without a primary key have no generated id to report
        primary_key = self.catalog.primary_key_of(table)
        if not primary_key:
            self.execute(sql, values)
            return None

        returned = self._fetch(self.connector.insert_returning(sql, primary_key), values)
        return returned[-1][primary_key] if returned else None
