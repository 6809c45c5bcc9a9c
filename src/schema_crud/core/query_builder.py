"""
SQL text generation from query descriptors

Nothing here touches a connection or the schema catalog; every function
maps a QueryDescriptor to a SQL string with ``:name`` placeholders.
"""
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from schema_crud.core.exceptions import MissingField, UnsupportedMethod
from schema_crud.models.descriptor import Method, QueryDescriptor

logger = logging.getLogger(__name__)


class Dialect(Enum):
    """SQL flavours whose syntax differs in what the builder emits"""
    GENERIC = "generic"
    SQLSERVER = "sqlserver"


def build(descriptor: Union[QueryDescriptor, Mapping[str, Any]],
          dialect: Dialect = Dialect.GENERIC) -> str:
    """
    Build the SQL statement a descriptor describes

    Args:
        descriptor: QueryDescriptor or its dictionary form
        dialect: Target SQL flavour

    Returns:
        SQL text with named ``:param`` placeholders

    Raises:
        UnsupportedMethod: method missing or not SELECT/INSERT/UPDATE/DELETE
        MissingField: table missing, or fields missing for INSERT/UPDATE
    """
    if isinstance(descriptor, Mapping):
        descriptor = QueryDescriptor.from_dict(dict(descriptor))

    method = resolve_method(descriptor.method)
    if not descriptor.table:
        raise MissingField("Table is required")

    builders = {
        Method.SELECT: _build_select,
        Method.INSERT: _build_insert,
        Method.UPDATE: _build_update,
        Method.DELETE: _build_delete,
    }
    sql = builders[method](descriptor, dialect)
    logger.debug(f"Built {method.value} for {descriptor.table}: {sql}")
    return sql


def resolve_method(method: Union[Method, str, None]) -> Method:
    """Map a Method or its (case-insensitive) name to a Method member"""
    if isinstance(method, Method):
        return method
    if not method:
        raise UnsupportedMethod("Query method is required")
    try:
        return Method(str(method).strip().upper())
    except ValueError:
        raise UnsupportedMethod(f"Unsupported query method: {method}") from None


def as_count(value: Any) -> Optional[int]:
    """
    Read a limit/offset/row count as a non-negative integer

    Anything that is not a non-negative integer (or its decimal string)
    gives None, which means "leave the clause out".
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return None


def _build_select(descriptor: QueryDescriptor, dialect: Dialect) -> str:
    fields = ', '.join(descriptor.fields) if descriptor.fields else '*'
    parts = [f"SELECT {fields} FROM {descriptor.table}"]
    parts.extend(join for join in descriptor.joins if join)

    if descriptor.where:
        parts.append(f"WHERE {descriptor.where}")
    if descriptor.group_by:
        parts.append(f"GROUP BY {descriptor.group_by}")
    if descriptor.having:
        parts.append(f"HAVING {descriptor.having}")

    # 0 counts as "not given" for both clauses
    limit = as_count(descriptor.limit) or None
    offset = as_count(descriptor.offset) or None

    if dialect is Dialect.SQLSERVER and (limit or offset):
        parts.append(f"ORDER BY {descriptor.order_by or '(SELECT NULL)'}")
        parts.append(f"OFFSET {offset or 0} ROWS")
        if limit:
            parts.append(f"FETCH NEXT {limit} ROWS ONLY")
        return ' '.join(parts)

    if descriptor.order_by:
        parts.append(f"ORDER BY {descriptor.order_by}")
    if limit:
        parts.append(f"LIMIT {limit}")
    if offset:
        parts.append(f"OFFSET {offset}")

    return ' '.join(parts)


def _build_insert(descriptor: QueryDescriptor, dialect: Dialect) -> str:
    if not descriptor.fields:
        raise MissingField("Fields must be a non-empty list")

    row_count = as_count(descriptor.row_count)
    if row_count is None:
        row_count = 1
    if row_count == 0:
        raise MissingField("An INSERT needs at least one row")

    tuples = []
    for index in range(row_count):
        placeholders = ', '.join(f":{field}_{index}" for field in descriptor.fields)
        tuples.append(f"({placeholders})")

    fields = ', '.join(descriptor.fields)
    return f"INSERT INTO {descriptor.table} ({fields}) VALUES {', '.join(tuples)}"


def _build_update(descriptor: QueryDescriptor, dialect: Dialect) -> str:
    if not descriptor.fields:
        raise MissingField("Fields must be a non-empty list")

    assignments = ', '.join(f"{field} = :{field}" for field in descriptor.fields)
    parts = [f"UPDATE {descriptor.table} SET {assignments}"]
    parts.extend(join for join in descriptor.joins if join)
    if descriptor.where:
        parts.append(f"WHERE {descriptor.where}")

    return ' '.join(parts)


def _build_delete(descriptor: QueryDescriptor, dialect: Dialect) -> str:
    parts = [f"DELETE FROM {descriptor.table}"]
    if descriptor.where:
        parts.append(f"WHERE {descriptor.where}")
    if descriptor.order_by:
        parts.append(f"ORDER BY {descriptor.order_by}")

    limit = as_count(descriptor.limit)
    if limit:
        parts.append(f"LIMIT {limit}")

    return ' '.join(parts)


def insert_parameters(fields, rows) -> Dict[str, Any]:
    """
    Parameter mapping for a multi-row INSERT built with the same fields

    Row ``i`` binds its value for ``field`` to ``field_i``.
    """
    params = {}
    for index, row in enumerate(rows):
        for field in fields:
            params[f"{field}_{index}"] = row[field]
    return params
