"""
Declarative description of a single query
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Method(Enum):
    """Statement kinds the query builder understands"""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class QueryDescriptor:
    """
    Shape of one query: method, table and the optional clauses.

    Which fields matter depends on ``method``:

    - SELECT: fields, joins, where, group_by, having, order_by, limit, offset
    - INSERT: fields, row_count
    - UPDATE: fields, joins, where
    - DELETE: where, order_by, limit

    ``method`` may also be given as a string; it is resolved when the
    descriptor is built into SQL.
    """
    method: Union[Method, str, None]
    table: Optional[str] = None
    fields: List[str] = field(default_factory=list)
    joins: List[str] = field(default_factory=list)
    where: Optional[str] = None
    group_by: Optional[str] = None
    having: Optional[str] = None
    order_by: Optional[str] = None
    limit: Any = None
    offset: Any = None
    row_count: Any = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryDescriptor":
        """
        Build a descriptor from its dictionary form

        ``values_to_insert`` is accepted as an alias of ``row_count``.
        """
        row_count = data.get('row_count', data.get('values_to_insert', 1))
        return cls(
            method=data.get('method'),
            table=data.get('table'),
            fields=list(data.get('fields') or []),
            joins=list(data.get('joins') or []),
            where=data.get('where'),
            group_by=data.get('group_by'),
            having=data.get('having'),
            order_by=data.get('order_by'),
            limit=data.get('limit'),
            offset=data.get('offset'),
            row_count=row_count
        )

    def paginate(self, page_number: int, step: int) -> "QueryDescriptor":
        """
        Copy of this descriptor limited to one page of ``step`` rows

        Pages are numbered from 1: page 1 with step 100 covers rows 0-99.
        """
        if page_number < 1 or step < 1:
            raise ValueError("Page number and step must be positive")
        return replace(self, limit=step, offset=(page_number - 1) * step)
