"""
Data models for schema representation
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from schema_crud.utils.type_parsing import parse_max_length, split_raw_type


class KeyRole(Enum):
    """Role a column plays in its table's keys"""
    NONE = "none"
    PRIMARY = "primary"
    FOREIGN = "foreign"


@dataclass(frozen=True)
class ColumnSchema:
    """Column metadata as loaded from the database"""
    name: str
    raw_type: str
    type_name: str
    max_length: int = 0
    nullable: bool = True
    key_role: KeyRole = KeyRole.NONE

    @classmethod
    def from_raw(cls, name: str, raw_type: str, nullable: bool = True,
                 key_role: KeyRole = KeyRole.NONE) -> "ColumnSchema":
        """Build a column, deriving type name and max length from ``raw_type``"""
        type_name, length_text = split_raw_type(raw_type)
        return cls(
            name=name,
            raw_type=raw_type,
            type_name=type_name,
            max_length=parse_max_length(length_text),
            nullable=nullable,
            key_role=key_role
        )

    @property
    def is_primary_key(self) -> bool:
        return self.key_role is KeyRole.PRIMARY

    @property
    def is_foreign_key(self) -> bool:
        return self.key_role is KeyRole.FOREIGN

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'name': self.name,
            'raw_type': self.raw_type,
            'type_name': self.type_name,
            'max_length': self.max_length,
            'nullable': self.nullable,
            'key_role': self.key_role.value
        }


@dataclass
class TableSchema:
    """Table schema definition"""
    name: str
    columns: List[str] = field(default_factory=list)
    columns_by_name: Dict[str, ColumnSchema] = field(default_factory=dict)
    primary_key: Optional[str] = None
    foreign_keys: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_columns(cls, name: str, columns: List[ColumnSchema],
                     foreign_keys: Optional[Dict[str, str]] = None) -> "TableSchema":
        """
        Assemble a table from its columns in declared order

        The first primary-key column found becomes ``primary_key``; the
        ``columns`` list keeps every other column name in order.
        """
        primary_key = next((col.name for col in columns if col.is_primary_key), None)
        return cls(
            name=name,
            columns=[col.name for col in columns if col.name != primary_key],
            columns_by_name={col.name: col for col in columns},
            primary_key=primary_key,
            foreign_keys=dict(foreign_keys or {})
        )

    def get_column(self, name: str) -> Optional[ColumnSchema]:
        """Get column by name"""
        return self.columns_by_name.get(name)

    def first_non_key_column(self) -> Optional[str]:
        """First column, in declared order, that is neither primary nor foreign key"""
        for column in self.columns_by_name.values():
            if column.key_role is KeyRole.NONE:
                return column.name
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'name': self.name,
            'columns': [col.to_dict() for col in self.columns_by_name.values()],
            'primary_key': self.primary_key,
            'foreign_keys': dict(self.foreign_keys)
        }
