"""
Advisory checks of row values against column metadata
"""
import logging
import re
from datetime import date, time
from decimal import Decimal
from typing import Any, Mapping

from schema_crud.core.config import TypeFamilies
from schema_crud.models.schema import ColumnSchema
from schema_crud.models.validation import ValidationResult, Violation
from schema_crud.utils.type_parsing import (
    is_precision_scale, matches_mask, parse_max_length, split_raw_type
)

logger = logging.getLogger(__name__)

INTEGER_TYPES = frozenset({
    'int', 'integer', 'bigint', 'smallint', 'tinyint', 'mediumint', 'int2', 'int4', 'int8'
})

TEMPORAL_MASKS = {
    'date': ('YYYY-MM-DD',),
    'time': ('hh:mm', 'hh:mm:ss'),
    'datetime': ('YYYY-MM-DD hh:mm:ss',),
    'timestamp': ('YYYY-MM-DD hh:mm:ss',),
}

_NUMBER = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$')


def is_empty(value: Any) -> bool:
    """None, empty text and empty collections; zero is a value"""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    return isinstance(value, str) and _NUMBER.match(value) is not None


class ConstraintValidator:
    """Validates rows against ColumnSchema metadata, stopping at the first failure"""

    def __init__(self, type_families: TypeFamilies):
        self.type_families = type_families

    def validate(self, row: Mapping[str, Any],
                 schema: Mapping[str, ColumnSchema]) -> ValidationResult:
        """
        Check every field of ``row`` in iteration order

        Args:
            row: Column name -> proposed value
            schema: Column name -> column metadata

        Returns:
            ValidationResult for the first failing field, or a passing one
        """
        for column_name, value in row.items():
            column = schema.get(column_name)
            if column is None:
                return ValidationResult.failed(
                    column_name, Violation.UNKNOWN_COLUMN,
                    f"Field {column_name} is not a column of this table"
                )

            result = self._validate_field(column, value)
            if not result.ok:
                logger.debug(f"Validation failed: {result.reason}")
                return result

        return ValidationResult.passed()

    def _validate_field(self, column: ColumnSchema, value: Any) -> ValidationResult:
        name = column.name
        type_name, length_text = split_raw_type(column.raw_type)

        if length_text and not length_text.isdigit() and not is_precision_scale(length_text):
            return ValidationResult.failed(
                name, Violation.INVALID_SCHEMA,
                f"Length of field {name} in {column.raw_type} must be numeric"
            )
        max_length = parse_max_length(length_text)

        if is_empty(value):
            if column.nullable:
                return ValidationResult.passed()
            return ValidationResult.failed(
                name, Violation.NOT_NULL, f"Field {name} cannot be empty"
            )

        if max_length and len(str(value)) > max_length:
            return ValidationResult.failed(
                name, Violation.LENGTH_EXCEEDED,
                f"Field {name} exceeds the maximum length of {max_length} characters"
            )

        family = self.type_families.family_of(type_name)

        if family == 'text':
            if not isinstance(value, str):
                return ValidationResult.failed(
                    name, Violation.TYPE_MISMATCH, f"Field {name} was expected to be text"
                )

        elif family == 'numeric':
            if not is_number(value):
                return ValidationResult.failed(
                    name, Violation.TYPE_MISMATCH, f"Field {name} was expected to be a number"
                )
            if type_name in INTEGER_TYPES and '.' in str(value):
                return ValidationResult.failed(
                    name, Violation.TYPE_MISMATCH, f"Field {name} cannot have decimals"
                )

        elif family == 'temporal':
            if not self._matches_temporal(type_name, value):
                return ValidationResult.failed(
                    name, Violation.TYPE_MISMATCH,
                    f"Field {name} does not match the {type_name} format"
                )

        return ValidationResult.passed()

    @staticmethod
    def _matches_temporal(type_name: str, value: Any) -> bool:
        if isinstance(value, (date, time)):
            return True
        masks = TEMPORAL_MASKS.get(type_name)
        if masks is None:
            return True
        if not isinstance(value, str):
            return False
        return any(matches_mask(value, mask) for mask in masks)
