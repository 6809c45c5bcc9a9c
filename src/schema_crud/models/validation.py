"""
Outcome of a constraint validation pass
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Violation(Enum):
    """Kinds of constraint failures the validator reports"""
    UNKNOWN_COLUMN = "unknown_column"
    INVALID_SCHEMA = "invalid_schema"
    NOT_NULL = "not_null_violation"
    LENGTH_EXCEEDED = "length_exceeded"
    TYPE_MISMATCH = "type_mismatch"


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating one row; ``reason`` is set only when not ok"""
    ok: bool
    reason: str = ""
    column: Optional[str] = None
    violation: Optional[Violation] = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, column: str, violation: Violation, reason: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, column=column, violation=violation)

    def __bool__(self) -> bool:
        return self.ok
