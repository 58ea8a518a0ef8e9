"""Results of expression input type checks.

A check either succeeds or reports a DataTypeMismatch with an error subclass
and message parameters, so callers can give precise diagnostics without
parsing message text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from csvexpr.contracts.enums import TypeMismatchKind

if TYPE_CHECKING:
    from csvexpr.contracts.errors import DataTypeMismatchError


@dataclass(frozen=True)
class TypeCheckResult:
    """Outcome of ``check_input_data_types()``."""

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return not self.is_success


@dataclass(frozen=True)
class TypeCheckSuccess(TypeCheckResult):
    pass


@dataclass(frozen=True)
class DataTypeMismatch(TypeCheckResult):
    """Input type check failure.

    Attributes:
        error_subclass: Which contract was violated
        message_parameters: Names and values used to render the message
    """

    error_subclass: TypeMismatchKind
    message_parameters: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return False

    def to_error(self, expression_sql: str) -> DataTypeMismatchError:
        """Build the analysis error raised for this mismatch."""
        from csvexpr.contracts.errors import DataTypeMismatchError

        return DataTypeMismatchError(self, expression_sql)


TYPE_CHECK_SUCCESS = TypeCheckSuccess()
