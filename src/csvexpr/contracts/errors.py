"""Exception hierarchy for the CSV codec.

Errors fall into four groups:

- Analysis errors: raised while binding an expression (bad options, bad
  schema, unsupported types). They surface before any row is processed.
- MalformedRecordError: a record could not be parsed under FAILFAST.
- InternalCodecError: an internal invariant was broken. Never a user error.
- BadRecordError: internal signal from the raw parser to the failure-safe
  layer. It does not escape the codec.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from csvexpr.contracts.type_check import DataTypeMismatch


class CsvExpressionError(Exception):
    """Base class for all codec errors."""


# =============================================================================
# Analysis (bind-time) errors
# =============================================================================


class AnalysisError(CsvExpressionError):
    """Raised when an expression cannot be bound.

    Attributes:
        error_class: Stable identifier, e.g. "INVALID_SCHEMA.PARSE_ERROR"
        message_parameters: Values referenced by the message
    """

    error_class: str = "ANALYSIS_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_class: str | None = None,
        message_parameters: dict[str, str] | None = None,
    ) -> None:
        if error_class is not None:
            self.error_class = error_class
        self.message_parameters = dict(message_parameters or {})
        super().__init__(f"[{self.error_class}] {message}")


class ParseModeUnsupportedError(AnalysisError):
    """The requested parse mode cannot be used by this function."""

    error_class = "PARSE_MODE_UNSUPPORTED"

    def __init__(self, function_name: str, mode: str) -> None:
        super().__init__(
            f"The function {function_name} doesn't support the {mode} mode. Acceptable modes are PERMISSIVE and FAILFAST.",
            message_parameters={"funcName": function_name, "mode": mode},
        )


class CorruptRecordColumnError(AnalysisError):
    """The corrupt-record column is missing from the schema or not a nullable string."""

    error_class = "INVALID_CORRUPT_RECORD_TYPE"


class InvalidSchemaError(AnalysisError):
    error_class = "INVALID_SCHEMA"


class InvalidOptionsError(AnalysisError):
    error_class = "INVALID_OPTIONS"


class UnsupportedDataTypeError(AnalysisError):
    """A schema contains a type the codec cannot read or write."""

    error_class = "UNSUPPORTED_DATA_TYPE"

    def __init__(self, data_type_sql: str, format_name: str = "CSV") -> None:
        super().__init__(
            f"The {format_name} datasource doesn't support the column of the type {data_type_sql}.",
            message_parameters={"columnType": data_type_sql, "format": format_name},
        )


class DataTypeMismatchError(AnalysisError):
    """Input type check failed. Wraps a DataTypeMismatch result."""

    error_class = "DATATYPE_MISMATCH"

    def __init__(self, mismatch: DataTypeMismatch, expression_sql: str) -> None:
        self.mismatch = mismatch
        self.expression_sql = expression_sql
        params = ", ".join(f"{k}={v}" for k, v in mismatch.message_parameters.items())
        super().__init__(
            f"Cannot resolve {expression_sql} due to data type mismatch ({params}).",
            error_class=f"DATATYPE_MISMATCH.{mismatch.error_subclass.value}",
            message_parameters=mismatch.message_parameters,
        )


# =============================================================================
# Row-level errors
# =============================================================================


class MalformedRecordError(CsvExpressionError):
    """A record could not be parsed and the parse mode is FAILFAST.

    Terminal for the enclosing operation. The original cause is chained via
    __cause__.

    Attributes:
        record: The raw input text
    """

    def __init__(self, record: str, *, preview_length: int = 256) -> None:
        self.record = record
        preview = record if len(record) <= preview_length else record[:preview_length] + "..."
        super().__init__(f"Malformed records are detected in record parsing: {preview!r}. Parse Mode: FAILFAST.")


class InternalCodecError(CsvExpressionError):
    """An internal invariant was violated. Indicates codec misuse, not bad input."""


class BadRecordError(Exception):
    """Raised by the raw parser when a record is malformed.

    Carries whatever could be salvaged so the failure-safe layer can decide
    what to emit.

    Attributes:
        record: The raw record text
        partial_results: Partially converted rows (may contain None for rows
                         that could not be salvaged at all)
        cause: The underlying conversion or tokenization error
    """

    def __init__(self, record: str, partial_results: list[tuple[Any, ...] | None], cause: Exception) -> None:
        self.record = record
        self.partial_results = partial_results
        self.cause = cause
        super().__init__(str(cause))
