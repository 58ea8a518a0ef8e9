# src/csvexpr/codec/inference.py
"""Schema inference from sample delimited text.

Each token is tried against progressively wider types, starting from the
type inferred so far for its column, and the result is merged with that
type. Columns that only ever saw nulls end up as STRING.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import structlog

from csvexpr.codec.parser import iter_records, parse_boolean, parse_double, parse_integral, tokenize_record
from csvexpr.contracts.types import (
    MAX_DECIMAL_PRECISION,
    BooleanType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    IntegerType,
    LongType,
    NullType,
    StringType,
    StructField,
    StructType,
    TimestampType,
)
from csvexpr.core.options import CsvOptions

logger = structlog.get_logger(__name__)

_INTEGER = IntegerType()
_LONG = LongType()
_DOUBLE = DoubleType()
_DATE = DateType()
_TIMESTAMP = TimestampType()
_BOOLEAN = BooleanType()
_STRING = StringType()
_NULL = NullType()

# Decimal widths needed to hold every value of an integral type
_INTEGRAL_AS_DECIMAL = {IntegerType: DecimalType(10, 0), LongType: DecimalType(20, 0)}


def _decimal_of(token: str) -> DecimalType | None:
    """Smallest decimal type holding ``token`` exactly, or None."""
    if "_" in token:
        return None
    try:
        value = Decimal(token)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    digits = value.as_tuple().digits
    precision = len(digits)
    scale = -int(value.as_tuple().exponent)
    if scale < 0:
        precision -= scale
        scale = 0
    precision = max(precision, scale)
    if precision > MAX_DECIMAL_PRECISION:
        return None
    return DecimalType(precision, scale)


def compatible_type(t1: DataType, t2: DataType) -> DataType | None:
    """Narrowest type both ``t1`` and ``t2`` widen to, or None."""
    if t1 == t2:
        return t1
    if isinstance(t1, NullType):
        return t2
    if isinstance(t2, NullType):
        return t1

    pair = {type(t1), type(t2)}
    if pair == {IntegerType, LongType}:
        return _LONG
    if pair <= {IntegerType, LongType, DoubleType}:
        return _DOUBLE
    if pair == {DateType, TimestampType}:
        return _TIMESTAMP
    if pair == {DoubleType, DecimalType}:
        return _DOUBLE

    if isinstance(t1, DecimalType) or isinstance(t2, DecimalType):
        d1 = _INTEGRAL_AS_DECIMAL.get(type(t1), t1)
        d2 = _INTEGRAL_AS_DECIMAL.get(type(t2), t2)
        if isinstance(d1, DecimalType) and isinstance(d2, DecimalType):
            scale = max(d1.scale, d2.scale)
            integer_digits = max(d1.precision - d1.scale, d2.precision - d2.scale)
            if integer_digits + scale > MAX_DECIMAL_PRECISION:
                return _DOUBLE
            return DecimalType(integer_digits + scale, scale)
    return None


class CsvInferSchema:
    """Per-token type inference driven by CSV options."""

    def __init__(self, options: CsvOptions) -> None:
        self._options = options
        self._date_reader = options.date_reader()
        self._timestamp_reader = options.timestamp_reader()
        self._zone = options.zone

    def infer_field(self, type_so_far: DataType, token: str | None) -> DataType:
        """Widen ``type_so_far`` to accommodate ``token``."""
        if token is None or token == "" or token == self._options.null_value:
            return type_so_far

        if isinstance(type_so_far, (NullType, IntegerType)):
            inferred = self._try_integer(token)
        elif isinstance(type_so_far, LongType):
            inferred = self._try_long(token)
        elif isinstance(type_so_far, DecimalType):
            inferred = self._try_decimal(token)
        elif isinstance(type_so_far, DoubleType):
            inferred = self._try_double(token)
        elif isinstance(type_so_far, DateType):
            inferred = self._try_date(token)
        elif isinstance(type_so_far, TimestampType):
            inferred = self._try_timestamp(token)
        elif isinstance(type_so_far, BooleanType):
            inferred = self._try_boolean(token)
        else:
            inferred = _STRING
        return compatible_type(type_so_far, inferred) or _STRING

    def _try_integer(self, token: str) -> DataType:
        try:
            parse_integral(token, _INTEGER)
        except ValueError:
            return self._try_long(token)
        return _INTEGER

    def _try_long(self, token: str) -> DataType:
        try:
            parse_integral(token, _LONG)
        except ValueError:
            return self._try_decimal(token)
        return _LONG

    def _try_decimal(self, token: str) -> DataType:
        if self._options.prefers_decimal:
            decimal_type = _decimal_of(token)
            if decimal_type is not None:
                return decimal_type
        return self._try_double(token)

    def _try_double(self, token: str) -> DataType:
        try:
            parse_double(token, self._options)
        except ValueError:
            return self._try_date(token)
        return _DOUBLE

    def _try_date(self, token: str) -> DataType:
        if self._options.prefers_date:
            try:
                self._date_reader.parse_date(token)
            except (ValueError, ArithmeticError):
                pass
            else:
                return _DATE
        return self._try_timestamp(token)

    def _try_timestamp(self, token: str) -> DataType:
        try:
            self._timestamp_reader.parse_timestamp(token, self._zone)
        except (ValueError, ArithmeticError):
            return self._try_boolean(token)
        return _TIMESTAMP

    def _try_boolean(self, token: str) -> DataType:
        try:
            parse_boolean(token)
        except ValueError:
            return _STRING
        return _BOOLEAN

    def infer_row(self, row_so_far: list[DataType], tokens: list[str]) -> list[DataType]:
        """Fold one record's tokens into the per-column types.

        Columns seen for the first time start from VOID.
        """
        widened = list(row_so_far) + [_NULL] * (len(tokens) - len(row_so_far))
        for i, token in enumerate(tokens):
            widened[i] = self.infer_field(widened[i], token)
        return widened

    @staticmethod
    def to_schema(column_types: list[DataType]) -> StructType:
        return StructType(
            StructField(f"_c{i}", _STRING if isinstance(t, NullType) else t, nullable=True)
            for i, t in enumerate(column_types)
        )

    def infer(self, text: str) -> StructType:
        """Infer a schema across every record in ``text``.

        Raises:
            csv.Error: If a record is not valid delimited text.
        """
        column_types: list[DataType] = []
        for record in iter_records(text, self._options):
            tokens = tokenize_record(record, self._options)
            if tokens is not None:
                column_types = self.infer_row(column_types, tokens)
        return self.to_schema(column_types)


class SchemaOfCsvEvaluator:
    """Infer the schema of a single sample record and render it as SQL text.

    Example:
        >>> SchemaOfCsvEvaluator(options).evaluate("1,abc")
        'STRUCT<_c0: INT, _c1: STRING>'
    """

    def __init__(self, options: CsvOptions) -> None:
        self._options = options
        self._infer = CsvInferSchema(options)

    def evaluate(self, text: str) -> str:
        """Schema of the first record in ``text``.

        Empty or blank input has one column of unknown type, which becomes
        STRING.

        Raises:
            csv.Error: If the record is not valid delimited text.
        """
        tokens: list[str] = [""]
        for record in iter_records(text, self._options):
            parsed = tokenize_record(record, self._options)
            if parsed is not None:
                tokens = parsed
                break
        schema = CsvInferSchema.to_schema(self._infer.infer_row([], tokens))
        logger.debug("csv_schema_inferred", columns=len(schema))
        return schema.sql

