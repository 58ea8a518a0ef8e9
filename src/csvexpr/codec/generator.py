# src/csvexpr/codec/generator.py
"""Row to text writer.

Renders one row per call through csv.writer. The writer owns a single
in-memory buffer that is reset before every row; call close() when the
owning expression is discarded.
"""

from __future__ import annotations

import csv
import io
import math
from collections.abc import Callable
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Any

import structlog

from csvexpr.codec.type_support import is_supported_data_type
from csvexpr.contracts.errors import UnsupportedDataTypeError
from csvexpr.contracts.rows import Row
from csvexpr.contracts.types import (
    ArrayType,
    BinaryType,
    BooleanType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    MapType,
    StructType,
    TimestampNTZType,
    TimestampType,
    UserDefinedType,
)
from csvexpr.core.options import CsvOptions

logger = structlog.get_logger(__name__)

ValueWriter = Callable[[Any], str]


def format_double(value: float, nan: str = "NaN", positive_inf: str = "Infinity", negative_inf: str = "-Infinity") -> str:
    if math.isnan(value):
        return nan
    if math.isinf(value):
        return positive_inf if value > 0 else negative_inf
    return repr(float(value))


def format_decimal(value: Decimal) -> str:
    return format(value, "f")


def format_boolean(value: bool) -> str:
    return "true" if value else "false"


def _format_cast_timestamp(value: datetime) -> str:
    text = value.strftime("%Y-%m-%d %H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text


def _cast_to_string(value: Any, data_type: DataType, zone: tzinfo) -> str:
    """Render a nested value the way a SQL string cast would."""
    if value is None:
        return "null"
    if isinstance(data_type, UserDefinedType):
        return _cast_to_string(value, data_type.sql_type, zone)
    if isinstance(data_type, ArrayType):
        return "[" + ", ".join(_cast_to_string(v, data_type.element_type, zone) for v in value) + "]"
    if isinstance(data_type, MapType):
        entries = (
            f"{_cast_to_string(k, data_type.key_type, zone)} -> {_cast_to_string(v, data_type.value_type, zone)}"
            for k, v in value.items()
        )
        return "{" + ", ".join(entries) + "}"
    if isinstance(data_type, StructType):
        return "{" + ", ".join(_cast_to_string(v, f.data_type, zone) for v, f in zip(value, data_type, strict=True)) + "}"
    if isinstance(data_type, BooleanType):
        return format_boolean(value)
    if isinstance(data_type, (FloatType, DoubleType)):
        return format_double(value)
    if isinstance(data_type, DecimalType):
        return format_decimal(value)
    if isinstance(data_type, BinaryType):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(data_type, TimestampType):
        return _format_cast_timestamp(_in_zone(value, zone))
    if isinstance(data_type, TimestampNTZType):
        return _format_cast_timestamp(value)
    if isinstance(data_type, DateType):
        return value.isoformat() if isinstance(value, date) else str(value)
    return str(value)


def _in_zone(value: datetime, zone: tzinfo) -> datetime:
    # Naive instants are taken to be in the session zone already
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def _escape_quoted(line: str, quote: str, escape: str) -> str:
    """Turn csv.writer's doubled quotes into escaped ones.

    Only quoted values change: a doubled quote becomes escape + quote and an
    escape character is itself escaped. csv.writer quotes every value that
    holds a quote, so unquoted values never contain one and pass through.
    """
    if quote not in line:
        return line
    out: list[str] = []
    quoted = False
    i = 0
    while i < len(line):
        c = line[i]
        if not quoted:
            quoted = c == quote
        elif c == quote:
            if line[i + 1 : i + 2] == quote:
                out.append(escape + quote)
                i += 2
                continue
            quoted = False
        elif c == escape:
            c = escape * 2
        out.append(c)
        i += 1
    return "".join(out)


class CsvGenerator:
    """Write rows of ``schema`` as delimited text records.

    Raises:
        UnsupportedDataTypeError: If any field type cannot be encoded.
    """

    def __init__(self, schema: StructType, options: CsvOptions) -> None:
        for f in schema:
            if not is_supported_data_type(f.data_type):
                raise UnsupportedDataTypeError(f.data_type.sql)
        self._schema = schema
        self._options = options
        self._zone = options.zone
        self._date_writer = options.date_writer()
        self._timestamp_writer = options.timestamp_writer()
        self._timestamp_ntz_writer = options.timestamp_ntz_writer()
        self._writers = tuple(self._make_writer(f.data_type) for f in schema)

        self._buffer: io.StringIO | None = io.StringIO()
        self._writer = csv.writer(self._buffer, **options.writer_dialect())
        # (quote, escape) when quotes in quoted values are escaped rather than doubled
        self._quote_escape: tuple[str, str] | None = None
        if options.escapes_quotes_with_escape and options.quote is not None and options.escape is not None:
            self._quote_escape = (options.quote, options.escape)
        logger.debug("csv_generator_built", fields=len(schema))

    @property
    def schema(self) -> StructType:
        return self._schema

    def _make_writer(self, data_type: DataType) -> ValueWriter:
        options = self._options
        zone = self._zone

        if isinstance(data_type, UserDefinedType):
            return self._make_writer(data_type.sql_type)
        if isinstance(data_type, BooleanType):
            return format_boolean
        if isinstance(data_type, (FloatType, DoubleType)):
            return lambda v: format_double(v, options.nan_value, options.positive_inf, options.negative_inf)
        if isinstance(data_type, DecimalType):
            return format_decimal
        if isinstance(data_type, BinaryType):
            return lambda v: bytes(v).decode("utf-8", errors="replace")
        if isinstance(data_type, DateType):
            return self._date_writer.format
        if isinstance(data_type, TimestampType):
            ts_writer = self._timestamp_writer
            return lambda v: ts_writer.format(_in_zone(v, zone))
        if isinstance(data_type, TimestampNTZType):
            return self._timestamp_ntz_writer.format
        if isinstance(data_type, (ArrayType, MapType, StructType)):
            return lambda v: _cast_to_string(v, data_type, zone)
        return str

    def _render(self, row: Row) -> list[str]:
        options = self._options
        values: list[str] = []
        for value, write in zip(row, self._writers, strict=True):
            if value is None:
                values.append(options.null_value)
                continue
            text = write(value)
            if options.ignore_leading_white_space_in_write:
                text = text.lstrip()
            if options.ignore_trailing_white_space_in_write:
                text = text.rstrip()
            values.append(text)
        return values

    def write_to_string(self, row: Row) -> str:
        """Render one row as a single record, without a line terminator.

        Raises:
            ValueError: If the row's width doesn't match the schema, or the
                writer has been closed.
            csv.Error: If quoting is disabled, a value needs escaping and no
                escape is configured.
        """
        if self._buffer is None:
            raise ValueError("CsvGenerator is closed")
        if len(row) != len(self._schema):
            raise ValueError(f"Row has {len(row)} values but schema has {len(self._schema)} fields")

        values = self._render(row)
        self._buffer.seek(0)
        self._buffer.truncate()
        self._writer.writerow(values)
        text = self._buffer.getvalue()
        if text.endswith("\n"):
            text = text[:-1]
        if self._quote_escape is not None:
            text = _escape_quoted(text, *self._quote_escape)
        # csv.writer quotes a lone empty field so the line isn't blank
        if len(values) == 1 and values[0] == "" and not self._options.quote_all:
            return ""
        return text

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
            self._buffer = None

    @property
    def closed(self) -> bool:
        return self._buffer is None
