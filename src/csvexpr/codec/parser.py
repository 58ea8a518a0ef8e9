# src/csvexpr/codec/parser.py
"""Raw CSV record parser.

Turns text into typed rows using csv.reader for tokenization. The parser
knows nothing about parse modes: a record that cannot be converted is
reported as a BadRecordError carrying the partially converted row, and the
failure-safe layer decides what to do with it.

Conversion policy for a malformed record:
- A token that cannot be converted leaves its field null; the remaining
  fields are still converted.
- A record with too few tokens is padded with nulls, one with too many is
  truncated; either way the record is reported as malformed.
"""

from __future__ import annotations

import csv
import math
import re
from collections.abc import Callable, Iterator
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from csvexpr.codec.type_support import verify_readable_schema
from csvexpr.contracts.errors import BadRecordError, InternalCodecError, UnsupportedDataTypeError
from csvexpr.contracts.rows import Row
from csvexpr.contracts.types import (
    INTEGRAL_RANGES,
    BinaryType,
    BooleanType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    NullType,
    StringType,
    StructType,
    TimestampNTZType,
    TimestampType,
    UserDefinedType,
)
from csvexpr.core.options import CsvOptions

logger = structlog.get_logger(__name__)

Converter = Callable[[str | None], Any]

_INTEGER_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")
_FLOAT_PATTERN = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$")

# Noncharacters used to hide CR/LF from csv.reader, which always treats
# them as record terminators in unquoted fields.
_MASK_CANDIDATES = tuple(chr(c) for c in range(0xFDD0, 0xFDF0))


# =============================================================================
# Token-level value parsing (shared with schema inference)
# =============================================================================


def parse_integral(token: str, data_type: DataType) -> int:
    """Parse an integral token and range-check it for ``data_type``.

    Raises:
        ValueError: If the token is not an integer or overflows the type.
    """
    if not _INTEGER_PATTERN.match(token):
        raise ValueError(f"Invalid integer value {token!r}")
    value = int(token)
    low, high = INTEGRAL_RANGES[type(data_type)]
    if not low <= value <= high:
        raise ValueError(f"Value {token!r} is out of range for {data_type.sql}")
    return value


def parse_double(token: str, options: CsvOptions) -> float:
    """Parse a floating-point token, honouring configured NaN/infinity spellings.

    Raises:
        ValueError: If the token is not a number.
    """
    if token in (options.nan_value, "NaN"):
        return math.nan
    if token in (options.positive_inf, "Infinity", "+Infinity"):
        return math.inf
    if token in (options.negative_inf, "-Infinity"):
        return -math.inf
    if not _FLOAT_PATTERN.match(token):
        raise ValueError(f"Invalid floating-point value {token!r}")
    return float(token)


def parse_decimal(token: str, data_type: DecimalType) -> Decimal:
    """Parse a decimal token, rounding half-up to the type's scale.

    Raises:
        ValueError: If the token is not a finite number or doesn't fit.
        decimal.InvalidOperation: If the token is not a number at all.
    """
    if "_" in token:
        raise ValueError(f"Invalid decimal value {token!r}")
    value = Decimal(token.strip())
    if not value.is_finite():
        raise ValueError(f"Decimal value must be finite, got {token!r}")
    quantized = value.quantize(Decimal(1).scaleb(-data_type.scale), rounding=ROUND_HALF_UP)
    if quantized != 0 and quantized.adjusted() + 1 > data_type.precision - data_type.scale:
        raise ValueError(f"Value {token!r} cannot be represented as {data_type.sql}")
    return quantized


def parse_boolean(token: str) -> bool:
    lowered = token.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Invalid boolean value {token!r}")


# =============================================================================
# Tokenization
# =============================================================================


def _newline_masks(record: str) -> tuple[str, str]:
    available = [c for c in _MASK_CANDIDATES if c not in record]
    if len(available) < 2:
        raise ValueError("Record contains every newline mask character")
    return available[0], available[1]


def unescape_quoted_values(record: str, options: CsvOptions) -> str:
    """Rewrite escape sequences inside quoted values as doubled quotes.

    The escape character only has meaning inside a quoted value: there an
    escaped quote becomes a doubled quote and an escaped escape becomes a
    single escape character. Anywhere else it is ordinary data, so the
    result can be read by csv.reader without an escapechar.
    """
    quote, escape, delimiter = options.quote, options.escape, options.delimiter
    if quote is None or escape is None or escape == quote or escape not in record:
        return record

    out: list[str] = []
    quoted = False
    field_start = True
    i = 0
    while i < len(record):
        c = record[i]
        following = record[i + 1 : i + 2]
        if quoted:
            if c == escape and following in (quote, escape):
                out.append(quote * 2 if following == quote else escape)
                i += 2
                continue
            if c == quote:
                if following == quote:
                    out.append(quote * 2)
                    i += 2
                    continue
                quoted = False
        elif c == delimiter:
            field_start = True
        elif c == quote and field_start:
            quoted = True
            field_start = False
        elif not (c == " " and options.ignore_leading_white_space_in_read):
            field_start = False
        out.append(c)
        i += 1
    return "".join(out)


def tokenize_record(record: str, options: CsvOptions) -> list[str] | None:
    """Split one record into tokens. CR and LF are ordinary characters.

    Returns:
        The tokens, or None for a blank or comment record.

    Raises:
        csv.Error: If the record is not valid delimited text.
    """
    if options.comment is not None and record.startswith(options.comment):
        return None

    masked = unescape_quoted_values(record, options)
    lf_mask = cr_mask = ""
    has_newlines = "\n" in masked or "\r" in masked
    if has_newlines:
        lf_mask, cr_mask = _newline_masks(masked)
        masked = masked.replace("\n", lf_mask).replace("\r", cr_mask)

    rows = list(csv.reader([masked], **options.reader_dialect()))
    if not rows or not rows[0]:
        return None
    tokens = rows[0]

    if has_newlines:
        tokens = [t.replace(lf_mask, "\n").replace(cr_mask, "\r") for t in tokens]
    if options.ignore_leading_white_space_in_read:
        tokens = [t.lstrip() for t in tokens]
    if options.ignore_trailing_white_space_in_read:
        tokens = [t.rstrip() for t in tokens]
    return tokens


def iter_records(text: str, options: CsvOptions) -> Iterator[str]:
    """Split text into records on the configured separator.

    With no separator configured, CR, LF and CRLF all end a record.
    A trailing separator does not start a new record.
    """
    if options.line_separator is not None:
        pieces = text.split(options.line_separator)
    else:
        pieces = re.split(r"\r\n|\r|\n", text)
    if pieces and pieces[-1] == "":
        pieces.pop()
    yield from pieces


# =============================================================================
# Parser
# =============================================================================


class RawCsvParser:
    """Parse delimited text against a schema.

    Args:
        data_schema: Fields present in the text, in token order
        required_schema: Fields to materialize (a subset of data_schema,
            in output order). Defaults to data_schema.
        options: Parsing options

    Raises:
        UnsupportedDataTypeError: If a field type cannot be read from a token.
    """

    def __init__(
        self,
        data_schema: StructType,
        options: CsvOptions,
        required_schema: StructType | None = None,
    ) -> None:
        verify_readable_schema(data_schema)
        if required_schema is None or not options.column_pruning:
            required_schema = data_schema

        self._data_schema = data_schema
        self._required_schema = required_schema
        self._options = options
        self._zone = options.zone
        self._date_reader = options.date_reader()
        self._timestamp_reader = options.timestamp_reader()
        self._timestamp_ntz_reader = options.timestamp_ntz_reader()

        token_indexes: list[int] = []
        for f in required_schema:
            index = data_schema.field_index(f.name)
            if index is None:
                raise ValueError(f"Required field '{f.name}' is not in the data schema")
            token_indexes.append(index)
        self._token_indexes = tuple(token_indexes)
        self._converters = tuple(self._make_converter(f.data_type) for f in required_schema)

        logger.debug(
            "csv_parser_built",
            fields=len(data_schema),
            required=len(required_schema),
            line_separator=repr(options.line_separator),
        )

    @property
    def data_schema(self) -> StructType:
        return self._data_schema

    @property
    def required_schema(self) -> StructType:
        return self._required_schema

    def _make_converter(self, data_type: DataType) -> Converter:
        options = self._options
        convert: Callable[[str], Any]

        if isinstance(data_type, UserDefinedType):
            return self._make_converter(data_type.sql_type)
        if isinstance(data_type, NullType):
            return lambda token: None
        if type(data_type) in INTEGRAL_RANGES:
            convert = lambda token: parse_integral(token, data_type)  # noqa: E731
        elif isinstance(data_type, (FloatType, DoubleType)):
            convert = lambda token: parse_double(token, options)  # noqa: E731
        elif isinstance(data_type, DecimalType):
            convert = lambda token: parse_decimal(token, data_type)  # noqa: E731
        elif isinstance(data_type, BooleanType):
            convert = parse_boolean
        elif isinstance(data_type, StringType):
            convert = str
        elif isinstance(data_type, BinaryType):
            convert = lambda token: token.encode("utf-8")  # noqa: E731
        elif isinstance(data_type, DateType):
            convert = self._date_reader.parse_date
        elif isinstance(data_type, TimestampType):
            zone = self._zone
            reader = self._timestamp_reader
            convert = lambda token: reader.parse_timestamp(token, zone)  # noqa: E731
        elif isinstance(data_type, TimestampNTZType):
            convert = self._timestamp_ntz_reader.parse_timestamp_ntz
        else:
            raise UnsupportedDataTypeError(data_type.sql)

        null_value = options.null_value

        def null_safe(token: str | None) -> Any:
            if token is None or token == null_value:
                return None
            return convert(token)

        return null_safe

    def parse(self, text: str, *, max_records: int | None = None) -> list[Row]:
        """Parse every record in ``text``.

        Args:
            text: Delimited text
            max_records: If set, the most records ``text`` may split into.
                Checked before any record is converted.

        Returns:
            One row per non-blank record, shaped like the required schema.

        Raises:
            InternalCodecError: If ``text`` splits into more than
                ``max_records`` records.
            BadRecordError: On the first malformed record.
        """
        records = list(iter_records(text, self._options))
        if max_records is not None and len(records) > max_records:
            raise InternalCodecError(
                f"Expected at most {max_records} record(s) from the input, got {len(records)}"
            )
        rows: list[Row] = []
        for record in records:
            try:
                tokens = tokenize_record(record, self._options)
            except (csv.Error, ValueError) as e:
                raise BadRecordError(record, [None], e) from e
            if tokens is None:
                continue
            rows.append(self._convert(tokens, record))
        return rows

    def _convert(self, tokens: list[str], record: str) -> Row:
        expected = len(self._data_schema)
        if len(tokens) == expected:
            return self._convert_tokens(tokens, record)

        checked: list[str | None] = list(tokens[:expected]) + [None] * (expected - len(tokens))
        try:
            partial: Row | None = self._convert_tokens(checked, record)
        except BadRecordError as e:
            partial = e.partial_results[0]
        raise BadRecordError(
            record,
            [partial],
            ValueError(f"Malformed CSV record: expected {expected} fields, found {len(tokens)}"),
        )

    def _convert_tokens(self, tokens: list[str] | list[str | None], record: str) -> Row:
        values: list[Any] = [None] * len(self._converters)
        first_error: Exception | None = None
        for i, (token_index, converter) in enumerate(zip(self._token_indexes, self._converters, strict=True)):
            try:
                values[i] = converter(tokens[token_index])
            except (ValueError, ArithmeticError) as e:
                # Field stays null; keep converting so the partial row is as full as possible
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise BadRecordError(record, [tuple(values)], first_error)
        return tuple(values)
