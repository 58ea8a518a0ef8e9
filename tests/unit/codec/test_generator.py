# tests/unit/codec/test_generator.py
"""Tests for the row to CSV text writer."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from csvexpr.codec.generator import CsvGenerator, format_decimal, format_double
from csvexpr.codec.parser import RawCsvParser
from csvexpr.contracts.errors import UnsupportedDataTypeError
from csvexpr.contracts.types import (
    ArrayType,
    BinaryType,
    BooleanType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    IntegerType,
    MapType,
    StringType,
    StructField,
    StructType,
    TimestampNTZType,
    TimestampType,
    VariantType,
)
from csvexpr.core.options import SINGLE_RECORD_LINE_SEPARATOR, CsvOptions

OptionsFactory = Callable[..., CsvOptions]


def _schema(*types: DataType) -> StructType:
    return StructType(StructField(f"c{i}", t) for i, t in enumerate(types))


class TestWriteToString:
    """Rendering a single row."""

    def test_integers(self, make_options: OptionsFactory) -> None:
        writer = CsvGenerator(_schema(IntegerType(), IntegerType()), make_options())
        assert writer.write_to_string((1, 2)) == "1,2"

    def test_writer_is_reusable(self, make_options: OptionsFactory, int_double_schema: StructType) -> None:
        """The shared buffer is reset between rows."""
        writer = CsvGenerator(int_double_schema, make_options())
        assert writer.write_to_string((1, 0.8)) == "1,0.8"
        assert writer.write_to_string((2, 1.5)) == "2,1.5"

    def test_nulls_use_null_value(self, make_options: OptionsFactory, int_double_schema: StructType) -> None:
        """Nulls render as the configured null spelling, empty by default."""
        assert CsvGenerator(int_double_schema, make_options()).write_to_string((None, 2.0)) == ",2.0"
        assert CsvGenerator(int_double_schema, make_options({"nullValue": "NA"})).write_to_string((None, 2.0)) == "NA,2.0"

    def test_single_empty_field(self, make_options: OptionsFactory) -> None:
        """A lone empty field is an empty line, not a pair of quotes."""
        assert CsvGenerator(_schema(StringType()), make_options()).write_to_string(("",)) == ""
        assert CsvGenerator(_schema(StringType()), make_options()).write_to_string((None,)) == ""

    def test_quotes_values_containing_delimiter(self, make_options: OptionsFactory) -> None:
        """Values holding the delimiter are quoted."""
        writer = CsvGenerator(_schema(StringType(), IntegerType()), make_options())
        assert writer.write_to_string(("a,b", 1)) == '"a,b",1'

    def test_escapes_quotes(self, make_options: OptionsFactory) -> None:
        """Quotes in a value are escaped by default and doubled with escapeQuotes=false."""
        escaped = CsvGenerator(_schema(StringType()), make_options())
        doubled = CsvGenerator(_schema(StringType()), make_options({"escapeQuotes": "false"}))

        assert escaped.write_to_string(('say "hi"',)) == '"say \\"hi\\""'
        assert doubled.write_to_string(('say "hi"',)) == '"say ""hi"""'

    def test_unquoted_backslash_is_written_as_is(self, make_options: OptionsFactory) -> None:
        """The escape character only needs escaping inside a quoted value."""
        writer = CsvGenerator(_schema(StringType(), IntegerType()), make_options())
        assert writer.write_to_string(("C:\\temp", 1)) == "C:\\temp,1"

    def test_backslash_in_quoted_value_is_escaped(self, make_options: OptionsFactory) -> None:
        """Inside quotes, the escape character is itself escaped."""
        writer = CsvGenerator(_schema(StringType()), make_options())
        assert writer.write_to_string(("C:\\te,mp",)) == '"C:\\\\te,mp"'
        assert writer.write_to_string(('ends with \\"',)) == '"ends with \\\\\\""'

    @pytest.mark.parametrize("value", ["C:\\temp", "a,b\\", '\\"', 'x\\"y,z', "\\\\", '"'])
    def test_written_values_read_back(self, make_options: OptionsFactory, value: str) -> None:
        """Backslashes and quotes survive a write followed by a read."""
        schema = _schema(StringType(), IntegerType())
        written = CsvGenerator(schema, make_options()).write_to_string((value, 1))

        reader = RawCsvParser(schema, make_options().with_line_separator(SINGLE_RECORD_LINE_SEPARATOR))

        assert reader.parse(written) == [(value, 1)]

    def test_quote_all(self, make_options: OptionsFactory) -> None:
        """quoteAll quotes every value, numbers included."""
        writer = CsvGenerator(_schema(StringType(), IntegerType()), make_options({"quoteAll": "true"}))
        assert writer.write_to_string(("a", 1)) == '"a","1"'

    def test_custom_delimiter(self, make_options: OptionsFactory) -> None:
        """Only the configured delimiter forces quoting."""
        writer = CsvGenerator(_schema(StringType(), StringType()), make_options({"sep": "|"}))
        assert writer.write_to_string(("a,b", "c")) == "a,b|c"

    def test_trims_whitespace_by_default(self, make_options: OptionsFactory) -> None:
        """Writes trim both ends unless told not to."""
        trimmed = CsvGenerator(_schema(StringType()), make_options())
        kept = CsvGenerator(
            _schema(StringType()),
            make_options({"ignoreLeadingWhiteSpace": "false", "ignoreTrailingWhiteSpace": "false"}),
        )

        assert trimmed.write_to_string(("  x  ",)) == "x"
        assert kept.write_to_string(("  x  ",)) == "  x  "

    def test_scalar_formats(self, make_options: OptionsFactory) -> None:
        """Atomic values use their CSV spellings."""
        writer = CsvGenerator(
            _schema(BooleanType(), DecimalType(10, 2), DoubleType(), DoubleType(), BinaryType(), DateType()),
            make_options(),
        )

        text = writer.write_to_string((True, Decimal("12.50"), math.nan, math.inf, b"abc", date(2024, 1, 2)))

        assert text == "true,12.50,NaN,Inf,abc,2024-01-02"

    def test_timestamps_in_option_zone(self, make_options: OptionsFactory) -> None:
        """Instants are rendered in the zone given by the options."""
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

        utc = CsvGenerator(_schema(TimestampType()), make_options())
        new_york = CsvGenerator(_schema(TimestampType()), make_options({"timeZone": "America/New_York"}))

        assert utc.write_to_string((value,)) == "2024-01-02T03:04:05.000Z"
        assert new_york.write_to_string((value,)) == "2024-01-01T22:04:05.000-05:00"

    def test_timestamp_ntz_and_custom_pattern(self, make_options: OptionsFactory) -> None:
        """Wall-clock timestamps use the default or the configured pattern."""
        value = datetime(2024, 1, 2, 3, 4, 5)

        default = CsvGenerator(_schema(TimestampNTZType()), make_options())
        custom = CsvGenerator(_schema(TimestampNTZType()), make_options({"timestampNTZFormat": "dd/MM/yyyy HH:mm"}))

        assert default.write_to_string((value,)) == "2024-01-02T03:04:05.000"
        assert custom.write_to_string((value,)) == "02/01/2024 03:04"

    def test_nested_values(self, make_options: OptionsFactory) -> None:
        """Containers render as their cast-to-string text."""
        schema = _schema(
            ArrayType(IntegerType()),
            MapType(StringType(), IntegerType()),
            StructType([StructField("x", IntegerType()), StructField("y", StringType())]),
        )
        writer = CsvGenerator(schema, make_options({"sep": ";"}))

        assert writer.write_to_string(([1, None, 3], {"k": 1}, (1, "abc"))) == "[1, null, 3];{k -> 1};{1, abc}"

    def test_nested_value_with_delimiter_is_quoted(self, make_options: OptionsFactory) -> None:
        """The rendered text of a container is quoted like any other value."""
        writer = CsvGenerator(_schema(ArrayType(IntegerType())), make_options())
        assert writer.write_to_string(([1, 2],)) == '"[1, 2]"'


class TestLifecycle:
    """Construction checks and close()."""

    def test_rejects_unsupported_field(self, make_options: OptionsFactory) -> None:
        """A variant field anywhere in the schema is refused up front."""
        with pytest.raises(UnsupportedDataTypeError):
            CsvGenerator(_schema(IntegerType(), VariantType()), make_options())

    def test_rejects_wrong_width(self, make_options: OptionsFactory, int_double_schema: StructType) -> None:
        """A row must have one value per field."""
        with pytest.raises(ValueError, match="schema has 2 fields"):
            CsvGenerator(int_double_schema, make_options()).write_to_string((1,))

    def test_closed_writer(self, make_options: OptionsFactory, int_double_schema: StructType) -> None:
        """close() is idempotent and later writes fail."""
        writer = CsvGenerator(int_double_schema, make_options())
        writer.close()
        writer.close()

        assert writer.closed
        with pytest.raises(ValueError, match="closed"):
            writer.write_to_string((1, 2.0))


class TestFormatters:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.8, "0.8"), (1.0, "1.0"), (-2.5, "-2.5"), (math.nan, "NaN"), (math.inf, "Infinity"), (-math.inf, "-Infinity")],
    )
    def test_format_double(self, value: float, expected: str) -> None:
        """Doubles keep a fractional part and use word spellings for specials."""
        assert format_double(value) == expected

    def test_format_decimal_is_plain(self) -> None:
        """Decimals never use exponent notation."""
        assert format_decimal(Decimal("1E+3")) == "1000"
        assert format_decimal(Decimal("0.0001")) == "0.0001"
