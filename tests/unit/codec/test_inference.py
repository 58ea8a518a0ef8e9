# tests/unit/codec/test_inference.py
"""Tests for schema inference."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from csvexpr.codec.inference import CsvInferSchema, SchemaOfCsvEvaluator, compatible_type
from csvexpr.contracts.types import (
    BooleanType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    IntegerType,
    LongType,
    NullType,
    StringType,
    TimestampType,
)
from csvexpr.core.options import CsvOptions

OptionsFactory = Callable[..., CsvOptions]


class TestSchemaOfCsvEvaluator:
    """Inferring a DDL string from one sample record."""

    def test_int_and_string(self, make_options: OptionsFactory) -> None:
        assert SchemaOfCsvEvaluator(make_options()).evaluate("1,abc") == "STRUCT<_c0: INT, _c1: STRING>"

    def test_every_atomic_kind(self, make_options: OptionsFactory) -> None:
        """Each token kind is tried in order: number, boolean, date, timestamp."""
        result = SchemaOfCsvEvaluator(make_options()).evaluate("1.5,true,2024-01-02,2024-01-02T10:00:00,9999999999")
        assert result == "STRUCT<_c0: DOUBLE, _c1: BOOLEAN, _c2: DATE, _c3: TIMESTAMP, _c4: BIGINT>"

    def test_empty_input_is_one_string_column(self, make_options: OptionsFactory) -> None:
        """An empty sample still has one column."""
        assert SchemaOfCsvEvaluator(make_options()).evaluate("") == "STRUCT<_c0: STRING>"

    def test_null_only_columns_become_string(self, make_options: OptionsFactory) -> None:
        """A column with no evidence falls back to STRING."""
        assert SchemaOfCsvEvaluator(make_options()).evaluate(",,") == "STRUCT<_c0: STRING, _c1: STRING, _c2: STRING>"

    def test_only_first_record_is_used(self, make_options: OptionsFactory) -> None:
        """Records after the first are ignored."""
        assert SchemaOfCsvEvaluator(make_options()).evaluate("1\nabc") == "STRUCT<_c0: INT>"

    def test_delimiter_option(self, make_options: OptionsFactory) -> None:
        """Only the configured delimiter splits tokens."""
        assert SchemaOfCsvEvaluator(make_options({"sep": ";"})).evaluate("1;x,y") == "STRUCT<_c0: INT, _c1: STRING>"

    def test_prefers_date_off(self, make_options: OptionsFactory) -> None:
        """Without prefersDate, date-shaped tokens infer as TIMESTAMP."""
        evaluator = SchemaOfCsvEvaluator(make_options({"prefersDate": "false"}))
        assert evaluator.evaluate("2024-01-02") == "STRUCT<_c0: TIMESTAMP>"

    def test_prefers_decimal(self, make_options: OptionsFactory) -> None:
        """Integers too wide for BIGINT become DOUBLE unless decimals are preferred."""
        big = "12345678901234567890"
        assert SchemaOfCsvEvaluator(make_options()).evaluate(big) == "STRUCT<_c0: DOUBLE>"
        assert SchemaOfCsvEvaluator(make_options({"prefersDecimal": "true"})).evaluate(big) == "STRUCT<_c0: DECIMAL(20,0)>"

    def test_out_of_range_date_is_string(self, make_options: OptionsFactory) -> None:
        """A token that matches the pattern but overflows the calendar infers as STRING."""
        options = make_options({"dateFormat": "yyyy-DDD", "timestampFormat": "yyyy-DDD"})

        assert SchemaOfCsvEvaluator(options).evaluate("9999-366") == "STRUCT<_c0: STRING>"


class TestCsvInferSchema:
    """Widening types across many records."""

    def test_widens_across_records(self, make_options: OptionsFactory) -> None:
        """Each column takes the widest type seen; empty tokens don't count."""
        schema = CsvInferSchema(make_options()).infer("1,a\n2.5,b\n,c")
        assert schema.sql == "STRUCT<_c0: DOUBLE, _c1: STRING>"

    def test_ragged_records_add_columns(self, make_options: OptionsFactory) -> None:
        """Later, longer records extend the schema."""
        schema = CsvInferSchema(make_options()).infer("1\n2,true")
        assert schema.sql == "STRUCT<_c0: INT, _c1: BOOLEAN>"

    @pytest.mark.parametrize(
        ("so_far", "token", "expected"),
        [
            (NullType(), "7", IntegerType()),
            (IntegerType(), "abc", StringType()),
            (IntegerType(), "3000000000", LongType()),
            (LongType(), "1.5", DoubleType()),
            (DoubleType(), "5", DoubleType()),
            (BooleanType(), "1", StringType()),
            (DateType(), "2024-01-02T03:04:05", TimestampType()),
            (TimestampType(), "2024-01-02", TimestampType()),
            (StringType(), "1", StringType()),
            (IntegerType(), "", IntegerType()),
        ],
    )
    def test_infer_field(self, make_options: OptionsFactory, so_far: DataType, token: str, expected: DataType) -> None:
        """A token can only widen the type seen so far."""
        assert CsvInferSchema(make_options()).infer_field(so_far, token) == expected

    def test_null_value_is_skipped(self, make_options: OptionsFactory) -> None:
        """The configured null value carries no type evidence."""
        assert CsvInferSchema(make_options({"nullValue": "NA"})).infer_field(IntegerType(), "NA") == IntegerType()


class TestCompatibleType:
    """Common supertype of two inferred types."""

    @pytest.mark.parametrize(
        ("t1", "t2", "expected"),
        [
            (IntegerType(), LongType(), LongType()),
            (IntegerType(), DoubleType(), DoubleType()),
            (DateType(), TimestampType(), TimestampType()),
            (NullType(), BooleanType(), BooleanType()),
            (DoubleType(), DecimalType(5, 2), DoubleType()),
            (DecimalType(5, 2), DecimalType(10, 0), DecimalType(12, 2)),
            (IntegerType(), DecimalType(5, 2), DecimalType(12, 2)),
            (LongType(), DecimalType(38, 10), DecimalType(38, 10)),
            (LongType(), DecimalType(38, 20), DoubleType()),
            (BooleanType(), IntegerType(), None),
            (StringType(), DateType(), None),
        ],
    )
    def test_pairs(self, t1: DataType, t2: DataType, expected: DataType | None) -> None:
        """The result is symmetric; None means only STRING fits both."""
        assert compatible_type(t1, t2) == expected
        assert compatible_type(t2, t1) == expected
