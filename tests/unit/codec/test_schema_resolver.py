# tests/unit/codec/test_schema_resolver.py
"""Tests for bind-time schema resolution."""

from __future__ import annotations

import pytest

from csvexpr.codec.schema_resolver import resolve_schemas, verify_column_name_of_corrupt_record
from csvexpr.contracts.errors import CorruptRecordColumnError, InvalidSchemaError
from csvexpr.contracts.types import ArrayType, DoubleType, IntegerType, StringType, StructField, StructType

CORRUPT = "_corrupt_record"


class TestResolveSchemas:
    """Deriving parser and output shapes from a user schema."""

    def test_forces_nullability(self) -> None:
        """Every field, and every nested element, comes out nullable."""
        schema = StructType([StructField("a", IntegerType(), nullable=False), StructField("b", ArrayType(IntegerType(), contains_null=False))])

        resolved = resolve_schemas(schema, CORRUPT)

        assert all(f.nullable for f in resolved.nullable_schema)
        assert resolved.nullable_schema["b"].data_type == ArrayType(IntegerType(), contains_null=True)
        assert resolved.output_schema == resolved.nullable_schema
        assert resolved.corrupt_record_column is None

    def test_strips_corrupt_column_from_parser_shapes(self, schema_with_corrupt: StructType) -> None:
        """The corrupt column is output-only; the parser never sees it."""
        resolved = resolve_schemas(schema_with_corrupt, CORRUPT)

        assert resolved.actual_schema.field_names == ("a", "b")
        assert resolved.actual_output_schema.field_names == ("a", "b")
        assert resolved.output_schema.field_names == ("a", "b", CORRUPT)
        assert resolved.corrupt_record_column == CORRUPT

    def test_required_schema_becomes_output(self, schema_with_corrupt: StructType) -> None:
        """A required schema picks and orders the output columns."""
        required = StructType([StructField(CORRUPT, StringType()), StructField("b", DoubleType(), nullable=False)])

        resolved = resolve_schemas(schema_with_corrupt, CORRUPT, required_schema=required)

        assert resolved.output_schema.field_names == (CORRUPT, "b")
        assert resolved.output_schema["b"].nullable
        assert resolved.actual_output_schema.field_names == ("b",)
        assert resolved.actual_schema.field_names == ("a", "b")

    def test_unknown_required_field(self, int_double_schema: StructType) -> None:
        """Required fields must exist in the data schema."""
        required = StructType([StructField("zzz", IntegerType())])

        with pytest.raises(InvalidSchemaError) as exc_info:
            resolve_schemas(int_double_schema, CORRUPT, required_schema=required)

        assert exc_info.value.error_class == "INVALID_SCHEMA.UNKNOWN_REQUIRED_FIELD"

    def test_is_idempotent(self, schema_with_corrupt: StructType) -> None:
        """Resolving an already nullable schema changes nothing."""
        first = resolve_schemas(schema_with_corrupt, CORRUPT)
        second = resolve_schemas(first.nullable_schema, CORRUPT)
        assert first == second


class TestCorruptRecordColumn:
    """Validation of the corrupt record column."""

    def test_mistyped_column(self) -> None:
        """The corrupt column must be a STRING."""
        schema = StructType([StructField("a", IntegerType()), StructField(CORRUPT, IntegerType())])

        with pytest.raises(CorruptRecordColumnError) as exc_info:
            resolve_schemas(schema, CORRUPT)

        assert exc_info.value.error_class == "INVALID_CORRUPT_RECORD_TYPE"
        assert exc_info.value.message_parameters["actualType"] == "INT"

    def test_non_nullable_column(self) -> None:
        """The corrupt column must be nullable."""
        schema = StructType([StructField(CORRUPT, StringType(), nullable=False)])

        with pytest.raises(CorruptRecordColumnError):
            verify_column_name_of_corrupt_record(schema, CORRUPT)

    def test_absent_column_is_fine_by_default(self, int_double_schema: StructType) -> None:
        """An implicit corrupt column name need not appear in the schema."""
        verify_column_name_of_corrupt_record(int_double_schema, CORRUPT)

    def test_absent_explicit_column(self, int_double_schema: StructType) -> None:
        """An explicitly named corrupt column must appear in the schema."""
        with pytest.raises(CorruptRecordColumnError) as exc_info:
            verify_column_name_of_corrupt_record(int_double_schema, "bad_rows", explicit=True)

        assert exc_info.value.error_class == "INVALID_CORRUPT_RECORD_TYPE.MISSING_FIELD"
