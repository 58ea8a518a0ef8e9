# tests/unit/expressions/test_base.py
"""Tests for the expression tree leaves and analysis helpers."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from csvexpr.contracts.errors import DataTypeMismatchError
from csvexpr.contracts.types import (
    BooleanType,
    DataType,
    DecimalType,
    DoubleType,
    IntegerType,
    LongType,
    MapType,
    NullType,
    StringType,
    StructField,
    StructType,
)
from csvexpr.expressions.base import BoundReference, CreateMap, Literal, check_analysis, compile_expression
from csvexpr.expressions.schema_of_csv import SchemaOfCsv
from csvexpr.expressions.to_csv import StructsToCsv


class TestLiteral:
    """Constant leaves."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, NullType()),
            (True, BooleanType()),
            (1, IntegerType()),
            (2**40, LongType()),
            (1.5, DoubleType()),
            (Decimal("12.50"), DecimalType(4, 2)),
            ("x", StringType()),
        ],
    )
    def test_inferred_type(self, value: Any, expected: DataType) -> None:
        """Python values map to SQL types; ints widen to BIGINT past 32 bits."""
        assert Literal(value).data_type == expected

    def test_unsupported_value(self) -> None:
        """Values with no SQL type are refused."""
        with pytest.raises(TypeError):
            Literal(object())

    def test_folding(self) -> None:
        """Literals fold; only a null literal is nullable."""
        literal = Literal("abc")

        assert literal.foldable
        assert not literal.nullable
        assert Literal(None).nullable
        assert literal.eval() == "abc"

    @pytest.mark.parametrize(
        ("value", "sql"),
        [(None, "NULL"), ("it's", "'it\\'s'"), (False, "false"), (7, "7")],
    )
    def test_sql(self, value: Any, sql: str) -> None:
        """The name is used when given, the ordinal otherwise."""
        assert Literal(value).sql() == sql


class TestBoundReference:
    """Column leaves."""

    def test_reads_ordinal(self) -> None:
        assert BoundReference(1, StringType()).eval(("a", "b")) == "b"

    def test_requires_row(self) -> None:
        """A column reference can't be evaluated without a row."""
        with pytest.raises(ValueError, match="without an input row"):
            BoundReference(0, StringType()).eval()

    def test_sql(self) -> None:
        """The name is used when given, the ordinal otherwise."""
        assert BoundReference(2, StringType()).sql() == "input[2]"
        assert BoundReference(2, StringType(), name="line").sql() == "line"
        assert not BoundReference(0, StringType()).foldable


class TestCreateMap:
    """The map(...) options argument."""

    def test_of(self) -> None:
        """Builds a foldable string map from a dict."""
        mapping = CreateMap.of({"a": "1", "b": "2"})

        assert mapping.data_type == MapType(StringType(), StringType())
        assert mapping.foldable
        assert mapping.eval() == {"a": "1", "b": "2"}
        assert mapping.sql() == "map('a', '1', 'b', '2')"

    def test_empty(self) -> None:
        """An empty map is still MAP<STRING, STRING>."""
        assert CreateMap([]).data_type == MapType(StringType(), StringType())

    def test_odd_arguments(self) -> None:
        """Keys and values come in pairs."""
        with pytest.raises(ValueError, match="even number"):
            CreateMap([Literal("a")])

    def test_null_key(self) -> None:
        """Map keys can't be null."""
        with pytest.raises(ValueError, match="cannot be null"):
            CreateMap([Literal(None, StringType()), Literal("x")]).eval()


class TestAnalysis:
    """Tree-wide type checking."""

    def test_passes_for_valid_tree(self) -> None:
        check_analysis(SchemaOfCsv(Literal("1,2")))

    def test_raises_for_mismatch(self) -> None:
        """The error carries the failing expression's SQL."""
        with pytest.raises(DataTypeMismatchError) as exc_info:
            check_analysis(SchemaOfCsv(BoundReference(0, StringType(), name="line")))

        assert exc_info.value.expression_sql == "schema_of_csv(line)"
        assert exc_info.value.error_class == "DATATYPE_MISMATCH.NON_FOLDABLE_INPUT"

    def test_checks_children_first(self) -> None:
        """A failing child is reported, not the parent."""
        inner = SchemaOfCsv(BoundReference(0, StringType(), name="line"))
        outer = StructsToCsv({}, inner)

        with pytest.raises(DataTypeMismatchError) as exc_info:
            check_analysis(outer)

        assert exc_info.value.expression_sql == "schema_of_csv(line)"


class TestCompileExpression:
    def test_falls_back_to_eval(self) -> None:
        """Expressions without generated code are evaluated directly."""
        evaluate = compile_expression(BoundReference(0, IntegerType()))
        assert evaluate((5,)) == 5

    def test_uses_generated_code(self) -> None:
        """Expressions with generated code are compiled."""
        expr = StructsToCsv({}, BoundReference(0, StructType([StructField("a", IntegerType())])))
        evaluate = compile_expression(expr)
        assert evaluate(((5,),)) == "5"
