# src/csvexpr/expressions/registry.py
"""SQL-facing constructors for the CSV functions.

These validate the constant arguments (schema and options) the way a SQL
analyzer would, build the expression and run its input checks, so a
returned expression is ready to evaluate.

Example:
    expr = from_csv(BoundReference(0, StringType()), Literal("a INT, b DOUBLE"))
    expr.eval(("1, 0.8",))  # -> (1, 0.8)
"""

from __future__ import annotations

from collections.abc import Callable

from csvexpr.contracts.ddl import parse_ddl
from csvexpr.contracts.errors import InvalidOptionsError, InvalidSchemaError
from csvexpr.contracts.types import StringType, StructType
from csvexpr.core.config import CodecSettings
from csvexpr.expressions.base import CreateMap, Expression, Literal, check_analysis
from csvexpr.expressions.from_csv import CsvToStructs
from csvexpr.expressions.schema_of_csv import SchemaOfCsv
from csvexpr.expressions.to_csv import StructsToCsv


def evaluate_schema_expression(expression: Expression) -> StructType:
    """Resolve the schema argument of ``from_csv``.

    Accepts a foldable string (a DDL schema) or ``schema_of_csv`` applied
    to a literal.

    Raises:
        InvalidSchemaError: NON_STRING_LITERAL for any other expression,
            PARSE_ERROR for unparsable DDL, NON_STRUCT_TYPE if the DDL
            describes a non-struct type.
    """
    if isinstance(expression, SchemaOfCsv) and isinstance(expression.child, Literal):
        check_analysis(expression)
        ddl = expression.eval()
    elif expression.foldable and isinstance(expression.data_type, StringType):
        ddl = expression.eval()
    else:
        ddl = None

    if not isinstance(ddl, str):
        raise InvalidSchemaError(
            f"The schema must be a string literal, but got {expression.sql()}.",
            error_class="INVALID_SCHEMA.NON_STRING_LITERAL",
            message_parameters={"inputSchema": expression.sql()},
        )
    return parse_ddl(ddl)


def convert_to_map_data(expression: Expression) -> dict[str, str]:
    """Resolve an options argument built with ``map(...)``.

    Raises:
        InvalidOptionsError: NON_MAP_FUNCTION if the argument is not a
            constant map, NON_STRING_TYPE if keys or values aren't strings.
    """
    if not isinstance(expression, CreateMap) or not expression.foldable:
        raise InvalidOptionsError(
            "Must use the map() function with constant arguments for options.",
            error_class="INVALID_OPTIONS.NON_MAP_FUNCTION",
        )
    map_type = expression.data_type
    children_are_strings = all(isinstance(c.data_type, StringType) for c in expression.children)
    if not (isinstance(map_type.key_type, StringType) and isinstance(map_type.value_type, StringType) and children_are_strings):
        raise InvalidOptionsError(
            f"A type of keys and values in map() must be string, but got {map_type.sql}.",
            error_class="INVALID_OPTIONS.NON_STRING_TYPE",
            message_parameters={"mapType": map_type.sql},
        )
    return {str(k): str(v) for k, v in expression.eval().items() if v is not None}


def from_csv(
    child: Expression,
    schema: Expression,
    options: Expression | None = None,
    *,
    settings: CodecSettings | None = None,
) -> CsvToStructs:
    """``from_csv(csvStr, schema[, options])``."""
    expression = CsvToStructs(
        evaluate_schema_expression(schema),
        convert_to_map_data(options) if options is not None else {},
        child,
        settings=settings,
    )
    check_analysis(expression)
    return expression


def to_csv(
    child: Expression,
    options: Expression | None = None,
    *,
    settings: CodecSettings | None = None,
) -> StructsToCsv:
    """``to_csv(expr[, options])``."""
    expression = StructsToCsv(
        convert_to_map_data(options) if options is not None else {},
        child,
        settings=settings,
    )
    check_analysis(expression)
    return expression


def schema_of_csv(
    child: Expression,
    options: Expression | None = None,
    *,
    settings: CodecSettings | None = None,
) -> SchemaOfCsv:
    """``schema_of_csv(csv[, options])``."""
    expression = SchemaOfCsv(
        child,
        convert_to_map_data(options) if options is not None else {},
        settings=settings,
    )
    check_analysis(expression)
    return expression


FUNCTIONS: dict[str, Callable[..., Expression]] = {
    "from_csv": from_csv,
    "to_csv": to_csv,
    "schema_of_csv": schema_of_csv,
}


def lookup_function(name: str) -> Callable[..., Expression]:
    """Constructor for a CSV function by SQL name (case-insensitive).

    Raises:
        KeyError: If no such function is registered.
    """
    try:
        return FUNCTIONS[name.lower()]
    except KeyError:
        raise KeyError(f"Unknown function '{name}'. Available: {', '.join(sorted(FUNCTIONS))}") from None
