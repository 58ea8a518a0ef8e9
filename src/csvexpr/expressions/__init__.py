"""Expression-engine hooks for the CSV functions."""

from csvexpr.expressions.base import (
    BoundReference,
    CreateMap,
    Expression,
    Literal,
    UnaryExpression,
    check_analysis,
    compile_expression,
)
from csvexpr.expressions.from_csv import CsvToStructs
from csvexpr.expressions.protocols import CodeGenerable, SchemaBound, TimeZoneAware, TypeChecked
from csvexpr.expressions.registry import (
    FUNCTIONS,
    convert_to_map_data,
    evaluate_schema_expression,
    from_csv,
    lookup_function,
    schema_of_csv,
    to_csv,
)
from csvexpr.expressions.schema_of_csv import SchemaOfCsv
from csvexpr.expressions.to_csv import StructsToCsv

__all__ = [
    "FUNCTIONS",
    "BoundReference",
    "CodeGenerable",
    "CreateMap",
    "CsvToStructs",
    "Expression",
    "Literal",
    "SchemaBound",
    "SchemaOfCsv",
    "StructsToCsv",
    "TimeZoneAware",
    "TypeChecked",
    "UnaryExpression",
    "check_analysis",
    "compile_expression",
    "convert_to_map_data",
    "evaluate_schema_expression",
    "from_csv",
    "lookup_function",
    "schema_of_csv",
    "to_csv",
]
