"""Shared contracts: data types, rows, modes and errors.

This package is a leaf: it imports nothing else from csvexpr.
"""

from csvexpr.contracts.ddl import parse_data_type, parse_ddl, parse_schema_or_type
from csvexpr.contracts.enums import ParseMode, TypeMismatchKind
from csvexpr.contracts.errors import (
    AnalysisError,
    BadRecordError,
    CorruptRecordColumnError,
    CsvExpressionError,
    DataTypeMismatchError,
    InternalCodecError,
    InvalidOptionsError,
    InvalidSchemaError,
    MalformedRecordError,
    ParseModeUnsupportedError,
    UnsupportedDataTypeError,
)
from csvexpr.contracts.rows import Row, null_row, row_as_dict, row_from_mapping
from csvexpr.contracts.type_check import (
    TYPE_CHECK_SUCCESS,
    DataTypeMismatch,
    TypeCheckResult,
    TypeCheckSuccess,
)
from csvexpr.contracts.types import (
    ArrayType,
    BinaryType,
    BooleanType,
    ByteType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    IntegerType,
    LongType,
    MapType,
    NullType,
    ShortType,
    StringType,
    StructField,
    StructType,
    TimestampNTZType,
    TimestampType,
    UserDefinedType,
    VariantType,
)

__all__ = [
    "TYPE_CHECK_SUCCESS",
    "AnalysisError",
    "ArrayType",
    "BadRecordError",
    "BinaryType",
    "BooleanType",
    "ByteType",
    "CorruptRecordColumnError",
    "CsvExpressionError",
    "DataType",
    "DataTypeMismatch",
    "DataTypeMismatchError",
    "DateType",
    "DecimalType",
    "DoubleType",
    "FloatType",
    "IntegerType",
    "InternalCodecError",
    "InvalidOptionsError",
    "InvalidSchemaError",
    "LongType",
    "MalformedRecordError",
    "MapType",
    "NullType",
    "ParseMode",
    "ParseModeUnsupportedError",
    "Row",
    "ShortType",
    "StringType",
    "StructField",
    "StructType",
    "TimestampNTZType",
    "TimestampType",
    "TypeCheckResult",
    "TypeCheckSuccess",
    "TypeMismatchKind",
    "UnsupportedDataTypeError",
    "UserDefinedType",
    "VariantType",
    "null_row",
    "parse_data_type",
    "parse_ddl",
    "parse_schema_or_type",
    "row_as_dict",
    "row_from_mapping",
]
