"""Text codec: raw parsing, parse-mode policy, writing and inference."""

from csvexpr.codec.failure_safe import FailureSafeParser
from csvexpr.codec.generator import CsvGenerator
from csvexpr.codec.inference import CsvInferSchema, SchemaOfCsvEvaluator, compatible_type
from csvexpr.codec.parser import RawCsvParser, tokenize_record
from csvexpr.codec.schema_resolver import ResolvedSchemas, resolve_schemas, verify_column_name_of_corrupt_record
from csvexpr.codec.type_support import is_readable_data_type, is_supported_data_type, verify_readable_schema

__all__ = [
    "CsvGenerator",
    "CsvInferSchema",
    "FailureSafeParser",
    "RawCsvParser",
    "ResolvedSchemas",
    "SchemaOfCsvEvaluator",
    "compatible_type",
    "is_readable_data_type",
    "is_supported_data_type",
    "resolve_schemas",
    "tokenize_record",
    "verify_column_name_of_corrupt_record",
    "verify_readable_schema",
]
