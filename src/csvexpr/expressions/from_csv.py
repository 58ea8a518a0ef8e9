# src/csvexpr/expressions/from_csv.py
"""``from_csv(text, schema[, options])``: decode one CSV record into a struct.

Everything that can be checked without data is checked at construction:
options, parse mode, the corrupt-record column and the readability of the
schema. The parser itself is built on first evaluation and reused for the
lifetime of the expression.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from typing import Any

import structlog

from csvexpr.codec.failure_safe import FailureSafeParser
from csvexpr.codec.parser import RawCsvParser
from csvexpr.codec.schema_resolver import ResolvedSchemas, resolve_schemas
from csvexpr.codec.type_support import verify_readable_schema
from csvexpr.contracts.enums import ParseMode, TypeMismatchKind
from csvexpr.contracts.errors import InternalCodecError, MalformedRecordError, ParseModeUnsupportedError
from csvexpr.contracts.rows import Row
from csvexpr.contracts.type_check import TYPE_CHECK_SUCCESS, DataTypeMismatch, TypeCheckResult
from csvexpr.contracts.types import NullType, StringType, StructType
from csvexpr.core.config import CodecSettings, get_settings
from csvexpr.core.options import SINGLE_RECORD_LINE_SEPARATOR, CsvOptions
from csvexpr.core.slots import LazySlot
from csvexpr.expressions.base import Expression, UnaryExpression

logger = structlog.get_logger(__name__)

_SUPPORTED_MODES = (ParseMode.PERMISSIVE, ParseMode.FAILFAST)


class CsvToStructs(UnaryExpression):
    """Parse a CSV string into a row of ``schema``.

    Args:
        schema: Declared schema; forced nullable
        options: CSV options (string to string, case-insensitive keys)
        child: Expression producing the CSV text
        time_zone_id: Zone for timestamp fields; defaults to the session zone
        required_schema: Optional subset of ``schema`` to materialize
        settings: Session settings; defaults to the active settings

    Raises:
        InvalidOptionsError: If an option value is invalid
        ParseModeUnsupportedError: If the mode is not PERMISSIVE or FAILFAST
        CorruptRecordColumnError: If the corrupt-record column is mistyped
        UnsupportedDataTypeError: If a field can't be read from a token
    """

    pretty_name = "from_csv"

    def __init__(
        self,
        schema: StructType,
        options: Mapping[str, str],
        child: Expression,
        time_zone_id: str | None = None,
        required_schema: StructType | None = None,
        *,
        settings: CodecSettings | None = None,
    ) -> None:
        super().__init__(child)
        self.schema = schema
        self.options = dict(options)
        self.time_zone_id = time_zone_id
        self.required_schema = required_schema
        self._settings = settings if settings is not None else get_settings()

        self._parsed_options = CsvOptions.from_map(
            self.options,
            column_pruning=True,
            default_time_zone_id=time_zone_id or self._settings.session_time_zone,
            default_column_name_of_corrupt_record=self._settings.column_name_of_corrupt_record,
        )
        if self._parsed_options.parse_mode not in _SUPPORTED_MODES:
            raise ParseModeUnsupportedError(self.pretty_name, self._parsed_options.parse_mode.value)

        self._schemas = resolve_schemas(
            schema,
            self._parsed_options.column_name_of_corrupt_record,
            required_schema=required_schema,
            explicit_corrupt_record_column=self._parsed_options.corrupt_record_column_explicit,
        )
        verify_readable_schema(self._schemas.actual_schema)

        self._parser: LazySlot[FailureSafeParser] = LazySlot("from_csv.parser", self._build_parser)

    # --- bind-time surface ---------------------------------------------------

    @property
    def data_type(self) -> StructType:
        return self._schemas.output_schema

    @property
    def nullable_schema(self) -> StructType:
        return self._schemas.nullable_schema

    @property
    def resolved_schemas(self) -> ResolvedSchemas:
        return self._schemas

    @property
    def parse_mode(self) -> ParseMode:
        return self._parsed_options.parse_mode

    @property
    def parsed_options(self) -> CsvOptions:
        return self._parsed_options

    def check_input_data_types(self) -> TypeCheckResult:
        if isinstance(self.child.data_type, (StringType, NullType)):
            return TYPE_CHECK_SUCCESS
        return DataTypeMismatch(
            TypeMismatchKind.UNEXPECTED_INPUT_TYPE,
            {
                "paramIndex": "first",
                "requiredType": StringType().sql,
                "inputSql": self.child.sql(),
                "inputType": self.child.data_type.sql,
            },
        )

    def with_time_zone(self, time_zone_id: str) -> CsvToStructs:
        return CsvToStructs(
            self.schema,
            self.options,
            self.child,
            time_zone_id,
            self.required_schema,
            settings=self._settings,
        )

    # --- evaluation ----------------------------------------------------------

    def _build_parser(self) -> FailureSafeParser:
        options = self._parsed_options.with_line_separator(SINGLE_RECORD_LINE_SEPARATOR)
        raw = RawCsvParser(self._schemas.actual_schema, options, self._schemas.actual_output_schema)
        return FailureSafeParser(
            partial(raw.parse, max_records=1),
            options.parse_mode,
            self._schemas.output_schema,
            options.column_name_of_corrupt_record,
            preview_length=self._settings.malformed_record_preview_length,
        )

    def _convert(self, rows: list[Row], text: str) -> Row:
        if len(rows) == 1:
            return rows[0]
        if len(rows) > 1:
            raise InternalCodecError(f"Expected at most one record from a single CSV value, got {len(rows)}")

        # No record at all, e.g. empty text
        if self.parse_mode == ParseMode.FAILFAST:
            raise MalformedRecordError(text, preview_length=self._settings.malformed_record_preview_length)
        corrupt = self._schemas.corrupt_record_column
        logger.debug("empty_csv_record", corrupt_record_column=corrupt)
        return tuple(text if name == corrupt else None for name in self.data_type.field_names)

    def null_safe_eval(self, value: Any) -> Row:
        text = str(value)
        return self._convert(self._parser.get().parse(text), text)

    def sql(self) -> str:
        return f"from_csv({self.child.sql()}, '{self.schema.to_ddl()}')"
