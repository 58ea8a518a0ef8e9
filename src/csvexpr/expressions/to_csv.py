# src/csvexpr/expressions/to_csv.py
"""``to_csv(struct[, options])``: encode a struct as one CSV record."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from csvexpr.codec.generator import CsvGenerator
from csvexpr.codec.type_support import is_supported_data_type
from csvexpr.contracts.enums import TypeMismatchKind
from csvexpr.contracts.rows import Row, row_from_mapping
from csvexpr.contracts.type_check import TYPE_CHECK_SUCCESS, DataTypeMismatch, TypeCheckResult
from csvexpr.contracts.types import StringType, StructType
from csvexpr.core.config import CodecSettings, get_settings
from csvexpr.core.options import CsvOptions
from csvexpr.core.slots import LazySlot
from csvexpr.expressions.base import Expression, UnaryExpression, compile_expression


class StructsToCsv(UnaryExpression):
    """Render the child struct as CSV text.

    The child may evaluate to a tuple aligned with its struct type or to a
    mapping keyed by field name. Input types are validated by
    check_input_data_types(); the writer is built on first evaluation.

    Raises:
        InvalidOptionsError: At construction, if an option value is invalid
    """

    pretty_name = "to_csv"

    def __init__(
        self,
        options: Mapping[str, str],
        child: Expression,
        time_zone_id: str | None = None,
        *,
        settings: CodecSettings | None = None,
    ) -> None:
        super().__init__(child)
        self.options = dict(options)
        self.time_zone_id = time_zone_id
        self._settings = settings if settings is not None else get_settings()
        self._parsed_options = CsvOptions.from_map(
            self.options,
            column_pruning=True,
            default_time_zone_id=time_zone_id or self._settings.session_time_zone,
            default_column_name_of_corrupt_record=self._settings.column_name_of_corrupt_record,
        )
        self._writer: LazySlot[CsvGenerator] = LazySlot("to_csv.writer", self._build_writer)

    @property
    def data_type(self) -> StringType:
        return StringType()

    @property
    def nullable(self) -> bool:
        return True

    @property
    def input_schema(self) -> StructType:
        data_type = self.child.data_type
        if not isinstance(data_type, StructType):
            raise TypeError(f"to_csv input must be a struct, got {data_type.sql}")
        return data_type

    def check_input_data_types(self) -> TypeCheckResult:
        data_type = self.child.data_type
        if isinstance(data_type, StructType) and all(is_supported_data_type(f.data_type) for f in data_type):
            return TYPE_CHECK_SUCCESS
        return DataTypeMismatch(
            TypeMismatchKind.UNSUPPORTED_INPUT_TYPE,
            {"functionName": self.pretty_name, "dataType": data_type.sql},
        )

    def with_time_zone(self, time_zone_id: str) -> StructsToCsv:
        return StructsToCsv(self.options, self.child, time_zone_id, settings=self._settings)

    def _build_writer(self) -> CsvGenerator:
        return CsvGenerator(self.input_schema, self._parsed_options)

    def _to_row(self, value: Any) -> Row:
        if isinstance(value, Mapping):
            return row_from_mapping(self.input_schema, value)
        return tuple(value)

    def null_safe_eval(self, value: Any) -> str:
        return self._writer.get().write_to_string(self._to_row(value))

    def gen_code(self) -> Callable[[Row | None], Any]:
        """Specialized evaluator with the writer and child bound up front."""
        write = self._writer.get().write_to_string
        child = compile_expression(self.child)
        to_row = self._to_row

        def evaluate(input_row: Row | None = None) -> str | None:
            value = child(input_row)
            if value is None:
                return None
            return write(to_row(value))

        return evaluate

    def close(self) -> None:
        """Release the writer, if it was built."""
        writer = self._writer.peek()
        if writer is not None:
            writer.close()

    def sql(self) -> str:
        return f"to_csv({self.child.sql()})"
