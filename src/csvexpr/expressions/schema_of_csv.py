# src/csvexpr/expressions/schema_of_csv.py
"""``schema_of_csv(csv[, options])``: infer a struct type from sample text."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from csvexpr.codec.inference import SchemaOfCsvEvaluator
from csvexpr.contracts.enums import TypeMismatchKind
from csvexpr.contracts.type_check import TYPE_CHECK_SUCCESS, DataTypeMismatch, TypeCheckResult
from csvexpr.contracts.types import NullType, StringType
from csvexpr.core.config import CodecSettings, get_settings
from csvexpr.core.options import CsvOptions
from csvexpr.core.slots import LazySlot
from csvexpr.expressions.base import Expression, UnaryExpression


class SchemaOfCsv(UnaryExpression):
    """Infer the schema of a constant CSV sample.

    The input must be foldable and not null; both are checked by
    check_input_data_types() and reported as distinct mismatches.
    """

    pretty_name = "schema_of_csv"

    def __init__(
        self,
        child: Expression,
        options: Mapping[str, str] | None = None,
        *,
        settings: CodecSettings | None = None,
    ) -> None:
        super().__init__(child)
        self.options = dict(options or {})
        self._settings = settings if settings is not None else get_settings()
        self._parsed_options = CsvOptions.from_map(
            self.options,
            column_pruning=False,
            default_time_zone_id=self._settings.session_time_zone,
            default_column_name_of_corrupt_record=self._settings.column_name_of_corrupt_record,
        )
        self._evaluator: LazySlot[SchemaOfCsvEvaluator] = LazySlot(
            "schema_of_csv.evaluator",
            lambda: SchemaOfCsvEvaluator(self._parsed_options),
        )

    @property
    def data_type(self) -> StringType:
        return StringType()

    @property
    def nullable(self) -> bool:
        return False

    @property
    def foldable(self) -> bool:
        return self.child.foldable

    def check_input_data_types(self) -> TypeCheckResult:
        if not self.child.foldable:
            return DataTypeMismatch(
                TypeMismatchKind.NON_FOLDABLE_INPUT,
                {
                    "inputName": "`csv`",
                    "inputType": self.child.data_type.sql,
                    "inputExpr": self.child.sql(),
                },
            )
        if self.child.eval() is None:
            return DataTypeMismatch(TypeMismatchKind.UNEXPECTED_NULL, {"exprName": "csv"})
        if not isinstance(self.child.data_type, (StringType, NullType)):
            return DataTypeMismatch(
                TypeMismatchKind.UNEXPECTED_INPUT_TYPE,
                {
                    "paramIndex": "first",
                    "requiredType": StringType().sql,
                    "inputSql": self.child.sql(),
                    "inputType": self.child.data_type.sql,
                },
            )
        return TYPE_CHECK_SUCCESS

    def null_safe_eval(self, value: Any) -> str:
        return self._evaluator.get().evaluate(str(value))

    def sql(self) -> str:
        return f"schema_of_csv({self.child.sql()})"
