# src/csvexpr/expressions/base.py
"""Minimal expression tree used to host the CSV functions.

Only what the CSV functions need from an expression engine is modelled:
output type, nullability, foldability, per-row evaluation and SQL text.
Leaves are Literal (a constant), BoundReference (a column of the input
row) and CreateMap (a map built from constant key/value pairs, the form
options are passed in).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any, ClassVar

from csvexpr.contracts.rows import Row
from csvexpr.contracts.type_check import DataTypeMismatch
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
)
from csvexpr.expressions.protocols import CodeGenerable, TypeChecked

Evaluator = Callable[[Row | None], Any]


class Expression(ABC):
    """A node in an expression tree."""

    pretty_name: ClassVar[str] = "expression"

    @property
    def children(self) -> tuple[Expression, ...]:
        return ()

    @property
    @abstractmethod
    def data_type(self) -> DataType: ...

    @property
    def nullable(self) -> bool:
        return True

    @property
    def foldable(self) -> bool:
        return False

    @abstractmethod
    def eval(self, input_row: Row | None = None) -> Any:
        """Evaluate against one input row (None for constant evaluation)."""

    def sql(self) -> str:
        return f"{self.pretty_name}({', '.join(c.sql() for c in self.children)})"

    def __repr__(self) -> str:
        return self.sql()


class UnaryExpression(Expression):
    """An expression over one child that returns null for null input."""

    def __init__(self, child: Expression) -> None:
        self.child = child

    @property
    def children(self) -> tuple[Expression, ...]:
        return (self.child,)

    def eval(self, input_row: Row | None = None) -> Any:
        value = self.child.eval(input_row)
        if value is None:
            return None
        return self.null_safe_eval(value)

    @abstractmethod
    def null_safe_eval(self, value: Any) -> Any: ...


def _infer_literal_type(value: Any) -> DataType:
    if value is None:
        return NullType()
    if isinstance(value, bool):
        return BooleanType()
    if isinstance(value, int):
        return IntegerType() if -(2**31) <= value < 2**31 else LongType()
    if isinstance(value, float):
        return DoubleType()
    if isinstance(value, Decimal):
        digits = len(value.as_tuple().digits)
        scale = max(0, -int(value.as_tuple().exponent))
        return DecimalType(max(digits, scale), scale)
    if isinstance(value, str):
        return StringType()
    raise TypeError(f"Cannot infer a literal type for {type(value).__name__}")


class Literal(Expression):
    """A constant value."""

    pretty_name = "literal"

    def __init__(self, value: Any, data_type: DataType | None = None) -> None:
        self.value = value
        self._data_type = data_type if data_type is not None else _infer_literal_type(value)

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def nullable(self) -> bool:
        return self.value is None

    @property
    def foldable(self) -> bool:
        return True

    def eval(self, input_row: Row | None = None) -> Any:
        return self.value

    def sql(self) -> str:
        if self.value is None:
            return "NULL"
        if isinstance(self.value, str):
            escaped = self.value.replace("\\", "\\\\").replace("'", "\\'")
            return f"'{escaped}'"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)


class BoundReference(Expression):
    """A column of the input row, by position. Never foldable."""

    pretty_name = "input"

    def __init__(self, ordinal: int, data_type: DataType, nullable: bool = True, name: str | None = None) -> None:
        self.ordinal = ordinal
        self._data_type = data_type
        self._nullable = nullable
        self.name = name

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def nullable(self) -> bool:
        return self._nullable

    def eval(self, input_row: Row | None = None) -> Any:
        if input_row is None:
            raise ValueError(f"{self.sql()} cannot be evaluated without an input row")
        return input_row[self.ordinal]

    def sql(self) -> str:
        return self.name if self.name is not None else f"input[{self.ordinal}]"


class CreateMap(Expression):
    """``map(k1, v1, k2, v2, ...)``.

    Key and value types are taken from the first pair; an empty map is
    ``MAP<STRING, STRING>``.
    """

    pretty_name = "map"

    def __init__(self, children: list[Expression] | tuple[Expression, ...]) -> None:
        if len(children) % 2 != 0:
            raise ValueError(f"map() expects an even number of arguments, got {len(children)}")
        self._children = tuple(children)

    @classmethod
    def of(cls, entries: Mapping[Any, Any]) -> CreateMap:
        """Build from a Python mapping of constants."""
        children: list[Expression] = []
        for key, value in entries.items():
            children.extend((Literal(key), Literal(value)))
        return cls(children)

    @property
    def children(self) -> tuple[Expression, ...]:
        return self._children

    @property
    def keys(self) -> tuple[Expression, ...]:
        return self._children[0::2]

    @property
    def values(self) -> tuple[Expression, ...]:
        return self._children[1::2]

    @property
    def data_type(self) -> MapType:
        if not self._children:
            return MapType(StringType(), StringType())
        return MapType(self.keys[0].data_type, self.values[0].data_type)

    @property
    def nullable(self) -> bool:
        return False

    @property
    def foldable(self) -> bool:
        return all(c.foldable for c in self._children)

    def eval(self, input_row: Row | None = None) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key, value in zip(self.keys, self.values, strict=True):
            k = key.eval(input_row)
            if k is None:
                raise ValueError("Map keys cannot be null")
            result[k] = value.eval(input_row)
        return result


def check_analysis(expression: Expression) -> None:
    """Run bind-time input checks on ``expression`` and its subtree.

    Raises:
        DataTypeMismatchError: From the first failing check, children first.
    """
    for child in expression.children:
        check_analysis(child)
    if isinstance(expression, TypeChecked):
        result = expression.check_input_data_types()
        if isinstance(result, DataTypeMismatch):
            raise result.to_error(expression.sql())


def compile_expression(expression: Expression) -> Evaluator:
    """Per-row callable for ``expression``.

    Uses the specialized path when the expression offers one, else the
    interpreted ``eval``. Both produce the same results.
    """
    if isinstance(expression, CodeGenerable):
        return expression.gen_code()
    return expression.eval
