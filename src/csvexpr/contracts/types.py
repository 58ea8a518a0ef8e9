# src/csvexpr/contracts/types.py
"""Data types for schemas and row values.

Types are immutable value objects. Two instances of the same type with the
same parameters compare equal, so schemas can be compared structurally.

Scalar types map to Python values as follows:

    BooleanType         -> bool
    Byte/Short/Int/Long -> int
    Float/DoubleType    -> float
    DecimalType         -> decimal.Decimal
    StringType          -> str
    BinaryType          -> bytes
    DateType            -> datetime.date
    TimestampType       -> datetime.datetime (zone-aware)
    TimestampNTZType    -> datetime.datetime (naive)
    NullType            -> None

Containers hold lists (ArrayType), dicts (MapType) and tuples (StructType).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, overload

# Identifiers that can be rendered without back-quotes in SQL text
_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

MAX_DECIMAL_PRECISION = 38


def quote_if_needed(name: str) -> str:
    """Back-quote a field name unless it is a plain identifier."""
    if _PLAIN_IDENTIFIER.match(name):
        return name
    return "`" + name.replace("`", "``") + "`"


class DataType:
    """Base class for all data types."""

    type_name: ClassVar[str] = ""

    @property
    def sql(self) -> str:
        """SQL rendering, e.g. ``INT`` or ``ARRAY<STRING>``."""
        return self.type_name

    @property
    def simple_string(self) -> str:
        """Short lowercase rendering, e.g. ``int`` or ``array<string>``."""
        return self.type_name.lower()

    def as_nullable(self) -> DataType:
        """Return this type with every nested nullability flag forced true."""
        return self

    def __str__(self) -> str:
        return self.simple_string


@dataclass(frozen=True)
class NullType(DataType):
    type_name: ClassVar[str] = "VOID"


@dataclass(frozen=True)
class BooleanType(DataType):
    type_name: ClassVar[str] = "BOOLEAN"


@dataclass(frozen=True)
class ByteType(DataType):
    type_name: ClassVar[str] = "TINYINT"


@dataclass(frozen=True)
class ShortType(DataType):
    type_name: ClassVar[str] = "SMALLINT"


@dataclass(frozen=True)
class IntegerType(DataType):
    type_name: ClassVar[str] = "INT"


@dataclass(frozen=True)
class LongType(DataType):
    type_name: ClassVar[str] = "BIGINT"


@dataclass(frozen=True)
class FloatType(DataType):
    type_name: ClassVar[str] = "FLOAT"


@dataclass(frozen=True)
class DoubleType(DataType):
    type_name: ClassVar[str] = "DOUBLE"


@dataclass(frozen=True)
class DecimalType(DataType):
    """Fixed-point decimal with ``precision`` total digits and ``scale`` fraction digits."""

    type_name: ClassVar[str] = "DECIMAL"

    precision: int = 10
    scale: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.precision <= MAX_DECIMAL_PRECISION:
            raise ValueError(f"Decimal precision {self.precision} is out of range 1..{MAX_DECIMAL_PRECISION}")
        if not 0 <= self.scale <= self.precision:
            raise ValueError(f"Decimal scale {self.scale} must be between 0 and precision {self.precision}")

    @property
    def sql(self) -> str:
        return f"DECIMAL({self.precision},{self.scale})"

    @property
    def simple_string(self) -> str:
        return f"decimal({self.precision},{self.scale})"


@dataclass(frozen=True)
class StringType(DataType):
    type_name: ClassVar[str] = "STRING"


@dataclass(frozen=True)
class BinaryType(DataType):
    type_name: ClassVar[str] = "BINARY"


@dataclass(frozen=True)
class DateType(DataType):
    type_name: ClassVar[str] = "DATE"


@dataclass(frozen=True)
class TimestampType(DataType):
    type_name: ClassVar[str] = "TIMESTAMP"


@dataclass(frozen=True)
class TimestampNTZType(DataType):
    type_name: ClassVar[str] = "TIMESTAMP_NTZ"


@dataclass(frozen=True)
class VariantType(DataType):
    """Open-ended semi-structured value. Has no delimited-text form."""

    type_name: ClassVar[str] = "VARIANT"


@dataclass(frozen=True)
class ArrayType(DataType):
    type_name: ClassVar[str] = "ARRAY"

    element_type: DataType
    contains_null: bool = True

    @property
    def sql(self) -> str:
        return f"ARRAY<{self.element_type.sql}>"

    @property
    def simple_string(self) -> str:
        return f"array<{self.element_type.simple_string}>"

    def as_nullable(self) -> ArrayType:
        return ArrayType(self.element_type.as_nullable(), contains_null=True)


@dataclass(frozen=True)
class MapType(DataType):
    type_name: ClassVar[str] = "MAP"

    key_type: DataType
    value_type: DataType
    value_contains_null: bool = True

    @property
    def sql(self) -> str:
        return f"MAP<{self.key_type.sql}, {self.value_type.sql}>"

    @property
    def simple_string(self) -> str:
        return f"map<{self.key_type.simple_string},{self.value_type.simple_string}>"

    def as_nullable(self) -> MapType:
        return MapType(self.key_type.as_nullable(), self.value_type.as_nullable(), value_contains_null=True)


@dataclass(frozen=True)
class StructField:
    """A named, typed member of a StructType."""

    name: str
    data_type: DataType
    nullable: bool = True
    comment: str | None = field(default=None, compare=False)

    @property
    def sql(self) -> str:
        return f"{quote_if_needed(self.name)}: {self.data_type.sql}"

    def as_nullable(self) -> StructField:
        return replace(self, data_type=self.data_type.as_nullable(), nullable=True)


@dataclass(frozen=True, init=False)
class StructType(DataType):
    """Ordered sequence of uniquely named fields.

    Field order is significant: rows of this type are tuples whose positions
    line up with ``fields``.
    """

    type_name: ClassVar[str] = "STRUCT"

    fields: tuple[StructField, ...] = ()

    def __init__(self, fields: Iterable[StructField] = ()) -> None:
        object.__setattr__(self, "fields", tuple(fields))
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate field names in struct: {', '.join(duplicates)}")

    def __iter__(self) -> Iterator[StructField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @overload
    def __getitem__(self, key: int) -> StructField: ...

    @overload
    def __getitem__(self, key: str) -> StructField: ...

    def __getitem__(self, key: int | str) -> StructField:
        if isinstance(key, str):
            index = self.field_index(key)
            if index is None:
                raise KeyError(f"No field named '{key}'. Available fields: {', '.join(self.field_names)}")
            return self.fields[index]
        return self.fields[key]

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def field_index(self, name: str) -> int | None:
        """Position of the field called ``name``, or None if absent."""
        for i, f in enumerate(self.fields):
            if f.name == name:
                return i
        return None

    def without(self, name: str) -> StructType:
        """Return a copy with the field called ``name`` removed (if present)."""
        return StructType(f for f in self.fields if f.name != name)

    def as_nullable(self) -> StructType:
        return StructType(f.as_nullable() for f in self.fields)

    @property
    def sql(self) -> str:
        return f"STRUCT<{', '.join(f.sql for f in self.fields)}>"

    @property
    def simple_string(self) -> str:
        return f"struct<{','.join(f'{f.name}:{f.data_type.simple_string}' for f in self.fields)}>"

    def to_ddl(self) -> str:
        """Render as a table-schema DDL string, e.g. ``a INT, b STRING NOT NULL``."""
        parts = []
        for f in self.fields:
            ddl = f"{quote_if_needed(f.name)} {f.data_type.sql}"
            if not f.nullable:
                ddl += " NOT NULL"
            if f.comment is not None:
                escaped = f.comment.replace("\\", "\\\\").replace("'", "\\'")
                ddl += f" COMMENT '{escaped}'"
            parts.append(ddl)
        return ", ".join(parts)


class UserDefinedType(DataType, ABC):
    """A user-defined type backed by a physical SQL representation.

    Values of a UDT travel through the codec in their physical form, so
    every codec decision is delegated to ``sql_type``.

    Example:
        class PointUDT(UserDefinedType):
            user_class = "Point"

            @property
            def sql_type(self) -> DataType:
                return ArrayType(DoubleType(), contains_null=False)
    """

    type_name: ClassVar[str] = "UDT"
    user_class: ClassVar[str] = "object"

    @property
    @abstractmethod
    def sql_type(self) -> DataType: ...

    @property
    def sql(self) -> str:
        return self.sql_type.sql

    @property
    def simple_string(self) -> str:
        return self.user_class.lower()

    def __eq__(self, other: Any) -> bool:
        return type(other) is type(self) and other.sql_type == self.sql_type

    def __hash__(self) -> int:
        return hash((type(self), self.sql_type))


INTEGRAL_TYPES: tuple[type[DataType], ...] = (ByteType, ShortType, IntegerType, LongType)

# Inclusive value ranges for integral types
INTEGRAL_RANGES: dict[type[DataType], tuple[int, int]] = {
    ByteType: (-(2**7), 2**7 - 1),
    ShortType: (-(2**15), 2**15 - 1),
    IntegerType: (-(2**31), 2**31 - 1),
    LongType: (-(2**63), 2**63 - 1),
}


def is_atomic(data_type: DataType) -> bool:
    """True for types that are neither containers, variants nor UDTs."""
    return not isinstance(data_type, (ArrayType, MapType, StructType, VariantType, UserDefinedType))
