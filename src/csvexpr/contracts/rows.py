"""Row helpers.

A row is a plain tuple whose positions line up with a StructType's fields.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeAlias

from csvexpr.contracts.types import StructType

Row: TypeAlias = tuple[Any, ...]


def null_row(schema: StructType) -> Row:
    """A row of the schema's shape with every field null."""
    return (None,) * len(schema)


def row_from_mapping(schema: StructType, values: Mapping[str, Any]) -> Row:
    """Align a name->value mapping to the schema's field order.

    Missing names become None.

    Raises:
        ValueError: If the mapping has names the schema does not declare.
    """
    extra = set(values) - set(schema.field_names)
    if extra:
        raise ValueError(f"Values for undeclared fields: {', '.join(sorted(extra))}")
    return tuple(values.get(name) for name in schema.field_names)


def row_as_dict(schema: StructType, row: Row) -> dict[str, Any]:
    """Pair each value with its field name."""
    if len(row) != len(schema):
        raise ValueError(f"Row has {len(row)} values but schema has {len(schema)} fields")
    return dict(zip(schema.field_names, row, strict=True))
