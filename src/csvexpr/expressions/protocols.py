# src/csvexpr/expressions/protocols.py
"""Capability protocols for expressions.

An expression implements exactly the capabilities it needs. The engine
discovers them with isinstance() checks instead of walking a class
hierarchy:

- SchemaBound: decodes against a declared schema
- TimeZoneAware: interprets or formats timestamps in a zone
- CodeGenerable: offers a specialized per-row callable
- TypeChecked: validates its children's types at bind time
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from csvexpr.contracts.rows import Row
    from csvexpr.contracts.type_check import TypeCheckResult
    from csvexpr.contracts.types import StructType


@runtime_checkable
class SchemaBound(Protocol):
    """Decodes input against a schema resolved at construction."""

    @property
    def schema(self) -> StructType: ...


@runtime_checkable
class TimeZoneAware(Protocol):
    """Needs a time zone to evaluate.

    ``with_time_zone`` returns a new, independently bound instance; the
    receiver is left untouched.
    """

    time_zone_id: str | None

    def with_time_zone(self, time_zone_id: str) -> TimeZoneAware: ...


@runtime_checkable
class CodeGenerable(Protocol):
    """Offers a specialized evaluation path.

    The returned callable must produce exactly what ``eval`` produces for
    every input row.
    """

    def gen_code(self) -> Callable[[Row | None], Any]: ...


@runtime_checkable
class TypeChecked(Protocol):
    """Validates its inputs once, before any row is evaluated."""

    def check_input_data_types(self) -> TypeCheckResult: ...
