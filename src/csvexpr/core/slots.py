# src/csvexpr/core/slots.py
"""Owned, lazily-populated slots.

Expressions build their heavy collaborators (parser, writer, inference
evaluator) on first use and keep them for their whole lifetime. A LazySlot
makes that explicit: it is filled exactly once by its factory and is never
replaced afterwards.

Slots are confined to the thread that drives their owner. There is no
locking: an engine that evaluates rows in parallel builds one expression
instance per worker.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class LazySlot(Generic[T]):
    """A value built once, on first access, and immutable thereafter.

    If the factory raises, the slot stays empty and the error propagates;
    the next access runs the factory again.

    Example:
        self._parser = LazySlot("parser", self._build_parser)
        ...
        rows = self._parser.get().parse(text)
    """

    __slots__ = ("_factory", "_filled", "_name", "_value")

    def __init__(self, name: str, factory: Callable[[], T]) -> None:
        self._name = name
        self._factory = factory
        self._filled = False
        self._value: T | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_populated(self) -> bool:
        return self._filled

    def get(self) -> T:
        """Return the slot's value, building it on first call."""
        if not self._filled:
            value = self._factory()
            self._value = value
            self._filled = True
            logger.debug("lazy_slot_populated", slot=self._name)
            return value
        return self._value  # type: ignore[return-value]

    def peek(self) -> T | None:
        """Return the value if already built, without building it."""
        return self._value if self._filled else None
