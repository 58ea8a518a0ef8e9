# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from csvexpr.contracts.types import DoubleType, IntegerType, StringType, StructField, StructType
from csvexpr.core.config import set_settings
from csvexpr.core.options import CsvOptions

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Each test starts from default session settings."""
    set_settings(None)
    yield
    set_settings(None)


@pytest.fixture
def make_options() -> Callable[..., CsvOptions]:
    """Build CsvOptions from a plain option map with session defaults."""

    def _make(parameters: dict[str, str] | None = None, **kwargs: Any) -> CsvOptions:
        return CsvOptions.from_map(
            parameters or {},
            default_time_zone_id=kwargs.pop("time_zone", "UTC"),
            default_column_name_of_corrupt_record=kwargs.pop("corrupt", "_corrupt_record"),
            **kwargs,
        )

    return _make


@pytest.fixture
def int_double_schema() -> StructType:
    return StructType([StructField("a", IntegerType()), StructField("b", DoubleType())])


@pytest.fixture
def schema_with_corrupt() -> StructType:
    return StructType(
        [
            StructField("a", IntegerType()),
            StructField("b", DoubleType()),
            StructField("_corrupt_record", StringType()),
        ]
    )
