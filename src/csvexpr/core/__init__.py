"""Core infrastructure: settings, options, logging and lazy slots."""

from csvexpr.core.config import CodecSettings, get_settings, load_settings, set_settings
from csvexpr.core.logging import configure_logging
from csvexpr.core.options import SINGLE_RECORD_LINE_SEPARATOR, CsvOptions
from csvexpr.core.slots import LazySlot

__all__ = [
    "SINGLE_RECORD_LINE_SEPARATOR",
    "CodecSettings",
    "CsvOptions",
    "LazySlot",
    "configure_logging",
    "get_settings",
    "load_settings",
    "set_settings",
]
