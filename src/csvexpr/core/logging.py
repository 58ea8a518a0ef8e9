# src/csvexpr/core/logging.py
"""Structured logging for csvexpr.

Codec modules log through ``structlog.get_logger(__name__)``; stdlib
records are routed through the same ProcessorFormatter so both come out
in one format on stderr. Raw CSV records attached to log events are cut
to the session's preview length, the same bound FAILFAST errors use.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from csvexpr.core.config import get_settings

# Event keys that may carry a raw CSV record
RECORD_KEYS = frozenset({"record", "text"})


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop ProcessorFormatter bookkeeping. Both keys are always present."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def shorten_records(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Cut raw record values to ``malformed_record_preview_length`` characters."""
    limit = get_settings().malformed_record_preview_length
    for key in RECORD_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str) and len(value) > limit:
            event_dict[key] = value[:limit] + "..."
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "WARNING",
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        json_output: If True, one JSON object per line. If False, console text.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        shorten_records,
    ]

    final_processors: list[Any] = [_remove_internal_fields]
    if json_output:
        final_processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final_processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure between cases
        cache_logger_on_first_use=False,
    )

    # stdout is reserved for command results
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper()))
