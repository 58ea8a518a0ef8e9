# src/csvexpr/core/options.py
"""Options bundle for the CSV codec.

Options arrive as a string-to-string map (keys are case-insensitive) and are
validated once, when an expression binds. The resulting CsvOptions is frozen
and shared by the parser, the generator and the inference evaluator.

Example:
    options = CsvOptions.from_map(
        {"sep": ";", "timestampFormat": "dd/MM/yyyy"},
        default_time_zone_id="UTC",
        default_column_name_of_corrupt_record="_corrupt_record",
    )
"""

from __future__ import annotations

import csv
from collections.abc import Mapping
from typing import Any, Self
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ValidationError, field_validator

from csvexpr.contracts.enums import ParseMode
from csvexpr.contracts.errors import InvalidOptionsError
from csvexpr.core.datetime_formats import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_TIMESTAMP_NTZ_WRITE_FORMAT,
    DEFAULT_TIMESTAMP_WRITE_FORMAT,
    DateTimePattern,
    DateTimeReader,
    IsoDateTimeParser,
    resolve_time_zone,
)

# Unicode noncharacter used as record separator when a whole value must be
# read as exactly one record. It never appears in well-formed text.
SINGLE_RECORD_LINE_SEPARATOR = "\uffff"

_ESCAPED_CHARS = {
    "\\t": "\t",
    "\\r": "\r",
    "\\b": "\b",
    "\\f": "\f",
    '\\"': '"',
    "\\'": "'",
    "\\\\": "\\",
    "\\u0000": "\u0000",
}


def to_char(value: str, option: str) -> str:
    """Resolve a single-character option, honouring backslash escapes.

    Raises:
        ValueError: If the value is empty, a lone backslash, or more than
            one character.
    """
    if value == "":
        raise ValueError(f"Option '{option}' cannot be an empty string")
    if len(value) == 1:
        if value == "\\":
            raise ValueError(f"Single backslash is prohibited for option '{option}'. Use '\\\\' instead")
        return value
    if value in _ESCAPED_CHARS:
        return _ESCAPED_CHARS[value]
    if value.startswith("\\"):
        raise ValueError(f"Unsupported special character for option '{option}': {value!r}")
    raise ValueError(f"Option '{option}' cannot be more than one character: {value!r}")


def _parse_bool(value: str, option: str) -> bool:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Option '{option}' must be 'true' or 'false', got {value!r}")


class _CaseInsensitiveOptions:
    """Read-only view of an option map with case-insensitive keys."""

    def __init__(self, parameters: Mapping[str, str]) -> None:
        self._values: dict[str, str] = {}
        for key, value in parameters.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise InvalidOptionsError(
                    f"Option keys and values must be strings, got {type(key).__name__} -> {type(value).__name__}",
                    error_class="INVALID_OPTIONS.NON_STRING_TYPE",
                    message_parameters={"key": str(key)},
                )
            self._values[key.lower()] = value

    def get(self, *keys: str) -> str | None:
        """First value present among ``keys`` (aliases), or None."""
        for key in keys:
            value = self._values.get(key.lower())
            if value is not None:
                return value
        return None

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._values


class CsvOptions(BaseModel):
    """Validated CSV options.

    Read and write defaults differ for whitespace handling, matching how
    delimited text is usually produced versus consumed.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    delimiter: str = ","
    quote: str | None = '"'
    escape: str | None = "\\"
    comment: str | None = None
    header: bool = False
    ignore_leading_white_space_in_read: bool = False
    ignore_trailing_white_space_in_read: bool = False
    ignore_leading_white_space_in_write: bool = True
    ignore_trailing_white_space_in_write: bool = True
    null_value: str = ""
    nan_value: str = "NaN"
    positive_inf: str = "Inf"
    negative_inf: str = "-Inf"
    date_format: str | None = None
    timestamp_format: str | None = None
    timestamp_ntz_format: str | None = None
    time_zone: str = "UTC"
    parse_mode: ParseMode = ParseMode.PERMISSIVE
    column_name_of_corrupt_record: str = "_corrupt_record"
    corrupt_record_column_explicit: bool = False
    line_separator: str | None = None
    quote_all: bool = False
    escape_quotes: bool = True
    column_pruning: bool = True
    prefers_date: bool = True
    prefers_decimal: bool = False

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        resolve_time_zone(v)
        return v

    @field_validator("date_format", "timestamp_format", "timestamp_ntz_format")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        if v is not None:
            DateTimePattern(v)
        return v

    @field_validator("line_separator")
    @classmethod
    def validate_line_separator(cls, v: str | None) -> str | None:
        if v is not None and v == "":
            raise ValueError("'lineSep' cannot be an empty string")
        return v

    @classmethod
    def from_map(
        cls,
        parameters: Mapping[str, str],
        *,
        column_pruning: bool = True,
        default_time_zone_id: str,
        default_column_name_of_corrupt_record: str,
    ) -> Self:
        """Build options from a string map plus engine-level settings.

        Raises:
            InvalidOptionsError: If any option value is invalid.
        """
        opts = _CaseInsensitiveOptions(parameters)
        values: dict[str, Any] = {
            "column_pruning": column_pruning,
            "time_zone": default_time_zone_id,
            "column_name_of_corrupt_record": default_column_name_of_corrupt_record,
        }
        try:
            sep = opts.get("sep", "delimiter")
            if sep is not None:
                values["delimiter"] = to_char(sep, "sep")
            quote = opts.get("quote")
            if quote is not None:
                values["quote"] = None if quote == "" else to_char(quote, "quote")
            escape = opts.get("escape")
            if escape is not None:
                values["escape"] = None if escape == "" else to_char(escape, "escape")
            comment = opts.get("comment")
            if comment is not None and comment != "":
                values["comment"] = to_char(comment, "comment")

            for key, fields in (
                ("header", ("header",)),
                ("ignoreLeadingWhiteSpace", ("ignore_leading_white_space_in_read", "ignore_leading_white_space_in_write")),
                ("ignoreTrailingWhiteSpace", ("ignore_trailing_white_space_in_read", "ignore_trailing_white_space_in_write")),
                ("quoteAll", ("quote_all",)),
                ("escapeQuotes", ("escape_quotes",)),
                ("prefersDate", ("prefers_date",)),
                ("prefersDecimal", ("prefers_decimal",)),
            ):
                raw = opts.get(key)
                if raw is not None:
                    flag = _parse_bool(raw, key)
                    for name in fields:
                        values[name] = flag

            for key, name in (
                ("nullValue", "null_value"),
                ("nanValue", "nan_value"),
                ("positiveInf", "positive_inf"),
                ("negativeInf", "negative_inf"),
                ("dateFormat", "date_format"),
                ("timestampFormat", "timestamp_format"),
                ("timestampNTZFormat", "timestamp_ntz_format"),
                ("timeZone", "time_zone"),
                ("lineSep", "line_separator"),
            ):
                raw = opts.get(key)
                if raw is not None:
                    values[name] = raw

            mode = opts.get("mode")
            if mode is not None:
                values["parse_mode"] = ParseMode.from_string(mode)

            corrupt = opts.get("columnNameOfCorruptRecord")
            if corrupt is not None:
                values["column_name_of_corrupt_record"] = corrupt
                values["corrupt_record_column_explicit"] = True

            return cls(**values)
        except ValidationError as e:
            raise InvalidOptionsError(
                f"Invalid CSV options: {e}",
                error_class="INVALID_OPTIONS.INVALID_VALUE",
            ) from e
        except ValueError as e:
            raise InvalidOptionsError(
                f"Invalid CSV options: {e}",
                error_class="INVALID_OPTIONS.INVALID_VALUE",
            ) from e

    def with_line_separator(self, separator: str) -> CsvOptions:
        """Copy of these options with the record separator replaced."""
        return self.model_copy(update={"line_separator": separator})

    # --- derived helpers -----------------------------------------------------

    @property
    def zone(self) -> ZoneInfo:
        return resolve_time_zone(self.time_zone)

    def reader_dialect(self) -> dict[str, Any]:
        """Keyword arguments for csv.reader.

        With quoting enabled the escape character is resolved before
        tokenizing (see ``codec.parser.unescape_quoted_values``), so it is
        only handed to csv.reader when quoting is disabled.
        """
        return {
            "delimiter": self.delimiter,
            "quotechar": self.quote,
            "escapechar": self.escape if self.quote is None else None,
            "doublequote": True,
            "quoting": csv.QUOTE_MINIMAL if self.quote is not None else csv.QUOTE_NONE,
            "skipinitialspace": self.ignore_leading_white_space_in_read,
            "strict": False,
        }

    @property
    def escapes_quotes_with_escape(self) -> bool:
        """True if quotes inside quoted values are written as escape + quote."""
        return self.escape_quotes and self.quote is not None and self.escape is not None and self.escape != self.quote

    def writer_dialect(self) -> dict[str, Any]:
        """Keyword arguments for csv.writer.

        Quotes inside values are always doubled here; the generator turns
        them into escaped quotes when ``escapes_quotes_with_escape`` is set.
        """
        if self.quote is None:
            quoting = csv.QUOTE_NONE
        elif self.quote_all:
            quoting = csv.QUOTE_ALL
        else:
            quoting = csv.QUOTE_MINIMAL
        return {
            "delimiter": self.delimiter,
            "quotechar": self.quote,
            "escapechar": self.escape if quoting == csv.QUOTE_NONE else None,
            "doublequote": True,
            "quoting": quoting,
            "lineterminator": "\n",
        }

    def date_reader(self) -> DateTimeReader:
        return DateTimePattern(self.date_format) if self.date_format is not None else DateTimePattern(DEFAULT_DATE_FORMAT)

    def timestamp_reader(self) -> DateTimeReader:
        return DateTimePattern(self.timestamp_format) if self.timestamp_format is not None else IsoDateTimeParser()

    def timestamp_ntz_reader(self) -> DateTimeReader:
        return DateTimePattern(self.timestamp_ntz_format) if self.timestamp_ntz_format is not None else IsoDateTimeParser()

    def date_writer(self) -> DateTimePattern:
        return DateTimePattern(self.date_format or DEFAULT_DATE_FORMAT)

    def timestamp_writer(self) -> DateTimePattern:
        return DateTimePattern(self.timestamp_format or DEFAULT_TIMESTAMP_WRITE_FORMAT)

    def timestamp_ntz_writer(self) -> DateTimePattern:
        return DateTimePattern(self.timestamp_ntz_format or DEFAULT_TIMESTAMP_NTZ_WRITE_FORMAT)
