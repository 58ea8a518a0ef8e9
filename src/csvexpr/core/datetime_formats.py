# src/csvexpr/core/datetime_formats.py
"""Date/time pattern compilation.

Options carry patterns in the SQL engine's pattern-letter syntax
(``yyyy-MM-dd'T'HH:mm:ss.SSSXXX``). A pattern is compiled once into a list
of elements that drive both a formatter and a regex-based parser, so the
per-row cost is a single regex match or a join over pre-built renderers.

Supported letters:
    y   year            M/L  month (M, MM, MMM, MMMM)
    d   day of month    D    day of year
    H   hour 0-23       h    hour 1-12        a   AM/PM marker
    m   minute          s    second           S   fraction of second
    E   day name        X/x  zone offset      Z   zone offset
    VV  zone id         z    zone name (formatting only)

Text in single quotes is literal (``''`` is a quote). Square brackets mark
an optional section: the parser accepts input with or without it, the
formatter always renders it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_MONTHS_SHORT = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTHS_FULL = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_DAYS_SHORT = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_DAYS_FULL = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_SUPPORTED_LETTERS = frozenset("yuMLdDHhmsSaEXxZVz")

# Defaults used when options leave a pattern unset
DEFAULT_DATE_FORMAT = "yyyy-MM-dd"
DEFAULT_TIMESTAMP_WRITE_FORMAT = "yyyy-MM-dd'T'HH:mm:ss.SSSXXX"
DEFAULT_TIMESTAMP_NTZ_WRITE_FORMAT = "yyyy-MM-dd'T'HH:mm:ss[.SSS]"


@dataclass(frozen=True)
class _Field:
    letter: str
    count: int


@dataclass(frozen=True)
class _Literal:
    text: str


@dataclass(frozen=True)
class _Optional:
    elements: tuple[_Element, ...]


_Element = _Field | _Literal | _Optional


def _tokenize_pattern(pattern: str) -> tuple[_Element, ...]:
    """Split a pattern into fields, literals and optional sections."""
    stack: list[list[_Element]] = [[]]
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "'":
            end = i + 1
            text = []
            while True:
                if end >= len(pattern):
                    raise ValueError(f"Unterminated quote in pattern '{pattern}'")
                if pattern[end] == "'":
                    if end + 1 < len(pattern) and pattern[end + 1] == "'":
                        text.append("'")
                        end += 2
                        continue
                    break
                text.append(pattern[end])
                end += 1
            # '' outside a quoted section is a literal quote
            stack[-1].append(_Literal("".join(text) if end > i + 1 else "'"))
            i = end + 1
        elif ch == "[":
            stack.append([])
            i += 1
        elif ch == "]":
            if len(stack) == 1:
                raise ValueError(f"Unbalanced ']' in pattern '{pattern}'")
            section = stack.pop()
            stack[-1].append(_Optional(tuple(section)))
            i += 1
        elif ch.isalpha():
            if ch not in _SUPPORTED_LETTERS:
                raise ValueError(f"Unsupported pattern letter '{ch}' in pattern '{pattern}'")
            count = 1
            while i + count < len(pattern) and pattern[i + count] == ch:
                count += 1
            stack[-1].append(_Field(ch, count))
            i += count
        else:
            stack[-1].append(_Literal(ch))
            i += 1
    if len(stack) != 1:
        raise ValueError(f"Unbalanced '[' in pattern '{pattern}'")
    return tuple(stack[0])


# =============================================================================
# Formatting
# =============================================================================


def _format_offset(offset: timedelta | None, *, colon: bool, minutes: str, zero_as_z: bool) -> str:
    if offset is None:
        offset = timedelta(0)
    if zero_as_z and offset == timedelta(0):
        return "Z"
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, mins = divmod(abs(total_minutes), 60)
    if minutes == "never" or (minutes == "optional" and mins == 0):
        return f"{sign}{hours:02d}"
    sep = ":" if colon else ""
    return f"{sign}{hours:02d}{sep}{mins:02d}"


def _format_field(f: _Field, value: datetime) -> str:
    letter, count = f.letter, f.count
    if letter in "yu":
        if count == 2:
            return f"{value.year % 100:02d}"
        return f"{value.year:0{count}d}"
    if letter in "ML":
        if count >= 4:
            return _MONTHS_FULL[value.month - 1]
        if count == 3:
            return _MONTHS_SHORT[value.month - 1]
        return f"{value.month:0{count}d}"
    if letter == "d":
        return f"{value.day:0{count}d}"
    if letter == "D":
        return f"{value.timetuple().tm_yday:0{count}d}"
    if letter == "H":
        return f"{value.hour:0{count}d}"
    if letter == "h":
        return f"{(value.hour % 12) or 12:0{count}d}"
    if letter == "m":
        return f"{value.minute:0{count}d}"
    if letter == "s":
        return f"{value.second:0{count}d}"
    if letter == "S":
        return f"{value.microsecond:06d}".ljust(count, "0")[:count]
    if letter == "a":
        return "AM" if value.hour < 12 else "PM"
    if letter == "E":
        return _DAYS_FULL[value.weekday()] if count >= 4 else _DAYS_SHORT[value.weekday()]
    offset = value.utcoffset()
    if letter in "Xx":
        zero_as_z = letter == "X"
        if count == 1:
            return _format_offset(offset, colon=False, minutes="optional", zero_as_z=zero_as_z)
        return _format_offset(offset, colon=count >= 3, minutes="always", zero_as_z=zero_as_z)
    if letter == "Z":
        if count >= 5:
            return _format_offset(offset, colon=True, minutes="always", zero_as_z=True)
        return _format_offset(offset, colon=False, minutes="always", zero_as_z=False)
    if letter == "V":
        key = getattr(value.tzinfo, "key", None)
        return key if key is not None else (value.tzname() or "UTC")
    # letter == "z"
    return value.tzname() or "UTC"


def _format_elements(elements: tuple[_Element, ...], value: datetime) -> str:
    parts: list[str] = []
    for element in elements:
        if isinstance(element, _Literal):
            parts.append(element.text)
        elif isinstance(element, _Optional):
            parts.append(_format_elements(element.elements, value))
        else:
            parts.append(_format_field(element, value))
    return "".join(parts)


# =============================================================================
# Parsing
# =============================================================================


def _names_regex(names: tuple[str, ...]) -> str:
    return "(?i:" + "|".join(sorted(names, key=len, reverse=True)) + ")"


def _field_regex(f: _Field) -> str:
    letter, count = f.letter, f.count
    if letter in "yu":
        if count == 2:
            return r"\d{2}"
        if count >= 4:
            return rf"\d{{{count},9}}"
        return r"\d{1,9}"
    if letter in "ML":
        if count >= 4:
            return _names_regex(_MONTHS_FULL)
        if count == 3:
            return _names_regex(_MONTHS_SHORT)
        return r"\d{1,2}" if count == 1 else r"\d{2}"
    if letter in "dHhms":
        return r"\d{1,2}" if count == 1 else rf"\d{{{count}}}"
    if letter == "D":
        return r"\d{1,3}" if count == 1 else rf"\d{{{count},3}}"
    if letter == "S":
        return rf"\d{{{count}}}"
    if letter == "a":
        return "(?i:AM|PM)"
    if letter == "E":
        return _names_regex(_DAYS_FULL + _DAYS_SHORT)
    if letter in "XxZ":
        return r"Z|[+-]\d{2}(?::?\d{2})?"
    # V, z
    return r"[A-Za-z][A-Za-z0-9_+\-]*(?:/[A-Za-z0-9_+\-]+)*"


def _build_regex(elements: tuple[_Element, ...], groups: list[_Field]) -> str:
    parts: list[str] = []
    for element in elements:
        if isinstance(element, _Literal):
            parts.append(re.escape(element.text))
        elif isinstance(element, _Optional):
            parts.append("(?:" + _build_regex(element.elements, groups) + ")?")
        else:
            parts.append(f"(?P<g{len(groups)}>{_field_regex(element)})")
            groups.append(element)
    return "".join(parts)


def _parse_offset(text: str) -> tzinfo:
    if text.upper() == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4]) if len(digits) > 2 else 0
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


@dataclass(frozen=True)
class ParsedDateTime:
    """Fields extracted from a text value. ``tz`` is None when the text had no zone."""

    value: datetime
    tz: tzinfo | None


class DateTimePattern:
    """A compiled date/time pattern.

    Raises:
        ValueError: At construction, if the pattern is malformed or uses
            unsupported letters.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._elements = _tokenize_pattern(pattern)
        self._groups: list[_Field] = []
        self._regex = re.compile(_build_regex(self._elements, self._groups))

    def __repr__(self) -> str:
        return f"DateTimePattern({self.pattern!r})"

    def format(self, value: date | datetime) -> str:
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        return _format_elements(self._elements, value)

    def parse(self, text: str) -> ParsedDateTime:
        """Parse ``text``; missing fields default to 1970-01-01 00:00:00.

        Raises:
            ValueError: If the text doesn't match or describes an invalid date.
        """
        match = self._regex.fullmatch(text)
        if match is None:
            raise ValueError(f"Text {text!r} does not match pattern '{self.pattern}'")

        year, month, day = 1970, 1, 1
        day_of_year: int | None = None
        hour = minute = second = micro = 0
        hour12: int | None = None
        pm: bool | None = None
        tz: tzinfo | None = None

        for i, f in enumerate(self._groups):
            raw = match.group(f"g{i}")
            if raw is None:
                continue
            letter = f.letter
            if letter in "yu":
                year = int(raw) + 2000 if f.count == 2 else int(raw)
            elif letter in "ML":
                if f.count >= 3:
                    names = _MONTHS_FULL if f.count >= 4 else _MONTHS_SHORT
                    month = [n.lower() for n in names].index(raw.lower()) + 1
                else:
                    month = int(raw)
            elif letter == "d":
                day = int(raw)
            elif letter == "D":
                day_of_year = int(raw)
            elif letter == "H":
                hour = int(raw)
            elif letter == "h":
                hour12 = int(raw)
            elif letter == "m":
                minute = int(raw)
            elif letter == "s":
                second = int(raw)
            elif letter == "S":
                micro = int(raw.ljust(6, "0")[:6])
            elif letter == "a":
                pm = raw.upper() == "PM"
            elif letter in "XxZ":
                tz = _parse_offset(raw)
            elif letter in "Vz":
                try:
                    tz = ZoneInfo(raw)
                except (ZoneInfoNotFoundError, ValueError) as e:
                    raise ValueError(f"Unknown time zone '{raw}'") from e
            # E (day name) is validated by the regex and otherwise ignored

        if hour12 is not None:
            if not 1 <= hour12 <= 12:
                raise ValueError(f"Invalid clock hour {hour12} in {text!r}")
            hour = hour12 % 12 + (12 if pm else 0)
        elif pm:
            hour = hour % 12 + 12

        if day_of_year is not None:
            value = datetime(year, 1, 1, hour, minute, second, micro) + timedelta(days=day_of_year - 1)
            if value.year != year:
                raise ValueError(f"Day of year {day_of_year} is out of range for {year}")
        else:
            value = datetime(year, month, day, hour, minute, second, micro)
        return ParsedDateTime(value, tz)

    def parse_date(self, text: str) -> date:
        return self.parse(text).value.date()

    def parse_timestamp(self, text: str, default_tz: tzinfo) -> datetime:
        """Parse a zone-aware timestamp; text without a zone is read in ``default_tz``."""
        parsed = self.parse(text)
        return parsed.value.replace(tzinfo=parsed.tz or default_tz)

    def parse_timestamp_ntz(self, text: str) -> datetime:
        """Parse a wall-clock timestamp. Any zone in the text is ignored."""
        return self.parse(text).value


class IsoDateTimeParser:
    """Lenient ISO-8601 reader used when no explicit pattern is configured.

    Accepts dates, date-times with ``T`` or space separators, fractional
    seconds, and ``Z`` or numeric offsets.
    """

    pattern = "<iso-8601>"

    def __repr__(self) -> str:
        return "IsoDateTimeParser()"

    def _parse(self, text: str) -> datetime:
        return datetime.fromisoformat(text.strip())

    def parse_date(self, text: str) -> date:
        return self._parse(text).date()

    def parse_timestamp(self, text: str, default_tz: tzinfo) -> datetime:
        value = self._parse(text)
        if value.tzinfo is None:
            value = value.replace(tzinfo=default_tz)
        return value

    def parse_timestamp_ntz(self, text: str) -> datetime:
        return self._parse(text).replace(tzinfo=None)


DateTimeReader = DateTimePattern | IsoDateTimeParser


def resolve_time_zone(zone_id: str) -> ZoneInfo:
    """Resolve a zone identifier such as ``UTC`` or ``America/Los_Angeles``.

    Raises:
        ValueError: If the identifier is unknown.
    """
    try:
        return ZoneInfo(zone_id)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone '{zone_id}'") from e
