"""Modes and kinds used across codec boundaries."""

from enum import StrEnum


class ParseMode(StrEnum):
    """Policy for records that cannot be parsed against the schema.

    PERMISSIVE: Null the fields that cannot be converted and keep the raw
                text in the corrupt-record column (if the schema has one).
    DROPMALFORMED: Drop the whole record.
    FAILFAST: Abort on the first malformed record.
    """

    PERMISSIVE = "PERMISSIVE"
    DROPMALFORMED = "DROPMALFORMED"
    FAILFAST = "FAILFAST"

    @classmethod
    def from_string(cls, value: str) -> "ParseMode":
        """Resolve a mode name case-insensitively.

        Raises:
            ValueError: If the name is not a known mode.
        """
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown parse mode '{value}'. Supported modes: {', '.join(m.value for m in cls)}") from None


class TypeMismatchKind(StrEnum):
    """Error subclasses reported by input type checks."""

    NON_FOLDABLE_INPUT = "NON_FOLDABLE_INPUT"
    UNEXPECTED_NULL = "UNEXPECTED_NULL"
    UNSUPPORTED_INPUT_TYPE = "UNSUPPORTED_INPUT_TYPE"
    UNEXPECTED_INPUT_TYPE = "UNEXPECTED_INPUT_TYPE"
