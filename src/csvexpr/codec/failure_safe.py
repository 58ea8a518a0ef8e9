# src/csvexpr/codec/failure_safe.py
"""Parse-mode policy around a raw parser.

The raw parser either returns rows or raises BadRecordError with whatever
it could salvage. This wrapper turns that into the outcome each parse mode
promises:

- PERMISSIVE: emit the salvaged row(s) with the raw text in the
  corrupt-record column (if the output schema has one)
- DROPMALFORMED: emit nothing for the bad record
- FAILFAST: raise MalformedRecordError chained to the underlying cause
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from csvexpr.contracts.enums import ParseMode
from csvexpr.contracts.errors import BadRecordError, MalformedRecordError
from csvexpr.contracts.rows import Row
from csvexpr.contracts.types import StructType

logger = structlog.get_logger(__name__)

RawParse = Callable[[str], list[Row]]


class FailureSafeParser:
    """Apply a parse mode to a raw parser.

    Args:
        raw_parse: Callable producing rows shaped like ``output_schema``
            minus the corrupt-record column
        mode: Parse mode to apply
        output_schema: Shape of emitted rows
        column_name_of_corrupt_record: Name of the corrupt-record column.
            Only used if ``output_schema`` contains it.
        preview_length: Max record characters quoted in FAILFAST errors
    """

    def __init__(
        self,
        raw_parse: RawParse,
        mode: ParseMode,
        output_schema: StructType,
        column_name_of_corrupt_record: str,
        *,
        preview_length: int = 256,
    ) -> None:
        self._raw_parse = raw_parse
        self._mode = mode
        self._output_schema = output_schema
        self._preview_length = preview_length

        self._corrupt_index = output_schema.field_index(column_name_of_corrupt_record)
        actual_names = [name for name in output_schema.field_names if name != column_name_of_corrupt_record]
        # Output position -> position in the raw row, None for the corrupt column
        positions = {name: i for i, name in enumerate(actual_names)}
        self._source_positions = tuple(positions.get(name) for name in output_schema.field_names)

    @property
    def mode(self) -> ParseMode:
        return self._mode

    def _to_result_row(self, raw: Row | None, record: str | None) -> Row:
        values = []
        for i, source in enumerate(self._source_positions):
            if i == self._corrupt_index:
                values.append(record)
            elif raw is None or source is None:
                values.append(None)
            else:
                values.append(raw[source])
        return tuple(values)

    def parse(self, text: str) -> list[Row]:
        """Parse ``text`` under the configured mode.

        Raises:
            MalformedRecordError: In FAILFAST mode, for a malformed record.
        """
        try:
            return [self._to_result_row(row, None) for row in self._raw_parse(text)]
        except BadRecordError as e:
            if self._mode == ParseMode.PERMISSIVE:
                logger.debug("malformed_record_kept", record=e.record, cause=str(e.cause), salvaged=len(e.partial_results))
                return [self._to_result_row(partial, e.record) for partial in e.partial_results]
            if self._mode == ParseMode.DROPMALFORMED:
                logger.debug("malformed_record_dropped", record=e.record, cause=str(e.cause))
                return []
            raise MalformedRecordError(e.record, preview_length=self._preview_length) from e.cause
