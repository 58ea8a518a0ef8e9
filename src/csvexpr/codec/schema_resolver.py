# src/csvexpr/codec/schema_resolver.py
"""Resolution of the schemas a decode expression works with.

Text can omit fields with no way to signal it other than null, so every
declared schema is forced nullable before use. The corrupt-record column
is not part of the source text, so it is stripped from the shapes the raw
parser populates.
"""

from __future__ import annotations

from dataclasses import dataclass

from csvexpr.contracts.errors import CorruptRecordColumnError, InvalidSchemaError
from csvexpr.contracts.types import StringType, StructType


@dataclass(frozen=True)
class ResolvedSchemas:
    """Schemas derived from a declared schema at bind time.

    Attributes:
        nullable_schema: The declared schema with all fields nullable
        actual_schema: nullable_schema without the corrupt-record column;
            the shape tokens are matched against, by position
        output_schema: The shape of rows handed back to the caller (the
            required schema if one was given, else nullable_schema)
        actual_output_schema: output_schema without the corrupt-record
            column; the shape the raw parser materializes
        corrupt_record_column: Name of the corrupt-record column if the
            output schema carries one, else None
    """

    nullable_schema: StructType
    actual_schema: StructType
    output_schema: StructType
    actual_output_schema: StructType
    corrupt_record_column: str | None


def verify_column_name_of_corrupt_record(
    schema: StructType,
    column_name: str,
    *,
    explicit: bool = False,
) -> None:
    """Check the corrupt-record column against the schema.

    A column with the configured name must be a nullable string. When the
    name was set explicitly by the caller, the column must also exist.

    Raises:
        CorruptRecordColumnError: If the column is mistyped, or explicitly
            requested but absent.
    """
    index = schema.field_index(column_name)
    if index is None:
        if explicit:
            raise CorruptRecordColumnError(
                f"The corrupt record column '{column_name}' is not a field of the schema {schema.sql}.",
                error_class="INVALID_CORRUPT_RECORD_TYPE.MISSING_FIELD",
                message_parameters={"columnName": column_name},
            )
        return
    f = schema[index]
    if not isinstance(f.data_type, StringType) or not f.nullable:
        raise CorruptRecordColumnError(
            f"The column '{column_name}' for corrupt records must have the nullable STRING type, but got {f.data_type.sql}.",
            message_parameters={"columnName": column_name, "actualType": f.data_type.sql},
        )


def resolve_schemas(
    schema: StructType,
    column_name_of_corrupt_record: str,
    *,
    required_schema: StructType | None = None,
    explicit_corrupt_record_column: bool = False,
) -> ResolvedSchemas:
    """Derive the nullable, actual and output schemas.

    Pure: resolving the same inputs twice yields equal results.

    Raises:
        CorruptRecordColumnError: See verify_column_name_of_corrupt_record.
        InvalidSchemaError: If the required schema names fields the declared
            schema doesn't have.
    """
    nullable_schema = schema.as_nullable()
    verify_column_name_of_corrupt_record(
        nullable_schema,
        column_name_of_corrupt_record,
        explicit=explicit_corrupt_record_column,
    )
    actual_schema = nullable_schema.without(column_name_of_corrupt_record)

    if required_schema is not None:
        unknown = [name for name in required_schema.field_names if name not in nullable_schema]
        if unknown:
            raise InvalidSchemaError(
                f"Required fields {', '.join(unknown)} are not declared in the schema {schema.sql}.",
                error_class="INVALID_SCHEMA.UNKNOWN_REQUIRED_FIELD",
                message_parameters={"fields": ", ".join(unknown)},
            )
        output_schema = required_schema.as_nullable()
        verify_column_name_of_corrupt_record(output_schema, column_name_of_corrupt_record)
    else:
        output_schema = nullable_schema

    corrupt = column_name_of_corrupt_record if column_name_of_corrupt_record in output_schema else None
    return ResolvedSchemas(
        nullable_schema=nullable_schema,
        actual_schema=actual_schema,
        output_schema=output_schema,
        actual_output_schema=output_schema.without(column_name_of_corrupt_record),
        corrupt_record_column=corrupt,
    )
