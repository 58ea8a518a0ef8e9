# src/csvexpr/contracts/ddl.py
"""Parsing of DDL schema strings.

Two forms are accepted:

    a INT, b DOUBLE NOT NULL COMMENT 'score'     (table schema)
    STRUCT<a: INT, b: ARRAY<STRING>>             (a struct type)

Both are parsed with sqlglot's Spark dialect. A table schema is parsed as
the body of a STRUCT type, and the resulting sqlglot DataType tree is
mapped onto csvexpr data types.
"""

from __future__ import annotations

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, SqlglotError
from sqlglot.tokens import TokenType

from csvexpr.contracts.errors import InvalidSchemaError
from csvexpr.contracts.types import (
    ArrayType,
    BinaryType,
    BooleanType,
    ByteType,
    DataType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    IntegerType,
    LongType,
    MapType,
    NullType,
    ShortType,
    StringType,
    StructField,
    StructType,
    TimestampNTZType,
    TimestampType,
    VariantType,
)

DIALECT = "spark"

_T = exp.DataType.Type

_SIMPLE_TYPES: dict[exp.DataType.Type, DataType] = {
    _T.BOOLEAN: BooleanType(),
    _T.TINYINT: ByteType(),
    _T.SMALLINT: ShortType(),
    _T.INT: IntegerType(),
    _T.BIGINT: LongType(),
    _T.FLOAT: FloatType(),
    _T.DOUBLE: DoubleType(),
    _T.TEXT: StringType(),
    _T.VARCHAR: StringType(),
    _T.CHAR: StringType(),
    _T.BINARY: BinaryType(),
    _T.DATE: DateType(),
    # Spark reads a bare TIMESTAMP as the session-zone timestamp
    _T.TIMESTAMP: TimestampType(),
    _T.TIMESTAMPTZ: TimestampType(),
    _T.TIMESTAMPLTZ: TimestampType(),
    _T.TIMESTAMPNTZ: TimestampNTZType(),
    _T.NULL: NullType(),
    _T.VARIANT: VariantType(),
}

# Positions where sqlglot silently accepts an empty list item
_EMPTY_ITEM_FOLLOWERS = frozenset({TokenType.COMMA, TokenType.GT, TokenType.R_PAREN})


def _parse_error(text: str, reason: str) -> InvalidSchemaError:
    return InvalidSchemaError(
        f"Cannot parse the schema {text!r}: {reason}.",
        error_class="INVALID_SCHEMA.PARSE_ERROR",
        message_parameters={"inputSchema": text, "reason": reason},
    )


def _reason(error: SqlglotError) -> str:
    if isinstance(error, ParseError) and error.errors:
        detail = error.errors[0]
        description = detail.get("description") or "syntax error"
        return f"{description} at column {detail.get('col')}"
    return str(error).splitlines()[0]


def _check_no_empty_items(text: str) -> None:
    tokens = sqlglot.tokenize(text, read=DIALECT)
    for token, following in zip(tokens, [*tokens[1:], None], strict=True):
        if token.token_type == TokenType.COMMA and (following is None or following.token_type in _EMPTY_ITEM_FOLLOWERS):
            raise _parse_error(text, f"missing item after ',' at column {token.col}")


def _parse_sqlglot_type(text: str, source: str) -> exp.DataType:
    """Parse ``text`` into a sqlglot DataType, reporting errors against ``source``."""
    try:
        _check_no_empty_items(text)
        return sqlglot.parse_one(text, read=DIALECT, into=exp.DataType)
    except SqlglotError as e:
        raise _parse_error(source, _reason(e)) from e


def _field(node: exp.Expression, source: str) -> StructField:
    if not isinstance(node, exp.ColumnDef) or node.args.get("kind") is None:
        raise _parse_error(source, f"expected 'name type' but found {node.sql(dialect=DIALECT)!r}")
    nullable = True
    comment: str | None = None
    for constraint in node.args.get("constraints") or []:
        kind = constraint.args.get("kind")
        if isinstance(kind, exp.NotNullColumnConstraint):
            nullable = False
        elif isinstance(kind, exp.CommentColumnConstraint):
            comment = kind.this.name
        else:
            raise _parse_error(source, f"unsupported column constraint {constraint.sql(dialect=DIALECT)!r}")
    return StructField(node.name, _to_data_type(node.args["kind"], source), nullable, comment)


def _struct(node: exp.DataType, source: str) -> StructType:
    try:
        return StructType(_field(f, source) for f in node.expressions)
    except ValueError as e:
        raise _parse_error(source, str(e)) from e


def _to_data_type(node: exp.DataType, source: str) -> DataType:
    kind = node.this
    children = node.expressions

    if kind == _T.ARRAY:
        if len(children) != 1:
            raise _parse_error(source, "ARRAY takes exactly one element type")
        return ArrayType(_to_data_type(children[0], source))

    if kind == _T.MAP:
        if len(children) != 2:
            raise _parse_error(source, "MAP takes a key type and a value type")
        return MapType(_to_data_type(children[0], source), _to_data_type(children[1], source))

    if kind == _T.STRUCT:
        return _struct(node, source)

    if kind == _T.DECIMAL:
        if len(children) > 2:
            raise _parse_error(source, "DECIMAL takes at most a precision and a scale")
        try:
            params = [int(p.name) for p in children]
            return DecimalType(params[0] if params else 10, params[1] if len(params) > 1 else 0)
        except ValueError as e:
            raise _parse_error(source, str(e)) from e

    simple = _SIMPLE_TYPES.get(kind)
    if simple is None:
        raise _parse_error(source, f"unsupported data type {node.sql(dialect=DIALECT)!r}")
    return simple


def parse_data_type(text: str) -> DataType:
    """Parse a single data type such as ``ARRAY<INT>`` or ``DECIMAL(10,2)``.

    Raises:
        InvalidSchemaError: If the text is not a valid type.
    """
    return _to_data_type(_parse_sqlglot_type(text, text), text)


def parse_schema_or_type(text: str) -> DataType:
    """Parse a table schema, falling back to a standalone data type.

    Raises:
        InvalidSchemaError: If the text is neither. The table-schema error is
            reported since that is the more common intent.
    """
    if not text.strip():
        raise _parse_error(text, "empty schema")
    try:
        return _struct(_parse_sqlglot_type(f"STRUCT<{text}>", text), text)
    except InvalidSchemaError as table_error:
        try:
            return parse_data_type(text)
        except InvalidSchemaError:
            raise table_error from None


def parse_ddl(text: str) -> StructType:
    """Parse a schema string that must describe a struct.

    Raises:
        InvalidSchemaError: On syntax errors, or if the text describes a
            non-struct type (INVALID_SCHEMA.NON_STRUCT_TYPE).
    """
    data_type = parse_schema_or_type(text)
    if not isinstance(data_type, StructType):
        raise InvalidSchemaError(
            f"The input expression should be evaluated to struct type, but got {data_type.sql}.",
            error_class="INVALID_SCHEMA.NON_STRUCT_TYPE",
            message_parameters={"inputSchema": text, "dataType": data_type.sql},
        )
    return data_type
