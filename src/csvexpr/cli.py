# src/csvexpr/cli.py
"""csvexpr command line interface.

Runs the CSV functions on single values from the shell:

    csvexpr from-csv "1, 0.8" --schema "a INT, b DOUBLE"
    csvexpr to-csv '{"a": 1, "b": 2}' --schema "a INT, b INT"
    csvexpr schema-of-csv "1,abc"
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from csvexpr import __version__
from csvexpr.contracts.ddl import parse_ddl
from csvexpr.contracts.errors import AnalysisError, MalformedRecordError
from csvexpr.contracts.rows import row_as_dict
from csvexpr.contracts.types import (
    ArrayType,
    BinaryType,
    DataType,
    DateType,
    DecimalType,
    MapType,
    StringType,
    StructType,
    TimestampNTZType,
    TimestampType,
    UserDefinedType,
)
from csvexpr.core.config import get_settings, load_settings, set_settings
from csvexpr.core.datetime_formats import resolve_time_zone
from csvexpr.expressions.base import BoundReference, CreateMap, Literal, compile_expression
from csvexpr.expressions.registry import from_csv, schema_of_csv, to_csv

EXIT_MALFORMED_RECORD = 1
EXIT_ANALYSIS_ERROR = 2

app = typer.Typer(
    name="csvexpr",
    help="csvexpr: CSV from_csv / to_csv / schema_of_csv functions.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"csvexpr version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file. CSVEXPR_* environment variables override it.",
    ),
) -> None:
    """csvexpr: CSV from_csv / to_csv / schema_of_csv functions."""
    from csvexpr.core.logging import configure_logging

    configure_logging(json_output=json_logs, level=log_level)

    try:
        set_settings(load_settings(settings))
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
        raise typer.Exit(EXIT_ANALYSIS_ERROR) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(EXIT_ANALYSIS_ERROR) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(EXIT_ANALYSIS_ERROR) from None


# =============================================================================
# Helpers
# =============================================================================


def _options_map(options: list[str] | None) -> CreateMap | None:
    if not options:
        return None
    entries: dict[str, str] = {}
    for item in options:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--option")
        entries[key] = value
    return CreateMap.of(entries)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _from_json(value: Any, data_type: DataType) -> Any:
    """Coerce a decoded JSON value to the Python value ``data_type`` expects."""
    if value is None:
        return None
    if isinstance(data_type, UserDefinedType):
        return _from_json(value, data_type.sql_type)
    if isinstance(data_type, StructType):
        if isinstance(value, dict):
            return tuple(_from_json(value.get(f.name), f.data_type) for f in data_type)
        return tuple(_from_json(v, f.data_type) for v, f in zip(value, data_type, strict=True))
    if isinstance(data_type, ArrayType):
        return [_from_json(v, data_type.element_type) for v in value]
    if isinstance(data_type, MapType):
        return {_from_json(k, data_type.key_type): _from_json(v, data_type.value_type) for k, v in value.items()}
    if isinstance(data_type, DecimalType):
        return Decimal(str(value))
    if isinstance(data_type, BinaryType):
        return str(value).encode("utf-8")
    if isinstance(data_type, DateType):
        return date.fromisoformat(value)
    if isinstance(data_type, TimestampType):
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=resolve_time_zone(get_settings().session_time_zone))
        return parsed
    if isinstance(data_type, TimestampNTZType):
        return datetime.fromisoformat(value).replace(tzinfo=None)
    return value


def _fail(error: Exception, code: int) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code)


# =============================================================================
# Commands
# =============================================================================


@app.command("from-csv")
def from_csv_command(
    text: str = typer.Argument(..., help="One CSV record."),
    schema: str = typer.Option(..., "--schema", help="DDL schema, e.g. 'a INT, b DOUBLE'."),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="CSV option as KEY=VALUE (repeatable)."),
) -> None:
    """Parse one CSV record into a JSON object."""
    try:
        expression = from_csv(BoundReference(0, StringType(), name="csv"), Literal(schema), _options_map(option))
        row = compile_expression(expression)((text,))
    except AnalysisError as e:
        raise _fail(e, EXIT_ANALYSIS_ERROR) from None
    except MalformedRecordError as e:
        raise _fail(e, EXIT_MALFORMED_RECORD) from None
    typer.echo(json.dumps(row_as_dict(expression.data_type, row), default=_json_default))


@app.command("to-csv")
def to_csv_command(
    row: str = typer.Argument(..., help="Row as a JSON object (by field name) or array (by position)."),
    schema: str = typer.Option(..., "--schema", help="DDL schema of the row."),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="CSV option as KEY=VALUE (repeatable)."),
) -> None:
    """Render one row as a CSV record."""
    try:
        struct = parse_ddl(schema)
        try:
            value = _from_json(json.loads(row), struct)
        except (ValueError, TypeError) as e:
            typer.echo(f"Error: Invalid row: {e}", err=True)
            raise typer.Exit(EXIT_ANALYSIS_ERROR) from None
        expression = to_csv(BoundReference(0, struct, name="row"), _options_map(option))
        text = compile_expression(expression)((value,))
    except AnalysisError as e:
        raise _fail(e, EXIT_ANALYSIS_ERROR) from None
    typer.echo(text)


@app.command("schema-of-csv")
def schema_of_csv_command(
    text: str = typer.Argument(..., help="Sample CSV record."),
    option: list[str] | None = typer.Option(None, "--option", "-o", help="CSV option as KEY=VALUE (repeatable)."),
) -> None:
    """Infer the schema of a sample CSV record."""
    try:
        expression = schema_of_csv(Literal(text), _options_map(option))
        result = expression.eval()
    except AnalysisError as e:
        raise _fail(e, EXIT_ANALYSIS_ERROR) from None
    typer.echo(result)


if __name__ == "__main__":
    app()
