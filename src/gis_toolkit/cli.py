"""Command line interface for GIS Toolkit."""

import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from json import dumps
from logging import basicConfig
from sys import stdout
from typing import Any, Literal

from cyclopts import App
from rich.console import Console
from rich.table import Table
from shapely.geometry.base import BaseGeometry
from spatial import GEOMETRY_DATA_TYPES, ColumnSchema, IndexSchema, SpatialAdapter
from sqlalchemy import URL, create_engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from gis_toolkit.config import database_url

app = App(help="GIS Toolkit CLI tool")


type Format = Literal["table", "json"]


def serializer(obj: Any) -> str | float | tuple[Any, ...] | None:  # noqa: ANN401
    """Render geometries as WKT, dates in ISO format and iterables as tuples."""
    if isinstance(obj, BaseGeometry):
        return obj.wkt
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Iterable):
        return tuple(
            obj,  # pyright: ignore[reportUnknownVariableType,reportUnknownArgumentType]
        )
    return None


console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def resolve_url(url: str | None) -> URL:
    """Use the given URL, falling back to the environment configuration."""
    try:
        return make_url(url) if url else database_url()
    except ValueError as e:
        print_error(f"Invalid database configuration: {e}")
        sys.exit(1)


@contextmanager
def spatial_adapter(url: str | None) -> Iterator[SpatialAdapter]:
    """Open a transaction and wrap its connection in a SpatialAdapter."""
    database = resolve_url(url)
    print_info(f"Database: {database.render_as_string(hide_password=True)}")
    engine = create_engine(database)
    try:
        with engine.begin() as connection:
            yield SpatialAdapter(connection)
    except SQLAlchemyError as e:
        print_error(f"Database operation failed: {e}")
        sys.exit(1)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)
    finally:
        engine.dispose()


def format_columns_table(table_name: str, columns: Iterable[ColumnSchema]) -> None:
    """Format column descriptions as a rich table."""
    table = Table(title=f"Columns of {table_name}")
    table.add_column("Column", style="bold cyan")
    table.add_column("Type", style="bold yellow")
    table.add_column("Nullable")
    table.add_column("Default")
    table.add_column("SRID")
    table.add_column("Z")
    table.add_column("M")

    for column in columns:
        spatial = [
            str(column.get(key, "")) for key in ("srid", "with_z", "with_m")
        ]
        table.add_row(
            column["name"],
            column["type"],
            str(column["nullable"]),
            column["default"] or "",
            *spatial,
        )

    console.print(table)


def format_indexes_table(table_name: str, indexes: Iterable[IndexSchema]) -> None:
    """Format index descriptions as a rich table."""
    table = Table(title=f"Indexes of {table_name}")
    table.add_column("Index", style="bold cyan")
    table.add_column("Columns", style="bold yellow")
    table.add_column("Unique")
    table.add_column("Spatial")

    for index in indexes:
        table.add_row(
            index["name"],
            ", ".join(index["columns"]),
            str(index["unique"]),
            str(index["spatial"]),
        )

    console.print(table)


@app.command
def columns(table_name: str, fmt: Format = "table", *, url: str | None = None) -> None:
    """Describe the columns of a table, with spatial metadata."""
    with spatial_adapter(url) as adapter:
        described = adapter.columns(table_name)

    if fmt == "json":
        stdout.write(dumps(described))
    elif fmt == "table":
        format_columns_table(table_name, described)


@app.command
def indexes(table_name: str, fmt: Format = "table", *, url: str | None = None) -> None:
    """List the indexes of a table."""
    with spatial_adapter(url) as adapter:
        described = adapter.indexes(table_name)

    if fmt == "json":
        stdout.write(dumps(described))
    elif fmt == "table":
        format_indexes_table(table_name, described)


@app.command
def add_column(  # noqa: PLR0913
    table_name: str,
    column_name: str,
    column_type: str,
    *,
    srid: int = -1,
    with_z: bool = False,
    with_m: bool = False,
    not_null: bool = False,
    url: str | None = None,
) -> None:
    """Add a column; spatial types are registered with PostGIS."""
    if column_type in GEOMETRY_DATA_TYPES:
        print_info(f"Spatial column: {column_type} (SRID {srid})")

    with spatial_adapter(url) as adapter:
        adapter.add_column(
            table_name,
            column_name,
            column_type,
            null=not not_null,
            srid=srid,
            with_z=with_z,
            with_m=with_m,
        )

    print_success(f"Added column {table_name}.{column_name}")


@app.command
def remove_column(table_name: str, column_name: str, *, url: str | None = None) -> None:
    """Remove a column, through PostGIS when it is a geometry."""
    with spatial_adapter(url) as adapter:
        adapter.remove_column(table_name, column_name)

    print_success(f"Removed column {table_name}.{column_name}")


@app.command
def add_index(
    table_name: str,
    *column_names: str,
    name: str | None = None,
    spatial: bool = False,
    unique: bool = False,
    url: str | None = None,
) -> None:
    """Add an index over one or more columns."""
    with spatial_adapter(url) as adapter:
        adapter.add_index(
            table_name,
            column_names,
            name=name,
            spatial=spatial,
            unique=unique,
        )

    print_success(f"Indexed {table_name} ({', '.join(column_names)})")


@app.command
def rows(table_name: str, *, url: str | None = None) -> None:
    """Dump the rows of a table as JSON, geometries as WKT."""
    with spatial_adapter(url) as adapter:
        stdout.write(dumps(list(adapter.select_rows(table_name)), default=serializer))


def main() -> None:
    """Entry point for the CLI."""
    basicConfig(level="WARNING")
    app()


if __name__ == "__main__":
    main()
