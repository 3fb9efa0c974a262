"""DDL statements for PostGIS geometry columns and their indexes."""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Column, Index, MetaData, Table, TextClause, text
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.schema import CreateColumn, CreateIndex, DropTable
from sqlalchemy.types import NullType

# PostGIS operator class for 2D geometry GIST indexes
GEOMETRY_OPERATOR_CLASS = "gist_geometry_ops_2d"


def ddl(statement: str) -> TextClause:
    """Wrap a rendered DDL string as an executable statement."""
    # Literal colons are not bind parameters
    return text(statement.replace(":", r"\:"))


def add_geometry_column(
    table_name: str,
    column_name: str,
    srid: int,
    geometry_type: str,
    dimension: int,
) -> TextClause:
    """Register a geometry column with the spatial catalog.

    ``use_typmod`` is disabled so PostGIS records the type, dimension and SRID
    as check constraints, which is where the schema reader looks for them.
    """
    return text(
        "SELECT AddGeometryColumn("
        ":table_name, :column_name, :srid, :geometry_type, :dimension, false)",
    ).bindparams(
        table_name=table_name,
        column_name=column_name,
        srid=srid,
        geometry_type=geometry_type,
        dimension=dimension,
    )


def drop_geometry_column(table_name: str, column_name: str) -> TextClause:
    """Remove a geometry column through the spatial catalog."""
    return text("SELECT DropGeometryColumn(:table_name, :column_name)").bindparams(
        table_name=table_name,
        column_name=column_name,
    )


def set_not_null(table_name: str, column_name: str, dialect: Dialect) -> TextClause:
    """Enforce NOT NULL on an existing column."""
    quote = dialect.identifier_preparer.quote
    return ddl(
        f"ALTER TABLE {quote(table_name)} "
        f"ALTER COLUMN {quote(column_name)} SET NOT NULL",
    )


def add_column(table_name: str, column: Column[Any], dialect: Dialect) -> TextClause:
    """Add an ordinary column to an existing table."""
    # Column specifications are only rendered for columns bound to a table
    Table(table_name, MetaData(), column)
    column_sql = CreateColumn(column).compile(dialect=dialect)
    quote = dialect.identifier_preparer.quote
    return ddl(f"ALTER TABLE {quote(table_name)} ADD COLUMN {column_sql}")


def drop_column(table_name: str, column_name: str, dialect: Dialect) -> TextClause:
    """Remove an ordinary column."""
    quote = dialect.identifier_preparer.quote
    return ddl(f"ALTER TABLE {quote(table_name)} DROP COLUMN {quote(column_name)}")


def drop_table(table_name: str) -> DropTable:
    """Drop a table."""
    return DropTable(Table(table_name, MetaData()))


def drop_index(index_name: str, dialect: Dialect) -> TextClause:
    """Drop an index by name."""
    return ddl(f"DROP INDEX {dialect.identifier_preparer.quote(index_name)}")


def default_index_name(table_name: str, column_name: str) -> str:
    """Name an index after its table and first column."""
    return f"{table_name}_{column_name}_index"


def create_index(
    index_name: str,
    table_name: str,
    column_names: Sequence[str],
    *,
    unique: bool = False,
) -> CreateIndex:
    """Create one B-tree index across the columns, in the order given."""
    table = Table(
        table_name,
        MetaData(),
        *(Column(name, NullType()) for name in column_names),
    )
    index = Index(index_name, *(table.c[name] for name in column_names), unique=unique)
    return CreateIndex(index)


def create_spatial_index(
    index_name: str,
    table_name: str,
    column_name: str,
) -> CreateIndex:
    """Create a GIST index over a single geometry column."""
    table = Table(table_name, MetaData(), Column(column_name, NullType()))
    index = Index(
        index_name,
        table.c[column_name],
        postgresql_using="gist",
        postgresql_ops={column_name: GEOMETRY_OPERATOR_CLASS},
    )
    return CreateIndex(index)
